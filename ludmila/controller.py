"""\
Ludmila's Controllers
=====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

``Controller`` is the base class of request handlers. It wraps a
``RequestContext`` and offers uniform JSON, file and stream responses.

``ControllerFactory`` turns a controller type and a method name into a
framework handler. The method is looked up once, when the route is
registered, so a typo in an endpoint descriptor fails at startup. Per
request the handler builds a context and a controller, resolves the
method arguments from their expressions and calls the method; an
``ApplicationError`` is answered as JSON, anything else goes to the
framework's error channel.
"""

from __future__ import annotations

import os
import typing as t

from ludmila.arguments import parse_argument
from ludmila.context import RequestContext
from ludmila.exceptions import ApplicationError
from ludmila.log import create_logger
from ludmila.utils import get_field
from ludmila.utils import run_sync

if t.TYPE_CHECKING:
    from collections.abc import Iterable

    from ludmila.log import Logger
    from ludmila.wrappers import Request
    from ludmila.wrappers import Response

Handler: t.TypeAlias = t.Callable[..., t.Any]

XLSX_MIMETYPE: t.Final[str] = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)


class Controller:
    """Base class for API controllers.

    :param context: Context the controller executes under.
    :raises TypeError: If ``context`` isn't a ``RequestContext``.
    """

    def __init__(self, context: RequestContext) -> None:
        """Initialise the controller with its context."""
        if not isinstance(context, RequestContext):
            raise TypeError(
                "The context argument needs to be an instance of "
                "RequestContext"
            )
        self.context = context

    def __repr__(self) -> str:
        """Human-readable representation of the controller."""
        return f"<{type(self).__name__} {self.context.request!r}>"

    @property
    def response(self) -> Response:
        """Response of the current request."""
        return self.context.response

    @property
    def logger(self) -> Logger:
        """Logger scoped to the current request."""
        return self.context.logger

    def respond_ok(self, result: t.Any = None) -> None:
        """Send ``result`` as JSON with ``200 OK``."""
        self.respond_json({} if result is None else result, 200)

    def respond_not_found(self, result: t.Any = None) -> None:
        """Send ``result`` as JSON with ``404 Not Found``."""
        self.respond_json({} if result is None else result, 404)

    def respond_error(
        self, result: t.Any = None, error_code: int = 500
    ) -> None:
        """Send ``result`` as a JSON error.

        The status comes from ``result.code`` (or ``result["code"]``)
        when present and falls back to ``error_code``.

        :param result: Error payload or ``ApplicationError``, defaults
            to ``None``.
        :param error_code: Fallback status, defaults to ``500``.
        """
        code = get_field(result, "code")
        if isinstance(result, ApplicationError):
            result = result.to_dict()
        self.respond_json(
            {} if result is None else result,
            error_code if code is None else code,
        )

    def respond_json(
        self, result: t.Any = None, status_code: int = 200
    ) -> None:
        """Send ``result`` as JSON with ``status_code``."""
        self.response.send_json({} if result is None else result, status_code)

    def send_response(
        self, result: t.Any = None, status_code: int = 200
    ) -> None:
        """Send ``result`` without any conversion."""
        self.response.send(result, status_code)

    def send_file(
        self, file_path: str | os.PathLike[str], file_name: str | None = None
    ) -> None:
        """Send the file at ``file_path`` as an attachment.

        :param file_path: File to send.
        :param file_name: Name offered to the client, defaults to the
            file's own name.
        """
        name = file_name or os.path.basename(os.fspath(file_path))
        self.context.set_header("Content-Disposition", "attachment", name)
        self.response.send_file(file_path)

    def send_file_as_stream(
        self,
        stream: Iterable[bytes | str],
        file_name: str = "data.xlsx",
        mimetype: str = XLSX_MIMETYPE,
    ) -> None:
        """Stream ``stream`` to the client as a downloadable file.

        :param stream: Chunks of the file.
        :param file_name: Name offered to the client, defaults to
            ``data.xlsx``.
        :param mimetype: Content type, defaults to the spreadsheet type.
        """
        self.context.set_header("Content-Disposition", "attachment", file_name)
        self.response.send_stream(stream, mimetype)


class ControllerFactory:
    """Route framework requests to methods of ``controller_type``.

    :param controller_type: Controller class instantiated per request.
    """

    def __init__(self, controller_type: type[Controller]) -> None:
        """Initialise the factory for ``controller_type``."""
        self.controller_type = controller_type
        self.logger_name = controller_type.__name__.removesuffix("Controller")
        self.methods: dict[str, t.Callable[..., t.Any]] = {}

    def __repr__(self) -> str:
        """Human-readable representation of the factory."""
        return f"<{type(self).__name__} {self.controller_type.__name__}>"

    def resolve(self, method: str) -> t.Callable[..., t.Any]:
        """Return the controller function named ``method``.

        :raises AttributeError: When the controller has no public
            callable of that name.
        """
        if method not in self.methods:
            target = getattr(self.controller_type, method, None)
            if method.startswith("_") or not callable(target):
                raise AttributeError(
                    f"{self.controller_type.__name__} has no handler "
                    f"method {method!r}"
                )
            self.methods[method] = target
        return self.methods[method]

    def create_context(self, request: Request) -> RequestContext:
        """Create a context with a logger named after the controller."""
        logger = create_logger(self.logger_name, request)
        return RequestContext(request, logger)

    def route(self, method: str, *argument_expressions: str) -> Handler:
        """Create the framework handler calling ``method``.

        A value returned by the method is sent as ``200`` JSON when the
        method didn't respond itself.

        :param method: Name of the controller method.
        :param argument_expressions: Expressions mapping the request to
            the method's positional arguments.
        """
        target = self.resolve(method)

        def handler(
            request: Request, response: Response, next: Handler
        ) -> None:
            try:
                context = self.create_context(request)
                controller = self.controller_type(context)
            except ApplicationError as err:
                response.send_json(err.to_dict(), err.code)
                return
            except Exception as err:
                next(err)
                return
            try:
                arguments = [
                    parse_argument(context, expression)
                    for expression in argument_expressions
                ]
                rv = run_sync(target(controller, *arguments))
                if rv is not None and not response.headers_sent:
                    controller.respond_ok(rv)
            except ApplicationError as err:
                controller.respond_error(err, err.code)
            except Exception as err:
                next(err)

        handler.__name__ = method
        handler.__qualname__ = f"{self.controller_type.__name__}.{method}"
        return handler

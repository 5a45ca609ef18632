"""\
Ludmila's Application
=====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

The application class which ties together routing, configuration, the
handler chain and the server loop.

Routes are registered as a chain of handlers sharing one signature,
``(request, response, next)``. Each handler either answers through the
response, calls ``next()`` to hand over to the following one, or calls
``next(error)`` (or simply raises) to divert to the error handling. API
schemas register their middleware and controller routes through the
same verb methods::

    app = Ludmila(__name__)
    app.get("/api/users/<int:id>", secured, validate, controller_route)

The ``Scaffold`` class exposes the verb methods. ``Ludmila`` extends it
with configuration, dispatch, error handling, a WSGI entry point and a
small threaded development server.
"""

from __future__ import annotations

import os
import socket
import sys
import threading
import traceback
import typing as t
import uuid
from collections.abc import Mapping
from datetime import datetime
from http import HTTPStatus
from urllib.parse import unquote

import dotenv

from ludmila import log
from ludmila.exceptions import ApplicationError
from ludmila.middleware import MiddlewareRegistry
from ludmila.utils import DefaultJSONProvider
from ludmila.utils import Map
from ludmila.utils import Rule
from ludmila.utils import run_sync
from ludmila.wrappers import Request
from ludmila.wrappers import Response

if t.TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Iterator
    from collections.abc import Sequence

Handler: t.TypeAlias = t.Callable[..., t.Any]
ErrorHandler: t.TypeAlias = t.Callable[[Request, BaseException], t.Any]
WSGIEnvironment: t.TypeAlias = dict[str, t.Any]
StartResponse: t.TypeAlias = t.Callable[[str, list[tuple[str, str]]], t.Any]


def _env_flag(name: str, default: bool = False) -> bool:
    """Read a boolean flag from the environment."""
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class _Next:
    """Continuation handed to each handler of a chain."""

    def __init__(self) -> None:
        """Initialise an untouched continuation."""
        self.called = False
        self.error: BaseException | None = None

    def __call__(self, error: t.Any = None) -> None:
        """Continue the chain, or divert it with ``error``."""
        self.called = True
        if error is not None and not isinstance(error, BaseException):
            error = RuntimeError(str(error))
        self.error = error


class Scaffold:
    """Base class exposing the route registration methods.

    :param import_name: Usually the name of the module where this
        object is defined.
    """

    name: str

    def __init__(self, import_name: str) -> None:
        """Initialise the scaffolding."""
        self.import_name = import_name

    def __repr__(self) -> str:
        """Human-readable representation of the application object."""
        return f"<{type(self).__name__} {self.name!r}>"

    def route(
        self, rule: str, *handlers: Handler, methods: Sequence[str] = ("GET",)
    ) -> t.Any:
        """Register ``handlers`` for ``rule``.

        Called without handlers, returns a decorator registering the
        decorated function as the only handler.
        """
        if handlers:
            self.add_url_rule(rule, handlers, methods)
            return None

        def decorator(f: Handler) -> Handler:
            self.add_url_rule(rule, (f,), methods)
            return f

        return decorator

    def get(self, rule: str, *handlers: Handler) -> t.Any:
        """Route ``GET`` methods."""
        return self.route(rule, *handlers, methods=("GET",))

    def post(self, rule: str, *handlers: Handler) -> t.Any:
        """Route ``POST`` methods."""
        return self.route(rule, *handlers, methods=("POST",))

    def put(self, rule: str, *handlers: Handler) -> t.Any:
        """Route ``PUT`` methods."""
        return self.route(rule, *handlers, methods=("PUT",))

    def delete(self, rule: str, *handlers: Handler) -> t.Any:
        """Route ``DELETE`` methods."""
        return self.route(rule, *handlers, methods=("DELETE",))

    def patch(self, rule: str, *handlers: Handler) -> t.Any:
        """Route ``PATCH`` methods."""
        return self.route(rule, *handlers, methods=("PATCH",))

    def add_url_rule(
        self,
        rule: str,
        handlers: Sequence[Handler],
        methods: Iterable[str] | None = None,
        endpoint: str | None = None,
    ) -> None:
        """Register a handler chain for ``rule``."""
        raise NotImplementedError


class Ludmila(Scaffold):
    """Main application object.

    :param import_name: Name of the application package.
    :param middleware_registry: Registry used by API schemas, defaults
        to a registry holding the built-in middleware.
    """

    default_config: t.ClassVar[dict[str, t.Any]] = {
        "DEBUG": False,
        "API_PREFIX": "",
        "SERVER_NAME": None,
        "JSON_COMPACT": False,
    }
    json_provider_class: type[DefaultJSONProvider] = DefaultJSONProvider
    request_class: type[Request] = Request
    response_class: type[Response] = Response
    url_rule_class: type[Rule] = Rule
    url_map_class: type[Map] = Map

    def __init__(
        self,
        import_name: str,
        middleware_registry: MiddlewareRegistry | None = None,
    ) -> None:
        """Initialise the application instance."""
        super().__init__(import_name)
        self.config = self.make_config()
        self.json = self.json_provider_class(
            compact=self.config["JSON_COMPACT"]
        )
        self.url_map = self.url_map_class()
        self.middleware_registry = (
            middleware_registry or MiddlewareRegistry.with_defaults()
        )
        self.before_handlers: list[Handler] = []
        self.error_handlers: dict[type[BaseException], ErrorHandler] = {}

    @property
    def name(self) -> str:
        """Name of the application."""
        if self.import_name == "__main__":
            fn: str | None = getattr(sys.modules["__main__"], "__file__", None)
            if fn is None:
                return "__main__"
            return os.path.splitext(os.path.basename(fn))[0]
        return self.import_name

    def make_config(self) -> dict[str, t.Any]:
        """Make configuration from the defaults and the environment.

        ``LUDMILA_DEBUG`` and ``LUDMILA_API_PREFIX`` override ``DEBUG``
        and ``API_PREFIX``.
        """
        config = dict(self.default_config)
        config["DEBUG"] = _env_flag("LUDMILA_DEBUG", config["DEBUG"])
        config["API_PREFIX"] = os.environ.get(
            "LUDMILA_API_PREFIX", config["API_PREFIX"]
        )
        return config

    @property
    def debug(self) -> bool:
        """Return ``True`` if the app is running in debug mode."""
        return self.config["DEBUG"]

    @debug.setter
    def debug(self, value: bool) -> None:
        """Set debug value."""
        self.config["DEBUG"] = value

    def add_url_rule(
        self,
        rule: str,
        handlers: Sequence[Handler],
        methods: Iterable[str] | None = None,
        endpoint: str | None = None,
    ) -> None:
        """Register a handler chain for ``rule``.

        :param rule: URL rule string.
        :param handlers: Handlers executed in order.
        :param methods: HTTP methods, defaults to ``("GET",)``.
        :param endpoint: Endpoint name, defaults to the name of the last
            handler.
        """
        if not handlers:
            raise ValueError(f"Route {rule!r} needs at least one handler")
        if endpoint is None:
            endpoint = getattr(handlers[-1], "__qualname__", None) or rule
        self.url_map.add(
            self.url_rule_class(rule, methods or ("GET",), endpoint, handlers)
        )

    def use(self, *handlers: Handler) -> None:
        """Run ``handlers`` ahead of every route's own chain.

        This is where authentication attaches ``request.user`` and
        ``request.session``.
        """
        self.before_handlers.extend(handlers)

    def add_error_handler(
        self, exc_class: type[BaseException], handler: ErrorHandler
    ) -> None:
        """Handle ``exc_class`` (and subclasses) with ``handler``.

        The handler is called as ``handler(request, error)``; a return
        value is converted like a route's return value.
        """
        self.error_handlers[exc_class] = handler

    def _lookup_error_handler(
        self, error: BaseException
    ) -> ErrorHandler | None:
        """Find the closest registered handler along the MRO."""
        for cls in type(error).__mro__:
            if cls in self.error_handlers:
                return self.error_handlers[cls]
        return None

    def make_response(self, rv: t.Any, response: Response) -> Response:
        """Send a handler's return value through ``response``.

        :param rv: A ``Response``, a body (dict or list for JSON, str or
            bytes as is) or a ``(body, status[, headers])`` tuple.
        :param response: The request's unsent response.
        :raises TypeError: If the return value shape cannot be
            understood.
        """
        status: int | str | HTTPStatus | None = None
        headers: t.Any = None
        body = rv
        if isinstance(rv, tuple):
            if len(rv) == 3:
                body, status, headers = rv
            elif len(rv) == 2:
                body, second = rv
                if isinstance(second, (int, str, HTTPStatus)):
                    status = second
                else:
                    headers = second
            else:
                raise TypeError("A response tuple must be of length 2 or 3")
        if isinstance(body, self.response_class):
            if status is not None:
                body.status = status
            return body
        if headers:
            if isinstance(headers, Mapping):
                headers = headers.items()
            for key, value in headers:
                if isinstance(value, (list, tuple)):
                    value = ", ".join(value)
                response.set_header(key, value)
        if isinstance(body, (dict, list)):
            return response.send_json(body, status)
        if isinstance(body, (str, bytes)):
            return response.send(body, status)
        return response.send(str(body), status)

    def dispatch_request(self, request: Request) -> Response:
        """Match the route and run its handler chain.

        Unknown paths answer ``404`` and known paths under another verb
        ``405``, both as JSON errors.

        :param request: The request object to dispatch.
        :return: Response object.
        """
        response = self.response_class()
        response.json_provider = self.json
        request.response = response
        if request.request_id is None:
            request.request_id = (
                request.headers.get("X-Request-Id") or uuid.uuid4().hex
            )
        try:
            rule, params = self.url_map.bind(request.path, request.method)
        except LookupError as err:
            error = ApplicationError(err.args[0])
            return response.send_json(error.to_dict(), error.code)
        request.params = params
        rv = None
        for handler in (*self.before_handlers, *rule.handlers):
            proceed = _Next()
            try:
                rv = run_sync(handler(request, response, proceed))
            except Exception as err:
                return self.handle_exception(err, request, response)
            if proceed.error is not None:
                return self.handle_exception(proceed.error, request, response)
            if not proceed.called:
                break
        if rv is not None and not response.headers_sent:
            return self.make_response(rv, response)
        return response

    def handle_exception(
        self, error: BaseException, request: Request, response: Response
    ) -> Response:
        """Generic error channel of the framework.

        Registered error handlers get the first go. Otherwise the error
        is logged and answered with ``500`` unless a handler already
        responded; an ``ApplicationError`` that got this far keeps its
        own code.
        """
        handler = self._lookup_error_handler(error)
        if handler is not None:
            rv = handler(request, error)
            if rv is not None and not response.headers_sent:
                return self.make_response(rv, response)
            return response
        log.error(
            f"Unhandled error on {request.method} {request.path}",
            error,
            request,
        )
        if self.debug:
            log.debug("".join(traceback.format_exception(error)))
        if response.headers_sent:
            return response
        if isinstance(error, ApplicationError):
            return response.send_json(error.to_dict(), error.code)
        body: dict[str, t.Any] = ApplicationError.internal().to_dict()
        if self.debug:
            body["details"] = repr(error)
        return response.send_json(body, 500)

    def __call__(
        self, environ: WSGIEnvironment, start_response: StartResponse
    ) -> Iterator[bytes]:
        """WSGI entry point."""
        length = environ.get("CONTENT_LENGTH")
        if length and "ludmila.request_body" not in environ:
            body = environ["wsgi.input"].read(int(length))
            environ["ludmila.request_body"] = body
        request = self.request_class(environ)
        response = self.dispatch_request(request)
        start_response(response.status, response.headers.to_wsgi_list())
        return response.iter_encoded()

    def run(
        self,
        host: str | None = None,
        port: int | None = None,
        debug: bool | None = None,
        load_dotenv: bool = False,
    ) -> None:
        """Run the application on a local development server.

        The method binds a TCP socket, listens for incoming HTTP
        requests, and delegates each connection to a worker thread.

        :param host: Hostname to bind to; falls back to ``SERVER_NAME``
            or ``127.0.0.1`` when omitted, defaults to ``None``.
        :param port: Port for the webserver; defaults to ``9001`` when
            not provided or derived from ``SERVER_NAME``, defaults
            to ``None``.
        :param debug: When ``True``, errors are logged with their full
            tracebacks, defaults to ``None``.
        :param load_dotenv: Load ``.env`` from the working directory before
            starting and re-read the configuration, defaults to ``False``.
        """
        if load_dotenv:
            dotenv.load_dotenv(dotenv.find_dotenv(usecwd=True))
            self.config.update(self.make_config())
        if debug is not None:
            self.debug = bool(debug)
        server_name = self.config.get("SERVER_NAME")
        sn_host = sn_port = None
        if server_name:
            sn_host, _, sn_port = server_name.partition(":")
        host = host or sn_host or "127.0.0.1"
        if port or port == 0:
            port = int(port)
        else:
            port = int(sn_port) if sn_port else 9001
        server = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        server.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        try:
            server.bind((host, port))
        except OSError as err:
            log.error(f"Couldn't bind to {host}:{port} due to {err}")
            return
        server.listen(5)
        log.info(f"Serving Ludmila app {self.name!r}")
        log.info(f"Debug mode: {'on' if self.debug else 'off'}")
        log.info(f"Running on http://{host}:{port}/ (Press CTRL+C to quit)")
        try:
            while True:
                client, client_address = server.accept()
                threading.Thread(
                    target=self.handle_client,
                    args=(client, client_address),
                    daemon=True,
                ).start()
        except KeyboardInterrupt:
            pass
        finally:
            server.close()

    def handle_client(
        self,
        client: socket.socket,
        client_address: tuple[str, int],
    ) -> None:
        """Read one request from ``client``, dispatch it and reply.

        :param client: The client socket connection.
        :param client_address: The client address tuple (host, port).
        """
        try:
            buffer = b""
            while b"\r\n\r\n" not in buffer:
                chunk = client.recv(1024)
                if not chunk:
                    break
                buffer += chunk
            if b"\r\n\r\n" not in buffer:
                return
            headers_data, body_data = buffer.split(b"\r\n\r\n", 1)
            environ = self.make_environ(headers_data, client_address)
            length = int(environ.get("CONTENT_LENGTH") or 0)
            while len(body_data) < length:
                chunk = client.recv(1024)
                if not chunk:
                    break
                body_data += chunk
            environ["ludmila.request_body"] = body_data
            request = self.request_class(environ)
            response = self.dispatch_request(request)
            self.log_request(client_address, request, response)
            self.send_response(client, response)
        except Exception as err:
            log.error("Internal Server Error", err)
            if self.debug:
                log.debug(traceback.format_exc())
        finally:
            client.close()

    def make_environ(
        self, headers: bytes, client_address: tuple[str, int] | None = None
    ) -> WSGIEnvironment:
        """Convert raw header bytes into a WSGI-like environment.

        :param headers: Raw bytes containing the request line and
            header block.
        :param client_address: Address of the peer, defaults to
            ``None``.
        """
        lines = headers.decode("utf-8", "ignore").split("\r\n")
        request_line = lines[0].split()
        environ: WSGIEnvironment = {
            "REQUEST_METHOD": "GET",
            "PATH_INFO": "/",
            "QUERY_STRING": "",
            "SERVER_NAME": "localhost",
            "SERVER_PORT": "9001",
            "SERVER_PROTOCOL": "HTTP/1.1",
            "wsgi.url_scheme": "http",
        }
        if client_address:
            environ["REMOTE_ADDR"] = client_address[0]
        if len(request_line) >= 2:
            environ["REQUEST_METHOD"] = request_line[0]
            path, _, query = request_line[1].partition("?")
            environ["PATH_INFO"] = unquote(path)
            environ["QUERY_STRING"] = query
        if len(request_line) >= 3:
            environ["SERVER_PROTOCOL"] = request_line[2]
        for line in lines[1:]:
            key, sep, value = line.partition(":")
            if not sep:
                continue
            key = key.strip().upper().replace("-", "_")
            if key in ("CONTENT_LENGTH", "CONTENT_TYPE"):
                environ[key] = value.strip()
            else:
                environ[f"HTTP_{key}"] = value.strip()
        return environ

    def log_request(
        self,
        client_address: tuple[str, int],
        request: Request,
        response: Response,
    ) -> None:
        """Write an access log line.

        The format mimics the default access logs::

            host - - [Date] "METHOD Path HTTP/1.1" Status -
        """
        now = datetime.now().strftime("%d/%b/%Y %H:%M:%S")
        protocol = request.environ.get("SERVER_PROTOCOL", "HTTP/1.1")
        log.info(
            f'{client_address[0]} - - [{now}] '
            f'"{request.method} {request.path} {protocol}" '
            f"{response.status_code} -"
        )

    def send_response(self, client: socket.socket, response: Response) -> None:
        """Write ``response`` to the client socket."""
        data = response.get_data()
        headers = "".join(
            f"{key}: {value}\r\n"
            for key, value in response.headers.to_wsgi_list()
            if key.lower() != "content-length"
        )
        client.sendall(
            f"HTTP/1.1 {response.status}\r\n{headers}".encode("latin-1")
            + f"Content-Length: {len(data)}\r\n\r\n".encode("latin-1")
            + data
        )

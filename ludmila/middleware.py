"""\
Ludmila's Middleware Registry
=============================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Endpoint descriptors attach middleware by id. The ``MiddlewareRegistry``
maps those ids to registrations, orders them by priority and wraps each
one into a framework handler ``(request, response, next)``.

A registry is created once at startup, populated, and handed to the
schemas it serves. Two calling conventions are supported:

``FunctionalMiddleware``
    A factory called with the endpoint's arguments, returning a regular
    framework handler.
``ContextualMiddleware``
    A handler called per request with a ``RequestContext`` and the
    resolved arguments. It answers with a plain ``MiddlewareResult``:
    ``Proceed``, ``Redirect`` or ``Reject``.

Both kinds convert an ``ApplicationError`` into a JSON error response and
forward anything else to the framework's error channel.
"""

from __future__ import annotations

import typing as t
from collections.abc import Mapping
from dataclasses import dataclass
from enum import Enum
from enum import IntEnum

from ludmila import log
from ludmila.arguments import parse_middleware_argument
from ludmila.context import RequestContext
from ludmila.exceptions import ApplicationError
from ludmila.utils import run_sync
from ludmila.validation import validation

if t.TYPE_CHECKING:
    from ludmila.wrappers import Request
    from ludmila.wrappers import Response

Handler: t.TypeAlias = t.Callable[..., t.Any]


class Priority(IntEnum):
    """Execution priority, higher runs first."""

    LOWEST = 0
    LOW = 1
    MEDIUM = 2
    HIGH = 3
    HIGHEST = 4


class Convention(Enum):
    """Calling convention of a registered middleware."""

    FUNCTIONAL = "functional"
    CONTEXTUAL = "contextual"


@dataclass(frozen=True)
class Proceed:
    """Continue with the next handler."""


@dataclass(frozen=True)
class Redirect:
    """Answer with a redirect and stop the chain."""

    location: str
    status: int = 302


@dataclass(frozen=True)
class Reject:
    """Stop the chain with ``error``."""

    error: BaseException


MiddlewareResult: t.TypeAlias = Proceed | Redirect | Reject | None


@dataclass(frozen=True)
class FunctionalMiddleware:
    """Middleware built by calling ``factory(*args)``."""

    id: str
    factory: t.Callable[..., Handler]
    priority: int = Priority.LOWEST


@dataclass(frozen=True)
class ContextualMiddleware:
    """Middleware invoked as ``handler(context, resolved_args)``."""

    id: str
    handler: t.Callable[[RequestContext, list[t.Any]], MiddlewareResult]
    priority: int = Priority.LOWEST


Registration: t.TypeAlias = FunctionalMiddleware | ContextualMiddleware


@dataclass(frozen=True)
class MiddlewareCall:
    """A registration paired with the arguments of one endpoint."""

    registration: Registration
    args: tuple[t.Any, ...] = ()

    @property
    def id(self) -> str:
        """Identifier of the middleware."""
        return self.registration.id

    @property
    def priority(self) -> int:
        """Priority of the middleware."""
        return self.registration.priority


def _send_error(response: Response, error: ApplicationError) -> None:
    """Answer with the JSON form of ``error``."""
    response.send_json(error.to_dict(), error.code)


class MiddlewareRegistry:
    """Registry and factory for endpoint middleware."""

    def __init__(self) -> None:
        """Initialise an empty registry."""
        self._middlewares: dict[str, Registration] = {}

    def __repr__(self) -> str:
        """Human-readable representation of the registry."""
        return f"<{type(self).__name__} {sorted(self._middlewares)}>"

    def __contains__(self, id: object) -> bool:
        """Return ``True`` if ``id`` is registered."""
        return id in self._middlewares

    def __len__(self) -> int:
        """Return count of registrations."""
        return len(self._middlewares)

    @classmethod
    def with_defaults(cls) -> t.Self:
        """Create a registry holding the built-in ``validation``
        middleware.
        """
        registry = cls()
        registry.register_functional("validation", validation, Priority.LOWEST)
        return registry

    def register(
        self,
        id: str,
        handler: t.Callable[..., t.Any],
        priority: int = Priority.LOWEST,
        convention: Convention = Convention.FUNCTIONAL,
    ) -> Registration:
        """Register ``handler`` under ``id``.

        Registering an id twice replaces the earlier registration and
        logs a warning.

        :param id: Identifier used by endpoint descriptors.
        :param handler: Factory for functional middleware, handler for
            contextual middleware.
        :param priority: Higher priorities run first, defaults to
            ``Priority.LOWEST``.
        :param convention: Calling convention, defaults to
            ``Convention.FUNCTIONAL``.
        """
        if id in self._middlewares:
            log.warn(f"Middleware {id!r} is being overwritten")
        if convention is Convention.CONTEXTUAL:
            registration: Registration = ContextualMiddleware(
                id, handler, priority
            )
        else:
            registration = FunctionalMiddleware(id, handler, priority)
        self._middlewares[id] = registration
        return registration

    def register_functional(
        self,
        id: str,
        factory: t.Callable[..., Handler],
        priority: int = Priority.LOWEST,
    ) -> Registration:
        """Register a functional middleware factory."""
        return self.register(id, factory, priority, Convention.FUNCTIONAL)

    def register_contextual(
        self,
        id: str,
        handler: t.Callable[[RequestContext, list[t.Any]], MiddlewareResult],
        priority: int = Priority.LOWEST,
    ) -> Registration:
        """Register a contextual middleware handler."""
        return self.register(id, handler, priority, Convention.CONTEXTUAL)

    def create(self, id: str, args: t.Iterable[t.Any] = ()) -> MiddlewareCall:
        """Pair the middleware ``id`` with endpoint arguments.

        :raises ApplicationError: ``501`` when ``id`` isn't registered.
        """
        if id not in self._middlewares:
            raise ApplicationError.not_implemented(
                f"Middleware {id!r} is not registered"
            )
        return MiddlewareCall(self._middlewares[id], tuple(args))

    def chain(self, specs: Mapping[str, t.Any]) -> list[MiddlewareCall]:
        """Create the calls for ``specs`` ordered by descending priority.

        The sort is stable, middleware sharing a priority keep the order
        they were declared in.

        :param specs: Mapping of middleware id to its arguments; a value
            that isn't a list or tuple is taken as the single argument.
        """
        calls = []
        for id, args in specs.items():
            if not isinstance(args, (list, tuple)):
                args = (args,)
            calls.append(self.create(id, args))
        return sorted(calls, key=lambda call: call.priority, reverse=True)

    def build(self, specs: Mapping[str, t.Any]) -> list[Handler]:
        """Return the wrapped, ordered handlers for ``specs``."""
        return [self.wrap(call) for call in self.chain(specs)]

    def wrap(self, call: MiddlewareCall) -> Handler:
        """Wrap ``call`` into a framework handler.

        The handler does nothing once the response has been sent.
        """
        registration = call.registration
        if isinstance(registration, ContextualMiddleware):
            middleware = self._wrap_contextual(registration, call.args)
        else:
            middleware = self._wrap_functional(registration, call.args)
        middleware.__name__ = f"middleware_{call.id}"
        return middleware

    @staticmethod
    def _wrap_functional(
        registration: FunctionalMiddleware, args: tuple[t.Any, ...]
    ) -> Handler:
        """Build the handler once and guard it per request."""
        handler = registration.factory(*args)

        def middleware(
            request: Request, response: Response, next: Handler
        ) -> None:
            if response.headers_sent:
                return
            try:
                run_sync(handler(request, response, next))
            except ApplicationError as err:
                _send_error(response, err)
            except Exception as err:
                next(err)

        return middleware

    @staticmethod
    def _wrap_contextual(
        registration: ContextualMiddleware, args: tuple[t.Any, ...]
    ) -> Handler:
        """Call the handler with a context and interpret its result."""

        def middleware(
            request: Request, response: Response, next: Handler
        ) -> None:
            if response.headers_sent:
                return
            try:
                context = RequestContext(request)
                resolved = [
                    parse_middleware_argument(context, arg) for arg in args
                ]
                result = run_sync(registration.handler(context, resolved))
            except ApplicationError as err:
                _send_error(response, err)
                return
            except Exception as err:
                next(err)
                return
            if isinstance(result, Proceed):
                next()
            elif result is None:
                if not response.headers_sent:
                    next()
            elif isinstance(result, Redirect):
                response.redirect(result.location, result.status)
            elif isinstance(result, Reject):
                if isinstance(result.error, ApplicationError):
                    _send_error(response, result.error)
                else:
                    next(result.error)
            else:
                next(
                    TypeError(
                        f"Middleware {registration.id!r} returned "
                        f"{type(result).__name__}, expected a MiddlewareResult"
                    )
                )

        return middleware

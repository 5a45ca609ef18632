"""\
Ludmila's API Schemas
=====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

An ``ApiSchema`` groups endpoint descriptors under a common URL and
registers them with an application. A descriptor is plain data::

    register_animal = {
        "path": "register",
        "verb": "POST",
        "handler": {
            "controller": AnimalController,
            "method": "register",
            "arguments": ["request:body"],
        },
        "middleware": {"secured_route": ["admin"]},
        "request": {
            "body": {"kind": str, "age": int, "name": str},
        },
    }

    shelter = ApiSchema(
        name="Animal Shelter",
        url="/api/shelter",
        endpoints=[register_animal],
    )
    shelter.register(app)

Registering builds, for every endpoint and in declaration order, the
middleware chain (validation is always part of it), the controller
route and one router registration under ``prefix/url/path``.
"""

from __future__ import annotations

import typing as t
from collections.abc import Mapping
from dataclasses import dataclass
from dataclasses import field
from types import MappingProxyType

from ludmila.controller import ControllerFactory
from ludmila.log import create_logger
from ludmila.utils import join_url
from ludmila.utils import trim

if t.TYPE_CHECKING:
    from collections.abc import Iterable

    from ludmila.app import Ludmila
    from ludmila.controller import Controller
    from ludmila.middleware import MiddlewareRegistry

SUPPORTED_VERBS: tuple[str, ...] = ("GET", "POST", "PUT", "DELETE", "PATCH")


@dataclass(frozen=True)
class HandlerSpec:
    """Controller method targeted by an endpoint."""

    controller: type[Controller]
    method: str
    arguments: tuple[str, ...] = ()

    @property
    def signature(self) -> str:
        """Readable ``Controller.method(args)`` form."""
        args = ", ".join(self.arguments)
        return f"{self.controller.__name__}.{self.method}({args})"


@dataclass(frozen=True)
class EndpointDescriptor:
    """Declarative description of one route.

    :param path: Path relative to the schema URL.
    :param verb: HTTP verb, stored upper-cased.
    :param handler: Controller method handling the route.
    :param middleware: Middleware id mapped to its arguments.
    :param request: Validation rules per request section.
    """

    path: str
    verb: str
    handler: HandlerSpec
    middleware: Mapping[str, t.Any] = field(default_factory=dict)
    request: Mapping[str, t.Any] | None = None

    def __post_init__(self) -> None:
        """Normalise the verb and freeze the middleware mapping."""
        object.__setattr__(self, "verb", str(self.verb).upper())
        object.__setattr__(
            self, "middleware", MappingProxyType(dict(self.middleware or {}))
        )

    @classmethod
    def from_mapping(cls, raw: Mapping[str, t.Any]) -> t.Self:
        """Build a descriptor from its plain data shape.

        :raises KeyError: When ``handler``, its ``controller`` or its
            ``method`` is missing.
        """
        handler = raw["handler"]
        if not isinstance(handler, HandlerSpec):
            handler = HandlerSpec(
                controller=handler["controller"],
                method=handler["method"],
                arguments=tuple(handler.get("arguments") or ()),
            )
        return cls(
            path=raw.get("path", ""),
            verb=raw.get("verb", "GET"),
            handler=handler,
            middleware=raw.get("middleware") or {},
            request=raw.get("request"),
        )


class ApiSchema:
    """Configure and register a group of API endpoints.

    :param name: Public name of the schema.
    :param url: URL every endpoint path is placed under, defaults to an
        empty string.
    :param endpoints: Endpoint descriptors or their plain data shape,
        defaults to an empty tuple.
    """

    def __init__(
        self,
        name: str,
        url: str = "",
        endpoints: Iterable[EndpointDescriptor | Mapping[str, t.Any]] = (),
    ) -> None:
        """Initialise the schema and convert its endpoints."""
        self.name = name
        self.url = trim(url)
        self.endpoints: list[EndpointDescriptor] = []
        self.factories: dict[type[Controller], ControllerFactory] = {}
        self.log = create_logger(f"ApiSchema[{name}]")
        if not isinstance(endpoints, (list, tuple)):
            self.log.warn(
                "Endpoints are not a list or tuple, schema:", self.name
            )
            return
        for endpoint in endpoints:
            if not isinstance(endpoint, EndpointDescriptor):
                endpoint = EndpointDescriptor.from_mapping(endpoint)
            self.endpoints.append(endpoint)

    def __repr__(self) -> str:
        """Human-readable representation of the schema."""
        return f"<{type(self).__name__} {self.name!r} /{self.url}>"

    def factory(self, controller_type: type[Controller]) -> ControllerFactory:
        """Return the factory of ``controller_type``, creating it once."""
        if controller_type not in self.factories:
            factory = ControllerFactory(controller_type)
            self.factories[controller_type] = factory
        return self.factories[controller_type]

    def register(
        self,
        app: Ludmila,
        prefix: str | None = None,
        registry: MiddlewareRegistry | None = None,
    ) -> list[tuple[str, str, str]]:
        """Register every endpoint with ``app``.

        :param app: Application whose router receives the routes.
        :param prefix: URL prefix, defaults to ``app.config["API_PREFIX"]``.
        :param registry: Middleware registry, defaults to the app's.
        :return: ``(url, verb, target)`` for every registered endpoint.
        :raises ApplicationError: ``501`` for unregistered middleware.
        :raises AttributeError: For unknown controller methods.
        :raises ValueError: For unsupported verbs.
        """
        if prefix is None:
            prefix = app.config.get("API_PREFIX", "")
        if registry is None:
            registry = app.middleware_registry
        self.log.info(
            f"Registering endpoints for {join_url(prefix, self.url)}"
        )
        return [
            self._register_endpoint(app, prefix, registry, endpoint)
            for endpoint in self.endpoints
        ]

    def _register_endpoint(
        self,
        app: Ludmila,
        prefix: str,
        registry: MiddlewareRegistry,
        endpoint: EndpointDescriptor,
    ) -> tuple[str, str, str]:
        """Register one endpoint and describe what was registered."""
        if endpoint.verb not in SUPPORTED_VERBS:
            raise ValueError(
                f"Unsupported verb {endpoint.verb!r} for {endpoint.path!r}"
            )
        url = join_url(prefix, self.url, endpoint.path)
        handler = endpoint.handler
        factory = self.factory(handler.controller)
        specs = {**endpoint.middleware, "validation": [endpoint.request]}
        handlers = registry.build(specs)
        handlers.append(factory.route(handler.method, *handler.arguments))
        getattr(app, endpoint.verb.lower())(url, *handlers)
        self.log.debug(f"{endpoint.verb:<6} {url} -> {handler.signature}")
        return url, endpoint.verb, handler.signature

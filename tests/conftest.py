"""Shared fixtures for the Ludmila test suite."""

from __future__ import annotations

import typing as t

import pytest

from ludmila import Ludmila
from ludmila import MiddlewareRegistry
from ludmila import RequestContext
from ludmila.log import Writer
from ludmila.log import repository
from ludmila.testing import TestClient
from ludmila.wrappers import Request
from ludmila.wrappers import Response


class CaptureTransport:
    """Transport keeping every line in memory."""

    def __init__(self) -> None:
        self.lines: list[tuple[str, str]] = []

    def log(self, level: str, message: str) -> None:
        self.lines.append((level, message))

    @property
    def messages(self) -> list[str]:
        return [message for _, message in self.lines]


@pytest.fixture
def make_transport() -> type[CaptureTransport]:
    return CaptureTransport


@pytest.fixture
def captured() -> t.Generator[CaptureTransport, None, None]:
    """Route the default writer into memory for the duration of a test."""
    previous = repository.default
    transport = CaptureTransport()
    repository.set_default(Writer([transport]))
    yield transport
    repository.set_default(previous)


@pytest.fixture
def registry() -> MiddlewareRegistry:
    return MiddlewareRegistry.with_defaults()


@pytest.fixture
def app(registry: MiddlewareRegistry) -> Ludmila:
    return Ludmila("tests", middleware_registry=registry)


@pytest.fixture
def client(app: Ludmila) -> TestClient:
    return TestClient(app)


def make_request(
    method: str = "GET",
    path: str = "/",
    query_string: str = "",
    headers: dict[str, str] | None = None,
) -> Request:
    """Build a request with an unsent response attached."""
    environ: dict[str, t.Any] = {
        "REQUEST_METHOD": method,
        "PATH_INFO": path,
        "QUERY_STRING": query_string,
        "SERVER_NAME": "testserver",
        "SERVER_PORT": "80",
    }
    for key, value in (headers or {}).items():
        environ[f"HTTP_{key.upper().replace('-', '_')}"] = value
    request = Request(environ)
    request.response = Response()
    return request


@pytest.fixture
def request_factory() -> t.Callable[..., Request]:
    return make_request


@pytest.fixture
def context() -> RequestContext:
    request = make_request(path="/animals/45", query_string="filter=unique")
    request.params = {"id": "45"}
    return RequestContext(request)


class Recorder:
    """A ``next`` callable recording how it was called."""

    def __init__(self) -> None:
        self.calls: list[t.Any] = []

    def __call__(self, error: t.Any = None) -> None:
        self.calls.append(error)

    @property
    def called(self) -> bool:
        return bool(self.calls)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()

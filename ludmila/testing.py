"""\
Ludmila's Test Client
=====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

In-memory client which runs requests through an application's dispatch
without binding a socket.
"""

from __future__ import annotations

import json as _json
import typing as t
from urllib.parse import urlencode

if t.TYPE_CHECKING:
    from collections.abc import Mapping

    from ludmila.app import Ludmila
    from ludmila.wrappers import Response


class TestClient:
    """Execute requests against a ``Ludmila`` app without a server.

    :param app: Application under test.
    """

    __test__ = False

    def __init__(self, app: Ludmila) -> None:
        """Initialise the client."""
        self.app = app

    def request(
        self,
        method: str,
        path: str,
        *,
        json: t.Any = None,
        query: Mapping[str, t.Any] | None = None,
        headers: Mapping[str, str] | None = None,
        body: bytes | str | None = None,
    ) -> Response:
        """Send a request and return the application's response.

        :param method: HTTP method.
        :param path: Path, optionally with a query string.
        :param json: Payload sent as a JSON body, defaults to ``None``.
        :param query: Extra query parameters, defaults to ``None``.
        :param headers: Request headers, defaults to ``None``.
        :param body: Raw body, defaults to ``None``.
        """
        path, _, query_string = path.partition("?")
        if query:
            extra = urlencode(query, doseq=True)
            query_string = f"{query_string}&{extra}" if query_string else extra
        data = b""
        environ: dict[str, t.Any] = {
            "REQUEST_METHOD": method.upper(),
            "PATH_INFO": path or "/",
            "QUERY_STRING": query_string,
            "SERVER_NAME": "testserver",
            "SERVER_PORT": "80",
            "SERVER_PROTOCOL": "HTTP/1.1",
            "REMOTE_ADDR": "127.0.0.1",
            "wsgi.url_scheme": "http",
        }
        if json is not None:
            data = _json.dumps(json).encode()
            environ["CONTENT_TYPE"] = "application/json"
        elif body is not None:
            data = body.encode() if isinstance(body, str) else body
        for key, value in (headers or {}).items():
            name = key.upper().replace("-", "_")
            if name in ("CONTENT_TYPE", "CONTENT_LENGTH"):
                environ[name] = value
            else:
                environ[f"HTTP_{name}"] = value
        environ["CONTENT_LENGTH"] = str(len(data))
        environ["ludmila.request_body"] = data
        request = self.app.request_class(environ)
        return self.app.dispatch_request(request)

    def get(self, path: str, **kwargs: t.Any) -> Response:
        """Send a ``GET`` request."""
        return self.request("GET", path, **kwargs)

    def post(self, path: str, **kwargs: t.Any) -> Response:
        """Send a ``POST`` request."""
        return self.request("POST", path, **kwargs)

    def put(self, path: str, **kwargs: t.Any) -> Response:
        """Send a ``PUT`` request."""
        return self.request("PUT", path, **kwargs)

    def delete(self, path: str, **kwargs: t.Any) -> Response:
        """Send a ``DELETE`` request."""
        return self.request("DELETE", path, **kwargs)

    def patch(self, path: str, **kwargs: t.Any) -> Response:
        """Send a ``PATCH`` request."""
        return self.request("PATCH", path, **kwargs)

"""\
Ludmila's Wrappers
==================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

This module provides the public ``Request`` and ``Response`` classes.

The ``Request`` class turns a WSGI environment mapping into an object
exposing the fields the dispatch layer reads: route ``params``, parsed
``query`` values, the decoded ``body``, ``cookies`` and the ``user`` and
``session`` populated by an authentication layer.

The ``Response`` class is created empty for every request and handed
down the handler chain. Handlers fill it through ``send``,
``send_json``, ``send_file`` and friends. A response can only be sent
once, which lets middleware detect that somebody upstream already
answered the client.
"""

from __future__ import annotations

import json
import mimetypes
import os
import typing as t
from http import HTTPStatus
from http.cookies import CookieError
from http.cookies import SimpleCookie
from urllib.parse import parse_qsl

from ludmila.datastructures import Headers
from ludmila.datastructures import MultiDict
from ludmila.exceptions import ApplicationError
from ludmila.utils import DefaultJSONProvider
from ludmila.utils import get_content_type
from ludmila.utils import get_current_url

if t.TYPE_CHECKING:
    from collections.abc import Iterable
    from collections.abc import Iterator
    from collections.abc import Mapping

WSGIEnvironment: t.TypeAlias = dict[str, t.Any]

_missing = object()


class Request:
    """Represents an incoming HTTP request.

    Instances are created per request during dispatch. The router fills
    ``params`` and ``response``, the application assigns a
    ``request_id`` and an authentication layer, if any, sets ``user``,
    ``session`` and ``meta_data`` before the route handlers run.

    :param environ: Mapping containing the CGI-style WSGI keys for
        the active request.
    """

    parameter_storage_class: type[MultiDict[str, str]] = MultiDict

    def __init__(self, environ: WSGIEnvironment) -> None:
        """Initialise a request object from the WSGI environment."""
        self.environ: WSGIEnvironment = environ
        self.method: str = environ.get("REQUEST_METHOD", "GET").upper()
        self.scheme: str = environ.get("wsgi.url_scheme", "http")
        self.root_path: str = environ.get("SCRIPT_NAME", "")
        self.path: str = environ.get("PATH_INFO", "/") or "/"
        self.query_string: str = environ.get("QUERY_STRING", "")
        self.headers: Headers = Headers()
        for key, value in environ.items():
            if key.startswith("HTTP_"):
                self.headers[key[5:].replace("_", "-")] = value
            elif key in ("CONTENT_LENGTH", "CONTENT_TYPE"):
                self.headers[key.replace("_", "-")] = value
        self.remote_addr: str | None = environ.get("REMOTE_ADDR")
        self.data: bytes = environ.get("ludmila.request_body", b"")
        self.params: dict[str, t.Any] = {}
        self.user: t.Any | None = None
        self.session: t.Any | None = None
        self.meta_data: t.Any | None = None
        self.request_id: str | None = None
        self.response: Response | None = None
        self._query: dict[str, t.Any] | None = None
        self._body: t.Any = _missing
        self._cookies: dict[str, str] | None = None

    def __repr__(self) -> str:
        """Human-readable representation of the ``Request`` object."""
        return f"<{type(self).__name__} {self.url} [{self.method}]>"

    @property
    def host(self) -> str:
        """Host the request was sent to."""
        host = self.headers.get("Host")
        if host:
            return host
        name = self.environ.get("SERVER_NAME", "localhost")
        port = self.environ.get("SERVER_PORT")
        return f"{name}:{port}" if port else name

    @property
    def url(self) -> str:
        """Properly formatted request URL with scheme, host, and path
        details.
        """
        return get_current_url(
            self.scheme,
            self.host,
            self.root_path,
            self.path,
            self.query_string,
        )

    @property
    def args(self) -> MultiDict[str, str]:
        """Return parsed query parameters, repeated keys included."""
        return self.parameter_storage_class(
            parse_qsl(self.query_string, keep_blank_values=True)
        )

    @property
    def query(self) -> dict[str, t.Any]:
        """Query parameters as a plain dictionary of first values."""
        if self._query is None:
            self._query = self.args.to_dict()
        return self._query

    @query.setter
    def query(self, value: dict[str, t.Any]) -> None:
        """Replace the query values, e.g. after validation."""
        self._query = dict(value)

    @property
    def form(self) -> MultiDict[str, str]:
        """Return parsed form data for URL-encoded bodies."""
        if "application/x-www-form-urlencoded" not in self.headers.get(
            "Content-Type", ""
        ):
            return self.parameter_storage_class()
        return self.parameter_storage_class(
            parse_qsl(
                self.data.decode(errors="replace"), keep_blank_values=True
            )
        )

    @property
    def json(self) -> t.Any | None:
        """Return the decoded JSON body, ``None`` when absent or
        malformed.
        """
        if "application/json" not in self.headers.get("Content-Type", ""):
            return None
        try:
            return json.loads(self.data.decode())
        except ValueError:
            return None

    @property
    def body(self) -> t.Any:
        """Decoded request body.

        JSON bodies win over form bodies, an empty dictionary stands in
        when the request carried neither.
        """
        if self._body is _missing:
            payload = self.json
            if payload is None:
                payload = self.form.to_dict()
            self._body = payload
        return self._body

    @body.setter
    def body(self, value: t.Any) -> None:
        """Replace the decoded body, e.g. after validation."""
        self._body = value

    @property
    def cookies(self) -> dict[str, str]:
        """Cookies sent with the request."""
        if self._cookies is None:
            jar = SimpleCookie()
            try:
                jar.load(self.headers.get("Cookie", ""))
            except CookieError:
                pass
            self._cookies = {key: morsel.value for key, morsel in jar.items()}
        return self._cookies


class Response:
    """Represents an outgoing HTTP response.

    The response starts out unsent. Handlers fill it in place and mark
    it sent through one of the ``send*`` methods or ``redirect``; a
    second attempt raises ``RuntimeError``, the same way a framework
    refuses to write headers twice.

    :param response: Payload content as a string, bytes, iterable of
        bytes, or None for an empty body.
    :param status: HTTP status code or string, defaults to ``200``.
    :param headers: Initial header mapping to apply to the response.
    :param mimetype: Convenience mimetype; resolved to a content
        type with charset for textual types.
    :param content_type: Explicit content type overriding mimetype.
    """

    default_status: t.ClassVar[int] = 200
    default_mimetype: t.ClassVar[str | None] = "text/html"
    json_provider: DefaultJSONProvider = DefaultJSONProvider()
    headers: Headers
    response: Iterable[bytes]

    def __init__(
        self,
        response: Iterable[bytes] | bytes | Iterable[str] | str | None = None,
        status: int | str | HTTPStatus | None = None,
        headers: Mapping[str, str] | Iterable[tuple[str, str]] | None = None,
        mimetype: str | None = None,
        content_type: str | None = None,
    ) -> None:
        """Initialise the response object from flexible inputs."""
        self.headers = Headers(headers or {})
        self.status = self.default_status if status is None else status
        if content_type is None:
            if mimetype is None and "Content-Type" not in self.headers:
                mimetype = self.default_mimetype
            if mimetype is not None:
                content_type = get_content_type(mimetype, "utf-8")
        if content_type:
            self.headers["Content-Type"] = content_type
        self.set_data(response if response is not None else b"")
        self.sent = False

    def __repr__(self) -> str:
        """Human-readable representation of the response object."""
        return f"<{type(self).__name__} [{self.status}]>"

    @property
    def status_code(self) -> int:
        """Return HTTP status code as a number."""
        return self._status_code

    @status_code.setter
    def status_code(self, code: int) -> None:
        """Set an HTTP status code."""
        self.status = code

    @property
    def status(self) -> str:
        """Return the concatenated status code and phrase."""
        return self._status

    @status.setter
    def status(self, value: str | int | HTTPStatus) -> None:
        """Set HTTP status."""
        self._status, self._status_code = self._clean_status(value)

    @staticmethod
    def _clean_status(value: int | str | HTTPStatus) -> tuple[str, int]:
        """Normalise status inputs to a status line and numeric code."""
        if isinstance(value, str):
            code, _, phrase = value.partition(" ")
            try:
                value = int(code)
            except ValueError as err:
                raise ValueError(
                    "Status must start with an integer code"
                ) from err
            if phrase:
                return f"{value} {phrase}", value
        if isinstance(value, int):
            try:
                return f"{value} {HTTPStatus(value).phrase}", int(value)
            except ValueError:
                return str(value), value
        raise TypeError("Invalid status value type")

    @property
    def headers_sent(self) -> bool:
        """Return ``True`` once a handler answered the client."""
        return self.sent

    def _mark_sent(self) -> None:
        """Flag the response as sent, refusing a second send."""
        if self.sent:
            raise RuntimeError("Response has already been sent")
        self.sent = True

    def _status_or_current(
        self, status: int | str | HTTPStatus | None
    ) -> tuple[str, int]:
        """Validate ``status`` without applying it."""
        if status is None:
            return self._status, self._status_code
        return self._clean_status(status)

    def set_status(self, code: int | HTTPStatus) -> t.Self:
        """Set the status code and return the response for chaining."""
        self.status = code
        return self

    def set_header(self, key: str, value: str) -> t.Self:
        """Set a header and return the response for chaining."""
        self.headers[key] = str(value)
        return self

    def send(
        self, body: t.Any = None, status: int | HTTPStatus | None = None
    ) -> t.Self:
        """Send ``body`` as is; dictionaries and lists become JSON."""
        if isinstance(body, (dict, list)):
            return self.send_json(body, status)
        status_line = self._status_or_current(status)
        chunks = self._to_chunks(b"" if body is None else body)
        self._mark_sent()
        self._status, self._status_code = status_line
        self.response = chunks
        return self

    def send_json(
        self, obj: t.Any, status: int | HTTPStatus | None = None
    ) -> t.Self:
        """Serialise ``obj`` as the JSON body."""
        status_line = self._status_or_current(status)
        chunks = self._to_chunks(self.json_provider.dumps(obj))
        self._mark_sent()
        self._status, self._status_code = status_line
        self.headers["Content-Type"] = self.json_provider.mimetype
        self.response = chunks
        return self

    def send_file(
        self,
        path: str | os.PathLike[str],
        mimetype: str | None = None,
        status: int | HTTPStatus | None = None,
    ) -> t.Self:
        """Send the file at ``path`` as the body.

        :raises ApplicationError: With ``404`` when the file is missing.
        """
        if not os.path.isfile(path):
            raise ApplicationError.not_found(
                f"File {os.fspath(path)!r} not found"
            )
        with open(path, "rb") as f:
            data = f.read()
        if mimetype is None:
            mimetype, _ = mimetypes.guess_type(os.fspath(path))
        status_line = self._status_or_current(status)
        self._mark_sent()
        self._status, self._status_code = status_line
        self.headers["Content-Type"] = mimetype or "application/octet-stream"
        self.set_data(data)
        return self

    def send_stream(
        self, chunks: Iterable[bytes | str], mimetype: str | None = None
    ) -> t.Self:
        """Send an iterable of chunks, consumed lazily by the server."""
        self._mark_sent()
        if mimetype is not None:
            self.headers["Content-Type"] = mimetype
        self.response = (
            chunk if isinstance(chunk, bytes) else str(chunk).encode()
            for chunk in chunks
        )
        return self

    def redirect(self, location: str, status: int = 302) -> t.Self:
        """Redirect the client to ``location``."""
        status_line = self._clean_status(status)
        self._mark_sent()
        self._status, self._status_code = status_line
        self.headers["Location"] = location
        self.set_data(b"")
        return self

    def iter_encoded(self) -> Iterator[bytes]:
        """Iterate over the response and yield them as bytes."""
        for item in self.response:
            yield item if isinstance(item, bytes) else str(item).encode()

    def get_data(self, as_text: bool = False) -> str | bytes:
        """Return the stored payload as bytes or text.

        Streamed bodies are drained and kept, so the payload can be read
        more than once.

        :param as_text: When ``True``, decode the body as UTF-8.
        """
        data = b"".join(self.iter_encoded())
        self.response = [data]
        return data.decode() if as_text else data

    @staticmethod
    def _to_chunks(value: t.Any) -> list[bytes]:
        """Encode a payload into a list of byte chunks."""
        if isinstance(value, str):
            return [value.encode()]
        if isinstance(value, bytes):
            return [value]
        return [
            chunk if isinstance(chunk, bytes) else str(chunk).encode()
            for chunk in value
        ]

    def set_data(self, value: t.Any) -> None:
        """Replace the payload data on the response."""
        self.response = self._to_chunks(value)

    data = property(get_data, set_data)

    def get_json(self) -> t.Any:
        """Decode the body as JSON."""
        return self.json_provider.loads(self.get_data())

"""\
Ludmila's Exceptions
====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

This module defines ``ApplicationError``, the one exception type that
controllers and middleware raise to signal an expected, user-visible
failure. The dispatch layer turns it into a JSON response whose status
line and body both carry the error code. Anything else is treated as a
programming or downstream failure and travels through the framework's
generic error channel instead.
"""

from __future__ import annotations

import typing as t
from http import HTTPStatus


class ApplicationError(Exception):
    """Expected failure carrying an HTTP status code.

    :param code: HTTP status code to respond with.
    :param message: Human readable message, defaults to the status
        phrase.
    :param details: Extra payload serialised next to the message,
        defaults to ``None``.
    """

    BAD_REQUEST: t.ClassVar[int] = HTTPStatus.BAD_REQUEST.value
    UNAUTHORIZED: t.ClassVar[int] = HTTPStatus.UNAUTHORIZED.value
    FORBIDDEN: t.ClassVar[int] = HTTPStatus.FORBIDDEN.value
    NOT_FOUND: t.ClassVar[int] = HTTPStatus.NOT_FOUND.value
    CONFLICT: t.ClassVar[int] = HTTPStatus.CONFLICT.value
    INTERNAL: t.ClassVar[int] = HTTPStatus.INTERNAL_SERVER_ERROR.value
    NOT_IMPLEMENTED: t.ClassVar[int] = HTTPStatus.NOT_IMPLEMENTED.value

    def __init__(
        self,
        code: int,
        message: str | None = None,
        details: t.Any | None = None,
    ) -> None:
        """Initialise the error with its status code."""
        self.code = int(code)
        if message is None:
            try:
                message = HTTPStatus(self.code).phrase
            except ValueError:
                message = "Application Error"
        self.message = message
        self.details = details
        super().__init__(message)

    def __repr__(self) -> str:
        """Human-readable representation of the error."""
        return f"<{type(self).__name__} [{self.code}] {self.message!r}>"

    def to_dict(self) -> dict[str, t.Any]:
        """Return the JSON body sent to the client."""
        payload: dict[str, t.Any] = {
            "code": self.code,
            "message": self.message,
        }
        if self.details is not None:
            payload["details"] = self.details
        return payload

    @classmethod
    def create(
        cls, code: int, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create an error with an arbitrary status code."""
        return cls(code, message, details)

    @classmethod
    def bad_request(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``400 Bad Request`` error."""
        return cls(cls.BAD_REQUEST, message, details)

    @classmethod
    def unauthorized(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``401 Unauthorized`` error."""
        return cls(cls.UNAUTHORIZED, message, details)

    @classmethod
    def forbidden(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``403 Forbidden`` error."""
        return cls(cls.FORBIDDEN, message, details)

    @classmethod
    def not_found(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``404 Not Found`` error."""
        return cls(cls.NOT_FOUND, message, details)

    @classmethod
    def conflict(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``409 Conflict`` error."""
        return cls(cls.CONFLICT, message, details)

    @classmethod
    def internal(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``500 Internal Server Error`` error."""
        return cls(cls.INTERNAL, message, details)

    @classmethod
    def not_implemented(
        cls, message: str | None = None, details: t.Any = None
    ) -> t.Self:
        """Create a ``501 Not Implemented`` error.

        Raised for configuration mistakes such as referencing a
        middleware that was never registered.
        """
        return cls(cls.NOT_IMPLEMENTED, message, details)

"""\
Ludmila's Request Context
=========================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

``RequestContext`` bundles everything a controller or a contextual
middleware needs to know about the request it serves: the request and
response pair, the user and session an authentication layer attached,
and a logger scoped to the request.

A context is created fresh for every request and dropped once the
response is sent.
"""

from __future__ import annotations

import typing as t

from ludmila.log import create_logger
from ludmila.utils import content_disposition

if t.TYPE_CHECKING:
    from ludmila.log import Logger
    from ludmila.wrappers import Request
    from ludmila.wrappers import Response


class RequestContext:
    """Execution context of one HTTP request.

    :param request: Request the context is built around.
    :param logger: Logger to use with this context. When omitted a new
        ``context`` logger seeded with the request is created, defaults
        to ``None``.
    """

    def __init__(self, request: Request, logger: Logger | None = None) -> None:
        """Initialise the context around ``request``."""
        self.request = request
        self.response: Response | None = request.response
        self.user: t.Any | None = request.user
        self.session: t.Any | None = request.session
        self.logger = logger or create_logger("context", request)

    def __repr__(self) -> str:
        """Human-readable representation of the context."""
        return f"<{type(self).__name__} {self.request!r}>"

    @property
    def cookies(self) -> dict[str, str]:
        """Cookies of the underlying request."""
        return self.request.cookies

    def set_header(self, key: str, *values: t.Any) -> None:
        """Set a header on the response.

        ``Content-Disposition`` accepts ``(type, filename)`` and builds
        a value carrying both a plain and a UTF-8 encoded filename.
        Several values for any other header are joined with commas.
        """
        if str(key).lower() == "content-disposition" and len(values) == 2:
            self.response.set_header(key, content_disposition(*values))
            return
        value = ", ".join(str(value) for value in values)
        self.response.set_header(key, value)

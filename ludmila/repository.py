"""\
Ludmila's Repository Base
=========================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Base class for data access objects used by controllers. Storage itself
is not part of Ludmila; whatever the application uses for models is
injected as ``models``.
"""

from __future__ import annotations

import typing as t

from ludmila.context import RequestContext


class ApiRepository:
    """Data access layer bound to a request context.

    :param context: Context the repository executes under.
    :param models: Models or connections the repository works with,
        defaults to ``None``.
    :raises TypeError: If ``context`` isn't a ``RequestContext``.
    """

    def __init__(self, context: RequestContext, models: t.Any = None) -> None:
        """Initialise the repository."""
        if not isinstance(context, RequestContext):
            raise TypeError(
                "The context argument needs to be an instance of "
                "RequestContext"
            )
        self.context = context
        self.models = models

    @property
    def logger(self) -> t.Any:
        """Logger of the owning context."""
        return self.context.logger

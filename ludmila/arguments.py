"""\
Ludmila's Argument Expressions
==============================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Endpoint descriptors name controller arguments with a tiny expression
language evaluated against the request context:

``:name``
    Route parameter, ``request.params[name]``.
``?name``
    Query parameter, ``request.query[name]``.
``a:b:c``
    Path walked from the context, ``context.a.b.c``; stops at the first
    missing step.
``name``
    Direct member of the context such as ``request`` or ``session``.

Given a context whose request carries ``params={"id": "45"}``,
``query={"filter": "unique"}`` and ``cookies={"user": {"name": "M"}}``::

    parse_argument(context, ":id")                        # "45"
    parse_argument(context, "?filter")                    # "unique"
    parse_argument(context, "request:cookies:user")       # {"name": "M"}
    parse_argument(context, "request:cookies:user:name")  # "M"
    parse_argument(context, "request:cookies:nobody:x")   # None

Every step reads mapping keys or object attributes, so plain
dictionaries work as contexts too.
"""

from __future__ import annotations

import typing as t

from ludmila.utils import get_field


def _section(context: t.Any, name: str) -> t.Any:
    """Return ``context.request.<name>``."""
    return get_field(get_field(context, "request"), name)


def parse_argument(context: t.Any, expression: str) -> t.Any:
    """Select a value from ``context`` as described by ``expression``.

    :param context: Context to select from.
    :param expression: Expression naming the value.
    :return: The selected value, ``None`` when any step is missing.
    """
    if not expression:
        return None
    if expression[0] == ":":
        return get_field(_section(context, "params"), expression[1:])
    if expression[0] == "?":
        return get_field(_section(context, "query"), expression[1:])
    if ":" in expression:
        current = context
        for part in expression.split(":"):
            current = get_field(current, part)
            if current is None:
                break
        return current
    return get_field(context, expression)


def parse_middleware_argument(context: t.Any, value: t.Any) -> t.Any:
    """Resolve a middleware argument.

    Middleware arguments are mostly literals such as role names, so
    only ``:name`` and ``?name`` are resolved; everything else is
    returned unchanged.
    """
    if not isinstance(value, str) or not value:
        return value
    if value[0] == ":":
        return get_field(_section(context, "params"), value[1:])
    if value[0] == "?":
        return get_field(_section(context, "query"), value[1:])
    return value

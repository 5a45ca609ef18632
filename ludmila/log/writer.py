"""\
Ludmila's Log Writer
====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

A ``Writer`` renders one log call into a single line and hands it to
each of its transports. Transports are anything exposing
``log(level, message)``; in practice a bound ``loguru`` logger.
"""

from __future__ import annotations

import json
import typing as t

if t.TYPE_CHECKING:
    from collections.abc import Iterable

LEVELS: dict[str, str] = {
    "debug": "DEBUG",
    "info": "INFO",
    "warn": "WARNING",
    "error": "ERROR",
    "fatal": "CRITICAL",
}


class Transport(t.Protocol):
    """Anything a ``Writer`` can emit lines through."""

    def log(self, level: str, message: str) -> t.Any: ...


def _serialise(value: t.Any) -> str:
    """Render a single log argument as text."""
    if isinstance(value, BaseException):
        value = {
            "type": type(value).__name__,
            "message": str(value),
            "args": [repr(arg) for arg in value.args],
        }
    if isinstance(value, str):
        return value
    try:
        return json.dumps(value, default=str, ensure_ascii=False)
    except (TypeError, ValueError):
        return repr(value)


class Writer:
    """Fan a log line out to several transports.

    :param transports: Transports receiving every line, defaults to
        ``None``.
    """

    def __init__(self, transports: Iterable[Transport] | None = None) -> None:
        """Initialise the writer."""
        self.transports: list[Transport] = list(transports or ())

    def __repr__(self) -> str:
        """Human-readable representation of the writer."""
        return f"<{type(self).__name__} {len(self.transports)} transport(s)>"

    def format(self, *args: t.Any) -> str:
        """Join the arguments of a log call into one line."""
        return " ".join(_serialise(arg) for arg in args)

    def log(self, level: str, *args: t.Any) -> None:
        """Write one line at ``level`` to every transport.

        Unknown levels are passed through upper-cased so custom loguru
        levels keep working.
        """
        message = self.format(*args)
        name = LEVELS.get(level, str(level).upper())
        for transport in self.transports:
            transport.log(name, message)

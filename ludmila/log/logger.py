"""\
Ludmila's Logger
================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

A ``Logger`` is a named, state-carrying front for a set of writers.
One is usually created per request, scoped by the controller name and
seeded with a filtered snapshot of the request, so every line it emits
ends with the same identity fields.

Every call also runs a debug trace check: when the trailing argument is
a mapping naming both a ``user_id`` and a ``client_name``, the line is
additionally sent to the debug writers registered for that user. This
lets support staff tail one user's logs without touching call sites.
The keys are snake_case, so payloads carrying ``userId`` and
``clientName`` must be renamed to ``user_id`` and ``client_name``.
"""

from __future__ import annotations

import time as _time
import typing as t
from collections.abc import Mapping

from ludmila.log.repository import repository as default_repository
from ludmila.utils import get_field
from ludmila.wrappers import Request

if t.TYPE_CHECKING:
    from collections.abc import Sequence

    from ludmila.log.repository import WriterRepository
    from ludmila.log.writer import Writer

LOG_LEVELS: tuple[str, ...] = ("debug", "info", "warn", "error", "fatal")


def filter_incoming_message(state: t.Any) -> t.Any:
    """Reduce a request to the fields that are safe to log.

    Only an allow-list is copied, headers and bodies never are::

        {
            "request_id": ...,  # when assigned
            "url": ...,
            "host": ...,
            "type": ...,  # request method
            "query_params": ...,
            "user_id": ...,
            "user_name": ...,
            "client_name": ...,
            "session_id": ...,  # when the session carries an id
        }

    The user fields come from ``request.user`` when authenticated, and
    from ``request.meta_data`` otherwise.

    :param state: Object to filter.
    :return: Filtered mapping for requests, an empty mapping for
        ``None`` and ``state`` unchanged for anything else.
    """
    if state is None:
        return {}
    if not isinstance(state, Request):
        return state
    result: dict[str, t.Any] = {}
    if state.request_id:
        result["request_id"] = state.request_id
    result["url"] = state.path
    result["host"] = state.headers.get("Host", "")
    result["type"] = state.method
    meta = state.meta_data
    result["query_params"] = (
        get_field(meta, "query_params", "") if meta else ""
    )
    user = state.user
    if user:
        user_id = get_field(user, "id")
        if user_id is None:
            user_id = get_field(user, "ID")
        result["user_id"] = user_id
        result["user_name"] = get_field(user, "name")
        result["client_name"] = get_field(user, "client")
    elif meta:
        result["user_id"] = get_field(meta, "user_id")
        result["user_name"] = get_field(meta, "user_name")
        result["client_name"] = get_field(meta, "client")
    session_id = get_field(state.session, "id") if state.session else None
    if session_id is not None:
        result["session_id"] = session_id
    return result


def write_debug_trace(
    repository: WriterRepository, level: str, args: Sequence[t.Any]
) -> None:
    """Send a log call to the debug writers of the user it names."""
    if not args or not isinstance(args[-1], Mapping):
        return
    user_id = args[-1].get("user_id")
    client_name = args[-1].get("client_name")
    if user_id in (None, "") or client_name in (None, ""):
        return
    trace_id = f"{user_id}@{client_name}"
    for writer in repository.debug_writers_matching(trace_id):
        writer.log(level, *args)


class Logger:
    """Customisable logging adapter.

    :param name: Prefixed to every message as ``[name]``, defaults to
        ``None``.
    :param state: Appended to every message; requests are filtered
        through ``filter_incoming_message``, defaults to ``None``.
    :param repository: Where debug trace writers are looked up,
        defaults to the process-wide repository.
    """

    def __init__(
        self,
        name: str | None = None,
        state: t.Any = None,
        repository: WriterRepository | None = None,
    ) -> None:
        """Initialise a logger without writers."""
        self.name = name
        self.state = filter_incoming_message(state)
        self.writers: set[Writer] = set()
        self.timers: dict[str, tuple[float, str]] = {}
        self.repository = repository or default_repository

    def __repr__(self) -> str:
        """Human-readable representation of the logger."""
        return f"<{type(self).__name__} {self.name!r}>"

    def log(self, level: str, *args: t.Any) -> None:
        """Write the arguments verbatim to every attached writer, then
        run the debug trace check.
        """
        for writer in self.writers:
            writer.log(level, *args)
        write_debug_trace(self.repository, level, args)

    def _emit(self, level: str, message: t.Any, *args: t.Any) -> None:
        """Prefix the name, append the state and log."""
        text = message if isinstance(message, str) else repr(message)
        if self.name:
            text = f"[{self.name}] {text}"
        payload = [text, *args]
        if self.state:
            payload.append(self.state)
        self.log(level, *payload)

    def debug(self, message: t.Any, *args: t.Any) -> None:
        """Log at ``debug`` level."""
        self._emit("debug", message, *args)

    def info(self, message: t.Any, *args: t.Any) -> None:
        """Log at ``info`` level."""
        self._emit("info", message, *args)

    def warn(self, message: t.Any, *args: t.Any) -> None:
        """Log at ``warn`` level."""
        self._emit("warn", message, *args)

    def error(self, message: t.Any, *args: t.Any) -> None:
        """Log at ``error`` level."""
        self._emit("error", message, *args)

    def fatal(self, message: t.Any, *args: t.Any) -> None:
        """Log at ``fatal`` level."""
        self._emit("fatal", message, *args)

    def time(self, label: str = "default", level: str = "debug") -> None:
        """Start a stopwatch reported by ``time_end``.

        :param label: Timer identifier, defaults to ``default``.
        :param level: Level the duration is logged at, defaults to
            ``debug``.
        """
        self.timers[label] = (_time.perf_counter(), level or "debug")

    def time_end(self, label: str = "default") -> None:
        """Log the time elapsed since ``time(label)`` and drop the timer.

        Unknown labels are ignored.
        """
        timer = self.timers.pop(label, None)
        if timer is None:
            return
        started, level = timer
        elapsed = round((_time.perf_counter() - started) * 1000)
        text = f"[Timer] {label} : {elapsed}ms"
        if self.name:
            text = f"[{self.name}] {text}"
        args: list[t.Any] = [text]
        if self.state:
            args.append(self.state)
        self.log(level, *args)

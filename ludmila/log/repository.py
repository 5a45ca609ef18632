"""\
Ludmila's Writer Repository
===========================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Registry of named log writers. The default writer lives here, next to
any other writer the application wants to look up by name.

Debug trace writers are kept in their own keyspace. They're keyed by
``<user_id>@<client_name>`` (optionally followed by a suffix so several
sessions can tail the same user) and are matched by prefix, which would
otherwise let a trace id collide with unrelated writer names.
"""

from __future__ import annotations

import typing as t

from ludmila.exceptions import ApplicationError

if t.TYPE_CHECKING:
    from ludmila.log.writer import Writer

DEFAULT: t.Final[str] = "DEFAULT"


class WriterRepository:
    """Store writers by name and debug writers by trace key."""

    def __init__(self) -> None:
        """Initialise empty keyspaces."""
        self._writers: dict[str, Writer] = {}
        self._debug_writers: dict[str, Writer] = {}

    @property
    def default(self) -> Writer:
        """The default writer.

        :raises ApplicationError: ``501`` when no default is set.
        """
        if not self.has(DEFAULT):
            raise ApplicationError.not_implemented("Default writer not set!")
        return self._writers[DEFAULT]

    def set(self, writer_id: str, writer: Writer) -> None:
        """Store ``writer`` under ``writer_id``."""
        self._writers[writer_id] = writer

    def get(self, writer_id: str) -> Writer | None:
        """Return the writer stored under ``writer_id``."""
        return self._writers.get(writer_id)

    def has(self, writer_id: str) -> bool:
        """Return ``True`` if ``writer_id`` is known."""
        return writer_id in self._writers

    def delete(self, writer_id: str) -> None:
        """Forget the writer stored under ``writer_id``."""
        self._writers.pop(writer_id, None)

    def set_default(self, writer: Writer) -> None:
        """Replace the default writer."""
        self.set(DEFAULT, writer)

    def add_debug_writer(self, trace_key: str, writer: Writer) -> None:
        """Start tailing logs for the user and client named by
        ``trace_key``.
        """
        self._debug_writers[trace_key] = writer

    def remove_debug_writer(self, trace_key: str) -> None:
        """Stop a debug trace session."""
        self._debug_writers.pop(trace_key, None)

    def debug_writers_matching(self, trace_id: str) -> list[Writer]:
        """Return every debug writer whose key starts with
        ``trace_id``.
        """
        return [
            writer
            for key, writer in self._debug_writers.items()
            if key.startswith(trace_id)
        ]


repository = WriterRepository()

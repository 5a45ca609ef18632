"""\
Ludmila's Log Factory
=====================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Factory functions for loggers, writers and the ``loguru`` transport
behind them.

The transport is configured from the environment:

``LUDMILA_LOG_LEVEL``
    Minimum level written by the sinks, defaults to ``DEBUG``.
``LUDMILA_LOG_FILE``
    Optional file sink, rotated and compressed.
``LUDMILA_LOG_ROTATION``
    Rotation policy of the file sink, defaults to ``10 MB``.
"""

from __future__ import annotations

import contextlib
import os
import sys
import typing as t

from loguru import logger as _loguru

from ludmila.log.logger import Logger
from ludmila.log.repository import repository
from ludmila.log.writer import Writer

if t.TYPE_CHECKING:
    from loguru import Logger as LoguruLogger

CONSOLE_FORMAT: t.Final[str] = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | <level>{message}</level>"
)
FILE_FORMAT: t.Final[str] = (
    "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {message}"
)

# Sinks owned by Ludmila; ``0`` is loguru's default stderr sink.
_handler_ids: list[int] = [0]


def create_logger(name: str | None = None, state: t.Any = None) -> Logger:
    """Create a ``Logger`` writing to the default writer.

    :param name: Name given to the logger, defaults to ``None``.
    :param state: State given to the logger, usually the current
        request, defaults to ``None``.
    """
    result = Logger(name, state)
    result.writers.add(repository.default)
    return result


def create_writer() -> Writer:
    """Create a ``Writer`` backed by the configured transport."""
    return Writer([create_transport()])


def create_transport(
    level: str | None = None,
    log_file: str | None = None,
    rotation: str | None = None,
) -> LoguruLogger:
    """Configure ``loguru`` sinks and return the transport.

    Sinks installed by an earlier call are replaced, as is loguru's
    default ``stderr`` sink. Sinks the application added itself are
    left alone.

    :param level: Minimum level, defaults to ``LUDMILA_LOG_LEVEL``.
    :param log_file: File sink path, defaults to ``LUDMILA_LOG_FILE``.
    :param rotation: File rotation, defaults to
        ``LUDMILA_LOG_ROTATION``.
    """
    level = level or os.environ.get("LUDMILA_LOG_LEVEL", "DEBUG")
    log_file = log_file or os.environ.get("LUDMILA_LOG_FILE")
    for handler_id in _handler_ids:
        with contextlib.suppress(ValueError):
            _loguru.remove(handler_id)
    _handler_ids[:] = [
        _loguru.add(sys.stderr, format=CONSOLE_FORMAT, level=level)
    ]
    if log_file:
        handler_id = _loguru.add(
            log_file,
            format=FILE_FORMAT,
            level=level,
            rotation=rotation
            or os.environ.get("LUDMILA_LOG_ROTATION", "10 MB"),
            retention="30 days",
            compression="zip",
        )
        _handler_ids.append(handler_id)
    return _loguru.bind(transport="ludmila")

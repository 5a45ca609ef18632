"""\
Ludmila's Logging
=================

Author: Akshay Mestry <xa@mes3.dev>
Created on: 18 October, 2026
Last updated on: 18 October, 2026

Logging facade over ``loguru``. Importing the package loads ``.env``
and installs the default writer, after which the module level helpers
log without a name or state::

    from ludmila import log

    log.warn("Middleware 'auth' is being overwritten")

Scoped loggers are created with ``create_logger(name, request)``.
"""

from __future__ import annotations

import typing as t

from dotenv import find_dotenv
from dotenv import load_dotenv

from ludmila.log.factory import create_logger as create_logger
from ludmila.log.factory import create_transport as create_transport
from ludmila.log.factory import create_writer as create_writer
from ludmila.log.logger import LOG_LEVELS as LOG_LEVELS
from ludmila.log.logger import Logger as Logger
from ludmila.log.logger import filter_incoming_message
from ludmila.log.logger import write_debug_trace
from ludmila.log.repository import WriterRepository as WriterRepository
from ludmila.log.repository import repository as repository
from ludmila.log.writer import Writer as Writer


def initialize() -> None:
    """Load ``.env`` from the working directory and install a fresh
    default writer.
    """
    load_dotenv(find_dotenv(usecwd=True))
    repository.set_default(create_writer())


def log(level: str, *args: t.Any) -> None:
    """Write through the default writer.

    When a message is followed by a state argument, the state is
    filtered first so passing a raw request never leaks its headers.
    """
    if len(args) > 1:
        args = (*args[:-1], filter_incoming_message(args[-1]))
    repository.default.log(level, *args)
    write_debug_trace(repository, level, args)


def debug(*args: t.Any) -> None:
    """Log at ``debug`` level through the default writer."""
    log("debug", *args)


def info(*args: t.Any) -> None:
    """Log at ``info`` level through the default writer."""
    log("info", *args)


def warn(*args: t.Any) -> None:
    """Log at ``warn`` level through the default writer."""
    log("warn", *args)


def error(*args: t.Any) -> None:
    """Log at ``error`` level through the default writer."""
    log("error", *args)


def fatal(*args: t.Any) -> None:
    """Log at ``fatal`` level through the default writer."""
    log("fatal", *args)


initialize()

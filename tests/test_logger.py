from __future__ import annotations

import os

import pytest
from loguru import logger as loguru_logger

from ludmila import log
from ludmila import ApplicationError
from ludmila.log import Logger
from ludmila.log import Writer
from ludmila.log import WriterRepository
from ludmila.log import create_logger
from ludmila.log import create_transport
from ludmila.log.logger import filter_incoming_message


@pytest.fixture
def transport(make_transport):
    return make_transport()


@pytest.fixture
def logger(transport):
    logger = Logger("Animal", repository=WriterRepository())
    logger.writers.add(Writer([transport]))
    return logger


def test_filter_none_and_plain_values():
    assert filter_incoming_message(None) == {}
    assert filter_incoming_message({"a": 1}) == {"a": 1}


def test_filter_request_from_user(request_factory):
    request = request_factory(
        path="/animals", query_string="x=1", headers={"Host": "zoo", "Authorization": "secret"}
    )
    request.request_id = "r-1"
    request.user = {"id": 7, "name": "Ada", "client": "acme"}
    request.session = {"id": "s-1"}
    request.meta_data = {"query_params": "x=1"}
    assert filter_incoming_message(request) == {
        "request_id": "r-1",
        "url": "/animals",
        "host": "zoo",
        "type": "GET",
        "query_params": "x=1",
        "user_id": 7,
        "user_name": "Ada",
        "client_name": "acme",
        "session_id": "s-1",
    }


def test_filter_request_from_meta_data(request_factory):
    request = request_factory()
    request.meta_data = {"user_id": 3, "user_name": "Bo", "client": "zoo"}
    state = filter_incoming_message(request)
    assert (state["user_id"], state["user_name"], state["client_name"]) == (3, "Bo", "zoo")
    assert "session_id" not in state
    assert "request_id" not in state


def test_filter_accepts_upper_case_user_id(request_factory):
    request = request_factory()
    request.user = {"ID": 11}
    assert filter_incoming_message(request)["user_id"] == 11


def test_logger_prefixes_name(logger, transport):
    logger.info("Hello", {"a": 1})
    assert transport.lines == [("INFO", '[Animal] Hello {"a": 1}')]


def test_logger_levels(logger, transport):
    logger.warn("w")
    logger.fatal("f")
    assert [level for level, _ in transport.lines] == ["WARNING", "CRITICAL"]


def test_logger_appends_state(transport, request_factory):
    request = request_factory(path="/a")
    logger = Logger("Animal", request, WriterRepository())
    logger.writers.add(Writer([transport]))
    logger.debug("x")
    assert transport.messages[0].startswith("[Animal] x {")
    assert '"url": "/a"' in transport.messages[0]


def test_logger_serialises_exceptions(logger, transport):
    logger.error("Failed", ApplicationError.conflict("dup"))
    assert '"type": "ApplicationError"' in transport.messages[0]


def test_time_end_logs_duration(logger, transport):
    logger.time("query", "info")
    logger.time_end("query")
    ((level, message),) = transport.lines
    assert level == "INFO"
    assert message.startswith("[Animal] [Timer] query : ")
    assert message.endswith("ms")


def test_time_end_unknown_label_is_a_no_op(logger, transport):
    logger.time_end("never-started")
    assert transport.lines == []


def test_debug_trace_reaches_matching_writer(transport, make_transport):
    repository = WriterRepository()
    traced = make_transport()
    other = make_transport()
    repository.add_debug_writer("7@acme-session-1", Writer([traced]))
    repository.add_debug_writer("8@acme-session-1", Writer([other]))
    logger = Logger("Animal", repository=repository)
    logger.writers.add(Writer([transport]))
    logger.info("Traced", {"user_id": 7, "client_name": "acme"})
    assert len(transport.lines) == 1
    assert len(traced.lines) == 1
    assert other.lines == []
    repository.remove_debug_writer("7@acme-session-1")
    logger.info("Again", {"user_id": 7, "client_name": "acme"})
    assert len(traced.lines) == 1


def test_debug_trace_needs_both_fields(make_transport):
    repository = WriterRepository()
    traced = make_transport()
    repository.add_debug_writer("7@", Writer([traced]))
    logger = Logger(repository=repository)
    logger.info("no client", {"user_id": 7})
    assert traced.lines == []


def test_default_writer_missing():
    with pytest.raises(ApplicationError) as info:
        WriterRepository().default
    assert info.value.code == 501


def test_module_level_helpers_filter_requests(captured, request_factory):
    request = request_factory(path="/x", headers={"Authorization": "secret"})
    log.info("Request", request)
    assert "secret" not in captured.messages[0]
    assert '"url": "/x"' in captured.messages[0]


def test_create_logger_uses_default_writer(captured):
    create_logger("Factory").info("made")
    assert captured.messages == ["[Factory] made"]


def test_initialize_reads_env_from_working_directory(
    tmp_path, monkeypatch, captured
):
    monkeypatch.setenv("LUDMILA_LOG_ROTATION", "unset")
    monkeypatch.delenv("LUDMILA_LOG_ROTATION")
    (tmp_path / ".env").write_text("LUDMILA_LOG_ROTATION=1 day\n")
    monkeypatch.chdir(tmp_path)
    log.initialize()
    assert os.environ["LUDMILA_LOG_ROTATION"] == "1 day"


def test_create_transport_keeps_application_sinks(captured):
    seen = []
    handler_id = loguru_logger.add(seen.append, format="{message}")
    try:
        create_transport(level="INFO")
        create_transport(level="INFO")
        loguru_logger.info("still routed")
    finally:
        loguru_logger.remove(handler_id)
    assert [message.strip() for message in seen] == ["still routed"]


def test_time_end_without_name_has_no_prefix(transport):
    logger = Logger(repository=WriterRepository())
    logger.writers.add(Writer([transport]))
    logger.time("query", "info")
    logger.time_end("query")
    assert transport.messages[0].startswith("[Timer] query : ")

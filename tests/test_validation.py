from __future__ import annotations

import pytest
from pydantic import BaseModel

from ludmila import ApplicationError
from ludmila.validation import build_model
from ludmila.validation import validation


class Paging(BaseModel):
    page: int = 1
    size: int = 20


def test_no_rules_let_everything_through(request_factory, recorder):
    request = request_factory()
    validation(None)(request, request.response, recorder)
    assert recorder.calls == [None]


def test_unknown_section_fails_when_built():
    with pytest.raises(ValueError):
        validation({"headers": {"x": str}})


def test_malformed_rule_fails_when_built():
    with pytest.raises(TypeError):
        build_model("body", [str])


def test_query_is_coerced_in_place(request_factory, recorder):
    request = request_factory(query_string="page=3")
    validation({"query": Paging})(request, request.response, recorder)
    assert request.query == {"page": 3, "size": 20}
    assert recorder.calls == [None]


def test_params_are_coerced(request_factory, recorder):
    request = request_factory()
    request.params = {"id": "45"}
    validation({"params": {"id": int}})(request, request.response, recorder)
    assert request.params == {"id": 45}


def test_failure_lists_every_problem(request_factory, recorder):
    request = request_factory(query_string="extra=1")
    request.params = {"id": "abc"}
    validate = validation({"params": {"id": int}, "query": {"page": (int, 1)}})
    with pytest.raises(ApplicationError) as info:
        validate(request, request.response, recorder)
    error = info.value
    assert error.code == 400
    assert error.message == "Validation failed"
    assert {(item["section"], tuple(item["loc"])) for item in error.details} == {
        ("params", ("id",)),
        ("query", ("extra",)),
    }
    assert not recorder.called
    assert request.params == {"id": "abc"}


def test_optional_fields(request_factory, recorder):
    request = request_factory()
    request.body = {"email": "ada@example.com"}
    rules = {"body": {"email": str, "nickname": (str | None, None)}}
    validation(rules)(request, request.response, recorder)
    assert request.body == {"email": "ada@example.com", "nickname": None}

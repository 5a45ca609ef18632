from __future__ import annotations

import pytest

from ludmila.datastructures import Headers
from ludmila.datastructures import MultiDict
from ludmila.utils import join_url
from ludmila.wrappers import Request
from ludmila.wrappers import Response


def test_multidict_keeps_every_value():
    data = MultiDict([("tag", "a"), ("tag", "b"), ("page", "1")])
    assert data["tag"] == "a"
    assert data.getlist("tag") == ["a", "b"]
    assert data.to_dict() == {"tag": "a", "page": "1"}


def test_headers_are_case_insensitive():
    headers = Headers({"Content-Type": "text/plain"})
    assert headers["content-type"] == "text/plain"
    assert "CONTENT-TYPE" in headers
    assert headers.to_wsgi_list() == [("Content-Type", "text/plain")]


def test_request_form_body():
    request = Request(
        {
            "REQUEST_METHOD": "post",
            "CONTENT_TYPE": "application/x-www-form-urlencoded",
            "ludmila.request_body": b"name=Ada&role=admin",
        }
    )
    assert request.method == "POST"
    assert request.body == {"name": "Ada", "role": "admin"}


def test_request_malformed_json_is_none():
    request = Request(
        {"CONTENT_TYPE": "application/json", "ludmila.request_body": b"{oops"}
    )
    assert request.json is None
    assert request.body == {}


def test_request_url():
    request = Request(
        {"PATH_INFO": "/a", "QUERY_STRING": "x=1", "HTTP_HOST": "zoo:8000"}
    )
    assert request.url == "http://zoo:8000/a?x=1"


def test_response_status_forms():
    response = Response()
    response.status = "418 I'm a Teapot"
    assert response.status_code == 418
    response.set_status(201)
    assert response.status == "201 Created"
    with pytest.raises(ValueError):
        response.status = "teapot"


def test_response_stream_is_lazy():
    consumed = []

    def chunks():
        for chunk in ("a", "b"):
            consumed.append(chunk)
            yield chunk

    response = Response().send_stream(chunks(), "text/plain")
    assert consumed == []
    assert response.get_data() == b"ab"
    assert response.get_data() == b"ab"


def test_response_send_twice_raises():
    response = Response().send("one")
    with pytest.raises(RuntimeError):
        response.send_json({})


def test_join_url_skips_empty_segments():
    assert join_url(None, "", "/users/") == "/users"


def test_invalid_status_leaves_response_unsent():
    response = Response()
    with pytest.raises(ValueError):
        response.send_json({"code": "ER_DUP_ENTRY"}, "ER_DUP_ENTRY")
    assert not response.headers_sent
    assert response.status_code == 200
    response.send_json({"retried": True}, 500)
    assert response.status_code == 500
    assert response.get_json() == {"retried": True}


def test_unencodable_body_leaves_response_unsent():
    response = Response()
    with pytest.raises(TypeError):
        response.send(42, 201)
    assert not response.headers_sent
    assert response.status_code == 200

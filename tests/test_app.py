from __future__ import annotations

import io

import pytest

from ludmila import ApplicationError
from ludmila import Ludmila
from ludmila.testing import TestClient


def ok(request, response, next):
    response.send_json({"ok": True})


def test_unknown_path_is_404(client):
    response = client.get("/nowhere")
    assert response.status_code == 404
    assert response.get_json() == {"code": 404, "message": "Not Found"}


def test_wrong_method_is_405(app, client):
    app.get("/items", ok)
    response = client.post("/items")
    assert response.status_code == 405


def test_same_path_different_methods(app, client):
    app.get("/items", ok)
    app.post("/items", lambda request, response, next: response.send("made", 201))
    assert client.post("/items").status_code == 201
    assert client.get("/items").get_json() == {"ok": True}


def test_static_rules_win_over_dynamic(app, client):
    app.get("/users/<id>", lambda request, response, next: response.send("dynamic"))
    app.get("/users/me", lambda request, response, next: response.send("static"))
    assert client.get("/users/me").get_data(as_text=True) == "static"
    assert client.get("/users/9").get_data(as_text=True) == "dynamic"


def test_express_style_placeholders(app, client):
    app.get("/users/:id", lambda request, response, next: request.params)
    assert client.get("/users/5").get_json() == {"id": "5"}


def test_decorator_registration(app, client):
    @app.get("/ping")
    def ping(request, response, next):
        return "pong"

    assert client.get("/ping").get_data(as_text=True) == "pong"


def test_chain_runs_in_order(app, client):
    order = []

    def first(request, response, next):
        order.append("first")
        next()

    def second(request, response, next):
        order.append("second")
        response.send("done")

    def third(request, response, next):
        order.append("third")

    app.get("/chain", first, second, third)
    client.get("/chain")
    assert order == ["first", "second"]


def test_use_handlers_run_before_routes(app, client):
    def authenticate(request, response, next):
        request.user = {"id": 1}
        next()

    app.use(authenticate)
    app.get("/me", lambda request, response, next: request.user)
    assert client.get("/me").get_json() == {"id": 1}


def test_next_with_error_reaches_error_channel(app, client):
    app.get("/fail", lambda request, response, next: next(RuntimeError("boom")))
    response = client.get("/fail")
    assert response.status_code == 500
    assert response.get_json()["message"] == "Internal Server Error"
    assert "details" not in response.get_json()


def test_debug_mode_adds_details(app, client):
    app.debug = True

    def fail(request, response, next):
        raise KeyError("missing")

    app.get("/fail", fail)
    assert "KeyError" in client.get("/fail").get_json()["details"]


def test_application_error_keeps_its_code(app, client):
    def fail(request, response, next):
        raise ApplicationError.conflict("Taken")

    app.get("/fail", fail)
    response = client.get("/fail")
    assert response.status_code == 409
    assert response.get_json() == {"code": 409, "message": "Taken"}


def test_registered_error_handler(app, client):
    class Gone(Exception):
        pass

    class ReallyGone(Gone):
        pass

    def fail(request, response, next):
        raise ReallyGone()

    app.add_error_handler(Gone, lambda request, error: ({"gone": True}, 410))
    app.get("/fail", fail)
    response = client.get("/fail")
    assert response.status_code == 410
    assert response.get_json() == {"gone": True}


def test_request_id_from_header_or_generated(app, client):
    app.get("/id", lambda request, response, next: {"id": request.request_id})
    assert client.get("/id", headers={"X-Request-Id": "abc"}).get_json() == {"id": "abc"}
    assert len(client.get("/id").get_json()["id"]) == 32


@pytest.mark.parametrize(
    ("rv", "status", "body"),
    [
        ({"a": 1}, 200, b'{"a": 1}'),
        (["a"], 200, b'["a"]'),
        ("text", 200, b"text"),
        (b"bytes", 200, b"bytes"),
        (("made", 201), 201, b"made"),
        ((["x"], 202, {"X-Extra": "1"}), 202, b'["x"]'),
        (42, 200, b"42"),
    ],
)
def test_make_response(app, rv, status, body):
    response = app.make_response(rv, app.response_class())
    assert response.status_code == status
    assert response.get_data() == body


def test_make_response_headers(app):
    response = app.make_response(("ok", {"X-Extra": "1"}), app.response_class())
    assert response.headers["X-Extra"] == "1"
    assert response.status_code == 200


def test_make_response_rejects_long_tuples(app):
    with pytest.raises(TypeError):
        app.make_response((1, 2, 3, 4), app.response_class())


def test_compact_json(app, client):
    app.json.compact = True
    app.get("/c", lambda request, response, next: {"a": 1, "b": 2})
    assert client.get("/c").get_data() == b'{"a":1,"b":2}'


def test_response_cannot_be_sent_twice(app, client):
    def twice(request, response, next):
        response.send("one")
        response.send("two")

    app.get("/twice", twice)
    response = client.get("/twice")
    assert response.get_data() == b"one"


def test_route_without_handlers(app):
    with pytest.raises(ValueError):
        app.add_url_rule("/empty", ())


def test_config_from_environment(monkeypatch):
    monkeypatch.setenv("LUDMILA_DEBUG", "true")
    monkeypatch.setenv("LUDMILA_API_PREFIX", "/api")
    app = Ludmila("env")
    assert app.debug is True
    assert app.config["API_PREFIX"] == "/api"


def test_wsgi_entry_point(app):
    app.post("/echo", lambda request, response, next: request.body)
    captured = {}

    def start_response(status, headers):
        captured["status"] = status
        captured["headers"] = dict(headers)

    body = b'{"name": "Ada"}'
    environ = {
        "REQUEST_METHOD": "POST",
        "PATH_INFO": "/echo",
        "CONTENT_TYPE": "application/json",
        "CONTENT_LENGTH": str(len(body)),
        "wsgi.input": io.BytesIO(body),
    }
    chunks = app(environ, start_response)
    assert captured["status"] == "200 OK"
    assert captured["headers"]["Content-Type"] == "application/json"
    assert b"".join(chunks) == b'{"name": "Ada"}'


def test_make_environ(app):
    environ = app.make_environ(
        b"GET /users/a%20b?x=1 HTTP/1.1\r\nHost: zoo\r\nContent-Type: text/plain",
        ("10.0.0.1", 5000),
    )
    assert environ["PATH_INFO"] == "/users/a b"
    assert environ["QUERY_STRING"] == "x=1"
    assert environ["HTTP_HOST"] == "zoo"
    assert environ["CONTENT_TYPE"] == "text/plain"
    assert environ["REMOTE_ADDR"] == "10.0.0.1"


def test_access_log_line(app, captured, request_factory):
    request = request_factory(path="/a")
    request.response.send("x", 201)
    app.log_request(("1.2.3.4", 1), request, request.response)
    assert captured.messages[0].startswith("1.2.3.4 - - [")
    assert captured.messages[0].endswith('"GET /a HTTP/1.1" 201 -')


def test_client_builds_query_and_body(app):
    app.put("/q", lambda request, response, next: {"q": request.query, "b": request.body})
    response = TestClient(app).put("/q?a=1", query={"b": "2"}, json={"c": 3})
    assert response.get_json() == {"q": {"a": "1", "b": "2"}, "b": {"c": 3}}

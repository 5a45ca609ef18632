from __future__ import annotations

from ludmila import RequestContext
from ludmila.log import Logger


def test_context_mirrors_request(request_factory):
    request = request_factory(headers={"Cookie": "theme=dark"})
    request.user = {"id": 7}
    request.session = {"id": "s1"}
    context = RequestContext(request)
    assert context.response is request.response
    assert context.user == {"id": 7}
    assert context.session == {"id": "s1"}
    assert context.cookies == {"theme": "dark"}
    assert context.logger.name == "context"


def test_context_keeps_given_logger(request_factory):
    logger = Logger("custom")
    assert RequestContext(request_factory(), logger).logger is logger


def test_content_disposition_header(context):
    context.set_header("Content-Disposition", "attachment", "a b.txt")
    assert context.response.headers["Content-Disposition"] == (
        "attachment; filename=\"a%20b.txt\"; filename*=UTF-8''a%20b.txt"
    )


def test_content_disposition_falls_back_to_attachment(context):
    context.set_header("content-disposition", "", "résumé.pdf")
    value = context.response.headers["Content-Disposition"]
    assert value.startswith("attachment; filename=\"r%C3%A9sum%C3%A9.pdf\"")


def test_other_headers_join_values(context):
    context.set_header("Cache-Control", "no-cache", "no-store")
    assert context.response.headers["Cache-Control"] == "no-cache, no-store"

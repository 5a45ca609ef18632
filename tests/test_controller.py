from __future__ import annotations

import pytest

from ludmila import ApiRepository
from ludmila import ApplicationError
from ludmila import Controller
from ludmila import ControllerFactory
from ludmila import RequestContext


class ReportController(Controller):
    def explode(self):
        raise ApplicationError.conflict("Already exported")

    def crash(self):
        raise RuntimeError("disk full")

    def quiet(self):
        self.respond_ok({"responded": True})
        return {"ignored": True}

    def duplicate(self):
        self.respond_error({"code": "ER_DUP_ENTRY", "message": "Duplicate"})

    async def later(self, report_id):
        return {"id": report_id}

    def _private(self):
        return None

    name = "reports"


@pytest.fixture
def controller(context):
    return ReportController(context)


def test_requires_request_context():
    with pytest.raises(TypeError):
        Controller(object())
    with pytest.raises(TypeError):
        ApiRepository({"request": None})


def test_repository_shares_context_logger(context):
    repository = ApiRepository(context, models={"reports": []})
    assert repository.logger is context.logger
    assert repository.models == {"reports": []}


def test_respond_ok_defaults_to_empty_object(controller):
    controller.respond_ok()
    assert controller.response.status_code == 200
    assert controller.response.get_json() == {}


def test_respond_not_found(controller):
    controller.respond_not_found({"missing": "report"})
    assert controller.response.status_code == 404


@pytest.mark.parametrize(
    ("result", "fallback", "status"),
    [
        ({"code": 418}, 500, 418),
        ({}, 500, 500),
        (None, 503, 503),
        (ApplicationError.forbidden(), 500, 403),
    ],
)
def test_respond_error_status(controller, result, fallback, status):
    controller.respond_error(result, fallback)
    assert controller.response.status_code == status


def test_respond_error_serialises_application_error(controller):
    controller.respond_error(ApplicationError.not_found("No report"))
    assert controller.response.get_json() == {"code": 404, "message": "No report"}


def test_send_response_leaves_body_alone(controller):
    controller.send_response("plain", 202)
    assert controller.response.status_code == 202
    assert controller.response.get_data(as_text=True) == "plain"


def test_send_file(controller, tmp_path):
    report = tmp_path / "report.csv"
    report.write_text("a,b\n1,2\n")
    controller.send_file(report, "monthly report.csv")
    response = controller.response
    assert response.get_data() == b"a,b\n1,2\n"
    assert response.headers["Content-Disposition"] == (
        "attachment; filename=\"monthly%20report.csv\"; "
        "filename*=UTF-8''monthly%20report.csv"
    )


def test_send_missing_file(controller, tmp_path):
    with pytest.raises(ApplicationError) as info:
        controller.send_file(tmp_path / "nothing.csv")
    assert info.value.code == 404


def test_send_file_as_stream(controller):
    controller.send_file_as_stream(iter([b"PK", "rest"]))
    response = controller.response
    assert response.headers["Content-Type"].startswith(
        "application/vnd.openxmlformats-officedocument"
    )
    assert 'filename="data.xlsx"' in response.headers["Content-Disposition"]
    assert response.get_data() == b"PKrest"


def test_resolve_rejects_unknown_private_and_non_callable():
    factory = ControllerFactory(ReportController)
    assert factory.resolve("explode") is ReportController.explode
    for name in ("missing", "_private", "name"):
        with pytest.raises(AttributeError):
            factory.resolve(name)


def test_logger_name_drops_controller_suffix():
    assert ControllerFactory(ReportController).logger_name == "Report"


def test_create_context_uses_named_logger(request_factory):
    context = ControllerFactory(ReportController).create_context(request_factory())
    assert isinstance(context, RequestContext)
    assert context.logger.name == "Report"


def test_route_application_error_becomes_json(request_factory, recorder):
    handler = ControllerFactory(ReportController).route("explode")
    request = request_factory()
    handler(request, request.response, recorder)
    assert request.response.status_code == 409
    assert request.response.get_json()["message"] == "Already exported"
    assert not recorder.called


def test_route_other_errors_go_to_next(request_factory, recorder):
    handler = ControllerFactory(ReportController).route("crash")
    request = request_factory()
    handler(request, request.response, recorder)
    assert isinstance(recorder.calls[0], RuntimeError)
    assert not request.response.headers_sent


def test_route_return_value_ignored_once_responded(request_factory, recorder):
    handler = ControllerFactory(ReportController).route("quiet")
    request = request_factory()
    handler(request, request.response, recorder)
    assert request.response.get_json() == {"responded": True}


def test_route_awaits_coroutine_methods(request_factory, recorder):
    handler = ControllerFactory(ReportController).route("later", ":id")
    request = request_factory()
    request.params = {"id": 3}
    handler(request, request.response, recorder)
    assert request.response.get_json() == {"id": 3}
    assert handler.__qualname__ == "ReportController.later"


def test_route_construction_failure(request_factory, recorder):
    class Failing(Controller):
        def __init__(self, context):
            raise ApplicationError.unauthorized()

        def index(self):
            return None

    handler = ControllerFactory(Failing).route("index")
    request = request_factory()
    handler(request, request.response, recorder)
    assert request.response.status_code == 401


def test_non_numeric_error_code_becomes_500(app, client, captured):
    app.get("/reports/dup", ControllerFactory(ReportController).route("duplicate"))
    response = client.get("/reports/dup")
    assert response.status_code == 500
    assert response.get_json()["code"] == 500

"""
Tests for api/responses.py - ResponseBuilder.
"""
import json
from datetime import datetime, timezone

import pytest
from starlette.requests import Request

from domain.errors import DomainError


def _request(path="/api/things", method="GET"):
    return Request({
        "type": "http",
        "method": method,
        "path": path,
        "query_string": b"",
        "headers": [],
    })


def _body(response):
    return json.loads(response.body)


def _log_lines(stream):
    return [json.loads(line) for line in stream.getvalue().splitlines()]


class TestSuccessResponses:
    """Tests for the non-error responses."""

    def test_success(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).success({"id": 1})

        assert response.status_code == 200
        assert response.media_type == "application/json"
        assert _body(response) == {"id": 1}

    def test_success_encodes_datetimes(self, logger_service):
        from api.responses import ResponseBuilder

        moment = datetime(2025, 8, 12, 10, 0, tzinfo=timezone.utc)
        response = ResponseBuilder(logger_service).success({"at": moment})

        assert _body(response) == {"at": "2025-08-12T10:00:00+00:00"}

    def test_created(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).created({"id": "demo-123"})

        assert response.status_code == 201

    def test_text(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).text("plain")

        assert response.body == b"plain"
        assert response.media_type == "text/plain"

    def test_html(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).html("<p>hi</p>", status_code=202)

        assert response.status_code == 202
        assert response.media_type == "text/html"


class TestErrorResponses:
    """Tests for error bodies and category mapping."""

    def test_error_body_shape(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).bad_request("nope")

        assert response.status_code == 400
        assert _body(response) == {"error": {"status": 400, "message": "nope"}}

    def test_not_found_default_message(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).not_found()

        assert _body(response) == {"error": {"status": 404, "message": "Not Found"}}

    def test_internal_server_error_hides_details_and_logs(self, logger_service, log_stream):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).internal_server_error(
            RuntimeError("secret detail"), _request("/api/boom", "POST")
        )

        assert response.status_code == 500
        assert _body(response) == {"error": {"status": 500, "message": "Internal Server Error"}}
        [line] = _log_lines(log_stream)
        assert line["level"] == "error"
        assert line["error"] == {"type": "RuntimeError", "message": "secret detail"}
        assert line["method"] == "POST"
        assert line["path"] == "/api/boom"

    def test_domain_error_maps_to_400(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).error(DomainError("Name must not be empty"), _request())

        assert response.status_code == 400
        assert _body(response)["error"]["message"] == "Name must not be empty"

    def test_unknown_error_maps_to_500(self, logger_service):
        from api.responses import ResponseBuilder

        response = ResponseBuilder(logger_service).error(KeyError("x"))

        assert response.status_code == 500

    def test_custom_categories(self, logger_service):
        from api.responses import ErrorCategory, ResponseBuilder

        builder = ResponseBuilder(logger_service, error_categories=[
            ErrorCategory(status_code=404, error_types=(LookupError,), expose_message=False),
            ErrorCategory(status_code=503, error_types=(ConnectionError,)),
        ])

        not_found = builder.error(KeyError("internal key"))
        unavailable = builder.error(ConnectionError("db down"))

        assert not_found.status_code == 404
        assert _body(not_found)["error"]["message"] == ""
        assert unavailable.status_code == 500

    def test_error_categories_copy(self, logger_service):
        from api.responses import ResponseBuilder

        builder = ResponseBuilder(logger_service)
        builder.error_categories.clear()

        assert len(builder.error_categories) == 1


@pytest.mark.parametrize("error,expected", [
    (DomainError("bad"), True),
    (ValueError("bad"), False),
])
def test_default_category_matches_domain_errors(error, expected):
    from api.responses import default_error_categories

    [category] = default_error_categories()

    assert category.status_code == 400
    assert category.matches(error) is expected

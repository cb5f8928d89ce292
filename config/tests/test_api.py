import json
import logging
from unittest.mock import patch

import pytest
from config.logging import JsonFormatter
from rest_framework.test import APIClient

pytestmark = pytest.mark.django_db


def test_health_reports_database_and_directory():
    resp = APIClient().get("/health/")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok", "database": "ok", "directory": "disabled"}


def test_unexpected_errors_become_generic_500():
    client = APIClient(raise_request_exception=False)
    with patch("users.services.AuthFlow.login", side_effect=RuntimeError("db exploded at row 7")):
        resp = client.post("/api/v1/auth/login/", {"email": "a@x.com", "password": "Abc123!@"}, format="json")
    assert resp.status_code == 500
    assert resp.json() == {"detail": "Something went wrong."}
    assert "exploded" not in resp.content.decode()


def test_json_formatter_merges_dict_messages_and_extras():
    record = logging.LogRecord("auth", logging.INFO, __file__, 1, {"action": "login", "status": "success"}, None, None)
    record.user_id = 5
    payload = json.loads(JsonFormatter().format(record))
    assert payload["action"] == "login"
    assert payload["status"] == "success"
    assert payload["user_id"] == 5
    assert payload["level"] == "INFO"
    assert payload["time"].endswith("Z")


def test_unexpected_errors_are_logged_with_request_path(caplog):
    client = APIClient(raise_request_exception=False)
    with caplog.at_level(logging.ERROR, logger="videochat.api"):
        with patch("users.services.AuthFlow.login", side_effect=RuntimeError("boom")):
            client.post("/api/v1/auth/login/", {"email": "a@x.com", "password": "Abc123!@"}, format="json")
    record = next(r for r in caplog.records if r.getMessage() == "api.unhandled_error")
    assert record.path == "/api/v1/auth/login/"
    assert record.method == "POST"
    assert record.exc_info is not None

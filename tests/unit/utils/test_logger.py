"""Structlog processor tests."""

import pytest
import structlog
from starlette.requests import Request

from clipforge.utils.logger import (
    REDACTED,
    add_request_context,
    get_client_ip,
    redact_secrets,
)


@pytest.fixture(autouse=True)
def clean_contextvars():
    structlog.contextvars.clear_contextvars()
    yield
    structlog.contextvars.clear_contextvars()


def make_request(headers: dict | None = None, client=("10.0.0.5", 5000)) -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in (headers or {}).items()],
        "client": client,
    }
    return Request(scope)


def test_redact_secrets():
    event = redact_secrets(
        None,
        "info",
        {"event": "calling provider", "api_key": "r8_live", "Authorization": "Bearer x"},
    )

    assert event == {
        "event": "calling provider",
        "api_key": REDACTED,
        "Authorization": REDACTED,
    }


def test_request_context_is_added():
    structlog.contextvars.bind_contextvars(request_id="req-1", user_id="auth0|u")

    event = add_request_context(None, "info", {"event": "debit"})

    assert event["request_id"] == "req-1"
    assert event["user_id"] == "auth0|u"
    assert "ip_address" not in event


def test_request_method_and_path_are_added():
    structlog.contextvars.bind_contextvars(method="POST", path="/generate")

    event = add_request_context(None, "info", {"event": "Credits debited"})

    assert event["method"] == "POST"
    assert event["path"] == "/generate"


def test_explicit_fields_win_over_context():
    structlog.contextvars.bind_contextvars(user_id="auth0|caller")

    event = add_request_context(None, "info", {"event": "credit", "user_id": "auth0|buyer"})

    assert event["user_id"] == "auth0|buyer"


@pytest.mark.parametrize(
    "headers, client, expected",
    [
        ({"X-Forwarded-For": "203.0.113.9, 10.0.0.1"}, ("10.0.0.5", 1), "203.0.113.9"),
        ({}, ("10.0.0.5", 1), "10.0.0.5"),
        ({}, None, "127.0.0.1"),
    ],
)
def test_get_client_ip(headers, client, expected):
    assert get_client_ip(make_request(headers, client)) == expected

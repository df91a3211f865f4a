import logging

import structlog

from deeplink_auth.core.logging import REDACTED, configure_logging, redact_sensitive_values


def test_secret_values_are_redacted():
    event = {
        "event": "oauth_callback",
        "state": "a" * 64,
        "code": "auth-code",
        "Token": "jwt",
        "password": "Str0ngPass",
        "redirect_to": "/competition/private",
        "kind": "invalid_state",
    }

    result = redact_sensitive_values(None, "info", event)

    assert result["state"] == REDACTED
    assert result["code"] == REDACTED
    assert result["Token"] == REDACTED
    assert result["password"] == REDACTED
    assert result["redirect_to"] == REDACTED
    assert result["kind"] == "invalid_state"
    assert result["event"] == "oauth_callback"


def test_none_values_are_left_alone():
    result = redact_sensitive_values(None, "info", {"event": "x", "token": None})
    assert result["token"] is None


def test_configure_logging_installs_redaction(caplog):
    caplog.set_level(logging.INFO)
    configure_logging(log_level="INFO", json_logs=True)
    try:
        structlog.get_logger("redaction-check").info("state_check", state="b" * 64, flow_state="sent")
        assert "state_check" in caplog.text
        assert "sent" in caplog.text
        assert "b" * 64 not in caplog.text
    finally:
        structlog.reset_defaults()

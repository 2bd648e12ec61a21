"""Tests for log redaction."""

from authguard.core.logging import mask_account, redact_sensitive_data, redact_string


def test_redacts_sensitive_fields():
    event = {
        "event": "login attempt",
        "password": "hunter2",
        "captcha_token": "abc",
        "recaptcha_secret": "s3cr3t",
    }

    redacted = redact_sensitive_data(None, "info", event)

    assert redacted["password"] == "***REDACTED***"
    assert redacted["captcha_token"] == "***REDACTED***"
    assert redacted["recaptcha_secret"] == "***REDACTED***"
    assert redacted["event"] == "login attempt"


def test_redaction_does_not_mutate_input():
    event = {"password": "hunter2"}

    redact_sensitive_data(None, "info", event)

    assert event["password"] == "hunter2"


def test_masks_email_values():
    redacted = redact_sensitive_data(None, "info", {"account": "alice@example.com"})
    assert redacted["account"] == "a***@example.com"


def test_masks_long_opaque_tokens():
    value = "03AFcWeA7x9Kq2Lm4Np6Rt8Vw0Yz1Bc3De5"
    assert redact_string(value) == f"{value[:8]}...{value[-4:]}"
    assert redact_string(value).startswith(value[:8])
    assert redact_string(value).endswith(value[-4:])
    assert value not in redact_string(value)


def test_leaves_short_values_alone():
    assert redact_string("login") == "login"
    assert redact_string("127.0.0.1") == "127.0.0.1"


def test_mask_account():
    assert mask_account("bob@corp.example") == "b***@corp.example"

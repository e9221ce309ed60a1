"""Tests for JSON log output and secret redaction."""

import io
import json
import logging
import uuid

import pytest

from portal.logger import REDACTED, StructuredLogger, redact
from portal.utils.audit import log_audit_event


@pytest.fixture
def stream():
    return io.StringIO()


@pytest.fixture
def json_logger(stream):
    """A console-only logger with a unique name, so handlers are fresh."""
    return StructuredLogger(
        name=f"test-{uuid.uuid4().hex}", level=logging.DEBUG, stream=stream, log_file="",
    )


def last_record(stream: io.StringIO) -> dict:
    return json.loads(stream.getvalue().splitlines()[-1])


class TestJSONOutput:
    """Tests for the record shape."""

    def test_event_is_promoted(self, json_logger, stream):
        """The ``event`` tag sits at the top level, other fields under ``extra``."""
        json_logger.info(
            "Code dispatched", extra={"event": "OTP_SENT", "email": "ana@town.example"},
        )

        record = last_record(stream)
        assert record["message"] == "Code dispatched"
        assert record["level"] == "INFO"
        assert record["event"] == "OTP_SENT"
        assert record["extra"] == {"email": "ana@town.example"}

    def test_exception_is_included(self, json_logger, stream):
        try:
            raise RuntimeError("backend down")
        except RuntimeError:
            json_logger.error("Sign-in crashed", exc_info=True)

        assert "backend down" in last_record(stream)["exception"]

    def test_level_threshold(self, stream):
        """Records below the configured level are dropped."""
        quiet = StructuredLogger(
            name=f"test-{uuid.uuid4().hex}", level=logging.WARNING, stream=stream, log_file="",
        )

        quiet.info("not shown")

        assert stream.getvalue() == ""


class TestRedaction:
    """Tests for masking of passwords, codes and tokens."""

    def test_sensitive_extra_fields_are_masked(self, json_logger, stream):
        """Codes and passwords never reach the output."""
        json_logger.info(
            "Verification attempt",
            extra={"email": "ana@town.example", "code": "482913", "password": "hunter22"},
        )

        output = stream.getvalue()
        assert "482913" not in output
        assert "hunter22" not in output
        extra = last_record(stream)["extra"]
        assert extra["code"] == REDACTED
        assert extra["password"] == REDACTED
        assert extra["email"] == "ana@town.example"

    def test_nested_values_are_masked(self, json_logger, stream):
        """Secrets inside structured payloads are masked too."""
        json_logger.info(
            "Backend session", extra={"session": {"access_token": "eyJabc", "uid": "user-1"}},
        )

        session = last_record(stream)["extra"]["session"]
        assert session == {"access_token": REDACTED, "uid": "user-1"}

    def test_audit_details_are_masked(self, json_logger, stream):
        """Audit lines carry their details in the message; those are scrubbed."""
        log_audit_event(
            logger=json_logger,
            action="PASSWORD_CHANGED",
            entity_type="Profile",
            entity_id="user-1",
            user_id="user-1",
            details={"new_password": "hunter22", "field": "password"},
        )

        output = stream.getvalue()
        assert "hunter22" not in output
        assert '"field": "password"' in last_record(stream)["message"]

    def test_redact_is_case_insensitive_and_recursive(self):
        assert redact({"Token": "t", "items": [{"otp": "1"}, "plain"]}) == {
            "Token": REDACTED,
            "items": [{"otp": REDACTED}, "plain"],
        }

"""Tests for application configuration."""

import pytest
from pydantic import ValidationError

from portal.config import AppConfig


class TestAppConfig:
    """Tests for ``AppConfig`` defaults and validation."""

    def test_defaults(self, monkeypatch):
        """Timeouts and OTP limits have their documented defaults."""
        for key in (
            "ADMIN_INACTIVITY_TIMEOUT_S",
            "NATIVE_INACTIVITY_TIMEOUT_S",
            "OTP_TTL_SECONDS",
            "OTP_MAX_ATTEMPTS",
            "PORTAL_ENTRY_AREA",
        ):
            monkeypatch.delenv(key, raising=False)

        config = AppConfig(_env_file=None)

        assert config.ADMIN_INACTIVITY_TIMEOUT_S == 20 * 60
        assert config.NATIVE_INACTIVITY_TIMEOUT_S == 30 * 60
        assert config.OTP_TTL_SECONDS == 600
        assert config.OTP_MAX_ATTEMPTS == 5
        assert config.PORTAL_ENTRY_AREA == "native"

    def test_reads_environment(self, monkeypatch):
        """Values come from environment variables."""
        monkeypatch.setenv("NATIVE_INACTIVITY_TIMEOUT_S", "60")
        monkeypatch.setenv("PORTAL_ENTRY_AREA", "admin")

        config = AppConfig(_env_file=None)

        assert config.NATIVE_INACTIVITY_TIMEOUT_S == 60
        assert config.PORTAL_ENTRY_AREA == "admin"

    def test_zero_disables_otp_limits(self):
        """Zero is accepted for the OTP limits."""
        config = AppConfig(_env_file=None, OTP_TTL_SECONDS=0, OTP_MAX_ATTEMPTS=0)

        assert config.OTP_TTL_SECONDS == 0

    @pytest.mark.parametrize(
        "overrides",
        [
            {"NATIVE_INACTIVITY_TIMEOUT_S": 0},
            {"OTP_MAX_ATTEMPTS": -1},
            {"PORTAL_ENTRY_AREA": "citizen"},
        ],
    )
    def test_rejects_invalid_values(self, overrides):
        """Out-of-range settings fail at startup."""
        with pytest.raises(ValidationError):
            AppConfig(_env_file=None, **overrides)

    def test_secrets_are_masked(self):
        """Keys and passwords do not leak through ``repr``."""
        config = AppConfig(_env_file=None, SUPABASE_ANON_KEY="anon-key", MAIL_PASSWORD="pw")

        assert "anon-key" not in repr(config)
        assert config.SUPABASE_ANON_KEY.get_secret_value() == "anon-key"

    def test_validate_email_config(self):
        """Sending mail requires a username and password."""
        with pytest.raises(ValueError):
            AppConfig(_env_file=None, MAIL_USERNAME="", MAIL_PASSWORD="").validate_email_config()

        AppConfig(
            _env_file=None, MAIL_USERNAME="portal@town.example", MAIL_PASSWORD="pw",
        ).validate_email_config()

"""Tests for outbound mail (verification codes and back-office alerts)."""

import smtplib
from unittest.mock import patch

import pytest

from portal.config import AppConfig
from portal.services.email_service import EmailService


@pytest.fixture
def config():
    return AppConfig(
        _env_file=None,
        MAIL_SERVER="smtp.town.example",
        MAIL_PORT=2525,
        MAIL_USERNAME="portal@town.example",
        MAIL_PASSWORD="app-password",
        MAIL_ADMIN_RECIPIENT="clerk@town.example",
    )


class TestSendOtpCode:
    """Tests for the OTP channel."""

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_sends_code_to_recipient(self, mock_smtp, config, logger):
        """The code is delivered in the body to the signing-in address."""
        service = EmailService(logger, config)

        assert service.send_otp_code("ana@town.example", "482913", "Ana") is True

        mock_smtp.assert_called_once_with("smtp.town.example", 2525)
        smtp = mock_smtp.return_value
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("portal@town.example", "app-password")
        message = smtp.send_message.call_args.args[0]
        assert message["To"] == "ana@town.example"
        assert "482913" in message.get_content()
        smtp.quit.assert_called_once()

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_code_is_not_logged(self, mock_smtp, config, logger):
        """Neither log lines nor audit events contain the code."""
        EmailService(logger, config).send_otp_code("ana@town.example", "482913", "Ana")

        assert "482913" not in str(logger.mock_calls)

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_smtp_failure_returns_false(self, mock_smtp, config, logger):
        """SMTP errors are reported as a failed send, never raised."""
        mock_smtp.return_value.send_message.side_effect = smtplib.SMTPException("421")

        assert EmailService(logger, config).send_otp_code("a@town.example", "111111", "A") is False

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_unreachable_server_returns_false(self, mock_smtp, config, logger):
        """Connection errors are handled the same way."""
        mock_smtp.side_effect = ConnectionRefusedError()

        assert EmailService(logger, config).send_otp_code("a@town.example", "111111", "A") is False

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_missing_credentials(self, mock_smtp, logger):
        """Without mail credentials nothing is attempted."""
        service = EmailService(logger, AppConfig(_env_file=None, MAIL_USERNAME=""))

        assert service.send_otp_code("a@town.example", "111111", "A") is False
        mock_smtp.assert_not_called()


class TestAdminAlert:
    """Tests for back-office alerts."""

    @patch("portal.services.email_service.smtplib.SMTP")
    def test_goes_to_configured_recipient(self, mock_smtp, config, logger):
        """Alerts are sent to ``MAIL_ADMIN_RECIPIENT``."""
        result = EmailService(logger, config).send_admin_alert("New registration", "Nora")

        assert result.success
        message = mock_smtp.return_value.send_message.call_args.args[0]
        assert message["To"] == "clerk@town.example"

    def test_without_recipient(self, config, logger):
        """No recipient configured means no alert."""
        config.MAIL_ADMIN_RECIPIENT = ""

        assert not EmailService(logger, config).send_admin_alert("s", "b").success

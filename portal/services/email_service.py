"""
Email Notification Service.

Handles all outbound mail for the portal: the sign-in verification code
and back-office alerts.  Sends synchronously via SMTP with structured
audit logging for every attempt.

Architectural notes:
    - Configuration sourced from the injected AppConfig (defaults to the
      ``get_config()`` singleton).
    - Email config validated lazily on first send (instance-level flag).
    - Verification codes never appear in logs or audit events.
"""

from __future__ import annotations

import smtplib
from email.message import EmailMessage
from typing import Optional, Union

from portal.config import AppConfig, get_config
from portal.logger import StructuredLogger
from portal.models.service_models import ServiceResult
from portal.services.base_service import BaseService
from portal.utils.audit import log_audit_event

_PORTAL_NAME: str = "Town Portal"


class EmailService(BaseService):
    """Service for composing and sending portal email.

    Implements the OTP channel contract through :meth:`send_otp_code`.
    """

    def __init__(
        self,
        logger: StructuredLogger,
        config: Optional[AppConfig] = None,
    ) -> None:
        super().__init__(logger)
        self._config: AppConfig = config or get_config()
        self._validated: bool = False

    # ------------------------------------------------------------------
    # Core send method
    # ------------------------------------------------------------------

    def send_email(
        self,
        to_addresses: Union[str, list[str]],
        subject: str,
        body_text: str,
    ) -> ServiceResult:
        """
        Compose and send an email synchronously via SMTP.

        Validates email configuration on first invocation (lazy, one-time).
        Returns a ServiceResult indicating success or failure so callers
        can react without catching exceptions.
        """
        config = self._config

        if not self._validated:
            try:
                config.validate_email_config()
                self._validated = True
            except ValueError as exc:
                self._logger.error("Email configuration error: %s", exc)
                return ServiceResult(
                    success=False,
                    error=f"Email configuration error: {exc}",
                    status_code=500,
                )

        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = config.MAIL_USERNAME

        if isinstance(to_addresses, list):
            recipients_str = ", ".join(to_addresses)
        else:
            recipients_str = to_addresses
        msg["To"] = recipients_str

        msg.set_content(body_text)

        log_audit_event(
            logger=self._logger,
            action="EMAIL_SEND_ATTEMPT",
            entity_type="Email",
            entity_id=subject,
            user_id="system",
            details={
                "to": recipients_str,
                "subject": subject,
            },
        )

        return self._dispatch_smtp(msg)

    # ------------------------------------------------------------------
    # Domain-specific helpers
    # ------------------------------------------------------------------

    def send_otp_code(self, email: str, code: str, display_name: str) -> bool:
        """Deliver a sign-in verification code.

        Fire-and-forget: ``True`` means the SMTP server accepted the
        message, not that it was delivered.
        """
        subject = f"{_PORTAL_NAME}: your verification code"
        body = (
            f"Hello {display_name},\n\n"
            f"Your {_PORTAL_NAME} verification code is: {code}\n\n"
            "Enter this code on the sign-in screen to access your account. "
            "If you did not try to sign in, you can ignore this email and "
            "consider changing your password."
        )
        return self.send_email(email, subject, body).success

    def send_admin_alert(self, subject: str, body_text: str) -> ServiceResult:
        """Email the configured back-office recipient."""
        recipient = self._config.MAIL_ADMIN_RECIPIENT
        if not recipient:
            self._logger.warning(
                "MAIL_ADMIN_RECIPIENT not set. Skipping admin alert '%s'.",
                subject,
            )
            return ServiceResult(
                success=False,
                error="Email not configured: missing MAIL_ADMIN_RECIPIENT",
                status_code=500,
            )
        return self.send_email(recipient, subject, body_text)

    # ------------------------------------------------------------------
    # Private helpers
    # ------------------------------------------------------------------

    def _dispatch_smtp(self, msg: EmailMessage) -> ServiceResult:
        """
        Open an SMTP connection, authenticate, send, and close.

        Returns ServiceResult so callers never need to handle raw SMTP
        exceptions.
        """
        config = self._config
        smtp: Optional[smtplib.SMTP] = None
        try:
            smtp = smtplib.SMTP(config.MAIL_SERVER, config.MAIL_PORT)
            smtp.starttls()
            smtp.login(config.MAIL_USERNAME, config.MAIL_PASSWORD.get_secret_value())
            smtp.send_message(msg)

            self._logger.info("Email sent successfully to %s", msg["To"])

            log_audit_event(
                logger=self._logger,
                action="EMAIL_SENT",
                entity_type="Email",
                entity_id=msg["Subject"] or "",
                user_id="system",
                details={
                    "to": msg["To"],
                    "subject": msg["Subject"],
                },
            )

            return ServiceResult(success=True)

        except smtplib.SMTPAuthenticationError as exc:
            self._logger.error(
                "SMTP authentication failed for '%s': %s",
                config.MAIL_USERNAME,
                exc,
            )
            return ServiceResult(
                success=False,
                error=f"SMTP authentication failed: {exc}",
                status_code=500,
            )

        except smtplib.SMTPException as exc:
            self._logger.error("SMTP error sending to %s: %s", msg["To"], exc)
            return ServiceResult(
                success=False,
                error=f"SMTP error: {exc}",
                status_code=500,
            )

        except OSError as exc:
            self._logger.error(
                "Network error connecting to %s:%d: %s",
                config.MAIL_SERVER,
                config.MAIL_PORT,
                exc,
            )
            return ServiceResult(
                success=False,
                error=f"Network error: {exc}",
                status_code=500,
            )

        finally:
            if smtp is not None:
                try:
                    smtp.quit()
                except (smtplib.SMTPException, OSError) as exc:
                    self._logger.debug("SMTP quit failed: %s", exc)

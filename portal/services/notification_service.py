"""
Admin Notification Service.

Alerts the back office about citizen events: stores an unread row in
``admin_notifications`` for the dashboard and emails the configured
admin recipient.  Best effort, like the activity feed.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from portal.logger import StructuredLogger
from portal.models.activity import (
    AdminNotification,
    NotificationType,
    NotificationValue,
)
from portal.repositories.notification_repository import NotificationRepository
from portal.services.base_service import BaseService
from portal.services.email_service import EmailService


class NotificationService(BaseService):
    """Dashboard + email fan-out for back-office alerts."""

    def __init__(
        self,
        notification_repo: NotificationRepository,
        email_service: EmailService,
        logger: StructuredLogger,
    ) -> None:
        super().__init__(logger)
        self._notification_repo = notification_repo
        self._email_service = email_service

    def send_admin_notification(
        self,
        type: NotificationType,
        message: str,
        user_name: Optional[str] = None,
        email: Optional[str] = None,
        details: Optional[dict[str, NotificationValue]] = None,
    ) -> bool:
        """Store and email one notification.

        Returns ``True`` when the dashboard row was written; the email is
        attempted either way and its failure is only logged.
        """
        notification = AdminNotification(
            type=type,
            message=message,
            user_name=user_name,
            email=email,
            details=details or {},
            created_at=datetime.now(timezone.utc),
        )

        stored = True
        try:
            self._notification_repo.insert(notification)
        except Exception as exc:
            stored = False
            self._logger.error(
                "Error storing admin notification (%s): %s", type, exc,
            )

        subject = f"Town Portal: New {str(type).replace('_', ' ').title()} Update"
        lines = [
            "A new activity has been recorded on the portal.",
            "",
            f"Activity type: {str(type).upper()}",
            f"Details: {message or 'Check the admin dashboard for full details.'}",
        ]
        if user_name:
            lines.append(f"User: {user_name}")
        if email:
            lines.append(f"User email: {email}")
        lines += ["", "Sign in to the admin dashboard to take action."]

        result = self._email_service.send_admin_alert(subject, "\n".join(lines))
        if not result.success:
            self._logger.warning(
                "Admin alert email not sent (%s): %s", type, result.error,
            )

        self._logger.info(
            "Admin notification sent for type: %s", type,
            extra={"event": "ADMIN_NOTIFICATION", "type": str(type)},
        )
        return stored

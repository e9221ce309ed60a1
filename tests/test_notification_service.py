"""Tests for the activity feed and back-office notifications."""

from unittest.mock import MagicMock

from portal.models.activity import ActivityType, NotificationType
from portal.models.service_models import ServiceResult
from portal.services.activity_service import ActivityService
from portal.services.notification_service import NotificationService


class TestActivityService:
    """Tests for ``ActivityService``."""

    def test_records_entry(self, logger):
        repo = MagicMock()

        assert ActivityService(repo, logger).log_activity(
            "user-1", "Ana", "Signed in", ActivityType.AUTH,
        )
        activity = repo.insert.call_args.args[0]
        assert activity.action == "Signed in"
        assert activity.created_at is not None

    def test_write_failure_is_swallowed_and_logged(self, logger):
        """The feed is best effort."""
        repo = MagicMock()
        repo.insert.side_effect = OSError("offline")

        assert not ActivityService(repo, logger).log_activity(
            "user-1", "Ana", "Signed in", ActivityType.AUTH,
        )
        logger.error.assert_called_once()


class TestNotificationService:
    """Tests for ``NotificationService``."""

    def test_stores_and_emails(self, logger):
        """A registration alert is stored and mailed."""
        repo = MagicMock()
        email = MagicMock()
        email.send_admin_alert.return_value = ServiceResult(success=True)

        stored = NotificationService(repo, email, logger).send_admin_notification(
            NotificationType.REGISTRATION,
            message="New native registration: Nora Diaz",
            user_name="Nora Diaz",
            email="nora@town.example",
        )

        assert stored
        subject, body = email.send_admin_alert.call_args.args
        assert subject == "Town Portal: New Registration Update"
        assert "nora@town.example" in body

    def test_email_is_sent_even_if_store_fails(self, logger):
        """The two channels are independent."""
        repo = MagicMock()
        repo.insert.side_effect = OSError("offline")
        email = MagicMock()
        email.send_admin_alert.return_value = ServiceResult(success=False, error="smtp")

        stored = NotificationService(repo, email, logger).send_admin_notification(
            NotificationType.REGISTRATION, message="x",
        )

        assert not stored
        email.send_admin_alert.assert_called_once()
        logger.warning.assert_called_once()

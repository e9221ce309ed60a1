"""Tests for the inactivity watchdog."""

from unittest.mock import MagicMock

import pytest

from portal.services.inactivity import InactivityWatchdog

THIRTY_MINUTES_MS = 30 * 60 * 1000


def make_watchdog(scheduler, logger, activity_source=None, predicate=lambda: True, on_expire=None):
    return InactivityWatchdog(
        scheduler=scheduler,
        timeout_ms=THIRTY_MINUTES_MS,
        arming_predicate=predicate,
        on_expire=on_expire or MagicMock(),
        logger=logger,
        activity_source=activity_source,
        name="native",
    )


class TestTimeout:
    """Tests for firing after the quiet period."""

    def test_fires_at_thirty_minutes(self, scheduler, logger):
        """Nothing happens at 29:59; logout fires at 30:00."""
        on_expire = MagicMock()
        watchdog = make_watchdog(scheduler, logger, on_expire=on_expire)
        watchdog.mount()

        scheduler.advance(THIRTY_MINUTES_MS - 1000)
        on_expire.assert_not_called()

        scheduler.advance(1000)
        on_expire.assert_called_once()

    def test_activity_restarts_countdown(self, scheduler, logger, activity_source):
        """Each interaction schedules a fresh full-length timeout."""
        on_expire = MagicMock()
        watchdog = make_watchdog(scheduler, logger, activity_source, on_expire=on_expire)
        watchdog.mount()

        scheduler.advance(THIRTY_MINUTES_MS - 1)
        activity_source.emit()
        scheduler.advance(THIRTY_MINUTES_MS - 1)
        on_expire.assert_not_called()
        assert scheduler.pending == 1

        scheduler.advance(1)
        on_expire.assert_called_once()

    def test_fires_exactly_once(self, scheduler, logger, activity_source):
        """Activity after expiry does not re-arm or fire again."""
        on_expire = MagicMock()
        watchdog = make_watchdog(scheduler, logger, activity_source, on_expire=on_expire)
        watchdog.mount()

        scheduler.advance(THIRTY_MINUTES_MS)
        activity_source.emit()
        scheduler.advance(THIRTY_MINUTES_MS * 3)

        on_expire.assert_called_once()
        assert not watchdog.is_mounted
        assert activity_source.listeners == []

    def test_handler_error_is_logged(self, scheduler, logger):
        """A failing logout handler does not escape into the event loop."""
        watchdog = make_watchdog(
            scheduler, logger, on_expire=MagicMock(side_effect=RuntimeError("boom")),
        )
        watchdog.mount()

        scheduler.advance(THIRTY_MINUTES_MS)

        logger.error.assert_called_once()

    def test_rejects_non_positive_timeout(self, scheduler, logger):
        """A zero timeout is a configuration error."""
        with pytest.raises(ValueError):
            InactivityWatchdog(scheduler, 0, lambda: True, MagicMock(), logger)


class TestArmingPredicate:
    """Tests for conditional arming."""

    def test_not_armed_while_predicate_false(self, scheduler, logger, activity_source):
        """No timer is scheduled, even on activity, while the predicate fails."""
        on_expire = MagicMock()
        watchdog = make_watchdog(
            scheduler, logger, activity_source, predicate=lambda: False, on_expire=on_expire,
        )
        watchdog.mount()
        activity_source.emit()
        scheduler.advance(THIRTY_MINUTES_MS * 2)

        assert not watchdog.is_armed
        on_expire.assert_not_called()

    def test_reevaluate_arms_once_predicate_holds(self, scheduler, logger):
        """A mounted idle watchdog arms when its predicate turns true."""
        allowed = {"value": False}
        watchdog = make_watchdog(scheduler, logger, predicate=lambda: allowed["value"])
        watchdog.mount()
        assert not watchdog.is_armed

        allowed["value"] = True
        watchdog.reevaluate()

        assert watchdog.is_armed

    def test_reevaluate_disarms_when_predicate_fails(self, scheduler, logger):
        """An armed watchdog cancels its timer when the predicate turns false."""
        allowed = {"value": True}
        watchdog = make_watchdog(scheduler, logger, predicate=lambda: allowed["value"])
        watchdog.mount()

        allowed["value"] = False
        watchdog.reevaluate()

        assert not watchdog.is_armed
        assert scheduler.pending == 0

    def test_reevaluate_keeps_running_countdown(self, scheduler, logger):
        """Re-checking a still-valid predicate does not restart the timer."""
        on_expire = MagicMock()
        watchdog = make_watchdog(scheduler, logger, on_expire=on_expire)
        watchdog.mount()

        scheduler.advance(THIRTY_MINUTES_MS - 1)
        watchdog.reevaluate()
        scheduler.advance(1)

        on_expire.assert_called_once()

    def test_predicate_error_means_not_armed(self, scheduler, logger):
        """A raising predicate is logged and treated as false."""
        watchdog = make_watchdog(
            scheduler, logger, predicate=MagicMock(side_effect=KeyError("role")),
        )
        watchdog.mount()

        assert not watchdog.is_armed
        logger.error.assert_called_once()


class TestLifecycle:
    """Tests for mount / unmount."""

    def test_unmount_cancels_pending_callback(self, scheduler, logger, activity_source):
        """Leaving the area cancels the timer and stops listening."""
        on_expire = MagicMock()
        watchdog = make_watchdog(scheduler, logger, activity_source, on_expire=on_expire)
        watchdog.mount()

        watchdog.unmount()
        scheduler.advance(THIRTY_MINUTES_MS)

        on_expire.assert_not_called()
        assert scheduler.pending == 0
        assert activity_source.listeners == []

    def test_mount_and_unmount_are_idempotent(self, scheduler, logger, activity_source):
        """Repeated calls never leave more than one timer or listener."""
        watchdog = make_watchdog(scheduler, logger, activity_source)

        watchdog.mount()
        watchdog.mount()
        assert scheduler.pending == 1
        assert len(activity_source.listeners) == 1

        watchdog.unmount()
        watchdog.unmount()
        assert scheduler.pending == 0

    def test_activity_ignored_when_unmounted(self, scheduler, logger):
        """Notifications before mount do not arm the timer."""
        watchdog = make_watchdog(scheduler, logger)

        watchdog.notify_activity()

        assert not watchdog.is_armed

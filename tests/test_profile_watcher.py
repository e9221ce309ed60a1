"""Tests for the observable profile source."""

from unittest.mock import MagicMock

from portal.models.enums import ApprovalStatus, ProfileLoad
from portal.services.profile_watcher import ProfileWatcher
from tests.conftest import make_profile


def make_watcher(profile_repo, logger):
    return ProfileWatcher(profile_repo, logger, interval_s=0.01, autostart=False)


class TestProfileWatcher:
    """Tests for ``ProfileWatcher`` driven through ``poll()``."""

    def test_emits_loading_then_value(self, profile_repo, logger):
        """Subscribers see LOADING first, then the row."""
        watcher = make_watcher(profile_repo, logger)
        states = []

        watcher.watch("user-1", states.append)
        watcher.poll()

        assert [s.load for s in states] == [ProfileLoad.LOADING, ProfileLoad.VALUE]
        assert states[-1].profile.uid == "user-1"

    def test_missing_row_is_none(self, profile_repo, logger):
        """No row settles to NONE rather than staying in LOADING."""
        profile_repo.get_by_id.return_value = None
        watcher = make_watcher(profile_repo, logger)
        states = []

        watcher.watch("user-1", states.append)
        watcher.poll()

        assert states[-1].load == ProfileLoad.NONE
        assert watcher.current("user-1").load == ProfileLoad.NONE

    def test_pushes_only_changes(self, profile_repo, logger):
        """Unchanged rows are not re-emitted; an approval is."""
        profile_repo.get_by_id.return_value = make_profile(status=ApprovalStatus.PENDING)
        watcher = make_watcher(profile_repo, logger)
        states = []
        watcher.watch("user-1", states.append)

        watcher.poll()
        watcher.poll()
        profile_repo.get_by_id.return_value = make_profile(status=ApprovalStatus.APPROVED)
        watcher.poll()

        assert len(states) == 3
        assert states[-1].profile.status == ApprovalStatus.APPROVED

    def test_failed_read_keeps_last_state(self, profile_repo, logger):
        """A transient error must not look like a deleted profile."""
        watcher = make_watcher(profile_repo, logger)
        states = []
        watcher.watch("user-1", states.append)
        watcher.poll()

        profile_repo.get_by_id.side_effect = OSError("timeout")
        watcher.poll()

        assert len(states) == 2
        assert watcher.current("user-1").load == ProfileLoad.VALUE
        logger.warning.assert_called_once()

    def test_unsubscribe_stops_updates(self, profile_repo, logger):
        """After unsubscribing, nothing more arrives and the cache is dropped."""
        watcher = make_watcher(profile_repo, logger)
        callback = MagicMock()
        unsubscribe = watcher.watch("user-1", callback)

        unsubscribe()
        unsubscribe()
        watcher.poll()

        callback.assert_called_once()
        assert watcher.current("user-1").is_loading
        profile_repo.get_by_id.assert_not_called()

    def test_late_subscriber_gets_last_state(self, profile_repo, logger):
        """A second watcher of the same uid starts from the cached value."""
        watcher = make_watcher(profile_repo, logger)
        watcher.watch("user-1", MagicMock())
        watcher.poll()
        states = []

        watcher.watch("user-1", states.append)

        assert states[0].load == ProfileLoad.VALUE

    def test_subscriber_error_is_logged(self, profile_repo, logger):
        """One failing callback does not stop the others."""
        watcher = make_watcher(profile_repo, logger)
        good = MagicMock()
        watcher.watch("user-1", MagicMock(side_effect=RuntimeError("ui gone")))
        watcher.watch("user-1", good)

        watcher.poll()

        assert good.call_count == 2
        assert logger.error.called

    def test_start_and_stop(self, profile_repo, logger):
        """The daemon thread starts once and stops cleanly."""
        watcher = make_watcher(profile_repo, logger)

        watcher.start()
        watcher.start()
        assert watcher.is_running

        watcher.stop()
        assert not watcher.is_running

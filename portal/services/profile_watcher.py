"""
Profile Watcher Service.

Single observable source for the signed-in user's profile.  Consumers
(the shell, the guards, the profile screen) subscribe with
:meth:`ProfileWatcher.watch` and receive a ``ProfileState``:

- ``LOADING`` immediately on subscribe, until the first read settles;
- ``NONE`` when no ``profiles`` row exists for the uid;
- ``VALUE`` with the current profile otherwise.

The synchronous Supabase client has no realtime channel, so a daemon
thread re-reads each watched row at ``interval_s`` and pushes a new
state only when the row changed.  An approval decision made in the back
office therefore reaches an open pending-approval screen without a
manual reload.  :meth:`refresh` wakes the thread early, e.g. after the
user edited their own profile.

Follows the daemon-thread lifecycle of the other background services:
:meth:`start` / :meth:`stop`, with a top-level ``try/except`` so an
unexpected error is logged instead of silently killing the thread.

Callbacks run on the watcher thread; UI consumers marshal them onto the
Tk main loop themselves (``widget.after(0, ...)``).
"""

from __future__ import annotations

import threading
from typing import Callable, Optional

from portal.logger import StructuredLogger
from portal.models.profile import ProfileState
from portal.repositories.profile_repository import ProfileRepository
from portal.services.base_service import BaseService

ProfileCallback = Callable[[ProfileState], None]


class ProfileWatcher(BaseService):
    """Polling push source of ``ProfileState`` per uid.

    Parameters
    ----------
    profile_repo:
        Reads ``profiles`` rows.
    logger:
        Structured JSON logger.
    interval_s:
        Seconds between reads of every watched row.
    autostart:
        Start the thread on the first :meth:`watch`.  Tests pass
        ``False`` and drive :meth:`poll` directly.
    """

    def __init__(
        self,
        profile_repo: ProfileRepository,
        logger: StructuredLogger,
        interval_s: float = 5.0,
        autostart: bool = True,
    ) -> None:
        super().__init__(logger)
        self._profile_repo = profile_repo
        self._interval_s = interval_s
        self._autostart = autostart

        self._lock = threading.RLock()
        self._subscribers: dict[str, list[ProfileCallback]] = {}
        self._states: dict[str, ProfileState] = {}

        self._thread: Optional[threading.Thread] = None
        self._stop_event: threading.Event = threading.Event()
        self._wake_event: threading.Event = threading.Event()

    # ------------------------------------------------------------------
    # Subscription API
    # ------------------------------------------------------------------

    def watch(self, uid: str, callback: ProfileCallback) -> Callable[[], None]:
        """Subscribe *callback* to the profile of *uid*.

        The callback is invoked at once with the last known state
        (``LOADING`` for a uid nobody watched yet).

        Returns
        -------
        Callable[[], None]
            Unsubscribe function; calling it more than once is harmless.
        """
        with self._lock:
            self._subscribers.setdefault(uid, []).append(callback)
            state = self._states.setdefault(uid, ProfileState.loading())

        self._notify_one(callback, state)

        if self._autostart:
            self.start()
            self.refresh()

        def unsubscribe() -> None:
            with self._lock:
                callbacks = self._subscribers.get(uid)
                if callbacks is None or callback not in callbacks:
                    return
                callbacks.remove(callback)
                if not callbacks:
                    del self._subscribers[uid]
                    self._states.pop(uid, None)

        return unsubscribe

    def current(self, uid: str) -> ProfileState:
        """Last state pushed for *uid* (``LOADING`` if never read)."""
        with self._lock:
            return self._states.get(uid, ProfileState.loading())

    def refresh(self) -> None:
        """Ask the watcher thread to re-read every row now."""
        self._wake_event.set()

    def poll(self) -> None:
        """Read every watched row once and push changed states.

        A failed read keeps the previous state: a transient backend
        error must not look like a deleted profile.
        """
        with self._lock:
            uids = list(self._subscribers)

        for uid in uids:
            try:
                profile = self._profile_repo.get_by_id(uid)
            except Exception as exc:
                self._logger.warning(
                    "Profile refresh failed for %s: %s", uid, exc,
                )
                continue

            new_state = ProfileState.of(profile)
            with self._lock:
                if uid not in self._subscribers:
                    continue
                if self._states.get(uid) == new_state:
                    continue
                self._states[uid] = new_state
                callbacks = list(self._subscribers[uid])

            self._logger.debug(
                "Profile changed for %s: %s", uid, new_state.load,
            )
            for callback in callbacks:
                self._notify_one(callback, new_state)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start the watcher on a daemon thread.

        Idempotent: calling ``start()`` while running is a no-op.
        """
        if self._thread is not None and self._thread.is_alive():
            return

        self._stop_event.clear()
        self._thread = threading.Thread(
            target=self._run_loop,
            name="ProfileWatcher",
            daemon=True,
        )
        self._thread.start()
        self._logger.info("Profile watcher started.")

    def stop(self) -> None:
        """Signal the thread to stop and wait up to 10 s for it to exit.

        Safe to call when the watcher is not running.
        """
        if self._thread is None:
            return

        self._stop_event.set()
        self._wake_event.set()
        self._thread.join(timeout=10.0)

        if self._thread.is_alive():
            self._logger.warning(
                "Profile watcher thread did not terminate within 10 s."
            )
        else:
            self._logger.info("Profile watcher stopped.")

        self._thread = None

    @property
    def is_running(self) -> bool:
        """``True`` when the watcher thread is alive."""
        return self._thread is not None and self._thread.is_alive()

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _run_loop(self) -> None:
        try:
            while not self._stop_event.is_set():
                self.poll()
                self._wake_event.wait(timeout=self._interval_s)
                self._wake_event.clear()
        except Exception:
            self._logger.error(
                "Profile watcher thread terminated due to unhandled exception.",
                exc_info=True,
            )

    def _notify_one(self, callback: ProfileCallback, state: ProfileState) -> None:
        try:
            callback(state)
        except Exception:
            self._logger.error("Profile subscriber raised.", exc_info=True)

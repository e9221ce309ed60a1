"""
Inactivity Watchdog.

One parameterised watchdog instantiated per authenticated area (admin
back office, native portal).  It keeps a single pending deferred
callback: every observed user interaction cancels it and schedules a
fresh one with the full timeout.  When the callback fires the watchdog
unmounts itself and invokes ``on_expire`` exactly once.

The watchdog never touches a clock directly.  It schedules through any
object with Tk's ``after(ms, func)`` / ``after_cancel(id)`` pair, so
the application passes its root window and tests pass a manual clock.
Interaction events arrive through an :class:`ActivitySource` (the Tk
adapter binds pointer, key and wheel events application-wide).

Usage::

    watchdog = InactivityWatchdog(
        scheduler=root,
        timeout_ms=30 * 60 * 1000,
        arming_predicate=lambda: True,
        on_expire=handle_timeout,
        logger=logger,
        activity_source=TkActivitySource(root),
        name="native",
    )
    watchdog.mount()      # area shown
    watchdog.unmount()    # area left / logout
"""

from __future__ import annotations

from typing import Callable, Optional, Protocol

from portal.logger import StructuredLogger


class Scheduler(Protocol):
    """Deferred-callback primitive (satisfied by any Tk widget)."""

    def after(self, ms: int, func: Callable[[], None]) -> str:
        ...

    def after_cancel(self, id: str) -> None:
        ...


class ActivitySource(Protocol):
    """Delivers user-interaction notifications to a listener."""

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register *listener*; returns a function that removes it."""
        ...


class InactivityWatchdog:
    """Debounce-to-last-activity logout timer.

    Parameters
    ----------
    scheduler:
        Provides ``after`` / ``after_cancel``.
    timeout_ms:
        Quiet period after which ``on_expire`` fires.
    arming_predicate:
        Checked before every (re)arm; the timer is only scheduled while
        it returns ``True``.
    on_expire:
        Invoked once when the quiet period elapses.  Exceptions are
        logged, never propagated into the event loop.
    logger:
        Structured JSON logger.
    activity_source:
        Optional event feed subscribed on mount and released on unmount.
    name:
        Label used in log records (``"admin"`` / ``"native"``).
    """

    def __init__(
        self,
        scheduler: Scheduler,
        timeout_ms: int,
        arming_predicate: Callable[[], bool],
        on_expire: Callable[[], None],
        logger: StructuredLogger,
        activity_source: Optional[ActivitySource] = None,
        name: str = "inactivity",
    ) -> None:
        if timeout_ms <= 0:
            raise ValueError("timeout_ms must be positive")
        self._scheduler = scheduler
        self._timeout_ms = timeout_ms
        self._arming_predicate = arming_predicate
        self._on_expire = on_expire
        self._logger = logger
        self._activity_source = activity_source
        self._name = name

        self._mounted: bool = False
        self._pending_id: Optional[str] = None
        self._unsubscribe: Optional[Callable[[], None]] = None

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def mount(self) -> None:
        """Start observing activity and arm the timer.  Idempotent."""
        if self._mounted:
            return
        self._mounted = True
        if self._activity_source is not None:
            self._unsubscribe = self._activity_source.subscribe(self.notify_activity)
        self._arm()

    def unmount(self) -> None:
        """Cancel the pending callback and stop observing.  Idempotent."""
        self._mounted = False
        self._cancel()
        if self._unsubscribe is not None:
            unsubscribe, self._unsubscribe = self._unsubscribe, None
            unsubscribe()

    def notify_activity(self) -> None:
        """Restart the countdown from the full timeout."""
        if not self._mounted:
            return
        self._cancel()
        self._arm()

    def reevaluate(self) -> None:
        """Re-check the arming predicate after the session or profile changed.

        Arms a mounted, idle watchdog whose predicate now holds and
        disarms one whose predicate no longer holds.  A running countdown
        is left untouched.
        """
        if not self._mounted:
            return
        if self._pending_id is None:
            self._arm()
            return
        try:
            still_armed = self._arming_predicate()
        except Exception:
            self._logger.error(
                "Arming check failed for %s watchdog.", self._name, exc_info=True,
            )
            still_armed = False
        if not still_armed:
            self._cancel()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def is_armed(self) -> bool:
        """``True`` while a deferred logout is scheduled."""
        return self._pending_id is not None

    @property
    def timeout_ms(self) -> int:
        return self._timeout_ms

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _arm(self) -> None:
        try:
            should_arm = self._arming_predicate()
        except Exception:
            self._logger.error(
                "Arming check failed for %s watchdog.", self._name, exc_info=True,
            )
            should_arm = False
        if not should_arm:
            return
        self._pending_id = self._scheduler.after(self._timeout_ms, self._expire)

    def _cancel(self) -> None:
        if self._pending_id is None:
            return
        pending_id, self._pending_id = self._pending_id, None
        self._scheduler.after_cancel(pending_id)

    def _expire(self) -> None:
        self._pending_id = None
        if not self._mounted:
            return

        # Unmount first: expiry fires once even if activity keeps arriving.
        self.unmount()
        self._logger.info(
            "Inactivity timeout reached (%s).", self._name,
            extra={
                "event": "INACTIVITY_TIMEOUT",
                "area": self._name,
                "timeout_ms": self._timeout_ms,
            },
        )
        try:
            self._on_expire()
        except Exception:
            self._logger.error(
                "Inactivity handler failed for %s watchdog.", self._name,
                exc_info=True,
            )

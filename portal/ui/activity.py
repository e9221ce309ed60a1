"""User-Activity Source for the Tk event loop.

Adapts application-wide Tk input events to the ``ActivitySource``
protocol consumed by ``InactivityWatchdog``.  Pointer presses, pointer
motion, key presses and wheel scrolls all count as activity;
``<ButtonPress>`` also covers X11 wheel buttons 4/5 and touch taps.
"""

from __future__ import annotations

import tkinter as tk
from typing import Callable

from portal.logger import StructuredLogger

_ACTIVITY_SEQUENCES: tuple[str, ...] = (
    "<ButtonPress>",
    "<Motion>",
    "<KeyPress>",
    "<MouseWheel>",
)


class TkActivitySource:
    """Fan out global Tk input events to subscribed listeners.

    The ``bind_all`` handlers are installed once, on the first
    subscription, and stay installed for the life of the root window.
    With no listeners they are a no-op.  ``unbind_all`` is never used
    because it would also remove the wheel bindings CustomTkinter's
    scrollable frames install on the same sequences.

    Parameters
    ----------
    root:
        Any widget of the application; bindings go on the ``all`` tag.
    logger:
        Structured logger instance.
    """

    def __init__(self, root: tk.Misc, logger: StructuredLogger) -> None:
        self._root = root
        self._logger = logger
        self._listeners: list[Callable[[], None]] = []
        self._bound = False

    def subscribe(self, listener: Callable[[], None]) -> Callable[[], None]:
        """Register *listener*; return a callable that removes it."""
        if not self._bound:
            for sequence in _ACTIVITY_SEQUENCES:
                self._root.bind_all(sequence, self._dispatch, add="+")
            self._bound = True
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    @property
    def listener_count(self) -> int:
        return len(self._listeners)

    def _dispatch(self, _event: tk.Event) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as exc:
                self._logger.error("Activity listener failed: %s", exc)

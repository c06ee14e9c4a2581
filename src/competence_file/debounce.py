"""
Trailing-edge debounce timer on the asyncio event loop.

    debouncer = Debouncer(0.8, callback)
    debouncer.trigger()   # starts the quiet window
    debouncer.trigger()   # restarts it; only one callback will run
    debouncer.cancel()    # teardown: the pending callback never runs

The callback runs synchronously on the loop when the window elapses; callers
that need I/O start a task from it.
"""

import asyncio
from typing import Callable, Optional


class Debouncer:
    """Schedule / reset-on-new-event / cancel-on-teardown timer."""

    def __init__(self, delay: float, callback: Callable[[], None]):
        if delay <= 0:
            raise ValueError(f"Debounce delay must be positive, got {delay}")
        self.delay = delay
        self._callback = callback
        self._handle: Optional[asyncio.TimerHandle] = None
        self.trigger_count = 0
        self.fire_count = 0

    @property
    def pending(self) -> bool:
        """True while a trigger is waiting for its quiet window to elapse."""
        return self._handle is not None

    def trigger(self) -> None:
        """
        (Re)start the quiet window.

        Must be called from code running on the event loop.
        """
        loop = asyncio.get_running_loop()
        if self._handle is not None:
            self._handle.cancel()
        self.trigger_count += 1
        self._handle = loop.call_later(self.delay, self._fire)

    def cancel(self) -> bool:
        """
        Drop the pending trigger, if any.

        Returns:
            True if a pending callback was cancelled
        """
        if self._handle is None:
            return False
        self._handle.cancel()
        self._handle = None
        return True

    def fire_now(self) -> bool:
        """Run the pending callback immediately; False if nothing was pending."""
        if self._handle is None:
            return False
        self._handle.cancel()
        self._fire()
        return True

    def _fire(self) -> None:
        self._handle = None
        self.fire_count += 1
        self._callback()

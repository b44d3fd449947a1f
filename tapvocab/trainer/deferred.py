"""
DeferredAdvance - single-slot, cancelable, delayed action.

Armed after a correct answer so the learner sees the solved prompt for a
moment before the queue moves on. The engine is single-threaded: nothing
fires on its own. The controller calls poll() before handling every input
event, and the UI calls it on a refresh timer, so a due action always runs
before any event that arrives after its deadline.

Navigation (skip, go_back, reset) must cancel() before touching the queue.
Otherwise a stale action would advance a second time past a prompt.
"""

import logging
import time
from typing import Callable, Optional


logger = logging.getLogger(__name__)


class DeferredAdvance:
    """Holds at most one pending action with a deadline."""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._action: Optional[Callable[[], None]] = None
        self._deadline: Optional[float] = None

    @property
    def armed(self) -> bool:
        return self._action is not None

    def remaining_ms(self) -> int:
        """Milliseconds until the pending action is due (0 if none)."""
        if self._deadline is None:
            return 0
        return max(0, int(round((self._deadline - self._clock()) * 1000)))

    def schedule(self, delay_ms: int, action: Callable[[], None]):
        """
        Arm one pending action.

        Raises:
            RuntimeError: If an action is already armed
        """
        if self._action is not None:
            raise RuntimeError("A deferred action is already armed")
        self._action = action
        self._deadline = self._clock() + delay_ms / 1000
        logger.debug("Deferred action armed for %d ms", delay_ms)

    def cancel(self) -> bool:
        """Drop the pending action. Returns True if one was armed."""
        if self._action is None:
            return False
        self._action = None
        self._deadline = None
        logger.debug("Deferred action canceled")
        return True

    def poll(self) -> bool:
        """Run the pending action if its deadline has passed."""
        if self._action is None or self._clock() < self._deadline:
            return False
        action = self._action
        # Disarm first so the action may schedule a follow-up.
        self._action = None
        self._deadline = None
        action()
        return True

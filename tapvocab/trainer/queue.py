"""
SessionQueue - Ordered working set of prompts for one exercise run.

Provides:
- Cursor over the prompts, with a COMPLETED sentinel past the end
- Undo history (one go_back per advance/skip)
- Splicing a mastered prompt out of the remaining queue

Invariant: 0 <= cursor <= len(prompts). The cursor only decreases through
go_back(), which restores exactly the cursor saved by the matching advance.
"""

import logging
import random
from typing import Iterable, Optional, Union

from tapvocab.errors import EmptyQueue, NoHistory
from tapvocab.schemas import Prompt


logger = logging.getLogger(__name__)


class _Completed:
    """Sentinel returned by current() once every prompt has been passed."""

    _instance = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "COMPLETED"

    def __bool__(self) -> bool:
        return False


COMPLETED = _Completed()

QueueItem = Union[Prompt, _Completed]


class SessionQueue:
    """Cursor + history over an ordered list of prompts."""

    def __init__(self, prompts: list[Prompt]):
        self._prompts = list(prompts)
        self._cursor = 0
        self._history: list[int] = []

    @classmethod
    def build(
        cls,
        prompts: Iterable[Prompt],
        shuffle: bool = True,
        rng: Optional[random.Random] = None,
    ) -> "SessionQueue":
        """
        Build a fresh queue at cursor 0 with empty history.

        Args:
            prompts: Prompts to practise (already filtered)
            shuffle: Shuffle a copy of the prompts
            rng: Random source, for reproducible order

        Raises:
            EmptyQueue: If no prompts were given
        """
        items = list(prompts)
        if not items:
            raise EmptyQueue("No prompts available for this session")
        if shuffle:
            (rng or random).shuffle(items)
        return cls(items)

    # -------------------------------------------------------------------------
    # Read access
    # -------------------------------------------------------------------------

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def length(self) -> int:
        return len(self._prompts)

    @property
    def prompts(self) -> tuple[Prompt, ...]:
        return tuple(self._prompts)

    @property
    def remaining(self) -> tuple[Prompt, ...]:
        """Prompts at or after the cursor."""
        return tuple(self._prompts[self._cursor:])

    @property
    def is_completed(self) -> bool:
        return self._cursor >= len(self._prompts)

    @property
    def can_go_back(self) -> bool:
        return bool(self._history)

    def current(self) -> QueueItem:
        """Prompt at the cursor, or COMPLETED."""
        if self.is_completed:
            return COMPLETED
        return self._prompts[self._cursor]

    def progress_text(self) -> str:
        """Position string like '3 / 10'."""
        shown = min(self._cursor + 1, len(self._prompts))
        return f"{shown} / {len(self._prompts)}"

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def advance(self) -> bool:
        """Move past the current prompt. Returns False if already completed."""
        if self.is_completed:
            return False
        self._history.append(self._cursor)
        self._cursor += 1
        return True

    def skip(self) -> bool:
        """Explicit learner skip; same queue effect as advance()."""
        return self.advance()

    def go_back(self) -> int:
        """
        Restore the cursor saved by the last advance/skip.

        Returns:
            The restored cursor

        Raises:
            NoHistory: If there is nothing to undo
        """
        if not self._history:
            raise NoHistory("Nothing to go back to")
        self._cursor = self._history.pop()
        return self._cursor

    def remove(self, prompt: Prompt) -> bool:
        """
        Splice a prompt out of the remaining part of the queue.

        Matching is by natural key. Prompts before the cursor are left alone,
        so every saved history cursor still points at the same prompt.

        Returns:
            True if a prompt was removed
        """
        for idx in range(self._cursor, len(self._prompts)):
            if self._prompts[idx].same_item(prompt):
                del self._prompts[idx]
                logger.debug("Spliced %r out of queue at %d", prompt.natural_key, idx)
                return True
        return False

"""
ProgressTracker - Reward gating across all exercises in one browser tab.

Counters live in the tab-scoped store, so they survive a page reload but
reset when the tab closes:
- correct / total: fed by continuous exercises (quiz, fill-in, conjugation)
- sentences: completed sentences, never touched by wrong answers
- unlocked: one-way flag, set when a threshold is first met
"""

import logging
from typing import Optional

from tapvocab.errors import PersistenceError
from tapvocab.schemas import ProgressKind, ProgressStats
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

KEYS = {
    "correct": "reward_correct",
    "total": "reward_total",
    "sentences": "reward_sentences",
    "unlocked": "reward_unlocked",
}

DEFAULT_MIN_TOTAL = 10
DEFAULT_MIN_RATIO = 0.70
DEFAULT_DISCRETE_TARGET = 20


class ProgressTracker:
    """
    Track answers and derive the reward unlock.

    unlocked = (total >= min_total and correct / total >= min_ratio)
               or sentences >= discrete_target
    """

    def __init__(
        self,
        store: KeyValueStore,
        min_total: int = DEFAULT_MIN_TOTAL,
        min_ratio: float = DEFAULT_MIN_RATIO,
        discrete_target: int = DEFAULT_DISCRETE_TARGET,
    ):
        """
        Initialize tracker.

        Args:
            store: Tab-scoped key-value store
            min_total: Answers needed before the ratio counts
            min_ratio: Accuracy needed once min_total is reached
            discrete_target: Completed sentences that unlock on their own
        """
        self._store = store
        self.min_total = min_total
        self.min_ratio = min_ratio
        self.discrete_target = discrete_target
        self._correct = self._get_int(KEYS["correct"])
        self._total = self._get_int(KEYS["total"])
        self._sentences = self._get_int(KEYS["sentences"])
        self._unlocked = self._get(KEYS["unlocked"]) == "1"

    def _get(self, key: str) -> Optional[str]:
        try:
            return self._store.get(key)
        except PersistenceError as e:
            logger.warning("Could not read %s, starting from zero: %s", key, e)
            return None

    def _get_int(self, key: str) -> int:
        raw = self._get(key)
        try:
            return max(0, int(raw or "0"))
        except ValueError:
            return 0

    def _set(self, key: str, value: str):
        try:
            self._store.set(key, value)
        except PersistenceError as e:
            logger.warning("Could not persist %s: %s", key, e)

    # -------------------------------------------------------------------------
    # Recording
    # -------------------------------------------------------------------------

    def record_correct(self, kind: ProgressKind):
        if kind == ProgressKind.DISCRETE:
            self._sentences += 1
            self._set(KEYS["sentences"], str(self._sentences))
        else:
            self._correct += 1
            self._total += 1
            self._set(KEYS["correct"], str(self._correct))
            self._set(KEYS["total"], str(self._total))
        self._check_unlock()

    def record_wrong(self, kind: ProgressKind):
        if kind == ProgressKind.DISCRETE:
            return
        self._total += 1
        self._set(KEYS["total"], str(self._total))

    # -------------------------------------------------------------------------
    # Reward state
    # -------------------------------------------------------------------------

    def _check_unlock(self):
        if self._unlocked:
            return
        ratio_met = self._total >= self.min_total and self._correct / self._total >= self.min_ratio
        if ratio_met or self._sentences >= self.discrete_target:
            self._unlocked = True
            self._set(KEYS["unlocked"], "1")
            logger.info("Reward unlocked (correct=%d total=%d sentences=%d)",
                        self._correct, self._total, self._sentences)

    def is_unlocked(self) -> bool:
        self._check_unlock()
        return self._unlocked

    def get_stats(self) -> ProgressStats:
        return ProgressStats(
            correct=self._correct,
            total=self._total,
            discrete_count=self._sentences,
            unlocked=self.is_unlocked(),
        )

    def reset(self):
        """Clear all counters and the unlock flag."""
        self._correct = self._total = self._sentences = 0
        self._unlocked = False
        for key in KEYS.values():
            try:
                self._store.remove(key)
            except PersistenceError as e:
                logger.warning("Could not remove %s: %s", key, e)

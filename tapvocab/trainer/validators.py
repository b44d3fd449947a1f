"""
Answer validators - one strategy object per prompt presentation.

Variants (tagged by the `variant` class attribute):
- OrderedTokenValidator: rebuild the target left-to-right from a scrambled
  token bank (sentence builder, conjugation table, spelling)
- AtomicChoiceValidator: pick one candidate (fill-in-the-blank)
- SelfReportValidator: reveal after a delay, learner declares the result
  (flashcard quiz)

Every input event returns an Outcome. Validators never touch progress,
coins or the practice list; the controller does that.
"""

import logging
import random
import re
import time
from dataclasses import dataclass
from typing import Callable, Optional

from tapvocab.errors import ValidationMismatch
from tapvocab.schemas import Outcome, Prompt


logger = logging.getLogger(__name__)

SEGMENT_WORDS = "words"
SEGMENT_LETTERS = "letters"
SEGMENT_FORMS = "forms"

_WHITESPACE_RUN = re.compile(r"(\s+)")


class AnswerValidator:
    """Base class; subclasses hold the state of one presentation."""

    variant: str = ""

    def __init__(self, prompt: Prompt):
        self.prompt = prompt

    @property
    def is_solved(self) -> bool:
        raise NotImplementedError


# -----------------------------------------------------------------------------
# Ordered-token
# -----------------------------------------------------------------------------

@dataclass
class Slot:
    """One position in the reconstruction."""
    expected: str
    fixed: bool = False                  # pre-filled separator, never tapped
    filled: Optional[str] = None
    bank_index: Optional[int] = None

    @property
    def is_filled(self) -> bool:
        return self.filled is not None


@dataclass
class BankToken:
    text: str
    used: bool = False


def segment(prompt: Prompt, unit: str) -> list[Slot]:
    """
    Split a prompt's target into ordered slots.

    Args:
        prompt: Prompt to segment
        unit: SEGMENT_WORDS, SEGMENT_LETTERS or SEGMENT_FORMS

    Returns:
        Slots in reconstruction order. Whitespace between words (each run
        of it) or between letters becomes a fixed, already-filled slot.
    """
    if unit == SEGMENT_FORMS:
        if not prompt.forms:
            raise ValueError(f"Prompt {prompt.target_text!r} has no forms")
        return [Slot(expected=form) for form in prompt.forms]
    if unit == SEGMENT_WORDS:
        return [
            Slot(expected=part, fixed=True, filled=part) if part.isspace() else Slot(expected=part)
            for part in _WHITESPACE_RUN.split(prompt.target_text) if part
        ]
    if unit == SEGMENT_LETTERS:
        return [
            Slot(expected=ch, fixed=True, filled=ch) if ch.isspace() else Slot(expected=ch)
            for ch in prompt.target_text
        ]
    raise ValueError(f"Unknown segmentation unit: {unit}")


class OrderedTokenValidator(AnswerValidator):
    """
    Tap tokens from a scrambled bank to fill slots strictly left-to-right.

    A tap is compared only with the next expected slot. Wrong taps leave
    the bank and slots untouched.
    """

    variant = "ordered_token"

    def __init__(self, prompt: Prompt, unit: str = SEGMENT_WORDS, rng: Optional[random.Random] = None):
        super().__init__(prompt)
        self.unit = unit
        self.slots = segment(prompt, unit)
        tokens = [slot.expected for slot in self.slots if not slot.fixed]
        (rng or random).shuffle(tokens)
        self.bank = [BankToken(text) for text in tokens]

    @property
    def next_index(self) -> Optional[int]:
        """Index of the next slot to fill, or None when all are filled."""
        for idx, slot in enumerate(self.slots):
            if not slot.is_filled:
                return idx
        return None

    @property
    def expected_next(self) -> Optional[str]:
        idx = self.next_index
        return None if idx is None else self.slots[idx].expected

    @property
    def filled_count(self) -> int:
        return sum(1 for slot in self.slots if slot.is_filled and not slot.fixed)

    @property
    def is_solved(self) -> bool:
        return self.next_index is None

    def available_tokens(self) -> list[str]:
        return [token.text for token in self.bank if not token.used]

    def reconstruction(self) -> str:
        parts = [slot.filled or "" for slot in self.slots]
        if self.unit == SEGMENT_FORMS:
            return " / ".join(parts)
        return "".join(parts)

    def _target(self) -> str:
        if self.unit == SEGMENT_FORMS:
            return " / ".join(self.prompt.forms)
        return self.prompt.target_text

    def tap(self, token: str) -> Outcome:
        """Validate one tapped token against the next expected slot."""
        idx = self.next_index
        if idx is None or token != self.slots[idx].expected:
            return Outcome.REJECTED

        bank_index = self._find_unused(token)
        if bank_index is None:
            return Outcome.REJECTED

        self.bank[bank_index].used = True
        slot = self.slots[idx]
        slot.filled = token
        slot.bank_index = bank_index

        if self.next_index is not None:
            return Outcome.ACCEPTED_PARTIAL

        try:
            self._check_reconstruction()
        except ValidationMismatch as e:
            logger.warning("Rejecting complete answer: %s", e)
            self._unfill(idx)
            return Outcome.REJECTED
        return Outcome.ACCEPTED_FINAL

    def remove(self, slot_index: int) -> list[str]:
        """
        Remove a filled slot and every slot filled after it.

        Returns:
            Tokens returned to the bank, in slot order
        """
        if not 0 <= slot_index < len(self.slots):
            return []
        slot = self.slots[slot_index]
        if slot.fixed or not slot.is_filled:
            return []
        returned = []
        for idx in range(slot_index, len(self.slots)):
            if self.slots[idx].is_filled and not self.slots[idx].fixed:
                returned.append(self.slots[idx].filled)
                self._unfill(idx)
        return returned

    def _find_unused(self, token: str) -> Optional[int]:
        for idx, bank_token in enumerate(self.bank):
            if not bank_token.used and bank_token.text == token:
                return idx
        return None

    def _unfill(self, idx: int):
        slot = self.slots[idx]
        if slot.bank_index is not None:
            self.bank[slot.bank_index].used = False
        slot.filled = None
        slot.bank_index = None

    def _check_reconstruction(self):
        expected = self._target()
        actual = self.reconstruction()
        if actual != expected:
            raise ValidationMismatch(expected, actual)


# -----------------------------------------------------------------------------
# Atomic choice
# -----------------------------------------------------------------------------

class AtomicChoiceValidator(AnswerValidator):
    """Pick the target among shuffled candidates; no partial state."""

    variant = "atomic_choice"

    def __init__(self, prompt: Prompt, rng: Optional[random.Random] = None):
        super().__init__(prompt)
        candidates = [prompt.target_text]
        for item in prompt.distractors:
            if item not in candidates:
                candidates.append(item)
        (rng or random).shuffle(candidates)
        self.choices = candidates
        self.disabled: set[str] = set()
        self._solved = False

    @property
    def is_solved(self) -> bool:
        return self._solved

    def choose(self, choice: str) -> Outcome:
        if self._solved or choice in self.disabled or choice not in self.choices:
            return Outcome.REJECTED
        if choice == self.prompt.target_text:
            self._solved = True
            return Outcome.ACCEPTED_FINAL
        self.disabled.add(choice)
        return Outcome.REJECTED


# -----------------------------------------------------------------------------
# Self report
# -----------------------------------------------------------------------------

class SelfReportValidator(AnswerValidator):
    """
    Flashcard grading by the learner.

    The target can only be revealed once `reveal_delay_ms` has passed since
    the card was shown. After that, the learner's declaration is trusted.
    """

    variant = "self_report"

    def __init__(
        self,
        prompt: Prompt,
        reveal_delay_ms: int = 1000,
        clock: Callable[[], float] = time.monotonic,
    ):
        super().__init__(prompt)
        self.reveal_delay_ms = reveal_delay_ms
        self._clock = clock
        self._shown_at = clock()
        self.revealed = False
        self._declared: Optional[bool] = None

    @property
    def is_solved(self) -> bool:
        return self._declared is True

    @property
    def can_reveal(self) -> bool:
        return (self._clock() - self._shown_at) * 1000 >= self.reveal_delay_ms

    def remaining_ms(self) -> int:
        elapsed = (self._clock() - self._shown_at) * 1000
        return max(0, int(round(self.reveal_delay_ms - elapsed)))

    def reveal(self) -> bool:
        """Show the target if the reveal delay has elapsed."""
        if not self.revealed and self.can_reveal:
            self.revealed = True
        return self.revealed

    def declare(self, correct: bool) -> Optional[Outcome]:
        """Record the learner's verdict. Returns None before reveal."""
        if not self.revealed or self._declared is not None:
            return None
        self._declared = bool(correct)
        return Outcome.ACCEPTED_FINAL if correct else Outcome.REJECTED

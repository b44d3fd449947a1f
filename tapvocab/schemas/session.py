"""
Session state enums for TapVocab.

Defines:
- ExerciseKind: the five exercises sharing the session engine
- ProgressKind: how an exercise feeds reward gating
- Outcome: result of validating one input event
- SessionStatus: controller lifecycle, rendered by the UI
"""

from enum import Enum


class ExerciseKind(str, Enum):
    CONJUGATION = "conjugation"
    FILL_BLANK = "fill_blank"
    SENTENCES = "sentences"
    FLASHCARDS = "flashcards"
    SPELLING = "spelling"


class ProgressKind(str, Enum):
    CONTINUOUS = "continuous"   # feeds the correct/total ratio
    DISCRETE = "discrete"       # feeds the sentence-completion counter


class Outcome(str, Enum):
    ACCEPTED_PARTIAL = "accepted_partial"
    ACCEPTED_FINAL = "accepted_final"
    REJECTED = "rejected"


class SessionStatus(str, Enum):
    NOT_STARTED = "not_started"
    ACTIVE = "active"
    COMPLETED = "completed"
    EMPTY = "empty"             # zero prompts after filtering
    LOAD_FAILED = "load_failed"

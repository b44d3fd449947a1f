"""
TapVocab Trainer - Session engine behind every exercise.

This module provides:
- Prompt loaders for the TSV data files
- Key-value stores (persistent SQLite, key namespaces, in-memory)
- Session queue, answer validators and deferred auto-advance
- Practice list, reward progress and coin ledger
- SessionController composing all of the above
"""

from .storage import (
    KeyValueStore,
    SqliteKeyValueStore,
    MemoryKeyValueStore,
    PrefixedKeyValueStore,
    DEFAULT_STORAGE_DB,
)

from .loader import (
    PRONOUNS,
    BLANK_MARKER,
    read_tsv,
    is_sentence,
    by_category,
    categories,
    load_words,
    load_sentences,
    load_vocabulary,
    load_verbs,
    load_fill_blank,
)

from .queue import (
    COMPLETED,
    QueueItem,
    SessionQueue,
)

from .validators import (
    SEGMENT_WORDS,
    SEGMENT_LETTERS,
    SEGMENT_FORMS,
    Slot,
    BankToken,
    segment,
    AnswerValidator,
    OrderedTokenValidator,
    AtomicChoiceValidator,
    SelfReportValidator,
)

from .deferred import DeferredAdvance
from .feedback import Feedback, NullFeedback
from .practice_list import PracticeListStore, PRACTICE_LIST_KEY
from .progress import ProgressTracker
from .coins import CoinLedger, COINS_KEY, COINS_PER_GAME
from .selection import SelectionStore, ENABLED_SENTENCES_KEY

from .exercises import (
    ValidatorOptions,
    ExerciseDefinition,
    EXERCISES,
    get_exercise,
)

from .controller import SessionController

__all__ = [
    # Storage
    "KeyValueStore",
    "SqliteKeyValueStore",
    "MemoryKeyValueStore",
    "PrefixedKeyValueStore",
    "DEFAULT_STORAGE_DB",
    # Loading
    "PRONOUNS",
    "BLANK_MARKER",
    "read_tsv",
    "is_sentence",
    "by_category",
    "categories",
    "load_words",
    "load_sentences",
    "load_vocabulary",
    "load_verbs",
    "load_fill_blank",
    # Queue
    "COMPLETED",
    "QueueItem",
    "SessionQueue",
    # Validators
    "SEGMENT_WORDS",
    "SEGMENT_LETTERS",
    "SEGMENT_FORMS",
    "Slot",
    "BankToken",
    "segment",
    "AnswerValidator",
    "OrderedTokenValidator",
    "AtomicChoiceValidator",
    "SelfReportValidator",
    # Bookkeeping
    "DeferredAdvance",
    "Feedback",
    "NullFeedback",
    "PracticeListStore",
    "PRACTICE_LIST_KEY",
    "ProgressTracker",
    "CoinLedger",
    "COINS_KEY",
    "COINS_PER_GAME",
    "SelectionStore",
    "ENABLED_SENTENCES_KEY",
    # Exercises
    "ValidatorOptions",
    "ExerciseDefinition",
    "EXERCISES",
    "get_exercise",
    "SessionController",
]

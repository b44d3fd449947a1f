"""
Exercise registry - one declarative entry per exercise kind.

Each definition names its data file, loader, validator variant and how it
feeds reward gating. The SessionController is generic; everything that
differs between exercises lives here.
"""

import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Optional

from tapvocab.schemas import ExerciseKind, ProgressKind, Prompt
from .loader import load_fill_blank, load_sentences, load_verbs, load_vocabulary, load_words
from .validators import (
    SEGMENT_FORMS,
    SEGMENT_LETTERS,
    SEGMENT_WORDS,
    AnswerValidator,
    AtomicChoiceValidator,
    OrderedTokenValidator,
    SelfReportValidator,
)


@dataclass(frozen=True)
class ValidatorOptions:
    """Per-presentation inputs a validator factory may need."""
    rng: Optional[random.Random] = None
    clock: Callable[[], float] = time.monotonic
    reveal_delay_ms: int = 1000


ValidatorFactory = Callable[[Prompt, ValidatorOptions], AnswerValidator]


@dataclass(frozen=True)
class ExerciseDefinition:
    kind: ExerciseKind
    title: str
    description: str
    data_file: str
    loader: Callable[..., list[Prompt]]
    make_validator: ValidatorFactory
    progress_kind: ProgressKind = ProgressKind.CONTINUOUS
    empty_message: str = "Nothing available."

    def load(self, data_dir: Path) -> list[Prompt]:
        return self.loader(Path(data_dir) / self.data_file, exercise=self.kind.value)


def _ordered(unit: str) -> ValidatorFactory:
    return lambda prompt, opts: OrderedTokenValidator(prompt, unit=unit, rng=opts.rng)


def _choice(prompt: Prompt, opts: ValidatorOptions) -> AnswerValidator:
    return AtomicChoiceValidator(prompt, rng=opts.rng)


def _self_report(prompt: Prompt, opts: ValidatorOptions) -> AnswerValidator:
    return SelfReportValidator(prompt, reveal_delay_ms=opts.reveal_delay_ms, clock=opts.clock)


EXERCISES: dict[ExerciseKind, ExerciseDefinition] = {
    ExerciseKind.CONJUGATION: ExerciseDefinition(
        kind=ExerciseKind.CONJUGATION,
        title="Verb Conjugation",
        description="Tap the conjugated forms in order (yo → ellos).",
        data_file="verbs.tsv",
        loader=load_verbs,
        make_validator=_ordered(SEGMENT_FORMS),
        empty_message="No verbs available.",
    ),
    ExerciseKind.FILL_BLANK: ExerciseDefinition(
        kind=ExerciseKind.FILL_BLANK,
        title="Fill in the Blank",
        description="Choose the word that completes the Spanish sentence.",
        data_file="fill-in-blank.tsv",
        loader=load_fill_blank,
        make_validator=_choice,
        empty_message="No sentences available.",
    ),
    ExerciseKind.SENTENCES: ExerciseDefinition(
        kind=ExerciseKind.SENTENCES,
        title="Sentence Builder",
        description="Tap the words in order to build the sentence.",
        data_file="words.tsv",
        loader=load_sentences,
        make_validator=_ordered(SEGMENT_WORDS),
        progress_kind=ProgressKind.DISCRETE,
        empty_message="No sentences available. Please enable some sentences in the sentence manager.",
    ),
    ExerciseKind.FLASHCARDS: ExerciseDefinition(
        kind=ExerciseKind.FLASHCARDS,
        title="Flashcard Quiz",
        description="Recall the Spanish word, reveal it, then say how you did.",
        data_file="words.tsv",
        loader=load_words,
        make_validator=_self_report,
        empty_message="No words found for this category.",
    ),
    ExerciseKind.SPELLING: ExerciseDefinition(
        kind=ExerciseKind.SPELLING,
        title="Spelling",
        description="Spell the Spanish word letter by letter.",
        data_file="words.tsv",
        loader=load_vocabulary,
        make_validator=_ordered(SEGMENT_LETTERS),
        empty_message="No words available.",
    ),
}


def get_exercise(kind: ExerciseKind | str) -> ExerciseDefinition:
    try:
        return EXERCISES[ExerciseKind(kind)]
    except ValueError:
        raise KeyError(f"Unknown exercise: {kind}") from None

"""
Prompt schema for TapVocab.

A Prompt is one learning item: a word, a sentence, or a verb-form set.

IDENTITY CONVENTION: a prompt has no surrogate id. Its natural key is
(source_text, target_text). Practice-list membership and deduplication of
persisted prompts depend on this, so the key must stay stable across
versions of the data files.
"""

from pydantic import BaseModel, ConfigDict, field_validator, model_validator
from typing import Optional


NaturalKey = tuple[str, str]


class Prompt(BaseModel):
    """One immutable learning item loaded from tabular data."""
    model_config = ConfigDict(frozen=True)

    source_text: str                     # what the learner sees (German)
    target_text: str                     # what the learner reconstructs (Spanish)
    category: str = ""
    exercise: Optional[str] = None       # ExerciseKind value that produced it
    display_text: Optional[str] = None   # e.g. Spanish sentence with ___ blank
    distractors: list[str] = []          # wrong candidates for atomic choice
    forms: list[str] = []                # ordered verb forms (yo .. ellos)
    labels: list[str] = []               # pronoun label per form

    @field_validator('source_text', 'target_text')
    @classmethod
    def text_not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError('Prompt text must not be blank')
        return v

    @field_validator('distractors', 'forms')
    @classmethod
    def strip_items(cls, v: list[str]) -> list[str]:
        return [item.strip() for item in v if item.strip()]

    @model_validator(mode='after')
    def labels_match_forms(self):
        if self.labels and len(self.labels) != len(self.forms):
            raise ValueError('labels must have one entry per form')
        return self

    @property
    def natural_key(self) -> NaturalKey:
        """Identity derived from the prompt's own text."""
        return (self.source_text, self.target_text)

    def same_item(self, other: "Prompt") -> bool:
        """True if both prompts share a natural key."""
        return self.natural_key == other.natural_key

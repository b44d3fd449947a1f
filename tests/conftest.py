"""
Shared fixtures for TapVocab tests.
"""

import random

import pytest

from tapvocab.errors import PersistenceError
from tapvocab.schemas import Prompt
from tapvocab.trainer import MemoryKeyValueStore


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float):
        self.now += seconds


class FailingStore(MemoryKeyValueStore):
    """Store whose writes are always denied."""

    def set(self, key: str, value: str) -> None:
        raise PersistenceError(f"denied: {key}")

    def remove(self, key: str) -> None:
        raise PersistenceError(f"denied: {key}")


class RecordingFeedback:
    def __init__(self):
        self.events = []

    def flash_success(self):
        self.events.append("success")

    def flash_error(self):
        self.events.append("error")

    def confetti(self, count=30):
        self.events.append(("confetti", count))


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def rng():
    return random.Random(42)


@pytest.fixture
def feedback():
    return RecordingFeedback()


@pytest.fixture
def sentence_prompts():
    return [
        Prompt(source_text="Ich mag Kaffee.", target_text="Me gusta el café.",
               category="frases", exercise="sentences"),
        Prompt(source_text="Ich habe einen Hund.", target_text="Tengo un perro.",
               category="frases", exercise="sentences"),
        Prompt(source_text="Wo ist die Toilette?", target_text="¿Dónde está el baño?",
               category="frases", exercise="sentences"),
    ]


@pytest.fixture
def choice_prompts():
    return [
        Prompt(source_text="Ich bin Student.", target_text="soy", category="verbos",
               exercise="fill_blank", display_text="Yo ___ estudiante.",
               distractors=["estoy", "eres"]),
        Prompt(source_text="Ich wohne in Madrid.", target_text="en", category="preposiciones",
               exercise="fill_blank", display_text="Vivo ___ Madrid.",
               distractors=["a", "de"]),
        Prompt(source_text="Die Katze schläft.", target_text="El", category="artículos",
               exercise="fill_blank", display_text="___ gato duerme.",
               distractors=["La", "Los"]),
    ]

"""
SelectionStore - Which prompts the learner has enabled for an exercise.

Backs the sentence manager: a persisted map from source text to an
enabled flag. Prompts missing from the map count as enabled.
"""

import json
import logging
from typing import Callable, Iterable

from tapvocab.errors import PersistenceError
from tapvocab.schemas import Prompt
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

ENABLED_SENTENCES_KEY = "enabledSentences"


class SelectionStore:
    def __init__(self, store: KeyValueStore, key: str = ENABLED_SENTENCES_KEY):
        self._store = store
        self._key = key
        self._enabled: dict[str, bool] = self._load()

    def _load(self) -> dict[str, bool]:
        try:
            raw = self._store.get(self._key)
        except PersistenceError as e:
            logger.warning("Could not read selection, enabling everything: %s", e)
            return {}
        if not raw:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Selection map is not valid JSON, enabling everything: %s", e)
            return {}
        if not isinstance(data, dict):
            return {}
        return {str(k): bool(v) for k, v in data.items()}

    @property
    def initialized(self) -> bool:
        return bool(self._enabled)

    def ensure_initialized(self, prompts: Iterable[Prompt]):
        """On first use, enable every prompt and save the map."""
        if self._enabled:
            return
        self._enabled = {prompt.source_text: True for prompt in prompts}
        self.save()

    def is_enabled(self, prompt: Prompt) -> bool:
        return self._enabled.get(prompt.source_text, True)

    def set_enabled(self, prompt: Prompt, enabled: bool):
        self._enabled[prompt.source_text] = enabled

    def set_all(self, prompts: Iterable[Prompt], enabled: bool):
        for prompt in prompts:
            self._enabled[prompt.source_text] = enabled

    def enabled_count(self, prompts: Iterable[Prompt]) -> int:
        return sum(1 for prompt in prompts if self.is_enabled(prompt))

    def save(self):
        try:
            self._store.set(self._key, json.dumps(self._enabled, ensure_ascii=False))
        except PersistenceError as e:
            logger.warning("Could not persist selection: %s", e)

    def predicate(self) -> Callable[[Prompt], bool]:
        """Filter for SessionController.start(), bound to a snapshot of the map."""
        snapshot = dict(self._enabled)
        return lambda prompt: snapshot.get(prompt.source_text, True)

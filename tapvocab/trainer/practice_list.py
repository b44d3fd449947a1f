"""
PracticeListStore - Cross-session set of prompts the learner has missed.

Entries are whole Prompt records stored as a JSON array under one key in
the persistent store. Set semantics use the prompt's natural key, so a
prompt loaded again from the data files matches its persisted entry.

The in-memory list is authoritative for the running session; failed
writes are logged and otherwise ignored.
"""

import json
import logging
from typing import Iterable

from pydantic import ValidationError

from tapvocab.errors import PersistenceError
from tapvocab.schemas import NaturalKey, Prompt
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

PRACTICE_LIST_KEY = "tapvocab_practice_list"


class PracticeListStore:
    """Persistent, deduplicated set of missed prompts."""

    def __init__(self, store: KeyValueStore, key: str = PRACTICE_LIST_KEY):
        self._store = store
        self._key = key
        self._entries: dict[NaturalKey, Prompt] = self._load()

    def _load(self) -> dict[NaturalKey, Prompt]:
        try:
            raw = self._store.get(self._key)
        except PersistenceError as e:
            logger.warning("Could not read practice list, starting empty: %s", e)
            return {}
        if not raw:
            return {}
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Practice list is not valid JSON, starting empty: %s", e)
            return {}
        if not isinstance(items, list):
            logger.warning("Practice list root is not an array, starting empty")
            return {}

        entries: dict[NaturalKey, Prompt] = {}
        for item in items:
            try:
                prompt = Prompt.model_validate(item)
            except ValidationError as e:
                logger.warning("Skipping invalid practice list entry: %s", e)
                continue
            entries.setdefault(prompt.natural_key, prompt)
        return entries

    def _save(self):
        payload = json.dumps(
            [prompt.model_dump(mode="json") for prompt in self._entries.values()],
            ensure_ascii=False,
        )
        try:
            self._store.set(self._key, payload)
        except PersistenceError as e:
            logger.warning("Could not persist practice list: %s", e)

    # -------------------------------------------------------------------------
    # Set operations
    # -------------------------------------------------------------------------

    def contains(self, prompt: Prompt) -> bool:
        return prompt.natural_key in self._entries

    def add(self, prompt: Prompt) -> bool:
        """Add a prompt if absent. Returns True if it was added."""
        if prompt.natural_key in self._entries:
            return False
        self._entries[prompt.natural_key] = prompt
        self._save()
        logger.info("Added to practice list: %s", prompt.source_text)
        return True

    def remove(self, prompt: Prompt) -> bool:
        """Remove a prompt if present. Returns True if it was removed."""
        if self._entries.pop(prompt.natural_key, None) is None:
            return False
        self._save()
        logger.info("Removed from practice list: %s", prompt.source_text)
        return True

    def clear(self):
        self._entries.clear()
        try:
            self._store.remove(self._key)
        except PersistenceError as e:
            logger.warning("Could not clear practice list: %s", e)

    def entries(self) -> list[Prompt]:
        """Stored prompts in insertion order."""
        return list(self._entries.values())

    def members(self, prompts: Iterable[Prompt]) -> list[Prompt]:
        """
        The given prompts that are on the list, in their given order.

        Membership is by natural key only, so a word missed in one exercise
        is practised by every exercise that loads the same word.
        """
        return [prompt for prompt in prompts if prompt.natural_key in self._entries]

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, prompt: Prompt) -> bool:
        return self.contains(prompt)

"""
CoinLedger - Persistent reward currency.

Each correct answer earns one coin; COINS_PER_GAME coins buy one game.
The balance is stored as a decimal string and never goes below zero.
Subscribers are notified after the new balance has been written, so a
subscriber that reads the store sees the updated value.
"""

import logging
from typing import Callable

from tapvocab.errors import PersistenceError
from .storage import KeyValueStore


logger = logging.getLogger(__name__)

COINS_KEY = "tapvocab_coins"
COINS_PER_GAME = 10

CoinListener = Callable[[int], None]


class CoinLedger:
    def __init__(self, store: KeyValueStore, key: str = COINS_KEY):
        self._store = store
        self._key = key
        self._listeners: list[CoinListener] = []
        self._balance = self._read()

    def _read(self) -> int:
        try:
            raw = self._store.get(self._key)
        except PersistenceError as e:
            logger.warning("Could not read coin balance, starting from zero: %s", e)
            return 0
        try:
            return max(0, int(raw or "0"))
        except ValueError:
            logger.warning("Ignoring malformed coin balance %r", raw)
            return 0

    @property
    def balance(self) -> int:
        return self._balance

    def subscribe(self, listener: CoinListener) -> Callable[[], None]:
        """Register a change listener. Returns a function that unsubscribes it."""
        self._listeners.append(listener)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _set_balance(self, value: int):
        self._balance = max(0, value)
        try:
            self._store.set(self._key, str(self._balance))
        except PersistenceError as e:
            logger.warning("Could not persist coin balance: %s", e)
        for listener in list(self._listeners):
            try:
                listener(self._balance)
            except Exception:
                logger.exception("Coin listener failed")

    def add(self, n: int = 1) -> int:
        self._set_balance(self._balance + n)
        return self._balance

    def spend(self, amount: int) -> bool:
        """Deduct `amount` if the balance covers it."""
        if self._balance < amount:
            return False
        self._set_balance(self._balance - amount)
        return True

    def reset(self):
        self._set_balance(0)

"""
Key-value store tests.
"""

import sqlite3

import pytest

from tapvocab.errors import PersistenceError
from tapvocab.schemas import ProgressKind, Prompt
from tapvocab.trainer import (
    COINS_KEY,
    ENABLED_SENTENCES_KEY,
    CoinLedger,
    MemoryKeyValueStore,
    PracticeListStore,
    PrefixedKeyValueStore,
    ProgressTracker,
    SelectionStore,
    SqliteKeyValueStore,
)


def drop_table(db_path):
    conn = sqlite3.connect(str(db_path))
    conn.execute("DROP TABLE kv_store")
    conn.commit()
    conn.close()


class TestSqliteStore:
    """Test the persistent SQLite store."""

    def test_creates_database(self, tmp_path):
        db_path = tmp_path / "nested" / "storage.db"
        SqliteKeyValueStore(db_path)
        assert db_path.exists()

    def test_set_get_remove(self, tmp_path):
        kv = SqliteKeyValueStore(tmp_path / "storage.db")
        assert kv.get("missing") is None
        kv.set("tapvocab_coins", "3")
        assert kv.get("tapvocab_coins") == "3"
        kv.set("tapvocab_coins", "4")
        assert kv.get("tapvocab_coins") == "4"
        kv.remove("tapvocab_coins")
        assert kv.get("tapvocab_coins") is None
        kv.remove("tapvocab_coins")

    def test_survives_reopen(self, tmp_path):
        db_path = tmp_path / "storage.db"
        SqliteKeyValueStore(db_path).set("k", "ñandú")
        assert SqliteKeyValueStore(db_path).get("k") == "ñandú"

    def test_write_failure_raises_persistence_error(self, tmp_path):
        db_path = tmp_path / "storage.db"
        kv = SqliteKeyValueStore(db_path)
        drop_table(db_path)
        with pytest.raises(PersistenceError):
            kv.set("k", "v")
        with pytest.raises(PersistenceError):
            kv.remove("k")

    def test_read_failure_raises_persistence_error(self, tmp_path):
        db_path = tmp_path / "storage.db"
        kv = SqliteKeyValueStore(db_path)
        drop_table(db_path)
        with pytest.raises(PersistenceError):
            kv.get("k")

    def test_components_start_from_defaults_when_unreadable(self, tmp_path):
        db_path = tmp_path / "storage.db"
        kv = SqliteKeyValueStore(db_path)
        kv.set(COINS_KEY, "7")
        drop_table(db_path)
        assert CoinLedger(kv).balance == 0
        assert len(PracticeListStore(kv)) == 0
        assert ProgressTracker(kv).get_stats().total == 0
        assert not SelectionStore(kv).initialized


class TestMemoryStore:
    """Test the in-process store."""

    def test_backed_by_mapping(self):
        backing = {}
        kv = MemoryKeyValueStore(backing)
        kv.set("reward_total", "5")
        assert backing == {"reward_total": "5"}
        kv.remove("reward_total")
        kv.remove("reward_total")
        assert backing == {}

    def test_values_are_strings(self):
        kv = MemoryKeyValueStore({"n": 3})
        assert kv.get("n") == "3"
        assert kv.get("missing") is None


class TestSelectionStore:
    """Test the enabled-sentences map."""

    A = Prompt(source_text="Ich mag Kaffee.", target_text="Me gusta el café.")
    B = Prompt(source_text="Ich habe einen Hund.", target_text="Tengo un perro.")

    def test_missing_counts_as_enabled(self, store):
        selection = SelectionStore(store)
        assert not selection.initialized
        assert selection.is_enabled(self.A)

    def test_ensure_initialized_saves(self, store):
        selection = SelectionStore(store)
        selection.ensure_initialized([self.A, self.B])
        assert selection.initialized
        assert store.get(ENABLED_SENTENCES_KEY) is not None
        assert selection.enabled_count([self.A, self.B]) == 2

    def test_ensure_initialized_keeps_existing(self, store):
        selection = SelectionStore(store)
        selection.set_enabled(self.A, False)
        selection.ensure_initialized([self.A, self.B])
        assert not selection.is_enabled(self.A)

    def test_disable_and_reload(self, store):
        selection = SelectionStore(store)
        selection.set_enabled(self.A, False)
        selection.save()
        reloaded = SelectionStore(store)
        assert not reloaded.is_enabled(self.A)
        assert reloaded.is_enabled(self.B)

    def test_predicate_is_snapshot(self, store):
        selection = SelectionStore(store)
        selection.set_all([self.A, self.B], False)
        keep = selection.predicate()
        selection.set_all([self.A, self.B], True)
        assert not keep(self.A)
        assert selection.predicate()(self.A)

    def test_invalid_json_enables_everything(self):
        selection = SelectionStore(MemoryKeyValueStore({ENABLED_SENTENCES_KEY: "{"}))
        assert selection.is_enabled(self.A)


class TestPrefixedStore:
    """Test per-tab key namespaces inside a shared store."""

    def test_keys_are_prefixed(self):
        backing = {}
        tab = PrefixedKeyValueStore(MemoryKeyValueStore(backing), "tab:abc:")
        tab.set("reward_total", "5")
        assert backing == {"tab:abc:reward_total": "5"}
        assert tab.get("reward_total") == "5"
        tab.remove("reward_total")
        assert backing == {}

    def test_tabs_are_isolated(self, tmp_path):
        kv = SqliteKeyValueStore(tmp_path / "storage.db")
        first = ProgressTracker(PrefixedKeyValueStore(kv, "tab:one:"))
        first.record_correct(ProgressKind.CONTINUOUS)
        assert ProgressTracker(PrefixedKeyValueStore(kv, "tab:one:")).get_stats().correct == 1
        assert ProgressTracker(PrefixedKeyValueStore(kv, "tab:two:")).get_stats().correct == 0
        assert kv.get("reward_correct") is None

    def test_empty_prefix_rejected(self, store):
        with pytest.raises(ValueError):
            PrefixedKeyValueStore(store, "")

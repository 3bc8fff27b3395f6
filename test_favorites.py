"""
Tests for the favorite set and its key-value stores.

Run with: pytest test_favorites.py -v
"""

import asyncio
import json
import logging
from unittest.mock import MagicMock

import pytest

from estate_catalog.favorites import FavoriteSet
from estate_catalog.storage import MemoryKeyValueStore, SqliteKeyValueStore

KEY = "favorite_properties"


@pytest.fixture
def store():
    return MemoryKeyValueStore()


@pytest.fixture
def sqlite_store(tmp_path):
    return SqliteKeyValueStore(f"sqlite:///{tmp_path / 'favorites.db'}")


# =============================================================================
# TESTS: toggle / query
# =============================================================================

class TestToggle:
    """toggle() and membership."""

    def test_starts_empty(self, store):
        favorites = FavoriteSet(store)
        assert favorites.ids == []
        assert len(favorites) == 0

    def test_toggle_adds_then_removes(self, store):
        favorites = FavoriteSet(store)
        assert favorites.toggle(7) is True
        assert favorites.is_favorite(7)
        assert 7 in favorites
        assert favorites.toggle(7) is False
        assert not favorites.is_favorite(7)

    def test_double_toggle_restores_set(self, store):
        favorites = FavoriteSet(store)
        favorites.toggle(1)
        favorites.toggle(2)
        before = favorites.ids
        favorites.toggle(3)
        favorites.toggle(3)
        assert favorites.ids == before

    def test_insertion_order(self, store):
        favorites = FavoriteSet(store)
        for property_id in (5, 3, 9):
            favorites.toggle(property_id)
        favorites.toggle(3)
        assert favorites.ids == [5, 9]

    def test_ids_is_a_copy(self, store):
        favorites = FavoriteSet(store)
        favorites.toggle(1)
        favorites.ids.append(99)
        assert favorites.ids == [1]


# =============================================================================
# TESTS: persistence
# =============================================================================

class TestPersistence:
    """Loading and saving through the store."""

    def test_toggle_persists_json_array(self, store):
        favorites = FavoriteSet(store, key=KEY)
        favorites.toggle(4)
        favorites.toggle(2)
        assert json.loads(store.data[KEY]) == [4, 2]

    def test_loads_persisted_ids(self):
        store = MemoryKeyValueStore({KEY: "[3, 8]"})
        assert FavoriteSet(store, key=KEY).ids == [3, 8]

    def test_default_key_from_settings(self, store):
        FavoriteSet(store).toggle(1)
        assert KEY in store.data

    def test_load_disabled(self):
        store = MemoryKeyValueStore({KEY: "[3]"})
        favorites = FavoriteSet(store, key=KEY, load=False)
        assert favorites.ids == []
        assert favorites.load() == [3]

    @pytest.mark.parametrize("stored", ["not json", '{"a": 1}', "null", '"7"'])
    def test_malformed_value_is_empty(self, stored):
        assert FavoriteSet(MemoryKeyValueStore({KEY: stored}), key=KEY).ids == []

    def test_non_integer_entries_dropped(self):
        store = MemoryKeyValueStore({KEY: '[1, "2", true, 1, 3.5, 4]'})
        assert FavoriteSet(store, key=KEY).ids == [1, 4]

    def test_load_failure_is_logged(self, caplog):
        store = MagicMock()
        store.get.side_effect = OSError("disk gone")
        with caplog.at_level(logging.ERROR):
            favorites = FavoriteSet(store, key=KEY)
        assert favorites.ids == []
        assert "disk gone" in caplog.text

    def test_save_failure_keeps_memory_state(self, caplog):
        """A failing store does not undo the toggle."""
        store = MagicMock()
        store.get.return_value = None
        store.set.side_effect = OSError("read-only")
        favorites = FavoriteSet(store, key=KEY)

        with caplog.at_level(logging.ERROR):
            assert favorites.toggle(5) is True

        assert favorites.ids == [5]
        assert "read-only" in caplog.text

    def test_sqlite_round_trip(self, sqlite_store):
        FavoriteSet(sqlite_store, key=KEY).toggle(11)
        assert FavoriteSet(sqlite_store, key=KEY).ids == [11]

    def test_sqlite_overwrites(self, sqlite_store):
        sqlite_store.set(KEY, "[1]")
        sqlite_store.set(KEY, "[2]")
        assert sqlite_store.get(KEY) == "[2]"

    def test_sqlite_missing_key(self, sqlite_store):
        assert sqlite_store.get("nothing") is None


# =============================================================================
# TESTS: notifications
# =============================================================================

class TestSubscribe:
    """Change notifications."""

    def test_listener_receives_ids(self, store):
        favorites = FavoriteSet(store)
        seen = []
        favorites.subscribe(seen.append)
        favorites.toggle(1)
        favorites.toggle(2)
        favorites.toggle(1)
        assert seen == [[1], [1, 2], [2]]

    def test_unsubscribe(self, store):
        favorites = FavoriteSet(store)
        seen = []
        unsubscribe = favorites.subscribe(seen.append)
        favorites.toggle(1)
        unsubscribe()
        favorites.toggle(2)
        assert seen == [[1]]

    def test_unsubscribe_twice(self, store):
        unsubscribe = FavoriteSet(store).subscribe(lambda ids: None)
        unsubscribe()
        unsubscribe()

    def test_failing_listener_is_logged(self, store, caplog):
        """A broken listener neither undoes the toggle nor skips persistence."""
        favorites = FavoriteSet(store, key=KEY)
        seen = []

        def broken(ids):
            raise RuntimeError("render failed")

        favorites.subscribe(broken)
        favorites.subscribe(seen.append)

        with caplog.at_level(logging.ERROR):
            assert favorites.toggle(4) is True

        assert favorites.ids == [4]
        assert store.data[KEY] == "[4]"
        assert seen == [[4]]
        assert "render failed" in caplog.text

    def test_load_notifies(self):
        store = MemoryKeyValueStore({KEY: "[6]"})
        favorites = FavoriteSet(store, key=KEY, load=False)
        seen = []
        favorites.subscribe(seen.append)
        favorites.load()
        assert seen == [[6]]


class TestToggleAsync:
    def test_persists_off_loop(self, store):
        favorites = FavoriteSet(store, key=KEY)
        assert asyncio.run(favorites.toggle_async(3)) is True
        assert store.data[KEY] == "[3]"
        assert asyncio.run(favorites.toggle_async(3)) is False
        assert store.data[KEY] == "[]"

"""
Favorite set.

A client-side set of property ids, persisted as a JSON array under a single
key of a key-value store. The in-memory set is the source of truth for the
session: persistence failures are logged and otherwise ignored.
"""

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Protocol

from estate_catalog.config import settings

logger = logging.getLogger(__name__)

Listener = Callable[[list[int]], None]


class KeyValueStore(Protocol):
    def get(self, key: str) -> str | None: ...

    def set(self, key: str, value: str) -> None: ...


class FavoriteSet:
    """Favorite property ids with toggle/query and change notifications."""

    def __init__(self, store: KeyValueStore, key: str | None = None, load: bool = True):
        """
        Args:
            store: Persistence backend (get/set of strings)
            key: Storage key (defaults to settings.favorites_key)
            load: Read the persisted ids immediately
        """
        self.store = store
        self.key = key or settings.favorites_key
        self._ids: list[int] = []
        self._listeners: list[Listener] = []
        if load:
            self.load()

    @property
    def ids(self) -> list[int]:
        """Favorite ids in the order they were added."""
        return list(self._ids)

    def __contains__(self, property_id: int) -> bool:
        return property_id in self._ids

    def __len__(self) -> int:
        return len(self._ids)

    def is_favorite(self, property_id: int) -> bool:
        return property_id in self._ids

    def load(self) -> list[int]:
        """Replace the in-memory set with the persisted one (empty on any failure)."""
        try:
            stored = self.store.get(self.key)
        except Exception as e:
            logger.error("Failed to load favorites: %s", e)
            stored = None

        ids: list[int] = []
        if stored:
            try:
                parsed = json.loads(stored)
            except ValueError:
                logger.warning("Discarding malformed favorites value: %.60r", stored)
                parsed = []
            if isinstance(parsed, list):
                for item in parsed:
                    if isinstance(item, int) and not isinstance(item, bool) and item not in ids:
                        ids.append(item)

        self._ids = ids
        self._notify()
        return self.ids

    def toggle(self, property_id: int) -> bool:
        """
        Add the id if absent, remove it if present, then persist.

        Returns:
            True if the id is a favorite after the call
        """
        now_favorite = self._apply(property_id)
        self._persist()
        return now_favorite

    async def toggle_async(self, property_id: int) -> bool:
        """toggle() with persistence off the event loop."""
        now_favorite = self._apply(property_id)
        await asyncio.to_thread(self._persist)
        return now_favorite

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """
        Call listener with the current ids after every change.

        Returns:
            Function that removes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def _apply(self, property_id: int) -> bool:
        if property_id in self._ids:
            self._ids = [item for item in self._ids if item != property_id]
            now_favorite = False
        else:
            self._ids = self._ids + [property_id]
            now_favorite = True
        self._notify()
        return now_favorite

    def _persist(self) -> None:
        try:
            self.store.set(self.key, json.dumps(self._ids))
        except Exception as e:
            logger.error("Failed to save favorites: %s", e)

    def _notify(self) -> None:
        snapshot = self.ids
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.error("Favorites listener %r failed: %s", listener, e)

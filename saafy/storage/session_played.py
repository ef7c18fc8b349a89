"""
Session tracking of played songs
Data lives until the session store is dropped (process exit)
"""

import json
from typing import List

from .kv_store import KeyValueStore, MemoryStore
from ..config.constants import SESSION_PLAYED_KEY
from ..utils.exceptions import StorageError
from ..pkg.logger import logger


class SessionPlayedSet:
    """Ordered set of song ids played in the current session"""

    def __init__(self, store: KeyValueStore = None, key: str = SESSION_PLAYED_KEY):
        self._store = store if store is not None else MemoryStore()
        self._key = key

    def all(self) -> List[str]:
        """Get all song ids played in the current session"""
        try:
            stored = self._store.get(self._key)
            if not stored:
                return []
            played = json.loads(stored)
        except (StorageError, ValueError) as e:
            logger.error(f"Error reading session played songs: {e}")
            return []

        if not isinstance(played, list):
            return []
        return [str(song_id) for song_id in played]

    def add(self, song_id: str) -> List[str]:
        """Add a song id if not already present, return the updated list"""
        played = self.all()
        if not song_id or song_id in played:
            return played

        played.append(song_id)
        try:
            self._store.set(self._key, json.dumps(played))
        except StorageError as e:
            logger.error(f"Error adding to session played songs: {e}")
            return self.all()
        return played

    def has(self, song_id: str) -> bool:
        if not song_id:
            return False
        return song_id in self.all()

    def count(self) -> int:
        return len(self.all())

    def clear(self) -> None:
        try:
            self._store.remove(self._key)
        except StorageError as e:
            logger.error(f"Error clearing session played songs: {e}")

    def __contains__(self, song_id: str) -> bool:
        return self.has(song_id)

    def __len__(self) -> int:
        return self.count()

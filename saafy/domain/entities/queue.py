from __future__ import annotations
import asyncio
import random
from typing import Optional, List, Iterable

from .song import Song
from ..valueobjects.repeat_mode import RepeatMode
from ...utils.exceptions import QueueIndexError


class PlaybackQueue:
    """
    Ordered play queue with a cursor on the current song.

    Duplicates are allowed. When a current song exists it always sits at
    ``current_index``. Shuffle keeps the unshuffled order aside so it can be
    restored.
    """

    def __init__(self, rng: Optional[random.Random] = None):
        self._songs: List[Song] = []
        self._original: Optional[List[Song]] = None  # set while shuffled
        self._current_index: int = -1
        self._repeat_mode: RepeatMode = RepeatMode.NONE
        self._rng = rng or random.Random()
        self._lock = asyncio.Lock()

    @property
    def current_song(self) -> Optional[Song]:
        """Get currently selected song"""
        if 0 <= self._current_index < len(self._songs):
            return self._songs[self._current_index]
        return None

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def queue_size(self) -> int:
        return len(self._songs)

    @property
    def position(self) -> tuple[int, int]:
        """Get current position as (current, total), 1-based"""
        return (self._current_index + 1, len(self._songs))

    @property
    def repeat_mode(self) -> RepeatMode:
        return self._repeat_mode

    @property
    def shuffle_enabled(self) -> bool:
        return self._original is not None

    @property
    def is_at_end(self) -> bool:
        return self._current_index >= len(self._songs) - 1

    def set_repeat_mode(self, mode: RepeatMode) -> None:
        self._repeat_mode = mode

    def cycle_repeat_mode(self) -> RepeatMode:
        """Advance none -> all -> one"""
        self._repeat_mode = self._repeat_mode.next()
        return self._repeat_mode

    def get_upcoming(self, limit: int = 5) -> List[Song]:
        """Get songs after the current one"""
        start = self._current_index + 1
        return self._songs[start:start + limit]

    def get_all_songs(self) -> List[Song]:
        return self._songs.copy()

    def index_of(self, song_id: str) -> int:
        """Position of the first song with this id, or -1"""
        for i, song in enumerate(self._songs):
            if song.id == song_id:
                return i
        return -1

    def contains(self, song_id: str) -> bool:
        return self.index_of(song_id) >= 0

    async def add_song(self, song: Song) -> int:
        """Append song, return its 1-based position"""
        async with self._lock:
            self._songs.append(song)
            if self._original is not None:
                self._original.append(song)
            return len(self._songs)

    async def add_songs(self, songs: Iterable[Song]) -> int:
        """Append several songs, return how many were added"""
        async with self._lock:
            added = list(songs)
            self._songs.extend(added)
            if self._original is not None:
                self._original.extend(added)
            return len(added)

    async def replace(self, songs: Iterable[Song], current_index: int = 0) -> None:
        """
        Replace the whole queue with ``current_index`` selected. While shuffled
        the new songs are shuffled too and the selected song stays current.
        """
        async with self._lock:
            self._songs = list(songs)
            if not self._songs:
                self._original = [] if self._original is not None else None
                self._current_index = -1
                return

            self._current_index = min(max(0, current_index), len(self._songs) - 1)
            if self._original is not None:
                current = self._songs[self._current_index]
                self._original = list(self._songs)
                self._rng.shuffle(self._songs)
                self._current_index = self._find_identity(self._songs, current)

    async def jump_to(self, index: int) -> Song:
        """Make the song at index current"""
        async with self._lock:
            if not 0 <= index < len(self._songs):
                raise QueueIndexError("Queue index out of range", str(index))
            self._current_index = index
            return self._songs[index]

    def song_at(self, index: int) -> Optional[Song]:
        if 0 <= index < len(self._songs):
            return self._songs[index]
        return None

    def peek_next(self) -> Optional[Song]:
        """Song that next_song() would select, without moving"""
        index = self.next_index()
        return self._songs[index] if index is not None else None

    def next_index(self) -> Optional[int]:
        if not self._songs:
            return None
        if self._repeat_mode == RepeatMode.ONE and self.current_song is not None:
            return self._current_index
        if self._current_index < len(self._songs) - 1:
            return self._current_index + 1
        if self._repeat_mode == RepeatMode.ALL:
            return 0
        return None

    async def next_song(self) -> Optional[Song]:
        """Move to next song; None at the end of a non-repeating queue"""
        async with self._lock:
            index = self.next_index()
            if index is None:
                return None
            self._current_index = index
            return self._songs[index]

    def previous_index(self) -> Optional[int]:
        if not self._songs:
            return None
        if self._current_index > 0:
            return self._current_index - 1
        if self._repeat_mode == RepeatMode.ALL:
            return len(self._songs) - 1
        return None

    async def previous_song(self) -> Optional[Song]:
        """Move to previous song; None at the start unless repeating all"""
        async with self._lock:
            index = self.previous_index()
            if index is None:
                return None
            self._current_index = index
            return self._songs[index]

    async def set_current(self, index: int, song: Song, replacement: Optional[Song] = None) -> int:
        """
        Make ``song`` current, swapping in ``replacement`` (e.g. the full
        record fetched for it). ``index`` is a hint; if the queue moved
        since it was taken the song is looked up by identity.
        """
        async with self._lock:
            if self.song_at(index) is not song:
                index = self._find_identity(self._songs, song)
                if index < 0:
                    raise QueueIndexError("Song is no longer queued", song.id)

            if replacement is not None and replacement is not song:
                self._songs[index] = replacement
                if self._original is not None:
                    original_index = self._find_identity(self._original, song)
                    if original_index >= 0:
                        self._original[original_index] = replacement

            self._current_index = index
            return index

    async def remove_at(self, index: int) -> Song:
        """Remove an upcoming or past song; the current song cannot be removed"""
        async with self._lock:
            if not 0 <= index < len(self._songs):
                raise QueueIndexError("Queue index out of range", str(index))
            if index == self._current_index:
                raise QueueIndexError("Cannot remove the current song", str(index))

            song = self._songs.pop(index)
            if self._original is not None:
                self._remove_identity(self._original, song)
            if index < self._current_index:
                self._current_index -= 1
            return song

    async def clear(self) -> None:
        """Clear the entire queue"""
        async with self._lock:
            self._songs.clear()
            self._original = [] if self._original is not None else None
            self._current_index = -1

    async def toggle_shuffle(self) -> bool:
        """Shuffle or restore order, keeping the current song selected"""
        async with self._lock:
            current = self.current_song
            if self._original is None:
                self._original = list(self._songs)
                self._rng.shuffle(self._songs)
            else:
                self._songs = self._original
                self._original = None

            if current is not None:
                self._current_index = self._find_identity(self._songs, current)
            return self._original is not None

    @staticmethod
    def _find_identity(songs: List[Song], target: Song) -> int:
        return next((i for i, s in enumerate(songs) if s is target), -1)

    @classmethod
    def _remove_identity(cls, songs: List[Song], target: Song) -> None:
        index = cls._find_identity(songs, target)
        if index >= 0:
            songs.pop(index)

"""
Player controller
Owns the current song, the queue and the transport state of the audio output
"""

import asyncio
from dataclasses import dataclass
from typing import Iterable, List, Optional, Set, Tuple

from .api_client import MusicApiClient
from .audio.output import AudioOutput
from .discovery import DiscoveryService
from .notifications import NotificationCenter
from ..config.config import config
from ..config.constants import ERROR_MESSAGES, EVENTS, LIMITS, SUCCESS_MESSAGES
from ..domain.entities.queue import PlaybackQueue
from ..domain.entities.song import Song
from ..domain.valueobjects.playback_status import PlaybackStatus
from ..domain.valueobjects.repeat_mode import RepeatMode
from ..storage.session_played import SessionPlayedSet
from ..utils.events import EventBus, PlayerEvent
from ..utils.exceptions import ApiError, AudioOutputError, PlaybackError, QueueIndexError, StreamUnavailableError
from ..pkg.logger import logger


@dataclass(frozen=True)
class PlayerState:
    """Read-only snapshot handed to subscribers"""

    current_song: Optional[Song]
    is_playing: bool
    status: PlaybackStatus
    volume: float
    progress: float
    duration: float
    repeat_mode: RepeatMode
    shuffle: bool
    error: Optional[str]
    queue: Tuple[Song, ...]
    current_index: int


class PlayerController:
    """
    Playback/queue state machine driving a single AudioOutput.

    Every play request takes a new generation number and cancels the
    previous in-flight song fetch; a request whose generation is no longer
    current never touches state or the output.
    """

    def __init__(
        self,
        api: MusicApiClient,
        output: AudioOutput,
        discovery: Optional[DiscoveryService] = None,
        played: Optional[SessionPlayedSet] = None,
        notifications: Optional[NotificationCenter] = None,
        events: Optional[EventBus] = None,
        queue: Optional[PlaybackQueue] = None,
        autoplay: bool = config.AUTOPLAY,
        skip_on_unplayable: bool = config.SKIP_ON_UNPLAYABLE,
        recommendation_limit: int = config.RECOMMENDATION_LIMIT,
        volume: float = config.DEFAULT_VOLUME,
    ):
        self.api = api
        self.output = output
        self.discovery = discovery
        self.played = played if played is not None else SessionPlayedSet()
        self.notifications = notifications if notifications is not None else NotificationCenter()
        self.events = events
        self.queue = queue if queue is not None else PlaybackQueue()

        self.autoplay = autoplay
        self.skip_on_unplayable = skip_on_unplayable
        self.recommendation_limit = recommendation_limit

        # Playback state
        self.is_playing: bool = False
        self.status: PlaybackStatus = PlaybackStatus.IDLE
        self.volume: float = min(1.0, max(0.0, volume))
        self.error: Optional[str] = None

        self._generation = 0
        self._fetch_task: Optional[asyncio.Task] = None
        # Serializes load/play/pause/seek/volume/stop on the output
        self._transport_lock = asyncio.Lock()
        self._extension_task: Optional[asyncio.Task] = None
        self._failed_ids: Set[str] = set()
        self._closed = False

        self.output.volume = self.volume
        self.output.set_handlers(self._on_output_ended, self._on_output_error)

    # ===============================
    # State
    # ===============================

    @property
    def current_song(self) -> Optional[Song]:
        return self.queue.current_song

    @property
    def progress(self) -> float:
        return self.output.position if self.current_song else 0.0

    @property
    def duration(self) -> float:
        song = self.current_song
        if song is None:
            return 0.0
        return self.output.duration or float(song.duration)

    @property
    def state(self) -> PlayerState:
        return PlayerState(
            current_song=self.current_song,
            is_playing=self.is_playing,
            status=self.status,
            volume=self.volume,
            progress=self.progress,
            duration=self.duration,
            repeat_mode=self.queue.repeat_mode,
            shuffle=self.queue.shuffle_enabled,
            error=self.error,
            queue=tuple(self.queue.get_all_songs()),
            current_index=self.queue.current_index,
        )

    async def _publish(self, event_key: str, **payload) -> None:
        if self.events is None:
            return
        song = self.current_song
        await self.events.publish(
            EVENTS[event_key],
            PlayerEvent(EVENTS[event_key], song_id=song.id if song else None, payload=payload),
        )

    async def _publish_state(self) -> None:
        await self._publish("state_changed", status=self.status.value, is_playing=self.is_playing)

    # ===============================
    # Request bookkeeping
    # ===============================

    def _begin_request(self) -> int:
        """Start a new play request, superseding any in flight"""
        self._generation += 1
        if self._fetch_task is not None and not self._fetch_task.done():
            self._fetch_task.cancel()
        self._fetch_task = None
        self._failed_ids.clear()
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        return generation != self._generation or self._closed

    async def _resolve(self, song: Song, generation: int) -> Optional[Song]:
        """
        Return a playable record for song, fetching it when it carries no
        stream URL. None means the request was superseded or the fetch
        failed; neither case changes state.
        """
        if song.is_playable:
            return song

        logger.debug(f"Fetching song details for {song.id}")
        task = asyncio.create_task(self.api.get_song(song.id))
        self._fetch_task = task
        try:
            full = await task
        except asyncio.CancelledError:
            if self._is_stale(generation):
                logger.debug(f"Dropped superseded fetch for {song.id}")
                return None
            raise
        except ApiError as e:
            if self._is_stale(generation):
                return None
            logger.error(f"❌ Failed to fetch {song.display_name}: {e}")
            self.notifications.error(ERROR_MESSAGES["fetch_failed"])
            await self._publish("error", message=e.message, code=e.code.value)
            return None
        finally:
            if self._fetch_task is task:
                self._fetch_task = None

        if self._is_stale(generation):
            return None
        return full if full is not None else song

    # ===============================
    # Starting songs
    # ===============================

    async def _start(self, song: Song, generation: int) -> bool:
        """Load and play the current song; raises PlaybackError"""
        if not song.is_playable:
            raise StreamUnavailableError(ERROR_MESSAGES["no_audio"].format(song.name), song.id)

        self.status = PlaybackStatus.LOADING
        self.error = None
        async with self._transport_lock:
            if self._is_stale(generation):
                return False
            try:
                await self.output.load(song.stream_url, song.duration or None)
                if self._is_stale(generation):
                    return False
                await self.output.play()
            except AudioOutputError as e:
                raise AudioOutputError(ERROR_MESSAGES["audio_failed"], str(e))

        if self._is_stale(generation):
            return False

        self.is_playing = True
        self.status = PlaybackStatus.PLAYING
        self._failed_ids.clear()
        self.played.add(song.id)
        logger.info(f"▶️ Now playing: {song.display_name}")

        await self._publish("song_changed", name=song.name, index=self.queue.current_index)
        await self._publish_state()
        self._schedule_extension(song)
        return True

    async def _play_at(self, index: int, song: Song, generation: int, resolved: bool = False) -> bool:
        """
        Make the queued song at index current and start it. Unplayable songs
        are reported and skipped until one plays or every queued song has
        failed once.
        """
        while song is not None:
            if not resolved:
                full = await self._resolve(song, generation)
                if full is None:
                    return False
            else:
                full = song
            resolved = False

            try:
                index = await self.queue.set_current(index, song, full)
            except QueueIndexError as e:
                logger.warning(f"Song left the queue while loading: {e}")
                return False

            try:
                return await self._start(full, generation)
            except PlaybackError as e:
                if self._is_stale(generation):
                    return False
                await self._report_failure(full, e)
                index, song = self._skip_target(full)

        return False

    async def _report_failure(self, song: Song, error: PlaybackError) -> None:
        self.error = error.message
        self.status = PlaybackStatus.ERROR
        self.is_playing = False
        self._failed_ids.add(song.id)

        logger.error(f"❌ {error}")
        self.notifications.error(error.message)
        await self._publish("error", message=error.message)
        await self._publish_state()

    def _skip_target(self, failed: Song) -> Tuple[Optional[int], Optional[Song]]:
        """Next queued song to try after a failure, ignoring repeat-one"""
        if not self.skip_on_unplayable:
            return None, None

        index = self.queue.current_index + 1
        if index >= self.queue.queue_size:
            if self.queue.repeat_mode != RepeatMode.ALL:
                return None, None
            index = 0

        candidate = self.queue.song_at(index)
        if candidate is None or candidate.id in self._failed_ids:
            logger.warning("⚠️ No playable songs left in queue")
            return None, None

        logger.info(f"⏭️ Skipping {failed.display_name}")
        return index, candidate

    # ===============================
    # Public operations
    # ===============================

    async def play_song(self, song: Song, queue: Optional[Iterable[Song]] = None) -> bool:
        """
        Play song now. With queue, the queue is replaced and the cursor set
        to the song; otherwise the song is selected in, or appended to, the
        current queue.
        """
        if song is None or not song.id:
            logger.warning("Invalid song object")
            self.notifications.error(ERROR_MESSAGES["invalid_song"])
            return False

        generation = self._begin_request()
        full = await self._resolve(song, generation)
        if full is None:
            return False

        if queue is not None:
            songs = list(queue)
            index = next((i for i, s in enumerate(songs) if s.id == song.id), -1)
            if index < 0:
                songs.insert(0, full)
                index = 0
            else:
                songs[index] = full
            await self.queue.replace(songs, index)
            index = self.queue.current_index
        else:
            current = self.current_song
            if current is not None and current.id == song.id:
                index = self.queue.current_index
            else:
                index = self.queue.index_of(song.id)

            if index >= 0:
                index = await self.queue.set_current(index, self.queue.song_at(index), full)
            else:
                index = await self.queue.add_song(full) - 1

        await self._publish("queue_changed", size=self.queue.queue_size)
        return await self._play_at(index, self.queue.song_at(index), generation, resolved=True)

    async def toggle_play_pause(self) -> bool:
        """Flip play/pause; returns False when there is nothing to toggle"""
        song = self.current_song
        if song is None or self.status == PlaybackStatus.LOADING:
            return False

        if self.is_playing:
            async with self._transport_lock:
                await self.output.pause()
            self.is_playing = False
            self.status = PlaybackStatus.PAUSED
            logger.info(f"⏸️ Paused: {song.display_name}")
            await self._publish_state()
            return True

        if self.status in (PlaybackStatus.ERROR, PlaybackStatus.IDLE):
            generation = self._begin_request()
            return await self._play_at(self.queue.current_index, song, generation)

        try:
            async with self._transport_lock:
                if self.status == PlaybackStatus.ENDED:
                    await self.output.seek(0)
                await self.output.play()
        except AudioOutputError as e:
            await self._report_failure(song, AudioOutputError(ERROR_MESSAGES["audio_failed"], str(e)))
            return False

        self.is_playing = True
        self.status = PlaybackStatus.PLAYING
        logger.info(f"▶️ Resumed: {song.display_name}")
        await self._publish_state()
        return True

    async def play_next(self) -> bool:
        if self.queue.queue_size == 0:
            return False

        generation = self._begin_request()
        index = self.queue.next_index()

        if index is None and self._can_extend():
            await self._await_extension()
            if self._is_stale(generation):
                return False
            index = self.queue.next_index()

        if index is None:
            await self._finish_queue()
            return False

        return await self._play_at(index, self.queue.song_at(index), generation)

    async def play_previous(self) -> bool:
        song = self.current_song
        if song is None:
            return False

        if self.progress > LIMITS["restart_threshold_seconds"]:
            return await self._restart_current()

        index = self.queue.previous_index()
        if index is None:
            return await self._restart_current()

        generation = self._begin_request()
        return await self._play_at(index, self.queue.song_at(index), generation)

    async def _restart_current(self) -> bool:
        song = self.current_song
        if self.status in (PlaybackStatus.ERROR, PlaybackStatus.IDLE):
            generation = self._begin_request()
            return await self._play_at(self.queue.current_index, song, generation)

        async with self._transport_lock:
            await self.output.seek(0)
        if self.status == PlaybackStatus.ENDED:
            self.status = PlaybackStatus.PAUSED
        await self._publish_state()
        return True

    async def _finish_queue(self) -> None:
        """End of a non-repeating queue: stop but keep the last song current"""
        if self.is_playing:
            async with self._transport_lock:
                await self.output.pause()
        self.is_playing = False
        self.status = PlaybackStatus.ENDED
        logger.info("📭 Queue finished")
        await self._publish_state()

    async def add_to_queue(self, song: Song) -> int:
        """Append song, return its 1-based position (0 for an invalid song)"""
        if song is None or not song.id:
            self.notifications.error(ERROR_MESSAGES["invalid_song"])
            return 0

        position = await self.queue.add_song(song)
        logger.info(f"Added song to queue at position {position}: {song.display_name}")
        self.notifications.success(SUCCESS_MESSAGES["added_to_queue"].format(song.name))
        await self._publish("queue_changed", size=self.queue.queue_size)
        return position

    async def add_songs_to_queue(self, songs: Iterable[Song]) -> int:
        added = await self.queue.add_songs(s for s in songs if s is not None and s.id)
        if added:
            await self._publish("queue_changed", size=self.queue.queue_size)
        return added

    async def remove_from_queue(self, index: int) -> bool:
        try:
            song = await self.queue.remove_at(index)
        except QueueIndexError as e:
            logger.warning(f"Cannot remove queue entry: {e}")
            self.notifications.error(ERROR_MESSAGES["invalid_index"])
            return False

        self.notifications.info(SUCCESS_MESSAGES["removed_from_queue"].format(song.name))
        await self._publish("queue_changed", size=self.queue.queue_size)
        return True

    async def clear_queue(self) -> None:
        """Empty the queue and stop playback"""
        self._begin_request()
        self._cancel_extension()
        async with self._transport_lock:
            await self.output.stop()
        await self.queue.clear()

        self.is_playing = False
        self.status = PlaybackStatus.IDLE
        self.error = None
        self.notifications.info(SUCCESS_MESSAGES["queue_cleared"])
        await self._publish("queue_changed", size=0)
        await self._publish_state()

    async def set_volume(self, volume: float) -> float:
        """Set volume (0.0 to 1.0), return the clamped value"""
        try:
            volume = float(volume)
        except (TypeError, ValueError):
            volume = 0.0
        self.volume = max(0.0, min(1.0, volume))
        async with self._transport_lock:
            await self.output.set_volume(self.volume)
        await self._publish_state()
        return self.volume

    async def seek(self, seconds: float) -> bool:
        if self.current_song is None:
            return False
        target = max(0.0, float(seconds))
        if self.duration:
            target = min(target, self.duration)
        async with self._transport_lock:
            await self.output.seek(target)
        return True

    async def toggle_repeat(self) -> RepeatMode:
        mode = self.queue.cycle_repeat_mode()
        self.notifications.info(SUCCESS_MESSAGES["repeat_mode"].format(mode.value))
        await self._publish_state()
        return mode

    async def toggle_shuffle(self) -> bool:
        enabled = await self.queue.toggle_shuffle()
        self.notifications.info(SUCCESS_MESSAGES["shuffle"].format("on" if enabled else "off"))
        await self._publish("queue_changed", size=self.queue.queue_size, shuffle=enabled)
        return enabled

    def clear_error(self) -> None:
        self.error = None
        if self.status == PlaybackStatus.ERROR:
            self.status = PlaybackStatus.PAUSED if self.current_song else PlaybackStatus.IDLE

    # ===============================
    # Recommendations
    # ===============================

    def _can_extend(self) -> bool:
        return (
            self.autoplay
            and self.queue.repeat_mode == RepeatMode.NONE
            and self.current_song is not None
        )

    def _schedule_extension(self, song: Song) -> None:
        """Fetch recommendations in the background when the last song starts"""
        if not self._can_extend() or not self.queue.is_at_end:
            return
        if self._extension_task is not None and not self._extension_task.done():
            return
        self._extension_task = asyncio.create_task(self._extend_queue(song))

    async def _await_extension(self) -> int:
        task = self._extension_task
        if task is not None and not task.done():
            return await asyncio.shield(task)
        return await self._extend_queue(self.current_song)

    def _cancel_extension(self) -> None:
        if self._extension_task is not None and not self._extension_task.done():
            self._extension_task.cancel()
        self._extension_task = None

    def _fresh(self, songs: List[Song]) -> List[Song]:
        played = set(self.played.all())
        fresh = []
        for song in songs:
            if song.id in played or self.queue.contains(song.id):
                continue
            if any(s.id == song.id for s in fresh):
                continue
            fresh.append(song)
        return fresh

    async def _extend_queue(self, seed: Song) -> int:
        """Append suggestions for seed (or the For You mix) not yet played or queued"""
        try:
            suggestions = await self.api.get_song_suggestions(seed.id, self.recommendation_limit)
        except ApiError as e:
            logger.warning(f"⚠️ Suggestions unavailable for {seed.display_name}: {e}")
            suggestions = []

        fresh = self._fresh(suggestions)
        if not fresh and self.discovery is not None:
            fresh = self._fresh(await self.discovery.get_for_you_mix())

        if not fresh:
            logger.info("No recommendations to add")
            return 0

        added = await self.queue.add_songs(fresh[:self.recommendation_limit])
        logger.info(f"🎯 Added {added} recommended songs to queue")
        await self._publish("queue_changed", size=self.queue.queue_size, recommended=added)
        return added

    # ===============================
    # Output callbacks
    # ===============================

    async def _on_output_ended(self) -> None:
        """Auto-play next song when the output reaches the end of a source"""
        if self._closed:
            return
        self.is_playing = False
        self.status = PlaybackStatus.ENDED
        try:
            await self.play_next()
        except Exception as e:
            logger.error(f"❌ Error in auto-play next: {e}")

    async def _on_output_error(self, message: str) -> None:
        song = self.current_song
        if self._closed or song is None:
            return

        generation = self._generation
        await self._report_failure(song, AudioOutputError(ERROR_MESSAGES["audio_failed"], message))
        index, candidate = self._skip_target(song)
        if candidate is not None and not self._is_stale(generation):
            await self._play_at(index, candidate, generation)

    async def close(self) -> None:
        self._closed = True
        self._begin_request()
        self._cancel_extension()
        self.output.set_handlers(None, None)
        async with self._transport_lock:
            await self.output.close()
        self.is_playing = False
        logger.info("Player closed")

"""
Pytest configuration and shared fixtures
"""
import random
import pytest
from typing import List, Optional
from unittest.mock import AsyncMock, Mock

from saafy.domain.entities.song import Song
from saafy.domain.entities.queue import PlaybackQueue
from saafy.domain.valueobjects.media import AlbumRef, ImageVariant, StreamVariant
from saafy.services.api_client import MusicApiClient
from saafy.services.audio.output import AudioOutput
from saafy.services.discovery import DiscoveryService
from saafy.services.notifications import NotificationCenter
from saafy.services.player import PlayerController
from saafy.storage.kv_store import MemoryStore
from saafy.storage.session_played import SessionPlayedSet
from saafy.utils.events import EventBus
from saafy.utils.exceptions import AudioOutputError


def make_song(song_id: str, name: Optional[str] = None, playable: bool = True, duration: int = 180) -> Song:
    """Build a Song; playable songs carry two stream tiers"""
    streams = ()
    if playable:
        streams = (
            StreamVariant("96kbps", f"https://cdn.test/{song_id}_96.mp4"),
            StreamVariant("320kbps", f"https://cdn.test/{song_id}_320.mp4"),
        )
    return Song(
        id=song_id,
        name=name or f"Song {song_id}",
        primary_artists="Test Artist",
        album=AlbumRef(name="Test Album", id="album1"),
        duration=duration,
        images=(
            ImageVariant("50x50", f"https://img.test/{song_id}_50.jpg"),
            ImageVariant("150x150", f"https://img.test/{song_id}_150.jpg"),
            ImageVariant("500x500", f"https://img.test/{song_id}_500.jpg"),
        ),
        download_urls=streams,
    )


class FakeAudioOutput(AudioOutput):
    """Records transport calls; tests drive ended/error events by hand"""

    def __init__(self):
        super().__init__()
        self.calls: List[tuple] = []
        self.loaded_url: Optional[str] = None
        self.playing = False
        self.fail_urls = set()
        self._position = 0.0
        self._duration = 0.0

    @property
    def loads(self) -> List[str]:
        return [call[1] for call in self.calls if call[0] == "load"]

    @property
    def position(self) -> float:
        return self._position

    @position.setter
    def position(self, value: float) -> None:
        self._position = value

    @property
    def duration(self) -> float:
        return self._duration

    async def load(self, url, duration=None):
        self.calls.append(("load", url))
        self.loaded_url = url
        self.playing = False
        self._position = 0.0
        self._duration = float(duration or 0.0)

    async def play(self):
        self.calls.append(("play",))
        if self.loaded_url in self.fail_urls:
            raise AudioOutputError("decode failed", self.loaded_url)
        self.playing = True

    async def pause(self):
        self.calls.append(("pause",))
        self.playing = False

    async def stop(self):
        self.calls.append(("stop",))
        self.playing = False
        self._position = 0.0

    async def seek(self, seconds):
        self.calls.append(("seek", seconds))
        self._position = seconds

    async def set_volume(self, volume):
        self.calls.append(("volume", volume))
        self.volume = volume

    async def finish(self):
        """Simulate the source playing to its end"""
        self.playing = False
        await self._emit_ended()

    async def fail(self, message: str = "stream dropped"):
        self.playing = False
        await self._emit_error(message)


@pytest.fixture
def song_factory():
    return make_song


@pytest.fixture
def songs() -> List[Song]:
    """Three playable songs A, B, C"""
    return [make_song("A"), make_song("B"), make_song("C")]


@pytest.fixture
def ready_song() -> Song:
    return make_song("ready1", name="Kesariya")


@pytest.fixture
def bare_song() -> Song:
    """Song from a search list without stream URLs"""
    return make_song("bare1", name="Tum Hi Ho", playable=False)


@pytest.fixture
def queue() -> PlaybackQueue:
    return PlaybackQueue(rng=random.Random(42))


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def played(memory_store) -> SessionPlayedSet:
    return SessionPlayedSet(memory_store)


@pytest.fixture
def audio_output() -> FakeAudioOutput:
    return FakeAudioOutput()


@pytest.fixture
def mock_api():
    """MusicApiClient with every network call mocked"""
    api = Mock(spec=MusicApiClient)
    api.get_song = AsyncMock(return_value=None)
    api.get_song_suggestions = AsyncMock(return_value=[])
    api.search_songs = AsyncMock(return_value=[])
    api.close = AsyncMock()
    return api


@pytest.fixture
def mock_discovery():
    discovery = Mock(spec=DiscoveryService)
    discovery.get_for_you_mix = AsyncMock(return_value=[])
    return discovery


@pytest.fixture
def notifications() -> NotificationCenter:
    return NotificationCenter()


@pytest.fixture
def event_bus() -> EventBus:
    return EventBus()


@pytest.fixture
def player(mock_api, audio_output, mock_discovery, played, notifications, event_bus, queue) -> PlayerController:
    """Controller wired to fakes, autoplay off unless a test enables it"""
    return PlayerController(
        mock_api,
        audio_output,
        discovery=mock_discovery,
        played=played,
        notifications=notifications,
        events=event_bus,
        queue=queue,
        autoplay=False,
        skip_on_unplayable=True,
        recommendation_limit=5,
        volume=0.7,
    )

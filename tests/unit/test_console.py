"""
Unit tests for console command handling
"""
import pytest

from saafy.config.constants import ERROR_MESSAGES
from saafy.console import ConsoleApp, parse_args
from saafy.core.container import ServiceContainer
from saafy.domain.valueobjects.playback_status import PlaybackStatus
from saafy.storage.kv_store import MemoryStore
from saafy.utils.exceptions import ApiError, ApiErrorCode


@pytest.fixture
def services(mock_api, audio_output):
    return ServiceContainer.create(api=mock_api, output=audio_output, durable_store=MemoryStore())


@pytest.fixture
def lines():
    return []


@pytest.fixture
def app(services, lines):
    return ConsoleApp(services, out=lines.append)


@pytest.mark.asyncio
class TestConsoleApp:

    async def test_quit(self, app):
        assert await app.handle("quit") is False
        assert await app.handle("q") is False
        assert await app.handle("") is True

    async def test_unknown_command(self, app, lines):
        assert await app.handle("dance") is True
        assert lines == [ERROR_MESSAGES["unknown_command"]]

    async def test_search_then_play_result(self, app, lines, mock_api, songs, services):
        mock_api.search_songs.return_value = songs

        await app.handle("search arijit")
        await app.handle("play 2")

        mock_api.search_songs.assert_awaited_once_with("arijit")
        assert len(lines) == 3
        assert services.player.current_song.id == "B"
        assert services.player.queue.queue_size == 3

    async def test_add_and_remove(self, app, lines, mock_api, songs, services):
        mock_api.search_songs.return_value = songs
        await app.handle("search x")
        await app.handle("add 1")
        await app.handle("add 3")

        await app.handle("remove 9")
        assert lines[-1].startswith(ERROR_MESSAGES["invalid_index"])

        await app.handle("remove 2")
        assert [s.id for s in services.player.queue.get_all_songs()] == ["A"]

    async def test_pause_without_song(self, app, lines):
        await app.handle("k")
        assert lines == [ERROR_MESSAGES["no_song_playing"]]

    async def test_toggle_aliases(self, app, services, songs):
        await services.player.play_song(songs[0], queue=songs)

        await app.handle("space")
        assert services.player.status == PlaybackStatus.PAUSED
        await app.handle("pause")
        assert services.player.status == PlaybackStatus.PLAYING

    async def test_volume(self, app, lines, services):
        await app.handle("vol 40")
        assert services.player.volume == 0.4

        await app.handle("vol 140")
        assert services.player.volume == 0.4
        assert lines[-1] == ERROR_MESSAGES["invalid_volume"]

    async def test_theme_toggle_persists(self, app, lines, services):
        await app.handle("theme")

        assert services.theme.is_dark is True
        assert lines[-1] == "Theme: dark"

    async def test_notices_are_printed(self, app, lines, songs, services):
        await services.player.add_to_queue(songs[0])

        assert lines == [f"[success] Added to queue: {songs[0].name}"]

    async def test_api_error_is_reported(self, app, lines, mock_api):
        mock_api.search_songs.side_effect = ApiError("Network error occurred", 0, ApiErrorCode.NETWORK_ERROR)

        assert await app.handle("search anything") is True
        assert lines == ["Error: Network error occurred"]

    async def test_now_and_played(self, app, lines, services, songs):
        await services.player.play_song(songs[0], queue=songs)
        lines.clear()

        await app.handle("now")
        await app.handle("played")

        assert lines[0].startswith("playing: Test Artist - Song A")
        assert lines[1] == "1 songs played this session"

    async def test_stats(self, app, lines, mock_api, services, songs):
        mock_api.get_cache_stats.return_value = {"size": 3, "max_size": 200, "hit_rate": 0.5}
        mock_api.get_rate_limit_status.return_value = {"available_tokens": 14}
        await services.player.add_songs_to_queue(songs)

        await app.handle("stats")

        assert lines == ["cache 3/200 hit rate 50%, 14 requests available, 3 queued, 0 played"]


def test_parse_args():
    args = parse_args(["--backend", "silent", "--api-url", "http://localhost:3000"])

    assert args.backend == "silent"
    assert args.api_url == "http://localhost:3000"


@pytest.mark.asyncio
async def test_container_lifecycle(services, mock_api, audio_output, songs):
    assert await services.initialize() is True
    assert ("volume", services.player.volume) in audio_output.calls

    await services.player.play_song(songs[0], queue=songs)
    await services.shutdown()

    mock_api.close.assert_awaited_once()
    assert services.played.count() == 0
    assert audio_output.calls[-1] == ("stop",)

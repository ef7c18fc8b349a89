"""
Interactive console
Line commands driving the player, the keyboard shortcuts of the player UI
"""

import argparse
import asyncio
from typing import Awaitable, Callable, Dict, List, Optional

from .config.config import config
from .config.constants import ERROR_MESSAGES, EVENTS, LIMITS, SUCCESS_MESSAGES
from .core.container import ServiceContainer, create_audio_output
from .domain.entities.song import Song
from .services.notifications import Notice
from .utils.events import PlayerEvent
from .utils.exceptions import ApiError
from .utils.validation import ValidationUtils
from .pkg.logger import logger

HELP_TEXT = """Commands:
  search <query>        search songs
  play <n|query>        play result n, or the first hit for query
  add <n>               add result n to the queue
  queue                 show the queue
  next / prev           skip forward / back
  pause, space, k       play/pause
  vol <0-100>           set volume
  seek <seconds>        jump within the song
  repeat / shuffle      cycle repeat mode / toggle shuffle
  remove <n>            remove queue entry n
  clear                 clear the queue
  theme                 toggle dark/light theme
  foryou                play the For You mix
  discover [language]   songs picked for a language
  releases [language]   new releases
  played                songs played this session
  now                   current song
  stats                 cache, rate limit and queue stats
  quit                  exit"""

Handler = Callable[[str], Awaitable[None]]


class ConsoleApp:
    """Parses console lines and maps them onto container services"""

    def __init__(self, services: ServiceContainer, out: Callable[[str], None] = print):
        self.services = services
        self.player = services.player
        self._out = out
        self.results: List[Song] = []

        self.commands: Dict[str, Handler] = {
            "search": self.cmd_search,
            "play": self.cmd_play,
            "add": self.cmd_add,
            "queue": self.cmd_queue,
            "next": self.cmd_next,
            "prev": self.cmd_prev,
            "pause": self.cmd_toggle,
            "space": self.cmd_toggle,
            "k": self.cmd_toggle,
            "vol": self.cmd_volume,
            "seek": self.cmd_seek,
            "repeat": self.cmd_repeat,
            "shuffle": self.cmd_shuffle,
            "remove": self.cmd_remove,
            "clear": self.cmd_clear,
            "theme": self.cmd_theme,
            "foryou": self.cmd_for_you,
            "discover": self.cmd_discover,
            "releases": self.cmd_releases,
            "played": self.cmd_played,
            "now": self.cmd_now,
            "stats": self.cmd_stats,
            "help": self.cmd_help,
        }

        services.notifications.add_listener(self._show_notice)

    def _show_notice(self, notice: Notice) -> None:
        self._out(f"[{notice.type.value}] {notice.message}")

    def on_song_changed(self, event: PlayerEvent) -> None:
        song = self.player.current_song
        if song is not None:
            self._out(f"♪ {song.display_name}")

    def _show_songs(self, songs: List[Song], marker: int = -1) -> None:
        for i, song in enumerate(songs):
            prefix = "▶" if i == marker else " "
            self._out(f"{prefix}{i + 1:>3}. {song.display_name} [{song.duration_formatted}]")

    def _result_at(self, arg: str) -> Optional[Song]:
        try:
            index = int(arg) - 1
        except ValueError:
            return None
        if 0 <= index < len(self.results):
            return self.results[index]
        return None

    async def handle(self, line: str) -> bool:
        """Run one command line; False means quit"""
        line = line.strip()
        if not line:
            return True

        name, _, arg = line.partition(" ")
        name = name.lower()
        if name in ("quit", "exit", "q"):
            return False

        handler = self.commands.get(name)
        if handler is None:
            self._out(ERROR_MESSAGES["unknown_command"])
            return True

        try:
            await handler(arg.strip())
        except ApiError as e:
            logger.error(f"Command '{name}' failed: {e}")
            self._out(f"Error: {e.message}")
        return True

    # ===============================
    # Commands
    # ===============================

    async def cmd_search(self, arg: str) -> None:
        query = ValidationUtils.sanitize_search_query(arg)
        if not query:
            self._out(ERROR_MESSAGES["invalid_query"])
            return
        self.results = await self.services.api.search_songs(query)
        if not self.results:
            self._out(ERROR_MESSAGES["no_results"])
            return
        self._show_songs(self.results)

    async def cmd_play(self, arg: str) -> None:
        if not arg:
            await self.cmd_toggle(arg)
            return

        song = self._result_at(arg)
        if song is not None:
            await self.player.play_song(song, queue=self.results)
            return

        query = ValidationUtils.sanitize_search_query(arg)
        songs = await self.services.api.search_songs(query, 0, 1) if query else []
        if not songs:
            self._out(ERROR_MESSAGES["no_results"])
            return
        await self.player.play_song(songs[0])

    async def cmd_add(self, arg: str) -> None:
        song = self._result_at(arg)
        if song is None:
            self._out(ERROR_MESSAGES["invalid_index"])
            return
        await self.player.add_to_queue(song)

    async def cmd_queue(self, arg: str) -> None:
        songs = self.player.queue.get_all_songs()
        if not songs:
            self._out(ERROR_MESSAGES["queue_empty"])
            return
        self._show_songs(songs, marker=self.player.queue.current_index)

    async def cmd_next(self, arg: str) -> None:
        await self.player.play_next()

    async def cmd_prev(self, arg: str) -> None:
        await self.player.play_previous()

    async def cmd_toggle(self, arg: str) -> None:
        if not await self.player.toggle_play_pause():
            self._out(ERROR_MESSAGES["no_song_playing"])

    async def cmd_volume(self, arg: str) -> None:
        try:
            percent = int(arg)
        except ValueError:
            self._out(f"Volume: {round(self.player.volume * 100)}%")
            return
        is_valid, message = ValidationUtils.validate_volume(percent)
        if not is_valid:
            self._out(message)
            return
        volume = await self.player.set_volume(percent / LIMITS["volume_max"])
        self._out(SUCCESS_MESSAGES["volume_set"].format(round(volume * 100)))

    async def cmd_seek(self, arg: str) -> None:
        try:
            seconds = float(arg)
        except ValueError:
            self._out("Usage: seek <seconds>")
            return
        if not await self.player.seek(seconds):
            self._out(ERROR_MESSAGES["no_song_playing"])

    async def cmd_repeat(self, arg: str) -> None:
        await self.player.toggle_repeat()

    async def cmd_shuffle(self, arg: str) -> None:
        await self.player.toggle_shuffle()

    async def cmd_remove(self, arg: str) -> None:
        try:
            position = int(arg)
        except ValueError:
            self._out(ERROR_MESSAGES["invalid_index"])
            return
        is_valid, message = ValidationUtils.validate_queue_index(position, self.player.queue.queue_size)
        if not is_valid:
            self._out(message)
            return
        await self.player.remove_from_queue(position - 1)

    async def cmd_clear(self, arg: str) -> None:
        await self.player.clear_queue()

    async def cmd_theme(self, arg: str) -> None:
        self.services.theme.toggle()
        self._out(SUCCESS_MESSAGES["theme_changed"].format(self.services.theme.mode))

    async def cmd_for_you(self, arg: str) -> None:
        mix = await self.services.discovery.get_for_you_mix()
        if not mix:
            self._out(ERROR_MESSAGES["no_results"])
            return
        self.results = mix
        self._show_songs(mix)
        await self.player.play_song(mix[0], queue=mix)

    async def cmd_discover(self, arg: str) -> None:
        discovery = self.services.discovery
        language = arg.lower() or discovery.available_languages()[0]
        result = await discovery.get_discovery_songs(language)
        if not result.success:
            self._out(result.error or ERROR_MESSAGES["no_results"])
            return
        self.results = result.songs
        self._out(f"{result.language}: {result.query}")
        self._show_songs(result.songs)

    async def cmd_releases(self, arg: str) -> None:
        if arg:
            songs = await self.services.new_releases.get_by_language(arg.lower())
        else:
            songs = await self.services.new_releases.get_mixed()
        if not songs:
            self._out(ERROR_MESSAGES["no_results"])
            return
        self.results = songs
        self._show_songs(songs)

    async def cmd_played(self, arg: str) -> None:
        self._out(f"{self.services.played.count()} songs played this session")

    async def cmd_now(self, arg: str) -> None:
        state = self.player.state
        if state.current_song is None:
            self._out(ERROR_MESSAGES["no_song_playing"])
            return
        position, total = self.player.queue.position
        self._out(
            f"{state.status.value}: {state.current_song.display_name} "
            f"{int(state.progress)}s/{int(state.duration)}s "
            f"[{position}/{total}] repeat={state.repeat_mode.value} "
            f"shuffle={'on' if state.shuffle else 'off'} vol={round(state.volume * 100)}%"
        )
        if state.error:
            self._out(f"Error: {state.error}")

    async def cmd_stats(self, arg: str) -> None:
        stats = self.services.get_service_stats()
        cache = stats["cache"]
        self._out(
            f"cache {cache['size']}/{cache['max_size']} hit rate {cache['hit_rate']:.0%}, "
            f"{stats['rate_limit']['available_tokens']} requests available, "
            f"{stats['queue_size']} queued, {stats['played_this_session']} played"
        )

    async def cmd_help(self, arg: str) -> None:
        self._out(HELP_TEXT)


async def _read_line(prompt: str) -> str:
    loop = asyncio.get_running_loop()
    return await loop.run_in_executor(None, input, prompt)


async def run_console(services: ServiceContainer) -> None:
    app = ConsoleApp(services)
    await services.events.subscribe(EVENTS["song_changed"], app.on_song_changed)
    await services.initialize()
    print(f"🎵 {config.APP_NAME} {config.VERSION} - type 'help' for commands")
    try:
        while True:
            try:
                line = await _read_line("> ")
            except EOFError:
                break
            if not await app.handle(line):
                break
    finally:
        await services.shutdown()


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(prog=config.APP_NAME, description="Terminal music player")
    parser.add_argument("--backend", choices=["ffplay", "silent"], help="audio output backend")
    parser.add_argument("--api-url", help="music API base URL")
    return parser.parse_args(argv)


def run(argv: Optional[List[str]] = None) -> None:
    """Console entry point"""
    args = parse_args(argv)
    if args.api_url:
        config.SAAFY_API_URL = args.api_url

    logger.info(f"🎵 Starting {config.APP_NAME}...")
    services = ServiceContainer.create(output=create_audio_output(args.backend))
    try:
        asyncio.run(run_console(services))
    except KeyboardInterrupt:
        logger.info("🛑 Stopped by user")

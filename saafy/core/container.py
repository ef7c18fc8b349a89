"""
Dependency injection container
Builds the stores, API client, services and player in one place
"""

from dataclasses import dataclass, field
from typing import Optional

from ..config.config import config
from ..services.api_client import MusicApiClient
from ..services.audio.output import AudioOutput
from ..services.audio.ffplay_output import FFplayAudioOutput
from ..services.audio.silent_output import SilentAudioOutput
from ..services.discovery import DiscoveryService
from ..services.new_releases import NewReleasesService
from ..services.notifications import NotificationCenter
from ..services.player import PlayerController
from ..services.theme import ThemeStore
from ..storage.kv_store import JsonFileStore, KeyValueStore, MemoryStore
from ..storage.session_played import SessionPlayedSet
from ..utils.events import EventBus
from ..utils.exceptions import AudioOutputError
from ..pkg.logger import logger


def create_audio_output(backend: Optional[str] = None) -> AudioOutput:
    """Audio output for the configured backend, silent when ffplay is missing"""
    backend = backend or config.AUDIO_BACKEND
    if backend == "silent":
        return SilentAudioOutput()
    try:
        return FFplayAudioOutput()
    except AudioOutputError as e:
        logger.warning(f"⚠️ {e}, falling back to silent output")
        return SilentAudioOutput()


@dataclass
class ServiceContainer:
    """Service container for dependency injection"""

    api: MusicApiClient
    player: PlayerController
    theme: ThemeStore
    played: SessionPlayedSet
    discovery: DiscoveryService
    new_releases: NewReleasesService
    notifications: NotificationCenter
    events: EventBus
    durable_store: KeyValueStore
    session_store: KeyValueStore = field(default_factory=MemoryStore)

    @classmethod
    def create(
        cls,
        api: Optional[MusicApiClient] = None,
        output: Optional[AudioOutput] = None,
        durable_store: Optional[KeyValueStore] = None,
    ) -> "ServiceContainer":
        """
        Factory method to create service container with all dependencies

        Args:
            api: API client to use instead of one built from config
            output: Audio output to use instead of the configured backend
            durable_store: Store for persistent settings (theme)

        Returns:
            ServiceContainer: Configured service container
        """
        logger.info("🏗️ Creating service container...")

        durable_store = durable_store if durable_store is not None else JsonFileStore(config.state_file)
        session_store = MemoryStore()
        played = SessionPlayedSet(session_store)
        theme = ThemeStore(durable_store)
        logger.debug("✅ Stores created")

        api = api or MusicApiClient()
        discovery = DiscoveryService(api)
        new_releases = NewReleasesService(api)
        notifications = NotificationCenter()
        events = EventBus()
        logger.debug("✅ Services created")

        player = PlayerController(
            api,
            output or create_audio_output(),
            discovery=discovery,
            played=played,
            notifications=notifications,
            events=events,
        )

        container = cls(
            api=api,
            player=player,
            theme=theme,
            played=played,
            discovery=discovery,
            new_releases=new_releases,
            notifications=notifications,
            events=events,
            durable_store=durable_store,
            session_store=session_store,
        )
        logger.info("✅ Service container created successfully")
        return container

    async def initialize(self) -> bool:
        """Apply persisted settings to the player"""
        try:
            logger.info("🚀 Initializing services...")
            await self.player.set_volume(self.player.volume)
            logger.info(f"🎨 Theme: {self.theme.mode}")
            logger.info("✅ All services initialized successfully")
            return True
        except Exception as e:
            logger.error(f"❌ Failed to initialize services: {e}")
            return False

    async def shutdown(self):
        """Gracefully shutdown all services"""
        logger.info("🛑 Shutting down services...")
        try:
            await self.player.close()
            await self.api.close()
            self.played.clear()
            logger.info("✅ All services shutdown successfully")
        except Exception as e:
            logger.error(f"❌ Error during service shutdown: {e}")

    def get_service_stats(self) -> dict:
        return {
            "cache": self.api.get_cache_stats(),
            "rate_limit": self.api.get_rate_limit_status(),
            "played_this_session": self.played.count(),
            "queue_size": self.player.queue.queue_size,
        }

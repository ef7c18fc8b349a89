"""Audio output device interface"""

from abc import ABC, abstractmethod
from typing import Awaitable, Callable, Optional

from ...pkg.logger import logger

EndedHandler = Callable[[], Awaitable[None]]
ErrorHandler = Callable[[str], Awaitable[None]]


class AudioOutput(ABC):
    """
    Single audio sink driven by the player controller.

    Implementations report the end of a source and load/playback failures
    through the handlers registered with ``set_handlers``. A source replaced
    by ``load`` or ``stop`` never reports events afterwards.
    """

    def __init__(self):
        self.volume: float = 1.0
        self._on_ended: Optional[EndedHandler] = None
        self._on_error: Optional[ErrorHandler] = None

    def set_handlers(self, on_ended: Optional[EndedHandler], on_error: Optional[ErrorHandler]) -> None:
        self._on_ended = on_ended
        self._on_error = on_error

    async def _emit_ended(self) -> None:
        if self._on_ended is not None:
            await self._on_ended()

    async def _emit_error(self, message: str) -> None:
        logger.warning(f"Audio output error: {message}")
        if self._on_error is not None:
            await self._on_error(message)

    @abstractmethod
    async def load(self, url: str, duration: Optional[float] = None) -> None:
        """Replace the current source; position resets to 0"""
        pass

    @abstractmethod
    async def play(self) -> None:
        """Start or resume the loaded source; raises AudioOutputError"""
        pass

    @abstractmethod
    async def pause(self) -> None:
        pass

    @abstractmethod
    async def stop(self) -> None:
        """Halt playback and rewind to 0"""
        pass

    @abstractmethod
    async def seek(self, seconds: float) -> None:
        pass

    @abstractmethod
    async def set_volume(self, volume: float) -> None:
        """Set output gain in [0, 1]"""
        pass

    @property
    @abstractmethod
    def position(self) -> float:
        """Playback position in seconds"""
        pass

    @property
    @abstractmethod
    def duration(self) -> float:
        """Source length in seconds, 0 when unknown"""
        pass

    async def close(self) -> None:
        await self.stop()

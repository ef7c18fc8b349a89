import asyncio
import time
from typing import Optional

from .output import AudioOutput
from ...utils.exceptions import AudioOutputError


class SilentAudioOutput(AudioOutput):
    """Clock-only output: keeps transport state and ends after the duration hint"""

    def __init__(self):
        super().__init__()
        self._url: Optional[str] = None
        self._duration: float = 0.0
        self._offset: float = 0.0
        self._started_at: Optional[float] = None
        self._timer: Optional[asyncio.Task] = None

    @property
    def is_playing(self) -> bool:
        return self._started_at is not None

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        current = self._offset + (time.monotonic() - self._started_at)
        return min(current, self._duration) if self._duration else current

    @property
    def duration(self) -> float:
        return self._duration

    def _cancel_timer(self) -> None:
        if self._timer is not None and not self._timer.done():
            self._timer.cancel()
        self._timer = None

    def _freeze(self) -> None:
        self._offset = self.position
        self._started_at = None
        self._cancel_timer()

    async def _run_to_end(self, remaining: float) -> None:
        await asyncio.sleep(remaining)
        self._offset = self._duration
        self._started_at = None
        self._timer = None
        await self._emit_ended()

    async def load(self, url: str, duration: Optional[float] = None) -> None:
        self._freeze()
        self._url = url
        self._duration = float(duration or 0.0)
        self._offset = 0.0

    async def play(self) -> None:
        if not self._url:
            raise AudioOutputError("No source loaded")
        if self.is_playing:
            return
        self._started_at = time.monotonic()
        if self._duration:
            self._timer = asyncio.create_task(self._run_to_end(max(0.0, self._duration - self._offset)))

    async def pause(self) -> None:
        self._freeze()

    async def stop(self) -> None:
        self._freeze()
        self._offset = 0.0

    async def seek(self, seconds: float) -> None:
        was_playing = self.is_playing
        self._freeze()
        self._offset = max(0.0, seconds)
        if was_playing:
            await self.play()

    async def set_volume(self, volume: float) -> None:
        self.volume = min(1.0, max(0.0, float(volume)))

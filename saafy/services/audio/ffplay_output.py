import asyncio
import shutil
import subprocess
import time
from typing import Optional

from .output import AudioOutput
from ...config.config import config
from ...utils.exceptions import AudioOutputError
from ...pkg.logger import logger


class FFplayAudioOutput(AudioOutput):
    """
    Audio output that streams through an ffplay subprocess.

    ffplay has no control channel, so each play segment is its own process:
    pause and seek end the process and remember the position, play starts a
    new one with ``-ss``. Position is tracked by wall clock.
    """

    def __init__(self, binary: Optional[str] = None):
        super().__init__()
        self.binary = binary or config.FFPLAY_PATH or shutil.which("ffplay")
        if not self.binary:
            raise AudioOutputError("ffplay binary not found", "install ffmpeg or set FFPLAY_PATH")

        self._url: Optional[str] = None
        self._duration: float = 0.0
        self._offset: float = 0.0
        self._started_at: Optional[float] = None
        self._proc: Optional[asyncio.subprocess.Process] = None
        self._watcher: Optional[asyncio.Task] = None

    @property
    def position(self) -> float:
        if self._started_at is None:
            return self._offset
        current = self._offset + (time.monotonic() - self._started_at)
        return min(current, self._duration) if self._duration else current

    @property
    def duration(self) -> float:
        return self._duration

    def _build_args(self) -> list:
        args = [
            self.binary,
            "-nodisp",
            "-autoexit",
            "-loglevel", "error",
            "-volume", str(int(round(self.volume * 100))),
        ]
        if self._offset > 0:
            args += ["-ss", f"{self._offset:.2f}"]
        args.append(self._url)
        return args

    async def _spawn(self) -> None:
        try:
            proc = await asyncio.create_subprocess_exec(
                *self._build_args(),
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.PIPE,
            )
        except OSError as e:
            raise AudioOutputError("Failed to start ffplay", str(e))

        self._proc = proc
        self._started_at = time.monotonic()
        self._watcher = asyncio.create_task(self._watch(proc))
        logger.debug(f"ffplay started (pid {proc.pid}) at {self._offset:.1f}s")

    async def _watch(self, proc: asyncio.subprocess.Process) -> None:
        """Wait for a segment to exit and report ended/error for live segments"""
        _, stderr = await proc.communicate()
        if proc is not self._proc:
            return  # terminated by pause/seek/load/stop

        self._offset = self.position
        self._proc = None
        self._started_at = None

        if proc.returncode == 0:
            await self._emit_ended()
        else:
            detail = stderr.decode("utf-8", errors="replace").strip() if stderr else ""
            await self._emit_error(detail or f"ffplay exited with code {proc.returncode}")

    async def _terminate(self) -> None:
        proc = self._proc
        if proc is None:
            return

        self._offset = self.position
        self._proc = None
        self._started_at = None

        if proc.returncode is None:
            proc.terminate()
            try:
                await asyncio.wait_for(proc.wait(), timeout=2.0)
            except asyncio.TimeoutError:
                logger.warning(f"ffplay (pid {proc.pid}) did not exit, killing")
                proc.kill()
                await proc.wait()

    async def load(self, url: str, duration: Optional[float] = None) -> None:
        # New source is recorded before the old segment has exited
        self._url = url
        self._duration = float(duration or 0.0)
        await self._terminate()
        self._offset = 0.0

    async def play(self) -> None:
        if not self._url:
            raise AudioOutputError("No source loaded")
        if self._proc is not None:
            return
        await self._spawn()

    async def pause(self) -> None:
        await self._terminate()

    async def stop(self) -> None:
        await self._terminate()
        self._offset = 0.0

    async def seek(self, seconds: float) -> None:
        was_playing = self._proc is not None
        await self._terminate()
        self._offset = max(0.0, seconds)
        if was_playing:
            await self._spawn()

    async def set_volume(self, volume: float) -> None:
        self.volume = min(1.0, max(0.0, float(volume)))
        # ffplay takes volume at startup only
        if self._proc is not None:
            await self._terminate()
            await self._spawn()

    async def close(self) -> None:
        await self.stop()
        if self._watcher is not None and not self._watcher.done():
            self._watcher.cancel()

"""
Unit tests for audio output backends
"""
import asyncio

import pytest

from saafy.config.config import config
from saafy.core.container import create_audio_output
from saafy.services.audio.ffplay_output import FFplayAudioOutput
from saafy.services.audio.silent_output import SilentAudioOutput
from saafy.utils.exceptions import AudioOutputError


class Events:
    """Collects ended/error callbacks from an output"""

    def __init__(self, output):
        self.ended = asyncio.Event()
        self.errors = []
        output.set_handlers(self.on_ended, self.on_error)

    async def on_ended(self):
        self.ended.set()

    async def on_error(self, message):
        self.errors.append(message)


class FakeProcess:
    """Stands in for an ffplay subprocess"""

    def __init__(self, exit_code=0, stderr=b""):
        self.pid = 4242
        self.returncode = None
        self._exit_code = exit_code
        self._stderr = stderr
        self._exited = asyncio.Event()

    def finish(self):
        self.returncode = self._exit_code
        self._exited.set()

    def terminate(self):
        self.returncode = -15
        self._exited.set()

    def kill(self):
        self.returncode = -9
        self._exited.set()

    async def wait(self):
        await self._exited.wait()
        return self.returncode

    async def communicate(self):
        await self._exited.wait()
        return b"", self._stderr


@pytest.fixture
def spawned(monkeypatch):
    """Replace subprocess creation; yields the list of (args, process) spawned"""
    processes = []
    exit_codes = []

    async def fake_exec(*args, **kwargs):
        exit_code, stderr = exit_codes.pop(0) if exit_codes else (0, b"")
        proc = FakeProcess(exit_code, stderr)
        processes.append((list(args), proc))
        return proc

    monkeypatch.setattr("saafy.services.audio.ffplay_output.asyncio.create_subprocess_exec", fake_exec)
    return processes, exit_codes


@pytest.mark.asyncio
class TestSilentAudioOutput:

    async def test_play_without_source_raises(self):
        with pytest.raises(AudioOutputError):
            await SilentAudioOutput().play()

    async def test_reports_end_after_duration(self):
        output = SilentAudioOutput()
        events = Events(output)

        await output.load("https://cdn.test/a.mp4", duration=0.05)
        await output.play()
        await asyncio.wait_for(events.ended.wait(), timeout=2.0)

        assert output.is_playing is False
        assert output.position == pytest.approx(0.05)

    async def test_pause_freezes_position(self):
        output = SilentAudioOutput()
        await output.load("https://cdn.test/a.mp4", duration=100)
        await output.play()
        await output.pause()

        frozen = output.position
        await asyncio.sleep(0.02)

        assert output.position == frozen
        assert output.is_playing is False

    async def test_seek_and_stop(self):
        output = SilentAudioOutput()
        await output.load("https://cdn.test/a.mp4", duration=100)

        await output.seek(40)
        assert output.position == 40

        await output.stop()
        assert output.position == 0

    async def test_load_replaces_source_without_ending(self):
        output = SilentAudioOutput()
        events = Events(output)
        await output.load("https://cdn.test/a.mp4", duration=0.05)
        await output.play()

        await output.load("https://cdn.test/b.mp4", duration=100)
        await asyncio.sleep(0.1)

        assert not events.ended.is_set()
        assert output.duration == 100

    async def test_volume_is_clamped(self):
        output = SilentAudioOutput()

        await output.set_volume(3)
        assert output.volume == 1.0
        await output.set_volume(-1)
        assert output.volume == 0.0


@pytest.mark.asyncio
class TestFFplayAudioOutput:

    async def test_missing_binary(self, monkeypatch):
        monkeypatch.setattr(config, "FFPLAY_PATH", "")
        monkeypatch.setattr("saafy.services.audio.ffplay_output.shutil.which", lambda name: None)

        with pytest.raises(AudioOutputError):
            FFplayAudioOutput()

    async def test_play_spawns_process(self, spawned):
        processes, _ = spawned
        output = FFplayAudioOutput(binary="/usr/bin/ffplay")
        output.volume = 0.5

        await output.load("https://cdn.test/a.mp4", duration=200)
        await output.play()

        args, _ = processes[0]
        assert args[0] == "/usr/bin/ffplay"
        assert args[-1] == "https://cdn.test/a.mp4"
        assert args[args.index("-volume") + 1] == "50"
        assert "-ss" not in args
        await output.close()

    async def test_clean_exit_reports_end(self, spawned):
        processes, _ = spawned
        output = FFplayAudioOutput(binary="ffplay")
        events = Events(output)

        await output.load("https://cdn.test/a.mp4")
        await output.play()
        processes[0][1].finish()
        await output._watcher

        assert events.ended.is_set()
        assert events.errors == []

    async def test_failed_exit_reports_error(self, spawned):
        processes, exit_codes = spawned
        exit_codes.append((1, b"Invalid data found"))
        output = FFplayAudioOutput(binary="ffplay")
        events = Events(output)

        await output.load("https://cdn.test/a.mp4")
        await output.play()
        processes[0][1].finish()
        await output._watcher

        assert events.errors == ["Invalid data found"]
        assert not events.ended.is_set()

    async def test_pause_then_seek_resumes_at_offset(self, spawned):
        processes, _ = spawned
        output = FFplayAudioOutput(binary="ffplay")
        events = Events(output)

        await output.load("https://cdn.test/a.mp4", duration=200)
        await output.play()
        await output.pause()
        await output.seek(30)
        await output.play()

        first_proc = processes[0][1]
        assert first_proc.returncode == -15
        args, _ = processes[1]
        assert args[args.index("-ss") + 1] == "30.00"
        assert not events.ended.is_set()
        assert events.errors == []
        await output.close()

    async def test_volume_change_restarts_segment(self, spawned):
        processes, _ = spawned
        output = FFplayAudioOutput(binary="ffplay")
        await output.load("https://cdn.test/a.mp4", duration=200)
        await output.play()

        await output.set_volume(0.2)

        assert len(processes) == 2
        args, _ = processes[1]
        assert args[args.index("-volume") + 1] == "20"
        await output.close()


class TestCreateAudioOutput:

    def test_silent_backend(self):
        assert isinstance(create_audio_output("silent"), SilentAudioOutput)

    def test_falls_back_when_ffplay_missing(self, monkeypatch):
        monkeypatch.setattr(config, "FFPLAY_PATH", "")
        monkeypatch.setattr("saafy.services.audio.ffplay_output.shutil.which", lambda name: None)

        assert isinstance(create_audio_output("ffplay"), SilentAudioOutput)

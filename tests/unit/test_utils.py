"""
Unit tests for cache, rate limiter, validation, events and logging utilities
"""
import json
import logging

import pytest

from saafy.pkg.logger import ColoredFormatter, ContextLogger, StructuredFormatter
from saafy.utils.cache import ResponseCache
from saafy.utils.events import ALL_EVENTS, EventBus, PlayerEvent
from saafy.utils.rate_limiter import RateLimiter
from saafy.utils.validation import ValidationUtils


class FakeClock:
    def __init__(self, now: float = 1000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


class TestResponseCache:

    def test_set_and_get(self):
        cache = ResponseCache()
        cache.set("k", {"a": 1})

        assert cache.get("k") == {"a": 1}
        assert cache.get_stats()["hits"] == 1

    def test_entry_expires(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=60, clock=clock)
        cache.set("k", "v")

        clock.advance(61)

        assert cache.get("k") is None
        assert len(cache) == 0

    def test_per_entry_ttl(self):
        clock = FakeClock()
        cache = ResponseCache(default_ttl=60, clock=clock)
        cache.set("short", "v", ttl=5)
        cache.set("long", "v")

        clock.advance(10)

        assert cache.get("short") is None
        assert cache.get("long") == "v"

    def test_lru_eviction(self):
        cache = ResponseCache(max_size=2)
        cache.set("a", 1)
        cache.set("b", 2)
        cache.get("a")
        cache.set("c", 3)

        assert cache.get("b") is None
        assert cache.get("a") == 1
        assert cache.get_stats()["evictions"] == 1

    def test_make_key_is_order_independent(self):
        assert ResponseCache.make_key("/x", {"a": 1, "b": 2}) == ResponseCache.make_key("/x", {"b": 2, "a": 1})

    def test_invalidate_pattern(self):
        cache = ResponseCache()
        cache.set("/api/songs/1:{}", 1)
        cache.set("/api/songs/2:{}", 2)
        cache.set("/api/albums:{}", 3)

        assert cache.invalidate("/api/songs") == 2
        assert len(cache) == 1

    def test_hit_rate(self):
        cache = ResponseCache()
        cache.set("k", 1)
        cache.get("k")
        cache.get("missing")

        assert cache.get_stats()["hit_rate"] == 0.5


@pytest.mark.asyncio
class TestRateLimiter:

    async def test_burst_is_immediate(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=3, refill_rate=1.0, clock=clock)

        for _ in range(3):
            await limiter.acquire()

        assert limiter.get_status()["available_tokens"] == 0

    async def test_refills_over_time(self):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=2, refill_rate=2.0, clock=clock)
        await limiter.acquire()
        await limiter.acquire()

        clock.advance(1.0)

        assert limiter.get_status()["available_tokens"] == 2

    async def test_waits_when_empty(self, monkeypatch):
        clock = FakeClock()
        limiter = RateLimiter(max_tokens=1, refill_rate=2.0, clock=clock)
        slept = []

        async def fake_sleep(seconds):
            slept.append(seconds)
            clock.advance(seconds)

        monkeypatch.setattr("saafy.utils.rate_limiter.asyncio.sleep", fake_sleep)

        await limiter.acquire()
        await limiter.acquire()

        assert slept == [0.5]

    async def test_execute_and_context_manager(self):
        limiter = RateLimiter(max_tokens=5)

        async def operation():
            return "done"

        assert await limiter.execute(operation) == "done"
        async with limiter:
            pass
        assert limiter.get_status()["available_tokens"] == 3


class TestValidationUtils:

    def test_sanitize_search_query(self):
        assert ValidationUtils.sanitize_search_query("  arijit   'singh'; ${x} ") == "arijit singh x"
        assert ValidationUtils.sanitize_search_query(None) == ""
        assert len(ValidationUtils.sanitize_search_query("a" * 500)) == 200

    def test_sanitize_id(self):
        assert ValidationUtils.sanitize_id("ab-C_1/../x") == "ab-C_1x"
        assert ValidationUtils.sanitize_id(123) == "123"
        assert ValidationUtils.sanitize_id(None) == ""
        assert ValidationUtils.sanitize_id(True) == ""

    @pytest.mark.parametrize(
        "page,limit,expected",
        [(0, 10, (0, 10)), (-3, 100, (0, 50)), ("2", "5", (2, 5)), ("x", None, (0, 10)), (1, 0, (1, 10)), (0, -4, (0, 1))],
    )
    def test_validate_pagination(self, page, limit, expected):
        assert ValidationUtils.validate_pagination(page, limit) == expected

    def test_validate_volume(self):
        assert ValidationUtils.validate_volume(50) == (True, None)
        assert ValidationUtils.validate_volume(101)[0] is False

    def test_validate_queue_index(self):
        assert ValidationUtils.validate_queue_index(1, 3)[0] is True
        assert ValidationUtils.validate_queue_index(4, 3)[0] is False


@pytest.mark.asyncio
class TestEventBus:

    async def test_sync_and_async_handlers(self):
        bus = EventBus()
        seen = []

        async def on_async(event):
            seen.append(("async", event.song_id))

        await bus.subscribe("song_changed", lambda event: seen.append(("sync", event.song_id)))
        await bus.subscribe("song_changed", on_async)

        delivered = await bus.publish("song_changed", PlayerEvent("song_changed", song_id="A"))

        assert delivered == 2
        assert seen == [("sync", "A"), ("async", "A")]

    async def test_wildcard_and_unsubscribe(self):
        bus = EventBus()
        seen = []
        unsubscribe = await bus.subscribe(ALL_EVENTS, lambda event: seen.append(event.event_type))

        await bus.publish("queue_changed", PlayerEvent("queue_changed"))
        await unsubscribe()
        await bus.publish("queue_changed", PlayerEvent("queue_changed"))

        assert seen == ["queue_changed"]
        assert bus.subscriber_count(ALL_EVENTS) == 0

    async def test_failing_handler_does_not_stop_delivery(self):
        bus = EventBus()
        seen = []

        def broken(event):
            raise RuntimeError("handler bug")

        await bus.subscribe("playback_error", broken)
        await bus.subscribe("playback_error", seen.append)

        assert await bus.publish("playback_error", PlayerEvent("playback_error")) == 1
        assert len(seen) == 1
        assert await bus.unsubscribe("playback_error", broken) is True
        assert await bus.unsubscribe("playback_error", broken) is False


class TestLogFormatters:

    def make_record(self, **extra):
        record = logging.LogRecord("saafy", logging.WARNING, __file__, 10, "Request failed", None, None)
        for name, value in extra.items():
            setattr(record, name, value)
        return record

    def test_structured_formatter_includes_context(self):
        line = StructuredFormatter().format(self.make_record(component="api", endpoint="/api/songs/1"))
        data = json.loads(line)

        assert data["level"] == "WARNING"
        assert data["message"] == "Request failed"
        assert data["component"] == "api"
        assert data["endpoint"] == "/api/songs/1"
        assert "song_id" not in data

    def test_colored_formatter_tags_component(self):
        line = ColoredFormatter(fmt="%(levelname)s %(name)s %(message)s").format(self.make_record(component="api"))

        assert "[api]" in line
        assert "Request failed" in line

    def test_context_logger_binds_fields(self):
        adapter = ContextLogger(logging.getLogger("saafy.test"), {"component": "api"})
        bound = adapter.bind(song_id="s1")

        _, kwargs = bound.process("msg", {"extra": {"endpoint": "/x"}})

        assert kwargs["extra"] == {"component": "api", "song_id": "s1", "endpoint": "/x"}

"""
Token bucket rate limiter for external service calls
Bursts up to max_tokens, then refills at refill_rate tokens per second
"""

import asyncio
import time
from typing import Any, Awaitable, Callable, Dict, TypeVar

T = TypeVar("T")


class RateLimiter:
    """Async token bucket"""

    def __init__(
        self,
        max_tokens: int = 15,
        refill_rate: float = 2.0,
        clock: Callable[[], float] = time.monotonic,
    ):
        """
        Initialize rate limiter

        Args:
            max_tokens: Bucket capacity (burst size)
            refill_rate: Tokens added per second
            clock: Monotonic time source
        """
        self.max_tokens = max_tokens
        self.refill_rate = refill_rate
        self._clock = clock
        self._tokens = float(max_tokens)
        self._last_refill = clock()
        self._lock = asyncio.Lock()

    def _refill(self) -> None:
        now = self._clock()
        elapsed = now - self._last_refill
        self._tokens = min(self.max_tokens, self._tokens + elapsed * self.refill_rate)
        self._last_refill = now

    async def acquire(self) -> None:
        """Wait until a token is available and take it"""
        async with self._lock:
            while True:
                self._refill()
                if self._tokens >= 1:
                    self._tokens -= 1
                    return
                wait_time = (1 - self._tokens) / self.refill_rate
                await asyncio.sleep(wait_time)

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        await self.acquire()
        return await operation()

    async def __aenter__(self) -> "RateLimiter":
        await self.acquire()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        return None

    def get_status(self) -> Dict[str, Any]:
        self._refill()
        return {
            "available_tokens": int(self._tokens),
            "max_tokens": self.max_tokens,
            "refill_rate": self.refill_rate,
        }

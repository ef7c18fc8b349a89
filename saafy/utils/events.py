"""Player event bus - pub/sub for song, queue and playback state changes"""

import asyncio
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any, Callable, DefaultDict, Dict, List, Optional

from ..pkg.logger import logger

ALL_EVENTS = "*"


@dataclass
class PlayerEvent:
    """Event published by the player controller"""

    event_type: str
    song_id: Optional[str] = None
    payload: Dict[str, Any] = field(default_factory=dict)


class EventBus:
    """
    Async pub/sub keyed by event type. Handlers may be plain functions or
    coroutines; subscribing to ``ALL_EVENTS`` receives every event. A failing
    handler is logged and does not stop delivery to the others.
    """

    def __init__(self):
        self._handlers: DefaultDict[str, List[Callable]] = defaultdict(list)
        self._lock = asyncio.Lock()

    async def subscribe(self, event_type: str, handler: Callable) -> Callable[[], Any]:
        """Register handler, return a coroutine function that unsubscribes it"""
        async with self._lock:
            self._handlers[event_type].append(handler)
        logger.debug(f"Subscribed {getattr(handler, '__name__', handler)} to {event_type}")

        async def unsubscribe():
            await self.unsubscribe(event_type, handler)

        return unsubscribe

    async def unsubscribe(self, event_type: str, handler: Callable) -> bool:
        async with self._lock:
            handlers = self._handlers.get(event_type)
            if not handlers or handler not in handlers:
                return False
            handlers.remove(handler)
            return True

    async def publish(self, event_type: str, event: PlayerEvent) -> int:
        """Deliver event; returns how many handlers ran without error"""
        async with self._lock:
            handlers = self._handlers.get(event_type, []) + self._handlers.get(ALL_EVENTS, [])

        delivered = 0
        for handler in handlers:
            try:
                result = handler(event)
                if asyncio.iscoroutine(result):
                    await result
                delivered += 1
            except Exception as e:
                logger.error(f"Error in {event_type} handler: {e}")
        return delivered

    def subscriber_count(self, event_type: str) -> int:
        return len(self._handlers.get(event_type, []))

"""Short-lived user notices (toasts)"""

import itertools
import math
import time
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from ..domain.valueobjects.notice_type import NoticeType
from ..pkg.logger import logger

PERSISTENT = math.inf  # duration for notices that stay until removed


@dataclass(frozen=True)
class Notice:
    id: int
    message: str
    type: NoticeType = NoticeType.INFO
    duration: float = 3.0  # seconds
    created_at: float = 0.0

    def is_expired(self, now: float) -> bool:
        return now - self.created_at >= self.duration


class NotificationCenter:
    """Holds active notices; expired ones drop out of ``active()``"""

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._ids = itertools.count(1)
        self._notices: Dict[int, Notice] = {}
        self._listeners: List[Callable[[Notice], None]] = []

    def add_listener(self, listener: Callable[[Notice], None]) -> None:
        self._listeners.append(listener)

    def add(self, message: str, notice_type: NoticeType = NoticeType.INFO, duration: Optional[float] = None) -> int:
        notice = Notice(
            id=next(self._ids),
            message=message,
            type=notice_type,
            duration=3.0 if duration is None else duration,
            created_at=self._clock(),
        )
        self._notices[notice.id] = notice

        for listener in list(self._listeners):
            try:
                listener(notice)
            except Exception as e:
                logger.error(f"Notice listener failed: {e}")
        return notice.id

    def remove(self, notice_id: int) -> bool:
        return self._notices.pop(notice_id, None) is not None

    def success(self, message: str, duration: Optional[float] = None) -> int:
        return self.add(message, NoticeType.SUCCESS, duration)

    def error(self, message: str, duration: Optional[float] = None) -> int:
        return self.add(message, NoticeType.ERROR, duration)

    def info(self, message: str, duration: Optional[float] = None) -> int:
        return self.add(message, NoticeType.INFO, duration)

    def warning(self, message: str, duration: Optional[float] = None) -> int:
        return self.add(message, NoticeType.WARNING, duration)

    def active(self) -> List[Notice]:
        now = self._clock()
        expired = [nid for nid, notice in self._notices.items() if notice.is_expired(now)]
        for nid in expired:
            del self._notices[nid]
        return list(self._notices.values())

    def clear(self) -> None:
        self._notices.clear()


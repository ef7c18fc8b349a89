from enum import Enum


class RepeatMode(Enum):
    """Queue repeat mode"""

    NONE = "none"
    ALL = "all"
    ONE = "one"

    def next(self) -> "RepeatMode":
        """Cycle none -> all -> one -> none"""
        order = [RepeatMode.NONE, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]

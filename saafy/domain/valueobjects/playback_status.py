from enum import Enum


class PlaybackStatus(Enum):
    """Transport status of the player"""

    IDLE = "idle"
    LOADING = "loading"
    PLAYING = "playing"
    PAUSED = "paused"
    ENDED = "ended"
    ERROR = "error"

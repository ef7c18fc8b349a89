"""
Custom exception hierarchy for the player
Provides structured error handling with specific exception types
"""

from enum import Enum
from typing import Optional


class SaafyException(Exception):
    """Base exception for all player errors"""

    def __init__(self, message: str, details: str = None):
        self.message = message
        self.details = details
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message}: {self.details}"
        return self.message


# API Errors
class ApiErrorCode(Enum):
    """Error codes reported by the music API client"""

    NETWORK_ERROR = "NETWORK_ERROR"
    RATE_LIMITED = "RATE_LIMITED"
    INVALID_INPUT = "INVALID_INPUT"
    NOT_FOUND = "NOT_FOUND"
    SERVER_ERROR = "SERVER_ERROR"
    PARSE_ERROR = "PARSE_ERROR"
    VALIDATION_ERROR = "VALIDATION_ERROR"
    UNKNOWN_ERROR = "UNKNOWN_ERROR"


class ApiError(SaafyException):
    """Raised when a music API request fails"""

    def __init__(
        self,
        message: str,
        status: int = 0,
        code: ApiErrorCode = ApiErrorCode.UNKNOWN_ERROR,
        details: Optional[str] = None,
    ):
        super().__init__(message, details)
        self.status = status
        self.code = code

    def to_dict(self) -> dict:
        return {
            "name": type(self).__name__,
            "message": self.message,
            "status": self.status,
            "code": self.code.value,
        }


# Playback Errors
class PlaybackError(SaafyException):
    """Base class for playback related errors"""
    pass


class StreamUnavailableError(PlaybackError):
    """Raised when a song has no playable stream URL"""
    pass


class AudioOutputError(PlaybackError):
    """Raised when the audio output cannot load or play a source"""
    pass


# Queue Errors
class QueueError(SaafyException):
    """Base class for queue related errors"""
    pass


class QueueIndexError(QueueError):
    """Raised when queue index is out of bounds"""
    pass


# Storage Errors
class StorageError(SaafyException):
    """Raised when a key-value store cannot be read or written"""
    pass


# Configuration Errors
class ConfigurationError(SaafyException):
    """Base class for configuration related errors"""
    pass


class InvalidConfigurationError(ConfigurationError):
    """Raised when configuration is invalid"""
    pass

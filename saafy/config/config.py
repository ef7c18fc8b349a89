"""Configuration management with validation and singleton pattern"""

import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from ..utils.exceptions import InvalidConfigurationError

load_dotenv()


def _env_bool(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ["true", "1", "yes"]


def _env_number(name: str, default: str, cast=float):
    raw = os.getenv(name, default)
    try:
        return cast(raw)
    except ValueError:
        raise InvalidConfigurationError(f"{name} must be a number", raw)


class Config:
    """Centralized configuration with validation using singleton pattern"""

    _instance: Optional["Config"] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize configuration only once"""
        if hasattr(self, "_initialized") and self._initialized:
            return

        self.APP_NAME: str = os.getenv("APP_NAME", "saafy")
        self.VERSION: str = os.getenv("VERSION", "1.0.0")

        # Remote music API
        self.SAAFY_API_URL: str = os.getenv("SAAFY_API_URL", "https://saafy-api.vercel.app")
        self.REQUEST_TIMEOUT: float = _env_number("REQUEST_TIMEOUT", "15")
        self.CACHE_MAX_SIZE: int = _env_number("CACHE_MAX_SIZE", "200", int)
        self.CACHE_TTL: float = _env_number("CACHE_TTL", "900")
        self.RATE_LIMIT_BURST: int = _env_number("RATE_LIMIT_BURST", "15", int)
        self.RATE_LIMIT_REFILL: float = _env_number("RATE_LIMIT_REFILL", "2")

        # Playback
        self.AUTOPLAY: bool = _env_bool("AUTOPLAY", "true")
        self.SKIP_ON_UNPLAYABLE: bool = _env_bool("SKIP_ON_UNPLAYABLE", "true")
        self.RECOMMENDATION_LIMIT: int = _env_number("RECOMMENDATION_LIMIT", "10", int)
        self.DEFAULT_VOLUME: float = _env_number("DEFAULT_VOLUME", "0.7")
        self.AUDIO_BACKEND: str = os.getenv("AUDIO_BACKEND", "ffplay").lower()
        self.FFPLAY_PATH: str = os.getenv("FFPLAY_PATH", "")

        # Persistence and logging
        self.STATE_DIR: str = os.getenv("STATE_DIR", "./.saafy")
        self.LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
        self.LOG_FILE: str = os.getenv("LOG_FILE", "")

        self._validate()
        self._initialized = True

    def _validate(self):
        """Validate configuration values"""
        if not self.SAAFY_API_URL.startswith(("http://", "https://")):
            raise InvalidConfigurationError("SAAFY_API_URL must be an http(s) URL", self.SAAFY_API_URL)

        if self.REQUEST_TIMEOUT <= 0:
            raise InvalidConfigurationError("REQUEST_TIMEOUT must be positive", str(self.REQUEST_TIMEOUT))

        if self.CACHE_MAX_SIZE < 1:
            raise InvalidConfigurationError("CACHE_MAX_SIZE must be at least 1", str(self.CACHE_MAX_SIZE))

        if self.RATE_LIMIT_BURST < 1 or self.RATE_LIMIT_REFILL <= 0:
            raise InvalidConfigurationError("Rate limit settings must be positive")

        if not 0.0 <= self.DEFAULT_VOLUME <= 1.0:
            raise InvalidConfigurationError("DEFAULT_VOLUME must be between 0 and 1", str(self.DEFAULT_VOLUME))

        if self.AUDIO_BACKEND not in ("ffplay", "silent"):
            raise InvalidConfigurationError("AUDIO_BACKEND must be 'ffplay' or 'silent'", self.AUDIO_BACKEND)

    @property
    def state_path(self) -> Path:
        """Get directory holding durable state"""
        return Path(self.STATE_DIR)

    @property
    def state_file(self) -> Path:
        return self.state_path / "state.json"


# Global config instance
config = Config()

"""Light/dark theme flag with derived palette and fonts"""

from types import MappingProxyType
from typing import Mapping

from ..storage.kv_store import KeyValueStore
from ..config.constants import THEME_KEY, LIGHT_COLORS, DARK_COLORS, FONTS
from ..utils.exceptions import StorageError
from ..pkg.logger import logger


LIGHT_PALETTE: Mapping[str, str] = MappingProxyType(dict(LIGHT_COLORS))
DARK_PALETTE: Mapping[str, str] = MappingProxyType(dict(DARK_COLORS))
FONT_TABLE: Mapping[str, str] = MappingProxyType(dict(FONTS))


class ThemeStore:
    """Theme flag persisted in a durable store under the ``theme`` key"""

    def __init__(self, store: KeyValueStore, key: str = THEME_KEY):
        self._store = store
        self._key = key
        self._is_dark = self._load()

    def _load(self) -> bool:
        try:
            return self._store.get(self._key) == "dark"
        except StorageError as e:
            logger.warning(f"Theme not readable, using light: {e}")
            return False

    def _persist(self) -> None:
        try:
            self._store.set(self._key, self.mode)
        except StorageError as e:
            logger.error(f"Failed to persist theme: {e}")

    @property
    def is_dark(self) -> bool:
        return self._is_dark

    @property
    def mode(self) -> str:
        return "dark" if self._is_dark else "light"

    @property
    def palette(self) -> Mapping[str, str]:
        return DARK_PALETTE if self._is_dark else LIGHT_PALETTE

    @property
    def fonts(self) -> Mapping[str, str]:
        return FONT_TABLE

    def get_palette(self) -> Mapping[str, str]:
        return self.palette

    def toggle(self) -> bool:
        """Flip the flag and persist it, return the new is_dark value"""
        self._is_dark = not self._is_dark
        self._persist()
        logger.debug(f"Theme switched to {self.mode}")
        return self._is_dark

"""Key-value stores standing in for browser session and local storage"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional

from ..utils.exceptions import StorageError
from ..pkg.logger import logger


class KeyValueStore(ABC):
    """String key to string value store"""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return stored value or None"""
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        pass


class MemoryStore(KeyValueStore):
    """Ephemeral store, lives as long as the process (session scope)"""

    def __init__(self):
        self._data: Dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """
    Durable store backed by a single JSON object on disk.

    Writes go to a temporary file that replaces the target, so a crash never
    leaves a half-written state file behind. Any OS or decoding failure is
    raised as StorageError.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        try:
            if not self.path.exists():
                return {}
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Cannot read {self.path}", str(e))

        if not isinstance(data, dict):
            raise StorageError(f"Unexpected content in {self.path}", type(data).__name__)
        return data

    def _write(self, data: Dict[str, str]) -> None:
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            with open(tmp_path, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False, indent=2)
            os.replace(tmp_path, self.path)
        except (OSError, TypeError, ValueError) as e:
            tmp_path.unlink(missing_ok=True)
            raise StorageError(f"Cannot write {self.path}", str(e))
        logger.debug(f"Saved state file {self.path}")

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._read()
        data[key] = value
        self._write(data)

    def remove(self, key: str) -> None:
        data = self._read()
        if key in data:
            del data[key]
            self._write(data)

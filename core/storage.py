"""
Key-value persistence collaborators.

The ranking layer treats storage as an opaque string store with ``get`` and
``set``. Implementations are free to raise on failure; callers that must
not fail (the ranking store) catch and degrade.
"""

import json
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict, Optional, Union


class KeyValueStore(ABC):
    """Abstract string key-value store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """
        Read a value.

        Args:
            key: Storage key

        Returns:
            Stored string, or None if the key is absent
        """
        pass

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """
        Write a value, replacing any previous one.

        Args:
            key: Storage key
            value: String payload
        """
        pass


class InMemoryStore(KeyValueStore):
    """Dict-backed store; contents live as long as the instance."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value


class JsonFileStore(KeyValueStore):
    """
    Store backed by a single JSON object file.

    Each key maps to a string value inside the object. Writes go to a
    temporary sibling file first and are then moved into place.

    Example:
        store = JsonFileStore("./memory_match_ranking.json")
        store.set("memoryGameRanking", "[]")
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        data = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a JSON object")
        return data

    def get(self, key: str) -> Optional[str]:
        value = self._read_all().get(key)
        if value is None:
            return None
        if not isinstance(value, str):
            raise ValueError(f"Value for {key!r} in {self.path} is not a string")
        return value

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp_path, self.path)

"""
Key-value stores used by the email gate to remember the unlocked state.

The gate only ever needs ``get`` and ``set`` on a single string key, so any
mutable mapping will do: a plain dict, or the Flask session (a signed
client-side cookie). ``JsonFileStore`` backs the terminal interface.
"""

from __future__ import annotations

import json
import logging
import os
from typing import MutableMapping, Optional, Protocol

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...

    def set(self, key: str, value: str) -> None: ...


class MappingStore:
    """Adapt any mutable mapping to the store interface."""

    def __init__(self, mapping: Optional[MutableMapping[str, str]] = None):
        self.mapping = mapping if mapping is not None else {}

    def get(self, key: str) -> Optional[str]:
        return self.mapping.get(key)

    def set(self, key: str, value: str) -> None:
        self.mapping[key] = value


class JsonFileStore:
    """Flat JSON object on disk. A missing or unreadable file is an empty store."""

    def __init__(self, path: str):
        self.path = path

    def _load(self) -> dict:
        if not os.path.exists(self.path):
            return {}
        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def get(self, key: str) -> Optional[str]:
        value = self._load().get(key)
        return value if isinstance(value, str) else None

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        with open(self.path, "w", encoding="utf-8") as f:
            json.dump(data, f)

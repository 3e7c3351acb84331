"""In-process key-value store (nothing survives the process)."""

from __future__ import annotations

import copy
import json
from typing import Any

from chatai.storage.base import KeyValueStore, StorageError


class InMemoryStore(KeyValueStore):
    def __init__(self, initial: dict[str, Any] | None = None) -> None:
        self._values: dict[str, Any] = copy.deepcopy(initial or {})

    def read(self, key: str) -> Any | None:
        return copy.deepcopy(self._values.get(key))

    def write(self, key: str, value: Any) -> None:
        # Match the file backend: only JSON-compatible values are accepted.
        try:
            json.dumps(value)
        except (TypeError, ValueError) as exc:
            raise StorageError(key, f"value is not JSON serializable ({exc})") from exc
        self._values[key] = copy.deepcopy(value)


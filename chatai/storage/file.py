"""
JSON file storage.

Persists each key to ``<data_dir>/<key>.json`` so that entries are loaded,
lost, or corrupted independently of each other.
"""

from __future__ import annotations

import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from chatai.storage.base import KeyValueStore, StorageError

logger = logging.getLogger(__name__)

_KEY_PATTERN = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore(KeyValueStore):
    """Key-value store backed by one JSON file per key."""

    def __init__(self, data_dir: Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key.startswith("."):
            raise ValueError(f"Invalid storage key: {key!r}")
        return self.data_dir / f"{key}.json"

    def read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            with open(path, "r", encoding="utf-8") as handle:
                return json.load(handle)
        except json.JSONDecodeError as exc:
            raise StorageError(key, f"corrupt JSON in {path} ({exc.msg})") from exc
        except OSError as exc:
            raise StorageError(key, f"cannot read {path} ({exc})") from exc

    def write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        try:
            encoded = json.dumps(value, indent=2, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            raise StorageError(key, f"value is not JSON serializable ({exc})") from exc

        tmp_path = path.with_name(f".{path.name}.tmp")
        try:
            self._ensure_dir()
            with open(tmp_path, "w", encoding="utf-8") as handle:
                handle.write(encoded)
            self._restrict(tmp_path)
            os.replace(tmp_path, path)
        except OSError as exc:
            raise StorageError(key, f"cannot write {path} ({exc})") from exc

        logger.debug("Persisted storage entry", extra={"key": key, "path": str(path)})

    def _ensure_dir(self) -> None:
        self.data_dir.mkdir(parents=True, exist_ok=True, mode=0o700)

    @staticmethod
    def _restrict(path: Path) -> None:
        try:
            path.chmod(0o600)
        except OSError as exc:
            logger.debug(f"Could not restrict permissions on {path}: {exc}")

"""Key-value storage interface used by the session store."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class StorageError(Exception):
    """A persisted entry could not be read or written."""

    def __init__(self, key: str, message: str) -> None:
        self.key = key
        super().__init__(f"{key}: {message}")


class KeyValueStore(ABC):
    """
    Named JSON-compatible values, each read and overwritten as a whole.

    Entries are independent: a missing or unreadable entry never affects
    the others. There are no transactions; the last write wins.
    """

    @abstractmethod
    def read(self, key: str) -> Any | None:
        """Return the stored value, or None when the key was never written.

        Raises:
            StorageError: The entry exists but cannot be decoded
        """

    @abstractmethod
    def write(self, key: str, value: Any) -> None:
        """Replace the value stored under ``key``.

        Raises:
            StorageError: The value could not be persisted
        """

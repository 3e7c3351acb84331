"""Local key-value persistence backends."""

from chatai.config import StorageSettings
from chatai.storage.base import KeyValueStore, StorageError
from chatai.storage.file import JsonFileStore
from chatai.storage.memory import InMemoryStore


def create_store(settings: StorageSettings) -> KeyValueStore:
    """Build the backend selected by ``STORAGE_BACKEND``."""
    if settings.backend == "memory":
        return InMemoryStore()
    return JsonFileStore(settings.data_dir)


__all__ = [
    "KeyValueStore",
    "StorageError",
    "JsonFileStore",
    "InMemoryStore",
    "create_store",
]

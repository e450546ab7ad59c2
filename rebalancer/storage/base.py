"""Asset store interface and factory."""

from abc import ABC, abstractmethod

from ..portfolio.engine import AssetEntry


class StorageError(Exception):
    """Raised when persisted assets cannot be read or written."""


class AssetStore(ABC):
    """Persists the asset list as a whole."""

    @abstractmethod
    def load(self) -> list[AssetEntry]:
        """Return the saved entries, or an empty list if nothing is saved."""

    @abstractmethod
    def save(self, entries: list[AssetEntry]) -> None:
        """Replace the saved entries with `entries`."""


def create_store(settings: dict) -> AssetStore:
    """
    Build the store selected by the `storage` settings section.

    Args:
        settings: Validated settings with defaults applied

    Returns:
        JsonAssetStore or SqlAssetStore
    """
    from .json_store import JsonAssetStore
    from .models import SqlAssetStore

    storage = settings.get("storage", {})
    backend = storage.get("backend", "json")

    if backend == "json":
        return JsonAssetStore(storage.get("path", "data/portfolio.json"))
    if backend == "sqlite":
        return SqlAssetStore(storage.get("url", "sqlite:///data/portfolio.db"))

    raise ValueError(f"Unknown storage backend: {backend}. Available: json, sqlite")

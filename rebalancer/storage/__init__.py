"""Persistence for the asset list."""

from .base import AssetStore, StorageError, create_store
from .json_store import JsonAssetStore
from .models import AssetRecord, SqlAssetStore

__all__ = [
    "AssetStore",
    "StorageError",
    "create_store",
    "JsonAssetStore",
    "AssetRecord",
    "SqlAssetStore",
]

"""JSON file store for the asset list."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Union

from ..portfolio.engine import AssetEntry
from .base import AssetStore, StorageError

logger = logging.getLogger(__name__)


class JsonAssetStore(AssetStore):
    """
    Stores entries as a JSON array of {asset, marketValue, targetAllocation}.

    A missing file, or one holding `null`, loads as an empty portfolio.
    """

    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)

    def __repr__(self) -> str:
        return f"JsonAssetStore({str(self.path)!r})"

    def load(self) -> list[AssetEntry]:
        if not self.path.exists():
            return []

        try:
            with open(self.path, encoding="utf-8") as f:
                records = json.load(f)
        except (OSError, json.JSONDecodeError) as e:
            raise StorageError(f"Could not read {self.path}: {e}") from e

        if records is None:
            return []
        if not isinstance(records, list):
            raise StorageError(
                f"{self.path}: expected a JSON array, got {type(records).__name__}"
            )

        entries = []
        for i, record in enumerate(records):
            if not isinstance(record, dict):
                raise StorageError(f"{self.path}: record {i} is not an object")
            try:
                entries.append(AssetEntry.from_dict(record))
            except (TypeError, ValueError) as e:
                raise StorageError(f"{self.path}: record {i} is invalid: {e}") from e

        return entries

    def save(self, entries: list[AssetEntry]) -> None:
        """Write the list to a temp file beside the target, then swap it in."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
            )
        except OSError as e:
            raise StorageError(f"Could not write {self.path}: {e}") from e

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump([e.to_dict() for e in entries], f, indent=2, allow_nan=False)
            os.replace(tmp_name, self.path)
        except (OSError, ValueError) as e:
            Path(tmp_name).unlink(missing_ok=True)
            raise StorageError(f"Could not write {self.path}: {e}") from e

        logger.debug(f"Saved {len(entries)} assets to {self.path}")

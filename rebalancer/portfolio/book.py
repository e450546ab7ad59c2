"""
Portfolio book.

Owns the editable list of asset entries, persists it after every change and
recomputes the allocation table on demand.
"""

import logging
from typing import TYPE_CHECKING, Optional

from ..utils.logging import log_portfolio_change
from .engine import AllocationEngine, AssetEntry, ComputedAssetEntry
from .summary import PortfolioTotals, compute_totals, is_allocation_complete

if TYPE_CHECKING:
    from ..storage.base import AssetStore

logger = logging.getLogger(__name__)


class AssetValidationError(ValueError):
    """Raised when an edit would commit an invalid asset entry."""


class PortfolioBook:
    """
    Editable asset list backed by an optional store.

    The computed table is cached and rebuilt only after the list changes.
    """

    def __init__(
        self,
        entries: Optional[list[AssetEntry]] = None,
        store: Optional["AssetStore"] = None,
        engine: Optional[AllocationEngine] = None,
    ):
        """
        Initialize book.

        Args:
            entries: Starting entries (copied)
            store: Store to save the list to after each mutation
            engine: Allocation engine (default: AllocationEngine())
        """
        self._entries = list(entries or [])
        self.store = store
        self.engine = engine or AllocationEngine()
        self._computed: Optional[list[ComputedAssetEntry]] = None

    @classmethod
    def from_store(cls, store: "AssetStore", engine: Optional[AllocationEngine] = None) -> "PortfolioBook":
        """Create a book holding whatever the store has persisted."""
        entries = store.load()
        logger.debug(f"Loaded {len(entries)} assets from {store!r}")
        return cls(entries=entries, store=store, engine=engine)

    @property
    def entries(self) -> list[AssetEntry]:
        return list(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def add_asset(
        self,
        asset: Optional[str] = None,
        market_value: Optional[float] = None,
        target_allocation: Optional[float] = None,
    ) -> int:
        """
        Append an entry and save once.

        With no asset name this appends a blank row for the user to fill in.
        A given name must be non-empty.

        Returns:
            Index of the new entry

        Raises:
            AssetValidationError: If asset is given but empty
        """
        if asset is None:
            entry = AssetEntry()
        else:
            entry = self._make_entry(asset, market_value, target_allocation)

        self._entries.append(entry)
        index = len(self._entries) - 1
        self._changed("add", index, asset=entry.asset)
        return index

    def update_asset(
        self,
        index: int,
        asset: str,
        market_value: Optional[float],
        target_allocation: Optional[float],
    ) -> AssetEntry:
        """
        Commit an edit to the entry at index.

        Raises:
            AssetValidationError: If asset is empty
            IndexError: If index is out of range
        """
        self._check_index(index)
        entry = self._make_entry(asset, market_value, target_allocation)
        self._entries[index] = entry
        self._changed("edit", index, asset=entry.asset)
        return entry

    def remove_asset(self, index: int) -> AssetEntry:
        """Delete the entry at index and return it."""
        self._check_index(index)
        entry = self._entries.pop(index)
        self._changed("remove", index, asset=entry.asset)
        return entry

    def replace_entries(self, entries: list[AssetEntry]) -> bool:
        """
        Replace the whole list, as a table editor does.

        Blank rows are kept as in-progress edits, but an edit that clears the
        name of a named row is refused. Rows are matched by position when the
        row count is unchanged; adding or deleting rows never edits a cell.

        Returns:
            True if anything changed

        Raises:
            AssetValidationError: If a named row would become blank
        """
        entries = list(entries)
        if entries == self._entries:
            return False

        if len(entries) == len(self._entries):
            for index, (old, new) in enumerate(zip(self._entries, entries)):
                if old.asset.strip() and not new.asset.strip():
                    raise AssetValidationError(
                        f"Asset name is required (row {index}, was {old.asset!r})"
                    )

        self._entries = entries
        self._changed("replace", 0)
        return True

    def computed(self) -> list[ComputedAssetEntry]:
        """Allocation table for the current entries."""
        if self._computed is None:
            self._computed = self.engine.compute(self._entries)
        return list(self._computed)

    def totals(self) -> PortfolioTotals:
        return compute_totals(self.computed())

    @property
    def allocation_complete(self) -> bool:
        return is_allocation_complete(self._entries)

    @staticmethod
    def _make_entry(
        asset: Optional[str],
        market_value: Optional[float],
        target_allocation: Optional[float],
    ) -> AssetEntry:
        asset = (asset or "").strip()
        if not asset:
            raise AssetValidationError("Asset name is required")
        return AssetEntry(
            asset=asset,
            market_value=float(market_value or 0),
            target_allocation=float(target_allocation or 0),
        )

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._entries):
            raise IndexError(f"No asset at index {index} (have {len(self._entries)})")

    def _changed(self, action: str, index: int, **kwargs) -> None:
        self._computed = None
        if self.store is not None:
            self.store.save(self._entries)
        log_portfolio_change(logger, action, index, len(self._entries), **kwargs)

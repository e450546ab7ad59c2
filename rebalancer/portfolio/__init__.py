"""Portfolio allocation and rebalancing module."""

from .engine import (
    AllocationEngine,
    AssetEntry,
    ComputedAssetEntry,
    compute,
)
from .summary import PortfolioTotals, compute_totals, is_allocation_complete
from .book import AssetValidationError, PortfolioBook

__all__ = [
    "AllocationEngine",
    "AssetEntry",
    "ComputedAssetEntry",
    "compute",
    "PortfolioTotals",
    "compute_totals",
    "is_allocation_complete",
    "AssetValidationError",
    "PortfolioBook",
]

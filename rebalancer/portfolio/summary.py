"""Column totals and allocation checks for a computed portfolio table."""

import math
from dataclasses import asdict, dataclass
from typing import Sequence

from .engine import AssetEntry, ComputedAssetEntry

REQUIRED_TOTAL_ALLOCATION = 100


@dataclass(frozen=True)
class PortfolioTotals:
    """Footer row: sum of every numeric column."""
    market_value: float = 0.0
    current_allocation: float = 0.0
    target_allocation: float = 0.0
    buy_sell: float = 0.0
    buy_only: float = 0.0

    def to_dict(self) -> dict[str, float]:
        return asdict(self)


def compute_totals(rows: Sequence[ComputedAssetEntry]) -> PortfolioTotals:
    """Sum each column over the computed rows."""
    return PortfolioTotals(
        market_value=sum(r.market_value for r in rows),
        current_allocation=sum(r.current_allocation for r in rows),
        target_allocation=sum(r.target_allocation for r in rows),
        buy_sell=sum(r.buy_sell for r in rows),
        buy_only=sum(r.buy_only for r in rows),
    )


def target_allocation_total(entries: Sequence[AssetEntry]) -> float:
    return sum(e.target_allocation for e in entries)


def is_allocation_complete(entries: Sequence[AssetEntry]) -> bool:
    """
    Check whether target allocations add up to 100%.

    The sum is rounded half-up to the nearest integer, so 99.5 passes and
    99.49 does not. A non-finite sum never passes. Advisory only:
    computation runs either way.
    """
    total = target_allocation_total(entries)
    if not math.isfinite(total):
        return False
    return math.floor(total + 0.5) == REQUIRED_TOTAL_ALLOCATION

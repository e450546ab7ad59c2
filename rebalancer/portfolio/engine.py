"""
Allocation engine.

Derives current allocation, buy/sell deltas and a buy-only plan from a list
of asset entries. Pure functions only: nothing here reads or writes state
outside its arguments.
"""

from dataclasses import dataclass
from typing import Any, Iterable, Sequence


def _number(value: Any) -> float:
    """Coerce a decoded numeric field, treating missing/null as zero."""
    if value is None:
        return 0.0
    return float(value)


@dataclass(frozen=True)
class AssetEntry:
    """A holding as entered by the user."""
    asset: str = ""
    market_value: float = 0.0
    target_allocation: float = 0.0  # percent, 0 to 100

    @classmethod
    def from_dict(cls, data: dict) -> "AssetEntry":
        """Decode a persisted record (camelCase keys)."""
        asset = data.get("asset")
        return cls(
            asset="" if asset is None else str(asset),
            market_value=_number(data.get("marketValue")),
            target_allocation=_number(data.get("targetAllocation")),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "asset": self.asset,
            "marketValue": self.market_value,
            "targetAllocation": self.target_allocation,
        }


@dataclass(frozen=True)
class ComputedAssetEntry:
    """An asset entry with its derived allocation figures."""
    asset: str
    market_value: float
    target_allocation: float
    current_allocation: float
    buy_sell: float
    buy_only: float

    @property
    def entry(self) -> AssetEntry:
        return AssetEntry(self.asset, self.market_value, self.target_allocation)

    def to_dict(self) -> dict[str, Any]:
        return {
            **self.entry.to_dict(),
            "currentAllocation": self.current_allocation,
            "buySell": self.buy_sell,
            "buyOnly": self.buy_only,
        }


def current_allocation(market_value: float, total_market_value: float) -> float:
    """Share of the portfolio held by one asset, in percent."""
    if total_market_value == 0:
        return 0.0
    return (market_value / total_market_value) * 100


def buy_sell_amount(
    market_value: float,
    target_allocation: float,
    allocation: float,
) -> float:
    """
    Change in market value that brings one asset to its target share.

    The rest of the portfolio is held fixed, so this is a single-asset
    approximation rather than a joint solve across all entries.
    """
    if allocation == 0:
        return 0.0
    return (target_allocation * market_value) / allocation - market_value


def sell_adjustment(pairs: Iterable[tuple[float, float]]) -> float:
    """
    Scaling factor that removes every sell from a plan.

    Args:
        pairs: (buy_sell, target_allocation) for each entry

    Returns:
        Largest |buy_sell / target_allocation| among selling entries, or 0
    """
    ratios = [
        abs(buy_sell / target) if target != 0 else 0.0
        for buy_sell, target in pairs
        if buy_sell < 0
    ]
    return max(ratios + [0.0])


def compute(entries: Sequence[AssetEntry]) -> list[ComputedAssetEntry]:
    """
    Compute allocation and rebalancing figures for every entry.

    Args:
        entries: Holdings in display order

    Returns:
        One computed entry per input entry, same order
    """
    total_market_value = sum(e.market_value for e in entries)

    partial = []
    for e in entries:
        allocation = current_allocation(e.market_value, total_market_value)
        partial.append(
            (e, allocation, buy_sell_amount(e.market_value, e.target_allocation, allocation))
        )

    adjustment = sell_adjustment((bs, e.target_allocation) for e, _, bs in partial)

    return [
        ComputedAssetEntry(
            asset=e.asset,
            market_value=e.market_value,
            target_allocation=e.target_allocation,
            current_allocation=allocation,
            buy_sell=bs,
            buy_only=bs + e.target_allocation * adjustment,
        )
        for e, allocation, bs in partial
    ]


class AllocationEngine:
    """
    Stateless rebalancing calculator.

    Object form of :func:`compute`. An instance holds no data between calls.
    """

    def compute(self, entries: Sequence[AssetEntry]) -> list[ComputedAssetEntry]:
        return compute(entries)

    def compute_records(self, records: Sequence[dict]) -> list[dict[str, Any]]:
        """Compute from persisted records and return wire-format dicts."""
        rows = compute([AssetEntry.from_dict(r) for r in records])
        return [row.to_dict() for row in rows]

    @staticmethod
    def adjustment(rows: Sequence[ComputedAssetEntry]) -> float:
        """Buy-only scaling factor implied by a computed table."""
        return sell_adjustment((r.buy_sell, r.target_allocation) for r in rows)

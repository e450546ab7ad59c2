"""Tabular views of the computed portfolio: DataFrames and CSV export."""

import io
import logging
from pathlib import Path
from typing import Optional, Sequence, Union

import pandas as pd

from ..portfolio.engine import AssetEntry, ComputedAssetEntry
from ..portfolio.summary import compute_totals
from .formatting import DEFAULT_CURRENCY, Currency, format_percentage, format_price

logger = logging.getLogger(__name__)

# Column header -> ComputedAssetEntry attribute
COLUMNS = {
    "Asset": "asset",
    "Market value": "market_value",
    "Current allocation": "current_allocation",
    "Target allocation": "target_allocation",
    "Buy/sell": "buy_sell",
    "Buy only": "buy_only",
}

PRICE_COLUMNS = ("Market value", "Buy/sell", "Buy only")
PERCENT_COLUMNS = ("Current allocation", "Target allocation")

# Editable subset, as shown in the asset editor
EDITOR_COLUMNS = {
    "Asset": "asset",
    "Market value": "market_value",
    "Target allocation": "target_allocation",
}


def to_dataframe(rows: Sequence[ComputedAssetEntry]) -> pd.DataFrame:
    """Raw computed values, one row per asset, in input order."""
    data = [
        {header: getattr(row, attr) for header, attr in COLUMNS.items()}
        for row in rows
    ]
    return pd.DataFrame(data, columns=list(COLUMNS))


def to_display_frame(
    rows: Sequence[ComputedAssetEntry],
    currency: Currency = DEFAULT_CURRENCY,
    include_totals: bool = True,
) -> pd.DataFrame:
    """
    Formatted table as shown to the user.

    Args:
        rows: Computed entries
        currency: Display currency label
        include_totals: Append a "Totals:" footer row

    Returns:
        DataFrame of strings
    """
    frame = to_dataframe(rows)

    if include_totals:
        totals = compute_totals(rows)
        footer = {header: getattr(totals, attr) for header, attr in COLUMNS.items() if header != "Asset"}
        footer["Asset"] = "Totals:"
        footer_frame = pd.DataFrame([footer], columns=list(COLUMNS))
        if frame.empty:
            frame = footer_frame
        else:
            frame = pd.concat([frame, footer_frame], ignore_index=True)

    for column in PRICE_COLUMNS:
        frame[column] = frame[column].map(lambda v: format_price(v, currency))
    for column in PERCENT_COLUMNS:
        frame[column] = frame[column].map(format_percentage)

    return frame


def entries_to_frame(entries: Sequence[AssetEntry]) -> pd.DataFrame:
    """Editable columns for an asset editor widget."""
    data = [
        {header: getattr(entry, attr) for header, attr in EDITOR_COLUMNS.items()}
        for entry in entries
    ]
    return pd.DataFrame(data, columns=list(EDITOR_COLUMNS))


def entries_from_frame(frame: pd.DataFrame) -> list[AssetEntry]:
    """
    Read asset entries back from an edited table.

    Blank numeric cells become 0 and asset names are stripped; rows without a
    name are kept as in-progress edits.
    """
    entries = []
    for record in frame.to_dict("records"):
        asset = record.get("Asset")
        market_value = record.get("Market value")
        target_allocation = record.get("Target allocation")
        entries.append(AssetEntry(
            asset="" if pd.isna(asset) else str(asset).strip(),
            market_value=0.0 if pd.isna(market_value) else float(market_value),
            target_allocation=0.0 if pd.isna(target_allocation) else float(target_allocation),
        ))
    return entries


def export_csv(
    rows: Sequence[ComputedAssetEntry],
    path_or_buffer: Optional[Union[str, Path, io.TextIOBase]] = None,
) -> Optional[str]:
    """
    Export the computed table as CSV.

    Args:
        rows: Computed entries
        path_or_buffer: Destination file or buffer; None returns the text

    Returns:
        CSV text when no destination is given, else None
    """
    frame = to_dataframe(rows)

    if path_or_buffer is None:
        return frame.to_csv(index=False)

    if isinstance(path_or_buffer, (str, Path)):
        output_path = Path(path_or_buffer)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        frame.to_csv(output_path, index=False)
        logger.info(f"Exported {len(frame)} assets to {output_path}")
        return None

    frame.to_csv(path_or_buffer, index=False)
    return None

"""Display formatting and export of the computed portfolio table."""

from .formatting import (
    CURRENCIES,
    DEFAULT_CURRENCY,
    Currency,
    currency_names,
    format_percentage,
    format_price,
    get_currency,
)
from .table import (
    entries_from_frame,
    entries_to_frame,
    export_csv,
    to_dataframe,
    to_display_frame,
)

__all__ = [
    "CURRENCIES",
    "DEFAULT_CURRENCY",
    "Currency",
    "currency_names",
    "format_percentage",
    "format_price",
    "get_currency",
    "entries_from_frame",
    "entries_to_frame",
    "export_csv",
    "to_dataframe",
    "to_display_frame",
]

"""Currency labels and number formatting for display."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Currency:
    """Display currency. Only the label changes; values are never converted."""
    name: str
    symbol: str


CURRENCIES = (
    Currency(name="USD", symbol="$"),
    Currency(name="EUR", symbol="€"),
    Currency(name="GBP", symbol="£"),
)

DEFAULT_CURRENCY = CURRENCIES[0]


def currency_names() -> list[str]:
    return [c.name for c in CURRENCIES]


def get_currency(name: str) -> Currency:
    """Look up a currency by its code (case-insensitive)."""
    for currency in CURRENCIES:
        if currency.name == name.upper():
            return currency

    available = ", ".join(currency_names())
    raise ValueError(f"Unknown currency: {name}. Available: {available}")


def format_price(value: float, currency: Currency = DEFAULT_CURRENCY) -> str:
    """Format a monetary value, e.g. 1234.5 -> "$1,234.50", -300 -> "-$300.00"."""
    value = value or 0.0
    sign = "-" if value < 0 and round(abs(value), 2) != 0 else ""
    return f"{sign}{currency.symbol}{abs(value):,.2f}"


def format_percentage(value: float) -> str:
    """Format a value already expressed in percent, e.g. 80 -> "80.00%"."""
    value = value or 0.0
    if round(value, 2) == 0:
        value = 0.0
    return f"{value:,.2f}%"

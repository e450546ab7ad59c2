"""Tests for display formatting and table export."""

import io

import pandas as pd
import pytest

from rebalancer.portfolio.engine import AssetEntry, compute
from rebalancer.reports.formatting import (
    CURRENCIES,
    Currency,
    currency_names,
    format_percentage,
    format_price,
    get_currency,
)
from rebalancer.reports.table import (
    COLUMNS,
    entries_from_frame,
    entries_to_frame,
    export_csv,
    to_dataframe,
    to_display_frame,
)


@pytest.fixture
def rows():
    return compute([
        AssetEntry(asset="A", market_value=800, target_allocation=50),
        AssetEntry(asset="B", market_value=200, target_allocation=50),
    ])


class TestCurrencies:
    """Tests for the currency catalogue."""

    def test_catalogue(self):
        assert currency_names() == ["USD", "EUR", "GBP"]
        assert [c.symbol for c in CURRENCIES] == ["$", "€", "£"]

    def test_get_currency_case_insensitive(self):
        assert get_currency("eur") == Currency("EUR", "€")

    def test_unknown_currency(self):
        with pytest.raises(ValueError, match="Unknown currency"):
            get_currency("JPY")


class TestFormatting:
    """Tests for price and percentage formatting."""

    @pytest.mark.parametrize("value,expected", [
        (0, "$0.00"),
        (1234.5, "$1,234.50"),
        (-300, "-$300.00"),
        (1000000, "$1,000,000.00"),
        (-0.001, "$0.00"),
        (None, "$0.00"),
    ])
    def test_format_price(self, value, expected):
        assert format_price(value) == expected

    def test_format_price_currency_is_label_only(self):
        """Switching currency changes the symbol, never the amount."""
        assert format_price(1234.5, get_currency("GBP")) == "£1,234.50"
        assert format_price(-5, get_currency("EUR")) == "-€5.00"

    @pytest.mark.parametrize("value,expected", [
        (80, "80.00%"),
        (33.333, "33.33%"),
        (0, "0.00%"),
        (100, "100.00%"),
        (-0.001, "0.00%"),
        (None, "0.00%"),
    ])
    def test_format_percentage(self, value, expected):
        assert format_percentage(value) == expected


class TestDataFrames:
    """Tests for DataFrame views."""

    def test_to_dataframe(self, rows):
        df = to_dataframe(rows)

        assert list(df.columns) == list(COLUMNS)
        assert list(df["Asset"]) == ["A", "B"]
        assert df["Buy/sell"].tolist() == [pytest.approx(-300), pytest.approx(300)]
        assert df["Buy only"].tolist() == [pytest.approx(0), pytest.approx(600)]

    def test_to_dataframe_empty(self):
        df = to_dataframe([])

        assert df.empty
        assert list(df.columns) == list(COLUMNS)

    def test_display_frame_has_totals(self, rows):
        df = to_display_frame(rows)

        assert len(df) == 3
        footer = df.iloc[-1]
        assert footer["Asset"] == "Totals:"
        assert footer["Market value"] == "$1,000.00"
        assert footer["Current allocation"] == "100.00%"
        assert footer["Target allocation"] == "100.00%"
        assert footer["Buy/sell"] == "$0.00"
        assert footer["Buy only"] == "$600.00"

    def test_display_frame_formats_rows(self, rows):
        df = to_display_frame(rows, get_currency("EUR"), include_totals=False)

        assert len(df) == 2
        assert df.iloc[0]["Market value"] == "€800.00"
        assert df.iloc[0]["Current allocation"] == "80.00%"
        assert df.iloc[0]["Buy/sell"] == "-€300.00"

    def test_display_frame_empty_has_zero_totals(self):
        df = to_display_frame([])

        assert len(df) == 1
        assert df.iloc[0]["Asset"] == "Totals:"
        assert df.iloc[0]["Market value"] == "$0.00"

    def test_editor_frame_round_trip(self):
        entries = [AssetEntry("A", 10.0, 60.0), AssetEntry("", 0.0, 0.0)]

        assert entries_from_frame(entries_to_frame(entries)) == entries

    def test_entries_from_edited_frame(self):
        """Blank cells from a table editor become zeros and empty names."""
        frame = pd.DataFrame({
            "Asset": [" VTI ", None],
            "Market value": [100.0, float("nan")],
            "Target allocation": [float("nan"), 40],
        })

        assert entries_from_frame(frame) == [
            AssetEntry("VTI", 100.0, 0.0),
            AssetEntry("", 0.0, 40.0),
        ]


class TestExportCsv:
    """Tests for CSV export."""

    def test_export_returns_text(self, rows):
        text = export_csv(rows)
        lines = text.strip().splitlines()

        assert lines[0] == "Asset,Market value,Current allocation,Target allocation,Buy/sell,Buy only"
        assert lines[1].startswith("A,800,")
        assert len(lines) == 3

    def test_export_to_file(self, tmp_path, rows):
        path = tmp_path / "out" / "portfolio.csv"
        assert export_csv(rows, path) is None

        df = pd.read_csv(path)
        assert list(df["Asset"]) == ["A", "B"]
        assert df["Buy only"].tolist() == [pytest.approx(0), pytest.approx(600)]

    def test_export_to_buffer(self, rows):
        buffer = io.StringIO()
        export_csv(rows, buffer)

        assert buffer.getvalue().startswith("Asset,")

    def test_export_empty(self):
        text = export_csv([])

        assert text.strip() == "Asset,Market value,Current allocation,Target allocation,Buy/sell,Buy only"

"""
Streamlit dashboard for the rebalancing calculator.

Run with: streamlit run rebalancer/dashboard/app.py
"""

import pandas as pd
import plotly.graph_objects as go
import streamlit as st

from rebalancer.config.validator import load_settings
from rebalancer.portfolio.book import AssetValidationError, PortfolioBook
from rebalancer.portfolio.engine import ComputedAssetEntry
from rebalancer.reports.formatting import CURRENCIES, Currency, format_percentage, format_price, get_currency
from rebalancer.reports.table import entries_from_frame, entries_to_frame, export_csv, to_display_frame
from rebalancer.storage.base import StorageError, create_store
from rebalancer.utils.logging import setup_logging_from_settings

ALLOCATION_WARNING = "Allocation 100% required"
EMPTY_MESSAGE = "Add one or more assets to get started."

# Page configuration
st.set_page_config(
    page_title="Portfolio Rebalancer",
    page_icon="⚖️",
    layout="wide",
)


@st.cache_resource
def get_settings() -> dict:
    settings = load_settings()
    setup_logging_from_settings(settings)
    return settings


def get_book(settings: dict) -> PortfolioBook:
    """One book per browser session, loaded from the configured store."""
    if "book" not in st.session_state:
        st.session_state.book = PortfolioBook.from_store(create_store(settings))
    return st.session_state.book


def render_header(settings: dict) -> Currency:
    """Render title and currency selector."""
    st.title("⚖️ Portfolio Rebalancer")

    names = [c.name for c in CURRENCIES]
    default = names.index(get_currency(settings["display"]["currency"]).name)
    name = st.selectbox("Currency", names, index=default)
    return get_currency(name)


def render_editor(book: PortfolioBook) -> None:
    """Editable asset table; commits every change back to the book."""
    st.subheader("Assets")

    error = st.session_state.pop("editor_error", None)
    if error:
        st.error(error)

    # The editor keeps its own edits relative to the frame it was first given
    if "editor_frame" not in st.session_state:
        st.session_state.editor_frame = entries_to_frame(book.entries)

    edited = st.data_editor(
        st.session_state.editor_frame,
        num_rows="dynamic",
        use_container_width=True,
        hide_index=True,
        column_config={
            "Asset": st.column_config.TextColumn("Asset"),
            "Market value": st.column_config.NumberColumn("Market value", min_value=0.0, format="%.2f"),
            "Target allocation": st.column_config.NumberColumn(
                "Target allocation", min_value=0.0, max_value=100.0, format="%.2f%%"
            ),
        },
        key="asset_editor",
    )

    try:
        book.replace_entries(entries_from_frame(edited))
    except AssetValidationError as e:
        # Drop the rejected edit and redraw the editor from the book
        st.session_state.editor_error = str(e)
        st.session_state.editor_frame = entries_to_frame(book.entries)
        del st.session_state["asset_editor"]
        st.rerun()


def render_results(rows: list[ComputedAssetEntry], book: PortfolioBook, currency: Currency) -> None:
    """Computed table, totals and allocation warning."""
    st.subheader("Rebalancing")

    if not book.allocation_complete:
        st.warning(ALLOCATION_WARNING)

    if not rows:
        st.info(EMPTY_MESSAGE)
        return

    st.dataframe(to_display_frame(rows, currency), use_container_width=True, hide_index=True)

    totals = book.totals()
    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Total market value", format_price(totals.market_value, currency))
    with col2:
        st.metric("Total target allocation", format_percentage(totals.target_allocation))
    with col3:
        st.metric("Buy-only contribution", format_price(totals.buy_only, currency))

    st.download_button(
        "⬇️ Export CSV",
        data=export_csv(rows),
        file_name="portfolio.csv",
        mime="text/csv",
    )


def render_allocation_chart(rows: list[ComputedAssetEntry]) -> None:
    """Current vs target allocation per asset."""
    if not rows:
        return

    df = pd.DataFrame({
        "asset": [r.asset or "(unnamed)" for r in rows],
        "current": [r.current_allocation for r in rows],
        "target": [r.target_allocation for r in rows],
    })

    fig = go.Figure()
    fig.add_trace(go.Bar(x=df["asset"], y=df["current"], name="Current allocation"))
    fig.add_trace(go.Bar(x=df["asset"], y=df["target"], name="Target allocation"))
    fig.update_layout(
        barmode="group",
        yaxis_title="%",
        height=350,
        margin=dict(l=0, r=0, t=30, b=0),
    )
    st.plotly_chart(fig, use_container_width=True)


def main():
    settings = get_settings()

    try:
        book = get_book(settings)
    except StorageError as e:
        st.error(f"Could not load saved assets: {e}")
        return

    currency = render_header(settings)
    render_editor(book)

    rows = book.computed()
    render_results(rows, book, currency)
    render_allocation_chart(rows)


if __name__ == "__main__":
    main()

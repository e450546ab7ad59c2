#!/usr/bin/env python3
"""
Rebalancer CLI - Manage the asset list and print the rebalancing table.

Usage:
    rebalancer show
    rebalancer add VTI --value 8000 --target 60
    rebalancer edit 0 --value 8500
    rebalancer remove 1
    rebalancer export -o results/portfolio.csv
    rebalancer validate-config -c config/settings.yaml
"""

import argparse
import json
import math
import sys
from typing import Optional

from ..config.validator import (
    DEFAULT_CONFIG_PATH,
    ConfigValidationError,
    load_settings,
    validate_config,
)
from ..portfolio.book import AssetValidationError, PortfolioBook
from ..reports.formatting import currency_names, get_currency
from ..reports.table import export_csv, to_display_frame
from ..storage.base import StorageError, create_store
from ..utils.logging import LogContext, get_logger, log_rebalance_plan, setup_logging_from_settings

logger = get_logger("cli")

ALLOCATION_WARNING = "Allocation 100% required"
EMPTY_MESSAGE = "Add one or more assets to get started."


def finite_float(value: str) -> float:
    """argparse type: a float that is neither infinite nor NaN."""
    try:
        number = float(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid number: {value!r}")
    if not math.isfinite(number):
        raise argparse.ArgumentTypeError(f"must be a finite number: {value!r}")
    return number


def open_book(settings: dict) -> PortfolioBook:
    """Load the persisted asset list through the configured store."""
    return PortfolioBook.from_store(create_store(settings))


def cmd_show(book: PortfolioBook, settings: dict, args: argparse.Namespace) -> int:
    rows = book.computed()
    totals = book.totals()

    log_rebalance_plan(
        logger,
        asset_count=len(rows),
        total_market_value=totals.market_value,
        total_buy_only=totals.buy_only,
        allocation_complete=book.allocation_complete,
    )

    if args.json:
        print(json.dumps(
            {
                "assets": [row.to_dict() for row in rows],
                "totals": totals.to_dict(),
                "allocationComplete": book.allocation_complete,
            },
            indent=2,
        ))
        return 0

    if not rows:
        print(EMPTY_MESSAGE)
        return 0

    currency = get_currency(args.currency or settings["display"]["currency"])
    frame = to_display_frame(rows, currency)
    frame.index = [str(i) for i in range(len(rows))] + [""]
    print(frame.to_string())

    if not book.allocation_complete:
        print(f"\nWarning: {ALLOCATION_WARNING}")

    return 0


def cmd_add(book: PortfolioBook, settings: dict, args: argparse.Namespace) -> int:
    index = book.add_asset(args.asset, args.value, args.target)
    print(f"Added {book.entries[index].asset} at row {index}")
    return 0


def cmd_edit(book: PortfolioBook, settings: dict, args: argparse.Namespace) -> int:
    current = book.entries[args.index] if 0 <= args.index < len(book) else None
    if current is None:
        raise IndexError(f"No asset at index {args.index} (have {len(book)})")

    entry = book.update_asset(
        args.index,
        args.asset if args.asset is not None else current.asset,
        args.value if args.value is not None else current.market_value,
        args.target if args.target is not None else current.target_allocation,
    )
    print(f"Updated row {args.index}: {entry.asset}")
    return 0


def cmd_remove(book: PortfolioBook, settings: dict, args: argparse.Namespace) -> int:
    entry = book.remove_asset(args.index)
    print(f"Removed {entry.asset or '(unnamed)'} from row {args.index}")
    return 0


def cmd_export(book: PortfolioBook, settings: dict, args: argparse.Namespace) -> int:
    output = args.output or settings["export"]["path"]
    if output == "-":
        sys.stdout.write(export_csv(book.computed()))
        return 0

    export_csv(book.computed(), output)
    print(f"Exported {len(book)} assets to {output}")
    return 0


COMMANDS = {
    "show": cmd_show,
    "add": cmd_add,
    "edit": cmd_edit,
    "remove": cmd_remove,
    "export": cmd_export,
}


def run_validate_config(config_path: Optional[str]) -> int:
    path = config_path or DEFAULT_CONFIG_PATH
    try:
        result = validate_config(path)
    except FileNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for warning in result.warnings:
        print(f"Warning: {warning}")
    for error in result.errors:
        print(f"Error: {error}", file=sys.stderr)

    if result.valid:
        print(f"{path}: OK")
        return 0
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rebalancer",
        description="Portfolio rebalancing calculator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Build a two-asset portfolio
  rebalancer add Stocks --value 800 --target 50
  rebalancer add Bonds --value 200 --target 50

  # Show current allocation, buy/sell and buy-only amounts
  rebalancer show --currency EUR

  # Save the table as CSV
  rebalancer export -o results/portfolio.csv
        """,
    )

    parser.add_argument(
        "-c", "--config",
        type=str,
        default=None,
        help=f"Settings file (default: {DEFAULT_CONFIG_PATH} if present)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    show = subparsers.add_parser("show", help="Print the rebalancing table")
    show.add_argument(
        "--currency",
        type=str.upper,
        choices=currency_names(),
        default=None,
        help="Display currency label (default: from settings)",
    )
    show.add_argument("--json", action="store_true", help="Print raw values as JSON")

    add = subparsers.add_parser("add", help="Add an asset")
    add.add_argument("asset", type=str, help="Asset name")
    add.add_argument("--value", type=finite_float, default=0.0, help="Market value (default: 0)")
    add.add_argument("--target", type=finite_float, default=0.0, help="Target allocation in %% (default: 0)")

    edit = subparsers.add_parser("edit", help="Edit the asset at a row index")
    edit.add_argument("index", type=int, help="Row index (see `show`)")
    edit.add_argument("--asset", type=str, default=None, help="New asset name")
    edit.add_argument("--value", type=finite_float, default=None, help="New market value")
    edit.add_argument("--target", type=finite_float, default=None, help="New target allocation in %%")

    remove = subparsers.add_parser("remove", help="Remove the asset at a row index")
    remove.add_argument("index", type=int, help="Row index (see `show`)")

    export = subparsers.add_parser("export", help="Export the table as CSV")
    export.add_argument(
        "-o", "--output",
        type=str,
        default=None,
        help="Output file, or - for stdout (default: from settings)",
    )

    subparsers.add_parser("validate-config", help="Validate the settings file")

    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main entry point for the rebalancer CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if args.command == "validate-config":
        return run_validate_config(args.config)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ConfigValidationError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    setup_logging_from_settings(settings, verbose=args.verbose)

    try:
        with LogContext(command=args.command):
            book = open_book(settings)
            return COMMANDS[args.command](book, settings, args)

    except KeyboardInterrupt:
        print("\nCancelled by user")
        return 130
    except (AssetValidationError, IndexError, StorageError, ValueError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1


if __name__ == "__main__":
    sys.exit(main())

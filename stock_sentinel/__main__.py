"""CLI entry point for Stock Sentinel.

Usage:
    # Analyze an item cost export on its own
    python -m stock_sentinel analyze --cost item_cost.csv

    # Add sales, customer and PO exports
    python -m stock_sentinel analyze --cost item_cost.csv \\
        --sales sales_by_item.xlsx --customers customers.csv \\
        --suppliers po_details.xls

    # Override thresholds and write each result set to CSV
    python -m stock_sentinel analyze --cost item_cost.csv \\
        --sales sales.csv --slow-cost 500 --slow-days 120 --export-dir out/

    # List upload slots
    python -m stock_sentinel datasets
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from .config import get_settings
from .export import serialize_to_delimited_text
from .ingestion.errors import IngestError
from .ingestion.models import DatasetCategory
from .ingestion.rules import rules_for
from .metrics import BUCKETS, DerivedItem, DerivedMetrics, Thresholds
from .session import StockSentinel

# (argparse dest, slot)
_SOURCE_OPTIONS = (
    ("cost", DatasetCategory.COST),
    ("sales", DatasetCategory.SALES),
    ("customers", DatasetCategory.CUSTOMER),
    ("suppliers", DatasetCategory.SUPPLIER),
)

_THRESHOLD_OPTIONS = (
    "slow_cost",
    "dead_cost",
    "slow_days",
    "target_margin",
    "ordering_cost",
    "holding_cost_rate",
)


def _days(value: float) -> str:
    return "never" if value == float("inf") else f"{value:,.1f}d"


def _stockout_detail(item: DerivedItem) -> str:
    return f"{_days(item.days_until_stockout):>8}  reorder at {item.reorder_point:,.0f}"


def _print_items(title: str, items: list[DerivedItem], limit: int, detail) -> None:
    print(f"--- {title} ({len(items)}) ---")
    for item in items[:limit]:
        print(f"  {item.full_item[:40]:<40} {detail(item)}")
    if len(items) > limit:
        print(f"  ... and {len(items) - limit} more")
    print()


def _print_report(sentinel: StockSentinel, metrics: DerivedMetrics, top: int) -> None:
    summary = metrics.summary
    print("=" * 64)
    print("  STOCK SENTINEL REPORT")
    print("=" * 64)
    print()
    print(f"Items:          {summary.item_count:,}")
    print(f"Avg margin:     {summary.avg_margin:.1f}%")
    print(f"Total revenue:  ${summary.total_revenue:,.2f}")
    print(f"Total profit:   ${summary.total_profit:,.2f}")
    print(f"Losing items:   {summary.losing_items:,}")
    print(f"No sales match: {len(metrics.unmatched_items):,}")
    print()

    _print_items(
        "Slow Movers",
        metrics.slow_movers,
        top,
        lambda i: f"${i.total_cost:>10,.2f}  on hand {_days(i.days_of_inventory)}",
    )
    _print_items(
        "Dead Stock",
        metrics.dead_stock,
        top,
        lambda i: f"${i.total_cost:>10,.2f}  qty {i.quantity:,.0f}",
    )
    _print_items(
        "Critical Stockouts",
        metrics.critical_stockouts,
        top,
        _stockout_detail,
    )
    _print_items(
        "Warning Stockouts",
        metrics.warning_stockouts,
        top,
        _stockout_detail,
    )
    _print_items(
        "Price Opportunities",
        metrics.price_opps,
        top,
        lambda i: f"+${i.price_delta:,.2f}/unit  ${i.annual_impact:>10,.2f}/yr",
    )

    wc = metrics.working_capital
    print(
        f"Working capital: slow ${wc.slow_mover_value:,.2f}  "
        f"dead ${wc.dead_stock_value:,.2f}  "
        f"target release ${wc.reduction_target:,.2f}"
    )
    print()

    customers = sentinel.store.customers
    if customers:
        print(f"--- Top Customers ({len(customers)}) ---")
        for c in customers[:top]:
            print(f"  {c.customer[:40]:<40} ${c.total_revenue:>12,.2f}")
        print()

    suppliers = sentinel.store.suppliers
    if suppliers.suppliers:
        print(f"--- Top Suppliers ({len(suppliers.suppliers)}) ---")
        for s in suppliers.suppliers[:top]:
            print(f"  {s.supplier[:40]:<40} ${s.total_cost:>12,.2f}")
        print(f"  Total spend: ${suppliers.total_cost:,.2f}")
        print()


def _write_exports(metrics: DerivedMetrics, export_dir: str) -> None:
    path = Path(export_dir)
    path.mkdir(parents=True, exist_ok=True)
    for name in BUCKETS:
        rows = metrics.bucket(name)
        target = path / f"{name}.csv"
        target.write_bytes(serialize_to_delimited_text(rows))
        print(f"Wrote {len(rows):,} rows to {target}")


def _cmd_analyze(args: argparse.Namespace) -> None:
    """Ingest the given exports and print the derived report."""
    settings = get_settings()
    if args.top is not None:
        settings = settings.model_copy(update={"top_n": args.top})
    sentinel = StockSentinel(settings=settings)

    for dest, category in _SOURCE_OPTIONS:
        source = getattr(args, dest)
        if not source:
            continue
        path = Path(source)
        if not path.exists():
            print(f"Error: Path not found: {path}", file=sys.stderr)
            sys.exit(1)
        try:
            result = sentinel.ingest(path.read_bytes(), path.name, category)
        except IngestError as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        print(result.summary)
        for warn in result.warnings[:10]:
            print(f"  * {warn}")
    print()

    overrides = {
        name: getattr(args, name)
        for name in _THRESHOLD_OPTIONS
        if getattr(args, name) is not None
    }
    try:
        base = sentinel.default_thresholds.model_dump()
        thresholds = Thresholds(**{**base, **overrides})
    except ValidationError as e:
        print(f"Error: invalid thresholds: {e}", file=sys.stderr)
        sys.exit(1)

    metrics = sentinel.get_derived_metrics(thresholds)
    if metrics is None:
        print("No cost records loaded; nothing to analyze.", file=sys.stderr)
        sys.exit(1)

    _print_report(sentinel, metrics, settings.top_n)

    if args.export_dir:
        _write_exports(metrics, args.export_dir)


def _cmd_datasets(args: argparse.Namespace) -> None:
    """List upload slots and their accepted file types."""
    print("Upload slots:")
    for category in DatasetCategory:
        exts = ", ".join(rules_for(category).accepted_extensions)
        print(f"  {category.value:<10} {category.display_name:<20} ({exts})")


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="stock_sentinel",
        description="Stock Sentinel: inventory and margin analysis from ERP exports",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # analyze
    analyze_parser = subparsers.add_parser(
        "analyze", help="Ingest exports and print derived metrics"
    )
    analyze_parser.add_argument(
        "--cost", required=True, help="Item cost export (.csv)"
    )
    analyze_parser.add_argument("--sales", help="Sales by item export")
    analyze_parser.add_argument("--customers", help="Sales by customer export")
    analyze_parser.add_argument("--suppliers", help="PO details export")
    for name in _THRESHOLD_OPTIONS:
        analyze_parser.add_argument(
            "--" + name.replace("_", "-"),
            dest=name,
            type=float,
            help=f"Override the {name} threshold",
        )
    analyze_parser.add_argument(
        "--top",
        type=int,
        help="Entries shown per section (default: settings top_n)",
    )
    analyze_parser.add_argument(
        "--export-dir",
        help="Write each result set to <dir>/<name>.csv",
    )

    # datasets
    subparsers.add_parser("datasets", help="List upload slots")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    if args.command == "analyze":
        _cmd_analyze(args)
    elif args.command == "datasets":
        _cmd_datasets(args)
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()

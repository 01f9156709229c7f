"""Main orchestration module - runs the full financial analytics pipeline.

Loads three record collections (payments, payroll, inventory), aggregates
revenue and expenses, derives KPIs, monthly trends, payment status and
advisory insights, and writes the final JSON profit/loss report.
"""
from __future__ import annotations

import argparse
import time
from datetime import date

from finance_insights import __version__
from finance_insights.expenses import backfill_statutory
from finance_insights.ingest import load_inventory, load_payments, load_payroll
from finance_insights.output import build_report, write_report
from finance_insights.pipeline import PERIODS, FinancialRequest, filter_payroll, run_pipeline


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments for the analytics pipeline.

    Returns:
        Parsed arguments with data_dir, output, period, year, month,
        employee_id, as_of and check_statutory attributes.
    """
    parser = argparse.ArgumentParser(
        description="Healthcare Financial Analytics & Insight Pipeline"
    )
    parser.add_argument(
        "--data-dir", default=None,
        help="Directory containing payments.json, payroll.json and inventory.json "
             "(default: $FINANCE_DATA_DIR or data)",
    )
    parser.add_argument(
        "--output", default="profit_loss_report.json",
        help="Output JSON file path (default: profit_loss_report.json)",
    )
    parser.add_argument(
        "--period", choices=PERIODS, default="all",
        help="Reporting period filter (default: all)",
    )
    parser.add_argument("--year", type=int, default=None, help="Year for --period year/month")
    parser.add_argument("--month", default=None, help="Month for --period month (1-12 or name)")
    parser.add_argument("--employee-id", default=None, help="Restrict payroll to one employee")
    parser.add_argument(
        "--as-of", type=date.fromisoformat, default=None,
        help="Reference date YYYY-MM-DD for overdue and year comparison (default: today)",
    )
    parser.add_argument(
        "--check-statutory", action="store_true",
        help="List payroll records whose stored EPF/ETF disagree with derived values",
    )
    return parser.parse_args(argv)


def report_statutory_mismatches(payroll: list[dict]) -> int:
    """Print stored-vs-derived EPF/ETF mismatches and return how many there are."""
    corrections = backfill_statutory(payroll)
    print(f"  {len(corrections)} payroll records need statutory backfill")
    for c in corrections[:10]:
        print(
            f"    #{c.index} {c.employee_id or '?'}: epf {c.stored_epf:,.0f} -> {c.derived_epf:,.0f}, "
            f"etf {c.stored_etf:,.0f} -> {c.derived_etf:,.0f}"
        )
    if len(corrections) > 10:
        print(f"    ... and {len(corrections) - 10} more")
    return len(corrections)


def main(argv: list[str] | None = None) -> None:
    """Run the full analytics pipeline.

    Orchestrates data loading, the pipeline run (aggregation, KPIs, trends,
    payment status and insights) and report writing. The pipeline isolates
    failures in trend building and payment categorization so that either one
    failing still produces the rest of the report.
    """
    args = parse_args(argv)
    request = FinancialRequest(
        period=args.period,
        year=args.year,
        month=args.month,
        employee_id=args.employee_id,
        as_of=args.as_of,
    )

    print("=" * 60)
    print(f"Healthcare Financial Analytics Pipeline v{__version__}")
    print("=" * 60)
    start_time = time.time()

    # Load data
    print("\n[1/3] Loading datasets...")
    t = time.time()
    payments = load_payments(args.data_dir)
    payroll = load_payroll(args.data_dir)
    inventory = load_inventory(args.data_dir)
    print(f"  Loaded in {time.time() - t:.1f}s")

    if args.check_statutory:
        report_statutory_mismatches(filter_payroll(payroll, request))

    # Analytics
    print(f"\n[2/3] Running analytics for period {request.period!r}...")
    result = run_pipeline(payments, payroll, inventory, request)

    # Report
    print("\n[3/3] Building report...")
    write_report(build_report(result), args.output)

    elapsed = time.time() - start_time
    print(f"\nCompleted in {elapsed:.1f}s")
    print(f"Profit margin: {result.kpis.profit_margin:.1f}%")
    for insight in result.insights:
        print(f"  [{insight.priority.upper()}] {insight.title}")


if __name__ == "__main__":
    main()

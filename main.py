# =============================================================================
# REVPLAN - MAIN ENTRY POINT
# =============================================================================
# Command-line interface for the revenue plan engine.
#
# Usage:
#   python main.py spread --close-month 2026-11 --monthly 1000000 --period 12
#   python main.py spread --otc 2026-03:500000 --json
#   python main.py spillover --value 12000000 --close-month 2026-07 --period 12
#   python main.py summary --entries export.yaml
#   python main.py validate-settings --profile local
# =============================================================================

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List

import yaml

from revplan.allocation import (
    CONTRACT_PERIODS,
    OneTimeCharge,
    RecurringContract,
    allocate,
    contract_value,
    grid_to_fields,
    year_slice,
)
from revplan.entries import entry_from_row
from revplan.formatting import format_compact, format_currency
from revplan.months import MONTH_LABELS, YEARS, fiscal_year_label
from revplan.settings import DEFAULT_SETTINGS_DIR, load_settings, validate_settings
from revplan.spillover import spillover
from revplan.store import PipelineStore, StoreError, get_supabase_client
from revplan.summary import summarize_years
from ui.dashboard_data import build_snapshot

logger = logging.getLogger("revplan")


def parse_otc(values: List[str]) -> List[OneTimeCharge]:
    """Parse "YYYY-MM:amount" pairs."""
    entries = []
    for value in values or []:
        month, _, amount = value.partition(":")
        try:
            entries.append(OneTimeCharge(close_month=month.strip(), amount=int(amount)))
        except ValueError:
            raise argparse.ArgumentTypeError(f"Invalid OTC entry (expected YYYY-MM:amount): {value}") from None
    return entries


def run_spread(args, settings: dict):
    """Allocate a grid and print it year by year."""
    otc_entries = parse_otc(args.otc)
    recurring = RecurringContract(
        start_month=args.close_month or "",
        monthly_amount=args.monthly,
        period=args.period,
    )
    grid = allocate(otc_entries, recurring)

    if args.json:
        print(json.dumps({"fields": grid_to_fields(grid), "contract_value": contract_value(grid)}, indent=2))
        return grid

    base_year = settings.get("dashboard", {}).get("fiscal_base_year", 2026)
    summaries = summarize_years(grid)
    for year in range(1, YEARS + 1):
        months = year_slice(grid, year)
        summary = summaries[year - 1]
        print(f"\n{fiscal_year_label(base_year, year)}")
        print("-" * 40)
        for label, amount in zip(MONTH_LABELS, months):
            print(f"  {label}: {amount:>18,}")
        print(f"  Q1 {summary.q1:,}  Q2 {summary.q2:,}  Q3 {summary.q3:,}  Q4 {summary.q4:,}")
        print(f"  H1 {summary.h1:,}  H2 {summary.h2:,}  FY {summary.fy:,}")

    print("\n" + "=" * 40)
    print(f"CONTRACT VALUE: {format_currency(contract_value(grid))}")
    return grid


def run_spillover(args):
    """Print the FY spillover notice."""
    result = spillover(args.value, args.close_month, args.period)
    if result.has_spillover:
        print(
            f"FY+1 spillover: {format_currency(result.amount)} "
            f"over {result.months} month(s)"
        )
    else:
        print("No FY spillover")
    return result


def load_entries_file(path: Path):
    """Pipeline rows exported as YAML or JSON (a list of row objects)."""
    with open(path, "r", encoding="utf-8") as handle:
        rows = yaml.safe_load(handle) or []
    if not isinstance(rows, list):
        raise ValueError(f"{path} must contain a list of pipeline rows")
    return [entry_from_row(row, index) for index, row in enumerate(rows)]


def run_summary(args, settings: dict):
    """Print dashboard stats for an export file or the live database."""
    if args.entries:
        entries = load_entries_file(Path(args.entries))
        lob_rows = None
    else:
        store = PipelineStore(get_supabase_client(settings), settings)
        entries = store.list_entries()
        lob_rows = store.lob_distribution()

    snapshot = build_snapshot(entries, settings, lob_rows=lob_rows)
    stats = snapshot.stats

    print("\nPIPELINE SUMMARY")
    print("-" * 40)
    print(f"  Total Pipeline: {format_compact(stats.total_pipeline)} ({stats.opportunity_count} opportunities)")
    print(
        f"  Closed Won:     {format_compact(stats.closed_won)} ({stats.closed_won_count} opportunities, "
        f"{stats.target_achievement_pct:.1f}% of FY target)"
    )
    print(f"  In Progress:    {format_compact(stats.in_progress)} ({stats.in_progress_count} opportunities)")

    print("\nBY STAGE")
    print("-" * 40)
    for row in snapshot.by_stage.itertuples(index=False):
        print(f"  {row.stage:22}: {format_compact(row.total, prefix=''):>10}  ({row.count})")
    return snapshot


def run_validate_settings(args):
    settings = load_settings(args.profile, Path(args.dir))
    errors = validate_settings(settings)
    if errors:
        print("\nFAILED - Settings errors:")
        for error in errors:
            print(f"  - {error}")
    else:
        print("\nPASSED - Settings are valid")
    return errors


def main(argv=None):
    parser = argparse.ArgumentParser(description="Sales Pipeline Revenue Planner")
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    parser.add_argument("--dir", "-d", default=str(DEFAULT_SETTINGS_DIR), help="Settings directory")
    parser.add_argument("--profile", "-p", default="base", help="Settings profile")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    spread_parser = subparsers.add_parser("spread", help="Auto-spread a revenue plan")
    spread_parser.add_argument("--close-month", "-m", default="", help="Start month YYYY-MM")
    spread_parser.add_argument("--monthly", type=int, default=0, help="Recurring monthly amount")
    spread_parser.add_argument("--period", default="12", choices=CONTRACT_PERIODS,
                               help="Contract period in months or OTC")
    spread_parser.add_argument("--otc", action="append", default=[],
                               help="One-time charge YYYY-MM:amount (repeatable)")
    spread_parser.add_argument("--json", action="store_true", help="Print month fields as JSON")

    spill_parser = subparsers.add_parser("spillover", help="FY spillover of a contract")
    spill_parser.add_argument("--value", type=int, required=True, help="Contract value")
    spill_parser.add_argument("--close-month", "-m", required=True, help="Start month YYYY-MM")
    spill_parser.add_argument("--period", default="12", choices=CONTRACT_PERIODS)

    summary_parser = subparsers.add_parser("summary", help="Dashboard stats")
    summary_parser.add_argument("--entries", help="YAML/JSON export of pipeline rows")

    subparsers.add_parser("validate-settings", help="Validate settings files")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate-settings":
        return 1 if run_validate_settings(args) else 0

    settings = load_settings(args.profile, Path(args.dir))

    try:
        if args.command == "spread":
            run_spread(args, settings)
        elif args.command == "spillover":
            run_spillover(args)
        elif args.command == "summary":
            run_summary(args, settings)
        else:
            parser.print_help()
    except (StoreError, RuntimeError, ValueError, argparse.ArgumentTypeError) as exc:
        logger.error("%s", exc)
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())

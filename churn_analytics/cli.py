#!/usr/bin/env python3
"""
Churn Analytics CLI — API server and quick terminal summaries.

USAGE:
  python -m churn_analytics.cli serve                      # Start API server
  python -m churn_analytics.cli serve --port 8000 --reload

  python -m churn_analytics.cli summary members.csv        # KPIs + top locations
  python -m churn_analytics.cli summary members.csv --location "Bandra"
"""
from __future__ import annotations

import argparse
import os
import sys

from churn_analytics.data.loader import CsvParseError
from churn_analytics.data.schemas import FilterCriteria
from churn_analytics.data.store import DataStore
from churn_analytics.analytics.formatting import format_currency, format_percent, group_indian
from churn_analytics.analytics.journeys import churn_reasons
from churn_analytics.analytics.month_over_month import monthly_series


def cmd_summary(args):
    """Print headline churn KPIs for a CSV export."""
    print("\n" + "=" * 70)
    print("  CHURN ANALYTICS — SUMMARY")
    print("=" * 70)

    store = DataStore()
    try:
        store.load_csv(args.file)
    except CsvParseError as exc:
        print(f"  {exc}")
        sys.exit(1)

    criteria = FilterCriteria(
        statuses=tuple(args.status or ()),
        locations=tuple(args.location or ()),
    )
    records = store.filtered(criteria)
    snap = store.analytics(criteria)

    print(f"\n  Records:        {group_indian(snap.total_members)}")
    print(f"  Active:         {group_indian(snap.active_members)}")
    print(f"  Lapsed:         {group_indian(snap.lapsed_members)}")
    print(f"  New (30d):      {group_indian(snap.new_members)}")
    print(f"  High risk:      {group_indian(snap.high_risk_members)}")
    print(f"  Frozen:         {group_indian(snap.frozen_members)}")
    print(f"  Churn rate:     {format_percent(snap.churn_rate)}")
    print(f"  Revenue:        {format_currency(snap.total_revenue)}")

    if snap.location_breakdown:
        print(f"\n  {'LOCATION':<32}{'ACTIVE':>8}{'LAPSED':>8}{'NEW':>6}{'FROZEN':>8}")
        ranked = sorted(snap.location_breakdown.items(), key=lambda kv: kv[1].active + kv[1].lapsed, reverse=True)
        for loc, c in ranked[:args.top]:
            print(f"  {loc[:30]:<32}{c.active:>8}{c.lapsed:>8}{c.new:>6}{c.frozen:>8}")

    series = monthly_series(records, window=6)
    if series:
        print(f"\n  {'MONTH':<12}{'NEW':>6}{'LAPSED':>8}{'CHURN':>9}")
        for m in series:
            print(f"  {m['month']:<12}{m['new_members']:>6}{m['lapsed_members']:>8}{format_percent(m['churn_rate']):>9}")

    reasons = churn_reasons(records)
    if reasons:
        print("\n  CHURN REASONS")
        for reason, count in sorted(reasons.items(), key=lambda kv: kv[1], reverse=True):
            print(f"    {reason:<28}{count:>6}")
    print()


def cmd_serve(args):
    """Start the API server."""
    import uvicorn
    print(f"\nStarting Churn Analytics API on port {args.port}...")
    uvicorn.run("churn_analytics.main:app", host="0.0.0.0", port=args.port, reload=args.reload,
                timeout_keep_alive=65)


def main():
    parser = argparse.ArgumentParser(
        description="Churn Analytics — membership churn analytics engine",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    subparsers = parser.add_subparsers(dest="command", help="Command")

    # serve subcommand
    serve_parser = subparsers.add_parser("serve", help="Start API server")
    serve_parser.add_argument("--port", type=int, default=int(os.environ.get("PORT", "8000")), help="Port (default 8000)")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")
    serve_parser.set_defaults(func=cmd_serve)

    # summary subcommand
    summary_parser = subparsers.add_parser("summary", help="Print churn KPIs for a CSV export")
    summary_parser.add_argument("file", help="Membership CSV (.csv or .csv.gz)")
    summary_parser.add_argument("--status", action="append", help="Only this status (repeatable)")
    summary_parser.add_argument("--location", action="append", help="Only this location (repeatable)")
    summary_parser.add_argument("--top", type=int, default=10, help="Locations to list (default 10)")
    summary_parser.set_defaults(func=cmd_summary)

    args = parser.parse_args()
    if not args.command:
        parser.print_help()
        return

    args.func(args)


if __name__ == "__main__":
    main()

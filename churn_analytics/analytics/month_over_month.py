"""
Month-on-month acquisition vs churn series.

Unlike the location × month matrix, "new" here means a member's first
membership: each member id counts as new only in the month of its earliest
start date.
"""
from __future__ import annotations

import datetime as dt
from typing import Iterable, Optional

from churn_analytics.config import STATUS_LAPSED, MOM_WINDOW_MONTHS
from churn_analytics.data.dates import parse_flexible_date, month_key, month_key_from_string, month_sort_key
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.common import to_number, to_int, churn_rate, pct_change


def _first_starts(records: list[MemberRecord]) -> dict[str, dt.datetime]:
    """Earliest parseable start date per member id."""
    first: dict[str, dt.datetime] = {}
    for r in records:
        if not r.member_id:
            continue
        started = parse_flexible_date(r.start_date)
        if started is None:
            continue
        if r.member_id not in first or started < first[r.member_id]:
            first[r.member_id] = started
    return first


def monthly_series(records: Iterable[MemberRecord], window: int = MOM_WINDOW_MONTHS) -> list[dict]:
    """Per-month new / lapsed / revenue / sessions, oldest first, last ``window`` months."""
    records = list(records)
    first_starts = _first_starts(records)
    months: dict[str, dict] = {}

    def bucket(key: str) -> dict:
        return months.setdefault(key, {
            "new_members": 0, "lapsed_members": 0, "net_members": 0,
            "revenue": 0.0, "sessions": 0, "churn_rate": 0.0,
        })

    for r in records:
        started = parse_flexible_date(r.start_date)
        if started is not None:
            b = bucket(month_key(started))
            if r.member_id and first_starts.get(r.member_id) == started:
                b["new_members"] += 1
            b["revenue"] += to_number(r.amount_paid)
            b["sessions"] += to_int(r.total_sessions_completed)

        if r.status == STATUS_LAPSED:
            churned = parse_flexible_date(r.churned_date)
            if churned is not None:
                bucket(month_key(churned))["lapsed_members"] += 1

    series = []
    for key in sorted(months, key=month_sort_key):
        b = months[key]
        b["churn_rate"] = churn_rate(b["lapsed_members"], b["new_members"])
        b["net_members"] = b["new_members"] - b["lapsed_members"]
        series.append({"month": key, **b})

    return series[-window:] if window else series


def month_over_month_changes(series: list[dict]) -> Optional[dict]:
    """Latest month vs the one before; None with fewer than two months."""
    if len(series) < 2:
        return None
    current, previous = series[-1], series[-2]
    return {
        "month": current["month"],
        "previous_month": previous["month"],
        "new_members": pct_change(current["new_members"], previous["new_members"]) or 0.0,
        "lapsed_members": pct_change(current["lapsed_members"], previous["lapsed_members"]) or 0.0,
        "revenue": pct_change(current["revenue"], previous["revenue"]) or 0.0,
        "churn_rate_pts": current["churn_rate"] - previous["churn_rate"],
    }


def records_in_month(records: Iterable[MemberRecord], month: str) -> list[MemberRecord]:
    """Records that started or churned in ``month``."""
    return [
        r for r in records
        if month_key_from_string(r.start_date) == month
        or (r.churned_date and month_key_from_string(r.churned_date) == month)
    ]

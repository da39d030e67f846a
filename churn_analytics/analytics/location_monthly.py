"""
Location × month view — totals across the matrix and cell drill-downs.
"""
from __future__ import annotations

from dataclasses import asdict
from typing import Iterable

from churn_analytics.config import STATUS_ACTIVE, STATUS_LAPSED
from churn_analytics.data.dates import month_key_from_string, month_sort_key
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.churn import ChurnAnalyticsSnapshot, MonthCell, location_of
from churn_analytics.analytics.classify import is_frozen_member
from churn_analytics.analytics.common import churn_rate, sanitize_for_json

DRILLABLE_METRICS = ("active", "lapsed", "new", "frozen", "revenue")


def sorted_months(snapshot: ChurnAnalyticsSnapshot) -> list[str]:
    """Every month key present in the matrix, newest first."""
    months = {m for cells in snapshot.location_monthly_data.values() for m in cells}
    return sorted(months, key=month_sort_key, reverse=True)


def sorted_locations(snapshot: ChurnAnalyticsSnapshot) -> list[str]:
    return sorted(snapshot.location_breakdown)


def sum_cells(cells: Iterable[MonthCell]) -> MonthCell:
    """Add counts and revenue, then recompute churn rate from the sums."""
    new = active = lapsed = frozen = 0
    revenue = 0.0
    for c in cells:
        new += c.new
        active += c.active
        lapsed += c.lapsed
        frozen += c.frozen
        revenue += c.revenue
    return MonthCell(
        new=new, active=active, lapsed=lapsed, frozen=frozen,
        revenue=revenue, churn_rate=churn_rate(lapsed, active),
    )


def month_totals(snapshot: ChurnAnalyticsSnapshot) -> dict[str, MonthCell]:
    data = snapshot.location_monthly_data
    return {
        month: sum_cells(data[loc][month] for loc in data if month in data[loc])
        for month in sorted_months(snapshot)
    }


def location_totals(snapshot: ChurnAnalyticsSnapshot) -> dict[str, MonthCell]:
    data = snapshot.location_monthly_data
    return {
        loc: sum_cells(data.get(loc, {}).values())
        for loc in sorted_locations(snapshot)
    }


def grand_total(snapshot: ChurnAnalyticsSnapshot) -> MonthCell:
    return sum_cells(location_totals(snapshot).values())


def drill_down(
    records: Iterable[MemberRecord],
    location: str,
    month: str,
    metric: str,
) -> list[MemberRecord]:
    """Records behind one matrix cell.

    "new" and "revenue" list every record that started in the month, so the
    list can be wider than the cell's count.
    """
    if metric not in DRILLABLE_METRICS:
        raise ValueError(f"Cannot drill down into '{metric}'. Valid: {list(DRILLABLE_METRICS)}")

    out = []
    for r in records:
        if location_of(r) != location:
            continue
        started_in_month = month_key_from_string(r.start_date) == month
        if metric == "active":
            keep = started_in_month and r.status == STATUS_ACTIVE
        elif metric == "lapsed":
            keep = r.status == STATUS_LAPSED and month_key_from_string(r.churned_date) == month
        elif metric == "frozen":
            keep = started_in_month and is_frozen_member(r)
        else:
            keep = started_in_month
        if keep:
            out.append(r)
    return out


def location_monthly_view(snapshot: ChurnAnalyticsSnapshot) -> dict:
    """Everything the location × month table needs, in display order."""
    months = sorted_months(snapshot)
    locations = sorted_locations(snapshot)
    data = snapshot.location_monthly_data
    return sanitize_for_json({
        "months": months,
        "locations": locations,
        "cells": {
            loc: {m: asdict(data[loc][m]) for m in months if m in data.get(loc, {})}
            for loc in locations
        },
        "month_totals": {m: asdict(c) for m, c in month_totals(snapshot).items()},
        "location_totals": {loc: asdict(c) for loc, c in location_totals(snapshot).items()},
        "grand_total": asdict(grand_total(snapshot)),
    })

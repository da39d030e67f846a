"""
Churn analytics aggregator — global totals, location breakdown, monthly churn,
and the location × month matrix.

Reductions run as pandas groupbys over a per-record frame. ``aggregate`` is
pure: it never mutates its input and keeps no state between calls, so every
filter change simply recomputes a fresh snapshot.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, asdict
from typing import Iterable, Optional

import pandas as pd

from churn_analytics.config import STATUS_ACTIVE, STATUS_LAPSED, UNKNOWN_LABEL
from churn_analytics.data.dates import parse_flexible_date, month_key, month_sort_key
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.classify import is_new_member, is_frozen_member, is_high_risk_member
from churn_analytics.analytics.common import to_number, safe_divide, churn_rate, sanitize_for_json


# ---------------------------------------------------------------------------
# Snapshot types
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class LocationCounts:
    active: int = 0
    lapsed: int = 0
    new: int = 0
    frozen: int = 0


@dataclass(frozen=True)
class MonthCell:
    new: int = 0
    active: int = 0
    lapsed: int = 0
    frozen: int = 0
    revenue: float = 0.0
    churn_rate: float = 0.0


@dataclass(frozen=True)
class ChurnAnalyticsSnapshot:
    total_members: int = 0
    active_members: int = 0
    lapsed_members: int = 0
    new_members: int = 0
    high_risk_members: int = 0
    frozen_members: int = 0
    churn_rate: float = 0.0
    total_revenue: float = 0.0
    total_sessions: float = 0.0
    avg_sessions_per_member: float = 0.0
    avg_revenue_per_session: float = 0.0
    location_breakdown: dict[str, LocationCounts] = field(default_factory=dict)
    monthly_churn: dict[str, int] = field(default_factory=dict)
    location_monthly_data: dict[str, dict[str, MonthCell]] = field(default_factory=dict)

    def as_dict(self) -> dict:
        """JSON-safe mapping; month keys in chronological order."""
        data = asdict(self)
        data["monthly_churn"] = {
            k: self.monthly_churn[k] for k in sorted(self.monthly_churn, key=month_sort_key)
        }
        data["location_monthly_data"] = {
            loc: {k: asdict(months[k]) for k in sorted(months, key=month_sort_key)}
            for loc, months in self.location_monthly_data.items()
        }
        return sanitize_for_json(data)


def location_of(record: MemberRecord) -> str:
    return record.primary_location if record.primary_location.strip() else UNKNOWN_LABEL


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def _empty_cell() -> dict:
    return {"new": 0, "active": 0, "lapsed": 0, "frozen": 0, "revenue": 0.0}


def _record_frame(records: list[MemberRecord], now: dt.datetime) -> pd.DataFrame:
    """One row per record with its classification flags and month keys."""
    rows = []
    for r in records:
        started = parse_flexible_date(r.start_date)
        # Churn month only counts for Lapsed records
        churned = parse_flexible_date(r.churned_date) if r.status == STATUS_LAPSED else None
        rows.append({
            "location": location_of(r),
            "active": r.status == STATUS_ACTIVE,
            "lapsed": r.status == STATUS_LAPSED,
            "new": is_new_member(r, now),
            "frozen": is_frozen_member(r),
            "high_risk": is_high_risk_member(r),
            "amount": to_number(r.amount_paid),
            "sessions": to_number(r.total_sessions_completed),
            "start_month": month_key(started) if started else None,
            "churn_month": month_key(churned) if churned else None,
        })
    df = pd.DataFrame(rows)
    df["active_revenue"] = df["amount"].where(df["active"], 0.0)
    return df


def _month_matrix(df: pd.DataFrame) -> dict[str, dict[str, MonthCell]]:
    """Location × month cells: new/active/frozen by start month, lapsed by churn month."""
    started = (
        df.dropna(subset=["start_month"])
        .groupby(["location", "start_month"], sort=False)
        .agg(new=("new", "sum"), active=("active", "sum"), frozen=("frozen", "sum"),
             revenue=("active_revenue", "sum"))
        .reset_index()
    )
    churned = (
        df.dropna(subset=["churn_month"])
        .groupby(["location", "churn_month"], sort=False)
        .agg(lapsed=("lapsed", "sum"), revenue=("amount", "sum"))
        .reset_index()
    )

    matrix: dict[str, dict[str, dict]] = {}
    for row in started.itertuples(index=False):
        cell = matrix.setdefault(row.location, {}).setdefault(row.start_month, _empty_cell())
        cell["new"] += int(row.new)
        cell["active"] += int(row.active)
        cell["frozen"] += int(row.frozen)
        cell["revenue"] += float(row.revenue)
    for row in churned.itertuples(index=False):
        cell = matrix.setdefault(row.location, {}).setdefault(row.churn_month, _empty_cell())
        cell["lapsed"] += int(row.lapsed)
        cell["revenue"] += float(row.revenue)

    return {
        loc: {
            key: MonthCell(**cell, churn_rate=churn_rate(cell["lapsed"], cell["active"]))
            for key, cell in months.items()
        }
        for loc, months in matrix.items()
    }


def aggregate(records: Iterable[MemberRecord], now: Optional[dt.datetime] = None) -> ChurnAnalyticsSnapshot:
    """Compute a full ChurnAnalyticsSnapshot from scratch.

    "new" depends on ``now``; it defaults to the wall clock at call time, so
    an unchanged dataset can shift between calls as days pass. Pin ``now``
    for reproducible numbers.
    """
    if now is None:
        now = dt.datetime.now()
    records = list(records)
    if not records:
        return ChurnAnalyticsSnapshot()

    df = _record_frame(records, now)
    total = len(df)
    lapsed = int(df["lapsed"].sum())
    revenue = float(df["amount"].sum())
    sessions = float(df["sessions"].sum())

    by_location = df.groupby("location", sort=False).agg(
        active=("active", "sum"),
        lapsed=("lapsed", "sum"),
        new=("new", "sum"),
        frozen=("frozen", "sum"),
    ).reset_index()
    breakdown = {
        row.location: LocationCounts(
            active=int(row.active), lapsed=int(row.lapsed), new=int(row.new), frozen=int(row.frozen),
        )
        for row in by_location.itertuples(index=False)
    }

    churn_counts = df.groupby("churn_month", sort=False).size()
    monthly_churn = {key: int(n) for key, n in churn_counts.items()}

    return ChurnAnalyticsSnapshot(
        total_members=total,
        active_members=int(df["active"].sum()),
        lapsed_members=lapsed,
        new_members=int(df["new"].sum()),
        high_risk_members=int(df["high_risk"].sum()),
        frozen_members=int(df["frozen"].sum()),
        churn_rate=safe_divide(lapsed, total) * 100,
        total_revenue=revenue,
        total_sessions=sessions,
        avg_sessions_per_member=safe_divide(sessions, total),
        avg_revenue_per_session=safe_divide(revenue, sessions),
        location_breakdown=breakdown,
        monthly_churn=monthly_churn,
        location_monthly_data=_month_matrix(df),
    )

"""
Member table — lapsed-only preset, sorting, grouping and per-group totals.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional, Sequence

import pandas as pd

from churn_analytics.config import TABLE_COLUMNS, DEFAULT_TABLE_GROUP, CHURN_MONTH_GROUP, FIELD_LABELS
from churn_analytics.data.dates import parse_flexible_date
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.classify import is_lapsed_record, is_high_risk_member
from churn_analytics.analytics.common import parse_number, to_number, safe_series_divide, sanitize_for_json
from churn_analytics.analytics.journeys import group_key

_DATE_COLUMNS = {"Start Date", "Churned Date", "Purchase Date", "End Date",
                 "Most Recent Visit Date", "First Visit Date"}
_FIXED_LABELS = {label for label, _ in TABLE_COLUMNS}
_EPOCH = dt.datetime(1970, 1, 1)


def visible_columns(records: Sequence[MemberRecord]) -> list[dict]:
    """Fixed columns, then every other column of the first record except Member ID."""
    columns = [{"key": label, "numeric": numeric} for label, numeric in TABLE_COLUMNS]
    if records:
        for key in records[0].as_dict():
            if key not in _FIXED_LABELS and key != FIELD_LABELS["member_id"]:
                columns.append({"key": key, "numeric": False})
    return columns


def _numeric_value(record: MemberRecord, column: str) -> Optional[float]:
    raw = record.get(column)
    if column in _DATE_COLUMNS:
        parsed = parse_flexible_date(raw)
        return None if parsed is None else (parsed - _EPOCH).total_seconds()
    return parse_number(raw)


def sort_records(records: Sequence[MemberRecord], column: Optional[str], descending: bool = False) -> list[MemberRecord]:
    """Stable sort by one column: numeric (or date) cells first, then text case-insensitively."""
    if not column:
        return list(records)
    numeric, text = [], []
    for r in records:
        value = _numeric_value(r, column)
        if value is None:
            text.append(r)
        else:
            numeric.append((value, r))
    numeric.sort(key=lambda pair: pair[0], reverse=descending)
    text.sort(key=lambda r: r.get(column).lower(), reverse=descending)
    return [r for _, r in numeric] + text


def _totals_frame(rows: Sequence[MemberRecord], key: str) -> pd.DataFrame:
    return pd.DataFrame({
        "group": [group_key(r, key) for r in rows],
        "amount": [to_number(r.amount_paid) for r in rows],
        "sessions": [to_number(r.total_sessions_completed) for r in rows],
        "attendance": [to_number(r.attendance_rate_pct) for r in rows],
        "cancellation": [to_number(r.cancellation_rate_pct) for r in rows],
    }, columns=["group", "amount", "sessions", "attendance", "cancellation"])


def _summarize(df: pd.DataFrame) -> pd.DataFrame:
    """Per-group totals; averages are sum / member count, 0 for an empty group."""
    grouped = df.groupby("group", sort=False).agg(
        count=("amount", "size"),
        total_amount=("amount", "sum"),
        total_sessions=("sessions", "sum"),
        attendance_sum=("attendance", "sum"),
        cancellation_sum=("cancellation", "sum"),
    )
    grouped["avg_attendance"] = safe_series_divide(grouped["attendance_sum"], grouped["count"])
    grouped["avg_cancellation"] = safe_series_divide(grouped["cancellation_sum"], grouped["count"])
    return grouped.drop(columns=["attendance_sum", "cancellation_sum"])


def _first_purchases(records: Sequence[MemberRecord]) -> dict[str, MemberRecord]:
    """Earliest membership of every member who bought more than one."""
    by_member: dict[str, list[MemberRecord]] = {}
    for r in records:
        if r.member_id:
            by_member.setdefault(r.member_id, []).append(r)
    return {
        member_id: min(rows, key=lambda r: parse_flexible_date(r.start_date) or _EPOCH)
        for member_id, rows in by_member.items() if len(rows) > 1
    }


def _row(record: MemberRecord, first_purchases: dict[str, MemberRecord]) -> dict:
    tags = []
    if first_purchases.get(record.member_id) is record:
        tags.append("new")
    if is_high_risk_member(record):
        tags.append("risk")
    return {**record.as_dict(), "tags": tags}


def member_table(
    records: Sequence[MemberRecord],
    group_by: Optional[str] = None,
    sort_column: Optional[str] = None,
    descending: bool = False,
    lapsed_only: bool = True,
) -> dict:
    """Grouped, sorted table of ``records`` with per-group and grand totals.

    Groups keep the order in which their first row appears after sorting.
    """
    key = group_by or DEFAULT_TABLE_GROUP
    rows = [r for r in records if is_lapsed_record(r)] if lapsed_only else list(records)
    rows = sort_records(rows, sort_column, descending)
    first_purchases = _first_purchases(records)

    df = _totals_frame(rows, key)
    summary = _summarize(df) if len(df) else pd.DataFrame()

    groups = []
    buckets: dict[str, list[dict]] = {}
    for r in rows:
        buckets.setdefault(group_key(r, key), []).append(_row(r, first_purchases))
    for name, members in buckets.items():
        totals = summary.loc[name]
        groups.append({
            "key": name,
            "count": int(totals["count"]),
            "total_amount": totals["total_amount"],
            "total_sessions": totals["total_sessions"],
            "avg_attendance": totals["avg_attendance"],
            "avg_cancellation": totals["avg_cancellation"],
            "rows": members,
        })

    n = len(df)
    grand = {
        "count": n,
        "total_amount": df["amount"].sum() if n else 0.0,
        "total_sessions": df["sessions"].sum() if n else 0.0,
        "avg_attendance": df["attendance"].mean() if n else 0.0,
        "avg_cancellation": df["cancellation"].mean() if n else 0.0,
    }

    return sanitize_for_json({
        "group_by": key,
        "sort_column": sort_column or "",
        "descending": descending,
        "lapsed_only": lapsed_only,
        "columns": visible_columns(records),
        "groups": groups,
        "grand_totals": grand,
    })

"""
Dashboard endpoints — churn KPIs, location × month matrix, month-on-month,
member table, journeys and churn reasons.

Every route recomputes from the filtered records; nothing is cached.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse

from churn_analytics.config import LABEL_FIELDS, CHURN_MONTH_GROUP, STATUS_LAPSED, MOM_WINDOW_MONTHS
from churn_analytics.data.store import DataStore
from churn_analytics.data.schemas import FilterCriteria, MemberRecord
from churn_analytics.data.dates import parse_month_key
from churn_analytics.api.dependencies import get_store, parse_filters
from churn_analytics.api.response_models import ChurnReasonsResponse
from churn_analytics.analytics.churn import ChurnAnalyticsSnapshot
from churn_analytics.analytics.classify import member_tags, churn_reason, risk_factors
from churn_analytics.analytics.common import sanitize_for_json
from churn_analytics.analytics.formatting import (
    format_currency, format_currency_compact, format_number, format_number_compact,
    format_percent, format_display_date,
)
from churn_analytics.analytics.journeys import journey_summaries, member_journey, churn_reasons
from churn_analytics.analytics.location_monthly import location_monthly_view, drill_down, DRILLABLE_METRICS
from churn_analytics.analytics.month_over_month import monthly_series, month_over_month_changes, records_in_month
from churn_analytics.analytics.table import member_table

router = APIRouter(prefix="/api", tags=["dashboard"])


def _safe_json(data: dict) -> JSONResponse:
    return JSONResponse(content=sanitize_for_json(data))


def _display_kpis(snap: ChurnAnalyticsSnapshot) -> dict[str, str]:
    return {
        "total_members": format_number_compact(snap.total_members),
        "active_members": format_number_compact(snap.active_members),
        "lapsed_members": format_number_compact(snap.lapsed_members),
        "new_members": format_number_compact(snap.new_members),
        "high_risk_members": format_number_compact(snap.high_risk_members),
        "frozen_members": format_number_compact(snap.frozen_members),
        "churn_rate": format_percent(snap.churn_rate),
        "total_revenue": format_currency_compact(snap.total_revenue),
        "avg_sessions_per_member": format_number(snap.avg_sessions_per_member),
        "avg_revenue_per_session": format_currency(snap.avg_revenue_per_session),
    }


def _record_row(record: MemberRecord, now: dt.datetime) -> dict:
    """Record as label-keyed dict plus tags and display dates."""
    row = record.as_dict()
    row["tags"] = member_tags(record, now)
    row["display_start_date"] = format_display_date(record.start_date)
    row["display_churned_date"] = format_display_date(record.churned_date)
    return row


def _require_month(month: str) -> str:
    if parse_month_key(month) is None:
        raise HTTPException(400, f"Invalid month: {month} (expected e.g. 'Oct 2025')")
    return month


@router.get("/analytics")
def analytics(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Headline churn KPIs, location breakdown and monthly churn counts."""
    snap = store.analytics(criteria)
    return _safe_json({**snap.as_dict(), "display": _display_kpis(snap)})


@router.get("/location-monthly")
def location_monthly(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Location × month matrix with row, column and grand totals."""
    return _safe_json(location_monthly_view(store.analytics(criteria)))


@router.get("/location-monthly/drill-down")
def location_monthly_drill_down(
    cell_location: str = Query(..., description="Primary Location, or 'Unknown'"),
    cell_month: str = Query(..., description="Month key, e.g. 'Oct 2025'"),
    metric: str = Query(..., description="|".join(DRILLABLE_METRICS)),
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Members behind one cell of the location × month matrix."""
    _require_month(cell_month)
    try:
        rows = drill_down(store.filtered(criteria), cell_location, cell_month, metric)
    except ValueError as exc:
        raise HTTPException(400, str(exc))
    now = dt.datetime.now()
    return _safe_json({
        "location": cell_location,
        "month": cell_month,
        "metric": metric,
        "count": len(rows),
        "members": [_record_row(r, now) for r in rows],
    })


@router.get("/month-over-month")
def month_over_month(
    window: int = Query(MOM_WINDOW_MONTHS, ge=1, le=120, description="Number of trailing months"),
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Monthly acquisitions vs churn with latest-month percentage changes."""
    series = monthly_series(store.filtered(criteria), window)
    return _safe_json({"series": series, "changes": month_over_month_changes(series)})


@router.get("/month-over-month/{month}")
def month_detail(
    month: str,
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Records that started or churned in one month."""
    _require_month(month)
    rows = records_in_month(store.filtered(criteria), month)
    now = dt.datetime.now()
    return _safe_json({"month": month, "count": len(rows), "members": [_record_row(r, now) for r in rows]})


@router.get("/members")
def members(
    group_by: Optional[str] = Query(None, description="Column label or 'churnMonth' (default Member Name)"),
    sort: Optional[str] = Query(None, description="Column label to sort by"),
    descending: bool = Query(False),
    lapsed_only: bool = Query(True, description="Only Lapsed / Churned rows"),
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """Grouped member table with per-group and grand totals."""
    known = set(LABEL_FIELDS) | {CHURN_MONTH_GROUP} | set(store.binding.passthrough)
    if group_by and group_by not in known:
        raise HTTPException(400, f"Invalid group_by: {group_by}")
    if sort and sort not in known - {CHURN_MONTH_GROUP}:
        raise HTTPException(400, f"Invalid sort column: {sort}")
    return _safe_json(member_table(store.filtered(criteria), group_by, sort, descending, lapsed_only))


@router.get("/journeys")
def journeys(
    search: str = Query("", description="Name, location or member id"),
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    """One summary card per member."""
    summaries = journey_summaries(store.filtered(criteria), search)
    for s in summaries:
        s["memberships"] = [m.as_dict() for m in s["memberships"]]
        s["display_total_spent"] = format_currency(s["total_spent"])
    return _safe_json({"count": len(summaries), "members": summaries})


@router.get("/journeys/{member_id}")
def journey_detail(member_id: str, store: DataStore = Depends(get_store)):
    """Full membership history of one member, most recent first."""
    journey = member_journey(member_id, store.records)
    if not journey:
        raise HTTPException(404, f"Member not found: {member_id}")

    now = dt.datetime.now()
    newest_first = list(reversed(journey))
    current = newest_first[0]
    memberships = []
    for r in newest_first:
        row = _record_row(r, now)
        row["risk_factors"] = risk_factors(r)
        if r.status == STATUS_LAPSED:
            row["churn_reason"] = churn_reason(r)
        memberships.append(row)

    summary = journey_summaries(journey)[0]
    return _safe_json({
        "member_id": member_id,
        "name": current.member_name,
        "location": current.primary_location,
        "current_status": current.status,
        "membership_count": len(journey),
        "total_spent": summary["total_spent"],
        "display_total_spent": format_currency(summary["total_spent"]),
        "total_sessions": summary["total_sessions"],
        "memberships": memberships,
    })


@router.get("/churn-reasons", response_model=ChurnReasonsResponse)
def reasons(
    store: DataStore = Depends(get_store),
    criteria: FilterCriteria = Depends(parse_filters),
):
    counts = churn_reasons(store.filtered(criteria))
    return ChurnReasonsResponse(total_lapsed=sum(counts.values()), reasons=counts)

"""
FastAPI dependencies — DataStore singleton, filter parsing.
"""
from __future__ import annotations

import datetime as dt
from typing import Optional

from fastapi import HTTPException, Query

from churn_analytics.data.store import DataStore
from churn_analytics.data.schemas import DateRangePreset, FilterCriteria

# ---------------------------------------------------------------------------
# Global store singleton (set during startup)
# ---------------------------------------------------------------------------
_store: DataStore | None = None


def set_store(store: DataStore | None) -> None:
    global _store
    _store = store


def get_store() -> DataStore:
    if _store is None or not _store.is_loaded:
        raise HTTPException(503, "No membership data loaded")
    return _store


def get_store_or_empty() -> DataStore:
    """Return the store even if it has no data (for health/upload endpoints)."""
    if _store is None:
        raise HTTPException(503, "Server not initialized yet")
    return _store


# ---------------------------------------------------------------------------
# Filter parsing from query params
# ---------------------------------------------------------------------------

def _parse_date(value: Optional[str], name: str) -> dt.date | None:
    if not value:
        return None
    try:
        return dt.date.fromisoformat(value)
    except ValueError:
        raise HTTPException(400, f"Invalid {name}: {value} (expected YYYY-MM-DD)")


def parse_filters(
    status: list[str] = Query([], description="Status (repeatable)"),
    location: list[str] = Query([], description="Primary Location (repeatable)"),
    membership: list[str] = Query([], description="Membership Name (repeatable)"),
    start_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive, vs Purchase Date"),
    end_date: Optional[str] = Query(None, description="YYYY-MM-DD, inclusive, vs Purchase Date"),
    preset: Optional[str] = Query(None, description="today|last_7_days|last_30_days|last_90_days|this_month|last_month|all_time"),
    q: str = Query("", description="Search name, id, location or membership"),
) -> FilterCriteria:
    """Parse filter query parameters into FilterCriteria.

    A preset supplies the date range; explicit start/end dates override it.
    """
    sd = _parse_date(start_date, "start_date")
    ed = _parse_date(end_date, "end_date")

    if preset:
        try:
            rng = DateRangePreset(preset)
        except ValueError:
            raise HTTPException(400, f"Invalid preset: {preset}")
        preset_start, preset_end = rng.resolve(dt.date.today())
        sd = sd or preset_start
        ed = ed or preset_end

    if sd and ed and sd > ed:
        raise HTTPException(400, f"start_date {sd} is after end_date {ed}")

    return FilterCriteria(
        statuses=tuple(status),
        locations=tuple(location),
        memberships=tuple(membership),
        start_date=sd,
        end_date=ed,
        search=q,
    )

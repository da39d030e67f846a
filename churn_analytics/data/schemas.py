"""
Canonical record, filter criteria, and date-range preset schemas.
"""
from __future__ import annotations

import datetime as dt
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Mapping, Optional

from churn_analytics.config import FIELD_LABELS, LABEL_FIELDS


@dataclass(frozen=True)
class MemberRecord:
    """One membership-purchase event with every canonical field present.

    Values are the raw strings from the export ("" when the column was
    missing). Unrecognised CSV columns live in ``extras`` under their
    original header.
    """
    member_name: str = ""
    member_id: str = ""
    host_id: str = ""
    status: str = ""
    membership_name: str = ""
    sessions_limit: str = ""
    purchase_date: str = ""
    start_date: str = ""
    end_date: str = ""
    churned_date: str = ""
    amount_paid: str = ""
    discount_code: str = ""
    discount_value: str = ""
    original_amount: str = ""
    sold_by: str = ""
    created_by: str = ""
    most_recent_visit_date: str = ""
    first_visit_date: str = ""
    total_sessions_completed: str = ""
    sessions_used_pct: str = ""
    remaining_sessions: str = ""
    total_cancellations: str = ""
    late_cancellations: str = ""
    no_shows: str = ""
    cancellation_rate_pct: str = ""
    preferred_booking_method: str = ""
    primary_location: str = ""
    locations_attended: str = ""
    freeze_count: str = ""
    days_frozen: str = ""
    membership_duration_days: str = ""
    days_active: str = ""
    days_since_last_visit: str = ""
    avg_sessions_per_month: str = ""
    revenue_per_session: str = ""
    attendance_rate_pct: str = ""
    extras: Mapping[str, str] = field(default_factory=dict, compare=False)

    def __post_init__(self):
        # Read-only view so a frozen record cannot change through its extras
        object.__setattr__(self, "extras", MappingProxyType(dict(self.extras)))

    def get(self, label: str, default: str = "") -> str:
        """Look up a value by canonical label, attribute name, or extra column."""
        attr = LABEL_FIELDS.get(label)
        if attr is None and label in FIELD_LABELS:
            attr = label
        if attr is not None:
            return getattr(self, attr)
        return self.extras.get(label, default)

    def as_dict(self) -> dict[str, str]:
        """Label-keyed mapping: canonical fields first, then extras."""
        out = {FIELD_LABELS[name]: getattr(self, name) for name in CANONICAL_ATTRS}
        for key, value in self.extras.items():
            out.setdefault(key, value)
        return out


CANONICAL_ATTRS = tuple(f.name for f in fields(MemberRecord) if f.name != "extras")


@dataclass(frozen=True)
class FilterCriteria:
    """User-selected constraints. Empty collections / None mean no constraint."""
    statuses: tuple[str, ...] = ()
    locations: tuple[str, ...] = ()
    memberships: tuple[str, ...] = ()
    start_date: Optional[dt.date] = None   # inclusive, vs Purchase Date
    end_date: Optional[dt.date] = None     # inclusive, vs Purchase Date
    search: str = ""

    @property
    def is_empty(self) -> bool:
        return not (
            self.statuses or self.locations or self.memberships
            or self.start_date or self.end_date or self.search.strip()
        )


class DateRangePreset(str, Enum):
    TODAY = "today"
    LAST_7_DAYS = "last_7_days"
    LAST_30_DAYS = "last_30_days"
    LAST_90_DAYS = "last_90_days"
    THIS_MONTH = "this_month"
    LAST_MONTH = "last_month"
    ALL_TIME = "all_time"

    @property
    def label(self) -> str:
        return _PRESET_LABELS[self]

    def resolve(self, today: dt.date) -> tuple[Optional[dt.date], Optional[dt.date]]:
        """Return (start_date, end_date) for this preset relative to ``today``."""
        if self == DateRangePreset.ALL_TIME:
            return None, None
        if self == DateRangePreset.TODAY:
            return today, today
        if self == DateRangePreset.THIS_MONTH:
            return today.replace(day=1), _month_end(today.year, today.month)
        if self == DateRangePreset.LAST_MONTH:
            first = today.replace(day=1) - dt.timedelta(days=1)
            return first.replace(day=1), _month_end(first.year, first.month)
        days = {
            DateRangePreset.LAST_7_DAYS: 7,
            DateRangePreset.LAST_30_DAYS: 30,
            DateRangePreset.LAST_90_DAYS: 90,
        }[self]
        return today - dt.timedelta(days=days), today


_PRESET_LABELS = {
    DateRangePreset.TODAY: "Today",
    DateRangePreset.LAST_7_DAYS: "Last 7 days",
    DateRangePreset.LAST_30_DAYS: "Last 30 days",
    DateRangePreset.LAST_90_DAYS: "Last 90 days",
    DateRangePreset.THIS_MONTH: "This Month",
    DateRangePreset.LAST_MONTH: "Last Month",
    DateRangePreset.ALL_TIME: "All Time",
}


def _month_end(year: int, month: int) -> dt.date:
    if month == 12:
        return dt.date(year + 1, 1, 1) - dt.timedelta(days=1)
    return dt.date(year, month + 1, 1) - dt.timedelta(days=1)

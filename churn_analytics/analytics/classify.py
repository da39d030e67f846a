"""
Per-record classification — new, frozen, high-risk, tags, churn reason.

All functions are pure: anything time-dependent takes ``now`` explicitly.
"""
from __future__ import annotations

import datetime as dt
import math

from churn_analytics.config import (
    STATUS_ACTIVE, STATUS_LAPSED, LAPSED_STATUS_ALIASES,
    NEW_MEMBER_WINDOW_DAYS,
    LOW_ATTENDANCE_PCT, HIGH_CANCELLATION_PCT, LONG_ABSENCE_DAYS, FREQUENT_NO_SHOWS,
    HIGH_RISK_MIN_FACTORS,
    REASON_CANCELLATION_PCT, REASON_ATTENDANCE_PCT, REASON_INACTIVITY_DAYS,
)
from churn_analytics.data.dates import parse_flexible_date
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.common import to_number, to_int


def days_since_purchase(record: MemberRecord, now: dt.datetime) -> int | None:
    """Whole days elapsed since the purchase date, or None if it doesn't parse."""
    purchased = parse_flexible_date(record.purchase_date)
    if purchased is None:
        return None
    return math.floor((now - purchased).total_seconds() / 86400)


def is_new_member(record: MemberRecord, now: dt.datetime) -> bool:
    """Purchased within the last NEW_MEMBER_WINDOW_DAYS days of ``now``."""
    days = days_since_purchase(record, now)
    return days is not None and days <= NEW_MEMBER_WINDOW_DAYS


def is_frozen_member(record: MemberRecord) -> bool:
    return to_int(record.freeze_count) > 0 or to_int(record.days_frozen) > 0


def risk_factors(record: MemberRecord) -> list[str]:
    """Names of the churn-precursor signals present on an Active record."""
    if record.status != STATUS_ACTIVE:
        return []

    factors = []
    # Unparseable attendance reads as 0 and so counts as low attendance
    if to_number(record.attendance_rate_pct) < LOW_ATTENDANCE_PCT:
        factors.append("low_attendance")
    if to_number(record.cancellation_rate_pct) > HIGH_CANCELLATION_PCT:
        factors.append("high_cancellation")
    if to_int(record.days_since_last_visit) > LONG_ABSENCE_DAYS:
        factors.append("long_absence")
    if to_int(record.no_shows) >= FREQUENT_NO_SHOWS:
        factors.append("frequent_no_shows")
    return factors


def is_high_risk_member(record: MemberRecord) -> bool:
    """Active member showing at least HIGH_RISK_MIN_FACTORS risk signals."""
    return len(risk_factors(record)) >= HIGH_RISK_MIN_FACTORS


def is_lapsed_record(record: MemberRecord) -> bool:
    """Loose lapsed check used by the lapsed-only table preset."""
    return record.status.strip().lower() in LAPSED_STATUS_ALIASES


def member_tags(record: MemberRecord, now: dt.datetime) -> list[str]:
    tags = []
    high_risk = is_high_risk_member(record)
    if is_new_member(record, now):
        tags.append("new")
    if high_risk:
        tags.append("high-risk")
    if record.status == STATUS_ACTIVE and not high_risk:
        tags.append("active")
    if record.status == STATUS_LAPSED:
        tags.append("lapsed")
    return tags


def churn_reason(record: MemberRecord) -> str:
    """Most likely reason a membership lapsed (first matching rule wins)."""
    if to_number(record.cancellation_rate_pct) > REASON_CANCELLATION_PCT:
        return "High Cancellation Rate"
    if to_number(record.attendance_rate_pct) < REASON_ATTENDANCE_PCT:
        return "Low Attendance"
    if to_int(record.days_since_last_visit) > REASON_INACTIVITY_DAYS:
        return "Extended Inactivity"
    return "Membership Expired"

"""
Member journeys, record grouping and churn-reason counts.
"""
from __future__ import annotations

import datetime as dt
from collections import Counter, defaultdict
from typing import Iterable

from churn_analytics.config import STATUS_LAPSED, UNKNOWN_LABEL, NOT_CHURNED_LABEL, CHURN_MONTH_GROUP
from churn_analytics.data.dates import parse_flexible_date, month_key_from_string
from churn_analytics.data.schemas import MemberRecord
from churn_analytics.analytics.classify import churn_reason
from churn_analytics.analytics.common import to_number

_EPOCH = dt.datetime(1970, 1, 1)


def _start_sort_key(record: MemberRecord) -> dt.datetime:
    # Unparseable start dates sort as the epoch
    return parse_flexible_date(record.start_date) or _EPOCH


def member_journey(member_id: str, records: Iterable[MemberRecord]) -> list[MemberRecord]:
    """Every membership of one member, oldest start date first."""
    return sorted((r for r in records if r.member_id == member_id), key=_start_sort_key)


def _by_member(records: Iterable[MemberRecord]) -> dict[str, list[MemberRecord]]:
    members: dict[str, list[MemberRecord]] = defaultdict(list)
    for r in records:
        members[r.member_id].append(r)
    return members


def journey_summaries(records: Iterable[MemberRecord], search: str = "") -> list[dict]:
    """One card per member id, in first-seen order.

    Name, status and location come from the member's most recent membership.
    ``search`` matches name or location case-insensitively, or a substring of
    the id.
    """
    summaries = []
    for member_id, memberships in _by_member(records).items():
        newest_first = sorted(memberships, key=_start_sort_key, reverse=True)
        latest = newest_first[0]
        summaries.append({
            "member_id": member_id,
            "name": latest.member_name,
            "current_status": latest.status,
            "location": latest.primary_location,
            "membership_count": len(memberships),
            "total_spent": sum(to_number(m.amount_paid) for m in memberships),
            "total_sessions": sum(to_number(m.total_sessions_completed) for m in memberships),
            "memberships": newest_first,
        })

    if not search:
        return summaries
    needle = search.lower()
    return [
        s for s in summaries
        if needle in s["name"].lower()
        or search in s["member_id"]
        or needle in s["location"].lower()
    ]


def is_first_purchase_with_followup(record: MemberRecord, records: Iterable[MemberRecord]) -> bool:
    """True for a member's earliest membership when they went on to buy another."""
    journey = member_journey(record.member_id, records)
    return len(journey) > 1 and journey[0] == record


def group_key(record: MemberRecord, key: str) -> str:
    if key == CHURN_MONTH_GROUP:
        if record.status == STATUS_LAPSED and record.churned_date:
            return month_key_from_string(record.churned_date) or NOT_CHURNED_LABEL
        return NOT_CHURNED_LABEL
    return record.get(key) or UNKNOWN_LABEL


def group_records(records: Iterable[MemberRecord], key: str) -> dict[str, list[MemberRecord]]:
    """Bucket records by a column label or by churn month, keeping input order."""
    groups: dict[str, list[MemberRecord]] = {}
    for r in records:
        groups.setdefault(group_key(r, key), []).append(r)
    return groups


def churn_reasons(records: Iterable[MemberRecord]) -> dict[str, int]:
    """How many Lapsed records fall under each churn reason."""
    return dict(Counter(churn_reason(r) for r in records if r.status == STATUS_LAPSED))

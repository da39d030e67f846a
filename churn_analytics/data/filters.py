"""
Filter engine — applies FilterCriteria to the canonical record set.
"""
from __future__ import annotations

from typing import Iterable, Sequence

from churn_analytics.data.dates import parse_flexible_date
from churn_analytics.data.schemas import FilterCriteria, MemberRecord


def _in_date_range(record: MemberRecord, criteria: FilterCriteria) -> bool:
    """Inclusive on both ends; records without a readable purchase date pass."""
    if criteria.start_date is None and criteria.end_date is None:
        return True
    purchased = parse_flexible_date(record.purchase_date)
    if purchased is None:
        return True
    day = purchased.date()
    if criteria.start_date is not None and day < criteria.start_date:
        return False
    if criteria.end_date is not None and day > criteria.end_date:
        return False
    return True


def matches_search(record: MemberRecord, query: str) -> bool:
    """Case-insensitive substring over name, id, location and membership."""
    needle = query.strip().lower()
    if not needle:
        return True
    fields = (record.member_name, record.member_id, record.primary_location, record.membership_name)
    return any(needle in f.lower() for f in fields)


def matches(record: MemberRecord, criteria: FilterCriteria) -> bool:
    if criteria.statuses and record.status not in criteria.statuses:
        return False
    if criteria.locations and record.primary_location not in criteria.locations:
        return False
    if criteria.memberships and record.membership_name not in criteria.memberships:
        return False
    if not _in_date_range(record, criteria):
        return False
    return matches_search(record, criteria.search)


def apply_filters(records: Sequence[MemberRecord], criteria: FilterCriteria | None) -> list[MemberRecord]:
    """Order-preserving subsequence of records satisfying every active criterion."""
    if criteria is None or criteria.is_empty:
        return list(records)
    return [r for r in records if matches(r, criteria)]


def unique_values(records: Iterable[MemberRecord], label: str) -> list[str]:
    """Sorted distinct non-blank values of one field (for filter option lists)."""
    return sorted({v for v in (r.get(label) for r in records) if v and v.strip()})

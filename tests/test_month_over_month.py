import pytest

from churn_analytics.analytics.month_over_month import (
    month_over_month_changes,
    monthly_series,
    records_in_month,
)
from churn_analytics.data.schemas import MemberRecord

RECORDS = [
    # M1 renews in February: new only in January
    MemberRecord(member_id="M1", start_date="2025-01-05", status="Lapsed", churned_date="2025-02-10",
                 amount_paid="100", total_sessions_completed="8"),
    MemberRecord(member_id="M1", start_date="2025-02-15", status="Active", amount_paid="120",
                 total_sessions_completed="3"),
    MemberRecord(member_id="M2", start_date="2025-01-20", status="Active", amount_paid="200"),
    MemberRecord(member_id="M3", start_date="2025-02-01", status="Lapsed", churned_date="2025-02-28",
                 amount_paid="60"),
    MemberRecord(member_id="", start_date="2025-02-02", status="Active", amount_paid="10"),
]


def test_new_members_counted_on_first_start_only() -> None:
    series = monthly_series(RECORDS)
    by_month = {m["month"]: m for m in series}

    assert [m["month"] for m in series] == ["Jan 2025", "Feb 2025"]
    assert by_month["Jan 2025"]["new_members"] == 2
    assert by_month["Feb 2025"]["new_members"] == 1
    assert by_month["Jan 2025"]["revenue"] == 300.0
    assert by_month["Feb 2025"]["revenue"] == 190.0
    assert by_month["Jan 2025"]["sessions"] == 8
    assert by_month["Feb 2025"]["sessions"] == 3


def test_lapsed_counted_by_churn_month() -> None:
    by_month = {m["month"]: m for m in monthly_series(RECORDS)}

    assert by_month["Jan 2025"]["lapsed_members"] == 0
    assert by_month["Feb 2025"]["lapsed_members"] == 2
    assert by_month["Feb 2025"]["churn_rate"] == pytest.approx(200 / 3)
    assert by_month["Feb 2025"]["net_members"] == -1


def test_window_keeps_latest_months() -> None:
    records = [
        MemberRecord(member_id=f"M{m}", start_date=f"2024-{m:02d}-01", status="Active")
        for m in range(1, 13)
    ] + [MemberRecord(member_id="M13", start_date="2025-01-01", status="Active")]

    series = monthly_series(records, window=12)

    assert len(series) == 12
    assert series[0]["month"] == "Feb 2024"
    assert series[-1]["month"] == "Jan 2025"


def test_changes_compare_latest_two_months() -> None:
    changes = month_over_month_changes(monthly_series(RECORDS))

    assert changes["month"] == "Feb 2025"
    assert changes["previous_month"] == "Jan 2025"
    assert changes["new_members"] == pytest.approx(-50.0)
    assert changes["lapsed_members"] == 0.0
    assert changes["churn_rate_pts"] == pytest.approx(200 / 3)


def test_changes_need_two_months() -> None:
    assert month_over_month_changes([]) is None
    assert month_over_month_changes(monthly_series(RECORDS[:1])[:1]) is None


def test_records_in_month_matches_start_or_churn() -> None:
    rows = records_in_month(RECORDS, "Feb 2025")

    assert [r.start_date for r in rows] == ["2025-01-05", "2025-02-15", "2025-02-01", "2025-02-02"]

import datetime as dt

from churn_analytics.analytics.classify import (
    churn_reason,
    days_since_purchase,
    is_frozen_member,
    is_high_risk_member,
    is_lapsed_record,
    is_new_member,
    member_tags,
    risk_factors,
)
from churn_analytics.data.schemas import MemberRecord

NOW = dt.datetime(2025, 6, 30, 12, 0)


def test_active_member_with_two_factors_is_high_risk() -> None:
    record = MemberRecord(
        status="Active",
        attendance_rate_pct="20",
        cancellation_rate_pct="10",
        days_since_last_visit="30",
        no_shows="0",
    )

    assert risk_factors(record) == ["low_attendance", "long_absence"]
    assert is_high_risk_member(record)


def test_non_active_member_is_never_high_risk() -> None:
    for status in ("Lapsed", "Frozen", "", "active"):
        record = MemberRecord(
            status=status,
            attendance_rate_pct="0",
            cancellation_rate_pct="90",
            days_since_last_visit="100",
            no_shows="10",
        )
        assert not is_high_risk_member(record)


def test_single_factor_is_not_high_risk() -> None:
    record = MemberRecord(
        status="Active",
        attendance_rate_pct="80",
        cancellation_rate_pct="10",
        days_since_last_visit="30",
        no_shows="0",
    )

    assert risk_factors(record) == ["long_absence"]
    assert not is_high_risk_member(record)


def test_blank_attendance_counts_as_a_risk_factor() -> None:
    record = MemberRecord(status="Active", attendance_rate_pct="", days_since_last_visit="30")

    assert risk_factors(record) == ["low_attendance", "long_absence"]
    assert is_high_risk_member(record)


def test_new_member_window_counts_whole_days() -> None:
    assert days_since_purchase(MemberRecord(purchase_date="2025-06-20"), NOW) == 10
    assert is_new_member(MemberRecord(purchase_date="2025-06-20"), NOW)
    assert is_new_member(MemberRecord(purchase_date="2025-05-31"), NOW)
    assert not is_new_member(MemberRecord(purchase_date="2025-05-30"), NOW)
    assert not is_new_member(MemberRecord(purchase_date=""), NOW)


def test_frozen_and_lapsed_checks() -> None:
    assert is_frozen_member(MemberRecord(freeze_count="1"))
    assert is_frozen_member(MemberRecord(days_frozen="14"))
    assert not is_frozen_member(MemberRecord(freeze_count="0", days_frozen=""))
    assert is_lapsed_record(MemberRecord(status=" churned "))
    assert is_lapsed_record(MemberRecord(status="Lapsed"))
    assert not is_lapsed_record(MemberRecord(status="Active"))


def test_member_tags() -> None:
    fresh = MemberRecord(status="Active", purchase_date="2025-06-25", attendance_rate_pct="90")
    lapsed = MemberRecord(status="Lapsed", purchase_date="2024-01-01")

    assert member_tags(fresh, NOW) == ["new", "active"]
    assert member_tags(lapsed, NOW) == ["lapsed"]


def test_churn_reason_first_matching_rule_wins() -> None:
    assert churn_reason(MemberRecord(cancellation_rate_pct="60", attendance_rate_pct="10")) == "High Cancellation Rate"
    assert churn_reason(MemberRecord(cancellation_rate_pct="10", attendance_rate_pct="10")) == "Low Attendance"
    assert churn_reason(MemberRecord(attendance_rate_pct="50", days_since_last_visit="61")) == "Extended Inactivity"
    assert churn_reason(MemberRecord(attendance_rate_pct="50", days_since_last_visit="5")) == "Membership Expired"

import pytest

from churn_analytics.analytics.table import member_table, sort_records, visible_columns
from churn_analytics.data.schemas import MemberRecord

RECORDS = [
    MemberRecord(member_id="M1", member_name="Asha", status="Lapsed", primary_location="Bandra",
                 start_date="2024-11-01", churned_date="2025-01-15", amount_paid="100",
                 total_sessions_completed="10", attendance_rate_pct="40", cancellation_rate_pct="20",
                 extras={"Referral Source": "Instagram"}),
    MemberRecord(member_id="M2", member_name="ravi", status="Churned", primary_location="Andheri",
                 start_date="2025-01-10", churned_date="2025-02-01", amount_paid="50",
                 total_sessions_completed="2", attendance_rate_pct="20", cancellation_rate_pct="60",
                 extras={"Referral Source": "Walk-in"}),
    MemberRecord(member_id="M3", member_name="Meera", status="Active", primary_location="Bandra",
                 start_date="2025-02-03", amount_paid="300", extras={"Referral Source": ""}),
    MemberRecord(member_id="M1", member_name="Asha", status="Lapsed", primary_location="Bandra",
                 start_date="2025-02-01", churned_date="2025-03-01", amount_paid="n/a",
                 total_sessions_completed="4", attendance_rate_pct="80", cancellation_rate_pct="0",
                 extras={"Referral Source": "Instagram"}),
]


def test_lapsed_only_preset_keeps_lapsed_and_churned() -> None:
    table = member_table(RECORDS)

    names = [row["Member Name"] for g in table["groups"] for row in g["rows"]]
    assert names == ["Asha", "Asha", "ravi"]
    assert table["group_by"] == "Member Name"
    assert [g["key"] for g in table["groups"]] == ["Asha", "ravi"]


def test_group_totals() -> None:
    table = member_table(RECORDS, group_by="Primary Location")
    bandra = next(g for g in table["groups"] if g["key"] == "Bandra")

    assert bandra["count"] == 2
    assert bandra["total_amount"] == 100.0
    assert bandra["total_sessions"] == 14.0
    assert bandra["avg_attendance"] == 60.0
    assert bandra["avg_cancellation"] == 10.0

    grand = table["grand_totals"]
    assert grand["count"] == 3
    assert grand["total_amount"] == 150.0
    assert grand["avg_cancellation"] == pytest.approx(80 / 3)


def test_group_by_churn_month() -> None:
    table = member_table(RECORDS, group_by="churnMonth", lapsed_only=False)

    assert [g["key"] for g in table["groups"]] == ["Jan 2025", "Feb 2025", "Not Churned", "Mar 2025"]


def test_numeric_sort_puts_text_last() -> None:
    ordered = sort_records(RECORDS, "Amount Paid")
    assert [r.amount_paid for r in ordered] == ["50", "100", "300", "n/a"]

    descending = sort_records(RECORDS, "Amount Paid", descending=True)
    assert [r.amount_paid for r in descending] == ["300", "100", "50", "n/a"]


def test_text_sort_ignores_case() -> None:
    ordered = sort_records(RECORDS, "Member Name")

    assert [r.member_name for r in ordered] == ["Asha", "Asha", "Meera", "ravi"]


def test_date_columns_sort_chronologically() -> None:
    ordered = sort_records(RECORDS, "Start Date", descending=True)

    assert [r.member_id for r in ordered] == ["M3", "M1", "M2", "M1"]
    assert ordered[1].start_date == "2025-02-01"


def test_visible_columns_append_extras_and_skip_member_id() -> None:
    keys = [c["key"] for c in visible_columns(RECORDS)]

    assert keys[:2] == ["Member Name", "Status"]
    assert "Member ID" not in keys
    assert keys[-1] == "Referral Source"
    assert len(keys) == len(set(keys))


def test_row_tags_mark_first_purchase_and_risk() -> None:
    table = member_table(RECORDS, lapsed_only=False, sort_column="Start Date")
    rows = {(row["Member ID"], row["Start Date"]): row for g in table["groups"] for row in g["rows"]}

    assert rows[("M1", "2024-11-01")]["tags"] == ["new"]
    assert rows[("M1", "2025-02-01")]["tags"] == []
    assert rows[("M2", "2025-01-10")]["tags"] == []


def test_empty_table() -> None:
    table = member_table([])

    assert table["groups"] == []
    assert table["grand_totals"]["count"] == 0
    assert table["grand_totals"]["total_amount"] == 0.0

import datetime as dt

from churn_analytics.analytics.churn import aggregate
from churn_analytics.data.schemas import MemberRecord

NOW = dt.datetime(2025, 3, 1)


def _pair() -> list[MemberRecord]:
    return [
        MemberRecord(primary_location="A", start_date="2025-01-05", status="Active", amount_paid="100"),
        MemberRecord(
            primary_location="A", start_date="2025-01-10", status="Lapsed",
            churned_date="2025-02-01", amount_paid="50",
        ),
    ]


def test_empty_input_has_zero_counts_and_rates() -> None:
    snap = aggregate([], NOW)

    assert snap.total_members == 0
    assert snap.active_members == 0
    assert snap.lapsed_members == 0
    assert snap.churn_rate == 0.0
    assert snap.avg_sessions_per_member == 0.0
    assert snap.avg_revenue_per_session == 0.0
    assert snap.location_breakdown == {}
    assert snap.location_monthly_data == {}


def test_location_month_cells_split_acquisition_and_churn_months() -> None:
    snap = aggregate(_pair(), NOW)
    cells = snap.location_monthly_data["A"]

    assert cells["Jan 2025"].active == 1
    assert cells["Jan 2025"].lapsed == 0
    assert cells["Jan 2025"].churn_rate == 0.0
    assert cells["Jan 2025"].revenue == 100.0
    assert cells["Feb 2025"].lapsed == 1
    assert cells["Feb 2025"].revenue == 50.0
    assert cells["Feb 2025"].churn_rate == 100.0


def test_scalar_totals() -> None:
    records = _pair() + [
        MemberRecord(status="Active", amount_paid="₹1,000", total_sessions_completed="10", purchase_date="2025-02-20"),
        MemberRecord(status="Frozen", freeze_count="2", total_sessions_completed="5"),
    ]

    snap = aggregate(records, NOW)

    assert snap.total_members == 4
    assert snap.active_members == 2
    assert snap.lapsed_members == 1
    assert snap.new_members == 1
    assert snap.frozen_members == 1
    assert snap.churn_rate == 25.0
    assert snap.total_revenue == 1150.0
    assert snap.total_sessions == 15.0
    assert snap.avg_sessions_per_member == 3.75
    assert snap.avg_revenue_per_session == 1150.0 / 15.0
    assert snap.monthly_churn == {"Feb 2025": 1}


def test_blank_location_groups_as_unknown() -> None:
    snap = aggregate([MemberRecord(status="Active", start_date="2025-01-01")], NOW)

    assert snap.location_breakdown["Unknown"].active == 1
    assert "Jan 2025" in snap.location_monthly_data["Unknown"]


def test_records_without_dates_stay_out_of_the_matrix() -> None:
    snap = aggregate([MemberRecord(primary_location="B", status="Active")], NOW)

    assert snap.location_breakdown["B"].active == 1
    assert "B" not in snap.location_monthly_data


def test_aggregate_does_not_mutate_input() -> None:
    records = _pair()
    before = list(records)

    aggregate(records, NOW)

    assert records == before


def test_as_dict_orders_months_chronologically() -> None:
    records = [
        MemberRecord(primary_location="A", start_date="2025-03-01", status="Active"),
        MemberRecord(primary_location="A", start_date="2024-12-01", status="Active"),
        MemberRecord(primary_location="A", start_date="2025-01-01", status="Active"),
    ]

    data = aggregate(records, NOW).as_dict()

    assert list(data["location_monthly_data"]["A"]) == ["Dec 2024", "Jan 2025", "Mar 2025"]
    assert data["location_breakdown"]["A"] == {"active": 3, "lapsed": 0, "new": 0, "frozen": 0}


def test_location_breakdown_sums_to_global_counts() -> None:
    records = _pair() + [
        MemberRecord(primary_location="B", status="Active", start_date="2025-02-01"),
        MemberRecord(primary_location="B", status="Lapsed", churned_date="2025-02-15"),
        MemberRecord(primary_location="", status="Lapsed"),
        MemberRecord(primary_location="C", status="Frozen"),
    ]

    snap = aggregate(records, NOW)
    counts = snap.location_breakdown.values()

    assert sum(c.active for c in counts) == snap.active_members == 2
    assert sum(c.lapsed for c in counts) == snap.lapsed_members == 3
    assert set(snap.location_breakdown) == {"A", "B", "C", "Unknown"}

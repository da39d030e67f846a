import datetime as dt

import pytest

from churn_analytics.data.loader import CsvParseError
from churn_analytics.data.schemas import FilterCriteria
from churn_analytics.data.store import DataStore

CSV_BYTES = (
    b"Member Name,Member ID,Status,Primary Location,Membership Name,Start Date,Amount Paid\n"
    b"Asha,M1,Active,Bandra,Monthly,2025-01-05,100\n"
    b"Ravi,M2,Lapsed,Andheri,Annual,2025-01-10,50\n"
    b"Asha,M1,Active,Bandra,Annual,2025-02-05,120\n"
)


def test_load_installs_records_and_binding() -> None:
    store = DataStore().load_csv(CSV_BYTES, "members.csv")

    assert store.is_loaded
    assert store.row_count() == 3
    assert store.member_count() == 2
    assert store.source_name == "members.csv"
    assert store.binding.fields["status"] == "Status"
    assert store.filter_options() == {
        "statuses": ["Active", "Lapsed"],
        "locations": ["Andheri", "Bandra"],
        "memberships": ["Annual", "Monthly"],
    }


def test_failed_upload_keeps_previous_dataset() -> None:
    store = DataStore().load_csv(CSV_BYTES, "members.csv")

    with pytest.raises(CsvParseError):
        store.load_csv(b"\xff\xfe\x00broken", "broken.csv")

    assert store.row_count() == 3
    assert store.source_name == "members.csv"


def test_filtered_analytics() -> None:
    store = DataStore().load_csv(CSV_BYTES, "members.csv")

    snap = store.analytics(FilterCriteria(locations=("Bandra",)), now=dt.datetime(2025, 6, 1))

    assert snap.total_members == 2
    assert snap.total_revenue == 220.0
    assert len(store.filtered(FilterCriteria(statuses=("Lapsed",)))) == 1


def test_clear_resets_store() -> None:
    store = DataStore().load_csv(CSV_BYTES, "members.csv")

    store.clear()

    assert not store.is_loaded
    assert store.records == ()
    assert store.binding is None

"""
DataStore — the single in-memory membership dataset.

Loaded once per upload, queried on every request. A new upload is parsed to
completion before it replaces the current records, so a failed parse leaves
the previous dataset in place.
"""
from __future__ import annotations

import datetime as dt
from pathlib import Path
from typing import Optional

from churn_analytics.analytics.churn import ChurnAnalyticsSnapshot, aggregate
from churn_analytics.data.filters import apply_filters, unique_values
from churn_analytics.data.loader import load_csv
from churn_analytics.data.normalize import ColumnBinding
from churn_analytics.data.schemas import FilterCriteria, MemberRecord


class DataStore:
    """In-memory membership records with filtered accessors."""

    def __init__(self) -> None:
        self._records: tuple[MemberRecord, ...] = ()
        self.binding: Optional[ColumnBinding] = None
        self.source_name: str = ""
        self.loaded_at: Optional[dt.datetime] = None
        self._loaded = False

    # ------------------------------------------------------------------
    # Loading
    # ------------------------------------------------------------------

    def load_csv(self, source: str | Path | bytes, filename: str = "") -> "DataStore":
        """Parse an export and install it, replacing any previous dataset.

        Raises CsvParseError without touching the current dataset.
        """
        name = filename or (Path(source).name if isinstance(source, (str, Path)) else "upload.csv")
        print(f"Loading membership data from {name}...")
        records, binding = load_csv(source, name)

        self._records, self.binding = tuple(records), binding
        self.source_name = name
        self.loaded_at = dt.datetime.now()
        self._loaded = True

        print(f"  {len(records):,} records, {len(binding.matched)}/{len(binding.fields)} "
              f"canonical columns bound, {len(binding.passthrough)} extra column(s)")
        if binding.missing:
            print(f"  Missing columns (left blank): {', '.join(binding.missing)}")
        return self

    def clear(self) -> None:
        self._records = ()
        self.binding = None
        self.source_name = ""
        self.loaded_at = None
        self._loaded = False

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def records(self) -> tuple[MemberRecord, ...]:
        return self._records

    def filtered(self, criteria: FilterCriteria | None = None) -> list[MemberRecord]:
        return apply_filters(self._records, criteria)

    def analytics(self, criteria: FilterCriteria | None = None, now: dt.datetime | None = None) -> ChurnAnalyticsSnapshot:
        """ChurnAnalyticsSnapshot of the filtered records."""
        return aggregate(self.filtered(criteria), now)

    # ------------------------------------------------------------------
    # Metadata queries
    # ------------------------------------------------------------------

    def statuses(self) -> list[str]:
        return unique_values(self._records, "Status")

    def locations(self) -> list[str]:
        return unique_values(self._records, "Primary Location")

    def memberships(self) -> list[str]:
        return unique_values(self._records, "Membership Name")

    def filter_options(self) -> dict[str, list[str]]:
        return {
            "statuses": self.statuses(),
            "locations": self.locations(),
            "memberships": self.memberships(),
        }

    def row_count(self) -> int:
        return len(self._records)

    def member_count(self) -> int:
        return len({r.member_id for r in self._records if r.member_id})

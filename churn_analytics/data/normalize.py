"""
Column binding and row normalisation into canonical MemberRecords.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

import pandas as pd

from churn_analytics.config import COLUMN_ALIASES, FIELD_LABELS
from churn_analytics.data.schemas import MemberRecord


# lowercased alias → canonical attribute (used to spot headers that belong to *some* field)
_ALIAS_INDEX = {
    alias.lower(): attr
    for attr, aliases in COLUMN_ALIASES.items()
    for alias in aliases
}


# ---------------------------------------------------------------------------
# Column binding
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ColumnBinding:
    """Which source header feeds each canonical field, resolved once per file."""
    fields: dict[str, Optional[str]]
    passthrough: tuple[str, ...]

    @property
    def matched(self) -> dict[str, str]:
        """Canonical label → source header, for bound fields only."""
        return {FIELD_LABELS[a]: h for a, h in self.fields.items() if h is not None}

    @property
    def missing(self) -> list[str]:
        """Canonical labels with no source column."""
        return [FIELD_LABELS[a] for a, h in self.fields.items() if h is None]


def _header_key(header) -> str:
    return str(header).strip().lower()


def resolve_columns(headers: Iterable) -> ColumnBinding:
    """Bind each canonical field to the first header matching one of its aliases."""
    headers = [str(h) for h in headers]
    keys = [_header_key(h) for h in headers]

    bound: dict[str, Optional[str]] = {}
    for attr, aliases in COLUMN_ALIASES.items():
        wanted = {a.lower() for a in aliases}
        bound[attr] = next((h for h, k in zip(headers, keys) if k in wanted), None)

    passthrough = tuple(h for h, k in zip(headers, keys) if k not in _ALIAS_INDEX)
    return ColumnBinding(fields=bound, passthrough=passthrough)


# ---------------------------------------------------------------------------
# Row normalisation
# ---------------------------------------------------------------------------

def _cell(value) -> str:
    if value is None:
        return ""
    try:
        if pd.isna(value):
            return ""
    except (TypeError, ValueError):
        pass
    return str(value)


def normalize_row(row: Mapping, binding: ColumnBinding) -> MemberRecord:
    """Map one raw row onto the canonical schema using a pre-resolved binding."""
    values = {
        attr: (_cell(row.get(header)) if header is not None else "")
        for attr, header in binding.fields.items()
    }
    extras = {header: _cell(row.get(header)) for header in binding.passthrough}
    return MemberRecord(**values, extras=extras)


def normalize_frame(df: pd.DataFrame, binding: ColumnBinding | None = None) -> list[MemberRecord]:
    """Normalise every row of a raw export frame with one binding for the whole file."""
    if binding is None:
        binding = resolve_columns(df.columns)
    return [normalize_row(row, binding) for row in df.to_dict("records")]

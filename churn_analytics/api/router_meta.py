"""
Meta endpoints: health, filter options, column schema.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends

from churn_analytics.config import FIELD_LABELS
from churn_analytics.data.store import DataStore
from churn_analytics.data.schemas import DateRangePreset
from churn_analytics.api.dependencies import get_store, get_store_or_empty
from churn_analytics.api.response_models import (
    HealthResponse, FilterOptionsResponse, SchemaResponse, ColumnInfo,
)

router = APIRouter(prefix="/api", tags=["meta"])


@router.get("/health", response_model=HealthResponse)
def health(store: DataStore = Depends(get_store_or_empty)):
    return HealthResponse(
        status="ok",
        loaded=store.is_loaded,
        rows=store.row_count(),
        members=store.member_count(),
        source=store.source_name,
        loaded_at=store.loaded_at.isoformat(timespec="seconds") if store.loaded_at else None,
    )


@router.get("/filter-options", response_model=FilterOptionsResponse)
def filter_options(store: DataStore = Depends(get_store_or_empty)):
    """Distinct values for the filter panel (empty lists before any upload)."""
    return FilterOptionsResponse(
        **store.filter_options(),
        presets={p.value: p.label for p in DateRangePreset},
    )


@router.get("/schema", response_model=SchemaResponse)
def schema(store: DataStore = Depends(get_store)):
    binding = store.binding
    return SchemaResponse(
        columns=[ColumnInfo(label=FIELD_LABELS[attr], header=header) for attr, header in binding.fields.items()],
        missing=binding.missing,
        extras=list(binding.passthrough),
    )

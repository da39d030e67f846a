"""
Pydantic response schemas for the API.
"""
from __future__ import annotations

from typing import Optional

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    loaded: bool
    rows: int
    members: int
    source: str
    loaded_at: Optional[str] = None


class FilterOptionsResponse(BaseModel):
    statuses: list[str]
    locations: list[str]
    memberships: list[str]
    presets: dict[str, str]


class ColumnInfo(BaseModel):
    label: str
    header: Optional[str] = None


class SchemaResponse(BaseModel):
    """How the loaded file's headers were bound to canonical fields."""
    columns: list[ColumnInfo]
    missing: list[str]
    extras: list[str]


class UploadResponse(BaseModel):
    status: str
    filename: str
    rows: int
    members: int
    matched_columns: int
    missing_columns: list[str]
    extra_columns: list[str]


class ChurnReasonsResponse(BaseModel):
    total_lapsed: int
    reasons: dict[str, int]

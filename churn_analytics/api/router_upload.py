"""
Upload endpoints: replace the dataset with a new CSV, or clear it.
Gzip-compressed uploads (.csv.gz) are decompressed in memory.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, UploadFile, File

from churn_analytics.config import MAX_UPLOAD_BYTES
from churn_analytics.data.loader import CsvParseError
from churn_analytics.data.store import DataStore
from churn_analytics.api.dependencies import get_store_or_empty
from churn_analytics.api.response_models import UploadResponse

router = APIRouter(prefix="/api", tags=["upload"])


@router.post("/upload", response_model=UploadResponse)
async def upload_csv(
    file: UploadFile = File(...),
    store: DataStore = Depends(get_store_or_empty),
):
    """Parse an uploaded membership export and make it the current dataset.

    On any parse failure the previously loaded data stays in place.
    """
    if not file.filename:
        raise HTTPException(400, "Missing filename")

    name = file.filename.lower()
    if not (name.endswith(".csv") or name.endswith(".csv.gz")):
        raise HTTPException(400, f"Only .csv files are accepted (got '{file.filename}')")

    content = await file.read()
    if len(content) > MAX_UPLOAD_BYTES:
        raise HTTPException(413, f"File exceeds the {MAX_UPLOAD_BYTES // (1024 * 1024)} MB upload limit")

    try:
        store.load_csv(content, file.filename)
    except CsvParseError as exc:
        raise HTTPException(400, f"Error parsing CSV file: {exc}")

    binding = store.binding
    return UploadResponse(
        status="loaded",
        filename=file.filename,
        rows=store.row_count(),
        members=store.member_count(),
        matched_columns=len(binding.matched),
        missing_columns=binding.missing,
        extra_columns=list(binding.passthrough),
    )


@router.delete("/data")
def clear_data(store: DataStore = Depends(get_store_or_empty)):
    """Drop the current dataset."""
    store.clear()
    print("  Dataset cleared")
    return {"status": "cleared"}

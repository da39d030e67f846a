"""
Membership CSV parsing: raw text → pandas frame → canonical records.
"""
from __future__ import annotations

import csv
import gzip
import io
import warnings
from pathlib import Path

import pandas as pd

from churn_analytics.data.normalize import ColumnBinding, normalize_frame, resolve_columns
from churn_analytics.data.schemas import MemberRecord


class CsvParseError(ValueError):
    """The upload is not readable as delimited text."""


def decode_upload(content: bytes, filename: str = "") -> str:
    """Decode uploaded bytes (optionally gzip-compressed) as UTF-8 text."""
    if filename.lower().endswith(".gz") or content[:2] == b"\x1f\x8b":
        try:
            content = gzip.decompress(content)
        except (OSError, EOFError) as exc:
            raise CsvParseError(f"Could not decompress {filename or 'upload'}: {exc}") from exc
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise CsvParseError(f"File is not valid UTF-8 text: {exc}") from exc


# Candidate delimiters, in order of preference on a tie
_DELIMITERS = (",", ";", "\t", "|")


def detect_delimiter(text: str) -> str:
    """Most frequent candidate delimiter on the header line; comma when none appear."""
    header = next((line for line in text.splitlines() if line.strip()), "")
    counts = {d: header.count(d) for d in _DELIMITERS}
    best = max(_DELIMITERS, key=lambda d: counts[d])
    return best if counts[best] else ","


def read_frame(text: str) -> pd.DataFrame:
    """Parse delimited text into an all-string DataFrame (blank cells → "").

    A trailing delimiter on every data row is dropped rather than shifting
    the values into the index.
    """
    if not text.strip():
        return pd.DataFrame()
    try:
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", pd.errors.ParserWarning)
            df = pd.read_csv(
                io.StringIO(text),
                sep=detect_delimiter(text),
                dtype=str,
                index_col=False,
                keep_default_na=False,
                skip_blank_lines=True,
                skipinitialspace=False,
            )
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (pd.errors.ParserError, csv.Error, ValueError) as exc:
        raise CsvParseError(f"Could not parse CSV: {exc}") from exc
    return df.fillna("")


def parse_csv_text(text: str) -> tuple[list[MemberRecord], ColumnBinding]:
    """Parse CSV text into canonical records plus the column binding used."""
    df = read_frame(text)
    binding = resolve_columns(df.columns)
    if df.empty:
        return [], binding
    return normalize_frame(df, binding), binding


def load_csv(source: str | Path | bytes, filename: str = "") -> tuple[list[MemberRecord], ColumnBinding]:
    """Load a membership export from a path or raw upload bytes."""
    if isinstance(source, (str, Path)):
        path = Path(source)
        try:
            content = path.read_bytes()
        except OSError as exc:
            raise CsvParseError(f"Could not read {path}: {exc}") from exc
        filename = filename or path.name
    else:
        content = source
    return parse_csv_text(decode_upload(content, filename))

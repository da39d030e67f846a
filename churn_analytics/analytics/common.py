"""
Safe math and tolerant number parsing used across all analytics modules.
"""
from __future__ import annotations

import math
import re

import numpy as np
import pandas as pd


# Currency symbols, thousands separators, percent signs and spaces are dropped before parsing
_NUMBER_NOISE_RE = re.compile(r"[₹$€£,%\s]")
_LEADING_NUMBER_RE = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][+-]?\d+)?")


def parse_number(value) -> float | None:
    """Read the leading number from an export cell; None when unreadable."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, (int, float, np.integer, np.floating)):
        v = float(value)
    else:
        text = _NUMBER_NOISE_RE.sub("", str(value))
        match = _LEADING_NUMBER_RE.match(text)
        if not match:
            return None
        v = float(match.group(0))
    return None if (math.isnan(v) or math.isinf(v)) else v


def to_number(value, default: float = 0.0) -> float:
    """parse_number with a fallback for blank or non-numeric cells."""
    v = parse_number(value)
    return default if v is None else v


def to_int(value, default: int = 0) -> int:
    """Integer part of to_number (truncates toward zero)."""
    return int(to_number(value, float(default)))


def safe_divide(numerator: float, denominator: float, default: float = 0.0) -> float:
    """Divide safely, returning default if denominator is zero or NaN."""
    if denominator == 0 or pd.isna(denominator):
        return default
    result = numerator / denominator
    return default if pd.isna(result) else result


def churn_rate(lapsed: float, active: float) -> float:
    """Churn percentage: lapsed / (active + lapsed) * 100, 0 when both are 0."""
    return safe_divide(lapsed, active + lapsed) * 100


def pct_change(current: float, previous: float) -> float | None:
    """Percentage change from previous to current. Returns None if previous is 0."""
    if previous == 0 or pd.isna(previous):
        return None
    return (current - previous) / abs(previous) * 100


def safe_series_divide(
    numerator: pd.Series,
    denominator: pd.Series,
    default: float = 0.0,
) -> pd.Series:
    """Element-wise safe division for pandas Series."""
    return (numerator / denominator.replace(0, np.nan)).fillna(default)


def sanitize_for_json(obj):
    """Recursively convert numpy/pandas types to native Python for JSON serialization."""
    if isinstance(obj, dict):
        clean = {}
        for k, v in obj.items():
            if k is None:
                continue
            if isinstance(k, (float, np.floating)) and (math.isnan(float(k)) or math.isinf(float(k))):
                continue
            clean[k if isinstance(k, str) else str(k)] = sanitize_for_json(v)
        return clean
    if isinstance(obj, (list, tuple)):
        return [sanitize_for_json(v) for v in obj]
    if isinstance(obj, np.bool_):
        return bool(obj)
    if isinstance(obj, np.integer):
        return int(obj)
    if isinstance(obj, np.floating):
        v = float(obj)
        return 0.0 if (math.isnan(v) or math.isinf(v)) else v
    if isinstance(obj, np.ndarray):
        return sanitize_for_json(obj.tolist())
    if isinstance(obj, float):
        return 0.0 if (math.isnan(obj) or math.isinf(obj)) else obj
    if pd.api.types.is_scalar(obj) and pd.isna(obj):
        return None
    return obj

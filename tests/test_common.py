import numpy as np
import pytest

from churn_analytics.analytics.common import (
    churn_rate,
    parse_number,
    pct_change,
    safe_divide,
    sanitize_for_json,
    to_int,
    to_number,
)
from churn_analytics.analytics.formatting import (
    format_currency,
    format_currency_compact,
    format_display_date,
    format_number_compact,
    format_percent,
    group_indian,
)


def test_to_number_reads_export_cells() -> None:
    assert to_number("₹1,200.50") == 1200.5
    assert to_number("45%") == 45.0
    assert to_number(" 12abc") == 12.0
    assert to_number("-3.5") == -3.5
    assert to_number("abc") == 0.0
    assert to_number("") == 0.0
    assert to_number(None, 7.0) == 7.0
    assert to_number(float("nan")) == 0.0
    assert to_int("21.9") == 21


def test_parse_number_distinguishes_blank_from_zero() -> None:
    assert parse_number("0") == 0.0
    assert parse_number("") is None
    assert parse_number("Asha") is None


def test_zero_denominators_never_leak() -> None:
    assert safe_divide(1, 0) == 0.0
    assert churn_rate(0, 0) == 0.0
    assert churn_rate(1, 3) == 25.0
    assert pct_change(110, 100) == pytest.approx(10.0)
    assert pct_change(5, 0) is None


def test_sanitize_for_json_converts_numpy_and_nan() -> None:
    cleaned = sanitize_for_json({"a": float("nan"), "b": np.int64(3), "c": [np.float64(1.5)]})

    assert cleaned == {"a": 0.0, "b": 3, "c": [1.5]}
    assert type(cleaned["b"]) is int


def test_indian_grouping() -> None:
    assert group_indian(999) == "999"
    assert group_indian(1234) == "1,234"
    assert group_indian(1234567) == "12,34,567"
    assert format_currency(1234567) == "₹12,34,567"
    assert format_currency(0) == "₹0"
    assert format_currency(-2500.4) == "-₹2,500"


def test_compact_formats() -> None:
    assert format_currency_compact(12_500_000) == "₹1.25Cr"
    assert format_currency_compact(340_000) == "₹3.40L"
    assert format_currency_compact(12_500) == "₹12.5K"
    assert format_currency_compact(950) == "₹950"
    assert format_number_compact(1500) == "1.5K"
    assert format_percent(12.345) == "12.3%"


def test_display_dates() -> None:
    assert format_display_date("2025-10-31, 21:50:13") == "31 Oct 2025"
    assert format_display_date("") == "-"

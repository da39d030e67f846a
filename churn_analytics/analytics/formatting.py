"""
Display formatting — rupee amounts with Indian digit grouping and compact
thousand / lakh / crore suffixes.

Only used when building display strings; never feed the results back into
aggregation.
"""
from __future__ import annotations

import math

from churn_analytics.config import CURRENCY_SYMBOL
from churn_analytics.data.dates import parse_flexible_date, month_key
from churn_analytics.analytics.common import to_number

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000


def _coerce(value) -> float:
    v = to_number(value, float("nan"))
    return 0.0 if math.isnan(v) else v


def group_indian(n: int) -> str:
    """1234567 → "12,34,567"."""
    digits = str(abs(int(n)))
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(value) -> str:
    num = _coerce(value)
    if num == 0:
        return f"{CURRENCY_SYMBOL}0"
    sign = "-" if num < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{group_indian(math.floor(abs(num) + 0.5))}"


def _compact(num: float) -> str:
    a = abs(num)
    if a >= CRORE:
        return f"{a / CRORE:.2f}Cr"
    if a >= LAKH:
        return f"{a / LAKH:.2f}L"
    if a >= THOUSAND:
        return f"{a / THOUSAND:.1f}K"
    return f"{a:.0f}"


def format_currency_compact(value) -> str:
    """₹1.25Cr / ₹3.40L / ₹12.5K / ₹950."""
    num = _coerce(value)
    if num == 0:
        return f"{CURRENCY_SYMBOL}0"
    sign = "-" if num < 0 else ""
    return f"{sign}{CURRENCY_SYMBOL}{_compact(num)}"


def format_number_compact(value) -> str:
    num = _coerce(value)
    if num == 0:
        return "0"
    sign = "-" if num < 0 else ""
    return f"{sign}{_compact(num)}"


def format_number(value, decimals: int = 1) -> str:
    return f"{_coerce(value):.{decimals}f}"


def format_percent(value, decimals: int = 1) -> str:
    return f"{format_number(value, decimals)}%"


def format_display_date(value) -> str:
    """"2025-10-31, 21:50:13" → "31 Oct 2025"; "-" when unparseable."""
    parsed = parse_flexible_date(value)
    if parsed is None:
        return "-"
    return f"{parsed.day:02d} {month_key(parsed)}"

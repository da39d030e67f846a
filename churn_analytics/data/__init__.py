"""Membership CSV loading, normalization and filtering."""
from .loader import CsvParseError, load_csv, parse_csv_text
from .normalize import ColumnBinding, resolve_columns, normalize_row, normalize_frame
from .schemas import MemberRecord, FilterCriteria, DateRangePreset
from .filters import apply_filters, unique_values

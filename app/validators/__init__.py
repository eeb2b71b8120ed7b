"""
app/validators package marker.
"""

from app.validators.csv_validator import (
    CallRecordRowParser,
    RowParseError,
    RowParseErrorKind,
    looks_like_header,
    split_columns,
)

__all__ = [
    "CallRecordRowParser",
    "RowParseError",
    "RowParseErrorKind",
    "looks_like_header",
    "split_columns",
]

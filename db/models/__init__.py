"""
Model package exports.

Import all SQLAlchemy models here so metadata registration and Alembic
autogeneration work without extra imports.
"""

from db.models.call_record import CallRecord

__all__ = [
    "CallRecord",
]

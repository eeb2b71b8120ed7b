"""
app/repositories package marker.
"""

from app.repositories.call_record_repository import CallRecordRepository

__all__ = [
    "CallRecordRepository",
]

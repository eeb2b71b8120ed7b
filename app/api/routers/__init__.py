"""
app/api/routers package marker.
"""

from app.api.routers.call_records import router as call_records_router

__all__ = [
    "call_records_router",
]

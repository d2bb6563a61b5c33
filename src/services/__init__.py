"""Services package for live measure computation."""

from .live_measure_service import LiveMeasureService

__all__ = [
    "LiveMeasureService",
]

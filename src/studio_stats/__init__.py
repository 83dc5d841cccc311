"""Convenience exports for the studio performance metrics pipeline."""

from .metrics import metrics_to_frame, monthly_pivot, rollup_by_location
from .models import ClientDetail, TeacherMetrics
from .pipeline import ProcessingCancelled, ProcessingProgress, ProcessingResult, process_data

__all__ = [
    "ClientDetail",
    "ProcessingCancelled",
    "ProcessingProgress",
    "ProcessingResult",
    "TeacherMetrics",
    "metrics_to_frame",
    "monthly_pivot",
    "process_data",
    "rollup_by_location",
]

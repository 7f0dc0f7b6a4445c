"""Data storage and persistence layer"""

from .models import (
    MAX_TOTAL_SOLD,
    AnalysisRow,
    BatchSummary,
    ExtractionResult,
    JobResult,
    Observation,
    SalesObservation,
    SalesSummary,
    ScrapeRun,
    TrackedProduct,
    utcnow,
)
from .database import Database

__all__ = [
    "MAX_TOTAL_SOLD",
    "AnalysisRow",
    "BatchSummary",
    "ExtractionResult",
    "JobResult",
    "Observation",
    "SalesObservation",
    "SalesSummary",
    "ScrapeRun",
    "TrackedProduct",
    "Database",
    "utcnow",
]

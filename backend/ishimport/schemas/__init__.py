"""Pydantic schemas package."""

from ishimport.schemas.import_log import (
    ImportLogList,
    ImportLogRead,
    SourceStatusCounts,
)
from ishimport.schemas.imports import (
    ImportRequest,
    ImportResponse,
    ImportVacancy,
    ScraperRunRequest,
    SyncRequest,
    SyncResponse,
)

__all__ = [
    # ImportLog
    "ImportLogList",
    "ImportLogRead",
    "SourceStatusCounts",
    # Import triggers
    "ImportRequest",
    "ImportResponse",
    "ImportVacancy",
    "ScraperRunRequest",
    "SyncRequest",
    "SyncResponse",
]

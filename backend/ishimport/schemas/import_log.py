"""Pydantic schemas for ImportLog model."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ImportLogRead(BaseModel):
    """Full import/sync run output."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    source: str
    triggered_by: str
    operation_type: str
    status: str
    started_at: datetime
    completed_at: datetime | None = None

    total_found: int = 0
    new_imported: int = 0
    updated: int = 0
    duplicates: int = 0
    validation_errors: int = 0
    errors: int = 0

    total_checked: int = 0
    still_active: int = 0
    removed_at_source: int = 0
    marked_filled: int = 0
    reactivated: int = 0
    unchanged: int = 0

    error_details: list[dict] | None = None
    notes: str | None = None


class SourceStatusCounts(BaseModel):
    source: str
    total: int = 0
    active: int = 0
    filled: int = 0
    removed_at_source: int = 0


class ImportLogList(BaseModel):
    logs: list[ImportLogRead]
    stats_by_source: list[SourceStatusCounts]

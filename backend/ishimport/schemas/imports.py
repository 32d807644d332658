"""Request/response schemas for the import trigger endpoints."""

from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field, field_validator


class SyncRequest(BaseModel):
    """Snapshot of the ids a source currently lists."""

    source: str = Field(min_length=1, max_length=50)
    active_source_ids: list[str]
    filled_source_ids: list[str] = Field(default_factory=list)

    @field_validator("active_source_ids", "filled_source_ids", mode="before")
    @classmethod
    def _ids_as_strings(cls, value):
        if isinstance(value, list):
            return [str(v) for v in value if v is not None and not isinstance(v, (dict, list))]
        return value


class ImportVacancy(BaseModel):
    """One flattened vacancy posted by an external scraper.

    Types are loose on purpose; per-record problems are reported by the
    importer instead of failing the whole request.
    """

    source_id: Any = None
    source_url: Any = None
    title: Any = None
    description: Any = None
    requirements: Any = None
    company_name: Any = None
    salary_min: Any = None
    salary_max: Any = None
    employment_type: Any = None
    experience: Any = None
    education_level: Any = None
    benefits: Any = None
    contact_phone: Any = None
    contact_telegram: Any = None
    region_id: Any = None
    district_id: Any = None
    region_name: Any = None
    district_name: Any = None
    address: Any = None
    latitude: Any = None
    longitude: Any = None
    category_id: Any = None
    source_category: Any = None
    is_for_students: Any = False
    is_for_disabled: Any = False
    is_for_women: Any = False
    is_for_graduates: Any = False
    raw: Any = None


class ImportRequest(BaseModel):
    source: str = Field(min_length=1, max_length=50)
    vacancies: list[ImportVacancy]
    triggered_by: str = Field(default="api", max_length=20)


class ImportResponse(BaseModel):
    success: bool
    log_id: UUID | None = None
    status: str
    stats: dict[str, int]
    errors: list[dict] | None = None


class SyncResponse(BaseModel):
    success: bool = True
    log_id: UUID | None = None
    stats: dict[str, int]
    errors: list[dict] | None = None


class ScraperRunRequest(BaseModel):
    max_pages: int | None = Field(default=None, ge=1, le=500)
    only_with_contacts: bool | None = None

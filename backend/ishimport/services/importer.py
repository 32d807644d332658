"""Import/upsert engine: writes job drafts keyed by (source, source_id).

The batch is a fold over drafts. Each record is validated, looked up by its
dedup key and inserted or updated in its own transaction, so one bad record
never takes the rest of the batch down with it. Every run leaves exactly one
ImportLog row behind.
"""

import logging
import math
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ishimport.models.import_log import ImportLog
from ishimport.models.job import Job
from ishimport.services.vacancy_mapper import MUTABLE_FIELDS, JobDraft

logger = logging.getLogger(__name__)

MAX_ERROR_DETAILS = 50


@dataclass
class ImportStats:
    total_received: int = 0
    unique_processed: int = 0
    new_imported: int = 0
    updated: int = 0
    duplicates: int = 0
    validation_errors: int = 0
    errors: int = 0

    @property
    def written(self) -> int:
        return self.new_imported + self.updated


@dataclass
class ImportOutcome:
    stats: ImportStats = field(default_factory=ImportStats)
    error_details: list[dict] = field(default_factory=list)
    log_id: uuid.UUID | None = None
    status: str = "running"

    def record_error(self, source_id: str | None, operation: str, error: str) -> None:
        if len(self.error_details) < MAX_ERROR_DETAILS:
            self.error_details.append({
                "source_id": source_id or "unknown",
                "operation": operation,
                "error": error[:500],
            })


def validate_draft(draft: JobDraft) -> str | None:
    """Return an error message for an unusable draft, None when it can be written."""
    if not draft.source_id:
        return "Missing or invalid source_id"
    if not draft.title_uz or len(draft.title_uz.strip()) < 2:
        return "Missing or invalid title (min 2 chars)"
    if not draft.company_name:
        return "Missing or invalid company_name"
    if not draft.source_url:
        return "Missing source_url"
    for name in ("salary_min", "salary_max"):
        value = getattr(draft, name)
        if value is None:
            continue
        if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
            return f"Invalid {name}"
        if isinstance(value, float) and not math.isfinite(value):
            return f"Invalid {name}"
    return None


def _row_values(draft: JobDraft, now: datetime) -> dict:
    values = {name: getattr(draft, name) for name in MUTABLE_FIELDS}
    for name in ("salary_min", "salary_max"):
        if values[name] is not None:
            values[name] = int(round(values[name]))
    values.update(
        is_imported=True,
        is_active=True,
        source_status="active",
        last_seen_at=now,
        last_checked_at=now,
        last_synced_at=now,
    )
    return values


def _find(db: Session, source: str, source_id: str) -> Job | None:
    return db.query(Job).filter(Job.source == source, Job.source_id == source_id).first()


def upsert_draft(db: Session, draft: JobDraft, now: datetime) -> str:
    """Insert or update one draft. Returns 'new' or 'updated'.

    Identity columns (id, source, source_id, created_at) are never written on
    update. An insert that loses a race with a concurrent run is retried once
    as an update.
    """
    values = _row_values(draft, now)
    existing = _find(db, draft.source, draft.source_id)
    if existing:
        for key, value in values.items():
            setattr(existing, key, value)
        db.commit()
        return "updated"

    db.add(Job(id=uuid.uuid4(), source=draft.source, source_id=draft.source_id, **values))
    try:
        db.commit()
        return "new"
    except IntegrityError:
        db.rollback()
        existing = _find(db, draft.source, draft.source_id)
        if not existing:
            raise
        for key, value in values.items():
            setattr(existing, key, value)
        db.commit()
        return "updated"


def _final_status(outcome: ImportOutcome) -> str:
    failures = outcome.stats.errors + outcome.stats.validation_errors
    if not failures:
        return "completed"
    return "completed_with_errors" if outcome.stats.written else "failed"


def import_batch(
    db: Session,
    source: str,
    drafts: Iterable[JobDraft],
    triggered_by: str = "api",
    notes: str | None = None,
) -> ImportOutcome:
    """Upsert a batch of drafts for one source and log the run."""
    drafts = list(drafts)
    started_at = datetime.now(timezone.utc)

    log = ImportLog(
        id=uuid.uuid4(),
        source=source,
        triggered_by=triggered_by,
        operation_type="import",
        status="running",
        started_at=started_at,
        total_found=len(drafts),
        notes=notes,
    )
    db.add(log)
    db.commit()

    outcome = ImportOutcome(log_id=log.id)
    outcome.stats.total_received = len(drafts)

    seen: set[str] = set()
    for draft in drafts:
        outcome = _fold(db, source, draft, seen, started_at, outcome)

    outcome.status = _final_status(outcome)
    stats = outcome.stats
    log.status = outcome.status
    log.completed_at = datetime.now(timezone.utc)
    log.new_imported = stats.new_imported
    log.updated = stats.updated
    log.duplicates = stats.duplicates
    log.validation_errors = stats.validation_errors
    log.errors = stats.errors
    log.error_details = outcome.error_details or None
    db.commit()

    logger.info(
        f"[{source}] Import finished ({outcome.status}): {stats.new_imported} new, {stats.updated} updated, "
        f"{stats.duplicates} duplicates, {stats.validation_errors} invalid, {stats.errors} errors"
    )
    return outcome


def _fold(
    db: Session,
    source: str,
    draft: JobDraft,
    seen: set[str],
    now: datetime,
    outcome: ImportOutcome,
) -> ImportOutcome:
    stats = outcome.stats
    if draft.source != source:
        draft.source = source

    if draft.source_id and draft.source_id in seen:
        stats.duplicates += 1
        return outcome
    if draft.source_id:
        seen.add(draft.source_id)
    stats.unique_processed += 1

    problem = validate_draft(draft)
    if problem:
        stats.validation_errors += 1
        outcome.record_error(draft.source_id, "validate", problem)
        return outcome

    try:
        result = upsert_draft(db, draft, now)
    except Exception as e:
        db.rollback()
        stats.errors += 1
        outcome.record_error(draft.source_id, "upsert", str(e))
        logger.warning(f"[{source}] Failed to upsert {draft.source_id}: {e}")
        return outcome

    if result == "new":
        stats.new_imported += 1
    else:
        stats.updated += 1
    return outcome

"""Lifecycle reconciliation of imported jobs against a fresh source snapshot.

Per row, in priority order:
    1. id in filled set      -> filled, inactive
    2. id not in active set  -> removed_at_source, inactive
    3. otherwise             -> active (reactivated if it was filled/removed)

Only lifecycle columns are written. Content is refreshed by the importer.
"""

import logging
import uuid
from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Iterable

from sqlalchemy.orm import Session

from ishimport.config import get_settings
from ishimport.models.import_log import ImportLog
from ishimport.models.job import Job

logger = logging.getLogger(__name__)

MAX_ERROR_DETAILS = 50


@dataclass
class SyncStats:
    total_checked: int = 0
    still_active: int = 0
    removed_at_source: int = 0
    marked_filled: int = 0
    reactivated: int = 0
    unchanged: int = 0
    errors: int = 0
    error_details: list[dict] = field(default_factory=list)
    log_id: uuid.UUID | None = None

    def counters(self) -> dict[str, int]:
        data = asdict(self)
        data.pop("error_details")
        data.pop("log_id")
        return data


def next_state(current: str | None, source_id: str, active_ids: set[str], filled_ids: set[str]) -> tuple[str, str]:
    """Return ``(new_status, counter)`` for one row.

    ``counter`` names the SyncStats field the transition is counted under.
    """
    if source_id in filled_ids:
        return "filled", "marked_filled"
    if source_id not in active_ids:
        if current == "removed_at_source":
            return "removed_at_source", "unchanged"
        return "removed_at_source", "removed_at_source"
    if current in ("filled", "removed_at_source"):
        return "active", "reactivated"
    return "active", "still_active"


def _apply(job: Job, status: str, run_started_at: datetime) -> None:
    job.source_status = status
    job.is_active = status == "active"
    job.last_checked_at = run_started_at
    job.last_synced_at = run_started_at
    if status == "active":
        job.last_seen_at = run_started_at


def reconcile(
    db: Session,
    source: str,
    active_source_ids: Iterable[str],
    filled_source_ids: Iterable[str] = (),
    triggered_by: str = "api",
    page_size: int | None = None,
) -> SyncStats:
    """Walk every imported row of ``source`` and update its lifecycle state.

    Rows not created by the importer (``is_imported`` false) are never touched.
    """
    active_ids = {str(i) for i in active_source_ids}
    filled_ids = {str(i) for i in filled_source_ids}
    page_size = page_size or get_settings().reconcile_page_size
    run_started_at = datetime.now(timezone.utc)

    log = ImportLog(
        id=uuid.uuid4(),
        source=source,
        triggered_by=triggered_by,
        operation_type="sync",
        status="running",
        started_at=run_started_at,
        total_found=len(active_ids),
    )
    db.add(log)
    db.commit()

    stats = SyncStats(log_id=log.id)
    offset = 0
    while True:
        page = (
            db.query(Job.id, Job.source_id, Job.source_status)
            .filter(Job.source == source, Job.is_imported == True)  # noqa: E712
            .order_by(Job.id)
            .offset(offset)
            .limit(page_size)
            .all()
        )
        if not page:
            break
        offset += len(page)

        for job_id, source_id, current in page:
            if source_id is None:
                continue
            stats.total_checked += 1
            status, counter = next_state(current, str(source_id), active_ids, filled_ids)
            try:
                job = db.get(Job, job_id)
                _apply(job, status, run_started_at)
                db.commit()
            except Exception as e:
                db.rollback()
                stats.errors += 1
                if len(stats.error_details) < MAX_ERROR_DETAILS:
                    stats.error_details.append({"source_id": source_id, "operation": "sync", "error": str(e)[:500]})
                logger.warning(f"[{source}] Failed to reconcile {source_id}: {e}")
                continue
            setattr(stats, counter, getattr(stats, counter) + 1)

    log.status = "completed"
    log.completed_at = datetime.now(timezone.utc)
    for name, value in stats.counters().items():
        setattr(log, name, value)
    log.error_details = stats.error_details or None
    log.notes = f"active={len(active_ids)} filled={len(filled_ids)}"
    db.commit()

    logger.info(
        f"[{source}] Sync finished: {stats.total_checked} checked, {stats.still_active} active, "
        f"{stats.reactivated} reactivated, {stats.removed_at_source} removed, "
        f"{stats.marked_filled} filled, {stats.unchanged} unchanged, {stats.errors} errors"
    )
    return stats

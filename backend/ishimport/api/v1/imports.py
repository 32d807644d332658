"""Import trigger endpoints: batch import, lifecycle sync and run history."""

import logging
from dataclasses import asdict

from fastapi import APIRouter, Depends, Query
from sqlalchemy import case, func
from sqlalchemy.orm import Session

from ishimport.dependencies.auth import require_import_key
from ishimport.dependencies.body import json_body
from ishimport.models.base import get_db
from ishimport.models.import_log import ImportLog
from ishimport.models.job import Job
from ishimport.schemas.import_log import ImportLogList, ImportLogRead, SourceStatusCounts
from ishimport.schemas.imports import ImportRequest, ImportResponse, SyncRequest, SyncResponse
from ishimport.services.category_normalizer import load_category_index
from ishimport.services.geo_normalizer import load_geo_index
from ishimport.services.geo_tables import GEO_TABLES_VERSION
from ishimport.services.importer import import_batch
from ishimport.services.reconciler import reconcile
from ishimport.services.vacancy_mapper import draft_from_payload

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/import", tags=["import"], dependencies=[Depends(require_import_key)])


@router.post("/sync", response_model=SyncResponse)
def sync_source(body: SyncRequest = Depends(json_body(SyncRequest)), db: Session = Depends(get_db)):
    """Reconcile stored lifecycle state against the ids the source lists now."""
    stats = reconcile(
        db,
        body.source,
        body.active_source_ids,
        body.filled_source_ids,
        triggered_by="api",
    )
    return SyncResponse(
        success=True,
        log_id=stats.log_id,
        stats=stats.counters(),
        errors=stats.error_details or None,
    )


@router.post("/jobs", response_model=ImportResponse)
def import_jobs(body: ImportRequest = Depends(json_body(ImportRequest)), db: Session = Depends(get_db)):
    """Upsert a batch of already-scraped vacancies."""
    geo_index = load_geo_index(db, body.source)
    category_index = load_category_index(db)
    drafts = [
        draft_from_payload(vacancy.model_dump(), body.source, geo_index, category_index)
        for vacancy in body.vacancies
    ]
    outcome = import_batch(
        db, body.source, drafts,
        triggered_by=body.triggered_by,
        notes=f"geo_tables={GEO_TABLES_VERSION}",
    )
    return ImportResponse(
        success=outcome.status != "failed",
        log_id=outcome.log_id,
        status=outcome.status,
        stats=asdict(outcome.stats),
        errors=outcome.error_details or None,
    )


@router.get("/logs", response_model=ImportLogList)
def list_logs(
    db: Session = Depends(get_db),
    source: str | None = Query(None, description="Filter by source"),
    operation: str | None = Query(None, pattern="^(import|sync)$", description="Filter by operation"),
    limit: int = Query(20, ge=1, le=100),
):
    """Recent import/sync runs plus per-source lifecycle counts."""
    query = db.query(ImportLog)
    if source:
        query = query.filter(ImportLog.source == source)
    if operation:
        query = query.filter(ImportLog.operation_type == operation)
    logs = query.order_by(ImportLog.started_at.desc()).limit(limit).all()

    status_counts = (
        db.query(
            Job.source,
            func.count(Job.id),
            func.sum(case((Job.source_status == "active", 1), else_=0)),
            func.sum(case((Job.source_status == "filled", 1), else_=0)),
            func.sum(case((Job.source_status == "removed_at_source", 1), else_=0)),
        )
        .filter(Job.is_imported == True)  # noqa: E712
        .group_by(Job.source)
        .order_by(Job.source)
        .all()
    )

    return ImportLogList(
        logs=[ImportLogRead.model_validate(log) for log in logs],
        stats_by_source=[
            SourceStatusCounts(
                source=row[0],
                total=row[1] or 0,
                active=row[2] or 0,
                filled=row[3] or 0,
                removed_at_source=row[4] or 0,
            )
            for row in status_counts
        ],
    )

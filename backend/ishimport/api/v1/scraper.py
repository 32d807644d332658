"""Manual trigger for a full source run (fetch, transform, import, sync)."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

import ishimport.scrapers  # noqa: F401
from ishimport.dependencies.auth import require_import_key
from ishimport.dependencies.body import json_body
from ishimport.models.base import get_db
from ishimport.schemas.imports import ScraperRunRequest
from ishimport.scrapers.registry import get_source_class, list_sources
from ishimport.services.pipeline import run_source_pipeline

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/scraper", tags=["scraper"], dependencies=[Depends(require_import_key)])


@router.get("")
def available_sources():
    return {"sources": list_sources()}


@router.post("/{source}")
def run_scraper(
    source: str,
    body: ScraperRunRequest = Depends(json_body(ScraperRunRequest, allow_empty=True)),
    db: Session = Depends(get_db),
):
    """Run the whole pipeline for one source synchronously and return its report."""
    fetcher_class = get_source_class(source)
    if not fetcher_class:
        raise HTTPException(status_code=404, detail=f"Unknown source: {source}")
    with fetcher_class() as fetcher:
        report = run_source_pipeline(
            db,
            fetcher,
            max_pages=body.max_pages,
            only_with_contacts=body.only_with_contacts,
            triggered_by="manual",
        )
    return {"success": report["import"] is not None, "source": source, **report}

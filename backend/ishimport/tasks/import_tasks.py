"""Source import orchestration tasks."""

import logging

import ishimport.scrapers  # noqa: F401
from ishimport.models.base import SyncSessionLocal
from ishimport.models.category import Category  # noqa: F401
from ishimport.models.geo import Region  # noqa: F401
from ishimport.scrapers.registry import get_source_class
from ishimport.services.cache import RedisResponseCache
from ishimport.services.geo_normalizer import load_geo_index
from ishimport.services.pipeline import run_source_pipeline
from ishimport.services.reference_sync import sync_geo_refs
from ishimport.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


def _fetcher_for(source: str):
    fetcher_class = get_source_class(source)
    if not fetcher_class:
        raise ValueError(f"No fetcher registered for source: {source}")
    if source == "osonish":
        return fetcher_class(cache=RedisResponseCache.from_url())
    return fetcher_class()


@celery_app.task(name="ishimport.tasks.import_tasks.run_source_import")
def run_source_import(source: str, max_pages: int | None = None, only_with_contacts: bool | None = None):
    """Fetch, import and reconcile one source. Per-record failures end up in the import logs."""
    fetcher = _fetcher_for(source)
    db = SyncSessionLocal()
    try:
        report = run_source_pipeline(
            db,
            fetcher,
            max_pages=max_pages,
            only_with_contacts=only_with_contacts,
            triggered_by="cron",
        )
        logger.info(f"[{source}] Import run finished: {report['import']} / {report['sync']}")
        return report
    except Exception as e:
        db.rollback()
        logger.error(f"[{source}] Import run failed: {e}")
        raise
    finally:
        fetcher.close()
        db.close()


@celery_app.task(name="ishimport.tasks.import_tasks.sync_geo_references")
def sync_geo_references(source: str):
    """Refresh the source's region/city id map."""
    fetcher = _fetcher_for(source)
    db = SyncSessionLocal()
    try:
        return sync_geo_refs(db, fetcher, load_geo_index(db))
    finally:
        fetcher.close()
        db.close()

"""Maintenance tasks: category re-classification and location backfill."""

import logging

from ishimport.models.base import SyncSessionLocal
from ishimport.models.geo import Region  # noqa: F401
from ishimport.services.maintenance import backfill_locations, reclassify_categories
from ishimport.tasks.celery_app import celery_app

logger = logging.getLogger(__name__)


@celery_app.task(name="ishimport.tasks.maintenance_tasks.reclassify_job_categories")
def reclassify_job_categories(source: str | None = None, only_missing: bool = True):
    """Resolve categories for imported jobs that still have none."""
    db = SyncSessionLocal()
    try:
        return reclassify_categories(db, source=source, only_missing=only_missing)
    except Exception as e:
        db.rollback()
        logger.error(f"Category reclassification failed: {e}")
        raise
    finally:
        db.close()


@celery_app.task(name="ishimport.tasks.maintenance_tasks.backfill_job_locations")
def backfill_job_locations(source: str = "osonish"):
    """Re-resolve missing region/district ids from stored payloads."""
    db = SyncSessionLocal()
    try:
        return backfill_locations(db, source)
    except Exception as e:
        db.rollback()
        logger.error(f"[{source}] Location backfill failed: {e}")
        raise
    finally:
        db.close()

"""Re-normalization of stored jobs after tables or reference data change."""

import logging

from sqlalchemy.orm import Session

from ishimport.models.job import Job
from ishimport.services.category_normalizer import load_category_index, resolve_category
from ishimport.services.geo_normalizer import load_geo_index

logger = logging.getLogger(__name__)


def reclassify_categories(
    db: Session,
    source: str | None = None,
    only_missing: bool = True,
    batch_size: int = 500,
) -> dict:
    """Run category resolution again over stored imported jobs.

    With ``only_missing`` only rows without a category are touched;
    otherwise every row is re-resolved and changed ids are written back.
    """
    index = load_category_index(db)
    query = db.query(Job).filter(Job.is_imported == True)  # noqa: E712
    if source:
        query = query.filter(Job.source == source)
    if only_missing:
        query = query.filter(Job.category_id.is_(None))

    processed = 0
    changed = 0
    unmatched = 0
    last_id = None
    while True:
        page_query = query.order_by(Job.id)
        if last_id is not None:
            page_query = page_query.filter(Job.id > last_id)
        jobs = page_query.limit(batch_size).all()
        if not jobs:
            break
        for job in jobs:
            processed += 1
            match = resolve_category(job.title_uz, job.source_category, index)
            if not match:
                unmatched += 1
                continue
            if job.category_id != match.category_id:
                job.category_id = match.category_id
                changed += 1
        last_id = jobs[-1].id
        db.commit()

    logger.info(f"Reclassified categories: {processed} processed, {changed} changed, {unmatched} unmatched")
    return {"processed": processed, "changed": changed, "unmatched": unmatched}


def backfill_locations(db: Session, source: str, batch_size: int = 500) -> dict:
    """Fill missing region/district ids from the stored source payload."""
    geo_index = load_geo_index(db, source)
    query = db.query(Job).filter(
        Job.source == source,
        (Job.region_id.is_(None)) | (Job.district_id.is_(None)),
    )

    processed = 0
    updated = 0
    last_id = None
    while True:
        page_query = query.order_by(Job.id)
        if last_id is not None:
            page_query = page_query.filter(Job.id > last_id)
        jobs = page_query.limit(batch_size).all()
        if not jobs:
            break
        for job in jobs:
            processed += 1
            filial = (job.raw_source_json or {}).get("filial") or {}
            region = filial.get("region") or {}
            city = filial.get("city") or {}
            if not region and not city:
                continue
            location = geo_index.resolve_location(
                region_name=region.get("name_uz") or region.get("name_ru") or job.region_name,
                district_name=city.get("name_uz") or city.get("name_ru") or job.district_name,
                region_external_id=region.get("id"),
                district_external_id=city.get("id"),
            )
            if location.region_id is None:
                continue
            before = (job.region_id, job.district_id)
            job.region_id = location.region_id
            job.region_name = location.region_name
            if location.district_id is not None:
                job.district_id = location.district_id
                job.district_name = location.district_name
            else:
                # Drop a stored district that belongs to another region
                current = geo_index.district(job.district_id)
                if current and current.region_id != location.region_id:
                    job.district_id = None
                    job.district_name = None
            if (job.region_id, job.district_id) != before:
                updated += 1
        last_id = jobs[-1].id
        db.commit()

    logger.info(f"[{source}] Location backfill: {processed} processed, {updated} updated")
    return {"processed": processed, "updated": updated}

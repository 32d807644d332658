"""Build the per-source numeric geo id map from the source's own region/city lists.

Canonical regions and districts are never created or deleted here; only
``geo_source_refs`` rows are upserted.
"""

import logging
from dataclasses import asdict, dataclass

from sqlalchemy.orm import Session

from ishimport.models.geo import GeoSourceRef
from ishimport.services.geo_normalizer import GeoIndex

logger = logging.getLogger(__name__)


@dataclass
class RefSyncStats:
    regions_matched: int = 0
    regions_unmatched: int = 0
    districts_matched: int = 0
    districts_unmatched: int = 0
    upserted: int = 0


def _upsert_ref(db: Session, source: str, kind: str, external_id, canonical_id: int, name: str | None) -> None:
    ref = db.query(GeoSourceRef).filter(
        GeoSourceRef.source == source,
        GeoSourceRef.kind == kind,
        GeoSourceRef.external_id == str(external_id),
    ).first()
    if ref:
        ref.canonical_id = canonical_id
        ref.external_name = name
    else:
        db.add(GeoSourceRef(
            source=source,
            kind=kind,
            external_id=str(external_id),
            canonical_id=canonical_id,
            external_name=name,
        ))


def _name(item: dict) -> str | None:
    return item.get("name_uz") or item.get("name_ru") or item.get("name")


def sync_geo_refs(db: Session, fetcher, geo_index: GeoIndex) -> dict:
    """Match every source region and city to a canonical id and store the mapping."""
    source = fetcher.source_name
    stats = RefSyncStats()
    unmatched: list[str] = []

    for region in fetcher.fetch_regions():
        external_id = region.get("id")
        if external_id is None:
            continue
        match = geo_index.resolve_region(_name(region)) or geo_index.resolve_region(region.get("name_ru"))
        if not match:
            stats.regions_unmatched += 1
            unmatched.append(f"region:{external_id}:{_name(region)}")
            continue
        stats.regions_matched += 1
        _upsert_ref(db, source, "region", external_id, match.id, _name(region))
        stats.upserted += 1

        for city in fetcher.fetch_cities(external_id):
            city_id = city.get("id")
            if city_id is None:
                continue
            district = geo_index.resolve_district(_name(city), region_id=match.id)
            if not district and city.get("name_ru"):
                district = geo_index.resolve_district(city.get("name_ru"), region_id=match.id)
            if not district:
                stats.districts_unmatched += 1
                unmatched.append(f"district:{city_id}:{_name(city)}")
                continue
            stats.districts_matched += 1
            _upsert_ref(db, source, "district", city_id, district.id, _name(city))
            stats.upserted += 1

        fetcher.pause(fetcher.settings.list_delay_seconds)

    db.commit()
    if unmatched:
        logger.warning(f"[{source}] {len(unmatched)} unmapped geo entries: {', '.join(unmatched[:20])}")
    logger.info(f"[{source}] Geo refs synced: {asdict(stats)}")
    return {**asdict(stats), "unmatched": unmatched}

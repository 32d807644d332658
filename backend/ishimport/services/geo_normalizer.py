"""Geo name normalization and resolution to canonical region/district ids.

Resolution order for a free-text place name:
1. Source numeric id map (GeoSourceRef), when the caller has an external id
2. Exact match of the normalized full name against every canonical name
3. Substring containment in either direction
4. Loose match after stripping administrative type tokens

First hit in table order wins. No hit returns None; an unmapped location is
a valid state for a job, not an error.

Usage:
    from ishimport.services.geo_normalizer import load_geo_index

    index = load_geo_index(db, "osonish")
    location = index.resolve_location(region_name="Andijon viloyati", district_name="Asaka tumani")
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterable

from ishimport.services.geo_tables import (
    ABBREVIATIONS,
    APOSTROPHE_VARIANTS,
    CITY_TOKENS,
    DISTRICT_TOKENS,
    GEO_ALIASES,
    GEO_FIXES,
    GEO_TYPE_TOKENS,
    REGION_TOKENS,
)

logger = logging.getLogger(__name__)

_ABBREVIATION_PATTERNS = [(re.compile(pattern), repl) for pattern, repl in ABBREVIATIONS]
_APOSTROPHE_RE = re.compile(f"[{re.escape(APOSTROPHE_VARIANTS)}]")
_NON_ALNUM_RE = re.compile(r"[^0-9a-z\u0400-\u04ff]+")


def _token_pattern(phrase: str) -> re.Pattern:
    return re.compile(rf"(?<!\S){re.escape(phrase)}(?!\S)")


_FIX_PATTERNS = [(_token_pattern(src), dst) for src, dst in GEO_FIXES]
_ALIAS_PATTERNS = [(_token_pattern(src), dst) for src, dst in GEO_ALIASES]


def normalize_geo_name(raw: str | None) -> str:
    """Lowercase, expand abbreviations, drop apostrophes and punctuation, apply fixes then aliases."""
    if not raw:
        return ""
    text = raw.lower()
    for pattern, repl in _ABBREVIATION_PATTERNS:
        text = pattern.sub(repl, text)
    text = _APOSTROPHE_RE.sub("'", text)
    text = text.replace("'", "").replace('"', "")
    text = _NON_ALNUM_RE.sub(" ", text).strip()
    for pattern, repl in _FIX_PATTERNS:
        text = pattern.sub(repl, text)
    for pattern, repl in _ALIAS_PATTERNS:
        text = pattern.sub(repl, text)
    return " ".join(text.split())


def strip_geo_type_tokens(normalized: str) -> str:
    """Remove standalone administrative words (shahri, tumani, viloyati, область...)."""
    return " ".join(token for token in normalized.split() if token not in GEO_TYPE_TOKENS)


@dataclass(frozen=True)
class GeoType:
    has_city: bool
    has_district: bool
    has_region: bool


def detect_geo_type(raw: str | None) -> GeoType:
    tokens = set(normalize_geo_name(raw).split())
    return GeoType(
        has_city=bool(tokens & CITY_TOKENS),
        has_district=bool(tokens & DISTRICT_TOKENS),
        has_region=bool(tokens & REGION_TOKENS),
    )


@dataclass(frozen=True)
class GeoEntry:
    id: int
    name: str  # display name (name_uz)
    normalized: tuple[str, ...]
    loose: tuple[str, ...]
    region_id: int | None = None


@dataclass(frozen=True)
class GeoMatch:
    id: int
    name: str
    matched_by: str  # source_id, exact, contains, loose
    region_id: int | None = None


@dataclass(frozen=True)
class ResolvedLocation:
    region_id: int | None = None
    region_name: str | None = None
    district_id: int | None = None
    district_name: str | None = None


def _entry(entity_id: int, display: str, names: Iterable[str | None], region_id: int | None = None) -> GeoEntry:
    normalized: list[str] = []
    for name in names:
        value = normalize_geo_name(name)
        if value and value not in normalized:
            normalized.append(value)
    loose = [strip_geo_type_tokens(value) for value in normalized]
    return GeoEntry(
        id=entity_id,
        name=display,
        normalized=tuple(normalized),
        loose=tuple(value for value in loose if value),
        region_id=region_id,
    )


def _match(query: str, entries: Iterable[GeoEntry]) -> tuple[GeoEntry, str] | None:
    normalized = normalize_geo_name(query)
    if not normalized:
        return None
    entries = list(entries)

    for entry in entries:
        if normalized in entry.normalized:
            return entry, "exact"

    for entry in entries:
        for name in entry.normalized:
            if normalized in name or name in normalized:
                return entry, "contains"

    loose = strip_geo_type_tokens(normalized)
    if loose:
        for entry in entries:
            if loose in entry.loose:
                return entry, "loose"

    return None


class GeoIndex:
    """Canonical regions and districts prepared for matching.

    Built once per run from store rows and passed to the mapper; holds no
    state beyond what it was constructed with.
    """

    def __init__(
        self,
        regions: Iterable[GeoEntry],
        districts: Iterable[GeoEntry],
        region_refs: dict[str, int] | None = None,
        district_refs: dict[str, int] | None = None,
    ):
        self.regions = list(regions)
        self.districts = list(districts)
        self.region_refs = dict(region_refs or {})
        self.district_refs = dict(district_refs or {})
        self._regions_by_id = {entry.id: entry for entry in self.regions}
        self._districts_by_id = {entry.id: entry for entry in self.districts}

    @classmethod
    def from_rows(cls, regions, districts, refs=()) -> "GeoIndex":
        """Build from ORM rows (or any objects with the same attributes)."""
        region_entries = [
            _entry(r.id, r.name_uz, (r.name_uz, r.name_ru, getattr(r, "slug", None)))
            for r in regions
        ]
        district_entries = [
            _entry(d.id, d.name_uz, (d.name_uz, d.name_ru), region_id=d.region_id)
            for d in districts
        ]
        region_refs: dict[str, int] = {}
        district_refs: dict[str, int] = {}
        for ref in refs:
            target = region_refs if ref.kind == "region" else district_refs
            target[str(ref.external_id)] = ref.canonical_id
        return cls(region_entries, district_entries, region_refs, district_refs)

    def region(self, region_id: int | None) -> GeoEntry | None:
        return self._regions_by_id.get(region_id) if region_id is not None else None

    def district(self, district_id: int | None) -> GeoEntry | None:
        return self._districts_by_id.get(district_id) if district_id is not None else None

    def resolve_region(self, name: str | None = None, external_id=None) -> GeoMatch | None:
        if external_id is not None:
            entry = self.region(self.region_refs.get(str(external_id)))
            if entry:
                return GeoMatch(id=entry.id, name=entry.name, matched_by="source_id")
        if not name:
            return None
        found = _match(name, self.regions)
        if not found:
            return None
        entry, how = found
        return GeoMatch(id=entry.id, name=entry.name, matched_by=how)

    def resolve_district(
        self,
        name: str | None = None,
        external_id=None,
        region_id: int | None = None,
    ) -> GeoMatch | None:
        if external_id is not None:
            entry = self.district(self.district_refs.get(str(external_id)))
            if entry:
                return GeoMatch(id=entry.id, name=entry.name, matched_by="source_id", region_id=entry.region_id)
        if not name:
            return None
        if region_id is not None:
            scope = [entry for entry in self.districts if entry.region_id == region_id]
        else:
            scope = self.districts
        found = _match(name, scope)
        if not found:
            return None
        entry, how = found
        return GeoMatch(id=entry.id, name=entry.name, matched_by=how, region_id=entry.region_id)

    def resolve_location(
        self,
        region_name: str | None = None,
        district_name: str | None = None,
        region_external_id=None,
        district_external_id=None,
    ) -> ResolvedLocation:
        """Resolve a region/district pair, keeping region consistent with the district."""
        region = self.resolve_region(region_name, region_external_id)
        district = self.resolve_district(
            district_name,
            district_external_id,
            region_id=region.id if region else None,
        )

        region_id = region.id if region else None
        if district and district.region_id is not None and district.region_id != region_id:
            region_id = district.region_id
            if region:
                logger.debug(
                    f"District {district.name!r} belongs to region {district.region_id}, "
                    f"overriding matched region {region.id}"
                )

        region_entry = self.region(region_id)
        return ResolvedLocation(
            region_id=region_entry.id if region_entry else None,
            region_name=region_entry.name if region_entry else None,
            district_id=district.id if district else None,
            district_name=district.name if district else None,
        )


def load_geo_index(db, source: str | None = None) -> GeoIndex:
    """Read canonical geo rows (and the source's id map) into a GeoIndex."""
    from ishimport.models.geo import District, GeoSourceRef, Region

    regions = db.query(Region).order_by(Region.id).all()
    districts = db.query(District).order_by(District.id).all()
    refs = []
    if source:
        refs = db.query(GeoSourceRef).filter(GeoSourceRef.source == source).all()
    index = GeoIndex.from_rows(regions, districts, refs)
    logger.info(
        f"Loaded geo index: {len(index.regions)} regions, {len(index.districts)} districts, "
        f"{len(index.region_refs) + len(index.district_refs)} {source or 'no'} id refs"
    )
    return index

"""Geo name normalization and canonical region/district matching."""

import pytest

from ishimport.services.geo_normalizer import (
    GeoIndex,
    detect_geo_type,
    normalize_geo_name,
    strip_geo_type_tokens,
)


@pytest.mark.parametrize("a,b", [
    ("Namangan viloyati", "NAMANGAN"),
    ("Namangan vil.", "namangan"),
    ("Наманган", "Namangan shahri"),
    ("Farg‘ona viloyati", "Fargona"),
    ("Ferghana", "Farg'ona"),
    ("Tashkent", "Toshkent sh."),
])
def test_alias_variants_collapse_to_same_key(a, b):
    assert strip_geo_type_tokens(normalize_geo_name(a)) == strip_geo_type_tokens(normalize_geo_name(b))


def test_normalize_expands_abbreviations_and_drops_punctuation():
    assert normalize_geo_name("Toshkent sh.") == "toshkent shahri"
    assert normalize_geo_name("  Qo'qon   shahri!! ") == "qoqon shahri"
    assert normalize_geo_name("г. Наманган") == "город namangan"
    assert normalize_geo_name(None) == ""


def test_fixes_replace_whole_tokens_only():
    assert normalize_geo_name("Kattakurgan") == "kattaqorgon"
    assert normalize_geo_name("Kattakurganlik") == "kattakurganlik"


def test_detect_geo_type():
    geo_type = detect_geo_type("Chilonzor tumani")
    assert geo_type.has_district
    assert not geo_type.has_region
    assert detect_geo_type("Andijon viloyati").has_region
    assert detect_geo_type("Nukus sh.").has_city


def test_resolve_region_by_name(geo_index):
    match = geo_index.resolve_region("ANDIJON")
    assert match.id == 3
    assert match.name == "Andijon viloyati"


def test_resolve_region_by_russian_name(geo_index):
    assert geo_index.resolve_region("Андижанская область").id == 3


def test_resolve_region_unknown_returns_none(geo_index):
    assert geo_index.resolve_region("Atlantis") is None
    assert geo_index.resolve_region("") is None


def test_district_match_is_scoped_to_region(geo_index):
    # A district only resolves inside its own region
    match = geo_index.resolve_district("Andijon shahri", region_id=3)
    assert match.id == 301
    assert geo_index.resolve_district("Andijon shahri", region_id=1) is None


def test_location_region_follows_district(geo_index):
    location = geo_index.resolve_location(region_name=None, district_name="Yunusobod tumani")
    assert location.district_id == 102
    assert location.region_id == 1
    assert location.region_name == "Toshkent shahri"


def test_external_ids_take_priority_over_names():
    index = GeoIndex.from_rows([], [], [])
    assert index.resolve_region(name=None, external_id=5) is None

    class Row:
        def __init__(self, **kw):
            self.__dict__.update(kw)

    regions = [Row(id=3, name_uz="Andijon viloyati", name_ru=None, slug="andijon"),
               Row(id=8, name_uz="Namangan viloyati", name_ru=None, slug="namangan")]
    refs = [Row(kind="region", external_id="1703", canonical_id=8)]
    index = GeoIndex.from_rows(regions, [], refs)
    match = index.resolve_region("Andijon viloyati", external_id=1703)
    assert match.id == 8
    assert match.matched_by == "source_id"

"""Source vacancy -> canonical job draft.

Pure functions: everything a transform needs (geo index, category index,
label tables) is passed in, nothing here touches the network or database.
"""

import copy
import logging
import math
import re
from dataclasses import asdict, dataclass, field, fields
from datetime import datetime
from typing import Any, Final
from uuid import UUID

from ishimport.scrapers.extraction import (
    benefits_text,
    extract_benefits_from_html,
    extract_sections,
    extract_telegram,
    has_valid_contact,
    html_to_text,
    normalize_phone,
)
from ishimport.services.category_normalizer import CategoryIndex, resolve_category
from ishimport.services.geo_normalizer import GeoIndex

logger = logging.getLogger(__name__)

UNKNOWN_TITLE = "Noma'lum lavozim"
UNKNOWN_COMPANY = "Noma'lum kompaniya"

# busyness_type
EMPLOYMENT_TYPES: Final[dict[int, str]] = {
    1: "full_time",   # Doimiy
    2: "contract",    # Muddatli
    3: "contract",    # Mavsumiy
    4: "internship",  # Amaliyot
}
DEFAULT_EMPLOYMENT_TYPE = "full_time"

# work_type
WORK_MODES: Final[dict[int, str]] = {
    1: "onsite",  # Ish joyida
    2: "remote",  # Uydan
    3: "remote",  # Masofaviy
    4: "hybrid",  # Gibrid
}

# work_experiance -> approximate years
EXPERIENCE_YEARS: Final[dict[int, int]] = {
    1: 0,
    2: 2,
    3: 5,
    4: 7,
}

# min_education
EDUCATION_LEVELS: Final[dict[int, str]] = {
    1: "secondary",
    2: "vocational",
    3: "higher",
    4: "master",
    5: "higher",  # PhD
}
DEFAULT_EDUCATION_LEVEL = "any"

GENDERS: Final[dict[int, str]] = {
    1: "male",
    2: "female",
    3: "any",
}

# for_whos codes -> draft attribute
FOR_WHOM_FLAGS: Final[dict[int, str]] = {
    1: "is_for_disabled",
    2: "is_for_graduates",
    3: "is_for_students",
}

EXTRACTED_KEY = "_extracted"


@dataclass
class JobDraft:
    """Canonical job fields produced by a transform, before persistence."""

    source: str
    source_id: str
    title_uz: str
    source_url: str | None = None
    title_ru: str | None = None
    description_uz: str | None = None
    description_ru: str | None = None
    requirements_uz: str | None = None
    requirements_ru: str | None = None
    company_name: str | None = None
    salary_min: int | None = None
    salary_max: int | None = None
    payment_type: int | None = None
    employment_type: str = DEFAULT_EMPLOYMENT_TYPE
    work_mode: str | None = None
    experience: str = "no_experience"
    experience_years: int | None = None
    education_level: str = DEFAULT_EDUCATION_LEVEL
    gender: str | None = None
    age_min: int | None = None
    age_max: int | None = None
    working_hours: str | None = None
    working_days: str | None = None
    skills: list[str] = field(default_factory=list)
    benefits: str | None = None
    vacancy_count: int = 1
    views_count: int = 0
    contact_phone: str | None = None
    contact_telegram: str | None = None
    contact_email: str | None = None
    additional_phone: str | None = None
    hr_name: str | None = None
    has_contact: bool = False
    region_id: int | None = None
    district_id: int | None = None
    region_name: str | None = None
    district_name: str | None = None
    address: str | None = None
    latitude: float | None = None
    longitude: float | None = None
    category_id: UUID | None = None
    source_category: str | None = None
    source_subcategory: str | None = None
    is_for_students: bool = False
    is_for_disabled: bool = False
    is_for_women: bool = False
    is_for_graduates: bool = False
    source_created_at: datetime | None = None
    source_updated_at: datetime | None = None
    raw_source_json: dict | None = None

    @property
    def dedup_key(self) -> tuple[str, str]:
        return (self.source, self.source_id)

    def to_row(self) -> dict[str, Any]:
        return asdict(self)


IDENTITY_FIELDS: Final[frozenset[str]] = frozenset({"source", "source_id"})
MUTABLE_FIELDS: Final[tuple[str, ...]] = tuple(
    f.name for f in fields(JobDraft) if f.name not in IDENTITY_FIELDS
)


def _int(value) -> int | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return int(value)
    except OverflowError:
        return None
    except (TypeError, ValueError):
        try:
            return int(float(value))
        except (TypeError, ValueError, OverflowError):
            return None


def _float(value) -> float | None:
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError, OverflowError):
        return None


def _text(value) -> str:
    if value is None or isinstance(value, (dict, list)):
        return ""
    return str(value).strip()


def _dict(value) -> dict:
    return value if isinstance(value, dict) else {}


def _uuid(value) -> UUID | None:
    if isinstance(value, UUID):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


def parse_datetime(value) -> datetime | None:
    if isinstance(value, datetime):
        return value
    if not value or not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def map_salary(min_value, max_value) -> tuple[int | None, int | None]:
    """Positive, rounded salary bounds; min/max swapped when inverted."""
    def clean(value):
        number = _float(value)
        if number is None or not math.isfinite(number) or number <= 0:
            return None
        return int(round(number))

    low, high = clean(min_value), clean(max_value)
    if low is not None and high is not None and low > high:
        low, high = high, low
    return low, high


def map_employment_type(code) -> str:
    return EMPLOYMENT_TYPES.get(_int(code), DEFAULT_EMPLOYMENT_TYPE)


def map_work_mode(code, configs=None) -> str | None:
    code = _int(code)
    if not code:
        return None
    label = (configs.work_mode.get(code) if configs else None) or ""
    label = label.lower()
    if "masofaviy" in label or "uydan" in label:
        return "remote"
    if "gibrid" in label:
        return "hybrid"
    if "ofis" in label or "odatiy" in label or "joyida" in label:
        return "onsite"
    return WORK_MODES.get(code)


def _experience_code(years: int) -> str:
    if years < 1:
        return "no_experience"
    if years < 3:
        return "1_3"
    if years < 6:
        return "3_6"
    return "6_plus"


def map_experience(code, configs=None) -> tuple[str, int]:
    """Return ``(experience_code, approximate_years)`` for a work_experiance id."""
    code = _int(code)
    if not code:
        return "no_experience", 0

    label = ((configs.experience.get(code) if configs else None) or "").lower()
    if label:
        if "talab etilmaydi" in label or "bez opita" in label:
            return "no_experience", 0
        numbers = [int(n) for n in re.findall(r"\d+", label)]
        if numbers:
            first = numbers[0]
            years = 7 if first >= 6 else 6 if first >= 5 else 5 if first >= 3 else 2 if first >= 1 else 0
            return _experience_code(years), years

    years = EXPERIENCE_YEARS.get(code, 0)
    return _experience_code(years), years


def map_education(code) -> str:
    return EDUCATION_LEVELS.get(_int(code), DEFAULT_EDUCATION_LEVEL)


def map_gender(code) -> str | None:
    return GENDERS.get(_int(code))


def eligibility_flags(for_whos) -> dict[str, bool]:
    flags = {name: False for name in FOR_WHOM_FLAGS.values()}
    if not isinstance(for_whos, (list, tuple)):
        return flags
    for code in for_whos:
        name = FOR_WHOM_FLAGS.get(_int(code))
        if name:
            flags[name] = True
    return flags


def _description(detail: dict) -> str | None:
    text = html_to_text(detail.get("info"))
    if text:
        return text
    position = _text(_dict(detail.get("mmk_position")).get("position_name"))
    if not position:
        return None
    skills = [s.get("skill_name") for s in detail.get("skills_details") or [] if isinstance(s, dict) and s.get("skill_name")]
    if skills:
        return position + "\n\nTalablar:\n" + "\n".join(f"- {s}" for s in skills)
    return position


def transform(
    raw: dict,
    geo_index: GeoIndex,
    category_index: CategoryIndex | None,
    configs=None,
    source: str = "osonish",
    site_url: str = "https://osonish.uz",
) -> JobDraft:
    """Convert one OsonIsh vacancy detail record into a JobDraft."""
    source_id = str(raw["id"]) if raw.get("id") is not None else ""
    title = _text(raw.get("title")) or UNKNOWN_TITLE
    company = _dict(raw.get("company"))
    hr = _dict(raw.get("hr"))
    filial = _dict(raw.get("filial"))
    filial_region = _dict(filial.get("region"))
    filial_city = _dict(filial.get("city"))
    mmk_group = _dict(raw.get("mmk_group"))

    salary_min, salary_max = map_salary(raw.get("min_salary"), raw.get("max_salary"))
    experience, experience_years = map_experience(raw.get("work_experiance"), configs)

    api_benefits = [b for b in (_int(x) for x in raw.get("benefit_ids") or []) if b is not None]
    benefit_ids = list(dict.fromkeys(api_benefits + extract_benefits_from_html(raw.get("info"))))

    working_hours = None
    if raw.get("working_time_from") and raw.get("working_time_to"):
        working_hours = f"{raw['working_time_from']} - {raw['working_time_to']}"
    working_days = None
    days_id = _int(raw.get("working_days_id"))
    if days_id:
        working_days = (configs.schedule.get(days_id) if configs else None) or str(days_id)

    location = geo_index.resolve_location(
        region_name=filial_region.get("name_uz") or filial_region.get("name_ru"),
        district_name=filial_city.get("name_uz") or filial_city.get("name_ru"),
        region_external_id=filial_region.get("id"),
        district_external_id=filial_city.get("id"),
    )
    if location.region_id is None and filial_region:
        logger.debug(f"[{source}] Region unmapped for {source_id}: {filial_region.get('name_uz')!r}")

    source_category = mmk_group.get("cat2") or mmk_group.get("cat1") or None
    category = resolve_category(title, source_category, category_index)

    another_network = raw.get("another_network")
    contact_phone = normalize_phone(hr.get("phone")) or normalize_phone(raw.get("additional_phone"))
    description = _description(raw)

    raw_copy = copy.deepcopy(raw)
    if EXTRACTED_KEY not in raw_copy:
        raw_copy[EXTRACTED_KEY] = {
            "benefit_ids": benefit_ids,
            "sections": extract_sections(raw.get("info")),
        }

    return JobDraft(
        source=source,
        source_id=source_id,
        source_url=f"{site_url.rstrip('/')}/vacancies/{source_id}",
        title_uz=title,
        title_ru=title,
        description_uz=description,
        description_ru=description,
        company_name=_text(company.get("name")) or UNKNOWN_COMPANY,
        salary_min=salary_min,
        salary_max=salary_max,
        payment_type=_int(raw.get("payment_type")),
        employment_type=map_employment_type(raw.get("busyness_type")),
        work_mode=map_work_mode(raw.get("work_type"), configs),
        experience=experience,
        experience_years=experience_years,
        education_level=map_education(raw.get("min_education")),
        gender=map_gender(raw.get("gender")),
        age_min=_int(raw.get("age_from")),
        age_max=_int(raw.get("age_to")),
        working_hours=working_hours,
        working_days=working_days,
        skills=[s["skill_name"] for s in raw.get("skills_details") or [] if isinstance(s, dict) and s.get("skill_name")],
        benefits=benefits_text(benefit_ids),
        vacancy_count=_int(raw.get("count")) or 1,
        views_count=_int(raw.get("views_count")) or 0,
        contact_phone=contact_phone,
        contact_telegram=extract_telegram(another_network),
        additional_phone=normalize_phone(raw.get("additional_phone")),
        hr_name=hr.get("fio") or None,
        has_contact=has_valid_contact(raw),
        region_id=location.region_id,
        district_id=location.district_id,
        region_name=location.region_name or filial_region.get("name_uz") or None,
        district_name=location.district_name or filial_city.get("name_uz") or None,
        address=filial.get("address") or None,
        latitude=_float(filial.get("lat")),
        longitude=_float(filial.get("long")),
        category_id=category.category_id if category else None,
        source_category=source_category,
        source_subcategory=mmk_group.get("cat3") or None,
        is_for_women=False,
        source_created_at=parse_datetime(raw.get("created_at")),
        source_updated_at=parse_datetime(raw.get("updated_at")),
        raw_source_json=raw_copy,
        **eligibility_flags(raw.get("for_whos")),
    )


def apply_company_contacts(draft: JobDraft, contacts) -> JobDraft:
    """Fill missing contact fields from company-level contacts and re-evaluate has_contact."""
    if contacts is None:
        return draft
    if contacts.phone and not draft.contact_phone:
        draft.contact_phone = contacts.phone
    if contacts.email and not draft.contact_email:
        draft.contact_email = contacts.email
    draft.has_contact = bool(draft.contact_phone or draft.contact_telegram or draft.contact_email)
    return draft


def draft_from_payload(
    item: dict,
    source: str,
    geo_index: GeoIndex | None = None,
    category_index: CategoryIndex | None = None,
) -> JobDraft:
    """Build a draft from an already-flattened vacancy posted to the import endpoint.

    Values are taken as given (validation happens in the importer); missing
    region/district/category ids are resolved from names when an index is
    supplied.
    """
    title = _text(item.get("title"))
    description = _text(item.get("description"))
    requirements = _text(item.get("requirements"))

    region_id = _int(item.get("region_id"))
    district_id = _int(item.get("district_id"))
    region_name = _text(item.get("region_name")) or None
    district_name = _text(item.get("district_name")) or None
    if geo_index is not None:
        if region_id is None and district_id is None and (region_name or district_name):
            location = geo_index.resolve_location(region_name=region_name, district_name=district_name)
            region_id, district_id = location.region_id, location.district_id
        district = geo_index.district(district_id)
        if district and district.region_id is not None:
            region_id = district.region_id
        region = geo_index.region(region_id)
        region_name = region.name if region else region_name
        district_name = district.name if district else district_name

    category_id = _uuid(item.get("category_id"))
    source_category = _text(item.get("source_category")) or None
    if category_id is None and category_index is not None:
        match = resolve_category(title, source_category, category_index)
        category_id = match.category_id if match else None

    contact_phone = _text(item.get("contact_phone")) or None
    contact_telegram = _text(item.get("contact_telegram")) or None

    return JobDraft(
        source=source,
        source_id=str(item.get("source_id") or ""),
        source_url=_text(item.get("source_url")) or None,
        title_uz=title,
        title_ru=title,
        description_uz=description,
        description_ru=description,
        requirements_uz=requirements,
        requirements_ru=requirements,
        company_name=_text(item.get("company_name")) or None,
        salary_min=item.get("salary_min"),
        salary_max=item.get("salary_max"),
        employment_type=_text(item.get("employment_type")) or DEFAULT_EMPLOYMENT_TYPE,
        experience=_text(item.get("experience")) or "no_experience",
        education_level=_text(item.get("education_level")) or DEFAULT_EDUCATION_LEVEL,
        benefits=_text(item.get("benefits")) or None,
        contact_phone=contact_phone,
        contact_telegram=contact_telegram,
        has_contact=bool(contact_phone or contact_telegram),
        region_id=region_id,
        district_id=district_id,
        region_name=region_name,
        district_name=district_name,
        address=_text(item.get("address")) or None,
        latitude=_float(item.get("latitude")),
        longitude=_float(item.get("longitude")),
        category_id=category_id,
        source_category=source_category,
        is_for_students=bool(item.get("is_for_students")),
        is_for_disabled=bool(item.get("is_for_disabled")),
        is_for_women=bool(item.get("is_for_women")),
        is_for_graduates=bool(item.get("is_for_graduates")),
        raw_source_json=copy.deepcopy(item),
    )

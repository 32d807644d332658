"""OsonIsh (osonish.uz) vacancy fetcher.

OsonIsh exposes a public JSON API. The list endpoint only returns ids and
status, so each vacancy needs a second request for the full record:

    GET {base}/vacancies?page=N&per_page=100&status=2&is_offer=0&sort_key=created_at&sort_type=desc
    GET {base}/vacancies/{id}
    GET {base}/companies/{id}        (fallback contacts)
    GET {base}/system-configs        (code -> label tables)
    GET {base}/regions, {base}/cities?region_id=N

The API root moved between ``/api/v1`` and ``/api/api/v1`` over time, so
every request probes the configured candidates in order.
"""

import logging
import time
from dataclasses import asdict, dataclass, field

from ishimport.scrapers.base import BaseSourceFetcher, FetchError, FetchOk, FetchResult, ListPage
from ishimport.scrapers.extraction import normalize_phone
from ishimport.scrapers.registry import register_source

logger = logging.getLogger(__name__)

ACTIVE_STATUS = 2

CONFIG_CODES = {
    "education_list": "education",
    "work_experience_list": "experience",
    "work_type_list": "work_mode",
    "work_schedule_list": "schedule",
    "additional_benefits_list": "benefits",
}


@dataclass
class CompanyContacts:
    phone: str | None = None
    email: str | None = None
    website: str | None = None


@dataclass
class SourceConfigs:
    """Label tables from ``/system-configs`` (id -> Uzbek label)."""

    education: dict[int, str] = field(default_factory=dict)
    experience: dict[int, str] = field(default_factory=dict)
    work_mode: dict[int, str] = field(default_factory=dict)
    schedule: dict[int, str] = field(default_factory=dict)
    benefits: dict[int, str] = field(default_factory=dict)


def parse_system_configs(payload) -> SourceConfigs:
    configs = SourceConfigs()
    items = payload.get("data") if isinstance(payload, dict) else payload
    for item in items or []:
        if not isinstance(item, dict):
            continue
        attr = CONFIG_CODES.get(item.get("code"))
        if not attr:
            continue
        values = (item.get("value") or {}).get("uz") or []
        target = getattr(configs, attr)
        for value in values:
            try:
                target[int(value["id"])] = str(value.get("name") or "")
            except (KeyError, TypeError, ValueError):
                continue
    return configs


@register_source("osonish")
class OsonishFetcher(BaseSourceFetcher):

    def __init__(self, settings=None, client=None, sleep=time.sleep, cache=None):
        super().__init__(settings=settings, client=client, sleep=sleep)
        self.cache = cache

    @property
    def base_urls(self) -> list[str]:
        return self.settings.osonish_candidates()

    def default_headers(self) -> dict[str, str]:
        site = self.settings.osonish_site_url.rstrip("/")
        headers = {
            "User-Agent": (
                "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
                "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
            ),
            "Accept": "application/json",
            "Accept-Language": "uz-UZ,uz;q=0.9,ru;q=0.8",
            "Referer": f"{site}/vacancies",
        }
        if self.settings.osonish_cookie:
            headers["Cookie"] = self.settings.osonish_cookie
        token = self.settings.osonish_bearer_token
        if token:
            headers["Authorization"] = token if token.startswith("Bearer ") else f"Bearer {token}"
        if self.settings.osonish_user_id:
            headers["x-current-user-id"] = self.settings.osonish_user_id
        return headers

    def vacancy_url(self, source_id) -> str:
        return f"{self.settings.osonish_site_url.rstrip('/')}/vacancies/{source_id}"

    def fetch_list(self, page: int) -> ListPage:
        result = self.get_json("/vacancies", params={
            "page": page,
            "per_page": self.settings.list_page_size,
            "status": ACTIVE_STATUS,
            "is_offer": 0,
            "sort_key": "created_at",
            "sort_type": "desc",
        })
        if not isinstance(result, FetchOk):
            error = result if isinstance(result, FetchError) else FetchError(
                url=result.url, status=404, message="List endpoint not found",
            )
            logger.warning(f"[osonish] List page {page} failed: {error}")
            return ListPage(page=page, error=error)

        data = result.data.get("data") if isinstance(result.data, dict) else None
        if not isinstance(data, dict) or not isinstance(data.get("data"), list):
            error = FetchError(url=result.url, status=result.status, message="Unexpected list payload")
            logger.warning(f"[osonish] List page {page}: {error}")
            return ListPage(page=page, error=error)

        items = [item for item in data["data"] if isinstance(item, dict) and item.get("id") is not None]
        last_page = data.get("last_page") or 0
        return ListPage(
            items=items,
            has_more=bool(items) and page < last_page,
            total=data.get("total"),
            page=page,
        )

    def fetch_detail(self, source_id: str) -> FetchResult:
        result = self.get_json(f"/vacancies/{source_id}")
        if not isinstance(result, FetchOk):
            return result
        detail = result.data.get("data") if isinstance(result.data, dict) else None
        if not isinstance(detail, dict):
            return FetchError(url=result.url, status=result.status, message="Unexpected detail payload")
        return FetchOk(data=detail, url=result.url, status=result.status)

    def fetch_company_contacts(self, company_id) -> CompanyContacts | None:
        """Company-level phone/email/website, used when a vacancy carries no contact."""
        cache_key = f"osonish:company:{company_id}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return CompanyContacts(**cached) if cached else None

        result = self.get_json(f"/companies/{company_id}")
        contacts = None
        if isinstance(result, FetchOk) and isinstance(result.data, dict):
            data = result.data.get("data")
            if isinstance(data, dict):
                nested = data.get("data") if isinstance(data.get("data"), dict) else {}
                hrs = data.get("hrs") if isinstance(data.get("hrs"), list) else []
                phone = data.get("phone") or nested.get("phone") or (hrs[0].get("phone") if hrs and isinstance(hrs[0], dict) else None)
                email = data.get("mail")
                contacts = CompanyContacts(
                    phone=normalize_phone(phone),
                    email=email.strip() if isinstance(email, str) and email.strip() else None,
                    website=data.get("web_site") or None,
                )
        elif isinstance(result, FetchError):
            logger.debug(f"[osonish] Company {company_id} lookup failed: {result}")
            return None

        if self.cache is not None:
            self.cache.set(cache_key, asdict(contacts) if contacts else {}, self.settings.company_cache_ttl_seconds)
        return contacts

    def fetch_system_configs(self) -> SourceConfigs | None:
        result = self.get_json("/system-configs")
        if not isinstance(result, FetchOk):
            logger.warning(f"[osonish] System configs unavailable: {result}")
            return None
        return parse_system_configs(result.data)

    def fetch_regions(self) -> list[dict]:
        result = self.get_json("/regions")
        if not isinstance(result, FetchOk) or not isinstance(result.data, dict):
            logger.warning(f"[osonish] Regions unavailable: {result}")
            return []
        return [r for r in result.data.get("data") or [] if isinstance(r, dict)]

    def fetch_cities(self, region_id) -> list[dict]:
        result = self.get_json("/cities", params={"region_id": region_id})
        if not isinstance(result, FetchOk) or not isinstance(result.data, dict):
            logger.warning(f"[osonish] Cities for region {region_id} unavailable: {result}")
            return []
        cities = []
        for city in result.data.get("data") or []:
            if isinstance(city, dict):
                cities.append({**city, "region_id": city.get("region_id") or region_id})
        return cities

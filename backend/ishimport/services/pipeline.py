"""End-to-end source run: list -> detail -> transform -> import -> reconcile."""

import logging
from dataclasses import asdict, dataclass, field

from sqlalchemy.orm import Session

from ishimport.scrapers.base import BaseSourceFetcher, FetchError, FetchNotFound
from ishimport.services.category_normalizer import CategoryIndex, load_category_index
from ishimport.services.geo_normalizer import GeoIndex, load_geo_index
from ishimport.services.geo_tables import GEO_TABLES_VERSION
from ishimport.services.importer import import_batch
from ishimport.services.reconciler import reconcile
from ishimport.services.vacancy_mapper import JobDraft, apply_company_contacts, transform

logger = logging.getLogger(__name__)

ACTIVE_STATUS = 2


@dataclass
class ScrapeReport:
    pages: int = 0
    listed: int = 0
    details_ok: int = 0
    not_found: int = 0
    filled: int = 0
    fetch_errors: int = 0
    transform_errors: int = 0
    company_lookups: int = 0
    skipped_no_contact: int = 0
    complete: bool = False
    list_errors: list[str] = field(default_factory=list)


def _status(detail: dict) -> int | None:
    try:
        return int(detail.get("status"))
    except (TypeError, ValueError):
        return None


def collect_source_ids(fetcher: BaseSourceFetcher, max_pages: int, report: ScrapeReport) -> list[str]:
    """Walk list pages until the source says there are no more or ``max_pages`` is hit."""
    source_ids: list[str] = []
    page = 1
    while page <= max_pages:
        listing = fetcher.fetch_list(page)
        report.pages += 1
        if listing.error:
            report.list_errors.append(str(listing.error))
            break
        for item in listing.items:
            source_id = str(item["id"])
            if source_id not in source_ids:
                source_ids.append(source_id)
        logger.info(f"[{fetcher.source_name}] Page {page}: {len(listing.items)} ids (total {listing.total})")
        if not listing.has_more:
            report.complete = True
            break
        page += 1
        fetcher.pause(fetcher.settings.list_delay_seconds)
    report.listed = len(source_ids)
    return source_ids


def run_source_pipeline(
    db: Session,
    fetcher: BaseSourceFetcher,
    max_pages: int | None = None,
    only_with_contacts: bool | None = None,
    geo_index: GeoIndex | None = None,
    category_index: CategoryIndex | None = None,
    triggered_by: str = "cron",
) -> dict:
    """Fetch every listed vacancy, import the active ones and reconcile the rest.

    Detail outcomes decide lifecycle input: 404 -> removed (absent from both
    sets), status != 2 -> filled, otherwise active. A transient detail
    failure keeps the id in the active set since the list still reports it.
    """
    source = fetcher.source_name
    settings = fetcher.settings
    max_pages = max_pages or settings.default_max_pages
    if only_with_contacts is None:
        only_with_contacts = settings.only_with_contacts

    geo_index = geo_index or load_geo_index(db, source)
    category_index = category_index or load_category_index(db)
    configs = fetcher.fetch_system_configs() if hasattr(fetcher, "fetch_system_configs") else None

    report = ScrapeReport()
    source_ids = collect_source_ids(fetcher, max_pages, report)
    if not source_ids:
        # An empty snapshot would mark every stored row removed
        if report.list_errors:
            logger.error(f"[{source}] Listing failed, skipping import and sync: {report.list_errors[0]}")
        else:
            logger.warning(f"[{source}] Listing returned no vacancies, skipping import and sync")
        return {"scrape": asdict(report), "import": None, "sync": None}

    active_ids: list[str] = []
    filled_ids: list[str] = []
    drafts: list[JobDraft] = []

    for index, source_id in enumerate(source_ids):
        if index:
            fetcher.pause(settings.detail_delay_seconds)
        result = fetcher.fetch_detail(source_id)

        if isinstance(result, FetchNotFound):
            report.not_found += 1
            continue
        if isinstance(result, FetchError):
            report.fetch_errors += 1
            active_ids.append(source_id)
            logger.warning(f"[{source}] Detail {source_id} failed: {result}")
            continue

        report.details_ok += 1
        detail = result.data
        if _status(detail) != ACTIVE_STATUS:
            report.filled += 1
            filled_ids.append(source_id)
            continue

        active_ids.append(source_id)
        try:
            draft = transform(
                detail,
                geo_index,
                category_index,
                configs=configs,
                source=source,
                site_url=settings.osonish_site_url,
            )
        except Exception as e:
            report.transform_errors += 1
            logger.warning(f"[{source}] Could not transform {source_id}: {e!r}")
            continue

        if not draft.has_contact and hasattr(fetcher, "fetch_company_contacts"):
            company = detail.get("company")
            company_id = company.get("id") if isinstance(company, dict) else None
            if company_id is not None:
                report.company_lookups += 1
                apply_company_contacts(draft, fetcher.fetch_company_contacts(company_id))

        if only_with_contacts and not draft.has_contact:
            report.skipped_no_contact += 1
            continue
        drafts.append(draft)

    logger.info(
        f"[{source}] Scraped {report.listed} ids: {report.details_ok} ok, {report.filled} filled, "
        f"{report.not_found} gone, {report.fetch_errors} errors, {len(drafts)} to import"
    )

    outcome = import_batch(
        db, source, drafts,
        triggered_by=triggered_by,
        notes=f"pages={report.pages} geo_tables={GEO_TABLES_VERSION}",
    )
    summary = {
        "scrape": asdict(report),
        "import": {
            "log_id": str(outcome.log_id),
            "status": outcome.status,
            **asdict(outcome.stats),
        },
        "sync": None,
    }

    # Unlisted ids only count as removed when every page was read
    if not report.complete:
        logger.warning(f"[{source}] Listing incomplete after {report.pages} pages, skipping sync")
        return summary

    sync = reconcile(db, source, active_ids, filled_ids, triggered_by=triggered_by)
    summary["sync"] = {"log_id": str(sync.log_id), **sync.counters()}
    return summary

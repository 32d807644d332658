"""Base source fetcher: typed fetch results, retry with backoff, base URL probing."""

import logging
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Union

import httpx

from ishimport.config import Settings, get_settings

logger = logging.getLogger(__name__)

ERROR_BODY_LIMIT = 300
RETRYABLE_STATUSES = frozenset({429, 500, 502, 503, 504})


@dataclass
class FetchOk:
    data: Any
    url: str
    status: int = 200


@dataclass
class FetchNotFound:
    url: str
    status: int = 404


@dataclass
class FetchError:
    url: str
    status: int | None
    message: str
    body: str = ""

    def __str__(self) -> str:
        status = self.status if self.status is not None else "network"
        return f"{status} {self.message} ({self.url})"


FetchResult = Union[FetchOk, FetchNotFound, FetchError]


@dataclass
class ListPage:
    items: list[dict] = field(default_factory=list)
    has_more: bool = False
    total: int | None = None
    page: int = 1
    error: FetchError | None = None


class BaseSourceFetcher(ABC):
    """Abstract base class for source site API clients.

    Subclasses must implement:
        base_urls               -- ordered candidate API roots
        fetch_list(page)        -> ListPage
        fetch_detail(source_id) -> FetchOk | FetchNotFound | FetchError

    Nothing here raises on HTTP or transport failures; every request ends
    in one of the three typed results so callers can skip a single record
    and keep going.
    """

    source_name: str = ""

    def __init__(
        self,
        settings: Settings | None = None,
        client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self.client = client or httpx.Client(
            timeout=self.settings.request_timeout,
            follow_redirects=True,
        )
        self.client.headers.update(self.default_headers())
        self._sleep = sleep
        self._preferred_base: str | None = None

    @property
    @abstractmethod
    def base_urls(self) -> list[str]:
        ...

    @abstractmethod
    def fetch_list(self, page: int) -> ListPage:
        ...

    @abstractmethod
    def fetch_detail(self, source_id: str) -> FetchResult:
        ...

    def default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def close(self) -> None:
        if self._owns_client:
            self.client.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()

    def pause(self, seconds: float) -> None:
        if seconds > 0:
            self._sleep(seconds)

    def _candidates(self) -> list[str]:
        bases = list(self.base_urls)
        if self._preferred_base in bases:
            bases.remove(self._preferred_base)
            bases.insert(0, self._preferred_base)
        return bases

    def get_json(self, path: str, params: dict | None = None) -> FetchResult:
        """GET ``path`` against each candidate base URL in turn.

        The first result that is not a 404 wins. A 404 from every candidate
        is a definitive not-found.
        """
        not_found: FetchNotFound | None = None
        for base in self._candidates():
            result = self.request_json(f"{base}{path}", params)
            if isinstance(result, FetchNotFound):
                not_found = result
                continue
            if isinstance(result, FetchOk) and base != self._preferred_base:
                logger.debug(f"[{self.source_name}] Using API base {base}")
                self._preferred_base = base
            return result
        if not_found is None:
            return FetchError(url=path, status=None, message="No API base URL configured")
        return not_found

    def request_json(self, url: str, params: dict | None = None) -> FetchResult:
        """Single URL with retries on 429, 5xx and transport errors (linear backoff)."""
        attempts = max(1, self.settings.max_retries)
        last_error: FetchError | None = None

        for attempt in range(1, attempts + 1):
            try:
                response = self.client.get(url, params=params)
            except httpx.HTTPError as e:
                last_error = FetchError(url=url, status=None, message=f"{type(e).__name__}: {e}")
                logger.warning(f"[{self.source_name}] Request failed (attempt {attempt}/{attempts}): {last_error}")
                if attempt < attempts:
                    self.pause(self.settings.retry_backoff_seconds * attempt)
                continue

            if response.status_code == 404:
                return FetchNotFound(url=url)

            if response.status_code in RETRYABLE_STATUSES:
                last_error = FetchError(
                    url=url,
                    status=response.status_code,
                    message=response.reason_phrase or "Retryable status",
                    body=response.text[:ERROR_BODY_LIMIT],
                )
                if attempt < attempts:
                    wait = self.settings.retry_backoff_seconds * attempt
                    logger.info(f"[{self.source_name}] HTTP {response.status_code} from {url}, retrying in {wait:.1f}s")
                    self.pause(wait)
                continue

            if not response.is_success:
                return FetchError(
                    url=url,
                    status=response.status_code,
                    message=response.reason_phrase or "Unexpected status",
                    body=response.text[:ERROR_BODY_LIMIT],
                )

            try:
                return FetchOk(data=response.json(), url=url, status=response.status_code)
            except ValueError:
                return FetchError(
                    url=url,
                    status=response.status_code,
                    message="Malformed JSON",
                    body=response.text[:ERROR_BODY_LIMIT],
                )

        return last_error

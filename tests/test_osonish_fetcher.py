"""OsonIsh fetcher against a mocked HTTP transport."""

import httpx
import pytest

from ishimport.config import Settings
from ishimport.scrapers.base import FetchError, FetchNotFound, FetchOk
from ishimport.scrapers.osonish import OsonishFetcher, parse_system_configs

BASES = ["https://a.test/api/v1", "https://b.test/api/api/v1"]


def make_fetcher(handler, cache=None, **settings_overrides):
    settings = Settings(
        _env_file=None,
        osonish_api_bases=BASES,
        max_retries=3,
        retry_backoff_seconds=1.0,
        **settings_overrides,
    )
    sleeps: list[float] = []
    fetcher = OsonishFetcher(
        settings=settings,
        client=httpx.Client(transport=httpx.MockTransport(handler)),
        sleep=sleeps.append,
        cache=cache,
    )
    return fetcher, sleeps


def list_payload(ids, last_page=1):
    return {"data": {"data": [{"id": i, "status": 2} for i in ids], "total": len(ids), "last_page": last_page}}


class DictCache:
    def __init__(self):
        self.store = {}

    def get(self, key):
        return self.store.get(key)

    def set(self, key, value, ttl=None):
        self.store[key] = value


def test_fetch_list_falls_back_to_second_base():
    seen = []

    def handler(request):
        seen.append(request.url.host)
        if request.url.host == "a.test":
            return httpx.Response(404)
        return httpx.Response(200, json=list_payload([1, 2, 3], last_page=2))

    fetcher, _ = make_fetcher(handler)
    page = fetcher.fetch_list(1)

    assert [item["id"] for item in page.items] == [1, 2, 3]
    assert page.has_more is True
    assert page.error is None

    seen.clear()
    fetcher.fetch_list(2)
    assert seen == ["b.test"]


def test_fetch_list_sends_source_filters():
    captured = {}

    def handler(request):
        captured.update(request.url.params)
        return httpx.Response(200, json=list_payload([]))

    fetcher, _ = make_fetcher(handler)
    page = fetcher.fetch_list(3)
    assert captured["page"] == "3"
    assert captured["status"] == "2"
    assert captured["is_offer"] == "0"
    assert page.items == []
    assert page.has_more is False


def test_retries_429_with_linear_backoff():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        if calls["n"] < 3:
            return httpx.Response(429, text="slow down")
        return httpx.Response(200, json={"data": {"id": 7, "status": 2}})

    fetcher, sleeps = make_fetcher(handler)
    result = fetcher.fetch_detail("7")

    assert isinstance(result, FetchOk)
    assert result.data["id"] == 7
    assert sleeps == [1.0, 2.0]


def test_gives_up_after_retry_ceiling():
    def handler(request):
        return httpx.Response(503, text="x" * 1000)

    fetcher, sleeps = make_fetcher(handler)
    result = fetcher.fetch_detail("7")

    assert isinstance(result, FetchError)
    assert result.status == 503
    assert len(result.body) == 300
    assert sleeps == [1.0, 2.0]


def test_other_status_is_not_retried():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(403, text="forbidden")

    fetcher, sleeps = make_fetcher(handler)
    result = fetcher.fetch_detail("7")

    assert isinstance(result, FetchError)
    assert result.status == 403
    assert result.body == "forbidden"
    assert calls["n"] == 1
    assert sleeps == []


def test_404_on_every_base_is_not_found():
    hosts = []

    def handler(request):
        hosts.append(request.url.host)
        return httpx.Response(404)

    fetcher, _ = make_fetcher(handler)
    assert isinstance(fetcher.fetch_detail("999"), FetchNotFound)
    assert hosts == ["a.test", "b.test"]


def test_malformed_json_is_an_error():
    def handler(request):
        return httpx.Response(200, text="<html>maintenance</html>")

    fetcher, _ = make_fetcher(handler)
    result = fetcher.fetch_detail("7")
    assert isinstance(result, FetchError)
    assert result.message == "Malformed JSON"


def test_transport_errors_are_retried_then_reported():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    fetcher, sleeps = make_fetcher(handler)
    result = fetcher.fetch_detail("7")
    assert isinstance(result, FetchError)
    assert result.status is None
    assert sleeps == [1.0, 2.0]


def test_company_contacts_fallback_chain_and_cache():
    calls = {"n": 0}

    def handler(request):
        calls["n"] += 1
        return httpx.Response(200, json={"data": {
            "phone": None,
            "data": {},
            "hrs": [{"phone": "+998 90 111 22 33"}],
            "mail": " hr@baraka.uz ",
            "web_site": "https://baraka.uz",
        }})

    cache = DictCache()
    fetcher, _ = make_fetcher(handler, cache=cache)

    contacts = fetcher.fetch_company_contacts(77)
    assert contacts.phone == "+998901112233"
    assert contacts.email == "hr@baraka.uz"
    assert contacts.website == "https://baraka.uz"

    again = fetcher.fetch_company_contacts(77)
    assert again == contacts
    assert calls["n"] == 1
    assert "osonish:company:77" in cache.store


def test_company_lookup_failure_is_not_cached():
    def handler(request):
        return httpx.Response(500)

    cache = DictCache()
    fetcher, _ = make_fetcher(handler, cache=cache)
    assert fetcher.fetch_company_contacts(77) is None
    assert cache.store == {}


def test_auth_headers_from_settings():
    captured = {}

    def handler(request):
        captured["authorization"] = request.headers.get("Authorization")
        captured["x-current-user-id"] = request.headers.get("x-current-user-id")
        return httpx.Response(200, json=list_payload([]))

    fetcher, _ = make_fetcher(handler, osonish_bearer_token="abc", osonish_user_id="42")
    fetcher.fetch_list(1)
    assert captured["authorization"] == "Bearer abc"
    assert captured["x-current-user-id"] == "42"


@pytest.mark.parametrize("payload", [
    {"data": [
        {"code": "work_experience_list", "value": {"uz": [{"id": 1, "name": "Tajriba talab etilmaydi"}]}},
        {"code": "work_type_list", "value": {"uz": [{"id": 2, "name": "Masofaviy"}]}},
        {"code": "unknown_list", "value": {"uz": [{"id": 9, "name": "x"}]}},
    ]},
])
def test_parse_system_configs(payload):
    configs = parse_system_configs(payload)
    assert configs.experience == {1: "Tajriba talab etilmaydi"}
    assert configs.work_mode == {2: "Masofaviy"}
    assert configs.education == {}

"""HTTP surface of the import triggers."""

import uuid

from fastapi.testclient import TestClient

from ishimport.config import get_settings
from ishimport.models.job import Job
from conftest import IMPORT_KEY

HEADERS = {"X-Import-Key": IMPORT_KEY}


def add_job(db, source_id, status="active"):
    db.add(Job(
        id=uuid.uuid4(), source="osonish", source_id=source_id, title_uz=f"Vakansiya {source_id}",
        is_imported=True, source_status=status, is_active=status == "active",
    ))
    db.commit()


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_sync_requires_key(client):
    body = {"source": "osonish", "active_source_ids": []}
    assert client.post("/api/v1/import/sync", json=body).status_code == 401
    assert client.post("/api/v1/import/sync", json=body, headers={"X-Import-Key": "wrong"}).status_code == 401


def test_sync_rejected_when_no_key_configured(client, monkeypatch):
    monkeypatch.setattr(get_settings(), "import_api_key", None)
    body = {"source": "osonish", "active_source_ids": []}
    assert client.post("/api/v1/import/sync", json=body, headers=HEADERS).status_code == 401


def test_sync_malformed_body_is_400(client):
    response = client.post("/api/v1/import/sync", json={"source": "osonish"}, headers=HEADERS)
    assert response.status_code == 400
    data = response.json()
    assert data["error"]
    assert data["details"][0]["loc"][-1] == "active_source_ids"


def test_sync_reports_stats(client, seeded_db):
    add_job(seeded_db, "1")
    add_job(seeded_db, "2", "removed_at_source")
    add_job(seeded_db, "3")

    response = client.post(
        "/api/v1/import/sync",
        json={"source": "osonish", "active_source_ids": ["1", 2], "filled_source_ids": []},
        headers=HEADERS,
    )

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["stats"]["still_active"] == 1
    assert data["stats"]["reactivated"] == 1
    assert data["stats"]["removed_at_source"] == 1


def test_unexpected_failure_is_500(client, monkeypatch):
    import ishimport.api.v1.imports as imports_api

    def boom(*args, **kwargs):
        raise RuntimeError("store unavailable")

    monkeypatch.setattr(imports_api, "reconcile", boom)
    failing = TestClient(client.app, raise_server_exceptions=False)
    response = failing.post(
        "/api/v1/import/sync",
        json={"source": "osonish", "active_source_ids": []},
        headers=HEADERS,
    )
    assert response.status_code == 500
    assert response.json()["details"] == "store unavailable"


def test_import_jobs_and_logs(client):
    body = {
        "source": "hh",
        "vacancies": [
            {"source_id": "a1", "title": "Oshpaz", "company_name": "Rayhon", "source_url": "https://hh.uz/a1",
             "region_name": "Toshkent shahri", "district_name": "Chilonzor tumani", "contact_phone": "+998901112233"},
            {"source_id": "a1", "title": "Oshpaz", "company_name": "Rayhon", "source_url": "https://hh.uz/a1"},
            {"source_id": "a2", "title": "", "company_name": "Rayhon", "source_url": "https://hh.uz/a2"},
        ],
    }
    response = client.post("/api/v1/import/jobs", json=body, headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed_with_errors"
    assert data["stats"]["new_imported"] == 1
    assert data["stats"]["duplicates"] == 1
    assert data["stats"]["validation_errors"] == 1
    assert data["errors"][0]["source_id"] == "a2"

    logs = client.get("/api/v1/import/logs", params={"source": "hh"}, headers=HEADERS).json()
    assert len(logs["logs"]) == 1
    assert logs["logs"][0]["operation_type"] == "import"
    assert logs["stats_by_source"] == [
        {"source": "hh", "total": 1, "active": 1, "filled": 0, "removed_at_source": 0},
    ]


def test_import_jobs_resolves_location(client, seeded_db):
    body = {
        "source": "hh",
        "vacancies": [{"source_id": "b1", "title": "Haydovchi", "company_name": "Yo'l",
                       "source_url": "https://hh.uz/b1", "district_name": "Asaka tumani"}],
    }
    assert client.post("/api/v1/import/jobs", json=body, headers=HEADERS).status_code == 200
    seeded_db.expire_all()
    job = seeded_db.query(Job).filter(Job.source_id == "b1").one()
    assert job.district_id == 302
    assert job.region_id == 3


def test_unknown_scraper_source_is_404(client):
    response = client.post("/api/v1/scraper/nowhere", json={}, headers=HEADERS)
    assert response.status_code == 404


def test_bad_key_wins_over_unreadable_body(client):
    response = client.post(
        "/api/v1/import/sync",
        content=b"{not json",
        headers={"X-Import-Key": "wrong", "Content-Type": "application/json"},
    )
    assert response.status_code == 401


def test_unreadable_body_with_good_key_is_400(client):
    response = client.post(
        "/api/v1/import/sync",
        content=b"{not json",
        headers={**HEADERS, "Content-Type": "application/json"},
    )
    assert response.status_code == 400
    assert response.json()["error"]


def test_one_bad_vacancy_does_not_reject_the_batch(client, seeded_db):
    body = {
        "source": "hh",
        "vacancies": [
            {"source_id": "c1", "title": "Oshpaz", "company_name": "Rayhon", "source_url": "https://hh.uz/c1",
             "category_id": "not-a-uuid", "region_id": "unknown"},
            {"source_id": "c2", "title": "Sotuvchi", "company_name": "Rayhon", "source_url": "https://hh.uz/c2",
             "salary_min": "kelishiladi"},
        ],
    }
    response = client.post("/api/v1/import/jobs", json=body, headers=HEADERS)

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed_with_errors"
    assert data["stats"]["new_imported"] == 1
    assert data["stats"]["validation_errors"] == 1
    assert data["errors"] == [{"source_id": "c2", "operation": "validate", "error": "Invalid salary_min"}]
    seeded_db.expire_all()
    job = seeded_db.query(Job).filter(Job.source_id == "c1").one()
    assert job.region_id is None


def test_scraper_run_accepts_an_empty_body(client, monkeypatch):
    import ishimport.api.v1.scraper as scraper_api

    captured = {}

    def fake_pipeline(db, fetcher, max_pages=None, only_with_contacts=None, triggered_by="cron"):
        captured.update(max_pages=max_pages, only_with_contacts=only_with_contacts, triggered_by=triggered_by)
        return {"scrape": {}, "import": None, "sync": None}

    monkeypatch.setattr(scraper_api, "run_source_pipeline", fake_pipeline)
    response = client.post("/api/v1/scraper/osonish", headers=HEADERS)

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert captured == {"max_pages": None, "only_with_contacts": None, "triggered_by": "manual"}

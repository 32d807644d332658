"""Shared fixtures: in-memory SQLite store, seeded reference data, API client."""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("IMPORT_API_KEY", "test-import-key")
os.environ.setdefault("REDIS_URL", "redis://localhost:6379/15")

import uuid

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ishimport.models.base import Base
from ishimport.models.category import Category
from ishimport.models.geo import District, GeoSourceRef, Region  # noqa: F401
from ishimport.models.import_log import ImportLog  # noqa: F401
from ishimport.models.job import Job  # noqa: F401
from ishimport.services.category_normalizer import load_category_index
from ishimport.services.geo_normalizer import load_geo_index

IMPORT_KEY = os.environ["IMPORT_API_KEY"]

REGIONS = [
    (1, "Toshkent shahri", "город Ташкент", "toshkent-shahri"),
    (2, "Toshkent viloyati", "Ташкентская область", "toshkent-viloyati"),
    (3, "Andijon viloyati", "Андижанская область", "andijon"),
    (8, "Namangan viloyati", "Наманганская область", "namangan"),
    (11, "Qoraqalpog'iston Respublikasi", "Республика Каракалпакстан", "qoraqalpogiston"),
]
DISTRICTS = [
    (101, 1, "Chilonzor tumani", "Чиланзарский район"),
    (102, 1, "Yunusobod tumani", "Юнусабадский район"),
    (203, 2, "Yangiyo'l tumani", "Янгиюльский район"),
    (301, 3, "Andijon shahri", "город Андижан"),
    (302, 3, "Asaka tumani", "Асакинский район"),
    (801, 8, "Namangan shahri", "город Наманган"),
    (1101, 11, "Nukus shahri", "город Нукус"),
]
CATEGORY_IDS = {
    "IT": uuid.UUID("a0000001-0001-4000-8000-000000000001"),
    "EDUCATION": uuid.UUID("a0000004-0004-4000-8000-000000000004"),
    "HEALTHCARE": uuid.UUID("a0000005-0005-4000-8000-000000000005"),
    "AGRICULTURE": uuid.UUID("a0000008-0008-4000-8000-000000000008"),
    "TRANSPORT": uuid.UUID("a0000009-0009-4000-8000-000000000009"),
    "SALES": uuid.UUID("a0000010-0010-4000-8000-000000000010"),
    "SERVICES": uuid.UUID("a0000003-0003-4000-8000-000000000003"),
}


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    session = sessionmaker(bind=engine, autocommit=False, autoflush=False)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def seeded_db(db):
    for region_id, name_uz, name_ru, slug in REGIONS:
        db.add(Region(id=region_id, name_uz=name_uz, name_ru=name_ru, slug=slug))
    db.flush()
    for district_id, region_id, name_uz, name_ru in DISTRICTS:
        db.add(District(id=district_id, region_id=region_id, name_uz=name_uz, name_ru=name_ru))
    for order, (key, category_id) in enumerate(CATEGORY_IDS.items()):
        db.add(Category(id=category_id, key=key, name_uz=key.title(), sort_order=order))
    db.commit()
    return db


@pytest.fixture
def geo_index(seeded_db):
    return load_geo_index(seeded_db, "osonish")


@pytest.fixture
def category_index(seeded_db):
    return load_category_index(seeded_db)


@pytest.fixture
def client(engine, seeded_db):
    from fastapi.testclient import TestClient

    from ishimport.main import app
    from ishimport.models.base import get_db

    testing_session = sessionmaker(bind=engine, autocommit=False, autoflush=False)

    def override_get_db():
        session = testing_session()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


def osonish_detail(source_id=140, **overrides) -> dict:
    """A realistic OsonIsh vacancy detail record."""
    detail = {
        "id": source_id,
        "status": 2,
        "title": "Sotuvchi",
        "company": {"id": 77, "name": "Baraka Savdo MChJ"},
        "hr": {"fio": "Aliyev Vali", "phone": "998901234567"},
        "filial": {
            "region": {"id": 1703, "name_uz": "Andijon viloyati"},
            "city": {"id": 1703202, "name_uz": "Asaka tumani"},
            "address": "Asaka sh., Navoiy ko'chasi 12",
            "lat": "40.6415",
            "long": "72.2387",
        },
        "min_salary": 3000000,
        "max_salary": 4500000.6,
        "busyness_type": 1,
        "work_type": 1,
        "work_experiance": 2,
        "min_education": 2,
        "gender": 3,
        "for_whos": [3],
        "count": 2,
        "views_count": 15,
        "info": "<p>Talablar: - muloyim muomala; - kassa bilan ishlash</p><p>Ovqat bilan ta'minlanadi</p>",
        "mmk_group": {"cat1": "Xizmatchilar", "cat2": "SOTUVCHILAR", "cat3": "Do'kon sotuvchilari"},
        "created_at": "2024-05-01T08:00:00Z",
    }
    detail.update(overrides)
    return detail

"""Seed canonical regions, districts and categories.

Reads ``ishimport/data/reference_data.json`` and upserts every row by id, so
the script is safe to re-run after the file changes.

Usage:
    docker compose exec backend python -m scripts.seed_reference_data
"""

import json
import logging
import uuid
from pathlib import Path

import ishimport
from ishimport.models.base import Base, SyncSessionLocal, engine
from ishimport.models.category import Category
from ishimport.models.geo import District, Region

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)

DATA_PATH = Path(list(ishimport.__path__)[0]) / "data" / "reference_data.json"


def _upsert(db, model, row: dict) -> bool:
    """Insert or update one row by primary key. Returns True when inserted."""
    existing = db.get(model, row["id"])
    if existing:
        for key, value in row.items():
            setattr(existing, key, value)
        return False
    db.add(model(**row))
    return True


def seed(path: Path = DATA_PATH) -> dict:
    with open(path, encoding="utf-8") as f:
        data = json.load(f)

    Base.metadata.create_all(bind=engine)
    db = SyncSessionLocal()
    try:
        counts = {}
        for name, model in (("regions", Region), ("districts", District), ("categories", Category)):
            created = 0
            for row in data.get(name, []):
                if model is Category:
                    row = {**row, "id": uuid.UUID(row["id"])}
                if _upsert(db, model, row):
                    created += 1
            db.flush()
            counts[name] = {"total": len(data.get(name, [])), "created": created}
            logger.info(f"Seeded {name}: {counts[name]}")
        db.commit()
        return counts
    finally:
        db.close()


if __name__ == "__main__":
    result = seed()
    print(f"\nDone: {result}")

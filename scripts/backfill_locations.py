#!/usr/bin/env python3
"""Backfill region/district ids for imported jobs that have none.

Re-resolves locations from the stored source payload using the current geo
tables and the source id map. Run after changing geo fixes/aliases or after
a reference sync.

Usage:
    docker compose exec celery_worker python -m scripts.backfill_locations --source osonish
"""

import argparse
import logging

from ishimport.models.base import SyncSessionLocal
from ishimport.models.category import Category  # noqa: F401
from ishimport.services.maintenance import backfill_locations, reclassify_categories

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Backfill job locations and categories")
    parser.add_argument("--source", default="osonish")
    parser.add_argument("--categories", action="store_true", help="Also resolve missing categories")
    parser.add_argument("--all-categories", action="store_true", help="Re-resolve every category, not only missing")
    args = parser.parse_args()

    db = SyncSessionLocal()
    try:
        print(f"\n=== Backfilling locations for {args.source} ===")
        print(backfill_locations(db, args.source))

        if args.categories or args.all_categories:
            print("\n=== Reclassifying categories ===")
            print(reclassify_categories(db, source=args.source, only_missing=not args.all_categories))
    finally:
        db.close()


if __name__ == "__main__":
    main()

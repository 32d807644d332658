"""Report source region/city names that did not resolve to a canonical id.

Groups imported jobs with a missing region or district by the raw names in
their stored payload, most frequent first. Use the output to extend the geo
fix/alias tables.

Usage:
    docker compose exec backend python -m scripts.discovery.report_unmapped
    docker compose exec backend python -m scripts.discovery.report_unmapped --output /app/data/unmapped.csv
"""

import argparse
import csv
import io
import logging
from collections import Counter

from ishimport.models.base import SyncSessionLocal
from ishimport.models.job import Job
from ishimport.services.geo_normalizer import normalize_geo_name

logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
logger = logging.getLogger(__name__)


def report(source: str = "osonish", output_path: str | None = None):
    db = SyncSessionLocal()
    try:
        jobs = db.query(Job).filter(
            Job.source == source,
            (Job.region_id.is_(None)) | (Job.district_id.is_(None)),
        ).all()

        total = db.query(Job).filter(Job.source == source).count()
        print(f"\n=== Geo Mapping Status ({source}) ===")
        print(f"Total imported jobs: {total}")
        print(f"Missing region or district: {len(jobs)}")

        counts: Counter = Counter()
        for job in jobs:
            filial = (job.raw_source_json or {}).get("filial") or {}
            region = (filial.get("region") or {}).get("name_uz") or job.region_name or ""
            city = (filial.get("city") or {}).get("name_uz") or job.district_name or ""
            kind = "region" if job.region_id is None else "district"
            counts[(kind, region, city)] += 1

        if output_path:
            f = open(output_path, "w", newline="")
        else:
            f = io.StringIO()

        writer = csv.writer(f)
        writer.writerow(["missing", "region_name", "city_name", "normalized_region", "normalized_city", "jobs"])
        for (kind, region, city), count in counts.most_common():
            writer.writerow([kind, region, city, normalize_geo_name(region), normalize_geo_name(city), count])

        if output_path:
            f.close()
            print(f"CSV written to {output_path}")
        else:
            print(f.getvalue())
    finally:
        db.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Report unmapped source geo names")
    parser.add_argument("--source", default="osonish")
    parser.add_argument("--output", help="CSV output path (default: stdout)")
    args = parser.parse_args()
    report(args.source, args.output)

"""
Report station documents that discovery collapses into one result.

Runs the same aggregate -> normalize -> fingerprint pipeline the API uses and
lists every fingerprint shared by more than one document, plus documents
dropped for lack of usable coordinates. Read-only: nothing is deleted.

Usage:
  PYTHONPATH=. python3 scripts/find_fix_duplicate_stations.py           # text report
  PYTHONPATH=. python3 scripts/find_fix_duplicate_stations.py --json    # JSON report

Uses DATABASE_URL and the DISCOVERY_* collections from `app.core.config.settings`.
"""

import argparse
import asyncio
import json
from collections import defaultdict

from app.core.config import settings
from app.db.database import AsyncSessionLocal, engine
from app.repository.document_store import DocumentStore
from app.services.aggregator import SourceAggregator
from app.services.dedupe import fingerprint
from app.services.normalizer import to_station_record
from app.services.sources import build_sources


async def build_report():
    aggregator = SourceAggregator(
        DocumentStore(AsyncSessionLocal),
        page_size=settings.DISCOVERY_PAGE_SIZE,
        timeout=settings.DISCOVERY_SOURCE_TIMEOUT_SECONDS,
    )
    sources = build_sources(settings.DISCOVERY_FLAT_COLLECTIONS, settings.DISCOVERY_NESTED_COLLECTIONS)
    result = await aggregator.aggregate(sources)

    groups = defaultdict(list)
    no_coordinates = []
    for raw in result.records:
        record = to_station_record(raw)
        if record is None:
            no_coordinates.append(raw.key)
            continue
        groups[fingerprint(record)].append({"id": record.id, "sourceTag": record.source_tag, "name": record.name})

    duplicates = {fp: ids for fp, ids in groups.items() if len(ids) > 1}
    return {
        "documents": len(result.records),
        "failedSources": [f.source.label for f in result.failures],
        "noCoordinates": no_coordinates,
        "duplicateGroups": duplicates,
    }


async def main():
    p = argparse.ArgumentParser()
    p.add_argument('--json', action='store_true', help='Print the report as JSON')
    args = p.parse_args()

    try:
        report = await build_report()
    finally:
        await engine.dispose()

    if args.json:
        print(json.dumps(report, ensure_ascii=False, indent=2))
        return

    print(f"Scanned {report['documents']} documents")
    for label in report["failedSources"]:
        print(f"  source failed: {label}")
    print(f"{len(report['noCoordinates'])} documents without usable coordinates")
    for key in report["noCoordinates"]:
        print("  ", key)
    print(f"{len(report['duplicateGroups'])} fingerprints shared by more than one document")
    for fp, items in report["duplicateGroups"].items():
        print(f"  {fp}")
        for item in items:
            print(f"     {item['id']} ({item['sourceTag']}) {item['name']}")


if __name__ == '__main__':
    asyncio.run(main())

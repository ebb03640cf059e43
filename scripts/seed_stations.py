"""Seed station documents from a JSON file into the document store.

Input format (either key may be omitted):

  {
    "flat": {"ev_bunks": [{"id": "s1", "name": "...", "location": {...}}]},
    "nested": {"ownerA": {"stations": [{"id": "s1", ...}]}}
  }

Each document needs an "id" (or "docId"); the rest is stored as-is.

Run:
  export DATABASE_URL=postgresql+asyncpg://...
  PYTHONPATH=. python scripts/seed_stations.py data/stations.json [--create-tables]
"""
import argparse
import asyncio
import json
import logging

from app.db.database import AsyncSessionLocal, engine, init_db
from app.repository.document_store import DocumentStore, StoredDocument

logger = logging.getLogger("seed_stations")


def iter_documents(payload: dict):
    for collection, docs in (payload.get("flat") or {}).items():
        for doc in docs:
            yield collection, None, doc
    for owner_id, groups in (payload.get("nested") or {}).items():
        for collection, docs in groups.items():
            for doc in docs:
                yield collection, owner_id, doc


async def seed(path: str, create_tables: bool = False) -> int:
    with open(path, encoding="utf-8") as f:
        payload = json.load(f)

    if create_tables:
        await init_db()

    store = DocumentStore(AsyncSessionLocal)
    written = 0
    skipped = 0
    for collection, owner_id, doc in iter_documents(payload):
        doc = dict(doc)
        doc_id = doc.pop("id", None) or doc.pop("docId", None)
        if not doc_id:
            skipped += 1
            logger.warning(f"Skipping document without id in {collection} (owner={owner_id})")
            continue
        await store.upsert(StoredDocument(collection=collection, doc_id=str(doc_id), data=doc, owner_id=owner_id))
        written += 1

    logger.info(f"Seeded {written} documents, skipped {skipped}")
    return written


async def main():
    p = argparse.ArgumentParser(description="Seed station documents from JSON")
    p.add_argument("path", help="JSON file with flat/nested station documents")
    p.add_argument("--create-tables", action="store_true", help="Create missing tables before seeding")
    args = p.parse_args()
    try:
        await seed(args.path, create_tables=args.create_tables)
    finally:
        await engine.dispose()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    asyncio.run(main())

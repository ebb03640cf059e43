"""
Pytest configuration and fixtures for the discovery service tests.

The document store is replaced by an in-memory fake so that aggregation,
normalization and ranking can be exercised without a database.
"""
import asyncio
import pathlib
import sys

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from app.core.config import Settings
from app.repository.document_store import StoredDocument


class FakeDocumentStore:
    """
    In-memory stand-in for DocumentStore.

    `failing` holds (collection, grouped) pairs whose reads raise; `delays`
    maps the same pairs to a sleep in seconds before answering.
    """

    def __init__(self, docs=None, failing=(), delays=None):
        self.docs = list(docs or [])
        self.failing = set(failing)
        self.delays = dict(delays or {})
        self.calls = []

    async def _before_read(self, collection, grouped):
        delay = self.delays.get((collection, grouped))
        if delay:
            await asyncio.sleep(delay)
        if (collection, grouped) in self.failing:
            raise RuntimeError(f"collection {collection} unavailable")

    def _select(self, collection, grouped):
        return [
            d for d in self.docs
            if d.collection == collection and (d.owner_id is not None) == grouped
        ]

    async def scan(self, collection, limit, grouped=False):
        self.calls.append(("scan", collection, grouped))
        await self._before_read(collection, grouped)
        return self._select(collection, grouped)[:limit]

    async def get_by_id(self, collection, doc_id, owner_id=None):
        self.calls.append(("get", collection, doc_id, owner_id))
        for d in self.docs:
            if d.collection == collection and d.doc_id == doc_id and d.owner_id == owner_id:
                return d
        return None


def flat(collection, doc_id, **data):
    return StoredDocument(collection=collection, doc_id=doc_id, data=data)


def nested(owner_id, collection, doc_id, **data):
    return StoredDocument(collection=collection, doc_id=doc_id, data=data, owner_id=owner_id)


def sample_documents():
    return [
        flat("ev_bunks", "s1", name="Central EV", status="active",
             location={"latitude": 19.0760, "longitude": 72.8777}, city="Mumbai"),
        flat("ev_bunks", "s2", name="Bandra Charge Hub", status="active",
             location={"lat": 19.0544, "lng": 72.8347}, city="Mumbai", area="Bandra"),
        flat("ev_bunks", "s3", name="Pune Station Fast", status="active",
             latlng="18.5204,73.8567", city="Pune"),
        flat("ev_bunks", "far", name="Delhi Supercharger", status="inactive",
             latitude=28.6139, longitude=77.209, city="Delhi"),
        flat("ev_bunks", "bad1", name="Broken Pin", status="active", location={"lat": "n/a"}),
        nested("ownerA", "stations", "s1", name="Central EV", status="active",
               lat="19.0760", lng="72.8777"),
        nested("ownerB", "stations", "p9", name="Jalgaon EV Point", status="active",
               location={"_latitude": 21.0077, "_longitude": 75.5626},
               address="Station Road, Jalgaon"),
    ]


def make_settings(**overrides):
    values = dict(
        DISCOVERY_FLAT_COLLECTIONS=["ev_bunks"],
        DISCOVERY_NESTED_COLLECTIONS=["stations"],
        DISCOVERY_PAGE_SIZE=1000,
        DISCOVERY_SOURCE_TIMEOUT_SECONDS=0.5,
        DISCOVERY_FAIL_ON_TOTAL_OUTAGE=False,
        REVERSE_GEOCODE_ENABLED=False,
        ADMIN_API_KEY=None,
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def test_settings():
    return make_settings()


@pytest.fixture
def store():
    return FakeDocumentStore(sample_documents())


@pytest.fixture
def service(store, test_settings):
    from app.services.discovery_service import DiscoveryService
    from app.services.geocoding_service import GeocodingService

    return DiscoveryService(store, test_settings, geocoder=GeocodingService(enabled=False))

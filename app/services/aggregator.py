"""Multi-source aggregation of station documents"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Sequence, Union

from app.repository.document_store import StoredDocument
from app.services.errors import UpstreamUnavailable
from app.services.sources import FlatId, NestedId, RawRecord, SourceDescriptor, StationIdentity

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Fetched:
    source: SourceDescriptor
    documents: List[StoredDocument]


@dataclass(frozen=True)
class Failed:
    source: SourceDescriptor
    error: UpstreamUnavailable


SourceOutcome = Union[Fetched, Failed]


@dataclass
class AggregationResult:
    records: List[RawRecord] = field(default_factory=list)
    outcomes: List[SourceOutcome] = field(default_factory=list)

    @property
    def failures(self) -> List[Failed]:
        return [o for o in self.outcomes if isinstance(o, Failed)]

    @property
    def all_failed(self) -> bool:
        return bool(self.outcomes) and len(self.failures) == len(self.outcomes)


def identity_for(source: SourceDescriptor, doc: StoredDocument) -> StationIdentity:
    if source.grouped:
        # a grouped row without an owner is malformed; keep it addressable anyway
        return NestedId(owner_id=doc.owner_id or "_", subcollection=doc.collection, doc_id=doc.doc_id)
    return FlatId(collection=doc.collection, doc_id=doc.doc_id)


class SourceAggregator:
    """
    Pulls candidate documents from every configured source.

    Sources are queried concurrently, each capped at `page_size` documents and
    bounded by `timeout` seconds. A failing source is logged and treated as
    empty; the remaining sources still contribute.
    """

    def __init__(self, store, page_size: int = 1000, timeout: float = 10.0):
        self.store = store
        self.page_size = page_size
        self.timeout = timeout

    async def _query(self, source: SourceDescriptor) -> List[StoredDocument]:
        return await self.store.scan(source.collection, limit=self.page_size, grouped=source.grouped)

    async def fetch_source(self, source: SourceDescriptor) -> SourceOutcome:
        try:
            documents = await asyncio.wait_for(self._query(source), timeout=self.timeout)
        except asyncio.TimeoutError:
            return Failed(source, UpstreamUnavailable(source.label, f"timed out after {self.timeout}s"))
        except Exception as e:
            return Failed(source, UpstreamUnavailable(source.label, f"{e.__class__.__name__}: {e}"))
        return Fetched(source, list(documents or []))

    async def aggregate(self, sources: Sequence[SourceDescriptor]) -> AggregationResult:
        outcomes = await asyncio.gather(*(self.fetch_source(s) for s in sources))

        result = AggregationResult(outcomes=list(outcomes))
        seen_ids = set()
        for outcome in outcomes:
            if isinstance(outcome, Failed):
                logger.warning(f"Source {outcome.source.label} skipped: {outcome.error.reason}")
                continue
            new_docs = 0
            for doc in outcome.documents:
                identity = identity_for(outcome.source, doc)
                if identity.key in seen_ids:
                    continue
                seen_ids.add(identity.key)
                result.records.append(RawRecord(identity=identity, source=outcome.source, data=doc.data))
                new_docs += 1
            logger.info(f"{outcome.source.label}: {new_docs} new documents ({len(outcome.documents)} total)")

        if result.all_failed:
            logger.warning(f"All {len(result.outcomes)} station sources failed; returning no documents")
        logger.info(f"Aggregated {len(result.records)} documents from {len(sources)} sources")
        return result

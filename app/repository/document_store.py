"""Repository over the station document store (flat and grouped collections)"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import StationDocument

logger = logging.getLogger(__name__)


@dataclass
class StoredDocument:
    """A document as read from the store, before any normalization."""
    collection: str
    doc_id: str
    data: Dict[str, Any] = field(default_factory=dict)
    # Set only for documents of a nested sub-collection under an owner record
    owner_id: Optional[str] = None

    @property
    def path(self) -> str:
        if self.owner_id is None:
            return f"{self.collection}/{self.doc_id}"
        return f"{self.owner_id}/{self.collection}/{self.doc_id}"


class DocumentStore:
    """
    Read side of the document store.

    `grouped=False` addresses a flat top-level collection; `grouped=True`
    addresses every sub-collection with that name across all owners
    (a collection group). Each call opens its own session so that calls can
    run concurrently.
    """

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        self.session_factory = session_factory

    @staticmethod
    def _to_stored(row: StationDocument) -> StoredDocument:
        return StoredDocument(
            collection=row.collection,
            doc_id=row.doc_id,
            data=dict(row.data or {}),
            owner_id=row.owner_id,
        )

    @staticmethod
    def _scope(stmt, collection: str, grouped: bool):
        stmt = stmt.where(StationDocument.collection == collection)
        if grouped:
            return stmt.where(StationDocument.owner_id.isnot(None))
        return stmt.where(StationDocument.owner_id.is_(None))

    async def scan(self, collection: str, limit: int, grouped: bool = False) -> List[StoredDocument]:
        """Full collection scan capped at `limit` documents"""
        stmt = self._scope(select(StationDocument), collection, grouped)
        stmt = stmt.order_by(StationDocument.id).limit(limit)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            rows = result.scalars().all()
        logger.debug(f"scan {collection} grouped={grouped}: {len(rows)} documents")
        return [self._to_stored(r) for r in rows]

    async def get_by_id(
        self,
        collection: str,
        doc_id: str,
        owner_id: Optional[str] = None,
    ) -> Optional[StoredDocument]:
        """Fetch one document; owner_id selects a nested sub-collection"""
        stmt = select(StationDocument).where(
            StationDocument.collection == collection,
            StationDocument.doc_id == doc_id,
        )
        if owner_id is None:
            stmt = stmt.where(StationDocument.owner_id.is_(None))
        else:
            stmt = stmt.where(StationDocument.owner_id == owner_id)
        async with self.session_factory() as session:
            result = await session.execute(stmt)
            row = result.scalar_one_or_none()
        return self._to_stored(row) if row else None

    async def upsert(self, doc: StoredDocument) -> None:
        """Insert or replace a document. Used by seeding scripts only."""
        async with self.session_factory() as session:
            result = await session.execute(
                select(StationDocument).where(
                    StationDocument.collection == doc.collection,
                    StationDocument.doc_id == doc.doc_id,
                    (StationDocument.owner_id == doc.owner_id)
                    if doc.owner_id is not None
                    else StationDocument.owner_id.is_(None),
                )
            )
            existing = result.scalar_one_or_none()
            if existing:
                existing.data = doc.data
            else:
                session.add(StationDocument(
                    collection=doc.collection,
                    doc_id=doc.doc_id,
                    owner_id=doc.owner_id,
                    data=doc.data,
                ))
            await session.commit()

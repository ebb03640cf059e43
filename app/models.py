from __future__ import annotations
import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, DateTime, Integer, String, UniqueConstraint, Index
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, declarative_base
from sqlalchemy.sql import func

Base = declarative_base()

# JSONB on Postgres, plain JSON elsewhere (sqlite in tests)
DocumentJSON = JSON().with_variant(JSONB(), "postgresql")


# ------------------ StationDocument ------------------
class StationDocument(Base):
    """
    One station document of the collection-oriented store.

    Flat (top-level) collections leave owner_id NULL. Nested sub-collections
    stored under an owner record carry the owner's id, so the same doc_id can
    exist once per owner.
    """
    __tablename__ = "station_documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    collection: Mapped[str] = mapped_column(String(100), nullable=False)
    owner_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    doc_id: Mapped[str] = mapped_column(String(200), nullable=False)
    data: Mapped[Dict[str, Any]] = mapped_column(DocumentJSON, nullable=False, default=dict)

    created_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=func.now())
    updated_at: Mapped[datetime.datetime] = mapped_column(DateTime, default=func.now(), onupdate=func.now())

    __table_args__ = (
        UniqueConstraint("collection", "owner_id", "doc_id", name="_station_document_uc"),
        Index("ix_station_documents_collection_owner", "collection", "owner_id"),
    )

from fastapi import Header, HTTPException, status
from typing import Optional

from app.core.config import settings
from app.db.database import AsyncSessionLocal
from app.repository.document_store import DocumentStore
from app.services.discovery_service import DiscoveryService


def get_discovery_service() -> DiscoveryService:
    return DiscoveryService(DocumentStore(AsyncSessionLocal), settings)


def admin_key_required(x_admin_key: Optional[str] = Header(None)) -> bool:
    if not settings.ADMIN_API_KEY:
        # no key configured -> admin endpoints stay closed
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Admin API not configured")
    if x_admin_key != settings.ADMIN_API_KEY:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Invalid admin key")
    return True

import logging
from fastapi import APIRouter, HTTPException, status, Depends, Query
from pydantic import BaseModel
from typing import Optional

from app.api.deps import admin_key_required, get_discovery_service
from app.redis_client import delete_pattern, get_redis_client
from app.services.discovery_service import DiscoveryService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["admin"])


class CacheKeyRequest(BaseModel):
    key: Optional[str] = None
    pattern: Optional[str] = None


@router.get("/geo-debug")
async def geo_debug(
    q: Optional[str] = Query("jalgaon", description="Probe query run against the deduplicated records"),
    service: DiscoveryService = Depends(get_discovery_service),
    _ok: bool = Depends(admin_key_required),
):
    """Per-source document counts, samples and dedupe fingerprints for a probe query.

    Header: x-admin-key: <ADMIN_API_KEY>
    """
    try:
        return await service.debug_sources(q)
    except Exception as e:
        logger.error(f"Geo debug failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))


@router.post("/cache")
async def delete_cache_key(req: CacheKeyRequest, _ok: bool = Depends(admin_key_required)):
    """Delete one redis cache key, or every key under a discovery pattern.

    Request body: { "key": "discovery:nearby:..." } or { "pattern": "discovery:*" }
    Header: x-admin-key: <ADMIN_API_KEY>
    """
    if not req.key and not req.pattern:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="key or pattern is required")
    if req.pattern and not req.pattern.startswith("discovery:"):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Only discovery:* patterns are allowed")

    redis_client = await get_redis_client()
    if not redis_client:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Redis not available")
    try:
        if req.pattern:
            deleted = await delete_pattern(req.pattern, client=redis_client)
            logger.info(f"Admin cache clear {req.pattern}: {deleted} keys")
            return {"deleted": deleted, "pattern": req.pattern}
        deleted = await redis_client.delete(req.key)
        return {"deleted": bool(deleted), "key": req.key}
    except Exception as e:
        logger.error(f"Cache delete failed: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail=str(e))

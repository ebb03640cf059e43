"""FastAPI router for station discovery and place lookup endpoints"""

import logging
from typing import Any, Dict, List, Optional
from fastapi import APIRouter, Depends, HTTPException, Query

from app.api.deps import get_discovery_service
from app.schemas.station import ErrorResponse, NotFoundResponse, TextSearchResult
from app.services.discovery_service import DiscoveryService
from app.services.errors import DiscoveryError, InvalidArgument, NotFound, TotalAggregationFailure

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/maps", tags=["Maps"])

ERROR_RESPONSES = {
    400: {"model": ErrorResponse, "description": "Malformed input"},
    404: {"model": NotFoundResponse, "description": "Nothing matched"},
    503: {"model": ErrorResponse, "description": "Every station source failed"},
}


def to_http_error(e: DiscoveryError) -> HTTPException:
    """Map discovery errors onto HTTP status codes"""
    if isinstance(e, InvalidArgument):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, NotFound):
        return HTTPException(status_code=404, detail={"error": str(e), "suggestions": e.suggestions})
    if isinstance(e, TotalAggregationFailure):
        return HTTPException(status_code=503, detail="Station sources unavailable")
    return HTTPException(status_code=500, detail=str(e))


def text_result_dict(result: TextSearchResult) -> Dict[str, Any]:
    return {
        "query": result.query,
        "count": result.count,
        "stations": [s.public_dict() for s in result.stations],
        "places": [p.model_dump(by_alias=True) for p in result.places],
        "bestPlace": result.best_place.model_dump(by_alias=True) if result.best_place else None,
        "hints": [h.model_dump(by_alias=True) for h in result.hints],
    }


@router.get(
    "/nearby",
    summary="Stations near a point",
    responses=ERROR_RESPONSES,
    description="""
    Stations within `radius` of (`lat`, `lng`), nearest first.

    `radius` values above 1000 are read as meters, anything else as kilometers.
    """
)
async def nearby_stations(
    lat: Optional[str] = Query(None, description="Latitude (required)"),
    lng: Optional[str] = Query(None, description="Longitude (required)"),
    radius: Optional[str] = Query(None, description="Radius in meters (>1000) or kilometers"),
    q: Optional[str] = Query(None, description="Optional text pre-filter"),
    status: Optional[str] = Query(None, description="Only stations with this status"),
    limit: Optional[str] = Query(None, description="Maximum number of stations"),
    service: DiscoveryService = Depends(get_discovery_service),
) -> List[Dict[str, Any]]:
    try:
        stations = await service.nearby(lat, lng, radius=radius, query=q, status=status, limit=limit)
        return [s.public_dict() for s in stations]
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in nearby search: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search nearby stations")


async def _text_search(service: DiscoveryService, q, lat, lng, radius, status, limit) -> Dict[str, Any]:
    try:
        result = await service.text_search(q, lat=lat, lng=lng, radius=radius, status=status, limit=limit)
        return text_result_dict(result)
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in text search: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to search stations")


@router.get("/search", summary="Free-text station search", responses=ERROR_RESPONSES)
async def search_stations(
    q: Optional[str] = Query(None, description="Search text (at least 2 characters)"),
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: DiscoveryService = Depends(get_discovery_service),
):
    return await _text_search(service, q, lat, lng, radius, status, limit)


@router.get("/text", summary="Free-text station search (alias of /search)", responses=ERROR_RESPONSES)
async def text_search_stations(
    q: Optional[str] = Query(None, description="Search text (at least 2 characters)"),
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    radius: Optional[str] = Query(None),
    status: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: DiscoveryService = Depends(get_discovery_service),
):
    return await _text_search(service, q, lat, lng, radius, status, limit)


@router.get("/locate", summary="Resolve a place name to coordinates", responses=ERROR_RESPONSES)
async def locate_place(
    q: Optional[str] = Query(None, description="Place name, alias or landmark"),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        location = await service.locate_place(q)
        return location.model_dump(by_alias=True)
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error locating place: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to locate place")


@router.get("/text-locate", summary="Resolve a place and list stations around it", responses=ERROR_RESPONSES)
async def text_locate(
    q: Optional[str] = Query(None, description="Place name, alias or landmark"),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        location, stations = await service.locate_with_stations(q)
        return {
            "location": location.model_dump(by_alias=True),
            "stations": [s.public_dict() for s in stations],
            "count": len(stations),
        }
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in text locate: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to locate place")


@router.get("/places-suggestions", summary="Place autocomplete", responses=ERROR_RESPONSES)
async def places_suggestions(
    q: Optional[str] = Query(None),
    limit: Optional[str] = Query(None),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        places = await service.place_suggestions(q, limit=limit)
        return {"suggestions": [p.model_dump(by_alias=True) for p in places], "count": len(places)}
    except DiscoveryError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Error building place suggestions: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to build suggestions")


@router.get("/reverse", summary="Coordinates to place description", responses=ERROR_RESPONSES)
async def reverse_geocode(
    lat: Optional[str] = Query(None),
    lng: Optional[str] = Query(None),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        location = await service.reverse_lookup(lat, lng)
        return location.model_dump()
    except DiscoveryError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Error in reverse lookup: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Reverse lookup failed")


@router.get("/distance", summary="Straight-line distance matrix", responses=ERROR_RESPONSES)
async def distance_matrix(
    origins: Optional[str] = Query(None, description="lat,lng;lat,lng"),
    destinations: Optional[str] = Query(None, description="lat,lng;lat,lng"),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        return await service.distance_matrix(origins, destinations)
    except DiscoveryError as e:
        raise to_http_error(e)
    except Exception as e:
        logger.error(f"Error building distance matrix: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Distance matrix failed")


@router.get("/stations/{station_id:path}", summary="Get one station", responses=ERROR_RESPONSES)
async def get_station(
    station_id: str,
    service: DiscoveryService = Depends(get_discovery_service),
):
    """`station_id` is a native id or an `<owner>/<subcollection>/<docId>` path"""
    try:
        station = await service.get_station(station_id)
        return station.public_dict()
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error getting station {station_id}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to get station")


@router.get("/city", summary="Stations in or matching a city", responses=ERROR_RESPONSES)
async def city_stations(
    q: Optional[str] = Query(None, description="City or area name"),
    service: DiscoveryService = Depends(get_discovery_service),
):
    try:
        stations = await service.find_stations(q)
        return {
            "query": q.strip(),
            "available": bool(stations),
            "totalStations": len(stations),
            "stations": [s.public_dict() for s in stations],
        }
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in city search: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="City search failed")


@router.get("/find", summary="Plain station lookup by text, city or address", responses=ERROR_RESPONSES)
async def find_stations(
    q: Optional[str] = Query(None),
    city: Optional[str] = Query(None),
    address: Optional[str] = Query(None),
    service: DiscoveryService = Depends(get_discovery_service),
):
    """The first non-blank of `q`, `city` and `address` is matched"""
    search = next((v.strip() for v in (q, city, address) if v and v.strip()), None)
    try:
        stations = await service.find_stations(search)
        return {"count": len(stations), "stations": [s.public_dict() for s in stations]}
    except DiscoveryError as e:
        raise to_http_error(e)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error in find: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Find failed")

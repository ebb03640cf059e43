"""
Station discovery: nearby search, free-text search and place resolution.

Every call runs the same read-only pipeline over the configured sources:
aggregate -> normalize -> dedupe, followed by text filtering and geo ranking.
Inputs may arrive as raw query strings; anything malformed raises
InvalidArgument before the store is touched.
"""

import logging
import math
from typing import Any, Dict, List, Optional, Tuple

from app.core.config import settings as default_settings
from app.redis_client import get_cache, set_cache
from app.schemas.station import (
    Coordinates,
    LocationResult,
    PlaceMatch,
    ReverseLocation,
    StationRecord,
    TextSearchResult,
)
from app.services import geo
from app.services.aggregator import Fetched, SourceAggregator, identity_for
from app.services.dedupe import dedupe, fingerprint
from app.services.errors import InvalidArgument, NotFound, TotalAggregationFailure
from app.services.gazetteer import DEFAULT_SUGGESTIONS, find_anchor
from app.services.geocoding_service import GeocodingService, geocoding_service
from app.services.normalizer import extract_coordinates, normalize_records, to_station_record
from app.services.sources import NestedId, RawRecord, SourceDescriptor, build_sources, parse_identity
from app.services.text_scorer import filter_stations, keyword_hints, search_places

logger = logging.getLogger(__name__)

PLACE_RESULTS_LIMIT = 5
DEBUG_SAMPLE_SIZE = 10


def _to_float(value: Any, name: str) -> Optional[float]:
    """None/blank -> None; raises InvalidArgument for anything non-numeric or non-finite"""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    if isinstance(value, bool):
        raise InvalidArgument(f"{name} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError):
        raise InvalidArgument(f"{name} must be a number, got {value!r}")
    if not math.isfinite(number):
        raise InvalidArgument(f"{name} must be finite")
    return number


def _center(lat: Any, lng: Any, required: bool) -> Optional[Coordinates]:
    lat_f = _to_float(lat, "lat")
    lng_f = _to_float(lng, "lng")
    if lat_f is None and lng_f is None and not required:
        return None
    if lat_f is None or lng_f is None:
        raise InvalidArgument("lat and lng are required")
    if abs(lat_f) > 90 or abs(lng_f) > 180:
        raise InvalidArgument(f"Coordinates out of range: {lat_f}, {lng_f}")
    return Coordinates(lat=lat_f, lng=lng_f)


def _limit(value: Any, default: Optional[int]) -> Optional[int]:
    number = _to_float(value, "limit")
    if number is None:
        return default
    if number < 1 or number != int(number):
        raise InvalidArgument("limit must be a positive integer")
    return int(number)


def _text(value: Any) -> str:
    return str(value).strip() if value is not None else ""


class DiscoveryService:
    """Facade over the discovery pipeline. Holds no per-request state."""

    def __init__(self, store, config=default_settings, geocoder: Optional[GeocodingService] = None):
        self.store = store
        self.settings = config
        self.geocoder = geocoder or geocoding_service
        self.aggregator = SourceAggregator(
            store,
            page_size=config.DISCOVERY_PAGE_SIZE,
            timeout=config.DISCOVERY_SOURCE_TIMEOUT_SECONDS,
        )

    # ------------------------------------------------------------------
    # pipeline
    # ------------------------------------------------------------------

    def _sources(self) -> List[SourceDescriptor]:
        return build_sources(
            self.settings.DISCOVERY_FLAT_COLLECTIONS,
            self.settings.DISCOVERY_NESTED_COLLECTIONS,
        )

    async def _collect(self, status: Optional[str] = None) -> Tuple[List[StationRecord], bool]:
        """Deduplicated records plus whether every source failed"""
        result = await self.aggregator.aggregate(self._sources())
        if result.all_failed and self.settings.DISCOVERY_FAIL_ON_TOTAL_OUTAGE:
            raise TotalAggregationFailure(
                f"All {len(result.outcomes)} station sources failed: "
                + "; ".join(f.error.reason for f in result.failures)
            )
        records = normalize_records(result.records)
        if status:
            # compared against the normalized status (missing -> "active", metadata.status)
            wanted = status.lower()
            records = [r for r in records if r.status.lower() == wanted]
        records = dedupe(records)
        return records, result.all_failed

    def _cache_key(self, kind: str, center: Optional[Coordinates], *parts: Any) -> str:
        decimals = self.settings.CACHE_COORD_ROUND_DECIMALS
        coords = f"{center.lat:.{decimals}f}:{center.lng:.{decimals}f}" if center else "-"
        tail = ":".join("" if p is None else str(p).lower() for p in parts)
        return f"discovery:{kind}:{coords}:{tail}"

    async def _cached(self, key: str) -> Any:
        try:
            return await get_cache(key)
        except Exception as e:
            logger.warning(f"Cache read failed for {key}: {e}")
            return None

    async def _store_cache(self, key: str, value: Any) -> None:
        try:
            await set_cache(key, value, expire=self.settings.CACHE_EXPIRE_SECONDS)
        except Exception as e:
            logger.warning(f"Cache write failed for {key}: {e}")

    # ------------------------------------------------------------------
    # public operations
    # ------------------------------------------------------------------

    async def nearby(
        self,
        lat: Any,
        lng: Any,
        radius: Any = None,
        query: Optional[str] = None,
        status: Optional[str] = None,
        limit: Any = None,
    ) -> List[StationRecord]:
        """
        Stations within `radius` of (lat, lng), nearest first.

        `radius` follows the existing wire convention: values above 1000 are
        meters, anything else kilometers. Defaults to DISCOVERY_DEFAULT_RADIUS.
        """
        center = _center(lat, lng, required=True)
        radius_value = _to_float(radius, "radius")
        if radius_value is None:
            radius_value = self.settings.DISCOVERY_DEFAULT_RADIUS
        if radius_value <= 0:
            raise InvalidArgument("radius must be positive")
        radius_km = geo.radius_to_km(radius_value)
        q = _text(query) or None
        status = _text(status) or None
        max_results = _limit(limit, None)

        cache_key = self._cache_key("nearby", center, radius_km, q, status, max_results)
        cached = await self._cached(cache_key)
        if cached is not None:
            # the key rounds the center; distances are recomputed for the exact one
            return geo.filter_and_rank([StationRecord.model_validate(s) for s in cached], center, radius_km)

        records, all_failed = await self._collect(status)
        records = filter_stations(q, records)
        ranked = geo.filter_and_rank(records, center, radius_km)
        if max_results:
            ranked = ranked[:max_results]

        logger.info(f"Nearby ({center.lat}, {center.lng}) r={radius_km}km q={q!r}: {len(ranked)} stations")
        if not all_failed:
            await self._store_cache(cache_key, [r.public_dict() for r in ranked])
        return ranked

    async def text_search(
        self,
        query: Optional[str],
        lat: Any = None,
        lng: Any = None,
        radius: Any = None,
        status: Optional[str] = None,
        limit: Any = None,
    ) -> TextSearchResult:
        """
        Stations whose name/address/city/area contain the query.

        With an explicit center the results are ranked by distance from it
        (hard-filtered when a radius is also given). Otherwise, when the query
        resolves to a gazetteer place, results are sorted by distance from
        that place without excluding any.
        """
        q = _text(query)
        min_length = self.settings.TEXT_SEARCH_MIN_QUERY_LENGTH
        if len(q) < min_length:
            raise InvalidArgument(f"Query must be at least {min_length} characters")
        center = _center(lat, lng, required=False)
        radius_value = _to_float(radius, "radius")
        if radius_value is not None and radius_value <= 0:
            raise InvalidArgument("radius must be positive")
        radius_km = geo.radius_to_km(radius_value) if radius_value is not None else None
        status = _text(status) or None
        max_results = _limit(limit, self.settings.TEXT_SEARCH_DEFAULT_LIMIT)

        cache_key = self._cache_key("text", center, q, radius_km, status, max_results)
        cached = await self._cached(cache_key)
        if cached is not None:
            result = TextSearchResult.model_validate(cached)
            if center is not None:
                result.stations = geo.filter_and_rank(result.stations, center, radius_km)
                result.count = len(result.stations)
            return result

        places = search_places(q, limit=PLACE_RESULTS_LIMIT)
        best = places[0] if places else None

        records, all_failed = await self._collect(status)
        matched = filter_stations(q, records)
        if center is not None:
            stations = geo.filter_and_rank(matched, center, radius_km)
        elif best is not None and best.lat is not None and best.lng is not None:
            stations = geo.annotate_and_sort(matched, Coordinates(lat=best.lat, lng=best.lng))
        else:
            stations = matched
        stations = stations[:max_results]

        result = TextSearchResult(
            query=q,
            stations=stations,
            count=len(stations),
            places=places,
            best_place=best,
            hints=keyword_hints(q),
        )
        logger.info(f"Text search {q!r}: {len(matched)} matches, best place {best.key if best else None}")
        if not all_failed:
            await self._store_cache(cache_key, result.model_dump(by_alias=True))
        return result

    async def locate_place(self, query: Optional[str]) -> LocationResult:
        """Resolve a place name: gazetteer first, then the static city anchors."""
        q = _text(query)
        if not q:
            raise InvalidArgument("q is required")

        matches = search_places(q, limit=10)
        if matches:
            best = matches[0]
            address = best.name
            if best.state and best.state.lower() not in address.lower():
                address = f"{address}, {best.state}"
            return LocationResult(
                name=best.name,
                address=address,
                lat=best.lat,
                lng=best.lng,
                key=best.key,
                match_kind=best.match_kind,
                alternatives=matches[1:],
            )

        anchor = find_anchor(q)
        if anchor is not None:
            logger.info(f"Locate {q!r}: gazetteer miss, using city anchor {anchor.key}")
            return LocationResult(
                name=anchor.name,
                address=anchor.name,
                lat=anchor.coordinates.lat,
                lng=anchor.coordinates.lng,
                key=anchor.key,
                match_kind="anchor",
            )

        suggestions = [h.key for h in keyword_hints(q)] + list(DEFAULT_SUGGESTIONS)
        logger.info(f"Locate {q!r}: no match")
        raise NotFound(f"No location found for '{q}'", suggestions=suggestions)

    async def locate_with_stations(self, query: Optional[str]) -> Tuple[LocationResult, List[StationRecord]]:
        location = await self.locate_place(query)
        records, _ = await self._collect()
        stations = geo.filter_and_rank(
            records,
            Coordinates(lat=location.lat, lng=location.lng),
            self.settings.LOCATE_NEARBY_RADIUS_KM,
        )
        return location, stations[: self.settings.LOCATE_NEARBY_LIMIT]

    async def place_suggestions(self, query: Optional[str], limit: Any = None) -> List[PlaceMatch]:
        q = _text(query)
        if not q:
            return []
        return search_places(q, limit=_limit(limit, 10))

    async def find_stations(self, query: Optional[str]) -> List[StationRecord]:
        """Stations whose name, address, city or area contain the query, in source order"""
        q = _text(query)
        if not q:
            raise InvalidArgument("q, city or address is required")
        records, _ = await self._collect()
        stations = filter_stations(q, records)
        logger.info(f"Find {q!r}: {len(stations)} stations")
        return stations

    async def get_station(self, station_id: Optional[str]) -> StationRecord:
        """Fetch one station by its provenance key (native id or owner/sub/doc)."""
        sid = _text(station_id)
        if not sid:
            raise InvalidArgument("station id is required")

        flat_collections = list(self.settings.DISCOVERY_FLAT_COLLECTIONS)
        try:
            identity = parse_identity(sid, flat_collections[0] if flat_collections else "")
        except ValueError as e:
            raise InvalidArgument(str(e))

        doc, source = None, None
        if isinstance(identity, NestedId):
            if identity.subcollection not in self.settings.DISCOVERY_NESTED_COLLECTIONS:
                raise NotFound(f"Station {sid} not found")
            doc = await self.store.get_by_id(identity.subcollection, identity.doc_id, owner_id=identity.owner_id)
            source = SourceDescriptor(identity.subcollection, grouped=True)
        else:
            for collection in flat_collections:
                doc = await self.store.get_by_id(collection, identity.doc_id)
                if doc is not None:
                    source = SourceDescriptor(collection)
                    break

        if doc is None:
            raise NotFound(f"Station {sid} not found")
        record = to_station_record(RawRecord(identity=identity_for(source, doc), source=source, data=doc.data))
        if record is None:
            raise NotFound(f"Station {sid} has no usable coordinates")
        return record

    async def reverse_lookup(self, lat: Any, lng: Any) -> ReverseLocation:
        center = _center(lat, lng, required=True)
        return await self.geocoder.reverse_geocode(center.lat, center.lng)

    async def distance_matrix(self, origins: Optional[str], destinations: Optional[str]) -> Dict[str, Any]:
        origin_points = geo.parse_points(origins, "origins")
        destination_points = geo.parse_points(destinations, "destinations")
        rows = geo.distance_matrix(origin_points, destination_points)
        return {
            "origin_addresses": [f"{p.lat}, {p.lng}" for p in origin_points],
            "destination_addresses": [f"{p.lat}, {p.lng}" for p in destination_points],
            "rows": [
                {"elements": [{"distance": m, "duration": s, "status": "OK"} for m, s in row]}
                for row in rows
            ],
        }

    async def debug_sources(self, probe_query: Optional[str] = "jalgaon") -> Dict[str, Any]:
        """Per-source counts and samples, dedupe effect and probe fingerprints"""
        result = await self.aggregator.aggregate(self._sources())

        sources = []
        for outcome in result.outcomes:
            entry: Dict[str, Any] = {
                "source": outcome.source.label,
                "collection": outcome.source.collection,
                "sourceTag": outcome.source.tag,
            }
            if isinstance(outcome, Fetched):
                entry.update(
                    ok=True,
                    count=len(outcome.documents),
                    samples=[
                        {
                            "path": d.path,
                            "name": (d.data or {}).get("name"),
                            "hasCoordinates": extract_coordinates(d.data) is not None,
                        }
                        for d in outcome.documents[:DEBUG_SAMPLE_SIZE]
                    ],
                )
            else:
                entry.update(ok=False, count=0, error=outcome.error.reason, samples=[])
            sources.append(entry)

        normalized = normalize_records(result.records)
        unique = dedupe(normalized)
        probe = _text(probe_query)
        matches = filter_stations(probe, unique) if probe else []
        return {
            "sources": sources,
            "allFailed": result.all_failed,
            "documents": len(result.records),
            "normalized": len(normalized),
            "deduplicated": len(unique),
            "probe": {
                "query": probe,
                "count": len(matches),
                "matches": [
                    {"id": r.id, "name": r.name, "fingerprint": fingerprint(r)}
                    for r in matches[:DEBUG_SAMPLE_SIZE]
                ],
            },
        }

"""
Coordinate and record normalization for heterogeneous station documents.

Documents written by different app versions encode location differently:
a nested `location` map (lat/lng or latitude/longitude), a serialized
GeoPoint (`_latitude`/`_longitude`), flat root fields, or a "lat,lng" string.
`extract_coordinates` runs an ordered chain of extractors and returns the
first valid pair.
"""

import logging
import math
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from app.schemas.station import Coordinates, StationRecord
from app.services.sources import NestedId, RawRecord

logger = logging.getLogger(__name__)

DEFAULT_STATION_NAME = "EV Station"

# Location-like containers, checked in this order
LOCATION_FIELDS: Tuple[Tuple[str, ...], ...] = (
    ("location",),
    ("coordinates",),
    ("geo",),
    ("meta", "location"),
    ("metadata", "location"),
)

# (lat key, lng key) pairs accepted inside a location container
NESTED_KEY_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("lat", "lng"),
    ("lat", "lon"),
    ("latitude", "longitude"),
    ("_latitude", "_longitude"),
)

ROOT_KEY_PAIRS: Tuple[Tuple[str, str], ...] = (
    ("latitude", "longitude"),
    ("lat", "lng"),
    ("lat", "lon"),
)


def _to_number(value: Any) -> Optional[float]:
    """float() for numbers and numeric strings; None for anything else"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        num = float(value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(num):
        return None
    return num


def coordinates_from_pair(lat_raw: Any, lng_raw: Any) -> Optional[Coordinates]:
    lat = _to_number(lat_raw)
    lng = _to_number(lng_raw)
    if lat is None or lng is None:
        return None
    if abs(lat) > 90 or abs(lng) > 180:
        return None
    return Coordinates(lat=lat, lng=lng)


def _dig(doc: Dict[str, Any], path: Iterable[str]) -> Any:
    current: Any = doc
    for part in path:
        if not isinstance(current, dict):
            return None
        current = current.get(part)
    return current


def _from_nested_location(doc: Dict[str, Any]) -> Optional[Coordinates]:
    for path in LOCATION_FIELDS:
        container = _dig(doc, path)
        if not isinstance(container, dict):
            continue
        for lat_key, lng_key in NESTED_KEY_PAIRS:
            coords = coordinates_from_pair(container.get(lat_key), container.get(lng_key))
            if coords:
                return coords
    return None


def _from_root_fields(doc: Dict[str, Any]) -> Optional[Coordinates]:
    for lat_key, lng_key in ROOT_KEY_PAIRS:
        coords = coordinates_from_pair(doc.get(lat_key), doc.get(lng_key))
        if coords:
            return coords
    return None


def _parse_delimited(value: Any) -> Optional[Coordinates]:
    # only "lat,lng" strings; bare arrays are ambiguous (GeoJSON stores [lng, lat])
    if not isinstance(value, str):
        return None
    parts = [p.strip() for p in value.split(",")]
    if len(parts) >= 2:
        return coordinates_from_pair(parts[0], parts[1])
    return None


def _from_delimited_string(doc: Dict[str, Any]) -> Optional[Coordinates]:
    for path in LOCATION_FIELDS + (("latlng",),):
        coords = _parse_delimited(_dig(doc, path))
        if coords:
            return coords
    return None


CoordinateExtractor = Callable[[Dict[str, Any]], Optional[Coordinates]]

COORDINATE_EXTRACTORS: Tuple[CoordinateExtractor, ...] = (
    _from_nested_location,
    _from_root_fields,
    _from_delimited_string,
)


def extract_coordinates(
    doc: Optional[Dict[str, Any]],
    extractors: Iterable[CoordinateExtractor] = COORDINATE_EXTRACTORS,
) -> Optional[Coordinates]:
    """Return the first valid {lat, lng} produced by the extractor chain, else None."""
    if not isinstance(doc, dict):
        return None
    for extractor in extractors:
        coords = extractor(doc)
        if coords is not None:
            return coords
    return None


def _text_field(doc: Dict[str, Any], name: str) -> Optional[str]:
    """Root field first, then metadata.<name>; blank strings count as missing"""
    for value in (doc.get(name), _dig(doc, ("metadata", name))):
        if value is None:
            continue
        text = str(value).strip()
        if text:
            return text
    return None


def to_station_record(raw: RawRecord) -> Optional[StationRecord]:
    """Build a StationRecord, or None when the document has no usable coordinates."""
    doc = raw.data or {}
    coords = extract_coordinates(doc)
    if coords is None:
        logger.debug(f"Dropping {raw.key}: no usable coordinates")
        return None

    city = _text_field(doc, "city")
    area = _text_field(doc, "area")
    address = _text_field(doc, "address")
    if not address:
        address = ", ".join(p for p in (area, city) if p) or None

    owner_id = _text_field(doc, "ownerId")
    if owner_id is None and isinstance(raw.identity, NestedId):
        owner_id = raw.identity.owner_id

    return StationRecord(
        id=raw.key,
        doc_id=raw.identity.doc_id,
        name=_text_field(doc, "name") or DEFAULT_STATION_NAME,
        address=address,
        city=city,
        area=area,
        state=_text_field(doc, "state"),
        coordinates=coords,
        source_tag=raw.source.tag,
        collection=raw.source.collection,
        status=_text_field(doc, "status") or "active",
        owner_id=owner_id,
    )


def normalize_records(raw_records: List[RawRecord]) -> List[StationRecord]:
    records = []
    for raw in raw_records:
        record = to_station_record(raw)
        if record is not None:
            records.append(record)
    dropped = len(raw_records) - len(records)
    if dropped:
        logger.info(f"Coordinate normalization dropped {dropped} of {len(raw_records)} documents")
    return records

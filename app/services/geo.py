"""Great-circle distance, radius handling and distance ranking"""

import math
from typing import List, Optional, Sequence, Tuple

from app.schemas.station import Coordinates, StationRecord
from app.services.errors import InvalidArgument

EARTH_RADIUS_KM = 6371.0
# Radius values above this are taken to be meters
METERS_THRESHOLD = 1000
AVERAGE_SPEED_KMH = 40.0


def haversine_km(a: Coordinates, b: Coordinates) -> float:
    d_lat = math.radians(b.lat - a.lat)
    d_lng = math.radians(b.lng - a.lng)
    h = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat)) * math.sin(d_lng / 2) ** 2
    )
    # clamp rounding noise so asin stays in its domain
    return 2 * EARTH_RADIUS_KM * math.asin(math.sqrt(min(1.0, max(0.0, h))))


def radius_to_km(value: float) -> float:
    """Existing callers send either meters or kilometers; anything over 1000 is meters."""
    if value > METERS_THRESHOLD:
        return value / 1000.0
    return float(value)


def _with_distance(record: StationRecord, center: Coordinates) -> StationRecord:
    return record.model_copy(update={"distance_km": round(haversine_km(center, record.coordinates), 3)})


def annotate_and_sort(records: List[StationRecord], center: Optional[Coordinates]) -> List[StationRecord]:
    """Attach distanceKm relative to center and sort ascending, excluding nothing"""
    if center is None:
        return list(records)
    annotated = [_with_distance(r, center) for r in records]
    annotated.sort(key=lambda r: r.distance_km)
    return annotated


def filter_and_rank(
    records: List[StationRecord],
    center: Optional[Coordinates],
    radius_km: Optional[float],
) -> List[StationRecord]:
    """
    Keep records within radius_km of center, nearest first.

    Without a center the records pass through untouched. Without a radius
    they are annotated and sorted but none are excluded.
    """
    if center is None:
        return list(records)
    annotated = annotate_and_sort(records, center)
    if radius_km is None:
        return annotated
    return [r for r in annotated if r.distance_km <= radius_km]


def parse_points(raw: Optional[str], label: str = "points") -> List[Coordinates]:
    """Parse "lat,lng;lat,lng" into coordinates"""
    if not raw or not raw.strip():
        raise InvalidArgument(f"{label} is required")
    points = []
    for chunk in raw.split(";"):
        chunk = chunk.strip()
        if not chunk:
            continue
        parts = chunk.split(",")
        if len(parts) != 2:
            raise InvalidArgument(f"Invalid {label} entry: {chunk!r}")
        try:
            lat, lng = float(parts[0]), float(parts[1])
        except ValueError:
            raise InvalidArgument(f"Invalid {label} entry: {chunk!r}")
        if not (math.isfinite(lat) and math.isfinite(lng)) or abs(lat) > 90 or abs(lng) > 180:
            raise InvalidArgument(f"Out-of-range {label} entry: {chunk!r}")
        points.append(Coordinates(lat=lat, lng=lng))
    if not points:
        raise InvalidArgument(f"{label} is required")
    return points


def distance_matrix(
    origins: Sequence[Coordinates],
    destinations: Sequence[Coordinates],
    speed_kmh: float = AVERAGE_SPEED_KMH,
) -> List[List[Tuple[int, int]]]:
    """(meters, seconds) for every origin/destination pair, assuming a constant average speed"""
    rows = []
    for origin in origins:
        row = []
        for destination in destinations:
            km = haversine_km(origin, destination)
            seconds = (km / speed_kmh) * 3600
            row.append((round(km * 1000), round(seconds)))
        rows.append(row)
    return rows

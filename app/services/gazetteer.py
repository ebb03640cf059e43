"""
Static place dictionary used to resolve free-text queries into coordinates.

Built once at import time and exposed read-only (`PLACES` is a
MappingProxyType over frozen entries). Keys are lower-case.
"""

from dataclasses import dataclass
from types import MappingProxyType
from typing import FrozenSet, Mapping, Optional, Tuple

from app.schemas.station import Coordinates

CITY = "city"
AREA = "area"
KEYWORD = "keyword"


@dataclass(frozen=True)
class PlaceEntry:
    key: str
    display_name: str
    kind: str
    coordinates: Optional[Coordinates] = None
    aliases: FrozenSet[str] = frozenset()
    landmarks: FrozenSet[str] = frozenset()
    region_label: Optional[str] = None
    city: Optional[str] = None
    search_hint: Optional[str] = None


def _city(key, lat, lng, name, state, aliases=(), landmarks=()):
    return PlaceEntry(
        key=key,
        display_name=name,
        kind=CITY,
        coordinates=Coordinates(lat=lat, lng=lng),
        aliases=frozenset(aliases),
        landmarks=frozenset(landmarks),
        region_label=state,
    )


def _area(key, lat, lng, name, city, state, aliases=()):
    return PlaceEntry(
        key=key,
        display_name=name,
        kind=AREA,
        coordinates=Coordinates(lat=lat, lng=lng),
        aliases=frozenset(aliases),
        region_label=state,
        city=city,
    )


def _keyword(key, hint):
    return PlaceEntry(key=key, display_name=key.title(), kind=KEYWORD, search_hint=hint)


_ENTRIES: Tuple[PlaceEntry, ...] = (
    # Cities
    _city("mumbai", 19.0760, 72.8777, "Mumbai, Maharashtra", "Maharashtra",
          ["bombay", "mumbai city", "financial capital"],
          ["Gateway of India", "Marine Drive", "Colaba", "Bandra", "Andheri"]),
    _city("pune", 18.5204, 73.8567, "Pune, Maharashtra", "Maharashtra",
          ["poona", "pune city", "oxford of east"],
          ["Shaniwar Wada", "Koregaon Park", "Hinjawadi", "Baner", "Kothrud"]),
    _city("delhi", 28.7041, 77.1025, "New Delhi", "Delhi",
          ["new delhi", "delhi ncr", "national capital"],
          ["Red Fort", "India Gate", "Connaught Place", "Karol Bagh"]),
    _city("bangalore", 12.9716, 77.5946, "Bangalore, Karnataka", "Karnataka",
          ["bengaluru", "silicon valley", "garden city"],
          ["MG Road", "Brigade Road", "Electronic City", "Whitefield"]),
    _city("chennai", 13.0827, 80.2707, "Chennai, Tamil Nadu", "Tamil Nadu",
          ["madras", "detroit of india"],
          ["Marina Beach", "T Nagar", "Anna Nagar", "Velachery"]),
    _city("hyderabad", 17.3850, 78.4867, "Hyderabad, Telangana", "Telangana",
          ["cyberabad", "pearl city"],
          ["Charminar", "HITEC City", "Gachibowli", "Madhapur"]),
    _city("jalgaon", 20.9974, 75.5626, "Jalgaon, Maharashtra", "Maharashtra",
          ["banana city"],
          ["Jalgaon Railway Station", "Ajanta Caves nearby"]),
    _city("nashik", 19.9975, 73.7898, "Nashik, Maharashtra", "Maharashtra",
          ["wine capital"],
          ["Sula Vineyards", "Trimbakeshwar"]),
    _city("nagpur", 21.1458, 79.0882, "Nagpur, Maharashtra", "Maharashtra",
          ["orange city", "zero mile"],
          ["Deekshabhoomi", "Sitabuldi Fort"]),
    _city("aurangabad", 19.8762, 75.3433, "Aurangabad, Maharashtra", "Maharashtra",
          ["city of gates"],
          ["Ajanta Ellora Caves", "Bibi Ka Maqbara"]),
    # Areas
    _area("bandra", 19.0544, 72.8347, "Bandra, Mumbai", "Mumbai", "Maharashtra",
          ["bandra west", "linking road"]),
    _area("andheri", 19.1136, 72.8697, "Andheri, Mumbai", "Mumbai", "Maharashtra",
          ["andheri east", "andheri west", "seepz"]),
    _area("koregaon park", 18.5362, 73.8847, "Koregaon Park, Pune", "Pune", "Maharashtra",
          ["kp", "koregaon"]),
    _area("hinjawadi", 18.5882, 73.7499, "Hinjawadi, Pune", "Pune", "Maharashtra",
          ["hinjewadi", "tech park"]),
    _area("electronic city", 12.8456, 77.6603, "Electronic City, Bangalore", "Bangalore", "Karnataka",
          ["ecity", "e city"]),
    _area("hitec city", 17.4435, 78.3772, "HITEC City, Hyderabad", "Hyderabad", "Telangana",
          ["hitech city", "cyberabad"]),
    # Address keywords (hints only)
    _keyword("railway station", "Look for nearby railway stations"),
    _keyword("airport", "Look for airports"),
    _keyword("mall", "Look for shopping malls"),
    _keyword("hospital", "Look for hospitals"),
    _keyword("tech park", "Look for technology parks"),
)

PLACES: Mapping[str, PlaceEntry] = MappingProxyType({e.key: e for e in _ENTRIES})


@dataclass(frozen=True)
class CityAnchor:
    key: str
    name: str
    coordinates: Coordinates


def _anchor(key: str, name: str, lat: float, lng: float) -> CityAnchor:
    return CityAnchor(key=key, name=name, coordinates=Coordinates(lat=lat, lng=lng))


# Last-resort dictionary consulted when the gazetteer yields nothing
CITY_ANCHORS: Mapping[str, CityAnchor] = MappingProxyType({
    "jalgaon": _anchor("jalgaon", "Jalgaon, Maharashtra", 21.0077, 75.5626),
    "mumbai": _anchor("mumbai", "Mumbai, Maharashtra", 19.076, 72.8777),
    "pune": _anchor("pune", "Pune, Maharashtra", 18.5204, 73.8567),
    "delhi": _anchor("delhi", "New Delhi, Delhi", 28.6139, 77.209),
    "nashik": _anchor("nashik", "Nashik, Maharashtra", 20.0112, 73.7902),
    "nagpur": _anchor("nagpur", "Nagpur, Maharashtra", 21.1458, 79.0882),
    "aurangabad": _anchor("aurangabad", "Aurangabad, Maharashtra", 19.8762, 75.3433),
    "bangalore": _anchor("bangalore", "Bangalore, Karnataka", 12.9716, 77.5946),
    "chennai": _anchor("chennai", "Chennai, Tamil Nadu", 13.0827, 80.2707),
    "hyderabad": _anchor("hyderabad", "Hyderabad, Telangana", 17.3850, 78.4867),
})

DEFAULT_SUGGESTIONS: Tuple[str, ...] = ("Mumbai", "Pune", "Delhi", "Bangalore", "Chennai")


def find_anchor(query: str) -> Optional[CityAnchor]:
    """Exact key, else a key starting with the query or sharing the query's first three letters"""
    q = (query or "").strip().lower()
    if not q:
        return None
    if q in CITY_ANCHORS:
        return CITY_ANCHORS[q]
    for key, anchor in CITY_ANCHORS.items():
        if key.startswith(q) or q.startswith(key[:3]):
            return anchor
    return None


@dataclass(frozen=True)
class RegionBounds:
    name: str
    state: str
    north: float
    south: float
    east: float
    west: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


# Coarse bounding boxes for reverse lookup without an external provider
REGIONS: Tuple[RegionBounds, ...] = (
    RegionBounds("Jalgaon", "Maharashtra", north=21.15, south=20.85, east=75.75, west=75.45),
    RegionBounds("Nashik", "Maharashtra", north=20.05, south=19.95, east=73.85, west=73.75),
    RegionBounds("Mumbai", "Maharashtra", north=19.25, south=18.95, east=72.90, west=72.80),
    RegionBounds("Pune", "Maharashtra", north=18.60, south=18.45, east=73.90, west=73.80),
)

# Wider "<city> Area" boxes inside the Maharashtra envelope
AREA_REGIONS: Tuple[RegionBounds, ...] = (
    RegionBounds("Jalgaon Area", "Maharashtra", north=21.5, south=20.5, east=76.0, west=75.0),
    RegionBounds("Nashik Area", "Maharashtra", north=20.2, south=19.8, east=74.0, west=73.6),
)
# Returned when no box matches
MAHARASHTRA_ENVELOPE = RegionBounds("Maharashtra Region", "Maharashtra", north=22.0, south=15.60, east=80.90, west=72.60)

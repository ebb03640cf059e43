"""Free-text relevance: tiered place scoring and binary station matching"""

from typing import Iterable, List, Mapping, Optional, Tuple

from app.schemas.station import KeywordHint, PlaceMatch, StationRecord
from app.services.gazetteer import KEYWORD, PLACES, PlaceEntry

EXACT = "exact"
KEY_PARTIAL = "key_partial"
NAME = "name"
ALIAS = "alias"
LANDMARK = "landmark"
REGION = "region"

SCORE_TIERS = {
    EXACT: 100,
    KEY_PARTIAL: 80,
    NAME: 70,
    ALIAS: 60,
    LANDMARK: 50,
    REGION: 30,
}

STATION_TEXT_FIELDS = ("name", "address", "city", "area")


def _normalize(text: Optional[str]) -> str:
    return (text or "").strip().lower()


def _overlaps(query: str, candidates: Iterable[str]) -> bool:
    for candidate in candidates:
        value = _normalize(candidate)
        if value and (query in value or value in query):
            return True
    return False


def score_place(query: str, entry: PlaceEntry) -> Tuple[int, Optional[str]]:
    """
    Score a gazetteer entry against a query.

    Returns (score, match kind); (0, None) when nothing matches. The first
    tier that matches wins, in the order of SCORE_TIERS.
    """
    q = _normalize(query)
    if not q:
        return 0, None

    key = entry.key
    if key == q:
        kind = EXACT
    elif q in key or key in q:
        kind = KEY_PARTIAL
    elif q in _normalize(entry.display_name):
        kind = NAME
    elif _overlaps(q, entry.aliases):
        kind = ALIAS
    elif _overlaps(q, entry.landmarks):
        kind = LANDMARK
    elif entry.region_label and q in _normalize(entry.region_label):
        kind = REGION
    else:
        return 0, None
    return SCORE_TIERS[kind], kind


def to_place_match(entry: PlaceEntry, score: int, kind: str) -> PlaceMatch:
    coords = entry.coordinates
    return PlaceMatch(
        key=entry.key,
        name=entry.display_name,
        kind=entry.kind,
        lat=coords.lat if coords else None,
        lng=coords.lng if coords else None,
        state=entry.region_label,
        city=entry.city,
        aliases=sorted(entry.aliases),
        landmarks=sorted(entry.landmarks),
        match_score=score,
        match_kind=kind,
    )


def search_places(
    query: str,
    limit: int = 10,
    places: Mapping[str, PlaceEntry] = PLACES,
) -> List[PlaceMatch]:
    """Scored place candidates, best first. Keyword entries never resolve to a place."""
    scored = []
    for entry in places.values():
        if entry.kind == KEYWORD:
            continue
        score, kind = score_place(query, entry)
        if score > 0:
            scored.append((score, kind, entry))

    # stable sort: ties keep gazetteer order
    scored.sort(key=lambda item: item[0], reverse=True)
    return [to_place_match(entry, score, kind) for score, kind, entry in scored[:limit]]


def keyword_hints(query: str, places: Mapping[str, PlaceEntry] = PLACES) -> List[KeywordHint]:
    q = _normalize(query)
    if not q:
        return []
    return [
        KeywordHint(key=entry.key, search_hint=entry.search_hint)
        for entry in places.values()
        if entry.kind == KEYWORD and (entry.key in q or q in entry.key)
    ]


def station_matches(query: str, record: StationRecord) -> bool:
    """Case-insensitive substring match on name, address, city or area"""
    q = _normalize(query)
    if not q:
        return True
    for field_name in STATION_TEXT_FIELDS:
        value = getattr(record, field_name, None)
        if value and q in value.lower():
            return True
    return False


def filter_stations(query: Optional[str], records: List[StationRecord]) -> List[StationRecord]:
    if not _normalize(query):
        return records
    return [r for r in records if station_matches(query, r)]

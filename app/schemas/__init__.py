# app/schemas/__init__.py
from .station import (
    Coordinates,
    StationRecord,
    PlaceMatch,
    KeywordHint,
    LocationResult,
    TextSearchResult,
    ReverseLocation,
    ErrorResponse,
    NotFoundDetail,
    NotFoundResponse,
)

"""Pydantic schemas for the station discovery API"""

from typing import Any, Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field


class Coordinates(BaseModel):
    """WGS 84 coordinate pair."""
    lat: float = Field(..., description="Latitude")
    lng: float = Field(..., description="Longitude")


class StationRecord(BaseModel):
    """Normalized station rebuilt from a source document on every discovery call."""
    model_config = ConfigDict(populate_by_name=True)

    id: str = Field(..., description="Provenance-qualified station id")
    doc_id: str = Field(..., alias="docId", description="Native document id in its source")
    name: str = Field("EV Station", description="Station name")
    address: Optional[str] = Field(None, description="Street address")
    city: Optional[str] = Field(None, description="City")
    area: Optional[str] = Field(None, description="Area / locality")
    state: Optional[str] = Field(None, description="State / region")
    coordinates: Coordinates
    source_tag: str = Field(..., alias="sourceTag", description="top-level | nested")
    collection: Optional[str] = Field(None, description="Source collection name")
    status: str = Field("active", description="Station status")
    owner_id: Optional[str] = Field(None, alias="ownerId", description="Owner reference")
    distance_km: Optional[float] = Field(None, alias="distanceKm", description="Distance from the reference point")

    def public_dict(self) -> Dict[str, Any]:
        """camelCase dict for JSON responses; distanceKm is omitted when unset."""
        data = self.model_dump(by_alias=True)
        if data.get("distanceKm") is None:
            data.pop("distanceKm", None)
        return data


class PlaceMatch(BaseModel):
    """A gazetteer entry scored against a free-text query."""
    key: str
    name: str
    kind: str
    lat: Optional[float] = None
    lng: Optional[float] = None
    state: Optional[str] = None
    city: Optional[str] = None
    aliases: List[str] = Field(default_factory=list)
    landmarks: List[str] = Field(default_factory=list)
    match_score: int = Field(..., alias="matchScore")
    match_kind: str = Field(..., alias="matchKind")

    model_config = ConfigDict(populate_by_name=True)


class KeywordHint(BaseModel):
    key: str
    search_hint: Optional[str] = Field(None, alias="searchHint")

    model_config = ConfigDict(populate_by_name=True)


class LocationResult(BaseModel):
    """Place-resolution result returned by LocatePlace."""
    name: str
    address: str
    lat: float
    lng: float
    key: Optional[str] = None
    match_kind: str = Field(..., alias="matchKind", description="exact | key_partial | name | alias | landmark | region | anchor")
    alternatives: List[PlaceMatch] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class TextSearchResult(BaseModel):
    query: str
    stations: List[StationRecord]
    count: int
    places: List[PlaceMatch] = Field(default_factory=list, description="Top place matches")
    best_place: Optional[PlaceMatch] = Field(None, alias="bestPlace")
    hints: List[KeywordHint] = Field(default_factory=list)

    model_config = ConfigDict(populate_by_name=True)


class ReverseLocation(BaseModel):
    """Coordinates mapped back to a coarse place description."""
    name: str
    address: str
    latitude: float
    longitude: float
    city: str
    state: str
    country: str = "India"
    source: str = Field("regions", description="provider | regions")


class ErrorResponse(BaseModel):
    """Body of 400 / 503 responses"""
    detail: str = Field(..., description="Error message")


class NotFoundDetail(BaseModel):
    error: str = Field(..., description="Error message")
    suggestions: List[str] = Field(default_factory=list, description="Alternative queries")


class NotFoundResponse(BaseModel):
    """Body of 404 responses"""
    detail: NotFoundDetail

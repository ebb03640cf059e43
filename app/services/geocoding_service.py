"""Geocoding service for lat/lng to place mapping"""

import logging
from typing import Optional

import httpx

from app.core.config import settings
from app.schemas.station import ReverseLocation
from app.services.gazetteer import AREA_REGIONS, MAHARASHTRA_ENVELOPE, REGIONS

logger = logging.getLogger(__name__)

DEFAULT_COUNTRY = "India"


class GeocodingService:
    """Service for converting coordinates to place descriptions"""

    def __init__(
        self,
        enabled: bool = settings.REVERSE_GEOCODE_ENABLED,
        provider_url: str = settings.REVERSE_GEOCODE_PROVIDER_URL,
        timeout: float = settings.REVERSE_GEOCODE_TIMEOUT_SECONDS,
    ):
        self.enabled = enabled
        self.provider_url = provider_url
        self.timeout = timeout

    async def _reverse_from_provider(self, lat: float, lng: float) -> Optional[ReverseLocation]:
        """
        Ask Nominatim (OpenStreetMap) for the place at lat/lng

        Returns:
            ReverseLocation built from the address components, or
            None if the provider fails or returns nothing usable
        """
        params = {
            "format": "json",
            "lat": lat,
            "lon": lng,
            "zoom": 10,  # City/district level
            "addressdetails": 1,
            "accept-language": "en",
        }
        headers = {
            "User-Agent": "EVStationDiscovery/1.0"
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.get(self.provider_url, params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
        except Exception as e:
            logger.warning(f"Reverse geocoding provider failed for ({lat}, {lng}): {e}")
            return None

        address = data.get("address") if isinstance(data, dict) else None
        if not address:
            logger.warning(f"No address found for coordinates: {lat}, {lng}")
            return None

        city = (
            address.get("city") or
            address.get("town") or
            address.get("county") or
            address.get("state_district") or
            ""
        )
        state = address.get("state") or ""
        if not city and not state:
            logger.warning(f"Could not extract address components from: {address}")
            return None

        name = city or state
        result = ReverseLocation(
            name=name,
            address=data.get("display_name") or ", ".join(p for p in (city, state) if p),
            latitude=lat,
            longitude=lng,
            city=city or name,
            state=state or name,
            country=address.get("country") or DEFAULT_COUNTRY,
            source="provider",
        )
        logger.info(f"Reverse geocoded ({lat}, {lng}) -> {result.address}")
        return result

    def reverse_from_regions(self, lat: float, lng: float) -> ReverseLocation:
        """Match lat/lng against the static region boxes; always returns something"""
        for region in REGIONS:
            if region.contains(lat, lng):
                return ReverseLocation(
                    name=region.name,
                    address=f"{region.name}, {region.state}, {DEFAULT_COUNTRY}",
                    latitude=lat,
                    longitude=lng,
                    city=region.name,
                    state=region.state,
                )

        region = MAHARASHTRA_ENVELOPE
        for area in AREA_REGIONS:
            if area.contains(lat, lng):
                region = area
                break
        return ReverseLocation(
            name=region.name,
            address=f"{region.name}, {region.state}, {DEFAULT_COUNTRY}",
            latitude=lat,
            longitude=lng,
            city=region.name,
            state=region.state,
        )

    async def reverse_geocode(self, lat: float, lng: float) -> ReverseLocation:
        """
        Convert latitude/longitude to a place description

        Uses the configured provider when enabled and falls back to the
        static region boxes otherwise or when the provider fails.
        """
        if self.enabled:
            result = await self._reverse_from_provider(lat, lng)
            if result is not None:
                return result
        return self.reverse_from_regions(lat, lng)


# Global instance
geocoding_service = GeocodingService()

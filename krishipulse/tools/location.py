# krishipulse/tools/location.py
import logging
import time
from typing import Any, Dict, List, Optional

from ..config import settings
from ..http import get_http_client
from ..models.domain import Address, Coordinates, LocationData
from ..schemas import LocationRequest, LocationResolution
from ..services.geography import classify_agricultural_zone, classify_soil_type
from ..utils.cache import flush_prefix, get_json, set_json

log = logging.getLogger("krishipulse.tools.location")

def t(): return time.perf_counter()

MIN_CONFIDENCE = 0.3
COORDINATE_CONFIDENCE = 0.8


def address_confidence(result: Dict[str, Any], query: str) -> float:
    """0.5 base, +0.2 country is India, +0.1 state, +0.1 city, up to +0.1 word overlap."""
    confidence = 0.5
    addr = result.get("address") or {}
    if "india" in str(addr.get("country", "")).lower():
        confidence += 0.2
    if addr.get("state"):
        confidence += 0.1
    if addr.get("city"):
        confidence += 0.1

    words = query.lower().split()
    display = set(str(result.get("display_name", "")).lower().split())
    if words:
        confidence += sum(1 for w in words if w in display) / len(words) * 0.1
    return min(confidence, 1.0)


def search_strategies(address: str, country: str) -> List[str]:
    words = address.split()
    queries = [
        f"{address}, {country}",
        address,
        f"{address}, India",
        f"{' '.join(words[:2])}, {country}",
        f"{' '.join(words[-2:])}, {country}",
    ]
    return list(dict.fromkeys(queries))


def _address_from(result: Dict[str, Any], fallback_name: str) -> Address:
    addr = result.get("address") or {}
    return Address(
        display_name=result.get("display_name") or fallback_name,
        village=addr.get("village") or addr.get("hamlet") or addr.get("town"),
        district=addr.get("state_district") or addr.get("county") or addr.get("city"),
        state=addr.get("state"),
        country=addr.get("country"),
    )


class NominatimResolver:
    """LocationResolver over OpenStreetMap Nominatim (free, rate limited, needs a User-Agent)."""

    def __init__(self, base_url: Optional[str] = None, user_agent: Optional[str] = None):
        self.base_url = (base_url or settings.NOMINATIM_URL).rstrip("/")
        self.headers = {
            "User-Agent": user_agent or settings.GEO_USER_AGENT,
            "Accept-Language": "en-IN",
        }

    async def _get(self, path: str, params: Dict[str, Any]) -> Any:
        client = get_http_client()
        r = await client.get(f"{self.base_url}/{path}", params=params, headers=self.headers)
        r.raise_for_status()
        return r.json()

    async def geocode(self, address: str, country: str) -> Optional[Dict[str, Any]]:
        """Best match across several query phrasings, or None."""
        key = f"geo:search:{address.lower()}:{country.lower()}"
        hit = await get_json(key, "geocode")
        if hit:
            return hit

        for query in search_strategies(address, country):
            start = t()
            try:
                results = await self._get("search", {"q": query, "format": "json", "limit": 3, "addressdetails": 1})
            except Exception as e:
                log.warning("geocoding strategy %r failed: %s", query, e)
                continue
            if not results:
                continue

            best = max(results, key=lambda r: address_confidence(r, query))
            confidence = address_confidence(best, query)
            log.info("geocoding %r: %dms confidence=%.2f", query, round((t() - start) * 1000), confidence)
            if confidence > MIN_CONFIDENCE:
                best = dict(best, confidence=confidence)
                await set_json(key, best, "geocode")
                return best
        return None

    async def reverse(self, lat: float, lon: float) -> Optional[Dict[str, Any]]:
        key = f"geo:reverse:{lat:.5f}:{lon:.5f}"
        hit = await get_json(key, "geocode")
        if hit:
            return hit
        try:
            result = await self._get("reverse", {"lat": lat, "lon": lon, "format": "json",
                                                 "addressdetails": 1, "zoom": 18})
        except Exception as e:
            log.warning("reverse geocoding %.4f,%.4f failed: %s", lat, lon, e)
            return None
        if not result or "error" in result:
            return None
        await set_json(key, result, "geocode")
        return result

    async def resolve_farmer_location(self, request: LocationRequest) -> LocationResolution:
        country = request.country or settings.DEFAULT_COUNTRY

        if request.coordinates is not None:
            coords = request.coordinates
            result = await self.reverse(coords.lat, coords.lon)
            address = _address_from(result, "Farmer Field") if result else Address(display_name="Farmer Field", country=country)
            confidence = COORDINATE_CONFIDENCE
        elif request.address:
            result = await self.geocode(request.address, country)
            if result is None:
                return LocationResolution(success=False, error=f"No coordinates found for address '{request.address}'")
            coords = Coordinates(lat=float(result["lat"]), lon=float(result["lon"]))
            address = _address_from(result, request.address)
            confidence = result["confidence"]
        else:
            return LocationResolution(success=False, error="Either coordinates or address must be provided")

        return LocationResolution(success=True, data=LocationData(
            coordinates=coords,
            address=address,
            agricultural_zone=classify_agricultural_zone(coords.lat, coords.lon),
            soil_classification=classify_soil_type(coords.lat, coords.lon),
            confidence=confidence,
            source="OpenStreetMap",
        ))

    def clear_cache(self) -> int:
        return flush_prefix("geo:")

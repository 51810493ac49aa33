# krishipulse/services/location.py
import asyncio
import logging
import time
from typing import Optional

from ..adapters.base import LocationResolver
from ..config import settings
from ..errors import LocationError
from ..models.domain import LocationData
from ..schemas import FarmerInput, LocationRequest
from .geography import validate_coordinates

log = logging.getLogger("krishipulse.location")

def t(): return time.perf_counter()


def build_location_request(farmer_input: FarmerInput) -> LocationRequest:
    """
    Collapse the three accepted input shapes into one request:
    top-level coordinates, a free-text address, or a nested
    location {village, district, state, coordinates}.
    """
    coordinates = farmer_input.coordinates
    address = farmer_input.address
    nested = farmer_input.location

    if nested is not None:
        if coordinates is None and nested.coordinates is not None:
            coordinates = nested.coordinates
        if not address:
            parts = [p for p in (nested.village, nested.district, nested.state) if p]
            if parts:
                address = ", ".join(parts)

    return LocationRequest(
        farmer_id=farmer_input.farmer_id,
        coordinates=coordinates,
        address=address,
        country=farmer_input.country or settings.DEFAULT_COUNTRY,
    )


class LocationStage:
    """Step 1: resolve the farmer's field. Every failure here is fatal."""

    def __init__(self, resolver: LocationResolver, timeout: Optional[float] = None):
        self.resolver = resolver
        self.timeout = timeout if timeout is not None else settings.LOCATION_TIMEOUT_SEC

    async def run(self, farmer_input: FarmerInput) -> LocationData:
        request = build_location_request(farmer_input)

        if request.coordinates is None and not request.address:
            raise LocationError("Either coordinates or address must be provided")

        if request.coordinates is not None:
            errors = validate_coordinates(request.coordinates.lat, request.coordinates.lon)
            if errors:
                raise LocationError(f"Invalid coordinates: {', '.join(errors)}", errors)

        t0 = t()
        try:
            resolution = await asyncio.wait_for(
                self.resolver.resolve_farmer_location(request), timeout=self.timeout
            )
        except asyncio.TimeoutError as e:
            raise LocationError(f"Location resolution timed out after {self.timeout:.0f}s") from e
        except LocationError:
            raise
        except Exception as e:
            raise LocationError(f"Location resolution failed: {e}") from e

        if not resolution.success or resolution.data is None:
            raise LocationError(resolution.error or "Location could not be resolved")

        data = resolution.data
        errors = validate_coordinates(data.coordinates.lat, data.coordinates.lon)
        if errors:
            raise LocationError(f"Resolved coordinates out of range: {', '.join(errors)}", errors)

        log.info(
            "location resolved farmer=%s coords=%.4f,%.4f confidence=%.2f in %dms",
            farmer_input.farmer_id, data.coordinates.lat, data.coordinates.lon,
            data.confidence, round((t() - t0) * 1000),
        )
        return data

# krishipulse/services/environment.py
import asyncio
import logging
import time
from typing import Optional

from ..adapters.base import EnvironmentalSource
from ..config import settings
from ..errors import StageError
from ..models.domain import Coordinates, EnvironmentalData
from ..schemas import Region
from ..utils.clock import Clock, SystemClock
from ..utils.tasks import gather_or_cancel
from .fallback import FallbackGenerator

log = logging.getLogger("krishipulse.environment")

def t(): return time.perf_counter()


class EnvironmentalStage:
    """
    Step 2: satellite + soil + land-use for the field, fetched concurrently.
    Any sub-failure swaps the whole stage for synthetic data, so real and
    synthetic fields never mix inside one EnvironmentalData.
    """

    def __init__(self,
                 source: Optional[EnvironmentalSource],
                 fallback: FallbackGenerator,
                 clock: Optional[Clock] = None,
                 timeout: Optional[float] = None):
        self.source = source
        self.fallback = fallback
        self.clock = clock or SystemClock()
        self.timeout = timeout if timeout is not None else settings.ENVIRONMENTAL_TIMEOUT_SEC

    async def _collect(self, coordinates: Coordinates) -> EnvironmentalData:
        if self.source is None:
            raise StageError("environmental", "no environmental source configured")

        region = Region(name="Farmer Field", lat=coordinates.lat, lon=coordinates.lon)
        satellite, soil, land_use = await gather_or_cancel(
            self.source.get_satellite_data(region),
            self.source.get_soil_data(region),
            self.source.get_land_use_data(region),
        )
        return EnvironmentalData(
            satellite=satellite,
            soil=soil,
            land_use=land_use,
            timestamp=self.clock.now(),
            source="live",
            quality="high",
        )

    async def run(self, coordinates: Coordinates) -> EnvironmentalData:
        t0 = t()
        try:
            data = await asyncio.wait_for(self._collect(coordinates), timeout=self.timeout)
        except Exception as e:
            reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            log.warning("environmental data collection failed (%s); using fallback for %.4f,%.4f",
                        reason, coordinates.lat, coordinates.lon)
            return self.fallback.environmental(coordinates)

        log.info("environmental data collected in %dms", round((t() - t0) * 1000))
        return data

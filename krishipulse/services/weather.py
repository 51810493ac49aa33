# krishipulse/services/weather.py
import asyncio
import logging
import time
from typing import Optional

from ..adapters.base import WeatherSource
from ..config import settings
from ..errors import StageError
from ..models.domain import Coordinates, Forecast, WeatherData
from ..utils.tasks import gather_or_cancel
from .fallback import FallbackGenerator, agricultural_impact

log = logging.getLogger("krishipulse.weather")

def t(): return time.perf_counter()


class WeatherStage:
    """Step 3: current conditions + daily forecast, fetched concurrently; atomic fallback."""

    def __init__(self,
                 source: Optional[WeatherSource],
                 fallback: FallbackGenerator,
                 timeout: Optional[float] = None):
        self.source = source
        self.fallback = fallback
        self.timeout = timeout if timeout is not None else settings.WEATHER_TIMEOUT_SEC

    async def _collect(self, coordinates: Coordinates) -> WeatherData:
        if self.source is None:
            raise StageError("weather", "no weather source configured")

        current, daily = await gather_or_cancel(
            self.source.get_current_weather(coordinates.lat, coordinates.lon),
            self.source.get_daily_forecast(coordinates.lat, coordinates.lon),
        )
        return WeatherData(
            current=current,
            forecast=Forecast(daily=daily),
            agricultural_impact=agricultural_impact(current),
            source="live",
        )

    async def run(self, coordinates: Coordinates) -> WeatherData:
        t0 = t()
        try:
            data = await asyncio.wait_for(self._collect(coordinates), timeout=self.timeout)
        except Exception as e:
            reason = "timed out" if isinstance(e, asyncio.TimeoutError) else str(e)
            log.warning("weather data collection failed (%s); using fallback for %.4f,%.4f",
                        reason, coordinates.lat, coordinates.lon)
            return self.fallback.weather(coordinates)

        days = len(data.forecast.daily.time) if data.forecast.daily else 0
        log.info("weather collected in %dms: temp=%s forecast_days=%d",
                 round((t() - t0) * 1000), data.current.temperature if data.current else None, days)
        return data

# krishipulse/tools/weather.py
import datetime as dt
import logging
import time
from typing import Any, Dict, Optional

from ..config import settings
from ..http import get_http_client
from ..models.domain import CurrentWeather, DailyForecast
from ..utils.cache import get_json, set_json

log = logging.getLogger("krishipulse.tools.weather")

def t(): return time.perf_counter()


def _daykey(lat: float, lon: float, days: int) -> str:
    today = dt.datetime.now(dt.timezone.utc).date().isoformat()
    # round to ~1km cell to increase hit-rate
    return f"wx:{round(lat, 2)}:{round(lon, 2)}:{days}d:{today}"


async def fetch_forecast(lat: float, lon: float, days: int = 7) -> Dict[str, Any]:
    """Current conditions + daily block from Open-Meteo (no API key)."""
    start = t()
    params = {
        "latitude": lat,
        "longitude": lon,
        "current": "temperature_2m,relative_humidity_2m,wind_speed_10m",
        "daily": "temperature_2m_max,temperature_2m_min,precipitation_sum",
        "forecast_days": days,
        "timezone": "auto",
        "temperature_unit": "celsius",
        "windspeed_unit": "kmh",
    }
    client = get_http_client()
    r = await client.get(settings.OPEN_METEO_URL, params=params)
    r.raise_for_status()
    log.info("Open-Meteo %.4f,%.4f: %dms", lat, lon, round((t() - start) * 1000))
    return r.json()


async def fetch_forecast_cached(lat: float, lon: float, days: int = 7) -> Dict[str, Any]:
    key = _daykey(lat, lon, days)
    hit = await get_json(key, "weather")
    if hit:
        return hit
    fresh = await fetch_forecast(lat, lon, days)
    await set_json(key, fresh, "weather")
    return fresh


class OpenMeteoWeather:
    """WeatherSource backed by Open-Meteo; one cached request serves both calls."""

    def __init__(self, days: Optional[int] = None):
        self.days = days or settings.WX_FORECAST_DAYS

    async def get_current_weather(self, lat: float, lon: float) -> CurrentWeather:
        data = await fetch_forecast_cached(lat, lon, self.days)
        cur = data.get("current") or {}
        return CurrentWeather(
            temperature=cur.get("temperature_2m"),
            humidity=cur.get("relative_humidity_2m"),
            wind_speed=cur.get("wind_speed_10m"),
            timestamp=cur.get("time"),
        )

    async def get_daily_forecast(self, lat: float, lon: float) -> DailyForecast:
        data = await fetch_forecast_cached(lat, lon, self.days)
        daily = data.get("daily") or {}
        return DailyForecast(
            time=daily.get("time") or [],
            temperature_2m_max=daily.get("temperature_2m_max") or [],
            temperature_2m_min=daily.get("temperature_2m_min") or [],
            precipitation_sum=daily.get("precipitation_sum") or [],
        )

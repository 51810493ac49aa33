import asyncio
import datetime as dt
from typing import List, Optional

import pytest

from krishipulse.models.domain import (
    Address, AnalysisResult, Coordinates, CurrentWeather, DailyForecast, EnvironmentalData, Forecast, LandUseData,
    LocationData, Measurement, SatelliteData, SoilData, WeatherData,
)
from krishipulse.schemas import AlertResult, ChannelResult, LocationResolution
from krishipulse.services.geography import classify_agricultural_zone, classify_soil_type
from krishipulse.utils.cache import cache
from krishipulse.utils.clock import FixedClock

# mid-July: Kharif
KHARIF_DAY = dt.datetime(2025, 7, 15, 6, 30, tzinfo=dt.timezone.utc)


@pytest.fixture
def clock():
    return FixedClock(KHARIF_DAY)


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


def make_location(lat: float = 21.1458, lon: float = 79.0882) -> LocationData:
    return LocationData(
        coordinates=Coordinates(lat=lat, lon=lon),
        address=Address(display_name="Test Field", state="Maharashtra", country="India"),
        agricultural_zone=classify_agricultural_zone(lat, lon),
        soil_classification=classify_soil_type(lat, lon),
        confidence=0.9,
        source="test",
    )


def make_env(moisture: Optional[float] = 0.3, ph: Optional[float] = 6.8,
             ndvi: Optional[float] = 0.5, when: dt.datetime = KHARIF_DAY) -> EnvironmentalData:
    return EnvironmentalData(
        satellite=SatelliteData(ndvi=None if ndvi is None else Measurement(value=ndvi, unit="index")),
        soil=SoilData(
            soil_moisture=None if moisture is None else Measurement(value=moisture, unit="m³/m³"),
            soil_ph=None if ph is None else Measurement(value=ph, unit="pH"),
        ),
        land_use=LandUseData(),
        timestamp=when,
    )


def make_weather(temp: Optional[float] = 25.0, humidity: Optional[float] = 60.0,
                 precipitation: Optional[List[float]] = None,
                 max_temps: Optional[List[float]] = None) -> WeatherData:
    precipitation = precipitation if precipitation is not None else [5.0] * 7
    max_temps = max_temps if max_temps is not None else [30.0] * len(precipitation)
    daily = DailyForecast(
        time=[f"2025-07-{15 + i:02d}" for i in range(len(precipitation))],
        temperature_2m_max=max_temps,
        temperature_2m_min=[t - 8 for t in max_temps],
        precipitation_sum=precipitation,
    )
    return WeatherData(
        current=CurrentWeather(temperature=temp, humidity=humidity, wind_speed=8.0),
        forecast=Forecast(daily=daily),
    )


# ---------- collaborator fakes ----------

class FakeResolver:
    def __init__(self, location: Optional[LocationData] = None, exc: Optional[Exception] = None,
                 success: bool = True, error: Optional[str] = None):
        self.location = location or make_location()
        self.exc = exc
        self.success = success
        self.error = error
        self.requests = []

    async def resolve_farmer_location(self, request):
        self.requests.append(request)
        if self.exc is not None:
            raise self.exc
        if not self.success:
            return LocationResolution(success=False, error=self.error)
        return LocationResolution(success=True, data=self.location)


class FakeEnvironmentalSource:
    def __init__(self, env: Optional[EnvironmentalData] = None, fail_soil: bool = False,
                 satellite_delay: float = 0):
        self.env = env or make_env()
        self.fail_soil = fail_soil
        self.satellite_delay = satellite_delay
        self.satellite_cancelled = False

    async def get_satellite_data(self, region):
        if self.satellite_delay:
            try:
                await asyncio.sleep(self.satellite_delay)
            except asyncio.CancelledError:
                self.satellite_cancelled = True
                raise
        return self.env.satellite

    async def get_soil_data(self, region):
        if self.fail_soil:
            raise RuntimeError("soil service unavailable")
        return self.env.soil

    async def get_land_use_data(self, region):
        return self.env.land_use


class FakeWeatherSource:
    def __init__(self, weather: Optional[WeatherData] = None, exc: Optional[Exception] = None, delay: float = 0):
        self.weather = weather or make_weather()
        self.exc = exc
        self.delay = delay

    async def get_current_weather(self, lat, lon):
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.exc is not None:
            raise self.exc
        return self.weather.current

    async def get_daily_forecast(self, lat, lon):
        if self.exc is not None:
            raise self.exc
        return self.weather.forecast.daily


class FakeImageAnalyzer:
    def __init__(self, diseases=None, health: str = "Good", fail: bool = False):
        self.diseases = diseases if diseases is not None else []
        self.health = health
        self.fail = fail
        self.calls = []

    async def analyze_image(self, buffer, kind):
        self.calls.append(kind)
        if self.fail:
            raise RuntimeError("model offline")
        if kind == "disease-detection":
            return AnalysisResult(analysis_type=kind, results=self.diseases)
        if kind == "soil-analysis":
            return AnalysisResult(analysis_type=kind, results={"soilType": "Clay"})
        return AnalysisResult(analysis_type=kind, results={"overallHealth": self.health})


class FakeNotifier:
    """Replays canned AlertResults; the last one repeats."""

    def __init__(self, *results: AlertResult):
        self.results = list(results) or [ok_alert()]
        self.calls = []

    async def send_alert(self, phone_number, alert, language):
        self.calls.append((phone_number, alert, language))
        idx = min(len(self.calls) - 1, len(self.results) - 1)
        return self.results[idx]


def ok_alert() -> AlertResult:
    return AlertResult(
        success=True,
        sms=ChannelResult(success=True, sid="SM1", status="queued"),
        voice=ChannelResult(success=True, sid="CA1", status="queued"),
    )


def daily_limit_alert() -> AlertResult:
    return AlertResult(
        success=True,
        sms=ChannelResult(success=False, error="Account exceeded the daily messages limit", code=63038),
        voice=ChannelResult(success=True, sid="CA2", status="queued"),
    )

from typing import Protocol

from ..models.domain import (
    AnalysisResult, CurrentWeather, DailyForecast, LandUseData, SatelliteData, SoilData,
)
from ..schemas import AlertData, AlertResult, LocationRequest, LocationResolution, Region


class LocationResolver(Protocol):
    async def resolve_farmer_location(self, request: LocationRequest) -> LocationResolution:
        """Turn coordinates or an address into canonical LocationData."""
        ...


class EnvironmentalSource(Protocol):
    async def get_satellite_data(self, region: Region) -> SatelliteData:
        ...

    async def get_soil_data(self, region: Region) -> SoilData:
        ...

    async def get_land_use_data(self, region: Region) -> LandUseData:
        ...


class WeatherSource(Protocol):
    async def get_current_weather(self, lat: float, lon: float) -> CurrentWeather:
        ...

    async def get_daily_forecast(self, lat: float, lon: float) -> DailyForecast:
        ...


class ImageAnalyzer(Protocol):
    async def analyze_image(self, buffer: bytes, kind: str) -> AnalysisResult:
        """kind is one of comprehensive | crop-health | soil-analysis | disease-detection."""
        ...


class Notifier(Protocol):
    async def send_alert(self, phone_number: str, alert: AlertData, language: str) -> AlertResult:
        """Send the alert as SMS and voice call; never raises for provider errors."""
        ...

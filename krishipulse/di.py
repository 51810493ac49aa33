"""
Dependency injection container for the application.
Constructs singletons and provides them to routes.
"""
from typing import Optional

from krishipulse.services.notifications import DispatchPolicy
from krishipulse.services.pipeline import FarmerPipeline
from krishipulse.tools.location import NominatimResolver
from krishipulse.tools.twilio_notifier import TwilioNotifier
from krishipulse.tools.weather import OpenMeteoWeather

# Singletons - created once and reused
_resolver: Optional[NominatimResolver] = None
_weather: Optional[OpenMeteoWeather] = None
_notifier: Optional[TwilioNotifier] = None
_policy: Optional[DispatchPolicy] = None
_pipeline: Optional[FarmerPipeline] = None

def get_location_resolver() -> NominatimResolver:
    """Get singleton Nominatim resolver."""
    global _resolver
    if _resolver is None:
        _resolver = NominatimResolver()
    return _resolver

def get_weather_source() -> OpenMeteoWeather:
    """Get singleton Open-Meteo client."""
    global _weather
    if _weather is None:
        _weather = OpenMeteoWeather()
    return _weather

def get_notifier() -> TwilioNotifier:
    """Get singleton Twilio notifier."""
    global _notifier
    if _notifier is None:
        _notifier = TwilioNotifier()
    return _notifier

def get_dispatch_policy() -> DispatchPolicy:
    """Get the process-wide dispatch policy."""
    global _policy
    if _policy is None:
        _policy = DispatchPolicy()
    return _policy

def get_pipeline() -> FarmerPipeline:
    """Get singleton farmer pipeline.

    No satellite or image-model client ships with the service, so those
    stages always serve synthetic data until one is wired in here.
    """
    global _pipeline
    if _pipeline is None:
        _pipeline = FarmerPipeline(
            resolver=get_location_resolver(),
            environmental_source=None,
            weather_source=get_weather_source(),
            image_analyzer=None,
            notifier=get_notifier(),
            policy=get_dispatch_policy(),
        )
    return _pipeline

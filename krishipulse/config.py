# krishipulse/config.py
import os
from dotenv import load_dotenv
from pathlib import Path

dotenv_path = Path(__file__).parents[1] / '.env'
load_dotenv(dotenv_path)


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


class Settings:
    # --- Runtime ---
    APP_ENV: str = os.getenv("APP_ENV", "development")
    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    # --- Twilio (SMS + voice) ---
    TWILIO_ACCOUNT_SID: str = os.getenv("TWILIO_ACCOUNT_SID", "")
    TWILIO_AUTH_TOKEN: str  = os.getenv("TWILIO_AUTH_TOKEN", "")
    TWILIO_PHONE_NUMBER: str = os.getenv("TWILIO_PHONE_NUMBER", "")
    TWILIO_VOICE_NUMBER: str = os.getenv("TWILIO_VOICE_NUMBER", "")   # falls back to TWILIO_PHONE_NUMBER

    # --- Notification knobs ---
    DEFAULT_PHONE_NUMBER: str = os.getenv("DEFAULT_PHONE_NUMBER", "")
    DEFAULT_LANGUAGE: str = os.getenv("DEFAULT_LANGUAGE", "hi")
    SKIP_NOTIFICATIONS: bool = _flag("SKIP_NOTIFICATIONS")
    SMS_MAX_CHARS: int = int(os.getenv("SMS_MAX_CHARS", "160"))

    # --- Providers ---
    OPEN_METEO_URL: str = os.getenv("OPEN_METEO_URL", "https://api.open-meteo.com/v1/forecast")
    NOMINATIM_URL: str  = os.getenv("NOMINATIM_URL", "https://nominatim.openstreetmap.org")
    GEO_USER_AGENT: str = os.getenv("GEO_USER_AGENT", "KrishiPulse/1.0 (location-service)")
    DEFAULT_COUNTRY: str = os.getenv("DEFAULT_COUNTRY", "India")

    # Weather
    WX_FORECAST_DAYS: int = int(os.getenv("WX_FORECAST_DAYS", "7"))

    # --- Per-stage deadlines (seconds) ---
    LOCATION_TIMEOUT_SEC: float      = float(os.getenv("LOCATION_TIMEOUT_SEC", "20"))
    ENVIRONMENTAL_TIMEOUT_SEC: float = float(os.getenv("ENVIRONMENTAL_TIMEOUT_SEC", "30"))
    WEATHER_TIMEOUT_SEC: float       = float(os.getenv("WEATHER_TIMEOUT_SEC", "15"))
    IMAGE_TIMEOUT_SEC: float         = float(os.getenv("IMAGE_TIMEOUT_SEC", "45"))
    NOTIFICATION_TIMEOUT_SEC: float  = float(os.getenv("NOTIFICATION_TIMEOUT_SEC", "20"))

    # --- Shared HTTP client ---
    HTTP_CONNECT_TIMEOUT_SEC: float = float(os.getenv("HTTP_CONNECT_TIMEOUT_SEC", "10"))
    HTTP_READ_TIMEOUT_SEC: float    = float(os.getenv("HTTP_READ_TIMEOUT_SEC", "25"))
    HTTP_MAX_CONNECTIONS: int       = int(os.getenv("HTTP_MAX_CONNECTIONS", "100"))

    # --- Cache TTLs (seconds) ---
    WEATHER_CACHE_TTL_SEC: int = int(os.getenv("WEATHER_CACHE_TTL_SEC", str(3 * 3600)))
    GEOCODE_CACHE_TTL_SEC: int = int(os.getenv("GEOCODE_CACHE_TTL_SEC", str(7 * 24 * 3600)))
    CACHE_SWEEP_SEC: int       = int(os.getenv("CACHE_SWEEP_SEC", "3600"))

    @property
    def is_test_env(self) -> bool:
        return self.APP_ENV.lower() == "test"

settings = Settings()

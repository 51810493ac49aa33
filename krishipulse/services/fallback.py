# krishipulse/services/fallback.py
"""
Synthetic, location- and season-aware stand-ins for every pipeline stage.

Values are a deterministic function of (lat, month) plus a small jitter drawn
from a generator seeded with (lat, lon, date), so the same field on the same
day always gets the same numbers while neighbouring fields and days differ.

Jitter ranges: air temperature ±2 °C, humidity ±5 %, NDVI ±0.05,
soil moisture ±0.03 m³/m³, soil pH ±0.2, precipitation 0..season max.
"""
import datetime as dt
import hashlib
import logging
import random
from typing import List, Optional

from ..models.domain import (
    Address, AgriculturalImpact, AnalysisResult, ClimateAdaptation, Coordinates,
    CropSuitability, CurrentWeather, DailyForecast, EnvironmentalData, Forecast,
    ImageAnalysis, ImageInsights, ImageMetadata, ImageResult, ImageSummary, Insights,
    LandCover, LandUseData, LocationData, Measurement, PestRisk, Recommendation,
    SatelliteData, SoilData, SoilHealth, SoilTexture, WaterManagement, WeatherData,
    YieldPotential, ANALYSIS_KINDS,
)
from ..schemas import FarmerInput
from ..utils.clock import Clock, SystemClock
from .geography import classify_agricultural_zone, classify_soil_type, validate_coordinates

log = logging.getLogger("krishipulse.fallback")

FALLBACK_SOURCE = "fallback"
FALLBACK_QUALITY = "low"

# Nagpur, the geographic centre of India
DEFAULT_COORDINATES = Coordinates(lat=21.1458, lon=79.0882)

STATE_CENTROIDS = {
    "maharashtra":    (19.7515, 75.7139),
    "punjab":         (31.1471, 75.3412),
    "haryana":        (29.0588, 76.0856),
    "uttar pradesh":  (26.8467, 80.9462),
    "karnataka":      (12.9716, 77.5946),
    "tamil nadu":     (13.0827, 80.2707),
    "gujarat":        (23.0225, 72.5714),
    "rajasthan":      (26.9124, 75.7873),
    "bihar":          (25.0961, 85.3131),
    "west bengal":    (22.9868, 87.8550),
    "odisha":         (20.9517, 85.0985),
    "andhra pradesh": (15.9129, 79.7400),
    "telangana":      (18.1124, 79.0193),
    "madhya pradesh": (23.5937, 78.9629),
    "kerala":         (10.8505, 76.2711),
    "assam":          (26.2006, 92.9376),
}

# mean daily air temperature (°C) by month for the Indian plains, Jan..Dec
MONTHLY_BASE_TEMP = [20, 23, 28, 32, 35, 32, 29, 28, 28, 27, 24, 21]

SEASON_PROFILE = {
    #          humidity, ndvi, soil moisture, max daily rain (mm)
    "kharif": (80, 0.65, 0.32, 30.0),
    "rabi":   (60, 0.55, 0.24, 3.0),
    "zaid":   (45, 0.35, 0.16, 6.0),
}

SOIL_PH_BY_TYPE = {
    "Alluvial Soil": 7.2,
    "Black Soil":    7.8,
    "Red Soil":      6.3,
    "Laterite Soil": 5.6,
}

SOIL_TEXTURE_BY_TYPE = {
    "Alluvial Soil": (20, 40, 40, "Loam"),
    "Black Soil":    (50, 30, 20, "Clay"),
    "Red Soil":      (20, 20, 60, "Sandy Loam"),
    "Laterite Soil": (30, 20, 50, "Sandy Clay Loam"),
}


def indian_season(month: int) -> str:
    """Kharif (Jun-Oct), Rabi (Nov-Mar), Zaid (Apr-May)."""
    if 6 <= month <= 10:
        return "kharif"
    if month >= 11 or month <= 3:
        return "rabi"
    return "zaid"


def seeded_rng(lat: float, lon: float, day: dt.date) -> random.Random:
    digest = hashlib.sha256(f"{lat:.4f}:{lon:.4f}:{day.isoformat()}".encode()).hexdigest()
    return random.Random(int(digest[:16], 16))


def base_temperature(lat: float, month: int) -> float:
    # southern hemisphere runs six months out of phase
    idx = (month - 1) if lat >= 0 else (month + 5) % 12
    temp = float(MONTHLY_BASE_TEMP[idx])
    a = abs(lat)
    if a > 60:
        temp -= 15
    elif a > 45:
        temp -= 10
    elif a > 30:
        temp -= 5
    return temp


def interpret_ndvi(ndvi: float) -> str:
    if ndvi >= 0.6:
        return "Dense healthy vegetation"
    if ndvi >= 0.4:
        return "Moderate vegetation"
    if ndvi >= 0.2:
        return "Sparse vegetation"
    return "Bare soil or stressed vegetation"


def interpret_soil_moisture(value: float) -> str:
    if value < 0.15:
        return "Dry"
    if value <= 0.4:
        return "Moderate"
    return "Wet"


def interpret_soil_ph(value: float) -> str:
    if value < 5.5:
        return "Acidic"
    if value > 8.5:
        return "Alkaline"
    if 6.5 <= value <= 7.5:
        return "Neutral"
    return "Slightly acidic" if value < 6.5 else "Slightly alkaline"


class FallbackGenerator:
    """Produces plausible data when a collaborator is down."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def _context(self, coordinates: Coordinates):
        now = self.clock.now()
        rng = seeded_rng(coordinates.lat, coordinates.lon, now.date())
        return now, rng, indian_season(now.month)

    # ---------- location ----------

    def location(self, farmer_input: FarmerInput) -> LocationData:
        coords, label, confidence = self._best_guess_coordinates(farmer_input)
        log.info("fallback location %s (confidence %.1f)", label, confidence)
        return LocationData(
            coordinates=coords,
            address=Address(display_name=label, country="India"),
            agricultural_zone=classify_agricultural_zone(coords.lat, coords.lon),
            soil_classification=classify_soil_type(coords.lat, coords.lon),
            confidence=confidence,
            source=FALLBACK_SOURCE,
        )

    def _best_guess_coordinates(self, farmer_input: FarmerInput):
        coords = farmer_input.coordinates
        if coords is None and farmer_input.location is not None:
            coords = farmer_input.location.coordinates
        if coords is not None and not validate_coordinates(coords.lat, coords.lon):
            return coords, "Farmer Field", 0.7

        text = " ".join(filter(None, [
            farmer_input.address,
            farmer_input.location.state if farmer_input.location else None,
            farmer_input.location.district if farmer_input.location else None,
        ])).lower()
        for state, (lat, lon) in STATE_CENTROIDS.items():
            if state in text:
                return Coordinates(lat=lat, lon=lon), f"{state.title()}, India", 0.6
        return DEFAULT_COORDINATES, "Nagpur, Maharashtra, India", 0.5

    # ---------- environmental ----------

    def environmental(self, coordinates: Coordinates) -> EnvironmentalData:
        now, rng, season = self._context(coordinates)
        _, ndvi_base, moisture_base, _ = SEASON_PROFILE[season]
        soil_class = classify_soil_type(coordinates.lat, coordinates.lon)

        air = base_temperature(coordinates.lat, now.month) + rng.uniform(-2, 2)
        ndvi = min(1.0, max(0.1, ndvi_base + rng.uniform(-0.05, 0.05)))
        moisture = min(0.6, max(0.05, moisture_base + rng.uniform(-0.03, 0.03)))
        ph = SOIL_PH_BY_TYPE.get(soil_class.type, 6.8) + rng.uniform(-0.2, 0.2)
        clay, silt, sand, texture = SOIL_TEXTURE_BY_TYPE.get(soil_class.type, (25, 35, 40, "Loam"))

        satellite = SatelliteData(
            ndvi=Measurement(value=round(ndvi, 3), unit="index", interpretation=interpret_ndvi(ndvi)),
            land_surface_temperature=Measurement(value=round(air + 4, 1), unit="°C", interpretation="Estimated"),
            source=FALLBACK_SOURCE, quality=FALLBACK_QUALITY,
        )
        soil = SoilData(
            soil_moisture=Measurement(value=round(moisture, 3), unit="m³/m³",
                                      interpretation=interpret_soil_moisture(moisture)),
            soil_ph=Measurement(value=round(ph, 2), unit="pH", interpretation=interpret_soil_ph(ph)),
            soil_temperature=Measurement(value=round(air - 3, 1), unit="°C",
                                         interpretation="Warm" if air - 3 >= 20 else "Cool"),
            soil_organic_carbon=Measurement(value=round(12 + rng.uniform(-2, 2), 1), unit="g/kg",
                                            interpretation="Moderate organic content"),
            soil_texture=SoilTexture(
                clay=Measurement(value=clay, unit="%"),
                silt=Measurement(value=silt, unit="%"),
                sand=Measurement(value=sand, unit="%"),
                texture=texture,
                interpretation=f"{texture} typical of {soil_class.type.lower()}",
            ),
            source=FALLBACK_SOURCE, quality=FALLBACK_QUALITY,
        )
        land_use = LandUseData(
            land_cover_types=[
                LandCover(type="Cultivated and managed vegetation", code="40", percentage=70),
                LandCover(type="Tree cover", code="10", percentage=20),
                LandCover(type="Grassland", code="30", percentage=10),
            ],
            dominant_cover="Cultivated and managed vegetation",
            source=FALLBACK_SOURCE, quality=FALLBACK_QUALITY,
        )
        return EnvironmentalData(
            satellite=satellite, soil=soil, land_use=land_use,
            timestamp=now, source=FALLBACK_SOURCE, quality=FALLBACK_QUALITY,
        )

    # ---------- weather ----------

    def weather(self, coordinates: Coordinates, days: int = 7) -> WeatherData:
        now, rng, season = self._context(coordinates)
        humidity_base, _, _, max_rain = SEASON_PROFILE[season]
        base = base_temperature(coordinates.lat, now.month)

        temperature = round(base + rng.uniform(-2, 2), 1)
        humidity = round(min(100.0, max(10.0, humidity_base + rng.uniform(-5, 5))), 1)
        current = CurrentWeather(
            temperature=temperature,
            humidity=humidity,
            wind_speed=round(rng.uniform(5, 15), 1),
            timestamp=now.isoformat(),
        )

        daily = DailyForecast()
        for i in range(days):
            day = now.date() + dt.timedelta(days=i)
            daily.time.append(day.isoformat())
            daily.temperature_2m_max.append(round(base + 4 + rng.uniform(-2, 2), 1))
            daily.temperature_2m_min.append(round(base - 6 + rng.uniform(-2, 2), 1))
            daily.precipitation_sum.append(round(rng.uniform(0, max_rain), 1))

        return WeatherData(
            current=current,
            forecast=Forecast(daily=daily),
            agricultural_impact=agricultural_impact(current),
            source=FALLBACK_SOURCE,
            quality=FALLBACK_QUALITY,
        )

    # ---------- images ----------

    def single_image(self, image_id: str, error: Optional[str] = None, size: int = 0) -> ImageResult:
        """Neutral per-image result: healthy crop, loam, nothing detected."""
        return ImageResult(
            image_id=image_id,
            timestamp=self.clock.now(),
            comprehensive=AnalysisResult(analysis_type="comprehensive", results={"overallHealth": "Good"}),
            crop_health=AnalysisResult(analysis_type="crop-health", results={"overallHealth": "Good"}),
            soil=AnalysisResult(analysis_type="soil-analysis", results={"soilType": "Loam"}),
            disease=AnalysisResult(analysis_type="disease-detection", results=[]),
            metadata=ImageMetadata(size=size, analysis_types=list(ANALYSIS_KINDS)),
            error=error,
        )

    def image_analysis(self, error: Optional[str] = None) -> ImageAnalysis:
        return ImageAnalysis(
            success=error is None,
            data=[self.single_image("fallback_image_1", size=1024000)],
            summary=ImageSummary(total_images=1, analysis_types=list(ANALYSIS_KINDS), overall_health="Good"),
            error=error,
            timestamp=self.clock.now(),
        )

    # ---------- insights / recommendations ----------

    def insights(self) -> Insights:
        return Insights(
            soil_health=SoilHealth(overall="Good", score=75, strengths=["Optimal soil moisture"]),
            crop_suitability=CropSuitability(best_crops=["Wheat", "Cotton"], good_crops=["Pulses"]),
            water_management=WaterManagement(),
            pest_risk=PestRisk(),
            yield_potential=YieldPotential(overall="Good", score=75, factors=["High vegetation density"]),
            climate_adaptation=ClimateAdaptation(),
            image_insights=ImageInsights(crop_health="Good", soil_conditions="Loam",
                                         disease_presence="None", weed_infestation="Low"),
            timestamp=self.clock.now(),
        )

    def recommendations(self) -> List[Recommendation]:
        return [
            Recommendation(category="Soil Management", priority="Medium", action="Conduct regular soil testing",
                           impact="Medium", timeframe="3-6 months"),
            Recommendation(category="Water Management", priority="Low", action="Monitor soil moisture levels",
                           impact="Low", timeframe="Ongoing"),
        ]


def agricultural_impact(current: Optional[CurrentWeather]) -> AgriculturalImpact:
    impact = AgriculturalImpact()
    if current is None:
        return impact
    if current.temperature is not None and current.temperature > 30:
        impact.irrigation = "May be needed"
        impact.crop_stress = "Moderate"
    if current.humidity is not None and current.humidity > 80:
        impact.pest_risk = "Moderate"
    return impact

from datetime import datetime
from typing import Optional, Dict, Any, List, Literal, Union

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

Level = Literal["High", "Medium", "Low"]
Rating = Literal["Excellent", "Good", "Fair", "Poor"]


class DomainModel(BaseModel):
    """snake_case in Python, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Location ----------

class Coordinates(DomainModel):
    lat: float
    lon: float

class Address(DomainModel):
    display_name: str = "Unknown Location"
    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None

class AgriculturalZone(DomainModel):
    zone: str
    characteristics: List[str] = Field(default_factory=list)

class NPK(DomainModel):
    n: str = "Medium"
    p: str = "Medium"
    k: str = "Medium"

class SoilClassification(DomainModel):
    type: str
    characteristics: List[str] = Field(default_factory=list)
    npk: NPK = Field(default_factory=NPK)

class LocationData(DomainModel):
    coordinates: Coordinates
    address: Address = Field(default_factory=Address)
    agricultural_zone: AgriculturalZone
    soil_classification: SoilClassification
    confidence: float = Field(0.8, ge=0.0, le=1.0)
    source: str = "resolver"


# ---------- Environmental ----------

class Measurement(DomainModel):
    value: Optional[float] = None
    unit: str = ""
    interpretation: str = "Unknown"

class SoilTexture(DomainModel):
    clay: Measurement = Field(default_factory=lambda: Measurement(unit="%"))
    silt: Measurement = Field(default_factory=lambda: Measurement(unit="%"))
    sand: Measurement = Field(default_factory=lambda: Measurement(unit="%"))
    texture: str = "Unknown"
    interpretation: str = "Unknown"

class SatelliteData(DomainModel):
    ndvi: Optional[Measurement] = None
    land_surface_temperature: Optional[Measurement] = None
    source: str = "satellite"
    quality: str = "high"

class SoilData(DomainModel):
    soil_moisture: Optional[Measurement] = None
    soil_ph: Optional[Measurement] = None
    soil_temperature: Optional[Measurement] = None
    soil_organic_carbon: Optional[Measurement] = None
    soil_texture: Optional[SoilTexture] = None
    source: str = "satellite"
    quality: str = "high"

class LandCover(DomainModel):
    type: str
    percentage: float
    code: Optional[str] = None

class LandUseData(DomainModel):
    land_cover_types: List[LandCover] = Field(default_factory=list)
    dominant_cover: Optional[str] = None
    source: str = "satellite"
    quality: str = "high"

class EnvironmentalData(DomainModel):
    satellite: Optional[SatelliteData] = None
    soil: Optional[SoilData] = None
    land_use: Optional[LandUseData] = None
    timestamp: datetime
    source: str = "live"
    quality: str = "high"

    def soil_moisture(self) -> Optional[float]:
        if self.soil and self.soil.soil_moisture:
            return self.soil.soil_moisture.value
        return None

    def soil_ph(self) -> Optional[float]:
        if self.soil and self.soil.soil_ph:
            return self.soil.soil_ph.value
        return None

    def ndvi(self) -> Optional[float]:
        if self.satellite and self.satellite.ndvi:
            return self.satellite.ndvi.value
        return None


# ---------- Weather ----------

class CurrentWeather(DomainModel):
    temperature: Optional[float] = None
    humidity: Optional[float] = None
    wind_speed: Optional[float] = None
    timestamp: Optional[str] = None

class DailyForecast(DomainModel):
    time: List[str] = Field(default_factory=list)
    temperature_2m_max: List[Optional[float]] = Field(default_factory=list, alias="temperature_2m_max")
    temperature_2m_min: List[Optional[float]] = Field(default_factory=list, alias="temperature_2m_min")
    precipitation_sum: List[Optional[float]] = Field(default_factory=list, alias="precipitation_sum")

    def max_temps(self) -> List[float]:
        return [t for t in self.temperature_2m_max if t is not None]

    def precipitation(self) -> List[float]:
        return [p for p in self.precipitation_sum if p is not None]

class Forecast(DomainModel):
    daily: Optional[DailyForecast] = None

class AgriculturalImpact(DomainModel):
    irrigation: str = "Not needed"
    pest_risk: str = "Low"
    crop_stress: str = "Low"

class WeatherData(DomainModel):
    current: Optional[CurrentWeather] = None
    forecast: Forecast = Field(default_factory=Forecast)
    agricultural_impact: AgriculturalImpact = Field(default_factory=AgriculturalImpact)
    source: str = "live"
    quality: str = "high"

    def daily(self) -> Optional[DailyForecast]:
        return self.forecast.daily


# ---------- Image analysis ----------

AnalysisKind = Literal["comprehensive", "crop-health", "soil-analysis", "disease-detection"]
ANALYSIS_KINDS: List[str] = ["comprehensive", "crop-health", "soil-analysis", "disease-detection"]

class AnalysisResult(DomainModel):
    success: bool = True
    analysis_type: Optional[str] = None
    # crop-health/soil/comprehensive return a mapping; disease-detection returns a list of
    # {name, confidence} detections or a single {diseaseProbability} mapping
    results: Union[Dict[str, Any], List[Dict[str, Any]]] = Field(default_factory=dict)

class ImageMetadata(DomainModel):
    size: int = 0
    analysis_types: List[str] = Field(default_factory=lambda: list(ANALYSIS_KINDS))

class ImageResult(DomainModel):
    image_id: str
    timestamp: datetime
    comprehensive: Optional[AnalysisResult] = None
    crop_health: Optional[AnalysisResult] = None
    soil: Optional[AnalysisResult] = None
    disease: Optional[AnalysisResult] = None
    metadata: ImageMetadata = Field(default_factory=ImageMetadata)
    error: Optional[str] = None

class ImageSummary(DomainModel):
    total_images: int = 0
    analysis_types: List[str] = Field(default_factory=list)
    issues: List[str] = Field(default_factory=list)
    overall_health: str = "Unknown"

class ImageAnalysis(DomainModel):
    success: bool = True
    data: Optional[List[ImageResult]] = None
    summary: Optional[ImageSummary] = None
    message: Optional[str] = None
    error: Optional[str] = None
    timestamp: Optional[datetime] = None


# ---------- Insights ----------

class SoilHealth(DomainModel):
    overall: Rating = "Good"
    score: int = 75
    issues: List[str] = Field(default_factory=list)
    strengths: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

class Band(DomainModel):
    min: float
    max: float
    optimal: float

class CropRequirements(DomainModel):
    temperature: Band
    rainfall: Band
    soil_moisture: Band
    ph: Band
    season: str = "Year-round"

class ConditionStatus(DomainModel):
    value: Optional[float] = None
    optimal: float
    status: Literal["optimal", "acceptable", "poor", "unknown"] = "unknown"
    action: Optional[str] = None

class CropSuitability(DomainModel):
    best_crops: List[str] = Field(default_factory=list)
    good_crops: List[str] = Field(default_factory=list)
    avoid_crops: List[str] = Field(default_factory=list)
    reasoning: Dict[str, str] = Field(default_factory=dict)

class SelectedCropSuitability(CropSuitability):
    """Generic ranking plus the score of the crop the farmer picked."""
    crop_name: str
    score: int = 0
    rating: Rating = "Poor"
    factors: List[str] = Field(default_factory=list)
    requirements: CropRequirements
    current_conditions: Dict[str, ConditionStatus] = Field(default_factory=dict)

class WaterManagement(DomainModel):
    irrigation_needs: str = "Moderate"
    drainage_needs: str = "Low"
    water_conservation: List[str] = Field(default_factory=list)
    flood_risk: str = "Low"
    drought_risk: str = "Moderate"

class PestRisk(DomainModel):
    overall: str = "Low"
    factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)

class YieldPotential(DomainModel):
    overall: Rating = "Good"
    score: int = 75
    factors: List[str] = Field(default_factory=list)
    limitations: List[str] = Field(default_factory=list)

class ClimateAdaptation(DomainModel):
    strategies: List[str] = Field(default_factory=list)
    risks: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)

class ImageInsights(DomainModel):
    crop_health: str = "Unknown"
    soil_conditions: str = "Unknown"
    disease_presence: str = "Unknown"
    weed_infestation: str = "Unknown"
    recommendations: List[str] = Field(default_factory=list)

class SeasonalAnalysis(DomainModel):
    current_season: str
    optimal_season: str
    suitable: bool
    note: str

class CropSpecificInsight(DomainModel):
    crop_name: str
    suitability: Rating
    score: int
    optimal_conditions: CropRequirements
    current_conditions: Dict[str, ConditionStatus] = Field(default_factory=dict)
    yield_potential: str = "Unknown"
    risk_factors: List[str] = Field(default_factory=list)
    seasonal_analysis: SeasonalAnalysis
    recommendations: List[str] = Field(default_factory=list)

class Insights(DomainModel):
    soil_health: SoilHealth
    crop_suitability: Union[SelectedCropSuitability, CropSuitability]
    water_management: WaterManagement
    pest_risk: PestRisk
    yield_potential: YieldPotential
    climate_adaptation: ClimateAdaptation
    image_insights: ImageInsights
    crop_specific: Optional[CropSpecificInsight] = None
    timestamp: datetime


# ---------- Recommendations ----------

class Recommendation(DomainModel):
    category: str
    priority: Level
    action: str
    impact: Level
    timeframe: str
    reasoning: Optional[str] = None

from datetime import datetime
from typing import Optional, List, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from krishipulse.models.domain import (
    Coordinates, LocationData, EnvironmentalData, WeatherData, ImageAnalysis,
    Insights, Recommendation,
)

Language = Literal["en", "hi", "mr"]


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


# ---------- Request models ----------

class ImageInput(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    data: Optional[str] = Field(None, description="Base64 encoded image")
    url: Optional[str] = Field(None, description="Public URL to fetch the image from")
    file: Optional[bytes] = Field(None, description="Raw image bytes (in-process callers only)")
    type: Optional[str] = Field(None, description="'base64', 'url' or 'file'")

class NestedLocation(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    village: Optional[str] = None
    district: Optional[str] = None
    state: Optional[str] = None
    coordinates: Optional[Coordinates] = None

class FarmerInput(_Wire):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    farmer_id: str = Field(..., description="Caller-side farmer identifier")
    coordinates: Optional[Coordinates] = Field(None, description="Raw GPS coordinates (validated by the location stage)")
    address: Optional[str] = Field(None, description="Free-text address")
    location: Optional[NestedLocation] = None
    country: Optional[str] = None
    region: Optional[str] = Field(None, description="Label used in the alert header")

    images: Optional[List[ImageInput]] = None
    image_base64: Optional[str] = None

    selected_crop: Optional[str] = Field(None, description="Crop name to score specifically (e.g. 'Rice')")
    phone_number: Optional[str] = None
    language: Optional[Language] = None

    def has_images(self) -> bool:
        return bool(self.images) or bool(self.image_base64)


# ---------- Collaborator payloads ----------

class LocationRequest(_Wire):
    farmer_id: str
    coordinates: Optional[Coordinates] = None
    address: Optional[str] = None
    country: Optional[str] = None

class LocationResolution(_Wire):
    success: bool
    data: Optional[LocationData] = None
    error: Optional[str] = None

class Region(_Wire):
    name: str = "Farmer Field"
    lat: float
    lon: float

class AlertData(_Wire):
    type: str = "enhanced_pipeline_analysis"
    severity: Literal["high", "medium", "low"] = "medium"
    region: str = "Agricultural Analysis"
    crop: str = "Field Analysis"
    recommendation: str

class ChannelResult(_Wire):
    success: bool
    sid: Optional[str] = None
    status: Optional[str] = None
    error: Optional[str] = None
    code: Optional[int] = None

class AlertResult(_Wire):
    success: bool
    sms: ChannelResult
    voice: ChannelResult
    error: Optional[str] = None


# ---------- Response models ----------

class NotificationResult(_Wire):
    success: bool
    method: Optional[str] = None          # 'SMS + Voice' | 'SMS' | 'Voice' | 'Skipped' | 'Failed'
    reason: Optional[str] = None
    message: Optional[str] = None
    sms: Optional[ChannelResult] = None
    voice: Optional[ChannelResult] = None
    error: Optional[str] = None

class DataCollection(_Wire):
    weather: WeatherData
    environmental: EnvironmentalData
    image_analysis: ImageAnalysis

class PipelineSummary(_Wire):
    key_findings: List[str] = Field(default_factory=list)
    top_recommendations: List[str] = Field(default_factory=list)
    next_steps: List[str] = Field(default_factory=list)

class FallbackData(_Wire):
    location: LocationData
    environmental: EnvironmentalData
    weather: WeatherData
    image_analysis: ImageAnalysis
    insights: Insights
    recommendations: List[Recommendation]

class PipelineResult(_Wire):
    success: bool
    pipeline_id: str
    timestamp: datetime

    # success shape
    farmer_id: Optional[str] = None
    location: Optional[LocationData] = None
    data_collection: Optional[DataCollection] = None
    insights: Optional[Insights] = None
    recommendations: Optional[List[Recommendation]] = None
    notification: Optional[NotificationResult] = None
    summary: Optional[PipelineSummary] = None

    # failure shape
    error: Optional[str] = None
    fallback_data: Optional[FallbackData] = None

    def to_wire(self) -> dict:
        # drop the unused half of the success/failure shape, keep nested nulls
        data = self.model_dump(mode="json", by_alias=True)
        return {k: v for k, v in data.items() if v is not None}

# krishipulse/services/pipeline.py
import asyncio
import logging
import time
from typing import List, Optional

from ..adapters.base import EnvironmentalSource, ImageAnalyzer, LocationResolver, Notifier, WeatherSource
from ..config import settings
from ..errors import LocationError
from ..models.domain import Insights, Recommendation
from ..schemas import (
    DataCollection, FallbackData, FarmerInput, NotificationResult, PipelineResult, PipelineSummary,
)
from ..utils.clock import Clock, SystemClock
from .environment import EnvironmentalStage
from .fallback import FallbackGenerator
from .images import ImageStage
from .insights import InsightEngine
from .location import LocationStage
from .notifications import DispatchPolicy, NotificationDispatcher
from .recommendations import RecommendationEngine
from .weather import WeatherStage

log = logging.getLogger("krishipulse.pipeline")

def t(): return time.perf_counter()

NEXT_STEPS = [
    "Review detailed analysis report",
    "Prioritize high-impact recommendations",
    "Schedule follow-up field inspection",
    "Monitor implementation progress",
]


def build_summary(insights: Insights, recommendations: List[Recommendation]) -> PipelineSummary:
    findings = [
        f"Soil health: {insights.soil_health.overall} ({insights.soil_health.score}/100)",
        f"Recommended crops: {len(insights.crop_suitability.best_crops)} options",
        f"Irrigation needs: {insights.water_management.irrigation_needs}",
        f"Pest risk: {insights.pest_risk.overall}",
        f"Yield potential: {insights.yield_potential.overall}",
    ]
    return PipelineSummary(
        key_findings=findings,
        top_recommendations=[r.action for r in recommendations[:5]],
        next_steps=list(NEXT_STEPS),
    )


class FarmerPipeline:
    """
    Location -> (environmental || weather || images) -> insights -> recommendations -> notification.

    Only a location failure is fatal. Every other stage degrades to synthetic
    data, so once the field is resolved the run always succeeds.
    """

    def __init__(self,
                 resolver: LocationResolver,
                 environmental_source: Optional[EnvironmentalSource] = None,
                 weather_source: Optional[WeatherSource] = None,
                 image_analyzer: Optional[ImageAnalyzer] = None,
                 notifier: Optional[Notifier] = None,
                 policy: Optional[DispatchPolicy] = None,
                 clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()
        self.fallback = FallbackGenerator(self.clock)
        self.policy = policy or DispatchPolicy()

        self.location = LocationStage(resolver)
        self.environmental = EnvironmentalStage(environmental_source, self.fallback, self.clock)
        self.weather = WeatherStage(weather_source, self.fallback)
        self.images = ImageStage(image_analyzer, self.fallback, self.clock)
        self.insights = InsightEngine(self.clock)
        self.recommendations = RecommendationEngine()
        self.notifications = NotificationDispatcher(notifier, self.policy)

    def _pipeline_id(self) -> str:
        return f"farmer_pipeline_{int(self.clock.now().timestamp() * 1000)}"

    async def execute_farmer_pipeline(self, farmer_input: FarmerInput) -> PipelineResult:
        pipeline_id = self._pipeline_id()
        t0 = t()
        log.info("pipeline %s started farmer=%s", pipeline_id, farmer_input.farmer_id)

        try:
            result = await self._run(pipeline_id, farmer_input)
        except LocationError as e:
            log.error("pipeline %s failed: %s", pipeline_id, e)
            return self._failure(pipeline_id, farmer_input, str(e))
        except Exception as e:
            log.exception("pipeline %s crashed", pipeline_id)
            return self._failure(pipeline_id, farmer_input, f"Unexpected pipeline error: {e}")

        log.info("pipeline %s completed in %dms", pipeline_id, round((t() - t0) * 1000))
        return result

    async def _run(self, pipeline_id: str, farmer_input: FarmerInput) -> PipelineResult:
        location = await self.location.run(farmer_input)
        coords = location.coordinates

        # stages catch their own failures and return fallback data
        environmental, weather, images = await asyncio.gather(
            self.environmental.run(coords),
            self.weather.run(coords),
            self.images.run(farmer_input),
        )

        try:
            insights = self.insights.generate(location, environmental, weather, images,
                                              selected_crop=farmer_input.selected_crop)
        except Exception as e:
            log.warning("insight generation failed (%s); using fallback insights", e)
            insights = self.fallback.insights()

        try:
            recommendations = self.recommendations.generate(insights)
        except Exception as e:
            log.warning("recommendation generation failed (%s); using fallback recommendations", e)
            recommendations = self.fallback.recommendations()

        try:
            notification = await self.notifications.dispatch(
                farmer_input.phone_number, weather, insights, recommendations,
                language=farmer_input.language,
                region=farmer_input.region or location.address.display_name,
                crop=farmer_input.selected_crop,
            )
        except Exception as e:
            log.error("notification dispatch failed: %s", e)
            notification = NotificationResult(success=False, method="Failed", error=str(e))

        return PipelineResult(
            success=True,
            pipeline_id=pipeline_id,
            timestamp=self.clock.now(),
            farmer_id=farmer_input.farmer_id,
            location=location,
            data_collection=DataCollection(weather=weather, environmental=environmental, image_analysis=images),
            insights=insights,
            recommendations=recommendations,
            notification=notification,
            summary=build_summary(insights, recommendations),
        )

    def _failure(self, pipeline_id: str, farmer_input: FarmerInput, error: str) -> PipelineResult:
        location = self.fallback.location(farmer_input)
        return PipelineResult(
            success=False,
            pipeline_id=pipeline_id,
            timestamp=self.clock.now(),
            error=error,
            fallback_data=FallbackData(
                location=location,
                environmental=self.fallback.environmental(location.coordinates),
                weather=self.fallback.weather(location.coordinates, days=settings.WX_FORECAST_DAYS),
                image_analysis=self.fallback.image_analysis(),
                insights=self.fallback.insights(),
                recommendations=self.fallback.recommendations(),
            ),
        )

import re

import pytest

from krishipulse.models.domain import Coordinates
from krishipulse.schemas import FarmerInput, ImageInput
from krishipulse.services.notifications import DAILY_LIMIT_REASON, DispatchPolicy
from krishipulse.services.pipeline import NEXT_STEPS, FarmerPipeline

from conftest import (
    FakeEnvironmentalSource, FakeImageAnalyzer, FakeNotifier, FakeResolver, FakeWeatherSource,
    daily_limit_alert, make_env, make_weather, ok_alert,
)

NAGPUR = Coordinates(lat=21.1458, lon=79.0882)


def _pipeline(clock, **kw) -> FarmerPipeline:
    kw.setdefault("resolver", FakeResolver())
    kw.setdefault("environmental_source", FakeEnvironmentalSource())
    kw.setdefault("weather_source", FakeWeatherSource())
    kw.setdefault("notifier", FakeNotifier(ok_alert()))
    kw.setdefault("policy", DispatchPolicy(skip_notifications=False))
    return FarmerPipeline(clock=clock, **kw)


def _farmer(**kw) -> FarmerInput:
    kw.setdefault("farmer_id", "farmer-42")
    kw.setdefault("coordinates", NAGPUR)
    kw.setdefault("phone_number", "+919876543210")
    return FarmerInput(**kw)


async def test_success_shape(clock):
    result = await _pipeline(clock).execute_farmer_pipeline(_farmer(language="en"))

    assert result.success
    assert re.fullmatch(r"farmer_pipeline_\d+", result.pipeline_id)
    assert result.farmer_id == "farmer-42"
    assert result.data_collection.weather.source == "live"
    assert result.data_collection.environmental.source == "live"
    assert result.notification.method == "SMS + Voice"
    assert result.summary.next_steps == NEXT_STEPS
    assert result.summary.top_recommendations == [r.action for r in result.recommendations[:5]]
    assert len(result.summary.key_findings) == 5

    wire = result.to_wire()
    assert {"pipelineId", "farmerId", "dataCollection", "insights", "recommendations", "notification"} <= set(wire)
    assert "fallbackData" not in wire
    assert "soilHealth" in wire["insights"]
    assert "temperature_2m_max" in wire["dataCollection"]["weather"]["forecast"]["daily"]


async def test_no_images_keeps_image_insights_unknown(clock):
    result = await _pipeline(clock).execute_farmer_pipeline(_farmer())
    assert result.data_collection.image_analysis.success is True
    assert result.data_collection.image_analysis.data is None
    assert result.insights.image_insights.crop_health == "Unknown"
    assert result.insights.image_insights.disease_presence == "Unknown"


async def test_resolver_crash_returns_fallback_data(clock):
    notifier = FakeNotifier()
    pipeline = _pipeline(clock, resolver=FakeResolver(exc=RuntimeError("geocoder down")), notifier=notifier)
    result = await pipeline.execute_farmer_pipeline(_farmer(address="Nagpur, Maharashtra", coordinates=None))

    assert result.success is False
    assert "geocoder down" in result.error
    fb = result.fallback_data
    assert fb.location is not None
    assert fb.environmental is not None
    assert fb.weather is not None
    assert fb.insights is not None
    assert fb.recommendations
    assert notifier.calls == []

    wire = result.to_wire()
    assert "location" not in wire
    assert wire["fallbackData"]["location"]["coordinates"]["lat"] == pytest.approx(19.7515)


async def test_degraded_sources_still_succeed(clock):
    pipeline = _pipeline(
        clock,
        environmental_source=None,
        weather_source=FakeWeatherSource(exc=RuntimeError("503")),
        image_analyzer=FakeImageAnalyzer(fail=True),
    )
    result = await pipeline.execute_farmer_pipeline(_farmer(images=[ImageInput(data="aGVsbG8=")]))
    assert result.success
    assert result.data_collection.environmental.source == "fallback"
    assert result.data_collection.weather.source == "fallback"
    assert result.data_collection.image_analysis.data[0].error


async def test_selected_crop_flows_into_insights(clock):
    weather = make_weather(temp=25, precipitation=[50, 50, 50])
    pipeline = _pipeline(clock, environmental_source=FakeEnvironmentalSource(make_env(moisture=0.8, ph=6.5)),
                         weather_source=FakeWeatherSource(weather))
    result = await pipeline.execute_farmer_pipeline(_farmer(selected_crop="Rice"))
    assert result.insights.crop_suitability.score == 100
    assert result.insights.crop_specific.crop_name == "Rice"
    assert result.to_wire()["insights"]["cropSuitability"]["cropName"] == "Rice"


async def test_daily_limit_skips_second_run(clock):
    notifier = FakeNotifier(daily_limit_alert(), ok_alert())
    pipeline = _pipeline(clock, notifier=notifier)

    first = await pipeline.execute_farmer_pipeline(_farmer())
    second = await pipeline.execute_farmer_pipeline(_farmer())

    assert first.success and second.success
    assert len(notifier.calls) == 1
    assert second.notification.method == "Skipped"
    assert "daily" in second.notification.reason.lower()
    assert second.notification.reason == DAILY_LIMIT_REASON


async def test_notification_failure_does_not_fail_run(clock):
    class BrokenNotifier:
        async def send_alert(self, phone_number, alert, language):
            raise ConnectionError("twilio down")

    result = await _pipeline(clock, notifier=BrokenNotifier()).execute_farmer_pipeline(_farmer())
    assert result.success
    assert result.notification.success is False
    assert result.notification.method == "Failed"

import datetime as dt

import pytest

from krishipulse.models.domain import Coordinates
from krishipulse.schemas import FarmerInput, NestedLocation
from krishipulse.services.fallback import DEFAULT_COORDINATES, FallbackGenerator, indian_season
from krishipulse.utils.clock import FixedClock

from conftest import KHARIF_DAY


@pytest.mark.parametrize("month,season", [
    (6, "kharif"), (10, "kharif"), (11, "rabi"), (1, "rabi"), (3, "rabi"), (4, "zaid"), (5, "zaid"),
])
def test_indian_season(month, season):
    assert indian_season(month) == season


@pytest.mark.parametrize("month", range(1, 13))
def test_ndvi_stays_in_range(month):
    gen = FallbackGenerator(FixedClock(dt.datetime(2025, month, 10)))
    for lat in range(-60, 61, 15):
        for lon in (-120.0, 0.0, 77.5, 150.0):
            ndvi = gen.environmental(Coordinates(lat=lat, lon=lon)).ndvi()
            assert 0.1 <= ndvi <= 1.0


def test_same_field_same_day_is_deterministic(clock):
    coords = Coordinates(lat=19.07, lon=72.87)
    a = FallbackGenerator(clock)
    b = FallbackGenerator(FixedClock(KHARIF_DAY.replace(hour=22)))
    assert a.environmental(coords).model_dump(exclude={"timestamp"}) == \
        b.environmental(coords).model_dump(exclude={"timestamp"})
    assert a.weather(coords).current.temperature == b.weather(coords).current.temperature


def test_different_day_jitters_within_bounds(clock):
    coords = Coordinates(lat=19.07, lon=72.87)
    today = FallbackGenerator(clock).weather(coords).current.temperature
    tomorrow = FallbackGenerator(FixedClock(KHARIF_DAY + dt.timedelta(days=1))).weather(coords).current.temperature
    # same month base, ±2 °C jitter each
    assert abs(today - tomorrow) <= 4


def test_fallback_is_marked_low_quality(clock):
    gen = FallbackGenerator(clock)
    env = gen.environmental(DEFAULT_COORDINATES)
    wx = gen.weather(DEFAULT_COORDINATES)
    assert (env.source, env.quality) == ("fallback", "low")
    assert (wx.source, wx.quality) == ("fallback", "low")
    assert len(wx.forecast.daily.precipitation_sum) == 7


def test_location_guess(clock):
    gen = FallbackGenerator(clock)

    valid = gen.location(FarmerInput(farmer_id="f", coordinates=Coordinates(lat=30.9, lon=75.8)))
    assert valid.coordinates == Coordinates(lat=30.9, lon=75.8)
    assert valid.agricultural_zone.zone == "Northern Plains"

    by_state = gen.location(FarmerInput(farmer_id="f", location=NestedLocation(state="Punjab")))
    assert by_state.address.display_name == "Punjab, India"

    unknown = gen.location(FarmerInput(farmer_id="f", coordinates=Coordinates(lat=200, lon=0)))
    assert unknown.coordinates == DEFAULT_COORDINATES
    assert unknown.source == "fallback"


def test_fixed_recommendations_and_insights(clock):
    gen = FallbackGenerator(clock)
    assert [r.priority for r in gen.recommendations()] == ["Medium", "Low"]
    assert gen.insights().image_insights.disease_presence == "None"

import pytest

from krishipulse.models.domain import AnalysisResult, Band, ImageAnalysis, ImageResult, SelectedCropSuitability
from krishipulse.services.insights import InsightEngine, condition_status, rating_for

from conftest import KHARIF_DAY, make_env, make_location, make_weather


@pytest.mark.parametrize("score,rating", [
    (100, "Excellent"), (80, "Excellent"), (79, "Good"), (60, "Good"),
    (59, "Fair"), (40, "Fair"), (39, "Poor"), (0, "Poor"),
])
def test_rating_bands(score, rating):
    assert rating_for(score) == rating


def test_soil_health_issues_and_strengths(clock):
    engine = InsightEngine(clock)

    healthy = engine.analyze_soil_health(make_env(moisture=0.3, ph=7.0))
    assert healthy.score == 100
    assert healthy.overall == "Excellent"
    assert healthy.strengths == ["Optimal soil moisture", "Optimal soil pH"]

    poor = engine.analyze_soil_health(make_env(moisture=0.1, ph=5.0))
    assert poor.issues == ["Low soil moisture", "Acidic soil"]
    assert poor.recommendations == ["Consider irrigation or mulching", "Apply lime to raise pH"]
    assert poor.score == 70
    assert poor.overall == "Good"

    wet = engine.analyze_soil_health(make_env(moisture=0.5, ph=9.0))
    assert "Excessive soil moisture" in wet.issues
    assert "Apply sulfur to lower pH" in wet.recommendations


def test_selected_crop_perfect_rice_scores_100(clock):
    # 25 °C, 150 mm over the forecast window, moisture 0.8, pH 6.5
    engine = InsightEngine(clock)
    weather = make_weather(temp=25, precipitation=[30, 30, 30, 30, 30, 0, 0])
    env = make_env(moisture=0.8, ph=6.5)

    insights = engine.generate(make_location(), env, weather, None, selected_crop="Rice")

    suitability = insights.crop_suitability
    assert isinstance(suitability, SelectedCropSuitability)
    assert suitability.crop_name == "Rice"
    assert suitability.score == 100
    assert suitability.rating == "Excellent"
    assert insights.crop_specific is not None
    assert insights.crop_specific.suitability == "Excellent"
    assert insights.crop_specific.seasonal_analysis.current_season == "Kharif"
    assert insights.crop_specific.seasonal_analysis.suitable is True


def test_high_temperature_puts_wheat_on_avoid_list(clock):
    engine = InsightEngine(clock)
    insights = engine.generate(make_location(28.6, 77.2), make_env(), make_weather(temp=40), None,
                               selected_crop="Wheat")

    suitability = insights.crop_suitability
    assert "Wheat" in suitability.avoid_crops
    assert suitability.reasoning["Wheat"] == "High temperature may affect wheat growth"
    assert "Wheat" not in suitability.best_crops
    assert suitability.avoid_crops.count("Wheat") == 1


def test_crop_specific_score_bounds_and_partial_rainfall(clock):
    engine = InsightEngine(clock)
    # 60 mm is at least half of rice's 100 mm minimum; temperature out of band
    weather = make_weather(temp=10, precipitation=[20, 20, 20])
    insights = engine.generate(make_location(), make_env(moisture=0.6, ph=6.3), weather, None, selected_crop="paddy")

    s = insights.crop_suitability
    assert s.crop_name == "Rice"
    assert s.score == 15 + 25 + 25
    assert s.rating == "Good"
    assert s.current_conditions["temperature"].status == "poor"
    assert s.current_conditions["temperature"].action.startswith("Use protective covers")
    assert 0 <= s.score <= 100


def test_unknown_crop_falls_back_to_generic_shape(clock):
    engine = InsightEngine(clock)
    insights = engine.generate(make_location(), make_env(), make_weather(), None, selected_crop="Dragonfruit")
    assert not isinstance(insights.crop_suitability, SelectedCropSuitability)
    assert insights.crop_specific is None


def test_off_season_crop_is_flagged(clock):
    engine = InsightEngine(clock)
    insights = engine.generate(make_location(), make_env(), make_weather(), None, selected_crop="Wheat")
    seasonal = insights.crop_specific.seasonal_analysis
    assert seasonal.optimal_season == "Rabi"
    assert seasonal.suitable is False
    assert "Off-season sowing" in insights.crop_specific.risk_factors


@pytest.mark.parametrize("value,status", [(25, "optimal"), (29, "optimal"), (32, "acceptable"), (40, "poor")])
def test_condition_status(value, status):
    band = Band(min=20, max=35, optimal=25)
    result = condition_status("temperature", value, band)
    assert result.status == status
    if status != "optimal":
        assert result.action


def test_condition_remediation_follows_direction():
    band = Band(min=5.5, max=7.0, optimal=6.3)
    assert "lime" in condition_status("ph", 4.0, band).action
    assert "sulfur" in condition_status("ph", 8.5, band).action


def test_generic_suitability_lists_are_unique(clock):
    engine = InsightEngine(clock)
    suitability = engine.analyze_crop_suitability(make_location(23.0, 77.0), make_env(moisture=0.05), make_weather(temp=5))
    for crops in (suitability.best_crops, suitability.good_crops, suitability.avoid_crops):
        assert len(crops) == len(set(crops))
    # nothing clears the bar at 5 °C, so the Central Plateau table and Black Soil adjustment apply
    assert suitability.best_crops[:3] == ["Cotton", "Soybean", "Pulses"]


def test_water_management(clock):
    engine = InsightEngine(clock)
    dry = engine.analyze_water_management(make_env(moisture=0.1), make_weather())
    assert dry.irrigation_needs == "High"
    assert dry.drought_risk == "High"
    assert dry.water_conservation == ["Implement drip irrigation", "Use mulching to retain moisture"]

    wet = engine.analyze_water_management(make_env(moisture=0.4), make_weather(precipitation=[10, 60]))
    assert wet.drainage_needs == "High"
    assert wet.flood_risk == "High"


def test_pest_risk_levels(clock):
    engine = InsightEngine(clock)
    assert engine.analyze_pest_risk(make_weather(temp=20, humidity=50), None).overall == "Low"
    assert engine.analyze_pest_risk(make_weather(temp=30, humidity=50), None).overall == "Moderate"

    images = ImageAnalysis(data=[ImageResult(
        image_id="image_1", timestamp=KHARIF_DAY,
        disease=AnalysisResult(analysis_type="disease-detection", results=[{"name": "Blast", "confidence": 0.9}]),
    )])
    risk = engine.analyze_pest_risk(make_weather(temp=30, humidity=85), images)
    assert risk.overall == "High"
    assert "Disease detected in field images" in risk.factors


def test_yield_potential_is_clamped(clock):
    engine = InsightEngine(clock)
    # Northern Plains: nitrogen High
    location = make_location(30.0, 76.0)
    yp = engine.analyze_yield_potential(make_env(ndvi=0.8), make_weather(temp=25), location)
    assert yp.score == 100
    assert yp.overall == "Excellent"

    low = engine.analyze_yield_potential(make_env(ndvi=0.1), make_weather(temp=40), make_location(12.0, 77.0))
    assert low.score == 75 - 20 - 15
    assert "Temperature stress" in low.limitations


def test_climate_adaptation_zones(clock):
    engine = InsightEngine(clock)
    hot = engine.analyze_climate_adaptation(make_weather(max_temps=[36] * 7, precipitation=[40] * 7),
                                            make_location(39.0, 75.0))
    assert hot.risks == ["Heat stress periods", "Heavy rainfall events"]
    assert "Use cold-tolerant crop varieties" in hot.strategies
    assert hot.opportunities == ["High-value medicinal herbs"]

    coastal = engine.analyze_climate_adaptation(make_weather(), make_location(5.0, 80.0))
    assert coastal.strategies == ["Salt-tolerant crop varieties"]


def test_image_insights_default_unknown_without_images(clock):
    engine = InsightEngine(clock)
    insights = engine.extract_image_insights(ImageAnalysis(success=True, data=None))
    assert insights.crop_health == "Unknown"
    assert insights.disease_presence == "Unknown"


def test_image_insights_from_results(clock):
    engine = InsightEngine(clock)
    images = ImageAnalysis(data=[ImageResult(
        image_id="image_1", timestamp=KHARIF_DAY,
        crop_health=AnalysisResult(analysis_type="crop-health", results={"overallHealth": "Poor"}),
        soil=AnalysisResult(analysis_type="soil-analysis", results={"soilType": "Clay"}),
        disease=AnalysisResult(analysis_type="disease-detection", results=[{"name": "Rust", "confidence": 0.4}]),
    )])
    insights = engine.extract_image_insights(images)
    assert insights.crop_health == "Poor"
    assert insights.soil_conditions == "Clay"
    assert insights.disease_presence == "Detected"

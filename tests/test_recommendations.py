from krishipulse.models.domain import (
    ClimateAdaptation, CropSuitability, ImageInsights, Insights, PestRisk, Recommendation,
    SoilHealth, WaterManagement, YieldPotential,
)
from krishipulse.services.insights import InsightEngine
from krishipulse.services.recommendations import RecommendationEngine, sort_recommendations

from conftest import KHARIF_DAY, make_env, make_location, make_weather

RANK = {"High": 3, "Medium": 2, "Low": 1}


def _insights(**overrides) -> Insights:
    base = dict(
        soil_health=SoilHealth(),
        crop_suitability=CropSuitability(),
        water_management=WaterManagement(),
        pest_risk=PestRisk(),
        yield_potential=YieldPotential(),
        climate_adaptation=ClimateAdaptation(),
        image_insights=ImageInsights(),
        timestamp=KHARIF_DAY,
    )
    base.update(overrides)
    return Insights(**base)


def _assert_sorted(recs):
    keys = [(RANK[r.priority], RANK[r.impact]) for r in recs]
    assert keys == sorted(keys, reverse=True)


def test_rule_tables():
    insights = _insights(
        soil_health=SoilHealth(overall="Poor", score=30, issues=["Low soil moisture"]),
        crop_suitability=CropSuitability(best_crops=["Rice", "Maize"], avoid_crops=["Wheat"],
                                         reasoning={"Wheat": "High temperature may affect wheat growth"}),
        water_management=WaterManagement(irrigation_needs="High", drainage_needs="High"),
        pest_risk=PestRisk(overall="High", factors=["High humidity - favorable for fungal diseases"]),
        climate_adaptation=ClimateAdaptation(strategies=["A", "B", "C", "D"]),
        image_insights=ImageInsights(disease_presence="Detected", crop_health="Poor"),
    )
    recs = RecommendationEngine().generate(insights)
    actions = [r.action for r in recs]

    assert "Conduct soil testing and implement soil improvement program" in actions
    assert "Implement irrigation system or improve water retention" in actions
    assert "Focus on: Rice, Maize" in actions
    assert "Avoid: Wheat" in actions
    assert "Install efficient irrigation system" in actions
    assert "Improve field drainage" in actions
    assert "Implement integrated pest management program" in actions
    assert "Apply preventive fungicides and improve air circulation" in actions
    assert "Implement: A, B, C" in actions
    assert "Schedule field inspection and implement treatment plan" in actions
    assert "Investigate causes and implement corrective measures" in actions
    _assert_sorted(recs)

    ipm = next(r for r in recs if r.category == "Pest Management")
    assert ipm.timeframe == "Immediate"


def test_no_rules_fire_on_neutral_insights():
    assert RecommendationEngine().generate(_insights()) == []


def test_sort_is_stable_for_ties():
    recs = [
        Recommendation(category="x", priority="Low", action="low", impact="Low", timeframe="t"),
        Recommendation(category="x", priority="High", action="first high", impact="Medium", timeframe="t"),
        Recommendation(category="x", priority="Medium", action="medium", impact="High", timeframe="t"),
        Recommendation(category="x", priority="High", action="second high", impact="Medium", timeframe="t"),
        Recommendation(category="x", priority="High", action="high high", impact="High", timeframe="t"),
    ]
    ordered = [r.action for r in sort_recommendations(recs)]
    assert ordered == ["high high", "first high", "second high", "medium", "low"]


def test_crop_specific_recommendations(clock):
    # Wheat in July at 40 °C on acidic soil: poor temperature and pH, off-season
    insights = InsightEngine(clock).generate(
        make_location(), make_env(ph=4.5), make_weather(temp=40), None, selected_crop="Wheat",
    )
    recs = RecommendationEngine().generate(insights)
    categories = [r.category for r in recs]
    assert "Wheat Cultivation" in categories
    assert any("Rabi" in r.action for r in recs)
    _assert_sorted(recs)

# krishipulse/services/recommendations.py
from typing import List

from ..models.domain import Insights, Recommendation
from .insights import FUNGAL_FACTOR

_RANK = {"High": 3, "Medium": 2, "Low": 1}


def sort_recommendations(recs: List[Recommendation]) -> List[Recommendation]:
    """Priority then impact, both descending. sorted() is stable so ties keep rule order."""
    return sorted(recs, key=lambda r: (_RANK[r.priority], _RANK[r.impact]), reverse=True)


def soil_rules(insights: Insights) -> List[Recommendation]:
    soil = insights.soil_health
    recs = []
    if soil.overall == "Poor":
        recs.append(Recommendation(
            category="Soil Management", priority="High",
            action="Conduct soil testing and implement soil improvement program",
            impact="High", timeframe="3-6 months",
            reasoning=f"Soil health score is {soil.score}",
        ))
    if "Low soil moisture" in soil.issues:
        recs.append(Recommendation(
            category="Water Management", priority="High",
            action="Implement irrigation system or improve water retention",
            impact="High", timeframe="1-2 months",
            reasoning="Low soil moisture detected",
        ))
    return recs


def crop_rules(insights: Insights) -> List[Recommendation]:
    crops = insights.crop_suitability
    recs = []
    if crops.best_crops:
        recs.append(Recommendation(
            category="Crop Selection", priority="High",
            action=f"Focus on: {', '.join(crops.best_crops)}",
            impact="High", timeframe="Next season",
            reasoning="These crops are best suited to current conditions",
        ))
    if crops.avoid_crops:
        recs.append(Recommendation(
            category="Crop Selection", priority="Medium",
            action=f"Avoid: {', '.join(crops.avoid_crops)}",
            impact="Medium", timeframe="Next season",
            reasoning="; ".join(crops.reasoning[c] for c in crops.avoid_crops if c in crops.reasoning) or None,
        ))
    return recs


def water_rules(insights: Insights) -> List[Recommendation]:
    water = insights.water_management
    recs = []
    if water.irrigation_needs == "High":
        recs.append(Recommendation(
            category="Irrigation", priority="High", action="Install efficient irrigation system",
            impact="High", timeframe="2-3 months", reasoning="High irrigation needs detected",
        ))
    if water.drainage_needs == "High":
        recs.append(Recommendation(
            category="Drainage", priority="High", action="Improve field drainage",
            impact="High", timeframe="1-2 months", reasoning="Poor drainage detected",
        ))
    return recs


def pest_rules(insights: Insights) -> List[Recommendation]:
    pest = insights.pest_risk
    recs = []
    if pest.overall == "High":
        recs.append(Recommendation(
            category="Pest Management", priority="High",
            action="Implement integrated pest management program",
            impact="High", timeframe="Immediate", reasoning="High pest risk detected",
        ))
    if FUNGAL_FACTOR in pest.factors:
        recs.append(Recommendation(
            category="Disease Prevention", priority="Medium",
            action="Apply preventive fungicides and improve air circulation",
            impact="Medium", timeframe="1-2 weeks", reasoning="High humidity favors fungal diseases",
        ))
    return recs


def climate_rules(insights: Insights) -> List[Recommendation]:
    strategies = insights.climate_adaptation.strategies
    if not strategies:
        return []
    return [Recommendation(
        category="Climate Adaptation", priority="Medium",
        action=f"Implement: {', '.join(strategies[:3])}",
        impact="Medium", timeframe="3-6 months",
        reasoning="; ".join(insights.climate_adaptation.risks) or "Climate adaptation strategies",
    )]


def image_rules(insights: Insights) -> List[Recommendation]:
    image = insights.image_insights
    recs = []
    if image.disease_presence == "Detected":
        recs.append(Recommendation(
            category="Disease Management", priority="High",
            action="Schedule field inspection and implement treatment plan",
            impact="High", timeframe="1-2 weeks", reasoning="Disease detected in field images",
        ))
    if image.crop_health == "Poor":
        recs.append(Recommendation(
            category="Crop Health", priority="High",
            action="Investigate causes and implement corrective measures",
            impact="High", timeframe="2-4 weeks", reasoning="Poor crop health detected in images",
        ))
    return recs


def crop_specific_rules(insights: Insights) -> List[Recommendation]:
    specific = insights.crop_specific
    if specific is None:
        return []
    recs = []
    for factor, condition in specific.current_conditions.items():
        if condition.status == "poor" and condition.action:
            recs.append(Recommendation(
                category=f"{specific.crop_name} Cultivation", priority="High",
                action=condition.action, impact="High", timeframe="1-2 weeks",
                reasoning=f"{factor.replace('_', ' ').capitalize()} {condition.value} vs optimal {condition.optimal:g}",
            ))
    if not specific.seasonal_analysis.suitable:
        recs.append(Recommendation(
            category=f"{specific.crop_name} Cultivation", priority="Medium",
            action=f"Plan {specific.crop_name.lower()} sowing for the {specific.seasonal_analysis.optimal_season} season",
            impact="Medium", timeframe="Next season",
            reasoning=specific.seasonal_analysis.note,
        ))
    return recs


RULES = (soil_rules, crop_rules, water_rules, pest_rules, climate_rules, image_rules, crop_specific_rules)


class RecommendationEngine:
    def generate(self, insights: Insights) -> List[Recommendation]:
        recs: List[Recommendation] = []
        for rule in RULES:
            recs.extend(rule(insights))
        return sort_recommendations(recs)

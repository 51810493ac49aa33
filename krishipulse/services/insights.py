# krishipulse/services/insights.py
import logging
from typing import Dict, List, Optional, Tuple

from ..models.domain import (
    Band, ClimateAdaptation, ConditionStatus, CropSpecificInsight, CropSuitability,
    EnvironmentalData, ImageAnalysis, ImageInsights, Insights, LocationData, PestRisk,
    Rating, SeasonalAnalysis, SelectedCropSuitability, SoilHealth, WaterManagement,
    WeatherData, YieldPotential,
)
from ..utils.clock import Clock, SystemClock
from .crops import (
    REGION_DEFAULT_CROPS, SOIL_CROPS, ZONE_CROPS, crops_for_region, find_crop, requirements_for,
)
from .fallback import indian_season
from .geography import region_type

log = logging.getLogger("krishipulse.insights")

DISEASE_CONFIDENCE = 0.7
CONDITION_TOLERANCE = 0.2

FUNGAL_FACTOR = "High humidity - favorable for fungal diseases"
INSECT_FACTOR = "Warm temperature - favorable for insect pests"
DISEASE_FACTOR = "Disease detected in field images"

# (below optimal, above optimal) remediation per factor
REMEDIATION = {
    "temperature":   ("Use protective covers or delay sowing until it warms up",
                      "Provide shade and irrigate in the evening to reduce heat stress"),
    "rainfall":      ("Supplement rainfall with irrigation",
                      "Clear drainage channels to prevent waterlogging"),
    "soil_moisture": ("Irrigate and mulch to raise soil moisture",
                      "Improve drainage to reduce excess soil moisture"),
    "ph":            ("Apply lime to raise soil pH",
                      "Apply sulfur or gypsum to lower soil pH"),
}


def rating_for(score: float) -> Rating:
    if score >= 80:
        return "Excellent"
    if score >= 60:
        return "Good"
    if score >= 40:
        return "Fair"
    return "Poor"


def clamp_score(score: float) -> int:
    return int(max(0, min(100, score)))


def in_band(value: Optional[float], low: float, high: float) -> bool:
    return value is not None and low <= value <= high


def condition_status(factor: str, value: Optional[float], band: Band) -> ConditionStatus:
    """optimal within ±20% of the optimal value, acceptable inside the band, poor outside."""
    if value is None:
        return ConditionStatus(value=None, optimal=band.optimal, status="unknown")

    tolerance = abs(band.optimal) * CONDITION_TOLERANCE
    if abs(value - band.optimal) <= tolerance:
        return ConditionStatus(value=value, optimal=band.optimal, status="optimal")

    below, above = REMEDIATION[factor]
    action = below if value < band.optimal else above
    status = "acceptable" if band.min <= value <= band.max else "poor"
    return ConditionStatus(value=value, optimal=band.optimal, status=status, action=action)


def forecast_rainfall(weather: WeatherData) -> Optional[float]:
    daily = weather.daily()
    if daily is None or not daily.precipitation():
        return None
    return round(sum(daily.precipitation()), 1)


def _disease_hits(images: Optional[ImageAnalysis]) -> Tuple[bool, bool]:
    """(any disease reported, any high-confidence disease) across analysed images."""
    found = confident = False
    if images is None or not images.data:
        return found, confident
    for image in images.data:
        if image.disease is None:
            continue
        results = image.disease.results
        if isinstance(results, list):
            if results:
                found = True
            if any((d.get("confidence") or 0) > DISEASE_CONFIDENCE for d in results):
                confident = True
        elif isinstance(results, dict):
            if (results.get("diseaseProbability") or 0) > DISEASE_CONFIDENCE:
                found = confident = True
    return found, confident


class InsightEngine:
    """Turns collected field data into the fixed-shape Insights record."""

    def __init__(self, clock: Optional[Clock] = None):
        self.clock = clock or SystemClock()

    def generate(self,
                 location: LocationData,
                 environmental: EnvironmentalData,
                 weather: WeatherData,
                 images: Optional[ImageAnalysis],
                 selected_crop: Optional[str] = None) -> Insights:
        crop_specific = None
        suitability = self.analyze_crop_suitability(location, environmental, weather)
        if selected_crop:
            selected = self.analyze_selected_crop(selected_crop, suitability, environmental, weather)
            if selected is not None:
                suitability = selected
                crop_specific = self.crop_specific_insight(selected, weather)
            else:
                log.info("unknown crop %r; returning generic suitability", selected_crop)

        return Insights(
            soil_health=self.analyze_soil_health(environmental),
            crop_suitability=suitability,
            water_management=self.analyze_water_management(environmental, weather),
            pest_risk=self.analyze_pest_risk(weather, images),
            yield_potential=self.analyze_yield_potential(environmental, weather, location),
            climate_adaptation=self.analyze_climate_adaptation(weather, location),
            image_insights=self.extract_image_insights(images),
            crop_specific=crop_specific,
            timestamp=self.clock.now(),
        )

    # ---------- soil ----------

    def analyze_soil_health(self, environmental: EnvironmentalData) -> SoilHealth:
        health = SoilHealth()

        moisture = environmental.soil_moisture()
        if moisture is not None:
            if moisture < 0.15:
                health.issues.append("Low soil moisture")
                health.recommendations.append("Consider irrigation or mulching")
            elif moisture > 0.4:
                health.issues.append("Excessive soil moisture")
                health.recommendations.append("Improve drainage")
            else:
                health.strengths.append("Optimal soil moisture")

        ph = environmental.soil_ph()
        if ph is not None:
            if ph < 5.5:
                health.issues.append("Acidic soil")
                health.recommendations.append("Apply lime to raise pH")
            elif ph > 8.5:
                health.issues.append("Alkaline soil")
                health.recommendations.append("Apply sulfur to lower pH")
            else:
                health.strengths.append("Optimal soil pH")

        health.score = clamp_score(100 - len(health.issues) * 15 + len(health.strengths) * 10)
        health.overall = rating_for(health.score)
        return health

    # ---------- crops ----------

    def analyze_crop_suitability(self,
                                 location: LocationData,
                                 environmental: EnvironmentalData,
                                 weather: WeatherData) -> CropSuitability:
        suitability = CropSuitability()
        lat, lon = location.coordinates.lat, location.coordinates.lon
        current = weather.current
        temp = current.temperature if current and current.temperature is not None else 25.0
        humidity = current.humidity if current and current.humidity is not None else 60.0
        moisture = environmental.soil_moisture()
        ndvi = environmental.ndvi()

        for crop in crops_for_region(region_type(lat, lon)):
            score = 0
            reasons = []
            t_min, t_max, t_opt = crop["temp"]
            if t_min <= temp <= t_max:
                score += 3
                reasons.append(f"Optimal temperature ({temp}°C)")
            elif abs(temp - t_opt) <= 5:
                score += 2
                reasons.append(f"Suitable temperature ({temp}°C)")
            else:
                score -= 1
                reasons.append(f"Temperature challenge ({temp}°C)")

            if in_band(humidity, *crop["humidity"]):
                score += 2
                reasons.append(f"Good humidity ({humidity}%)")

            if in_band(moisture, *crop["moisture"]):
                score += 2
                reasons.append("Suitable soil moisture")

            if ndvi is not None and ndvi > 0.5:
                score += 1
                reasons.append("Good vegetation health")

            suitability.reasoning[crop["name"]] = ", ".join(reasons)
            if score >= 5:
                suitability.best_crops.append(crop["name"])
            elif score >= 3:
                suitability.good_crops.append(crop["name"])
            elif score <= 0:
                suitability.avoid_crops.append(crop["name"])

        if not suitability.best_crops:
            table = ZONE_CROPS.get(location.agricultural_zone.zone) or REGION_DEFAULT_CROPS[region_type(lat, lon)]
            suitability.best_crops.extend(table["best"])
            suitability.good_crops.extend(table["good"])
            for name, why in SOIL_CROPS.get(location.soil_classification.type, {}).items():
                suitability.best_crops.append(name)
                suitability.reasoning[name] = why

        if current and current.temperature is not None and current.temperature > 30:
            suitability.avoid_crops.append("Wheat")
            suitability.reasoning["Wheat"] = "High temperature may affect wheat growth"
            suitability.best_crops = [c for c in suitability.best_crops if c != "Wheat"]
            suitability.good_crops = [c for c in suitability.good_crops if c != "Wheat"]

        suitability.best_crops = list(dict.fromkeys(suitability.best_crops))
        suitability.good_crops = list(dict.fromkeys(suitability.good_crops))
        suitability.avoid_crops = list(dict.fromkeys(suitability.avoid_crops))
        return suitability

    def analyze_selected_crop(self,
                              crop_name: str,
                              generic: CropSuitability,
                              environmental: EnvironmentalData,
                              weather: WeatherData) -> Optional[SelectedCropSuitability]:
        crop = find_crop(crop_name)
        if crop is None:
            return None
        req = requirements_for(crop)

        temp = weather.current.temperature if weather.current else None
        rainfall = forecast_rainfall(weather)
        moisture = environmental.soil_moisture()
        ph = environmental.soil_ph()

        score = 0
        factors: List[str] = []
        if in_band(temp, req.temperature.min, req.temperature.max):
            score += 25
            factors.append(f"Temperature {temp}°C within {req.temperature.min:g}-{req.temperature.max:g}°C")
        elif temp is not None:
            factors.append(f"Temperature {temp}°C outside {req.temperature.min:g}-{req.temperature.max:g}°C")

        if in_band(rainfall, req.rainfall.min, req.rainfall.max):
            score += 25
            factors.append(f"Rainfall {rainfall}mm within {req.rainfall.min:g}-{req.rainfall.max:g}mm")
        elif rainfall is not None and rainfall >= req.rainfall.min * 0.5:
            score += 15
            factors.append(f"Rainfall {rainfall}mm is at least half of the {req.rainfall.min:g}mm minimum")
        elif rainfall is not None:
            factors.append(f"Rainfall {rainfall}mm well below {req.rainfall.min:g}mm")

        if in_band(moisture, req.soil_moisture.min, req.soil_moisture.max):
            score += 25
            factors.append(f"Soil moisture {moisture} within {req.soil_moisture.min:g}-{req.soil_moisture.max:g}")
        elif moisture is not None:
            factors.append(f"Soil moisture {moisture} outside {req.soil_moisture.min:g}-{req.soil_moisture.max:g}")

        if in_band(ph, req.ph.min, req.ph.max):
            score += 25
            factors.append(f"Soil pH {ph} within {req.ph.min:g}-{req.ph.max:g}")
        elif ph is not None:
            factors.append(f"Soil pH {ph} outside {req.ph.min:g}-{req.ph.max:g}")

        score = clamp_score(score)
        conditions: Dict[str, ConditionStatus] = {
            "temperature": condition_status("temperature", temp, req.temperature),
            "rainfall": condition_status("rainfall", rainfall, req.rainfall),
            "soil_moisture": condition_status("soil_moisture", moisture, req.soil_moisture),
            "ph": condition_status("ph", ph, req.ph),
        }
        return SelectedCropSuitability(
            **generic.model_dump(),
            crop_name=crop["name"],
            score=score,
            rating=rating_for(score),
            factors=factors,
            requirements=req,
            current_conditions=conditions,
        )

    def seasonal_analysis(self, optimal_season: str) -> SeasonalAnalysis:
        current = indian_season(self.clock.now().month).title()
        if optimal_season == "Year-round":
            return SeasonalAnalysis(current_season=current, optimal_season=optimal_season, suitable=True,
                                    note="Can be grown year-round")
        suitable = optimal_season.lower() == current.lower()
        note = (f"{current} is the right season for this crop" if suitable
                else f"Best sown in {optimal_season}; current season is {current}")
        return SeasonalAnalysis(current_season=current, optimal_season=optimal_season, suitable=suitable, note=note)

    def crop_specific_insight(self, selected: SelectedCropSuitability, weather: WeatherData) -> CropSpecificInsight:
        seasonal = self.seasonal_analysis(selected.requirements.season)
        risks = [f"{name.replace('_', ' ').capitalize()} is far from optimal"
                 for name, c in selected.current_conditions.items() if c.status == "poor"]
        if not seasonal.suitable:
            risks.append("Off-season sowing")
        if weather.current and weather.current.temperature is not None:
            if weather.current.temperature > selected.requirements.temperature.max:
                risks.append("Heat stress")
            elif weather.current.temperature < selected.requirements.temperature.min:
                risks.append("Cold stress")

        recs = [c.action for c in selected.current_conditions.values() if c.action]
        if not seasonal.suitable:
            recs.append(f"Plan sowing for the {seasonal.optimal_season} season")

        if selected.score >= 80:
            outlook = "High"
        elif selected.score >= 60:
            outlook = "Moderate"
        else:
            outlook = "Low"

        return CropSpecificInsight(
            crop_name=selected.crop_name,
            suitability=selected.rating,
            score=selected.score,
            optimal_conditions=selected.requirements,
            current_conditions=selected.current_conditions,
            yield_potential=outlook,
            risk_factors=list(dict.fromkeys(risks)),
            seasonal_analysis=seasonal,
            recommendations=list(dict.fromkeys(recs)),
        )

    # ---------- water / pests / yield / climate ----------

    def analyze_water_management(self, environmental: EnvironmentalData, weather: WeatherData) -> WaterManagement:
        water = WaterManagement()
        moisture = environmental.soil_moisture()
        if moisture is not None:
            if moisture < 0.2:
                water.irrigation_needs = "High"
                water.drought_risk = "High"
                water.water_conservation += ["Implement drip irrigation", "Use mulching to retain moisture"]
            elif moisture > 0.35:
                water.drainage_needs = "High"
                water.flood_risk = "Moderate"
                water.water_conservation.append("Improve field drainage")

        daily = weather.daily()
        if daily is not None and any(p > 50 for p in daily.precipitation()):
            water.flood_risk = "High"
            water.water_conservation.append("Prepare for heavy rainfall")
        return water

    def analyze_pest_risk(self, weather: WeatherData, images: Optional[ImageAnalysis]) -> PestRisk:
        risk = PestRisk()
        current = weather.current
        if current and current.humidity is not None and current.humidity > 80:
            risk.factors.append(FUNGAL_FACTOR)
            risk.recommendations.append("Monitor for fungal infections")
        if current and current.temperature is not None and current.temperature > 25:
            risk.factors.append(INSECT_FACTOR)
            risk.recommendations.append("Check for insect infestations")

        _, confident = _disease_hits(images)
        if confident:
            risk.factors.append(DISEASE_FACTOR)
            risk.recommendations.append("Implement disease management strategies")

        if len(risk.factors) >= 3:
            risk.overall = "High"
        elif len(risk.factors) >= 1:
            risk.overall = "Moderate"
        return risk

    def analyze_yield_potential(self,
                                environmental: EnvironmentalData,
                                weather: WeatherData,
                                location: LocationData) -> YieldPotential:
        yp = YieldPotential()
        score = 75

        ndvi = environmental.ndvi()
        if ndvi is not None:
            if ndvi > 0.6:
                yp.factors.append("High vegetation density")
                score += 15
            elif ndvi < 0.3:
                yp.limitations.append("Low vegetation density")
                score -= 20

        npk = location.soil_classification.npk
        if npk.n == "High":
            yp.factors.append("High nitrogen content")
            score += 10
        if npk.p == "High":
            yp.factors.append("High phosphorus content")
            score += 10

        temp = weather.current.temperature if weather.current else None
        if temp is not None:
            if 20 <= temp <= 30:
                yp.factors.append("Optimal temperature range")
                score += 10
            elif temp > 35 or temp < 10:
                yp.limitations.append("Temperature stress")
                score -= 15

        yp.score = clamp_score(score)
        yp.overall = rating_for(yp.score)
        return yp

    def analyze_climate_adaptation(self, weather: WeatherData, location: LocationData) -> ClimateAdaptation:
        adaptation = ClimateAdaptation()
        daily = weather.daily()
        if daily is not None:
            if any(t > 35 for t in daily.max_temps()):
                adaptation.risks.append("Heat stress periods")
                adaptation.strategies += ["Implement shade structures", "Use heat-tolerant crop varieties"]
            if any(p > 30 for p in daily.precipitation()):
                adaptation.risks.append("Heavy rainfall events")
                adaptation.strategies += ["Improve drainage systems", "Plant flood-tolerant crops"]

        zone = location.agricultural_zone.zone
        if zone == "Himalayan Region":
            adaptation.strategies.append("Use cold-tolerant crop varieties")
            adaptation.opportunities.append("High-value medicinal herbs")
        elif zone == "Coastal Region":
            adaptation.strategies.append("Salt-tolerant crop varieties")
            adaptation.opportunities.append("Integrated fish farming")
        return adaptation

    # ---------- images ----------

    def extract_image_insights(self, images: Optional[ImageAnalysis]) -> ImageInsights:
        insights = ImageInsights()
        if images is None or not images.data:
            return insights

        for image in images.data:
            if image.crop_health and isinstance(image.crop_health.results, dict):
                health = image.crop_health.results.get("overallHealth")
                if health:
                    insights.crop_health = health
            if image.soil and isinstance(image.soil.results, dict):
                soil_type = image.soil.results.get("soilType")
                if soil_type:
                    insights.soil_conditions = soil_type
            if image.comprehensive and isinstance(image.comprehensive.results, dict):
                weeds = image.comprehensive.results.get("weedInfestation")
                if weeds:
                    insights.weed_infestation = weeds

        found, _ = _disease_hits(images)
        if found:
            insights.disease_presence = "Detected"
            insights.recommendations.append("Implement disease management program")
        else:
            insights.disease_presence = "None detected"
        return insights

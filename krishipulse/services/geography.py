# krishipulse/services/geography.py
from typing import List

from ..models.domain import AgriculturalZone, NPK, SoilClassification


def validate_coordinates(lat: float, lon: float) -> List[str]:
    """Returns a list of violations; empty means the pair is usable."""
    errors = []
    if lat is None or not -90 <= lat <= 90:
        errors.append("Latitude must be between -90 and 90")
    if lon is None or not -180 <= lon <= 180:
        errors.append("Longitude must be between -180 and 180")
    return errors


def region_type(lat: float, lon: float) -> str:
    """Coarse Indian region bucket used to filter the crop table."""
    if lat > 26:
        return "northern"
    if lat > 20:
        return "central"
    if lat > 15:
        return "southern"
    if lon > 75:
        return "eastern"
    return "western"


def classify_agricultural_zone(lat: float, lon: float) -> AgriculturalZone:
    if 28 <= lat <= 37:
        return AgriculturalZone(zone="Northern Plains", characteristics=["Wheat", "Rice", "Cotton", "Sugarcane"])
    if 20 <= lat < 28:
        return AgriculturalZone(zone="Central Plateau", characteristics=["Cotton", "Soybean", "Pulses", "Oilseeds"])
    if 8 <= lat < 20:
        return AgriculturalZone(zone="Southern Peninsula", characteristics=["Rice", "Coconut", "Spices", "Coffee"])
    if 37 < lat <= 42:
        return AgriculturalZone(zone="Himalayan Region", characteristics=["Apples", "Temperate Fruits", "Medicinal Herbs"])
    return AgriculturalZone(zone="Coastal Region", characteristics=["Rice", "Coconut", "Fish Farming", "Mangroves"])


def classify_soil_type(lat: float, lon: float) -> SoilClassification:
    """Simplified Indian soil map keyed on latitude bands."""
    if 28 <= lat <= 37:
        return SoilClassification(
            type="Alluvial Soil",
            characteristics=["Rich in minerals", "Good water retention", "Suitable for cereals"],
            npk=NPK(n="High", p="Medium", k="Medium"),
        )
    if 20 <= lat < 28:
        return SoilClassification(
            type="Black Soil",
            characteristics=["High clay content", "Good moisture retention", "Suitable for cotton"],
            npk=NPK(n="Medium", p="High", k="Low"),
        )
    if 8 <= lat < 20:
        return SoilClassification(
            type="Red Soil",
            characteristics=["Iron-rich", "Well-drained", "Suitable for pulses"],
            npk=NPK(n="Low", p="Medium", k="High"),
        )
    return SoilClassification(
        type="Laterite Soil",
        characteristics=["Iron and aluminum rich", "Well-drained", "Suitable for plantation crops"],
        npk=NPK(n="Low", p="Low", k="Medium"),
    )

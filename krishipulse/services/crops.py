# krishipulse/services/crops.py
from typing import Dict, List, Optional

from ..models.domain import Band, CropRequirements

# temp: °C (min, max, optimal) · humidity: % · moisture: m³/m³ · rain_mm: forecast-window total · ph
CROPS = [
    {"name": "Rice",      "temp": (20, 35, 25), "humidity": (70, 90), "moisture": (0.5, 0.8), "rain_mm": (100, 250, 150), "ph": (5.5, 7.0, 6.3), "season": "Kharif",     "regions": ["all"]},
    {"name": "Wheat",     "temp": (15, 25, 20), "humidity": (50, 70), "moisture": (0.3, 0.6), "rain_mm": (25, 75, 50),    "ph": (6.0, 7.5, 6.8), "season": "Rabi",       "regions": ["northern", "central"]},
    {"name": "Cotton",    "temp": (20, 35, 28), "humidity": (50, 80), "moisture": (0.4, 0.7), "rain_mm": (50, 100, 75),   "ph": (5.8, 8.0, 7.0), "season": "Kharif",     "regions": ["central", "southern"]},
    {"name": "Soybean",   "temp": (22, 30, 26), "humidity": (60, 85), "moisture": (0.4, 0.7), "rain_mm": (45, 75, 60),    "ph": (6.0, 7.5, 6.8), "season": "Kharif",     "regions": ["central"]},
    {"name": "Maize",     "temp": (20, 30, 25), "humidity": (60, 80), "moisture": (0.4, 0.6), "rain_mm": (50, 100, 75),   "ph": (5.5, 7.5, 6.5), "season": "Year-round", "regions": ["all"]},
    {"name": "Sugarcane", "temp": (25, 35, 30), "humidity": (75, 95), "moisture": (0.6, 0.9), "rain_mm": (75, 150, 110),  "ph": (6.5, 7.5, 7.0), "season": "Year-round", "regions": ["northern", "southern"]},
    {"name": "Pulses",    "temp": (18, 28, 23), "humidity": (40, 70), "moisture": (0.3, 0.5), "rain_mm": (25, 60, 40),    "ph": (6.0, 7.5, 6.8), "season": "Rabi",       "regions": ["all"]},
    {"name": "Groundnut", "temp": (22, 30, 26), "humidity": (50, 75), "moisture": (0.3, 0.6), "rain_mm": (50, 100, 75),   "ph": (6.0, 7.0, 6.5), "season": "Kharif",     "regions": ["southern", "western"]},
    {"name": "Millets",   "temp": (25, 35, 30), "humidity": (30, 60), "moisture": (0.2, 0.4), "rain_mm": (20, 60, 40),    "ph": (5.5, 7.5, 6.5), "season": "Kharif",     "regions": ["all"]},
    {"name": "Turmeric",  "temp": (24, 32, 28), "humidity": (70, 90), "moisture": (0.5, 0.8), "rain_mm": (100, 200, 150), "ph": (5.5, 7.5, 6.5), "season": "Year-round", "regions": ["southern"]},
]

_BY_NAME = {c["name"].lower(): c for c in CROPS}
_ALIASES = {"paddy": "rice", "dhan": "rice", "corn": "maize", "gehun": "wheat", "soya": "soybean", "soyabean": "soybean"}

# used when no crop in the table clears the best-crop bar
ZONE_CROPS: Dict[str, Dict[str, List[str]]] = {
    "Northern Plains":    {"best": ["Wheat", "Rice", "Cotton"],     "good": ["Sugarcane", "Pulses"]},
    "Central Plateau":    {"best": ["Cotton", "Soybean", "Pulses"], "good": ["Oilseeds", "Wheat"]},
    "Southern Peninsula": {"best": ["Rice", "Coconut", "Spices"],   "good": ["Coffee", "Tea"]},
}

REGION_DEFAULT_CROPS: Dict[str, Dict[str, List[str]]] = {
    "northern": {"best": ["Wheat", "Rice", "Sugarcane"],      "good": ["Maize", "Pulses"]},
    "central":  {"best": ["Soybean", "Cotton", "Maize"],      "good": ["Wheat", "Pulses"]},
    "southern": {"best": ["Rice", "Cotton", "Groundnut"],     "good": ["Turmeric", "Pulses"]},
    "western":  {"best": ["Cotton", "Sugarcane", "Groundnut"], "good": ["Millets", "Pulses"]},
    "eastern":  {"best": ["Rice", "Maize", "Pulses"],         "good": ["Sugarcane", "Cotton"]},
}

SOIL_CROPS: Dict[str, Dict[str, str]] = {
    "Black Soil": {"Cotton": "Black soil is ideal for cotton cultivation"},
    "Red Soil":   {"Pulses": "Red soil is suitable for pulse crops",
                   "Groundnut": "Red soil is suitable for groundnut"},
}


def crops_for_region(region: str) -> List[dict]:
    return [c for c in CROPS if "all" in c["regions"] or region in c["regions"]]


def find_crop(name: Optional[str]) -> Optional[dict]:
    if not name:
        return None
    key = name.strip().lower()
    key = _ALIASES.get(key, key)
    return _BY_NAME.get(key)


def requirements_for(crop: dict) -> CropRequirements:
    t_min, t_max, t_opt = crop["temp"]
    r_min, r_max, r_opt = crop["rain_mm"]
    m_min, m_max = crop["moisture"]
    p_min, p_max, p_opt = crop["ph"]
    return CropRequirements(
        temperature=Band(min=t_min, max=t_max, optimal=t_opt),
        rainfall=Band(min=r_min, max=r_max, optimal=r_opt),
        soil_moisture=Band(min=m_min, max=m_max, optimal=round((m_min + m_max) / 2, 3)),
        ph=Band(min=p_min, max=p_max, optimal=p_opt),
        season=crop["season"],
    )

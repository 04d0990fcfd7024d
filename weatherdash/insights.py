from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from weatherdash import config
from weatherdash.formatting import kelvin_to_celsius
from weatherdash.models import UvCategory

# Short readings shown under each instrument widget.

def uv_category(uv: float) -> UvCategory:
    # WHO / EPA categories
    if uv <= 2:
        return UvCategory("Low", "Safe for most people.")
    if uv <= 5:
        return UvCategory("Moderate", "Use sunscreen and wear a hat.")
    if uv <= 7:
        return UvCategory("High", "Limit time in the sun and use sunscreen.")
    if uv <= 10:
        return UvCategory("Very High", "Stay in shade during midday.")
    return UvCategory("Extreme", "Avoid sun and stay indoors if possible.")

def humidity_text(humidity: float) -> str:
    if humidity < 30:
        return "DRY AIR! May cause dry skin and throat."
    if humidity < 50:
        return "PERFECT HUMIDITY! Comfortable breathing."
    if humidity < 70:
        return "HIGH MOISTURE! Feels sticky, allergens increase."
    return "EXTREMELY WET AIR! Uncomfortable and mold risk."

def pressure_text(pressure_hpa: float) -> str:
    if pressure_hpa < 1000:
        return "VERY LOW PRESSURE! Storm conditions likely."
    if pressure_hpa < 1015:
        return "LOW PRESSURE! Clouds and precipitation possible."
    if pressure_hpa < 1025:
        return "NORMAL PRESSURE! Stable weather conditions."
    if pressure_hpa < 1040:
        return "HIGH PRESSURE! Clear skies and dry conditions."
    return "VERY HIGH PRESSURE! Extremely stable, possibly hot or cold."

def sight_distance_text(km: float) -> str:
    if km > 10:
        return "CRYSTAL CLEAR! Exceptional sight distance."
    if km > 5:
        return "CLEAR VIEW! Excellent sight distance."
    if km > 2:
        return "MODERATE VIEW! Some sight distance limitations."
    return "LIMITED VIEW! Restricted sight distance ahead."

def feels_like_text(feels_like: float, temp_min: float, temp_max: float) -> str:
    """Compare apparent temperature with the day's range. Inputs are Kelvin."""
    feels = kelvin_to_celsius(feels_like)
    avg = (kelvin_to_celsius(temp_min) + kelvin_to_celsius(temp_max)) / 2

    if feels >= 35:
        return "SCORCHING HOT! Like walking into an oven."
    if feels <= 0:
        return "FREEZING COLD! Frostbite risk."
    if feels < avg - 5:
        return "FEELS MUCH COLDER than it looks!"
    if feels > avg + 5:
        return "FEELS MUCH HOTTER than it looks!"
    return "ACTUAL FEEL matches display."

def city_population(daily_forecast: Optional[Dict[str, Any]]) -> Optional[Tuple[str, int]]:
    """(city name, population) from a forecast payload; 0 or missing population uses the default."""
    if not daily_forecast or not daily_forecast.get("city"):
        return None
    city = daily_forecast["city"]
    return city.get("name") or config.DEFAULT_CITY_NAME, city.get("population") or config.DEFAULT_CITY_POPULATION

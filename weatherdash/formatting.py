from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence, Union

import pandas as pd
import pytz

from weatherdash.models import AirQualityBand, DaySummary

# Unit conversions and display formatting for the dashboard widgets.
# OpenWeatherMap reports Kelvin, m/s and metres unless told otherwise.

KELVIN_OFFSET = 273.15
RECORDS_PER_DAY = 8  # 3-hour steps
DAYTIME_HOURS = range(8, 19)  # 08:00-18:00 inclusive
UV_SCALE_MAX = 14

# Upstream AQI is 1-5; the widget shows it on 0-100 and picks the first band
# whose rating is >= the scaled value.
AIR_QUALITY_INDEX: tuple[AirQualityBand, ...] = (
    AirQualityBand(20, "Excellent (AQI 0-20): Air quality is ideal for most individuals. No health concerns"),
    AirQualityBand(40, "Fair (AQI 21-40): Air quality is acceptable. Some pollutants may affect very sensitive individuals"),
    AirQualityBand(60, "Moderate (AQI 41-60): Health concerns for sensitive groups. General public is less likely to be affected"),
    AirQualityBand(80, "Poor (AQI 61-80): Everyone may begin to experience health effects. Sensitive groups may experience more serious effects"),
    AirQualityBand(100, "Hazardous (AQI 81-100): Health alert - risk of health effects for everyone. Avoid outdoor activities"),
)


def _round_half_up(x: float) -> int:
    # Math.round semantics; Python's round() is banker's rounding
    return math.floor(x + 0.5)


def kelvin_to_celsius(kelvin: float) -> int:
    return _round_half_up(kelvin - KELVIN_OFFSET)


def mps_to_kmh(mps: float) -> int:
    return _round_half_up(mps * 3.6)


def meters_to_km(meters: float) -> int:
    return _round_half_up(meters / 1000)


def unix_to_local_time(unix_time: int, timezone_offset: int) -> str:
    """Render ``unix_time`` as ``hh:mm AM/PM`` in the location's local time.

    ``timezone_offset`` is the upstream offset from UTC in seconds. It is
    added to the timestamp and the fields are read in UTC, so the host's own
    timezone never leaks in.
    """
    shifted = datetime.fromtimestamp(unix_time + timezone_offset, tz=pytz.UTC)
    period = "PM" if shifted.hour >= 12 else "AM"
    hours12 = shifted.hour % 12 or 12
    return f"{hours12:02d}:{shifted.minute:02d} {period}"


def scale_aqi(aqi: int) -> int:
    return int(aqi) * 10


def air_quality_band(value: float) -> Optional[AirQualityBand]:
    for band in AIR_QUALITY_INDEX:
        if value <= band.rating:
            return band
    return None


def air_quality_description(aqi: int) -> str:
    band = air_quality_band(scale_aqi(aqi))
    return band.description if band else "Unavailable"


def format_number(num: float) -> Union[str, int]:
    if num >= 1_000_000:
        return f"{num / 1_000_000:.1f}M"
    if num >= 1000:
        return f"{num / 1000:.1f}K"
    return int(num)


def uv_progress(uv: float) -> float:
    """UV index as a percentage of the 0-14 gauge."""
    return uv / UV_SCALE_MAX * 100


def _utc(ts: int) -> datetime:
    return datetime.fromtimestamp(ts, tz=pytz.UTC)


def five_day_aggregate(records: Sequence[Dict[str, Any]], days: int = 5) -> List[DaySummary]:
    """Collapse 3-hour forecast records into daily summaries.

    Bucket i holds records [8i, 8i+8). Per bucket: lowest temp_min, highest
    temp_max (raw upstream units), and the most frequent weather condition
    where daytime readings (UTC hour of ``dt`` in 08..18) count twice. Ties go
    to the condition seen first.
    """
    rows = []
    for i, rec in enumerate(records[: days * RECORDS_PER_DAY]):
        main = rec.get("main") or {}
        weather = rec.get("weather") or []
        condition = weather[0].get("main") if weather else None
        hour = _utc(rec["dt"]).hour
        rows.append({
            "bucket": i // RECORDS_PER_DAY,
            "dt": rec["dt"],
            "temp_min": main.get("temp_min"),
            "temp_max": main.get("temp_max"),
            "condition": condition,
            "weight": 2 if hour in DAYTIME_HOURS else 1,
        })
    if not rows:
        return []

    df = pd.DataFrame(rows)
    out: List[DaySummary] = []
    for bucket, day in df.groupby("bucket", sort=True):
        counted = day.dropna(subset=["condition"])
        if counted.empty:
            condition = "Clear"
        else:
            # sort=False keeps first-seen order, idxmax keeps the first of equal maxima
            weights = counted.groupby("condition", sort=False)["weight"].sum()
            condition = str(weights.idxmax())

        first = _utc(int(day["dt"].iloc[0]))
        out.append(DaySummary(
            day_name="Today" if bucket == 0 else first.strftime("%a"),
            day_date=f"{first.strftime('%b')} {first.day}",
            min_temp=float(day["temp_min"].min()),
            max_temp=float(day["temp_max"].max()),
            weather_condition=condition,
            records=int(day.shape[0]),
        ))
    return out


def daily_outlook(records: Sequence[Dict[str, Any]], limit: int = 5) -> List[Dict[str, Any]]:
    """One representative record per calendar date, the 12:00 reading when there is one."""
    by_date: Dict[str, List[Dict[str, Any]]] = {}
    for rec in records:
        stamp = rec.get("dt_txt")
        if not stamp:
            continue
        by_date.setdefault(stamp[:10], []).append(rec)

    out = []
    for date, recs in list(by_date.items())[:limit]:
        midday = next((r for r in recs if r["dt_txt"][11:13] == "12"), recs[0])
        out.append({"date": date, "forecast": midday})
    return out

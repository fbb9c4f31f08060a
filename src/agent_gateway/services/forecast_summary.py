from __future__ import annotations

import math
from datetime import date
from typing import Any

NO_FORECAST = "I couldn't find a daily forecast for that range."

_SUMMARY_DAYS = 7


def _finite(value: object) -> float | None:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value) if math.isfinite(value) else None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _pretty_date(value: object) -> str | None:
    try:
        day = date.fromisoformat(str(value))
    except ValueError:
        return None
    return f"{day:%A}, {day:%B} {day.day}"


def place_label(place: dict[str, Any]) -> str:
    return ", ".join(str(p) for p in (place.get("name"), place.get("region"), place.get("country")) if p)


def summarize_forecast(result: dict[str, Any]) -> str:
    """Three-sentence weekly summary computed from the forecast numbers alone."""
    days = list(result.get("daily") or [])[:_SUMMARY_DAYS]
    if not days:
        return NO_FORECAST

    high: float | None = None
    low: float | None = None
    max_pop = -1.0
    wet_index = -1
    for i, day in enumerate(days):
        t_max = _finite(day.get("tMax"))
        t_min = _finite(day.get("tMin"))
        pop = _finite(day.get("pop"))
        if t_max is not None and (high is None or t_max > high):
            high = t_max
        if t_min is not None and (low is None or t_min < low):
            low = t_min
        if pop is not None and pop > max_pop:
            max_pop = pop
            wet_index = i

    hi = _round_half_up(high) if high is not None else None
    lo = _round_half_up(low) if low is not None else None
    pop = _round_half_up(max_pop) if max_pop >= 0 else None

    unit = (result.get("units") or {}).get("temp", "")
    place = place_label(result.get("place") or {})

    parts: list[str] = []
    if hi is not None and lo is not None:
        parts.append(f"Next week in {place}, expect highs around {hi}{unit} and lows near {lo}{unit}.")
    elif hi is not None:
        parts.append(f"Next week in {place}, expect highs around {hi}{unit}.")
    elif lo is not None:
        parts.append(f"Next week in {place}, expect lows near {lo}{unit}.")
    else:
        parts.append(f"Next week in {place}, temperatures vary through the week.")

    if pop is not None and pop > 0:
        wet_day = _pretty_date(days[wet_index].get("date")) if wet_index >= 0 else None
        if wet_day:
            parts.append(f"Peak chance of precipitation is about {pop}% on {wet_day}.")
        else:
            parts.append(f"Peak chance of precipitation is about {pop}%.")
    else:
        parts.append("Rain risk looks low overall.")

    if hi is None or lo is None:
        parts.append("Pack flexible layers to handle changes through the week.")
    elif pop is not None and pop >= 40:
        parts.append("Pack layers and bring a small umbrella or rain jacket just in case.")
    elif hi - lo >= 10:
        parts.append("Pack layers (mornings/evenings cooler than afternoons).")
    else:
        parts.append("Light layers should be fine for most of the week.")

    return " ".join(parts)

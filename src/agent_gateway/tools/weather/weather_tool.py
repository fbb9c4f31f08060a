import re
from typing import Any

import httpx
from loguru import logger

from agent_gateway.tool import ToolContext
from agent_gateway.tools.results import tool_error

_GEOCODE_URL = "https://geocoding-api.open-meteo.com/v1/search"
_FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
_TIMEOUT_SECONDS = 30

_DAILY_FIELDS = (
    "temperature_2m_max",
    "temperature_2m_min",
    "precipitation_sum",
    "precipitation_probability_max",
    "weathercode",
)

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_NOT_FOUND = "Please provide a city/location I can find."

WEATHER_TOOL_NAME = "getWeather"


def _clamp(value: int, lo: int, hi: int) -> int:
    return min(hi, max(lo, value))


def _as_iso_date(value: object) -> str | None:
    if isinstance(value, str) and _ISO_DATE_RE.match(value):
        return value
    return None


def _as_number(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    return None


def _as_days(value: object) -> int:
    if isinstance(value, bool) or value is None:
        return 7
    try:
        return _clamp(int(float(value)), 1, 16)
    except (TypeError, ValueError):
        return 7


def unit_labels(units: object) -> dict[str, str]:
    if units == "imperial":
        return {"temp": "°F", "precip": "in"}
    return {"temp": "°C", "precip": "mm"}


def _series(daily: dict, key: str) -> list:
    values = daily.get(key)
    return values if isinstance(values, list) else []


def _at(values: list, index: int) -> Any:
    return values[index] if index < len(values) else None


def _number_or(value: object, default: float | None) -> float | None:
    if isinstance(value, bool) or value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class WeatherTool:
    def __init__(self, *, transport: httpx.AsyncBaseTransport | None = None) -> None:
        self._transport = transport

    @property
    def name(self) -> str:
        return WEATHER_TOOL_NAME

    @property
    def description(self) -> str:
        return "Get a short-range weather forecast (up to ~16 days) for a place or lat/lon."

    @property
    def input_schema(self) -> dict[str, Any]:
        return {
            "type": "object",
            "properties": {
                "location": {"type": "string", "description": "City or place name, e.g. 'Austin' or 'Los Angeles, CA'."},
                "latitude": {"type": "number", "description": "Latitude in decimal degrees"},
                "longitude": {"type": "number", "description": "Longitude in decimal degrees"},
                "startDate": {"type": "string", "description": "YYYY-MM-DD (optional)"},
                "endDate": {"type": "string", "description": "YYYY-MM-DD (optional)"},
                "days": {"type": "integer", "description": "Fallback if no start/end; 1–16, defaults to 7"},
                "units": {"type": "string", "enum": ["auto", "metric", "imperial"], "description": "Defaults to auto"},
            },
            "additionalProperties": False,
        }

    async def execute(self, tool_input: dict[str, Any], context: ToolContext) -> dict[str, Any]:
        return await self.lookup(tool_input)

    async def lookup(self, args: dict[str, Any]) -> dict[str, Any]:
        try:
            async with httpx.AsyncClient(timeout=_TIMEOUT_SECONDS, transport=self._transport) as client:
                place = await self._geocode_if_needed(client, args)
                if place is None:
                    return tool_error(_NOT_FOUND)

                start = _as_iso_date(args.get("startDate"))
                end = _as_iso_date(args.get("endDate"))
                params = self._forecast_params(place, args, start, end)

                response = await client.get(_FORECAST_URL, params=params)
                if response.status_code >= 400:
                    return tool_error(f"Weather API error ({response.status_code})")
                data = response.json()
        except Exception as ex:
            logger.warning(f"[weather] lookup failed: {ex!r}")
            return tool_error(str(ex) or "Unknown error")

        daily_raw = data.get("daily") if isinstance(data, dict) else None
        daily = self._shape_daily(daily_raw if isinstance(daily_raw, dict) else {})
        timezone = data.get("timezone") if isinstance(data, dict) else None

        return {
            "ok": True,
            "place": {
                "name": place["name"],
                "region": place.get("region"),
                "country": place.get("country"),
                "lat": place["lat"],
                "lon": place["lon"],
                "timezone": str(timezone or "auto"),
            },
            "units": unit_labels(args.get("units", "auto")),
            "daily": daily,
            "notes": f"Forecast {start} → {end}" if start and end else f"Forecast next {len(daily)} day(s)",
        }

    async def _geocode_if_needed(self, client: httpx.AsyncClient, args: dict[str, Any]) -> dict[str, Any] | None:
        lat = _as_number(args.get("latitude"))
        lon = _as_number(args.get("longitude"))
        if lat is not None and lon is not None:
            return {"lat": lat, "lon": lon, "name": args.get("location") or "location"}

        query = str(args.get("location") or "").strip()
        if not query:
            return None

        response = await client.get(
            _GEOCODE_URL,
            params={"name": query, "count": 1, "language": "en", "format": "json"},
        )
        if response.status_code >= 400:
            logger.warning(f"[weather] geocoder HTTP {response.status_code} for {query!r}")
            return None

        results = response.json().get("results") or []
        if not results:
            return None
        top = results[0]
        return {
            "lat": top["latitude"],
            "lon": top["longitude"],
            "name": top.get("name", query),
            "region": top.get("admin1"),
            "country": top.get("country"),
        }

    def _forecast_params(
        self,
        place: dict[str, Any],
        args: dict[str, Any],
        start: str | None,
        end: str | None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {
            "latitude": place["lat"],
            "longitude": place["lon"],
            "daily": ",".join(_DAILY_FIELDS),
            "timezone": "auto",
        }
        if start and end:
            params["start_date"] = start
            params["end_date"] = end
        else:
            params["forecast_days"] = _as_days(args.get("days"))

        if args.get("units") == "imperial":
            params["temperature_unit"] = "fahrenheit"
            params["precipitation_unit"] = "inch"
        return params

    def _shape_daily(self, daily: dict) -> list[dict[str, Any]]:
        dates = _series(daily, "time")
        t_maxs = _series(daily, "temperature_2m_max")
        t_mins = _series(daily, "temperature_2m_min")
        pops = _series(daily, "precipitation_probability_max")
        precs = _series(daily, "precipitation_sum")
        codes = _series(daily, "weathercode")

        rows: list[dict[str, Any]] = []
        for i, date in enumerate(dates):
            rows.append({
                "date": str(date),
                "code": int(_number_or(_at(codes, i), 0) or 0),
                "tMax": _number_or(_at(t_maxs, i), None),
                "tMin": _number_or(_at(t_mins, i), None),
                "precipMm": _number_or(_at(precs, i), 0.0),
                "pop": _number_or(_at(pops, i), 0.0),
            })
        return rows

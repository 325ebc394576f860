"""Weather tools backed by the Open-Meteo geocoding and forecast APIs."""

from __future__ import annotations

import functools
import logging
from typing import Any

import requests

import ai_client_api
from orchestrator.tools.registry import ToolRegistry

logger = logging.getLogger("orchestrator.weather_tools")

GEOCODING_URL = "https://geocoding-api.open-meteo.com/v1/search"
FORECAST_URL = "https://api.open-meteo.com/v1/forecast"
DEFAULT_TIMEOUT_SECONDS = 20.0

# WMO weather interpretation codes.
WEATHER_DESCRIPTIONS: dict[int, str] = {
    0: "Clear sky",
    1: "Mainly clear",
    2: "Partly cloudy",
    3: "Overcast",
    45: "Foggy",
    48: "Depositing rime fog",
    51: "Light drizzle",
    53: "Moderate drizzle",
    55: "Dense drizzle",
    61: "Slight rain",
    63: "Moderate rain",
    65: "Heavy rain",
    71: "Slight snow",
    73: "Moderate snow",
    75: "Heavy snow",
    80: "Slight rain showers",
    81: "Moderate rain showers",
    82: "Violent rain showers",
    95: "Thunderstorm",
}


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def celsius_to_fahrenheit(celsius: float) -> float:
    """Convert a Celsius reading to Fahrenheit, rounded to one decimal."""
    return round(celsius * 9 / 5 + 32, 1)


def describe_weather_code(code: int | None) -> str:
    """Return a human-readable description for a WMO weather code."""
    if code is None:
        return "Unknown conditions"
    return WEATHER_DESCRIPTIONS.get(int(code), "Unknown conditions")


# ---------------------------------------------------------------------------
# Tool handlers
# ---------------------------------------------------------------------------


def get_coordinates(city: str, *, timeout: float = DEFAULT_TIMEOUT_SECONDS) -> dict[str, Any]:
    """Resolve a city name to latitude and longitude."""
    response = requests.get(
        GEOCODING_URL,
        params={"name": city, "count": 1, "language": "en", "format": "json"},
        timeout=timeout,
    )
    response.raise_for_status()
    results = response.json().get("results") or []
    if not results:
        return {
            "type": "error",
            "code": "location_not_found",
            "message": f"Could not find a location named {city}.",
        }
    top = results[0]
    return {
        "latitude": top["latitude"],
        "longitude": top["longitude"],
        "name": top.get("name", city),
        "country": top.get("country"),
    }


def get_weather(
    latitude: float,
    longitude: float,
    city: str,
    *,
    timeout: float = DEFAULT_TIMEOUT_SECONDS,
) -> dict[str, Any]:
    """Return current conditions for a coordinate pair."""
    response = requests.get(
        FORECAST_URL,
        params={
            "latitude": latitude,
            "longitude": longitude,
            "current": "temperature_2m,weathercode,relativehumidity_2m,windspeed_10m",
            "timezone": "auto",
        },
        timeout=timeout,
    )
    response.raise_for_status()
    current = response.json().get("current") or {}
    temperature_c = current.get("temperature_2m")
    if temperature_c is None:
        msg = f"Forecast response for {city} has no current temperature"
        raise ValueError(msg)
    return {
        "city": city,
        "temperature_c": temperature_c,
        "temperature_f": celsius_to_fahrenheit(temperature_c),
        "description": describe_weather_code(current.get("weathercode")),
        "humidity": current.get("relativehumidity_2m"),
        "wind_speed": current.get("windspeed_10m"),
    }


# ---------------------------------------------------------------------------
# Tool registrations
# ---------------------------------------------------------------------------


def build_weather_tools(timeout: float = DEFAULT_TIMEOUT_SECONDS) -> ToolRegistry:
    """Return a registry holding the geocoding and forecast tools."""
    registry = ToolRegistry()
    registry.register_tool(
        ai_client_api.tool_definition(
            name="get_coordinates",
            description="Find the latitude and longitude for a city.",
            input_schema={
                "type": "object",
                "properties": {
                    "city": {"type": "string", "description": "The name of the city"},
                },
                "required": ["city"],
            },
        ),
        functools.partial(get_coordinates, timeout=timeout),
    )
    registry.register_tool(
        ai_client_api.tool_definition(
            name="get_weather",
            description="Get the current weather for a specific latitude and longitude.",
            input_schema={
                "type": "object",
                "properties": {
                    "latitude": {"type": "number", "description": "Latitude of the location"},
                    "longitude": {"type": "number", "description": "Longitude of the location"},
                    "city": {"type": "string", "description": "Name of the city"},
                },
                "required": ["latitude", "longitude", "city"],
            },
        ),
        functools.partial(get_weather, timeout=timeout),
    )
    return registry

"""Weather responder: current conditions through the Open-Meteo tools."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from orchestrator.agents.base import Outcome, ResponderDescriptor, SpecializedResponder
from orchestrator.agents.matcher import CapabilityMatcher
from orchestrator.errors import ExternalServiceFailure
from orchestrator.formatting import format_for_slack
from orchestrator.generation import generate_text
from orchestrator.tools.weather import build_weather_tools

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from orchestrator.agents.base import HistoryMessage, RequestContext

logger = logging.getLogger("orchestrator.agents.weather")

WEATHER_APOLOGY = "I couldn't get the weather right now. Please try again or check the city name."

SYSTEM_PROMPT = """You are a weather assistant. Your primary goal is to provide accurate weather information for a requested location.
First, use the 'get_coordinates' tool to find the latitude and longitude for the city mentioned by the user. If a city is not explicitly mentioned, ask for one.
Once you have the coordinates, use the 'get_weather' tool with those coordinates to get the current weather.
Always provide temperature in both Celsius and Fahrenheit, and include the city name in your response."""


class WeatherResponder(SpecializedResponder):
    descriptor = ResponderDescriptor(
        id="Weather",
        capability_hint="Current weather conditions and temperature for a city",
        declared_tools=frozenset({"get_coordinates", "get_weather"}),
    )
    matcher = CapabilityMatcher(r"weather", r"temperature", r"forecast", r"\brain", r"\bsnow")

    def __init__(self, ai: Client, *, model: str, timeout: float, tool_timeout: float) -> None:
        self._ai = ai
        self._model = model
        self._timeout = timeout
        self._tools = build_weather_tools(tool_timeout)

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        await context.emit_status("🔎 Finding location...")
        try:
            generation = await generate_text(
                self._ai,
                system=SYSTEM_PROMPT,
                history=history,
                model=self._model,
                timeout=self._timeout,
                tools=self._tools,
            )
        except ExternalServiceFailure:
            logger.exception("Weather lookup failed")
            return Outcome.failure(WEATHER_APOLOGY)

        observations = [
            invocation.output
            for invocation in generation.tool_invocations
            if invocation.name == "get_weather" and isinstance(invocation.output, dict) and "temperature_c" in invocation.output
        ]
        if not generation.text.strip():
            return Outcome.failure(WEATHER_APOLOGY)
        return Outcome(
            ok=True,
            text=format_for_slack(generation.text),
            auxiliary_data={"source": "open-meteo", "observations": observations},
        )

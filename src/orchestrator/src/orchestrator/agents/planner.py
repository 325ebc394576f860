"""Invocation planner: picks the specialized responders relevant to a request."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from orchestrator.agents.base import HistoryMessage, last_user_text
from orchestrator.errors import ExternalServiceFailure, PlanningFailure
from orchestrator.generation import generate_text, parse_json_object

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from orchestrator.agents.base import RequestContext, ResponderDescriptor

logger = logging.getLogger("orchestrator.planner")

InvocationPlan = tuple[str, ...]

SYSTEM_PROMPT = """You are an intelligent task planner. Analyze the user query and determine which specialized agents should be used.

Available agents:
{agents}

Return JSON only, with the agent names needed: {{"agents": ["AgentName1", "AgentName2"]}}
Use multiple agents if the task requires multiple tools.
Return an empty array if no specialized tools are needed."""


class PlanPayload(BaseModel):
    """Structured reply expected from the planning call."""

    agents: list[str]


class InvocationPlanner:
    """Turns a request into an ordered list of specialized responder ids."""

    def __init__(self, ai: Client, *, model: str, timeout: float) -> None:
        """Bind the generation backend and the coordinator model profile."""
        self._ai = ai
        self._model = model
        self._timeout = timeout

    async def plan(
        self,
        history: Sequence[HistoryMessage],
        context: RequestContext,
        available: Sequence[ResponderDescriptor],
    ) -> InvocationPlan:
        """Return the plan; any failure yields an empty plan."""
        if not available:
            return ()
        try:
            raw = await self._request_plan(history, context, available)
        except ExternalServiceFailure as exc:
            logger.warning("Planning call failed, answering without tools: %s", exc)
            return ()
        except PlanningFailure as exc:
            logger.warning("Planner output unusable, answering without tools: %s", exc)
            return ()

        known = {descriptor.id for descriptor in available}
        dropped = [agent for agent in raw if agent not in known]
        if dropped:
            logger.info("Planner proposed unknown responders %s; dropped", dropped)
        return tuple(agent for agent in raw if agent in known)

    async def _request_plan(
        self,
        history: Sequence[HistoryMessage],
        context: RequestContext,
        available: Sequence[ResponderDescriptor],
    ) -> list[str]:
        agents = "\n".join(f"- {descriptor.id}: {descriptor.capability_hint}" for descriptor in available)
        location = "channel" if context.channel_id else "DM"
        placement = "in thread" if context.thread_id else "new message"
        prompt = f'Query: "{last_user_text(history)}"\nContext: In {location}, {placement}'
        generation = await generate_text(
            self._ai,
            system=SYSTEM_PROMPT.format(agents=agents),
            history=(HistoryMessage(role="user", content=prompt),),
            model=self._model,
            timeout=self._timeout,
        )
        try:
            return PlanPayload.model_validate(parse_json_object(generation.text)).agents
        except ValidationError as exc:
            msg = f"Plan does not match the expected shape: {exc}"
            raise PlanningFailure(msg) from exc

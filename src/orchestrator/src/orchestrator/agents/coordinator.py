"""Coordinator responder: plans specialized responders, runs them and synthesizes one answer."""

from __future__ import annotations

import json
import logging
import time
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from orchestrator.agents.base import HistoryMessage, Outcome, Responder, ResponderDescriptor, ResponderKind
from orchestrator.agents.directory import ResponderNotFound
from orchestrator.errors import ExternalServiceFailure
from orchestrator.formatting import format_for_slack
from orchestrator.generation import generate_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from orchestrator.agents.base import RequestContext
    from orchestrator.agents.directory import ResponderDirectory
    from orchestrator.agents.planner import InvocationPlanner

logger = logging.getLogger("orchestrator.agents.coordinator")

COORDINATOR_ID = "Coordinator"
COORDINATION_APOLOGY = "I encountered an error coordinating the response."
MAX_DATA_CHARS = 2000

DIRECT_SYSTEM_PROMPT = """You are an advanced AI assistant helping in Slack.
Provide comprehensive, well-reasoned responses.
Current date: {today}"""

SYNTHESIS_SYSTEM_PROMPT = """You are synthesizing results from multiple specialized agents.
Create a cohesive, well-formatted response for the user.
If a tool was unavailable, say so briefly and answer with what you have.
Format for Slack using markdown where appropriate."""

SYNTHESIS_REQUEST = "Please provide a comprehensive response based on these results."

ResponderResult = tuple[str, Outcome]


def serialize_results(results: Sequence[ResponderResult]) -> str:
    """Compact, ordered text form of the collected outcomes."""
    lines = []
    for responder_id, outcome in results:
        if not outcome.ok:
            lines.append(f"{responder_id}: tool {responder_id} was unavailable")
            continue
        line = f"{responder_id}: {outcome.text}"
        if outcome.auxiliary_data:
            data = json.dumps(outcome.auxiliary_data, default=str)[:MAX_DATA_CHARS]
            line = f"{line}\n{responder_id} data: {data}"
        lines.append(line)
    return "\n".join(lines)


class CoordinatorResponder(Responder):
    """Handles escalated requests."""

    descriptor = ResponderDescriptor(
        id=COORDINATOR_ID,
        capability_hint="Orchestrates specialized responders and handles complex queries",
        kind=ResponderKind.COORDINATOR,
    )

    def __init__(
        self,
        ai: Client,
        directory: ResponderDirectory,
        planner: InvocationPlanner,
        *,
        model: str,
        timeout: float,
    ) -> None:
        """Bind the generation backend, the directory to plan over and the coordinator model profile."""
        self._ai = ai
        self._directory = directory
        self._planner = planner
        self._model = model
        self._timeout = timeout

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        await context.emit_status("🧠 Analyzing request...")
        plan = await self._planner.plan(history, context, self._directory.list_specialized())
        logger.info("Invocation plan: %s", list(plan) or "direct answer")
        if not plan:
            return await self._answer_directly(history)

        results: list[ResponderResult] = []
        for responder_id in plan:
            await context.emit_status(f"🔧 Using {responder_id}...")
            results.append((responder_id, await self._invoke(responder_id, history, context)))
        return await self._synthesize(history, results)

    # -----------------------------------------------------------------------
    # Steps
    # -----------------------------------------------------------------------

    async def _invoke(self, responder_id: str, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        started = time.perf_counter()
        try:
            outcome = await self._directory.lookup(responder_id).respond(history, context)
        except ResponderNotFound:
            logger.warning("Planned responder %s is not registered", responder_id)
            return Outcome.failure()
        except Exception:
            logger.exception("Responder %s raised instead of returning an outcome", responder_id)
            return Outcome.failure()
        logger.debug("Responder %s finished in %.2fs (ok=%s)", responder_id, time.perf_counter() - started, outcome.ok)
        return outcome

    async def _answer_directly(self, history: Sequence[HistoryMessage]) -> Outcome:
        try:
            generation = await generate_text(
                self._ai,
                system=DIRECT_SYSTEM_PROMPT.format(today=datetime.now(UTC).date().isoformat()),
                history=history,
                model=self._model,
                timeout=self._timeout,
            )
        except ExternalServiceFailure:
            logger.exception("Coordinator direct answer failed")
            return Outcome.failure(COORDINATION_APOLOGY)
        if not generation.text.strip():
            return Outcome.failure(COORDINATION_APOLOGY)
        return Outcome(ok=True, text=format_for_slack(generation.text))

    async def _synthesize(self, history: Sequence[HistoryMessage], results: Sequence[ResponderResult]) -> Outcome:
        auxiliary = {"results": [{"responder": rid, "ok": outcome.ok} for rid, outcome in results]}
        conversation = (
            *history,
            HistoryMessage(role="assistant", content=f"Tool results:\n{serialize_results(results)}"),
            HistoryMessage(role="user", content=SYNTHESIS_REQUEST),
        )
        try:
            generation = await generate_text(
                self._ai,
                system=SYNTHESIS_SYSTEM_PROMPT,
                history=conversation,
                model=self._model,
                timeout=self._timeout,
            )
            text = generation.text
        except ExternalServiceFailure:
            logger.exception("Synthesis failed; falling back to raw responder output")
            text = ""

        if not text.strip():
            text = "\n\n".join(outcome.text for _, outcome in results if outcome.ok and outcome.text)
        if not text.strip():
            return Outcome.failure(COORDINATION_APOLOGY, **auxiliary)
        return Outcome(ok=True, text=format_for_slack(text), auxiliary_data=auxiliary)

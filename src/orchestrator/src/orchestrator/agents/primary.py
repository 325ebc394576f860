"""Primary responder: answers simple requests, escalates the rest."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from orchestrator.agents.base import Outcome, Responder, ResponderDescriptor, ResponderKind
from orchestrator.errors import ExternalServiceFailure
from orchestrator.formatting import format_for_slack
from orchestrator.generation import generate_text

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from orchestrator.agents.base import HistoryMessage, RequestContext
    from orchestrator.agents.escalation import EscalationClassifier

logger = logging.getLogger("orchestrator.agents.primary")

PRIMARY_ID = "Primary"

SYSTEM_PROMPT = """You are a helpful Slack assistant. Handle basic greetings, simple questions, and general chat.
For complex queries requiring tools or detailed analysis, you will escalate to specialized agents.
Keep responses concise and friendly.
Current date: {today}"""


class PrimaryResponder(Responder):
    """First responder for every request."""

    descriptor = ResponderDescriptor(
        id=PRIMARY_ID,
        capability_hint="Primary chat responder for greetings, simple questions and routing",
        kind=ResponderKind.PRIMARY,
    )

    def __init__(self, ai: Client, classifier: EscalationClassifier, *, model: str, timeout: float) -> None:
        """Bind the generation backend, the escalation classifier and the fast model profile."""
        self._ai = ai
        self._classifier = classifier
        self._model = model
        self._timeout = timeout

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:  # noqa: ARG002
        resolution = await self._classifier.decide(history)
        if resolution.escalate:
            return Outcome(ok=True, text="", escalate=True, suggested_target=resolution.suggested_target)

        try:
            generation = await generate_text(
                self._ai,
                system=SYSTEM_PROMPT.format(today=datetime.now(UTC).date().isoformat()),
                history=history,
                model=self._model,
                timeout=self._timeout,
            )
        except ExternalServiceFailure:
            logger.exception("Primary generation failed")
            return Outcome.failure()
        if not generation.text.strip():
            logger.warning("Primary generation returned no text")
            return Outcome.failure()
        return Outcome(ok=True, text=format_for_slack(generation.text))

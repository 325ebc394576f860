"""Web search responder backed by Perplexity."""

from __future__ import annotations

import asyncio
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

import requests

from orchestrator.agents.base import Outcome, ResponderDescriptor, SpecializedResponder
from orchestrator.agents.matcher import CapabilityMatcher
from orchestrator.formatting import format_for_slack
from orchestrator.tools.search import search_web

if TYPE_CHECKING:
    from collections.abc import Sequence

    from orchestrator.agents.base import HistoryMessage, RequestContext

logger = logging.getLogger("orchestrator.agents.search")

SEARCH_APOLOGY = "Failed to search the web. Please try again later."

SYSTEM_PROMPT = """You are a web search specialist.
Use your built-in web search capabilities to find current information.
Always cite sources and provide recent, accurate information.
Current date: {today}"""


def to_search_messages(history: Sequence[HistoryMessage]) -> list[dict[str, str]]:
    """Chat-completions messages that alternate roles and end on a user turn."""
    messages: list[dict[str, str]] = []
    for turn in history:
        if not turn.content.strip():
            continue
        if not messages and turn.role != "user":
            continue
        if messages and messages[-1]["role"] == turn.role:
            messages[-1]["content"] = f"{messages[-1]['content']}\n\n{turn.content}"
            continue
        messages.append({"role": turn.role, "content": turn.content})
    while messages and messages[-1]["role"] != "user":
        messages.pop()
    return messages


class WebSearchResponder(SpecializedResponder):
    descriptor = ResponderDescriptor(
        id="WebSearch",
        capability_hint="Web search and current information retrieval, with cited sources",
        declared_tools=frozenset({"web_search"}),
    )
    matcher = CapabilityMatcher(r"search|google", r"latest|recent|current|today", r"news", r"what.*happening")

    def __init__(self, *, model: str, timeout: float, api_key: str | None = None) -> None:
        self._model = model
        self._timeout = timeout
        self._api_key = api_key

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        messages = to_search_messages(history)
        if not messages:
            return Outcome.failure("Please tell me what you'd like me to search for.")

        await context.emit_status("🔍 Searching the web...")
        system = {"role": "system", "content": SYSTEM_PROMPT.format(today=datetime.now(UTC).date().isoformat())}
        try:
            answer = await asyncio.wait_for(
                asyncio.to_thread(
                    search_web,
                    [system, *messages],
                    model=self._model,
                    timeout=self._timeout,
                    api_key=self._api_key,
                ),
                timeout=self._timeout,
            )
        except (requests.RequestException, RuntimeError, ValueError, TimeoutError):
            logger.exception("Web search failed")
            return Outcome.failure(SEARCH_APOLOGY)
        return Outcome(
            ok=True,
            text=format_for_slack(answer.render()),
            auxiliary_data={"source": "perplexity", "citations": answer.citations},
        )

"""Web search through the Perplexity chat-completions API."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any

import requests
from pydantic import BaseModel, ValidationError

logger = logging.getLogger("orchestrator.search_tools")

PERPLEXITY_URL = "https://api.perplexity.ai/chat/completions"


@dataclass(frozen=True)
class SearchAnswer:
    """Answer text and the source URLs it cites."""

    text: str
    citations: list[str] = field(default_factory=list)

    def render(self) -> str:
        """Answer followed by a numbered source list."""
        if not self.citations:
            return self.text
        sources = "\n".join(f"{index}. <{url}>" for index, url in enumerate(self.citations, start=1))
        return f"{self.text}\n\n*Sources:*\n{sources}"


def search_web(
    messages: list[dict[str, str]],
    *,
    model: str,
    timeout: float,
    api_key: str | None = None,
) -> SearchAnswer:
    """Run a search-grounded completion over the given chat messages.

    Args:
        messages: Chat-completions messages (``role`` / ``content``), system prompt first.
        model: Perplexity model identifier, e.g. ``sonar-pro``.
        timeout: Request timeout in seconds.
        api_key: Perplexity API key; read from PERPLEXITY_API_KEY when omitted.

    Returns:
        The answer text with its citations.

    """
    key = api_key or os.environ.get("PERPLEXITY_API_KEY")
    if not key:
        raise RuntimeError("PERPLEXITY_API_KEY is required.")  # noqa: TRY003, EM101

    response = requests.post(
        PERPLEXITY_URL,
        headers={"Authorization": f"Bearer {key}", "Content-Type": "application/json"},
        json={"model": model, "messages": messages},
        timeout=timeout,
    )
    response.raise_for_status()
    return parse_search_response(response.json())


class _SearchMessage(BaseModel):
    content: str | None = None


class _SearchChoice(BaseModel):
    message: _SearchMessage | None = None


class SearchPayload(BaseModel):
    """The parts of a chat-completions reply the answer is built from."""

    choices: list[_SearchChoice] | None = None
    citations: list[Any] | None = None


def parse_search_response(payload: Any) -> SearchAnswer:  # noqa: ANN401
    """Extract the answer and citations from a chat-completions payload.

    Raises:
        ValueError: The payload is not a chat-completions reply or carries no answer.

    """
    try:
        parsed = SearchPayload.model_validate(payload)
    except ValidationError as exc:
        msg = f"Search response does not match the expected shape: {exc}"
        raise ValueError(msg) from exc
    if not parsed.choices:
        msg = "Search response has no choices"
        raise ValueError(msg)
    message = parsed.choices[0].message
    text = ((message.content if message else None) or "").strip()
    if not text:
        msg = "Search response has an empty answer"
        raise ValueError(msg)
    citations = [str(url) for url in parsed.citations or [] if url]
    return SearchAnswer(text=text, citations=citations)

"""Claude Client Implementation.

Concrete ai_client_api.Client backed by Anthropic's asynchronous Messages API.
Resolves credentials and defaults from the environment and converts responses
into the provider-agnostic models used across the workspace.
"""

from __future__ import annotations

import os
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

import anthropic

import ai_client_api
from ai_client_api import Client, Message, ToolDefinition
from claude_client_impl.models_impl import ClaudeContentBlock, ClaudeMessage

DEFAULT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_MAX_TOKENS = 1024
DEFAULT_MAX_RETRIES = 2

# ---------------------------------------------------------------------------
# Client implementation
# ---------------------------------------------------------------------------


class ClaudeClient(Client):
    """ai_client_api.Client that forwards generation to Claude.

    Authentication:
        - ANTHROPIC_API_KEY (required)
        - ANTHROPIC_MODEL (optional, default model when a call does not pick one)
        - MAX_AGENT_RETRIES (optional, SDK retry ceiling for transient failures)

    Attributes:
        _client: Anthropic async SDK client.
        _model: Default model name.
        _max_tokens: Default completion budget.

    """

    def __init__(
        self,
        api_key: str | None = None,
        *,
        max_retries: int | None = None,
        max_tokens: int = DEFAULT_MAX_TOKENS,
    ) -> None:
        """Initialize the client, resolving key, model and retry ceiling from the environment."""
        key = api_key or os.environ.get("ANTHROPIC_API_KEY")
        if not key:
            raise RuntimeError("ANTHROPIC_API_KEY is required.")  # noqa: TRY003, EM101
        retries = max_retries if max_retries is not None else int(os.environ.get("MAX_AGENT_RETRIES", DEFAULT_MAX_RETRIES))
        self._client = anthropic.AsyncAnthropic(api_key=key, max_retries=retries)
        self._model = os.environ.get("ANTHROPIC_MODEL", DEFAULT_MODEL)
        self._max_tokens = max_tokens

    async def generate_response(
        self,
        messages: Sequence[Message],
        system: str | None = None,
        tools: Sequence[ToolDefinition] | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> Message:
        """Invoke Claude and return the assistant turn.

        Args:
            messages: Conversation history ending with a user turn.
            system: Optional system prompt.
            tools: Optional tool definitions; enables tool_use blocks in the reply.
            model: Model override for this call.
            max_tokens: Completion budget override for this call.

        Returns:
            Provider-agnostic Message that may include tool_use blocks.

        """
        request_kwargs: dict[str, Any] = {
            "model": model or self._model,
            "max_tokens": max_tokens or self._max_tokens,
            "messages": normalize_turns([message.to_dict() for message in messages]),
        }
        if system:
            request_kwargs["system"] = system.strip()
        if tools:
            request_kwargs["tools"] = [tool.to_dict() for tool in tools]

        api_response = await self._client.messages.create(**request_kwargs)
        return to_message(api_response)


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_client_impl() -> ClaudeClient:
    """Return a new ClaudeClient using env defaults."""
    return ClaudeClient()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def normalize_turns(turns: list[dict[str, Any]]) -> list[dict[str, Any]]:
    """Shape a chat transcript into what the Messages API accepts.

    Leading assistant turns are dropped (the first turn must come from the user)
    and consecutive turns by the same author are merged, which happens whenever
    several people reply in a thread before the bot answers.
    """
    shaped: list[dict[str, Any]] = []
    for turn in turns:
        if not shaped and turn["role"] != "user":
            continue
        if shaped and shaped[-1]["role"] == turn["role"]:
            shaped[-1] = {"role": turn["role"], "content": [*shaped[-1]["content"], *turn["content"]]}
            continue
        shaped.append({"role": turn["role"], "content": list(turn["content"])})
    return shaped


def to_message(api_response: Any) -> ClaudeMessage:  # noqa: ANN401
    """Convert an Anthropic Messages API response into a ClaudeMessage."""
    blocks: list[ClaudeContentBlock] = []
    for block in api_response.content:
        if block.type == "text":
            blocks.append(ClaudeContentBlock(block_type="text", text=block.text))
        elif block.type == "tool_use":
            blocks.append(
                ClaudeContentBlock(
                    block_type="tool_use",
                    tool_call_id=block.id,
                    name=block.name,
                    tool_input=block.input or {},
                )
            )
    return ClaudeMessage(role="assistant", content=blocks)


# ---------------------------------------------------------------------------
# Factory registration
# ---------------------------------------------------------------------------


def register() -> None:
    """Bind the Claude client factory into ai_client_api.get_client."""
    ai_client_api.get_client = get_client_impl

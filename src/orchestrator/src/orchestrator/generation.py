"""Generation helpers shared by every responder that needs model reasoning.

Wraps the ai_client_api contract with the per-call timeout, the tool-use loop
and tolerant parsing of structured (JSON) replies.
"""

from __future__ import annotations

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import ai_client_api
from orchestrator.errors import ExternalServiceFailure, PlanningFailure

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client, Message
    from orchestrator.agents.base import HistoryMessage
    from orchestrator.tools.registry import ToolRegistry

logger = logging.getLogger("orchestrator.generation")

MAX_TOOL_STEPS = 5


@dataclass(frozen=True)
class ToolInvocation:
    """One tool call the model made while generating."""

    name: str
    arguments: dict[str, Any]
    output: object


@dataclass(frozen=True)
class Generation:
    """Final text of a generation plus the tool calls made on the way."""

    text: str
    tool_invocations: tuple[ToolInvocation, ...] = ()


# ---------------------------------------------------------------------------
# Generation
# ---------------------------------------------------------------------------


async def generate_text(  # noqa: PLR0913
    ai: Client,
    *,
    system: str,
    history: Sequence[HistoryMessage],
    model: str,
    timeout: float,
    tools: ToolRegistry | None = None,
    max_steps: int = MAX_TOOL_STEPS,
) -> Generation:
    """Run one generation, executing requested tools until the model answers.

    Args:
        ai: Generation backend.
        system: System prompt.
        history: Conversation, oldest first.
        model: Model identifier for every step of this generation.
        timeout: Seconds allowed for each model call.
        tools: Tools the model may call; None disables tool use.
        max_steps: Upper bound on model calls.

    Returns:
        The final text and every tool invocation, in call order.

    Raises:
        ExternalServiceFailure: A model call failed, timed out, or the tool loop did not settle.

    """
    messages: list[Message] = to_ai_messages(history)
    definitions = tools.list_definitions() if tools else None
    invocations: list[ToolInvocation] = []

    for _ in range(max_steps):
        try:
            reply = await asyncio.wait_for(
                ai.generate_response(messages, system=system, tools=definitions or None, model=model),
                timeout=timeout,
            )
        except Exception as exc:
            msg = f"Generation with {model} failed: {exc!r}"
            raise ExternalServiceFailure(msg) from exc
        messages.append(reply)

        tool_blocks = reply.tool_uses
        if not tool_blocks or tools is None:
            return Generation(text=reply.text, tool_invocations=tuple(invocations))

        results = []
        for block in tool_blocks:
            arguments = dict(block.input or {})
            output = await tools.run_tool(block.name or "", arguments)
            logger.debug("Tool %s(%s) -> %s", block.name, arguments, output)
            invocations.append(ToolInvocation(name=block.name or "", arguments=arguments, output=output))
            results.append(
                ai_client_api.content_block(
                    block_type="tool_result",
                    tool_use_id=block.id,
                    content=tool_output_to_text(output),
                )
            )
        messages.append(ai_client_api.message(role="user", content=results))

    msg = f"Tool loop did not finish within {max_steps} steps"
    raise ExternalServiceFailure(msg)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_ai_messages(history: Sequence[HistoryMessage]) -> list[Message]:
    """Convert history into ai_client_api messages, skipping empty turns."""
    return [
        ai_client_api.message(
            role=turn.role,
            content=[ai_client_api.content_block(block_type="text", text=turn.content)],
        )
        for turn in history
        if turn.content.strip()
    ]


def tool_output_to_text(output: object) -> str:
    """Normalize tool output into a string payload."""
    if isinstance(output, str):
        return output
    try:
        return json.dumps(output, ensure_ascii=True)
    except TypeError:
        return str(output)


def parse_json_object(raw_text: str) -> dict[str, Any]:
    """Parse a JSON object out of a model reply.

    Models sometimes wrap JSON in ```json fences or surround it with prose
    despite being told not to; both are tolerated.

    Raises:
        PlanningFailure: No JSON object could be recovered.

    """
    content = raw_text.strip()
    if content.startswith("```"):
        content = content.split("\n", 1)[1] if "\n" in content else content[3:]
    if content.endswith("```"):
        content = content.rsplit("```", 1)[0]
    content = content.strip()

    start, end = content.find("{"), content.rfind("}")
    if start == -1 or end < start:
        msg = f"No JSON object in model output: {raw_text[:200]!r}"
        raise PlanningFailure(msg)
    try:
        parsed = json.loads(content[start : end + 1])
    except json.JSONDecodeError as exc:
        msg = f"Malformed JSON in model output: {raw_text[:200]!r}"
        raise PlanningFailure(msg) from exc
    if not isinstance(parsed, dict):
        msg = "Model output is not a JSON object"
        raise PlanningFailure(msg)
    return parsed

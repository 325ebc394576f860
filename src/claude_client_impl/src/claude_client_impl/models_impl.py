"""Claude wire models for the ai_client_api abstractions.

Each concrete model keeps the exact JSON payload the Messages API expects and
exposes the abstract accessors as views over it, so serialization is a copy.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

import ai_client_api
from ai_client_api import models

# ---------------------------------------------------------------------------
# Claude models
# ---------------------------------------------------------------------------

_BLOCK_FIELDS = {
    "tool_call_id": "id",
    "text": "text",
    "name": "name",
    "tool_input": "input",
    "tool_use_id": "tool_use_id",
    "content": "content",
}


class ClaudeContentBlock(models.ContentBlock):
    """A text, tool_use or tool_result block in Messages API shape."""

    __slots__ = ("_payload",)

    def __init__(self, *, block_type: str, **fields: Any) -> None:  # noqa: ANN401
        """Create a block; ``fields`` use the keyword names of ``content_block``."""
        unknown = set(fields) - set(_BLOCK_FIELDS)
        if unknown:
            msg = f"Unsupported content block fields: {sorted(unknown)}"
            raise TypeError(msg)
        self._payload: dict[str, Any] = {"type": block_type}
        for keyword, wire_name in _BLOCK_FIELDS.items():
            value = fields.get(keyword)
            if value is not None:
                self._payload[wire_name] = value

    @property
    def type(self) -> str:
        """Block kind."""
        return self._payload["type"]

    @property
    def id(self) -> str | None:
        """tool_use identifier."""
        return self._payload.get("id")

    @property
    def text(self) -> str | None:
        """Text payload."""
        return self._payload.get("text")

    @property
    def name(self) -> str | None:
        """Requested tool name."""
        return self._payload.get("name")

    @property
    def input(self) -> dict[str, Any] | None:
        """Requested tool arguments."""
        return self._payload.get("input")

    @property
    def tool_use_id(self) -> str | None:
        """tool_use id answered by this tool_result."""
        return self._payload.get("tool_use_id")

    @property
    def content(self) -> object | None:
        """tool_result payload."""
        return self._payload.get("content")

    def to_dict(self) -> dict[str, Any]:
        """Return a copy of the wire payload."""
        return dict(self._payload)

    def __repr__(self) -> str:
        return f"ClaudeContentBlock({self._payload!r})"


class ClaudeMessage(models.Message):
    """A user or assistant turn composed of Claude content blocks."""

    __slots__ = ("_content", "_role")

    def __init__(self, role: str, content: Sequence[models.ContentBlock]) -> None:
        """Create a turn from content blocks."""
        self._role = role
        self._content: list[models.ContentBlock] = list(content)

    @property
    def role(self) -> str:
        """Turn author."""
        return self._role

    @property
    def content(self) -> list[models.ContentBlock]:
        """Ordered content blocks."""
        return self._content

    def to_dict(self) -> dict[str, Any]:
        """Return the turn in Messages API shape."""
        return {"role": self._role, "content": [block.to_dict() for block in self._content]}


class ClaudeToolDefinition(models.ToolDefinition):
    """A tool offered to Claude."""

    __slots__ = ("_description", "_input_schema", "_name")

    def __init__(self, name: str, description: str, input_schema: dict[str, Any]) -> None:
        """Create a tool definition."""
        self._name = name
        self._description = description
        self._input_schema = input_schema

    @property
    def name(self) -> str:
        """Tool name."""
        return self._name

    @property
    def description(self) -> str:
        """Tool description."""
        return self._description

    @property
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the arguments."""
        return self._input_schema

    def to_dict(self) -> dict[str, Any]:
        """Return the tool in Messages API shape."""
        return {"name": self._name, "description": self._description, "input_schema": self._input_schema}


# ---------------------------------------------------------------------------
# Factories
# ---------------------------------------------------------------------------


def content_block_impl(*, block_type: str, **fields: Any) -> ClaudeContentBlock:  # noqa: ANN401
    """Build a ClaudeContentBlock."""
    return ClaudeContentBlock(block_type=block_type, **fields)


def message_impl(role: str, content: Sequence[models.ContentBlock]) -> ClaudeMessage:
    """Build a ClaudeMessage."""
    return ClaudeMessage(role=role, content=content)


def tool_definition_impl(name: str, description: str, input_schema: dict[str, Any]) -> ClaudeToolDefinition:
    """Build a ClaudeToolDefinition."""
    return ClaudeToolDefinition(name=name, description=description, input_schema=input_schema)


# ---------------------------------------------------------------------------
# Factory registration
# ---------------------------------------------------------------------------


def register() -> None:
    """Bind the Claude model factories into ai_client_api."""
    for target in (ai_client_api, models):
        target.message = message_impl
        target.content_block = content_block_impl
        target.tool_definition = tool_definition_impl

"""Abstract message and tool schemas shared by generation backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Sequence

__all__ = [
    "ContentBlock",
    "Message",
    "ToolDefinition",
    "content_block",
    "message",
    "tool_definition",
]


class ContentBlock(ABC):
    """One block of a chat message: text, a tool request, or a tool result."""

    @property
    @abstractmethod
    def type(self) -> str:
        """Block kind: ``text``, ``tool_use`` or ``tool_result``."""
        raise NotImplementedError

    @property
    @abstractmethod
    def id(self) -> str | None:
        """Identifier of a tool_use block."""
        raise NotImplementedError

    @property
    @abstractmethod
    def text(self) -> str | None:
        """Text payload of a text block."""
        raise NotImplementedError

    @property
    @abstractmethod
    def name(self) -> str | None:
        """Tool requested by a tool_use block."""
        raise NotImplementedError

    @property
    @abstractmethod
    def input(self) -> dict[str, Any] | None:
        """Arguments of a tool_use block."""
        raise NotImplementedError

    @property
    @abstractmethod
    def tool_use_id(self) -> str | None:
        """tool_use id a tool_result block answers."""
        raise NotImplementedError

    @property
    @abstractmethod
    def content(self) -> object | None:
        """Payload of a tool_result block."""
        raise NotImplementedError

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        raise NotImplementedError


class Message(ABC):
    """A chat turn made of ordered content blocks."""

    @property
    @abstractmethod
    def role(self) -> str:
        """``user`` or ``assistant``."""
        raise NotImplementedError

    @property
    @abstractmethod
    def content(self) -> Sequence[ContentBlock]:
        """Ordered content blocks."""
        raise NotImplementedError

    @property
    def text(self) -> str:
        """Concatenated text of every text block, stripped."""
        return "".join(block.text or "" for block in self.content if block.type == "text").strip()

    @property
    def tool_uses(self) -> list[ContentBlock]:
        """The tool_use blocks of this turn, in order."""
        return [block for block in self.content if block.type == "tool_use"]

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        raise NotImplementedError


class ToolDefinition(ABC):
    """A tool the model may call: name, description and JSON parameter schema."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Tool name exposed to the model."""
        raise NotImplementedError

    @property
    @abstractmethod
    def description(self) -> str:
        """What the tool does, in the model's terms."""
        raise NotImplementedError

    @property
    @abstractmethod
    def input_schema(self) -> dict[str, Any]:
        """JSON schema of the tool's parameters."""
        raise NotImplementedError

    @abstractmethod
    def to_dict(self) -> dict[str, Any]:
        """Serialize for the wire."""
        raise NotImplementedError


def message(role: str, content: Sequence[ContentBlock]) -> Message:
    """Build a Message with the registered implementation.

    Args:
        role: ``user`` or ``assistant``.
        content: Ordered content blocks.

    Returns:
        Concrete Message.

    """
    raise NotImplementedError


def content_block(  # noqa: PLR0913
    *,
    block_type: str,
    tool_call_id: str | None = None,
    text: str | None = None,
    name: str | None = None,
    tool_input: dict[str, Any] | None = None,
    tool_use_id: str | None = None,
    content: object | None = None,
) -> ContentBlock:
    """Build a ContentBlock with the registered implementation.

    Args:
        block_type: ``text``, ``tool_use`` or ``tool_result``.
        tool_call_id: Id of a tool_use block.
        text: Text of a text block.
        name: Tool name of a tool_use block.
        tool_input: Arguments of a tool_use block.
        tool_use_id: tool_use id answered by a tool_result block.
        content: Payload of a tool_result block.

    Returns:
        Concrete ContentBlock.

    """
    raise NotImplementedError


def tool_definition(name: str, description: str, input_schema: dict[str, Any]) -> ToolDefinition:
    """Build a ToolDefinition with the registered implementation.

    Args:
        name: Tool name.
        description: Tool description.
        input_schema: JSON schema of the parameters.

    Returns:
        Concrete ToolDefinition.

    """
    raise NotImplementedError

"""Abstract interface for text-generation services."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api.models import Message, ToolDefinition

__all__ = ["Client", "get_client"]


class Client(ABC):
    """The contract every generation backend honours.

    Implementations are stateless between calls: each request carries the full
    message history, so a single instance can serve any number of concurrent
    conversations.
    """

    @abstractmethod
    async def generate_response(
        self,
        messages: Sequence[Message],
        system: str | None = None,
        tools: Sequence[ToolDefinition] | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,
    ) -> Message:
        """Generate one assistant turn.

        Args:
            messages: Conversation so far, oldest first, ending with a user turn.
            system: Optional system prompt.
            tools: Optional tool definitions the model may ask to invoke.
            model: Model identifier override; the backend default is used when omitted.
            max_tokens: Completion budget override.

        Returns:
            Assistant message, possibly containing tool_use blocks.

        """
        raise NotImplementedError


def get_client() -> Client:
    """Return the default generation client.

    Replaced at import time by whichever implementation package registers itself.
    """
    raise NotImplementedError

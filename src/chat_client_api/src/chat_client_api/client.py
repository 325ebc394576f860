"""Abstract interface for chat platforms."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chat_client_api.models import ChannelKind, RawMessage, SuggestedPrompt

__all__ = ["Client", "get_client"]


class Client(ABC):
    """The contract for chat platform access.

    Every network method raises ``ChatPlatformError`` on failure; callers decide
    whether a failure is fatal.
    """

    @abstractmethod
    async def post_message(self, channel: str, text: str, thread_ts: str | None = None) -> str:
        """Post a message.

        Args:
            channel: Destination channel id.
            text: Message body in platform markup.
            thread_ts: Parent timestamp to reply in a thread.

        Returns:
            Timestamp id of the new message.

        """
        raise NotImplementedError

    @abstractmethod
    async def update_message(self, channel: str, ts: str, text: str) -> None:
        """Replace the body of an existing message."""
        raise NotImplementedError

    @abstractmethod
    async def set_suggested_prompts(self, channel: str, thread_ts: str, prompts: Sequence[SuggestedPrompt]) -> None:
        """Offer canned requests at the top of an assistant conversation."""
        raise NotImplementedError

    @abstractmethod
    async def fetch_replies(self, channel: str, ts: str, limit: int) -> list[RawMessage]:
        """Return a thread's parent and replies in conversation order.

        Args:
            channel: Channel holding the thread.
            ts: Timestamp of the thread's parent message.
            limit: Upper bound on messages returned across all pages.

        Returns:
            Messages oldest first.

        """
        raise NotImplementedError

    @abstractmethod
    async def resolve_user_name(self, user_id: str) -> str:
        """Return a user's display name."""
        raise NotImplementedError

    @abstractmethod
    async def channel_kind(self, channel: str) -> ChannelKind:
        """Classify a channel id (public, private, direct, group direct)."""
        raise NotImplementedError

    @abstractmethod
    async def bot_user_id(self) -> str:
        """Return the user id the bot posts as."""
        raise NotImplementedError

    @abstractmethod
    def verify_signature(self, timestamp: str, raw_body: str, signature: str) -> bool:
        """Check an inbound request signature, rejecting stale timestamps.

        Args:
            timestamp: Request timestamp header, seconds since the epoch.
            raw_body: Exact request body as received.
            signature: Signature header.

        Returns:
            True when the signature matches and the timestamp is within five minutes.

        """
        raise NotImplementedError


def get_client() -> Client:
    """Return the default chat platform client.

    Replaced at import time by whichever implementation package registers itself.
    """
    raise NotImplementedError

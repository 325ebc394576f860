"""Value types exchanged with a chat platform."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

__all__ = ["ChannelKind", "ChatPlatformError", "RawMessage", "SuggestedPrompt"]


class ChannelKind(str, Enum):
    """Kind of conversation a channel id refers to."""

    PUBLIC = "public"
    PRIVATE = "private"
    IM = "im"
    MPIM = "mpim"
    UNKNOWN = "unknown"

    @property
    def is_direct(self) -> bool:
        """Direct and group messages, where thread history is not scope-restricted."""
        return self in (ChannelKind.IM, ChannelKind.MPIM)


@dataclass(frozen=True)
class RawMessage:
    """A message as the platform returned it.

    Attributes:
        ts: Platform timestamp id, ``"<seconds>.<micros>"``.
        text: Message body in platform markup; empty for file-only posts.
        user: Author user id, if a human (or a bot user) wrote it.
        bot_id: Set when an integration posted the message.
        username: Display name supplied by integrations that post as a custom name.
        thread_ts: Parent timestamp when the message lives in a thread.

    """

    ts: str
    text: str = ""
    user: str | None = None
    bot_id: str | None = None
    username: str | None = None
    thread_ts: str | None = None

    @property
    def is_bot(self) -> bool:
        """True when an integration posted the message."""
        return bool(self.bot_id)


@dataclass(frozen=True)
class SuggestedPrompt:
    """A canned request offered when an assistant conversation opens.

    Attributes:
        title: Short label shown on the prompt button.
        message: Text sent on the user's behalf when the prompt is picked.

    """

    title: str
    message: str


class ChatPlatformError(RuntimeError):
    """A chat platform call failed.

    Attributes:
        code: Platform error code (e.g. ``missing_scope``, ``channel_not_found``).

    """

    def __init__(self, message: str, *, code: str | None = None) -> None:
        """Create the error with an optional platform error code."""
        super().__init__(message)
        self.code = code

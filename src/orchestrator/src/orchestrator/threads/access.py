"""Heuristic for whether a thread fetch saw the whole conversation."""

from __future__ import annotations

from enum import Enum

from chat_client_api import ChannelKind


class AccessLevel(str, Enum):
    FULL = "full"
    PARTIAL = "partial"
    UNKNOWN = "unknown"


def classify_access(message_count: int, channel_kind: ChannelKind) -> AccessLevel:
    """Classify a fetch result.

    More than one message, or a direct/group conversation, counts as full
    access. A single message from a channel whose kind could not be determined
    is UNKNOWN; from a public or private channel it is PARTIAL, since missing
    history scopes typically surface as only the parent message coming back.
    """
    if message_count > 1 or channel_kind.is_direct:
        return AccessLevel.FULL
    if channel_kind is ChannelKind.UNKNOWN:
        return AccessLevel.UNKNOWN
    return AccessLevel.PARTIAL

"""Thread fetching with access detection and display-name resolution."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from chat_client_api import ChannelKind, ChatPlatformError
from orchestrator.agents.base import HistoryMessage
from orchestrator.threads.access import AccessLevel, classify_access

if TYPE_CHECKING:
    from collections.abc import Iterable, Sequence

    from chat_client_api import Client, RawMessage

logger = logging.getLogger("orchestrator.threads")

UNKNOWN_USER = "Unknown User"
MENTION = re.compile(r"<@([A-Z0-9]+)(?:\|[^>]*)?>")

_FETCH_ERROR_MESSAGES = {
    "missing_scope": (
        "Missing required permissions. Please ensure the bot has 'channels:history' and 'groups:history' scopes."
    ),
    "not_in_channel": "I'm not a member of that channel. Please invite me and try again.",
    "channel_not_found": "I couldn't find that channel. Please check the link and make sure I've been added to it.",
    "thread_not_found": "I couldn't find that thread. Please check the link.",
}
_GENERIC_FETCH_ERROR = "I couldn't read that thread right now. Please try again later."


@dataclass(frozen=True)
class ThreadSnapshot:
    """Result of fetching one thread.

    Attributes:
        messages: Parent and replies, oldest first.
        access: Whether the fetch likely saw the whole thread.
        user_names: Display name per user id seen in the thread.
        error: User-safe explanation when the fetch failed.

    """

    messages: tuple[RawMessage, ...]
    access: AccessLevel
    user_names: dict[str, str] = field(default_factory=dict)
    error: str | None = None

    @property
    def has_full_access(self) -> bool:
        return self.access is AccessLevel.FULL


def describe_fetch_error(exc: ChatPlatformError) -> str:
    """Map a platform error to a corrective, user-safe message."""
    return _FETCH_ERROR_MESSAGES.get(exc.code or "", _GENERIC_FETCH_ERROR)


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


async def fetch_thread(  # noqa: PLR0913
    chat: Client,
    channel_id: str,
    thread_ts: str,
    *,
    limit: int = 200,
    name_concurrency: int = 8,
    timeout: float = 30.0,
) -> ThreadSnapshot:
    """Fetch a thread, classify access and resolve every user id it mentions.

    Never raises for platform failures; they are reported through ``error``.
    """
    kind = await _channel_kind(chat, channel_id, timeout)
    try:
        messages = await asyncio.wait_for(chat.fetch_replies(channel_id, thread_ts, limit), timeout=timeout)
    except ChatPlatformError as exc:
        logger.warning("Fetching thread %s/%s failed (%s)", channel_id, thread_ts, exc.code or exc)
        return ThreadSnapshot(messages=(), access=classify_access(0, kind), error=describe_fetch_error(exc))
    except TimeoutError:
        logger.warning("Fetching thread %s/%s timed out", channel_id, thread_ts)
        return ThreadSnapshot(messages=(), access=classify_access(0, kind), error=_GENERIC_FETCH_ERROR)

    if not messages:
        return ThreadSnapshot(messages=(), access=classify_access(0, kind), error="No messages found in the thread.")

    access = classify_access(len(messages), kind)
    if access is not AccessLevel.FULL:
        logger.info("Thread %s/%s fetch looks %s (%d messages, %s)", channel_id, thread_ts, access.value, len(messages), kind.value)
    user_names = await resolve_user_names(
        chat,
        referenced_user_ids(messages),
        concurrency=name_concurrency,
        timeout=timeout,
    )
    return ThreadSnapshot(messages=tuple(messages), access=access, user_names=user_names)


async def _channel_kind(chat: Client, channel_id: str, timeout: float) -> ChannelKind:
    try:
        return await asyncio.wait_for(chat.channel_kind(channel_id), timeout=timeout)
    except (ChatPlatformError, TimeoutError):
        logger.warning("Could not determine the kind of channel %s", channel_id, exc_info=True)
        return ChannelKind.UNKNOWN


def referenced_user_ids(messages: Iterable[RawMessage]) -> list[str]:
    """Distinct author and mentioned user ids, in first-seen order."""
    seen: dict[str, None] = {}
    for message in messages:
        if message.user and not message.is_bot:
            seen.setdefault(message.user)
        for user_id in MENTION.findall(message.text):
            seen.setdefault(user_id)
    return list(seen)


async def resolve_user_names(
    chat: Client,
    user_ids: Sequence[str],
    *,
    concurrency: int = 8,
    timeout: float = 30.0,
) -> dict[str, str]:
    """Resolve display names concurrently; a failed lookup becomes ``Unknown User``."""
    semaphore = asyncio.Semaphore(max(1, concurrency))

    async def resolve(user_id: str) -> tuple[str, str]:
        async with semaphore:
            try:
                name = await asyncio.wait_for(chat.resolve_user_name(user_id), timeout=timeout)
            except (ChatPlatformError, TimeoutError):
                logger.warning("Could not resolve user %s", user_id)
                return user_id, UNKNOWN_USER
            return user_id, name or UNKNOWN_USER

    return dict(await asyncio.gather(*(resolve(user_id) for user_id in user_ids)))


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------


def to_history(messages: Iterable[RawMessage], bot_identity: str | None = None) -> tuple[HistoryMessage, ...]:
    """Turn thread messages into a conversation history.

    Bot posts become assistant turns. Mentions of the bot are stripped from
    user turns; messages without text are skipped.
    """
    history = []
    for message in messages:
        if not message.text.strip():
            continue
        from_bot = message.is_bot or (bot_identity is not None and message.user == bot_identity)
        content = message.text
        if not from_bot and bot_identity:
            content = re.sub(rf"<@{re.escape(bot_identity)}(?:\|[^>]*)?>\s*", "", content).strip()
            if not content:
                continue
        history.append(HistoryMessage(role="assistant" if from_bot else "user", content=content))
    return tuple(history)

"""Rendering a fetched thread as a postable transcript, and splitting it to size."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import TYPE_CHECKING

from orchestrator.threads.fetch import MENTION, UNKNOWN_USER
from orchestrator.threads.links import format_link

if TYPE_CHECKING:
    from collections.abc import Mapping, Sequence

    from chat_client_api import RawMessage
    from orchestrator.threads.links import ParsedLink

SEPARATOR = "━" * 22
EMPTY_BODY = "_(no text content)_"


def format_timestamp(ts: str) -> str:
    """Render a platform timestamp as e.g. ``Apr 5, 09:14 AM`` (UTC)."""
    try:
        moment = datetime.fromtimestamp(float(ts), UTC)
    except (ValueError, OverflowError, OSError):
        return ts
    return f"{moment:%b} {moment.day}, {moment:%I:%M %p}"


def author_label(message: RawMessage, user_names: Mapping[str, str]) -> str:
    if message.is_bot:
        return f"🤖 {message.username or user_names.get(message.user or '') or 'Bot'}"
    return f"👤 {user_names.get(message.user or '', UNKNOWN_USER)}"


def clean_text(text: str, user_names: Mapping[str, str]) -> str:
    """Resolve ``<@U…>`` mentions to ``@Name`` and give code fences their own lines."""
    cleaned = MENTION.sub(lambda match: f"@{user_names.get(match.group(1), 'user')}", text)
    cleaned = cleaned.replace("```", "\n```\n").strip()
    return cleaned or EMPTY_BODY


def render_transcript(
    messages: Sequence[RawMessage],
    user_names: Mapping[str, str],
    source: ParsedLink,
) -> str:
    """Render every message once, in order, between a header and a footer."""
    if not messages:
        return "No messages to copy"

    header = (
        f"📋 *Thread copied from <#{source.channel_id}>*\n"
        f"_Original thread started {format_timestamp(messages[0].ts)}_\n"
        f"{SEPARATOR}\n\n"
    )
    body = "\n\n".join(
        f"*{author_label(message, user_names)}* - {format_timestamp(message.ts)}\n{clean_text(message.text, user_names)}"
        for message in messages
    )
    original = format_link(source.channel_id, source.thread_ts, workspace=source.workspace)
    footer = f"\n\n{SEPARATOR}\n_Total messages: {len(messages)}_\n<{original}|View original thread>"
    return header + body + footer


def split_chunks(text: str, limit: int) -> list[str]:
    """Slice ``text`` into consecutive pieces of at most ``limit`` characters.

    ``limit`` counts code points, the unit of Slack's message text limit, not encoded bytes.
    """
    if limit <= 0:
        msg = f"Chunk limit must be positive, got {limit}"
        raise ValueError(msg)
    return [text[start : start + limit] for start in range(0, len(text), limit)]

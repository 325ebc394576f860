"""Slack permalink parsing and formatting.

A permalink looks like::

    https://acme.slack.com/archives/C0123ABCD/p1712345678123456?thread_ts=1712345600.000100

where the ``p`` segment is the message timestamp with its decimal point
removed (seconds followed by exactly six digits of microseconds).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from orchestrator.errors import InvalidLink

DEFAULT_WORKSPACE = "app"

_PERMALINK = re.compile(
    r"https://(?P<workspace>[\w-]+)\.slack\.com/archives/(?P<channel>[A-Z0-9]+)"
    r"/p(?P<seconds>\d+)(?P<micros>\d{6})(?P<query>\?[^\s>|]*)?"
)
_THREAD_TS = re.compile(r"(?:^|[?&])thread_ts=(\d+\.\d{6})(?:&|$)")


@dataclass(frozen=True)
class ParsedLink:
    """Channel and timestamps decoded from a permalink."""

    channel_id: str
    message_ts: str
    thread_ts: str
    workspace: str | None = None


def parse_link(url: str) -> ParsedLink:
    """Decode a permalink.

    Raises:
        InvalidLink: ``url`` is not a permalink.

    """
    match = _PERMALINK.fullmatch(url.strip())
    if match is None:
        msg = f"Not a Slack permalink: {url!r}"
        raise InvalidLink(msg)
    message_ts = f"{match['seconds']}.{match['micros']}"
    thread_match = _THREAD_TS.search((match["query"] or "").lstrip("?"))
    return ParsedLink(
        channel_id=match["channel"],
        message_ts=message_ts,
        thread_ts=thread_match.group(1) if thread_match else message_ts,
        workspace=match["workspace"],
    )


def normalize_ts(ts: str) -> str:
    """Return ``ts`` as ``<seconds>.<6-digit micros>``.

    Raises:
        InvalidLink: ``ts`` is not a non-negative decimal timestamp.

    """
    try:
        value = Decimal(ts)
        normalized = value.quantize(Decimal("0.000001")) if value.is_finite() and value >= 0 else None
    except InvalidOperation:
        normalized = None
    if normalized is None:
        msg = f"Invalid message timestamp: {ts!r}"
        raise InvalidLink(msg)
    return f"{normalized:f}"


def format_link(
    channel_id: str,
    ts: str,
    *,
    workspace: str | None = None,
    thread_ts: str | None = None,
) -> str:
    """Build the permalink that ``parse_link`` decodes back to ``channel_id`` and ``ts``."""
    normalized = normalize_ts(ts)
    url = f"https://{workspace or DEFAULT_WORKSPACE}.slack.com/archives/{channel_id}/p{normalized.replace('.', '')}"
    if thread_ts and normalize_ts(thread_ts) != normalized:
        url = f"{url}?thread_ts={normalize_ts(thread_ts)}"
    return url


def extract_links(text: str) -> list[str]:
    """Return every permalink in ``text``, in order of appearance."""
    return [match.group(0) for match in _PERMALINK.finditer(text)]

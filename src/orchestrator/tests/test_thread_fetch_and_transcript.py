"""Unit tests for thread fetching, history conversion and transcript rendering."""

from __future__ import annotations

from typing import Any

import pytest
from chat_client_api import ChannelKind, RawMessage
from orchestrator.threads.access import AccessLevel
from orchestrator.threads.fetch import UNKNOWN_USER, fetch_thread, referenced_user_ids, to_history
from orchestrator.threads.links import parse_link
from orchestrator.threads.transcript import (
    EMPTY_BODY,
    SEPARATOR,
    clean_text,
    format_timestamp,
    render_transcript,
    split_chunks,
)

THREAD_TS = "1712345600.000100"
SOURCE = parse_link("https://acme.slack.com/archives/C1/p1712345600000100")

THREAD = [
    RawMessage(ts=THREAD_TS, text="Deploy is failing, <@U2> can you look?", user="U1"),
    RawMessage(ts="1712345660.000200", text="On it", user="U2", thread_ts=THREAD_TS),
    RawMessage(ts="1712345720.000300", text="Build #42 failed", bot_id="B1", username="ci-bot", thread_ts=THREAD_TS),
]


# ---------------------------------------------------------------------------
# Fetching
# ---------------------------------------------------------------------------


@pytest.mark.asyncio
async def test_fetch_thread_resolves_names_and_classifies_full(make_chat: Any) -> None:
    """Authors and mentions are resolved once each; bot posts are not looked up."""
    chat = make_chat(threads={("C1", THREAD_TS): THREAD}, names={"U1": "Alice", "U2": "Bob"})

    snapshot = await fetch_thread(chat, "C1", THREAD_TS)

    assert snapshot.error is None
    assert snapshot.messages == tuple(THREAD)
    assert snapshot.access is AccessLevel.FULL
    assert snapshot.has_full_access
    assert snapshot.user_names == {"U1": "Alice", "U2": "Bob"}
    assert sorted(chat.name_lookups) == ["U1", "U2"]


@pytest.mark.asyncio
async def test_fetch_thread_failed_lookup_becomes_unknown_user(make_chat: Any) -> None:
    """A name lookup failure never fails the fetch."""
    chat = make_chat(threads={("C1", THREAD_TS): THREAD}, names={"U1": "Alice"})

    snapshot = await fetch_thread(chat, "C1", THREAD_TS, name_concurrency=1)

    assert snapshot.user_names["U2"] == UNKNOWN_USER


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("kinds", "kind_error", "expected"),
    [
        ({}, False, AccessLevel.PARTIAL),
        ({"C1": ChannelKind.IM}, False, AccessLevel.FULL),
        ({}, True, AccessLevel.UNKNOWN),
    ],
)
async def test_fetch_single_message_access(
    make_chat: Any,
    kinds: dict[str, ChannelKind],
    kind_error: bool,  # noqa: FBT001
    expected: AccessLevel,
) -> None:
    """A lone parent message is only trusted in direct conversations."""
    chat = make_chat(threads={("C1", THREAD_TS): THREAD[:1]}, names={"U1": "Alice"}, kinds=kinds, kind_error=kind_error)

    snapshot = await fetch_thread(chat, "C1", THREAD_TS)

    assert snapshot.access is expected
    assert len(snapshot.messages) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("code", "fragment"),
    [
        ("missing_scope", "channels:history"),
        ("not_in_channel", "not a member"),
        ("channel_not_found", "couldn't find that channel"),
        ("ratelimited", "try again later"),
    ],
)
async def test_fetch_errors_are_user_safe(make_chat: Any, code: str, fragment: str) -> None:
    """Platform error codes map to corrective messages."""
    snapshot = await fetch_thread(make_chat(fetch_error=code), "C1", THREAD_TS)

    assert snapshot.messages == ()
    assert snapshot.error is not None
    assert fragment in snapshot.error


@pytest.mark.asyncio
async def test_fetch_empty_thread_reports_no_messages(make_chat: Any) -> None:
    """An empty reply list is an error, not an empty success."""
    snapshot = await fetch_thread(make_chat(), "C1", THREAD_TS)

    assert snapshot.error == "No messages found in the thread."


def test_referenced_user_ids_first_seen_order() -> None:
    """Authors and mentions are collected once, in order."""
    messages = [
        RawMessage(ts="1", text="<@U3|carol> and <@U1>", user="U2"),
        RawMessage(ts="2", text="<@U2>", user="U1"),
        RawMessage(ts="3", text="beep", user="U9", bot_id="B1"),
    ]
    assert referenced_user_ids(messages) == ["U2", "U3", "U1"]


def test_to_history_maps_roles_and_strips_bot_mentions() -> None:
    """Bot posts are assistant turns; empty and mention-only messages are skipped."""
    messages = [
        RawMessage(ts="1", text="<@UBOT> summarize please", user="U1"),
        RawMessage(ts="2", text="Here you go", user="UBOT"),
        RawMessage(ts="3", text="Build green", bot_id="B7"),
        RawMessage(ts="4", text="   ", user="U1"),
        RawMessage(ts="5", text="<@UBOT>", user="U1"),
        RawMessage(ts="6", text="thanks <@U2>", user="U1"),
    ]

    history = to_history(messages, bot_identity="UBOT")

    assert [(turn.role, turn.content) for turn in history] == [
        ("user", "summarize please"),
        ("assistant", "Here you go"),
        ("assistant", "Build green"),
        ("user", "thanks <@U2>"),
    ]


# ---------------------------------------------------------------------------
# Transcript
# ---------------------------------------------------------------------------


def test_render_transcript_includes_every_message_once_in_order() -> None:
    """Header, one block per message, and a footer with the count and original link."""
    text = render_transcript(THREAD, {"U1": "Alice", "U2": "Bob"}, SOURCE)

    assert text.startswith(f"📋 *Thread copied from <#C1>*\n_Original thread started Apr 5, 07:33 PM_\n{SEPARATOR}\n\n")
    assert text.count("Deploy is failing") == 1
    assert text.count("On it") == 1
    assert text.count("Build #42 failed") == 1
    assert text.index("Deploy is failing") < text.index("On it") < text.index("Build #42 failed")
    assert "*👤 Alice* - Apr 5, 07:33 PM\nDeploy is failing, @Bob can you look?" in text
    assert "*🤖 ci-bot*" in text
    assert text.endswith(
        f"\n\n{SEPARATOR}\n_Total messages: 3_\n<https://acme.slack.com/archives/C1/p1712345600000100|View original thread>"
    )


def test_render_transcript_empty_and_unknown_authors() -> None:
    """Empty bodies get a placeholder and unresolved authors a fallback label."""
    text = render_transcript([RawMessage(ts=THREAD_TS, text="", user="U404")], {}, SOURCE)

    assert f"*👤 {UNKNOWN_USER}*" in text
    assert EMPTY_BODY in text
    assert "_Total messages: 1_" in text


def test_clean_text_mentions_and_code_fences() -> None:
    """Unresolved mentions become @user; fences get their own lines."""
    cleaned = clean_text("ping <@U1> and <@U9>: ```x = 1```", {"U1": "Alice"})

    assert cleaned == "ping @Alice and @user: \n```\nx = 1\n```"


def test_format_timestamp_falls_back_to_raw_value() -> None:
    """Unparseable timestamps are shown as given."""
    assert format_timestamp("1712345600.000100") == "Apr 5, 07:33 PM"
    assert format_timestamp("yesterday") == "yesterday"


@pytest.mark.parametrize(
    ("text", "limit", "expected"),
    [
        ("abcdef", 3, ["abc", "def"]),
        ("abcdef", 4, ["abcd", "ef"]),
        ("abcdef", 6, ["abcdef"]),
        ("abcdefg", 6, ["abcdef", "g"]),
        ("", 5, []),
    ],
)
def test_split_chunks(text: str, limit: int, expected: list[str]) -> None:
    """Chunks are contiguous, bounded and lossless."""
    chunks = split_chunks(text, limit)

    assert chunks == expected
    assert "".join(chunks) == text


def test_split_chunks_rejects_non_positive_limit() -> None:
    """A zero limit is a programming error."""
    with pytest.raises(ValueError, match="positive"):
        split_chunks("abc", 0)


def test_split_chunks_counts_characters_not_bytes() -> None:
    """Multi-byte characters count once toward the limit."""
    chunks = split_chunks("📋━👤📋━", 2)

    assert chunks == ["📋━", "👤📋", "━"]
    assert len(chunks[0].encode()) > 2  # noqa: PLR2004

"""Shared test doubles for the generation and chat platform contracts."""

from __future__ import annotations

import itertools
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import pytest

import ai_client_api
import chat_client_api
import claude_client_impl  # noqa: F401  # binds the ai_client_api factories
from chat_client_api import ChannelKind, ChatPlatformError, RawMessage, SuggestedPrompt
from orchestrator.config import AgentConfig

if TYPE_CHECKING:
    from collections.abc import Callable, Sequence


# ---------------------------------------------------------------------------
# Generation fake
# ---------------------------------------------------------------------------


@dataclass
class GenerationCall:
    system: str
    messages: list[Any]
    tools: list[Any] | None
    model: str | None

    @property
    def last_text(self) -> str:
        return self.messages[-1].text if self.messages else ""


class ScriptedAI(ai_client_api.Client):
    """Replies chosen by a fragment of the system prompt.

    Each route holds a queue of replies; the last one repeats once the queue is
    down to it. A reply is a string (text turn), a Message, an exception to
    raise, or a callable taking the call's messages and returning one of those.
    """

    def __init__(self) -> None:
        self.calls: list[GenerationCall] = []
        self._routes: list[tuple[str, list[Any]]] = []

    def when(self, system_fragment: str, *replies: Any) -> ScriptedAI:  # noqa: ANN401
        self._routes.append((system_fragment, list(replies)))
        return self

    def calls_for(self, system_fragment: str) -> list[GenerationCall]:
        return [call for call in self.calls if system_fragment in call.system]

    async def generate_response(
        self,
        messages: Sequence[ai_client_api.Message],
        system: str | None = None,
        tools: Sequence[ai_client_api.ToolDefinition] | None = None,
        *,
        model: str | None = None,
        max_tokens: int | None = None,  # noqa: ARG002
    ) -> ai_client_api.Message:
        call = GenerationCall(system or "", list(messages), list(tools) if tools else None, model)
        self.calls.append(call)
        for fragment, replies in self._routes:
            if fragment in call.system:
                reply = replies.pop(0) if len(replies) > 1 else replies[0]
                if callable(reply) and not isinstance(reply, ai_client_api.Message):
                    reply = reply(call.messages)
                if isinstance(reply, BaseException):
                    raise reply
                if isinstance(reply, str):
                    return self.text(reply)
                return reply
        msg = f"No scripted reply for system prompt {call.system[:80]!r}"
        raise AssertionError(msg)

    @staticmethod
    def text(text: str) -> ai_client_api.Message:
        return ai_client_api.message(
            role="assistant",
            content=[ai_client_api.content_block(block_type="text", text=text)],
        )

    @staticmethod
    def tool_use(name: str, arguments: dict[str, Any], call_id: str = "toolu_1") -> ai_client_api.Message:
        return ai_client_api.message(
            role="assistant",
            content=[
                ai_client_api.content_block(
                    block_type="tool_use",
                    tool_call_id=call_id,
                    name=name,
                    tool_input=arguments,
                )
            ],
        )


# ---------------------------------------------------------------------------
# Chat platform fake
# ---------------------------------------------------------------------------


class FakeChat(chat_client_api.Client):
    """In-memory chat platform that records every call."""

    def __init__(  # noqa: PLR0913
        self,
        *,
        threads: dict[tuple[str, str], list[RawMessage]] | None = None,
        names: dict[str, str] | None = None,
        kinds: dict[str, ChannelKind] | None = None,
        bot_id: str = "UBOT",
        failing_posts: set[int] | None = None,
        fetch_error: str | None = None,
        kind_error: bool = False,
        signature_valid: bool = True,
    ) -> None:
        self.threads = threads or {}
        self.names = names or {}
        self.kinds = kinds or {}
        self.bot_id = bot_id
        self.failing_posts = failing_posts or set()
        self.fetch_error = fetch_error
        self.kind_error = kind_error
        self.signature_valid = signature_valid
        self.calls: list[str] = []
        self.posts: list[tuple[str, str, str | None]] = []
        self.updates: list[tuple[str, str, str]] = []
        self.name_lookups: list[str] = []
        self.suggested_prompts: list[tuple[str, str, list[SuggestedPrompt]]] = []
        self._post_attempts = itertools.count()

    async def post_message(self, channel: str, text: str, thread_ts: str | None = None) -> str:
        self.calls.append("post_message")
        attempt = next(self._post_attempts)
        if attempt in self.failing_posts:
            raise ChatPlatformError("post failed", code="channel_not_found")  # noqa: TRY003, EM101
        self.posts.append((channel, text, thread_ts))
        return f"{1700000100 + attempt}.000100"

    async def update_message(self, channel: str, ts: str, text: str) -> None:
        self.calls.append("update_message")
        self.updates.append((channel, ts, text))

    async def set_suggested_prompts(self, channel: str, thread_ts: str, prompts: Sequence[SuggestedPrompt]) -> None:
        self.calls.append("set_suggested_prompts")
        self.suggested_prompts.append((channel, thread_ts, list(prompts)))

    async def fetch_replies(self, channel: str, ts: str, limit: int) -> list[RawMessage]:
        self.calls.append("fetch_replies")
        if self.fetch_error:
            raise ChatPlatformError("fetch failed", code=self.fetch_error)  # noqa: TRY003, EM101
        return list(self.threads.get((channel, ts), []))[:limit]

    async def resolve_user_name(self, user_id: str) -> str:
        self.calls.append("resolve_user_name")
        self.name_lookups.append(user_id)
        if user_id not in self.names:
            raise ChatPlatformError("user not found", code="user_not_found")  # noqa: TRY003, EM101
        return self.names[user_id]

    async def channel_kind(self, channel: str) -> ChannelKind:
        self.calls.append("channel_kind")
        if self.kind_error:
            raise ChatPlatformError("info failed", code="missing_scope")  # noqa: TRY003, EM101
        return self.kinds.get(channel, ChannelKind.PUBLIC)

    async def bot_user_id(self) -> str:
        return self.bot_id

    def verify_signature(self, timestamp: str, raw_body: str, signature: str) -> bool:  # noqa: ARG002
        return self.signature_valid


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def scripted_ai() -> ScriptedAI:
    """A generation fake with no routes."""
    return ScriptedAI()


@pytest.fixture
def make_chat() -> Callable[..., FakeChat]:
    """Factory for in-memory chat platforms."""
    return FakeChat


@pytest.fixture
def agent_config() -> AgentConfig:
    """Configuration with short timeouts."""
    return AgentConfig(default_timeout=2.0, chat_timeout=2.0, supervisor_timeout=2.0, tool_timeout=2.0)


@pytest.fixture
def raw_message() -> Callable[..., RawMessage]:
    """Factory for RawMessage values."""
    return RawMessage

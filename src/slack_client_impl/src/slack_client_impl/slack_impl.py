"""Slack Client Implementation.

Concrete chat_client_api.Client backed by the Slack Web API through
``slack_sdk``'s asynchronous client. Resolves the bot token and signing secret
from the environment and converts Slack payloads into chat_client_api types.
"""

from __future__ import annotations

import logging
import os
from typing import TYPE_CHECKING, Any

import aiohttp
from slack_sdk.errors import SlackApiError, SlackClientError
from slack_sdk.http_retry.builtin_async_handlers import (
    AsyncConnectionErrorRetryHandler,
    AsyncRateLimitErrorRetryHandler,
)
from slack_sdk.signature import SignatureVerifier
from slack_sdk.web.async_client import AsyncWebClient

import chat_client_api
from chat_client_api import ChannelKind, ChatPlatformError, Client, RawMessage

if TYPE_CHECKING:
    from collections.abc import Sequence

    from chat_client_api import SuggestedPrompt

logger = logging.getLogger("slack_client_impl")

DEFAULT_TIMEOUT_SECONDS = 30
DEFAULT_MAX_RETRIES = 2
REPLIES_PAGE_SIZE = 200
UNKNOWN_USER = "Unknown User"

# ---------------------------------------------------------------------------
# Client implementation
# ---------------------------------------------------------------------------


class SlackClient(Client):
    """chat_client_api.Client that talks to one Slack workspace.

    Authentication:
        - SLACK_BOT_TOKEN (required)
        - SLACK_SIGNING_SECRET (required, verifies inbound event requests)
        - MAX_AGENT_RETRIES (optional, retry ceiling for rate limits and connection errors)

    Attributes:
        _client: slack_sdk async Web API client.
        _verifier: Request signature verifier.
        _bot_user_id: Cached result of ``auth.test``.

    """

    def __init__(
        self,
        token: str | None = None,
        signing_secret: str | None = None,
        *,
        timeout: int = DEFAULT_TIMEOUT_SECONDS,
        max_retries: int | None = None,
    ) -> None:
        """Initialize the Slack client, resolving credentials from the environment."""
        bot_token = token or os.environ.get("SLACK_BOT_TOKEN")
        if not bot_token:
            raise RuntimeError("SLACK_BOT_TOKEN is required.")  # noqa: TRY003, EM101
        secret = signing_secret or os.environ.get("SLACK_SIGNING_SECRET")
        if not secret:
            raise RuntimeError("SLACK_SIGNING_SECRET is required.")  # noqa: TRY003, EM101
        retries = max_retries if max_retries is not None else int(os.environ.get("MAX_AGENT_RETRIES", DEFAULT_MAX_RETRIES))
        self._client = AsyncWebClient(
            token=bot_token,
            timeout=timeout,
            retry_handlers=[
                AsyncRateLimitErrorRetryHandler(max_retry_count=retries),
                AsyncConnectionErrorRetryHandler(max_retry_count=retries),
            ],
        )
        self._verifier = SignatureVerifier(signing_secret=secret)
        self._bot_user_id: str | None = None

    async def post_message(self, channel: str, text: str, thread_ts: str | None = None) -> str:
        """Post a message without link or media unfurls and return its timestamp."""
        kwargs: dict[str, Any] = {
            "channel": channel,
            "text": text,
            "unfurl_links": False,
            "unfurl_media": False,
        }
        if thread_ts:
            kwargs["thread_ts"] = thread_ts
        response = await self._call("chat_postMessage", **kwargs)
        return str(response["ts"])

    async def update_message(self, channel: str, ts: str, text: str) -> None:
        """Replace a message body."""
        await self._call("chat_update", channel=channel, ts=ts, text=text)

    async def set_suggested_prompts(self, channel: str, thread_ts: str, prompts: Sequence[SuggestedPrompt]) -> None:
        """Set the prompts shown in an assistant thread through ``assistant.threads.setSuggestedPrompts``."""
        await self._call(
            "assistant_threads_setSuggestedPrompts",
            channel_id=channel,
            thread_ts=thread_ts,
            prompts=[{"title": prompt.title, "message": prompt.message} for prompt in prompts],
        )

    async def fetch_replies(self, channel: str, ts: str, limit: int) -> list[RawMessage]:
        """Follow ``conversations.replies`` cursors until the thread or ``limit`` is exhausted."""
        collected: list[RawMessage] = []
        cursor: str | None = None
        while len(collected) < limit:
            kwargs: dict[str, Any] = {
                "channel": channel,
                "ts": ts,
                "limit": min(REPLIES_PAGE_SIZE, limit - len(collected)),
            }
            if cursor:
                kwargs["cursor"] = cursor
            response = await self._call("conversations_replies", **kwargs)
            collected.extend(to_raw_message(item) for item in response.get("messages") or [])
            cursor = (response.get("response_metadata") or {}).get("next_cursor") or None
            if not cursor:
                break
        logger.debug("Fetched %d replies for %s/%s", len(collected), channel, ts)
        return collected[:limit]

    async def resolve_user_name(self, user_id: str) -> str:
        """Return the real name, display name or handle of a user, in that order of preference."""
        response = await self._call("users_info", user=user_id)
        user = response.get("user") or {}
        profile = user.get("profile") or {}
        return user.get("real_name") or profile.get("display_name") or user.get("name") or UNKNOWN_USER

    async def channel_kind(self, channel: str) -> ChannelKind:
        """Classify a channel from ``conversations.info`` flags."""
        response = await self._call("conversations_info", channel=channel)
        return to_channel_kind(response.get("channel") or {})

    async def bot_user_id(self) -> str:
        """Return (and cache) the bot's own user id."""
        if self._bot_user_id is None:
            response = await self._call("auth_test")
            user_id = response.get("user_id")
            if not user_id:
                raise ChatPlatformError("auth.test returned no user_id.")  # noqa: TRY003, EM101
            self._bot_user_id = str(user_id)
        return self._bot_user_id

    def verify_signature(self, timestamp: str, raw_body: str, signature: str) -> bool:
        """Verify ``X-Slack-Signature``; the SDK rejects timestamps older than five minutes."""
        if not timestamp or not signature:
            return False
        try:
            return self._verifier.is_valid(body=raw_body, timestamp=timestamp, signature=signature)
        except ValueError:
            logger.warning("Rejected request with malformed timestamp %r", timestamp)
            return False

    async def _call(self, method: str, **kwargs: Any) -> Any:  # noqa: ANN401
        """Invoke a Web API method, translating SDK and transport errors."""
        try:
            return await getattr(self._client, method)(**kwargs)
        except SlackApiError as exc:
            code = exc.response.get("error") if exc.response is not None else None
            msg = f"Slack {method} failed: {code or exc}"
            raise ChatPlatformError(msg, code=code) from exc
        except (SlackClientError, aiohttp.ClientError, TimeoutError) as exc:
            msg = f"Slack {method} failed: {exc}"
            raise ChatPlatformError(msg) from exc


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


def get_client_impl() -> SlackClient:
    """Return a new SlackClient using env defaults."""
    return SlackClient()


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def to_raw_message(payload: dict[str, Any]) -> RawMessage:
    """Convert a Slack message object into a RawMessage."""
    bot_profile = payload.get("bot_profile") or {}
    return RawMessage(
        ts=str(payload.get("ts", "")),
        text=payload.get("text") or "",
        user=payload.get("user"),
        bot_id=payload.get("bot_id"),
        username=payload.get("username") or bot_profile.get("name"),
        thread_ts=payload.get("thread_ts"),
    )


def to_channel_kind(channel: dict[str, Any]) -> ChannelKind:
    """Map ``conversations.info`` flags onto a ChannelKind."""
    if channel.get("is_im"):
        return ChannelKind.IM
    if channel.get("is_mpim"):
        return ChannelKind.MPIM
    if channel.get("is_private") or channel.get("is_group"):
        return ChannelKind.PRIVATE
    if channel.get("is_channel"):
        return ChannelKind.PUBLIC
    return ChannelKind.UNKNOWN


# ---------------------------------------------------------------------------
# Factory registration
# ---------------------------------------------------------------------------


def register() -> None:
    """Bind the Slack client factory into chat_client_api.get_client."""
    chat_client_api.get_client = get_client_impl

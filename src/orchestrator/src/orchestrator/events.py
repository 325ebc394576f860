"""Handling of Slack events: assistant thread greetings and answers to messages."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from chat_client_api import ChatPlatformError, RawMessage, SuggestedPrompt
from orchestrator.agents.base import RequestContext
from orchestrator.threads.fetch import to_history
from orchestrator.threads.transcript import split_chunks

if TYPE_CHECKING:
    from chat_client_api import Client
    from orchestrator.agents.base import HistoryMessage, StatusSink
    from orchestrator.models import SlackEvent
    from orchestrator.services import Services

logger = logging.getLogger("orchestrator.events")

ASSISTANT_THREAD_STARTED = "assistant_thread_started"
MESSAGE_EVENT_TYPES = frozenset({"app_mention", "message"})
HANDLED_EVENT_TYPES = MESSAGE_EVENT_TYPES | {ASSISTANT_THREAD_STARTED}
IGNORED_SUBTYPES = frozenset({"bot_message", "message_changed", "message_deleted", "channel_join", "channel_leave"})
THINKING = "is thinking..."
EMPTY_MENTION_REPLY = "Hi! How can I help?"
ASSISTANT_GREETING = "Hello, I'm an AI assistant. Ask me a question, or pick one of the suggestions below."
SUGGESTED_PROMPTS = (
    SuggestedPrompt(title="Get the weather", message="What is the current weather in London?"),
    SuggestedPrompt(title="Get the news", message="What is the latest Premier League news from the BBC?"),
)


def should_handle(event: SlackEvent, bot_user_id: str | None = None) -> bool:
    """Whether an event is a human request addressed to the bot."""
    if event.type not in MESSAGE_EVENT_TYPES:
        return False
    if event.bot_id or event.subtype in IGNORED_SUBTYPES:
        return False
    if not event.user or not event.channel or not event.ts:
        return False
    if bot_user_id and event.user == bot_user_id:
        return False
    # Plain channel messages arrive as app_mention; only direct messages come through as message.
    return event.type == "app_mention" or event.channel_type == "im"


def status_sink_for(chat: Client, channel: str, placeholder_ts: str) -> StatusSink:
    """Progress sink that rewrites the placeholder message."""

    async def update_status(status: str) -> None:
        await chat.update_message(channel, placeholder_ts, status)

    return update_status


async def build_history(
    event: SlackEvent,
    services: Services,
    bot_user_id: str,
    *,
    skip_ts: str | None = None,
) -> tuple[HistoryMessage, ...]:
    """Conversation history for the event: the whole thread when it is a reply, else the message itself.

    ``skip_ts`` names a message to leave out, such as the placeholder just posted.
    """
    current = RawMessage(ts=event.ts or "", text=event.text, user=event.user)
    if not event.thread_ts:
        return to_history([current], bot_user_id)
    try:
        messages = await asyncio.wait_for(
            services.chat.fetch_replies(event.channel or "", event.thread_ts, services.config.thread_fetch_limit),
            timeout=services.config.default_timeout,
        )
    except (ChatPlatformError, TimeoutError):
        logger.warning("Could not load thread %s; answering from the message alone", event.thread_ts, exc_info=True)
        return to_history([current], bot_user_id)
    messages = [message for message in messages if message.ts != skip_ts]
    if not any(message.ts == current.ts for message in messages):
        messages = [*messages, current]
    return to_history(messages, bot_user_id)


async def start_assistant_thread(event: SlackEvent, services: Services) -> None:
    """Greet a newly opened assistant conversation and offer suggested prompts."""
    thread = event.assistant_thread
    if thread is None:
        logger.warning("Ignoring %s event without an assistant_thread", event.type)
        return
    chat = services.chat
    try:
        await chat.post_message(thread.channel_id, ASSISTANT_GREETING, thread_ts=thread.thread_ts)
        await chat.set_suggested_prompts(thread.channel_id, thread.thread_ts, SUGGESTED_PROMPTS)
    except ChatPlatformError:
        logger.exception("Could not open assistant thread %s in %s", thread.thread_ts, thread.channel_id)


async def handle_slack_event(event: SlackEvent, services: Services) -> None:
    """Answer one Slack event in its thread; platform failures are logged, not raised."""
    if event.type == ASSISTANT_THREAD_STARTED:
        await start_assistant_thread(event, services)
        return
    chat = services.chat
    try:
        bot_user_id = await chat.bot_user_id()
    except ChatPlatformError:
        logger.exception("Could not determine the bot user id")
        return
    if not should_handle(event, bot_user_id):
        return

    channel = event.channel or ""
    thread_ts = event.thread_ts or event.ts
    try:
        placeholder_ts = await chat.post_message(channel, THINKING, thread_ts=thread_ts)
    except ChatPlatformError:
        logger.exception("Could not post the placeholder in %s", channel)
        return

    history = await build_history(event, services, bot_user_id, skip_ts=placeholder_ts)
    if history:
        context = RequestContext(
            channel_id=channel,
            thread_id=thread_ts,
            bot_identity=bot_user_id,
            caller_id=event.user,
            status_sink=status_sink_for(chat, channel, placeholder_ts),
        )
        answer = await services.dispatcher.dispatch(history, context)
    else:
        answer = EMPTY_MENTION_REPLY

    chunks = split_chunks(answer, services.config.message_limit) or [EMPTY_MENTION_REPLY]
    try:
        await chat.update_message(channel, placeholder_ts, chunks[0])
        for chunk in chunks[1:]:
            await chat.post_message(channel, chunk, thread_ts=thread_ts)
    except ChatPlatformError:
        logger.exception("Could not deliver the answer in %s", channel)

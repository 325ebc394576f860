"""Thread responder: copies threads between channels and summarizes them."""

from __future__ import annotations

import logging
import re
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from orchestrator.agents.base import HistoryMessage, Outcome, ResponderDescriptor, SpecializedResponder, last_user_text
from orchestrator.agents.matcher import CapabilityMatcher
from orchestrator.errors import ExternalServiceFailure, InvalidLink
from orchestrator.formatting import format_for_slack
from orchestrator.generation import generate_text
from orchestrator.threads.access import AccessLevel
from orchestrator.threads.fetch import fetch_thread, to_history
from orchestrator.threads.links import extract_links, parse_link

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from chat_client_api import Client as ChatClient
    from orchestrator.agents.base import RequestContext
    from orchestrator.config import AgentConfig
    from orchestrator.threads.transfer import ThreadTransferService

logger = logging.getLogger("orchestrator.agents.thread")

COPY_REQUEST = re.compile(r"copy|migrate|move|share.*thread|transfer.*discussion", re.IGNORECASE)
SUMMARY_REQUEST = re.compile(r"summar|recap|tl;?dr|what.*discuss|overview.*thread|catch.*up", re.IGNORECASE)

UNKNOWN_OPERATION = "I can copy a thread to another channel or summarize one. Which would you like?"
NEED_TWO_LINKS = (
    "📋 *How to copy a thread:*\n\n"
    "1. Right-click on any message in the source thread and select 'Copy link'\n"
    "2. Go to the destination channel and copy its link\n"
    "3. Use this format:\n"
    "```@bot copy thread from [source-link] to [destination-link]```\n\n"
    "Example:\n"
    "`@bot copy thread from https://workspace.slack.com/archives/C123/p456 to "
    "https://workspace.slack.com/archives/C789/p012`"
)
NO_THREAD_CONTEXT = "Thread context not available for summarization. Ask me from inside the thread or share its link."
NEED_MORE_ACCESS = (
    "I need access to more messages in this thread to provide a summary. This might be due to permission "
    "limitations. Try in a direct message thread where I have full access."
)
SUMMARY_APOLOGY = "I encountered an error while generating the summary. Please try again."
PARTIAL_SUMMARY_WARNING = "⚠️ _I may only see part of this thread, so this summary could be incomplete._"

SUMMARY_SYSTEM_PROMPT = """You are a helpful Slack assistant that creates concise, clear thread summaries.
When summarizing threads:
- Identify key topics and decisions made
- Highlight action items or questions that need answers
- Note any important links or resources shared
- Keep the summary concise but comprehensive
- Use bullet points for clarity
- Identify who said what when relevant
Current date: {today}"""

SUMMARY_REQUEST_TEXT = "Please summarize this thread conversation. Focus on: comprehensive summary"


class ThreadResponder(SpecializedResponder):
    descriptor = ResponderDescriptor(
        id="Thread",
        capability_hint="Thread operations: copying a thread to another channel from two Slack links, and summarizing threads",
        declared_tools=frozenset({"copy_thread", "summarize_thread"}),
    )
    matcher = CapabilityMatcher(
        r"summar(ize|ise|y)",
        r"recap",
        r"tl;?dr",
        r"what.*discuss",
        r"overview.*thread",
        r"catch.*up",
        r"(copy|migrate|move|share).*thread",
        r"transfer.*discussion",
        r"slack\.com/archives",
    )

    def __init__(
        self,
        ai: Client,
        chat: ChatClient,
        transfer: ThreadTransferService,
        config: AgentConfig,
    ) -> None:
        self._ai = ai
        self._chat = chat
        self._transfer = transfer
        self._config = config

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        query = last_user_text(history)
        links = extract_links(query)
        if COPY_REQUEST.search(query) and links:
            return await self._copy(links, context)
        if SUMMARY_REQUEST.search(query):
            return await self._summarize(links, context)
        return Outcome.failure(UNKNOWN_OPERATION)

    # -----------------------------------------------------------------------
    # Copy
    # -----------------------------------------------------------------------

    async def _copy(self, links: list[str], context: RequestContext) -> Outcome:
        if len(links) < 2:  # noqa: PLR2004
            return Outcome.failure(NEED_TWO_LINKS)
        await context.emit_status("📋 Copying thread...")
        result = await self._transfer.transfer(links[0], links[1])
        data = {"operation": "copy_thread", "destination_ref": result.destination_ref}
        if not result.success:
            return Outcome.failure(result.message, **data)
        return Outcome(ok=True, text=format_for_slack(result.message), auxiliary_data=data)

    # -----------------------------------------------------------------------
    # Summarize
    # -----------------------------------------------------------------------

    async def _summarize(self, links: list[str], context: RequestContext) -> Outcome:
        # A linked thread takes precedence over the one the request came from.
        current_thread = not links
        if links:
            try:
                target = parse_link(links[0])
            except InvalidLink:
                return Outcome.failure(NO_THREAD_CONTEXT)
            channel_id, thread_ts = target.channel_id, target.thread_ts
        elif context.channel_id and context.thread_id:
            channel_id, thread_ts = context.channel_id, context.thread_id
        else:
            return Outcome.failure(NO_THREAD_CONTEXT)

        await context.emit_status("📊 Analyzing thread...")
        snapshot = await fetch_thread(
            self._chat,
            channel_id,
            thread_ts,
            limit=self._config.thread_fetch_limit,
            name_concurrency=self._config.name_resolution_concurrency,
            timeout=self._config.default_timeout,
        )
        if snapshot.error and not snapshot.messages:
            return Outcome.failure(f"Unable to access thread: {snapshot.error}")

        transcript = to_history(snapshot.messages, context.bot_identity)
        if current_thread and transcript and transcript[-1].role == "user":
            # The final user turn is the summary request itself.
            transcript = transcript[:-1]
        if not transcript:
            return Outcome(ok=True, text=NEED_MORE_ACCESS, auxiliary_data={"operation": "summarize_thread"})

        try:
            generation = await generate_text(
                self._ai,
                system=SUMMARY_SYSTEM_PROMPT.format(today=datetime.now(UTC).date().isoformat()),
                history=(*transcript, HistoryMessage(role="user", content=SUMMARY_REQUEST_TEXT)),
                model=self._config.supervisor_model,
                timeout=self._config.supervisor_timeout,
            )
        except ExternalServiceFailure:
            logger.exception("Thread summary failed for %s/%s", channel_id, thread_ts)
            return Outcome.failure(SUMMARY_APOLOGY)
        if not generation.text.strip():
            return Outcome.failure(SUMMARY_APOLOGY)

        text = f"📋 *Thread Summary*\n\n{generation.text}"
        if snapshot.access is not AccessLevel.FULL:
            text = f"{text}\n\n{PARTIAL_SUMMARY_WARNING}"
        return Outcome(
            ok=True,
            text=format_for_slack(text),
            auxiliary_data={"operation": "summarize_thread", "message_count": len(snapshot.messages)},
        )

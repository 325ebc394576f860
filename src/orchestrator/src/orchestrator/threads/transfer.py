"""Copying a thread from one conversation to another."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from chat_client_api import ChatPlatformError
from orchestrator.errors import InvalidLink
from orchestrator.threads.access import AccessLevel
from orchestrator.threads.fetch import fetch_thread
from orchestrator.threads.links import parse_link
from orchestrator.threads.transcript import render_transcript, split_chunks

if TYPE_CHECKING:
    from chat_client_api import Client
    from orchestrator.config import AgentConfig

logger = logging.getLogger("orchestrator.threads.transfer")

INVALID_SOURCE = "Invalid source thread link. Please provide a valid Slack thread link."
INVALID_DESTINATION = "Invalid destination channel link. Please provide a valid Slack channel link."
EMPTY_SOURCE = "No messages found in the source thread."
POST_FAILED = "I couldn't post the copied thread to the destination channel. Please make sure I've been added to it."
PARTIAL_WARNING = (
    "⚠️ I may only have seen part of the source thread, so some replies could be missing. "
    "Adding me to that channel gives me full access."
)


@dataclass(frozen=True)
class TransferResult:
    """Terminal state of one transfer.

    Attributes:
        success: Whether the transcript landed in the destination.
        message: User-facing summary or failure reason.
        destination_ref: Timestamp of the first posted message.

    """

    success: bool
    message: str
    destination_ref: str | None = None


class ThreadTransferService:
    """Parses two permalinks, fetches the source thread and re-posts it as a transcript."""

    def __init__(
        self,
        chat: Client,
        *,
        fetch_limit: int = 200,
        message_limit: int = 3000,
        name_concurrency: int = 8,
        timeout: float = 30.0,
    ) -> None:
        """Bind the chat platform client and the transfer limits."""
        self._chat = chat
        self._fetch_limit = fetch_limit
        self._message_limit = message_limit
        self._name_concurrency = name_concurrency
        self._timeout = timeout

    @classmethod
    def from_config(cls, chat: Client, config: AgentConfig) -> ThreadTransferService:
        return cls(
            chat,
            fetch_limit=config.thread_fetch_limit,
            message_limit=config.message_limit,
            name_concurrency=config.name_resolution_concurrency,
            timeout=config.default_timeout,
        )

    async def transfer(self, source_link: str, destination_link: str) -> TransferResult:
        """Copy the thread at ``source_link`` into the channel of ``destination_link``.

        Both links are validated before any platform call is made.
        """
        try:
            source = parse_link(source_link)
        except InvalidLink:
            return TransferResult(success=False, message=INVALID_SOURCE)
        try:
            destination = parse_link(destination_link)
        except InvalidLink:
            return TransferResult(success=False, message=INVALID_DESTINATION)

        snapshot = await fetch_thread(
            self._chat,
            source.channel_id,
            source.thread_ts,
            limit=self._fetch_limit,
            name_concurrency=self._name_concurrency,
            timeout=self._timeout,
        )
        if snapshot.error or not snapshot.messages:
            return TransferResult(success=False, message=snapshot.error or EMPTY_SOURCE)

        transcript = render_transcript(snapshot.messages, snapshot.user_names, source)
        chunks = split_chunks(transcript, self._message_limit)
        logger.info(
            "Copying %d messages from %s to %s in %d chunk(s)",
            len(snapshot.messages),
            source.channel_id,
            destination.channel_id,
            len(chunks),
        )

        try:
            first_ts = await asyncio.wait_for(
                self._chat.post_message(destination.channel_id, chunks[0]),
                timeout=self._timeout,
            )
        except (ChatPlatformError, TimeoutError):
            logger.exception("Posting the transcript to %s failed", destination.channel_id)
            return TransferResult(success=False, message=POST_FAILED)

        await self._post_followups(destination.channel_id, first_ts, chunks[1:])

        message = f"Successfully copied thread to <#{destination.channel_id}>"
        if snapshot.access is not AccessLevel.FULL:
            message = f"{message}\n{PARTIAL_WARNING}"
        return TransferResult(success=True, message=message, destination_ref=first_ts)

    async def _post_followups(self, channel_id: str, parent_ts: str, chunks: list[str]) -> None:
        # Chunks go out in order; stop at the first failure so none land out of order.
        for index, chunk in enumerate(chunks, start=2):
            try:
                await asyncio.wait_for(
                    self._chat.post_message(channel_id, chunk, thread_ts=parent_ts),
                    timeout=self._timeout,
                )
            except (ChatPlatformError, TimeoutError):
                logger.exception("Posting transcript chunk %d/%d to %s failed", index, len(chunks) + 1, channel_id)
                return

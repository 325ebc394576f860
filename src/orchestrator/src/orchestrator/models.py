"""Pydantic schemas for the HTTP surface."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict


class AssistantThread(BaseModel):
    """The ``assistant_thread`` object of an ``assistant_thread_started`` event."""

    model_config = ConfigDict(extra="allow")

    channel_id: str
    thread_ts: str
    user_id: str | None = None


class SlackEvent(BaseModel):
    """The ``event`` object of a Slack Events API callback."""

    model_config = ConfigDict(extra="allow")

    type: str
    user: str | None = None
    text: str = ""
    channel: str | None = None
    channel_type: str | None = None
    ts: str | None = None
    thread_ts: str | None = None
    bot_id: str | None = None
    subtype: str | None = None
    assistant_thread: AssistantThread | None = None


class SlackEventEnvelope(BaseModel):
    """Outer payload Slack posts to the events endpoint."""

    model_config = ConfigDict(extra="allow")

    type: str
    challenge: str | None = None
    event_id: str | None = None
    event: SlackEvent | None = None


class TransferRequest(BaseModel):
    """Copy the thread behind ``source_link`` into the channel of ``destination_link``."""

    source_link: str
    destination_link: str


class TransferReply(BaseModel):
    """Outcome of a thread transfer."""

    success: bool
    message: str
    destination_ref: str | None = None

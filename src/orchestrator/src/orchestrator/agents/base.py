"""Shared types of the dispatch pipeline: history, context, outcomes and the responder contract."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Literal

if TYPE_CHECKING:
    from collections.abc import Sequence

    from orchestrator.agents.matcher import Matcher

logger = logging.getLogger("orchestrator.agents")

Role = Literal["user", "assistant"]
StatusSink = Callable[[str], Awaitable[None]]

GENERIC_APOLOGY = "I encountered an error processing your request."


# ---------------------------------------------------------------------------
# Request-scoped values
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class HistoryMessage:
    """One conversation turn."""

    role: Role
    content: str


History = tuple[HistoryMessage, ...]


def last_user_text(history: Sequence[HistoryMessage]) -> str:
    """Return the content of the final turn when it is a user turn, else ``""``."""
    if not history or history[-1].role != "user":
        return ""
    return history[-1].content


@dataclass(frozen=True)
class RequestContext:
    """Where a request came from and where progress updates go.

    Attributes:
        channel_id: Channel the request arrived in.
        thread_id: Thread timestamp of the conversation.
        bot_identity: User id of this bot on the chat platform.
        caller_id: User id of the person who asked.
        status_sink: Async callable receiving progress strings.

    """

    channel_id: str | None = None
    thread_id: str | None = None
    bot_identity: str | None = None
    caller_id: str | None = None
    status_sink: StatusSink | None = None

    async def emit_status(self, status: str) -> None:
        """Send a progress string to the sink; sink failures are logged and dropped."""
        logger.debug("Status: %s", status)
        if self.status_sink is None:
            return
        try:
            await self.status_sink(status)
        except Exception:
            logger.warning("Status update failed: %s", status, exc_info=True)


@dataclass(frozen=True)
class Outcome:
    """Result of one responder invocation."""

    ok: bool
    text: str
    auxiliary_data: dict[str, Any] | None = None
    escalate: bool = False
    suggested_target: str | None = None

    def __post_init__(self) -> None:
        if not self.ok and not self.text.strip():
            msg = "A failed outcome needs a user-safe message."
            raise ValueError(msg)
        if self.escalate and self.text:
            msg = "An escalating outcome cannot carry answer text."
            raise ValueError(msg)

    @classmethod
    def failure(cls, text: str = GENERIC_APOLOGY, **auxiliary: Any) -> Outcome:  # noqa: ANN401
        return cls(ok=False, text=text, auxiliary_data=auxiliary or None)


# ---------------------------------------------------------------------------
# Responders
# ---------------------------------------------------------------------------


class ResponderKind(str, Enum):
    """Closed set of responder roles."""

    PRIMARY = "primary"
    COORDINATOR = "coordinator"
    SPECIALIZED = "specialized"


@dataclass(frozen=True)
class ResponderDescriptor:
    """Directory entry describing a responder."""

    id: str
    capability_hint: str
    kind: ResponderKind = ResponderKind.SPECIALIZED
    declared_tools: frozenset[str] = field(default_factory=frozenset)


class Responder(ABC):
    """Anything that turns a history into an Outcome.

    Implementations catch their own failures: ``respond`` returns an Outcome
    and never raises.
    """

    descriptor: ResponderDescriptor

    @abstractmethod
    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:
        """Answer the conversation."""
        raise NotImplementedError


class SpecializedResponder(Responder):
    """Responder bound to one external capability."""

    matcher: Matcher

    def can_handle(self, text: str) -> bool:
        """Whether this responder recognises the request (introspection only)."""
        return self.matcher.matches(text)

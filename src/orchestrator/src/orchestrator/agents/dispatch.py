"""Dispatcher: runs the Primary responder and follows its escalation."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from orchestrator.agents.base import GENERIC_APOLOGY, ResponderKind
from orchestrator.formatting import format_for_slack

if TYPE_CHECKING:
    from collections.abc import Sequence

    from orchestrator.agents.base import HistoryMessage, Outcome, RequestContext, Responder
    from orchestrator.agents.directory import ResponderDirectory

logger = logging.getLogger("orchestrator.dispatch")


class Dispatcher:
    """Entry point of the responder pipeline for one conversation turn."""

    def __init__(self, directory: ResponderDirectory) -> None:
        """Bind a sealed responder directory."""
        if not directory.sealed:
            msg = "Dispatcher needs a sealed responder directory."
            raise ValueError(msg)
        self._directory = directory

    async def dispatch(self, history: Sequence[HistoryMessage], context: RequestContext) -> str:
        """Return the Slack-formatted answer to the conversation.

        Never raises; a responder that breaks its no-raise contract is logged
        and the caller gets a generic apology.
        """
        started = time.perf_counter()
        try:
            await context.emit_status("💭 Processing...")
            outcome = await self._directory.primary.respond(tuple(history), context)
            if outcome.escalate:
                await context.emit_status("🤔 Let me think about that...")
                target = self._escalation_target(outcome)
                outcome = await target.respond(tuple(history), context)
            text = outcome.text
        except Exception:
            logger.exception("Unhandled error while dispatching")
            return GENERIC_APOLOGY
        finally:
            logger.debug("Dispatch finished in %.2fs", time.perf_counter() - started)
        return format_for_slack(text) if text.strip() else GENERIC_APOLOGY

    def _escalation_target(self, outcome: Outcome) -> Responder:
        target_id = outcome.suggested_target
        if target_id is None:
            return self._directory.coordinator
        if target_id in self._directory and self._directory.descriptor(target_id).kind is ResponderKind.COORDINATOR:
            return self._directory.lookup(target_id)
        logger.warning("Escalation target %s is not a coordinator; using the coordinator", target_id)
        return self._directory.coordinator

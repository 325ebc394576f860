"""Metrics responder: a 24-hour CloudWatch summary."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING, Any

from botocore.exceptions import BotoCoreError, ClientError

from orchestrator.agents.base import Outcome, ResponderDescriptor, SpecializedResponder
from orchestrator.agents.matcher import CapabilityMatcher
from orchestrator.formatting import format_for_slack
from orchestrator.tools.metrics import fetch_metric_summary, format_metric_summary

if TYPE_CHECKING:
    from collections.abc import Sequence

    from orchestrator.agents.base import HistoryMessage, RequestContext

logger = logging.getLogger("orchestrator.agents.metrics")

METRICS_APOLOGY = "Failed to fetch CloudWatch metrics. Please try again later."


class MetricsResponder(SpecializedResponder):
    descriptor = ResponderDescriptor(
        id="Metrics",
        capability_hint="AWS CloudWatch metrics and monitoring (invocations, errors, throttles, latency)",
        declared_tools=frozenset({"get_metric_statistics"}),
    )
    matcher = CapabilityMatcher(
        r"cloudwatch|metrics|monitoring",
        r"aws.*logs?|errors?|warnings?",
        r"performance|latency|cpu|memory",
        r"alarms?|alerts?",
    )

    def __init__(self, client_factory: Callable[[], Any], *, namespace: str, timeout: float) -> None:
        """Bind a CloudWatch client factory and the namespace to summarise.

        The factory runs on each request inside a worker thread, since boto3
        client construction can block on credential discovery.
        """
        self._client_factory = client_factory
        self._namespace = namespace
        self._timeout = timeout

    def _collect(self) -> dict[str, float | None]:
        return fetch_metric_summary(self._client_factory(), self._namespace)

    async def respond(self, history: Sequence[HistoryMessage], context: RequestContext) -> Outcome:  # noqa: ARG002
        await context.emit_status("📈 Fetching metrics...")
        try:
            summary = await asyncio.wait_for(asyncio.to_thread(self._collect), timeout=self._timeout)
        except (BotoCoreError, ClientError, TimeoutError):
            logger.exception("CloudWatch query for %s failed", self._namespace)
            return Outcome.failure(METRICS_APOLOGY)
        return Outcome(
            ok=True,
            text=format_for_slack(format_metric_summary(self._namespace, summary)),
            auxiliary_data={"source": "cloudwatch", "namespace": self._namespace, "metrics": summary},
        )

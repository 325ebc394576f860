"""CloudWatch metric summaries."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any

import boto3
from botocore.config import Config

logger = logging.getLogger("orchestrator.metrics_tools")

WINDOW = timedelta(hours=24)
PERIOD_SECONDS = 3600


@dataclass(frozen=True)
class MetricQuery:
    """One metric and the statistic summarised for it."""

    name: str
    statistic: str
    unit: str = ""


DEFAULT_QUERIES: tuple[MetricQuery, ...] = (
    MetricQuery("Invocations", "Sum"),
    MetricQuery("Errors", "Sum"),
    MetricQuery("Throttles", "Sum"),
    MetricQuery("Duration", "Average", "ms"),
    MetricQuery("Duration", "Maximum", "ms"),
)


def build_cloudwatch_client(region: str | None = None, max_retries: int = 2) -> Any:  # noqa: ANN401
    """Create a CloudWatch client with standard-mode retries."""
    return boto3.client(
        "cloudwatch",
        region_name=region,
        config=Config(retries={"max_attempts": max_retries + 1, "mode": "standard"}),
    )


def fetch_metric_summary(
    cloudwatch: Any,  # noqa: ANN401
    namespace: str,
    queries: tuple[MetricQuery, ...] = DEFAULT_QUERIES,
    *,
    now: datetime | None = None,
) -> dict[str, float | None]:
    """Aggregate each query over the last 24 hours.

    Returns:
        Mapping of ``<metric>_<statistic>`` (lower-case) to the aggregated value,
        or None when CloudWatch returned no datapoints for it.

    """
    end = now or datetime.now(UTC)
    start = end - WINDOW
    summary: dict[str, float | None] = {}
    for query in queries:
        response = cloudwatch.get_metric_statistics(
            Namespace=namespace,
            MetricName=query.name,
            StartTime=start,
            EndTime=end,
            Period=PERIOD_SECONDS,
            Statistics=[query.statistic],
        )
        values = [point[query.statistic] for point in response.get("Datapoints", []) if query.statistic in point]
        summary[f"{query.name}_{query.statistic}".lower()] = _aggregate(query.statistic, values)
    return summary


def _aggregate(statistic: str, values: list[float]) -> float | None:
    if not values:
        return None
    if statistic == "Sum":
        return float(sum(values))
    if statistic == "Maximum":
        return float(max(values))
    if statistic == "Minimum":
        return float(min(values))
    return float(sum(values) / len(values))


def format_metric_summary(
    namespace: str,
    summary: dict[str, float | None],
    queries: tuple[MetricQuery, ...] = DEFAULT_QUERIES,
) -> str:
    """Render a metric summary as a Slack message."""
    lines = [f"📊 *CloudWatch Metrics* ({namespace}, last 24h)", ""]
    for query in queries:
        value = summary.get(f"{query.name}_{query.statistic}".lower())
        if value is None:
            shown = "no data"
        elif query.statistic == "Sum":
            shown = f"{int(value):,}"
        else:
            shown = f"{value:,.1f}{query.unit}"
        lines.append(f"*{query.name} ({query.statistic.lower()})*: {shown}")
    return "\n".join(lines)

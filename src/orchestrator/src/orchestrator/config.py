"""Process configuration, read once at startup."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

DEFAULT_CHAT_MODEL = "claude-haiku-4-5-20251001"
DEFAULT_SUPERVISOR_MODEL = "claude-sonnet-4-5-20250929"
DEFAULT_SEARCH_MODEL = "sonar-pro"


def _env_float(name: str, default: float) -> float:
    raw = os.environ.get(name, "").strip()
    return float(raw) if raw else default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    return int(raw) if raw else default


@dataclass(frozen=True)
class AgentConfig:
    """Tunables for the dispatch pipeline and its external calls.

    Attributes:
        chat_model: Fast model used by the primary responder and the escalation judgment.
        supervisor_model: High-capability model used for planning, synthesis and summaries.
        search_model: Web search model served by the search API.
        default_timeout: Per-call timeout for anything without a dedicated one.
        chat_timeout: Per-call timeout for primary responder generations.
        supervisor_timeout: Per-call timeout for coordinator generations.
        tool_timeout: Per-call timeout for specialized responders' external calls.
        verbose_logging: Log status updates and responder timings at DEBUG.
        max_retries: Retry ceiling for transient external failures.
        thread_fetch_limit: Maximum messages fetched from one thread.
        message_limit: Largest message the chat platform accepts, in characters.
        name_resolution_concurrency: Parallel display-name lookups per transfer.
        metrics_namespace: CloudWatch namespace summarised by the metrics responder.
        aws_region: Region for CloudWatch calls; the boto3 default chain applies when unset.

    """

    chat_model: str = DEFAULT_CHAT_MODEL
    supervisor_model: str = DEFAULT_SUPERVISOR_MODEL
    search_model: str = DEFAULT_SEARCH_MODEL
    default_timeout: float = 30.0
    chat_timeout: float = 10.0
    supervisor_timeout: float = 30.0
    tool_timeout: float = 20.0
    verbose_logging: bool = False
    max_retries: int = 2
    thread_fetch_limit: int = 200
    message_limit: int = 3000
    name_resolution_concurrency: int = 8
    metrics_namespace: str = "AWS/Lambda"
    aws_region: str | None = None

    @classmethod
    def from_env(cls) -> AgentConfig:
        """Build the configuration from environment variables, falling back to defaults."""
        default_timeout = _env_float("AGENT_TIMEOUT_SECONDS", cls.default_timeout)
        return cls(
            chat_model=os.environ.get("CHAT_AGENT_MODEL") or DEFAULT_CHAT_MODEL,
            supervisor_model=os.environ.get("SUPERVISOR_MODEL") or DEFAULT_SUPERVISOR_MODEL,
            search_model=os.environ.get("PERPLEXITY_MODEL") or DEFAULT_SEARCH_MODEL,
            default_timeout=default_timeout,
            chat_timeout=_env_float("CHAT_TIMEOUT_SECONDS", cls.chat_timeout),
            supervisor_timeout=_env_float("SUPERVISOR_TIMEOUT_SECONDS", cls.supervisor_timeout),
            tool_timeout=_env_float("TOOL_TIMEOUT_SECONDS", cls.tool_timeout),
            verbose_logging=os.environ.get("ENABLE_AGENT_LOGGING", "").strip().lower() == "true",
            max_retries=_env_int("MAX_AGENT_RETRIES", cls.max_retries),
            thread_fetch_limit=_env_int("THREAD_FETCH_LIMIT", cls.thread_fetch_limit),
            message_limit=_env_int("SLACK_MESSAGE_LIMIT", cls.message_limit),
            name_resolution_concurrency=_env_int("NAME_RESOLUTION_CONCURRENCY", cls.name_resolution_concurrency),
            metrics_namespace=os.environ.get("METRICS_NAMESPACE") or cls.metrics_namespace,
            aws_region=os.environ.get("AWS_REGION") or None,
        )

    @property
    def log_level(self) -> int:
        """Root log level implied by the verbose flag."""
        return logging.DEBUG if self.verbose_logging else logging.INFO

"""Dependency bundle: the clients, the responder directory and the dispatcher for one process."""

from __future__ import annotations

import functools
import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

import ai_client_api
import chat_client_api
import claude_client_impl  # noqa: F401  # registers the Claude implementation
import slack_client_impl  # noqa: F401  # registers the Slack implementation
from orchestrator.agents.coordinator import CoordinatorResponder
from orchestrator.agents.directory import ResponderDirectory
from orchestrator.agents.dispatch import Dispatcher
from orchestrator.agents.escalation import EscalationClassifier
from orchestrator.agents.metrics import MetricsResponder
from orchestrator.agents.planner import InvocationPlanner
from orchestrator.agents.primary import PrimaryResponder
from orchestrator.agents.search import WebSearchResponder
from orchestrator.agents.thread import ThreadResponder
from orchestrator.agents.weather import WeatherResponder
from orchestrator.config import AgentConfig
from orchestrator.threads.transfer import ThreadTransferService
from orchestrator.tools.metrics import build_cloudwatch_client

logger = logging.getLogger("orchestrator.services")


@dataclass(frozen=True)
class Services:
    """Everything a request handler needs, built once at startup."""

    config: AgentConfig
    ai: ai_client_api.Client
    chat: chat_client_api.Client
    directory: ResponderDirectory
    dispatcher: Dispatcher
    transfer: ThreadTransferService


def build_directory(
    ai: ai_client_api.Client,
    chat: chat_client_api.Client,
    config: AgentConfig,
    *,
    transfer: ThreadTransferService | None = None,
    cloudwatch_factory: Callable[[], Any] | None = None,
) -> ResponderDirectory:
    """Register the Primary, the Coordinator and every specialized responder, then seal."""
    transfer = transfer or ThreadTransferService.from_config(chat, config)
    cloudwatch_factory = cloudwatch_factory or functools.partial(
        build_cloudwatch_client, config.aws_region, config.max_retries
    )

    directory = ResponderDirectory()
    classifier = EscalationClassifier(ai, model=config.chat_model, timeout=config.chat_timeout)
    planner = InvocationPlanner(ai, model=config.supervisor_model, timeout=config.supervisor_timeout)
    responders = [
        PrimaryResponder(ai, classifier, model=config.chat_model, timeout=config.chat_timeout),
        CoordinatorResponder(ai, directory, planner, model=config.supervisor_model, timeout=config.supervisor_timeout),
        WeatherResponder(ai, model=config.chat_model, timeout=config.default_timeout, tool_timeout=config.tool_timeout),
        WebSearchResponder(model=config.search_model, timeout=config.tool_timeout),
        MetricsResponder(cloudwatch_factory, namespace=config.metrics_namespace, timeout=config.tool_timeout),
        ThreadResponder(ai, chat, transfer, config),
    ]
    for responder in responders:
        directory.register(responder.descriptor, responder)
    return directory.seal()


def build_services(
    config: AgentConfig | None = None,
    *,
    ai: ai_client_api.Client | None = None,
    chat: chat_client_api.Client | None = None,
    cloudwatch_factory: Callable[[], Any] | None = None,
) -> Services:
    """Create the process-wide services; clients default to the registered implementations."""
    config = config or AgentConfig.from_env()
    ai = ai or ai_client_api.get_client()
    chat = chat or chat_client_api.get_client()
    transfer = ThreadTransferService.from_config(chat, config)
    directory = build_directory(ai, chat, config, transfer=transfer, cloudwatch_factory=cloudwatch_factory)
    logger.info("Registered responders: %s", ", ".join(d.id for d in directory.list_specialized()))
    return Services(
        config=config,
        ai=ai,
        chat=chat,
        directory=directory,
        dispatcher=Dispatcher(directory),
        transfer=transfer,
    )

"""Two-tier escalation decision: ordered pattern rules, then a model judgment."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from pydantic import BaseModel, ValidationError

from orchestrator.agents.base import HistoryMessage, last_user_text
from orchestrator.agents.matcher import CapabilityMatcher
from orchestrator.errors import ExternalServiceFailure, PlanningFailure
from orchestrator.generation import generate_text, parse_json_object

if TYPE_CHECKING:
    from collections.abc import Sequence

    from ai_client_api import Client
    from orchestrator.agents.matcher import Matcher

logger = logging.getLogger("orchestrator.escalation")

COORDINATOR_ID = "Coordinator"

JUDGMENT_SYSTEM_PROMPT = """Determine if this query needs specialized tools or complex analysis.
Respond with JSON only: {"escalate": boolean, "reason": "string"}"""

JUDGMENT_PROMPT = """Query: "{query}"

Should escalate if:
- Needs web search or current information
- Requires thread operations (copy, summarize)
- Needs weather data or service metrics
- Requires complex analysis or reasoning
- Involves multiple steps or tool usage

Should NOT escalate if:
- Simple greeting or chat
- Basic factual question you can answer
- Simple acknowledgment"""


@dataclass(frozen=True)
class EscalationRule:
    """A named pattern whose match routes the request to ``target``."""

    name: str
    matcher: Matcher
    target: str = COORDINATOR_ID


# Order matters: the first matching rule wins.
DEFAULT_RULES: tuple[EscalationRule, ...] = (
    EscalationRule(
        "summarize",
        CapabilityMatcher(r"summar(ize|ise|y)", r"recap", r"tl;?dr", r"what.*discuss", r"overview.*thread", r"catch.*up"),
    ),
    EscalationRule(
        "copy_thread",
        CapabilityMatcher(r"(copy|migrate|move|share).*thread", r"transfer.*discussion"),
    ),
    EscalationRule("weather", CapabilityMatcher(r"weather")),
    EscalationRule("web_search", CapabilityMatcher(r"search|find.*web|google")),
    EscalationRule("metrics", CapabilityMatcher(r"metrics|cloudwatch|latency|alarms?")),
    EscalationRule("analysis", CapabilityMatcher(r"analy[sz]e|investigate|research")),
    EscalationRule("how_what", CapabilityMatcher(r"\bhow\b.*\bdo\b|\bwhat\b.*\bis\b")),
    EscalationRule("permalink", CapabilityMatcher(r"slack\.com/archives")),
)


# ---------------------------------------------------------------------------
# Decisions
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class RuleMatched:
    rule: str
    target: str


@dataclass(frozen=True)
class ModelJudged:
    escalate: bool
    target: str | None = None
    reason: str = ""


@dataclass(frozen=True)
class Inconclusive:
    reason: str


EscalationDecision = RuleMatched | ModelJudged | Inconclusive


@dataclass(frozen=True)
class Resolution:
    escalate: bool
    suggested_target: str | None = None


def resolve_decision(decision: EscalationDecision) -> Resolution:
    """Collapse a decision into escalate / target.

    This is the only place an inconclusive decision becomes "answer directly".
    """
    if isinstance(decision, RuleMatched):
        return Resolution(escalate=True, suggested_target=decision.target)
    if isinstance(decision, ModelJudged) and decision.escalate:
        return Resolution(escalate=True, suggested_target=decision.target or COORDINATOR_ID)
    return Resolution(escalate=False)


class EscalationVerdict(BaseModel):
    """Structured reply expected from the judgment call."""

    escalate: bool
    reason: str = ""


# ---------------------------------------------------------------------------
# Classifier
# ---------------------------------------------------------------------------


class EscalationClassifier:
    """Decides whether the Primary responder should hand a request on."""

    def __init__(
        self,
        ai: Client,
        *,
        model: str,
        timeout: float,
        rules: Sequence[EscalationRule] = DEFAULT_RULES,
    ) -> None:
        """Bind the judgment backend and the ordered rule list."""
        self._ai = ai
        self._model = model
        self._timeout = timeout
        self.rules = tuple(rules)

    def match_rule(self, text: str) -> RuleMatched | None:
        """Return the first rule that matches ``text``."""
        for rule in self.rules:
            if rule.matcher.matches(text):
                return RuleMatched(rule=rule.name, target=rule.target)
        return None

    async def classify(self, history: Sequence[HistoryMessage]) -> EscalationDecision:
        """Classify the last user message; never raises."""
        query = last_user_text(history)
        if not query:
            return Inconclusive("last message is not from the user")

        matched = self.match_rule(query)
        if matched is not None:
            logger.debug("Escalation rule %s matched", matched.rule)
            return matched
        return await self._judge(query)

    async def decide(self, history: Sequence[HistoryMessage]) -> Resolution:
        return resolve_decision(await self.classify(history))

    async def _judge(self, query: str) -> EscalationDecision:
        try:
            generation = await generate_text(
                self._ai,
                system=JUDGMENT_SYSTEM_PROMPT,
                history=(HistoryMessage(role="user", content=JUDGMENT_PROMPT.format(query=query)),),
                model=self._model,
                timeout=self._timeout,
            )
            verdict = EscalationVerdict.model_validate(parse_json_object(generation.text))
        except ExternalServiceFailure as exc:
            logger.warning("Escalation judgment unavailable: %s", exc)
            return Inconclusive("judgment call failed")
        except (PlanningFailure, ValidationError) as exc:
            logger.warning("Escalation judgment unparseable: %s", exc)
            return Inconclusive("judgment output malformed")
        return ModelJudged(
            escalate=verdict.escalate,
            target=COORDINATOR_ID if verdict.escalate else None,
            reason=verdict.reason,
        )

"""Unit tests for the web search and metrics responders and their tools."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

import orchestrator.tools.search as search_tools
import pytest
import requests
from botocore.exceptions import ClientError
from orchestrator.agents.base import HistoryMessage, RequestContext
from orchestrator.agents.metrics import METRICS_APOLOGY, MetricsResponder
from orchestrator.agents.search import SEARCH_APOLOGY, WebSearchResponder, to_search_messages
from orchestrator.tools.metrics import MetricQuery, fetch_metric_summary, format_metric_summary

QUESTION = (HistoryMessage(role="user", content="Search for the latest Python release"),)


class _DummyResponse:
    def __init__(self, payload: dict[str, Any], status_code: int = 200) -> None:
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self) -> None:
        if self.status_code >= 400:  # noqa: PLR2004
            raise requests.HTTPError(f"{self.status_code} error")

    def json(self) -> dict[str, Any]:
        return self._payload


# ---------------------------------------------------------------------------
# Web search
# ---------------------------------------------------------------------------


def test_search_web_sends_bearer_and_model(monkeypatch: pytest.MonkeyPatch) -> None:
    """The request carries the key, the model and the messages."""
    captured: dict[str, Any] = {}

    def fake_post(url: str, headers: dict[str, str], json: dict[str, Any], timeout: float) -> _DummyResponse:
        captured.update(url=url, headers=headers, json=json, timeout=timeout)
        return _DummyResponse({"choices": [{"message": {"content": "3.13"}}], "citations": ["https://python.org"]})

    monkeypatch.setattr(search_tools.requests, "post", fake_post)

    answer = search_tools.search_web([{"role": "user", "content": "q"}], model="sonar-pro", timeout=5, api_key="k")

    assert captured["url"] == search_tools.PERPLEXITY_URL
    assert captured["headers"]["Authorization"] == "Bearer k"
    assert captured["json"]["model"] == "sonar-pro"
    assert answer.render() == "3.13\n\n*Sources:*\n1. <https://python.org>"


def test_search_web_requires_api_key(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing key is a configuration error."""
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)
    with pytest.raises(RuntimeError, match="PERPLEXITY_API_KEY is required"):
        search_tools.search_web([], model="sonar-pro", timeout=5)


def test_parse_search_response_rejects_empty_answer() -> None:
    """An empty completion is not an answer."""
    with pytest.raises(ValueError, match="empty answer"):
        search_tools.parse_search_response({"choices": [{"message": {"content": " "}}]})


@pytest.mark.parametrize(
    "payload",
    [
        {"choices": [None]},
        ["not", "a", "dict"],
        {"choices": ["text"]},
        {"choices": [{"message": "text"}]},
        {"choices": None},
    ],
)
def test_parse_search_response_rejects_malformed_payload(payload: Any) -> None:  # noqa: ANN401
    """Payloads that are not chat-completions replies raise ValueError."""
    with pytest.raises(ValueError, match="Search response"):
        search_tools.parse_search_response(payload)


def test_to_search_messages_alternates_and_ends_with_user() -> None:
    """Leading assistant turns are dropped, runs merged, trailing assistant turns removed."""
    history = (
        HistoryMessage(role="assistant", content="Hi!"),
        HistoryMessage(role="user", content="a"),
        HistoryMessage(role="user", content="b"),
        HistoryMessage(role="assistant", content="c"),
    )
    assert to_search_messages(history) == [{"role": "user", "content": "a\n\nb"}]


@pytest.mark.asyncio
async def test_search_responder_success(monkeypatch: pytest.MonkeyPatch) -> None:
    """Answers come back formatted with their citations."""

    def fake_post(*_: Any, **__: Any) -> _DummyResponse:
        return _DummyResponse({"choices": [{"message": {"content": "**3.13** is out"}}], "citations": ["https://p.org"]})

    monkeypatch.setattr(search_tools.requests, "post", fake_post)
    responder = WebSearchResponder(model="sonar-pro", timeout=1.0, api_key="k")

    outcome = await responder.respond(QUESTION, RequestContext())

    assert outcome.ok is True
    assert outcome.text.startswith("*3.13* is out")
    assert outcome.auxiliary_data == {"source": "perplexity", "citations": ["https://p.org"]}


@pytest.mark.asyncio
@pytest.mark.parametrize("failure", [requests.ConnectionError("dns"), requests.Timeout("slow")])
async def test_search_responder_network_failure_apologizes(monkeypatch: pytest.MonkeyPatch, failure: Exception) -> None:
    """Network errors never escape the responder."""

    def fake_post(*_: Any, **__: Any) -> _DummyResponse:
        raise failure

    monkeypatch.setattr(search_tools.requests, "post", fake_post)
    outcome = await WebSearchResponder(model="sonar-pro", timeout=1.0, api_key="k").respond(QUESTION, RequestContext())

    assert outcome.ok is False
    assert outcome.text == SEARCH_APOLOGY


@pytest.mark.asyncio
@pytest.mark.parametrize("payload", [{"choices": [None]}, ["not", "a", "dict"], {"choices": ["text"]}])
async def test_search_responder_malformed_reply_apologizes(monkeypatch: pytest.MonkeyPatch, payload: Any) -> None:  # noqa: ANN401
    """A reply of the wrong shape degrades to the search apology."""

    def fake_post(*_: Any, **__: Any) -> _DummyResponse:
        return _DummyResponse(payload)

    monkeypatch.setattr(search_tools.requests, "post", fake_post)
    outcome = await WebSearchResponder(model="sonar-pro", timeout=1.0, api_key="k").respond(QUESTION, RequestContext())

    assert outcome.ok is False
    assert outcome.text == SEARCH_APOLOGY


@pytest.mark.asyncio
async def test_search_responder_missing_key_apologizes(monkeypatch: pytest.MonkeyPatch) -> None:
    """A missing key degrades to the search apology."""
    monkeypatch.delenv("PERPLEXITY_API_KEY", raising=False)
    outcome = await WebSearchResponder(model="sonar-pro", timeout=1.0).respond(QUESTION, RequestContext())
    assert outcome.text == SEARCH_APOLOGY


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


class _FakeCloudWatch:
    def __init__(self, datapoints: dict[tuple[str, str], list[float]]) -> None:
        self._datapoints = datapoints
        self.requests: list[dict[str, Any]] = []

    def get_metric_statistics(self, **kwargs: Any) -> dict[str, Any]:
        self.requests.append(kwargs)
        statistic = kwargs["Statistics"][0]
        values = self._datapoints.get((kwargs["MetricName"], statistic), [])
        return {"Datapoints": [{statistic: value} for value in values]}


def test_fetch_metric_summary_aggregates_each_statistic() -> None:
    """Sums add up, maxima take the max, averages are averaged."""
    cloudwatch = _FakeCloudWatch(
        {
            ("Invocations", "Sum"): [10, 32],
            ("Errors", "Sum"): [1],
            ("Duration", "Average"): [100.0, 200.0],
            ("Duration", "Maximum"): [350.0, 900.0],
        }
    )
    now = datetime(2026, 3, 1, 12, 0, tzinfo=UTC)

    summary = fetch_metric_summary(cloudwatch, "AWS/Lambda", now=now)

    assert summary == {
        "invocations_sum": 42.0,
        "errors_sum": 1.0,
        "throttles_sum": None,
        "duration_average": 150.0,
        "duration_maximum": 900.0,
    }
    first = cloudwatch.requests[0]
    assert first["Namespace"] == "AWS/Lambda"
    assert first["EndTime"] == now
    assert (first["EndTime"] - first["StartTime"]).total_seconds() == 24 * 3600


def test_format_metric_summary() -> None:
    """Missing metrics say so; sums are integers; averages carry units."""
    queries = (MetricQuery("Errors", "Sum"), MetricQuery("Duration", "Average", "ms"), MetricQuery("Throttles", "Sum"))
    text = format_metric_summary("AWS/Lambda", {"errors_sum": 1234.0, "duration_average": 12.345}, queries)

    assert "*Errors (sum)*: 1,234" in text
    assert "*Duration (average)*: 12.3ms" in text
    assert "*Throttles (sum)*: no data" in text


@pytest.mark.asyncio
async def test_metrics_responder_success() -> None:
    """The responder reports the summary and keeps raw numbers."""
    cloudwatch = _FakeCloudWatch({("Invocations", "Sum"): [5]})
    responder = MetricsResponder(lambda: cloudwatch, namespace="AWS/Lambda", timeout=1.0)

    outcome = await responder.respond(QUESTION, RequestContext())

    assert outcome.ok is True
    assert "CloudWatch Metrics" in outcome.text
    assert outcome.auxiliary_data is not None
    assert outcome.auxiliary_data["metrics"]["invocations_sum"] == 5.0  # noqa: PLR2004


@pytest.mark.asyncio
async def test_metrics_responder_client_error_apologizes() -> None:
    """AWS errors degrade to the metrics apology."""

    class _Denied:
        def get_metric_statistics(self, **_: Any) -> dict[str, Any]:
            raise ClientError({"Error": {"Code": "AccessDenied", "Message": "no"}}, "GetMetricStatistics")

    outcome = await MetricsResponder(_Denied, namespace="AWS/Lambda", timeout=1.0).respond(QUESTION, RequestContext())

    assert outcome.ok is False
    assert outcome.text == METRICS_APOLOGY

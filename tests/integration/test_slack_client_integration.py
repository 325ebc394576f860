"""Integration tests for chat_client_api + Slack wiring."""

from __future__ import annotations

import hashlib
import hmac
import time

import pytest
from slack_client_impl import SlackClient

import chat_client_api

pytestmark = pytest.mark.integration

SIGNING_SECRET = "integration-secret"  # noqa: S105


def _sign(timestamp: str, body: str) -> str:
    digest = hmac.new(SIGNING_SECRET.encode(), f"v0:{timestamp}:{body}".encode(), hashlib.sha256).hexdigest()
    return f"v0={digest}"


@pytest.fixture
def slack_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Credentials the Slack client reads at construction."""
    monkeypatch.setenv("SLACK_BOT_TOKEN", "xoxb-test")
    monkeypatch.setenv("SLACK_SIGNING_SECRET", SIGNING_SECRET)


@pytest.mark.circleci
@pytest.mark.usefixtures("slack_env")
def test_chat_client_factory_returns_slack() -> None:
    """chat_client_api.get_client returns SlackClient after implementation import."""
    assert isinstance(chat_client_api.get_client(), SlackClient)


@pytest.mark.circleci
@pytest.mark.usefixtures("slack_env")
def test_signature_verification_uses_signing_secret() -> None:
    """Requests signed with the workspace secret verify; tampered bodies do not."""
    client = chat_client_api.get_client()
    timestamp = str(int(time.time()))
    body = '{"type": "url_verification", "challenge": "abc"}'
    signature = _sign(timestamp, body)

    assert client.verify_signature(timestamp, body, signature) is True
    assert client.verify_signature(timestamp, body.replace("abc", "xyz"), signature) is False
    assert client.verify_signature("", body, signature) is False


@pytest.mark.circleci
@pytest.mark.usefixtures("slack_env")
def test_stale_signatures_are_rejected() -> None:
    """Timestamps older than five minutes fail verification even with a valid digest."""
    client = chat_client_api.get_client()
    stale = str(int(time.time()) - 600)
    body = "{}"

    assert client.verify_signature(stale, body, _sign(stale, body)) is False

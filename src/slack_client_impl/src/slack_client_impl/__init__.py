"""Slack-backed chat client; importing this package registers it with ``chat_client_api``."""

from slack_client_impl.slack_impl import SlackClient, register

__all__ = ["SlackClient", "register"]

register()

"""Slack-facing agent dispatch and thread-transfer service."""

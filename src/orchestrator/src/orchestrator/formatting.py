"""Slack mrkdwn formatting for text leaving the service."""

from __future__ import annotations

import re

_MARKDOWN_LINK = re.compile(r"\[([^\]]*)\]\(([^)\s]+)\)")
_BOLD_RUN = re.compile(r"\*{2,}")


def format_for_slack(text: str) -> str:
    """Rewrite Markdown links to ``<url|text>`` and ``**bold**`` to ``*bold*``.

    Applying it twice gives the same result as applying it once.
    """
    return _BOLD_RUN.sub("*", _MARKDOWN_LINK.sub(r"<\2|\1>", text))

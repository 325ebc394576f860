"""Error taxonomy for the dispatch pipeline.

None of these cross a responder boundary: responders catch them and turn them
into an Outcome. They exist so that each failure class is raised and handled
by name.
"""

from __future__ import annotations


class AgentError(Exception):
    """Base class for pipeline errors."""


class InvalidInput(AgentError):  # noqa: N818
    """The request itself is unusable (malformed link, missing thread context)."""


class InvalidLink(InvalidInput):  # noqa: N818
    """A string is not a chat platform permalink."""


class ExternalServiceFailure(AgentError):  # noqa: N818
    """A generation, platform, weather, search or metrics call failed or timed out."""


class PlanningFailure(AgentError):  # noqa: N818
    """A model returned structured output that could not be parsed."""

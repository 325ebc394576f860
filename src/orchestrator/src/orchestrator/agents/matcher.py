"""Pattern predicates used for escalation rules and responder self-declaration."""

from __future__ import annotations

import re
from typing import Protocol


class Matcher(Protocol):
    """Anything that can say whether it recognises a piece of text."""

    def matches(self, text: str) -> bool: ...


class CapabilityMatcher:
    """Case-insensitive regular-expression predicate; matches when any pattern does."""

    def __init__(self, *patterns: str) -> None:
        """Compile the patterns once."""
        if not patterns:
            msg = "CapabilityMatcher needs at least one pattern."
            raise ValueError(msg)
        self.patterns = tuple(re.compile(pattern, re.IGNORECASE) for pattern in patterns)

    def matches(self, text: str) -> bool:
        return any(pattern.search(text) for pattern in self.patterns)

    def __repr__(self) -> str:
        return f"CapabilityMatcher({', '.join(repr(p.pattern) for p in self.patterns)})"

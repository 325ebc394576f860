"""Responder directory: a fixed id -> responder mapping built at startup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from orchestrator.agents.base import ResponderKind

if TYPE_CHECKING:
    from orchestrator.agents.base import Responder, ResponderDescriptor

logger = logging.getLogger("orchestrator.directory")


class DuplicateIdentity(ValueError):  # noqa: N818
    """A responder id was registered twice."""


class ResponderNotFound(KeyError):  # noqa: N818
    """No responder is registered under the requested id."""


class ResponderDirectory:
    """Registry of responders keyed by descriptor id.

    Membership is fixed once ``seal`` is called; after that the directory is
    read-only and may be shared by concurrent requests.
    """

    def __init__(self) -> None:
        """Create an empty, unsealed directory."""
        self._entries: dict[str, tuple[ResponderDescriptor, Responder]] = {}
        self._sealed = False

    def register(self, descriptor: ResponderDescriptor, instance: Responder) -> None:
        """Add a responder under ``descriptor.id``.

        Raises:
            DuplicateIdentity: The id is already registered.
            RuntimeError: The directory is sealed.

        """
        if self._sealed:
            raise RuntimeError("Responder directory is sealed.")  # noqa: TRY003, EM101
        if descriptor.id in self._entries:
            msg = f"Responder already registered: {descriptor.id}"
            raise DuplicateIdentity(msg)
        self._entries[descriptor.id] = (descriptor, instance)
        logger.debug("Registered %s responder %s", descriptor.kind.value, descriptor.id)

    def seal(self) -> ResponderDirectory:
        """Validate membership and freeze the directory.

        Raises:
            ValueError: There is not exactly one primary and one coordinator.

        """
        for kind in (ResponderKind.PRIMARY, ResponderKind.COORDINATOR):
            count = sum(1 for descriptor, _ in self._entries.values() if descriptor.kind is kind)
            if count != 1:
                msg = f"Expected exactly one {kind.value} responder, found {count}"
                raise ValueError(msg)
        self._sealed = True
        return self

    @property
    def sealed(self) -> bool:
        return self._sealed

    def lookup(self, responder_id: str) -> Responder:
        """Return the responder registered under ``responder_id``.

        Raises:
            ResponderNotFound: Unknown id.

        """
        try:
            return self._entries[responder_id][1]
        except KeyError:
            raise ResponderNotFound(responder_id) from None

    def descriptor(self, responder_id: str) -> ResponderDescriptor:
        try:
            return self._entries[responder_id][0]
        except KeyError:
            raise ResponderNotFound(responder_id) from None

    def list_specialized(self) -> list[ResponderDescriptor]:
        """Specialized descriptors in registration order."""
        return [descriptor for descriptor, _ in self._entries.values() if descriptor.kind is ResponderKind.SPECIALIZED]

    def _only(self, kind: ResponderKind) -> Responder:
        for descriptor, instance in self._entries.values():
            if descriptor.kind is kind:
                return instance
        raise ResponderNotFound(kind.value)

    @property
    def primary(self) -> Responder:
        return self._only(ResponderKind.PRIMARY)

    @property
    def coordinator(self) -> Responder:
        return self._only(ResponderKind.COORDINATOR)

    def __contains__(self, responder_id: object) -> bool:
        return responder_id in self._entries

    def __len__(self) -> int:
        return len(self._entries)

"""Notifier interface used by the deployment coordinator.

A notifier creates one outbound message per deployment cycle and edits it
in place as the cycle progresses. The message reference it returns (the
"handle") is opaque to the rest of deploywatch.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from deploywatch.models.resources import ResourceIdentity, ResourceSnapshot


class NotificationError(Exception):
    """An outbound notification call failed."""


class Notifier(ABC):
    """Abstract base class for outbound message backends.

    Implementations should not raise for delivery problems: they log the
    failure and return ``None``. The coordinator still guards against
    unexpected exceptions.
    """

    @property
    @abstractmethod
    def channel_name(self) -> str:
        """Identifier used in metrics and logs."""

    @abstractmethod
    async def create(self, identity: ResourceIdentity, snapshot: ResourceSnapshot, changes: str) -> str | None:
        """Post a new message; return its handle, or ``None`` on failure."""

    @abstractmethod
    async def update(
        self,
        identity: ResourceIdentity,
        snapshot: ResourceSnapshot,
        changes: str,
        handle: str,
    ) -> str | None:
        """Edit the message *handle*; return the (possibly new) handle, or ``None``."""

    async def close(self) -> None:  # noqa: B027
        """Release any resources held by the backend."""

"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for storage, delivery and admin-channel
adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Optional, Protocol

from core.models import MessagePayload, TrackedItemSnapshot


class SnapshotStorePort(Protocol):
    """Per (repository, item number, channel) state required by the core."""

    def get_snapshot(self, repo: str, number: str, channel: str) -> Optional[TrackedItemSnapshot]:
        ...

    def set_snapshot(self, repo: str, number: str, channel: str, snapshot: TrackedItemSnapshot) -> None:
        ...

    def get_last_comment_url(self, repo: str, number: str, channel: str) -> Optional[str]:
        ...

    def set_last_comment_url(self, repo: str, number: str, channel: str, url: str) -> None:
        ...


class DeliveryPort(Protocol):
    """Message delivery required by the core pipeline."""

    async def send(self, channel: str, payload: MessagePayload) -> None:
        ...


class AdminChannelPort(Protocol):
    """Bookkeeping for the user that owns a destination channel."""

    user_id: str

    async def set_notifications_cursor(self, timestamp: int) -> None:
        ...

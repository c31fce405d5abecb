"""Admin channel adapter backed by SQLite storage."""

from __future__ import annotations

import logging

from adapters.sqlite_storage import SQLiteStorage

LOGGER = logging.getLogger(__name__)


class StoredAdminChannel:
    """Records how far a user's notifications have been read for one channel."""

    def __init__(self, storage: SQLiteStorage, channel: str, user_id: str) -> None:
        self._storage = storage
        self._channel = channel
        self.user_id = user_id

    async def set_notifications_cursor(self, timestamp: int) -> None:
        previous = self._storage.get_notifications_cursor(self._channel)
        if previous is not None and timestamp < previous:
            LOGGER.info(
                "Ignoring older notifications cursor for %s (%s < %s)",
                self._channel,
                timestamp,
                previous,
            )
            return
        self._storage.set_notifications_cursor(self._channel, self.user_id, timestamp)

"""Core notification processing pipeline.

This module is integration-agnostic. It only relies on ports for snapshot
storage, delivery and admin bookkeeping, enabling other transports or stores
without changes here.

Per batch the processor:
1) Handles every event in order, isolating failures per event
2) Dispatches on subject type (security alert, issue/PR diff, generic)
3) Stores the item snapshot and the last surfaced comment URL
4) Advances the channel's notifications cursor
"""

from __future__ import annotations

import logging
from typing import Optional

from core.config import ProcessorConfig
from core.diffing import diff_issue_changes
from core.display_fields import fields_for_comment, fields_for_item, fields_for_repository
from core.formatting import NotificationFormatter, build_payload
from core.models import (
    BatchReport,
    EventOutcome,
    IssueDiff,
    MessagePayload,
    NotificationBatch,
    SubjectType,
    UserNotification,
)
from core.ports import AdminChannelPort, DeliveryPort, SnapshotStorePort

LOGGER = logging.getLogger(__name__)


def _item_key(notification: UserNotification) -> Optional[tuple[str, str]]:
    """Return (repository full name, item number as text) when both are known."""

    number = notification.item_number
    if number is None or notification.repository is None:
        return None
    return notification.repository.full_name, str(number)


class NotificationProcessor:
    """Orchestrates diffing, formatting, delivery and snapshot persistence."""

    def __init__(
        self,
        storage: SnapshotStorePort,
        notifier: DeliveryPort,
        formatter: NotificationFormatter,
        config: Optional[ProcessorConfig] = None,
    ) -> None:
        self._storage = storage
        self._notifier = notifier
        self._formatter = formatter
        self._config = config or ProcessorConfig()

    async def handle_batch(self, batch: NotificationBatch, admin: AdminChannelPort) -> BatchReport:
        """Process every event of a batch and advance the notifications cursor.

        Events run sequentially so two events for the same item never race on
        its stored snapshot. No event failure escapes this method.
        """

        LOGGER.info("Got %s new events for %s", len(batch.events), admin.user_id)
        outcomes: list[EventOutcome] = []
        for notification in batch.events:
            error = await self._attempt(batch.channel, notification)
            snapshot_saved, comment_saved = self._persist(
                batch.channel, notification, failed=error is not None
            )
            outcomes.append(
                EventOutcome(
                    notification=notification,
                    delivered=error is None,
                    error=error,
                    snapshot_saved=snapshot_saved,
                    comment_saved=comment_saved,
                )
            )

        cursor_updated = True
        try:
            await admin.set_notifications_cursor(batch.last_read_ts)
        except Exception:
            LOGGER.error("Failed to update stream position for notifications", exc_info=True)
            cursor_updated = False

        report = BatchReport(channel=batch.channel, outcomes=outcomes, cursor_updated=cursor_updated)
        LOGGER.info(
            "Batch for %s done: delivered=%s failed=%s",
            batch.channel,
            report.delivered,
            report.failed,
        )
        return report

    async def _attempt(self, channel: str, notification: UserNotification) -> Optional[Exception]:
        """Run one event through dispatch; return the error instead of raising."""

        try:
            await self._dispatch(channel, notification)
        except Exception as exc:
            LOGGER.warning(
                "Failed to handle %s notification %s",
                notification.subject_type.value,
                notification.subject_url,
                exc_info=True,
            )
            return exc
        return None

    async def _dispatch(self, channel: str, notification: UserNotification) -> None:
        LOGGER.debug("New notification event: %s", notification)
        subject_type = notification.subject_type
        if subject_type is SubjectType.VULNERABILITY_ALERT:
            payload = self.security_alert_payload(notification)
        elif subject_type in (SubjectType.ISSUE, SubjectType.PULL_REQUEST):
            payload = self.item_payload(channel, notification)
        else:
            payload = self.generic_payload(notification)
        await self._notifier.send(channel, payload)

    def security_alert_payload(self, notification: UserNotification) -> MessagePayload:
        rendered = self._formatter.format_security_alert(notification)
        extra = {}
        if notification.repository is not None:
            extra = fields_for_repository(notification.repository)
        return build_payload(rendered, extra)

    def generic_payload(self, notification: UserNotification) -> MessagePayload:
        rendered = self._formatter.format_notification(notification, None, False)
        extra = {}
        if notification.repository is not None:
            extra = fields_for_repository(notification.repository)
        return build_payload(rendered, extra)

    def compute_delta(
        self, channel: str, notification: UserNotification
    ) -> tuple[Optional[IssueDiff], bool]:
        """Return (diff against the stored snapshot, whether the comment is new).

        The diff is ``None`` when there is no stored snapshot or nothing
        changed. A comment is new when its URL differs from the last one
        surfaced for this item and channel, including when none was stored.
        """

        key = _item_key(notification)
        if key is None:
            return None, False
        repo, number = key

        diff: Optional[IssueDiff] = None
        previous = self._storage.get_snapshot(repo, number, channel)
        if previous is not None and notification.snapshot is not None:
            diff = diff_issue_changes(notification.snapshot, previous)
            if diff.is_empty:
                diff = None

        has_new_comment = False
        if notification.latest_comment_url:
            last_url = self._storage.get_last_comment_url(repo, number, channel)
            has_new_comment = notification.latest_comment_url != last_url
        return diff, has_new_comment

    def item_payload(self, channel: str, notification: UserNotification) -> MessagePayload:
        diff, has_new_comment = self.compute_delta(channel, notification)
        rendered = self._formatter.format_notification(notification, diff, has_new_comment)

        repository = notification.repository
        extra = {}
        if has_new_comment and notification.latest_comment is not None and repository is not None:
            extra = fields_for_comment(notification.latest_comment, repository, notification.snapshot)
        elif notification.snapshot is not None and repository is not None:
            extra = fields_for_item(repository, notification.snapshot)
        return build_payload(rendered, extra)

    def _persist(self, channel: str, notification: UserNotification, failed: bool) -> tuple[bool, bool]:
        """Store the snapshot and latest comment URL; never raises."""

        key = _item_key(notification)
        if key is None:
            if notification.latest_comment_url:
                LOGGER.debug(
                    "Skipping comment cursor for %s: no item number or repository",
                    notification.subject_url,
                )
            return False, False
        if failed and not self._config.persist_on_failure:
            return False, False
        repo, number = key

        snapshot_saved = False
        snapshot = notification.snapshot
        if snapshot is not None:
            try:
                self._storage.set_snapshot(repo, number, channel, snapshot)
                snapshot_saved = True
            except Exception:
                LOGGER.warning("Failed to store snapshot for %s#%s", repo, number, exc_info=True)

        comment_saved = False
        if notification.latest_comment_url:
            try:
                self._storage.set_last_comment_url(repo, number, channel, notification.latest_comment_url)
                comment_saved = True
            except Exception:
                LOGGER.warning("Failed to store comment cursor for %s#%s", repo, number, exc_info=True)

        return snapshot_saved, comment_saved

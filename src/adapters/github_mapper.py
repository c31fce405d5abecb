"""GitHub-to-core notification mapping adapter.

Batches arrive as JSON in the shape of the GitHub notifications API, with the
subject's issue and latest comment already resolved into ``url_data`` and
``latest_comment_url_data``. This keeps GitHub payload details out of the
core pipeline.
"""

from __future__ import annotations

import json
import sys
from typing import Any, Optional

from core.models import (
    CommentRef,
    ItemState,
    NotificationBatch,
    RepositoryRef,
    SubjectType,
    TrackedItemSnapshot,
    UserNotification,
    UserRef,
)


def _user_from_github(raw: Optional[dict[str, Any]]) -> Optional[UserRef]:
    if not raw or raw.get("id") is None:
        return None
    return UserRef(
        id=int(raw["id"]),
        login=str(raw.get("login", "")),
        html_url=str(raw.get("html_url", "")),
    )


def _snapshot_from_github(raw: Optional[dict[str, Any]]) -> Optional[TrackedItemSnapshot]:
    # Only issue-shaped payloads carry a number; alerts and releases do not.
    if not raw or raw.get("number") is None:
        return None
    return TrackedItemSnapshot(
        number=int(raw["number"]),
        title=str(raw.get("title", "")),
        state=ItemState.parse(raw.get("state")),
        url=str(raw.get("html_url", "")),
        assignee=_user_from_github(raw.get("assignee")),
    )


def _comment_from_github(raw: Optional[dict[str, Any]]) -> Optional[CommentRef]:
    if not raw:
        return None
    author = _user_from_github(raw.get("user"))
    if author is None:
        return None
    return CommentRef(
        author=author,
        body=str(raw.get("body") or ""),
        url=str(raw.get("html_url", "")),
    )


def _repository_from_github(raw: Optional[dict[str, Any]]) -> Optional[RepositoryRef]:
    if not raw or not raw.get("full_name"):
        return None
    return RepositoryRef(full_name=str(raw["full_name"]), html_url=str(raw.get("html_url", "")))


def notification_from_github(raw: dict[str, Any]) -> UserNotification:
    """Build a core UserNotification from a GitHub notification object."""

    subject = raw.get("subject")
    if not isinstance(subject, dict):
        raise ValueError(f"Notification {raw.get('id')!r} has no subject")

    url_data = subject.get("url_data")
    snapshot = _snapshot_from_github(url_data)
    # Prefer the browser link of the resolved item over the API URL.
    subject_url = (url_data or {}).get("html_url") or subject.get("url") or ""

    return UserNotification(
        subject_type=SubjectType.parse(subject.get("type")),
        subject_title=str(subject.get("title", "")),
        subject_url=str(subject_url),
        snapshot=snapshot,
        latest_comment_url=subject.get("latest_comment_url") or None,
        latest_comment=_comment_from_github(subject.get("latest_comment_url_data")),
        repository=_repository_from_github(raw.get("repository")),
        id=str(raw["id"]) if raw.get("id") is not None else None,
    )


def batch_from_github(raw: dict[str, Any], default_channel: str) -> NotificationBatch:
    """Build a NotificationBatch from ``{"channel", "user_id", "events", "last_read_ts"}``."""

    events = raw.get("events")
    if not isinstance(events, list):
        raise ValueError("Batch must contain an 'events' list")
    return NotificationBatch(
        channel=str(raw.get("channel") or default_channel),
        user_id=str(raw.get("user_id", "")),
        events=[notification_from_github(event) for event in events],
        last_read_ts=int(raw.get("last_read_ts", 0)),
    )


def load_batches(path: str, default_channel: str) -> list[NotificationBatch]:
    """Load one batch object or a list of them from a JSON file, or stdin for ``-``."""

    if path == "-":
        data = json.load(sys.stdin)
    else:
        with open(path, "r", encoding="utf-8") as handle:
            data = json.load(handle)

    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise ValueError(f"Unsupported batch document in {path}")
    return [batch_from_github(entry, default_channel) for entry in data]

"""Field-level diffing of tracked item snapshots (core domain)."""

from __future__ import annotations

from typing import Optional

from core.models import IssueDiff, TrackedItemSnapshot, UserRef


def _assignee_id(assignee: Optional[UserRef]) -> Optional[int]:
    return assignee.id if assignee is not None else None


def diff_issue_changes(current: TrackedItemSnapshot, previous: TrackedItemSnapshot) -> IssueDiff:
    """Return the fields of ``current`` that differ from ``previous``.

    - state is compared case-insensitively (both sides are ``ItemState``).
    - assignee is compared by account id only, so a renamed login is not a
      change, while assigning and unassigning both are.
    - title is compared as exact text.
    """

    state = current.state if current.state != previous.state else None
    assignee_changed = _assignee_id(current.assignee) != _assignee_id(previous.assignee)
    title = current.title if current.title != previous.title else None
    return IssueDiff(
        state=state,
        title=title,
        assignee=current.assignee if assignee_changed else None,
        assignee_changed=assignee_changed,
    )

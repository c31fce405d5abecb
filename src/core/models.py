"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to GitHub payloads or any chat transport.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional


class SubjectType(Enum):
    """Kind of thing a notification is about."""

    ISSUE = "Issue"
    PULL_REQUEST = "PullRequest"
    VULNERABILITY_ALERT = "RepositoryVulnerabilityAlert"
    OTHER = "Other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "SubjectType":
        for member in cls:
            if member.value == raw:
                return member
        return cls.OTHER


class ItemState(Enum):
    """Issue / pull request state, normalized to lower case."""

    OPEN = "open"
    CLOSED = "closed"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: Optional[str]) -> "ItemState":
        lowered = (raw or "").strip().lower()
        for member in cls:
            if member.value == lowered:
                return member
        return cls.OTHER

    @property
    def display(self) -> str:
        return self.value[:1].upper() + self.value[1:].lower()


@dataclass(frozen=True)
class UserRef:
    """A GitHub account as shown in messages."""

    id: int
    login: str
    html_url: str


@dataclass(frozen=True)
class TrackedItemSnapshot:
    """Mutable fields of an issue or pull request at notification time."""

    number: int
    title: str
    state: ItemState
    url: str
    assignee: Optional[UserRef] = None

    def to_dict(self) -> dict[str, Any]:
        assignee = None
        if self.assignee is not None:
            assignee = {
                "id": self.assignee.id,
                "login": self.assignee.login,
                "html_url": self.assignee.html_url,
            }
        return {
            "number": self.number,
            "title": self.title,
            "state": self.state.value,
            "url": self.url,
            "assignee": assignee,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "TrackedItemSnapshot":
        raw_assignee = data.get("assignee")
        assignee = None
        if raw_assignee:
            assignee = UserRef(
                id=int(raw_assignee["id"]),
                login=str(raw_assignee.get("login", "")),
                html_url=str(raw_assignee.get("html_url", "")),
            )
        return cls(
            number=int(data["number"]),
            title=str(data.get("title", "")),
            state=ItemState.parse(data.get("state")),
            url=str(data.get("url", "")),
            assignee=assignee,
        )


@dataclass(frozen=True)
class RepositoryRef:
    """Repository a notification belongs to; display only."""

    full_name: str
    html_url: str


@dataclass(frozen=True)
class CommentRef:
    """Latest comment on a tracked item."""

    author: UserRef
    body: str
    url: str


@dataclass(frozen=True)
class UserNotification:
    """One upstream notification event, already resolved by the fetcher."""

    subject_type: SubjectType
    subject_title: str
    subject_url: str
    snapshot: Optional[TrackedItemSnapshot] = None
    latest_comment_url: Optional[str] = None
    latest_comment: Optional[CommentRef] = None
    repository: Optional[RepositoryRef] = None
    id: Optional[str] = None

    @property
    def item_number(self) -> Optional[int]:
        if self.snapshot is None:
            return None
        return self.snapshot.number


@dataclass(frozen=True)
class IssueDiff:
    """Fields that changed since the stored snapshot; ``None`` means unchanged.

    ``assignee`` alone cannot express "now unassigned", so ``assignee_changed``
    carries the flag and ``assignee`` holds the new assignee, if any.
    """

    state: Optional[ItemState] = None
    title: Optional[str] = None
    assignee: Optional[UserRef] = None
    assignee_changed: bool = False

    @property
    def is_empty(self) -> bool:
        return self.state is None and self.title is None and not self.assignee_changed


@dataclass(frozen=True)
class RenderedMessage:
    """Plain (markdown) text and its rich (HTML) rendering."""

    plain: str
    rich: str


MESSAGE_KIND_TEXT = "text"
RICH_FORMAT_HTML = "html"


@dataclass(frozen=True)
class MessagePayload:
    """Outgoing message handed to a delivery adapter."""

    body: str
    formatted_body: str
    kind: str = MESSAGE_KIND_TEXT
    format: str = RICH_FORMAT_HTML
    extra: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class NotificationBatch:
    """All notification events received for one user and destination channel."""

    channel: str
    user_id: str
    events: list[UserNotification]
    last_read_ts: int


@dataclass(frozen=True)
class EventOutcome:
    """Result of processing one notification inside a batch."""

    notification: UserNotification
    delivered: bool
    error: Optional[BaseException] = None
    snapshot_saved: bool = False
    comment_saved: bool = False

    @property
    def ok(self) -> bool:
        return self.delivered and self.error is None


@dataclass(frozen=True)
class BatchReport:
    """Per-event outcomes of a batch plus the cursor update result."""

    channel: str
    outcomes: list[EventOutcome]
    cursor_updated: bool

    @property
    def delivered(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.ok)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.ok)

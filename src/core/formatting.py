"""Notification message formatting (core domain).

Formatting is pure: the same notification, diff and comment flag always yield
the same text. The markdown-to-rich-text step is injected so the core stays
free of rendering libraries.
"""

from __future__ import annotations

from typing import Any, Callable, Optional

from core.models import (
    IssueDiff,
    MessagePayload,
    RenderedMessage,
    SubjectType,
    UserNotification,
)

RichRenderer = Callable[[str], str]

SUBJECT_GLYPHS: dict[SubjectType, str] = {
    SubjectType.ISSUE: "📝",
    SubjectType.PULL_REQUEST: "⤵",
    SubjectType.VULNERABILITY_ALERT: "⚠️",
}
FALLBACK_GLYPH = "🔔"


class MissingCommentError(ValueError):
    """Raised when a new comment is announced but no comment was resolved."""


def glyph_for(subject_type: SubjectType) -> str:
    """Return the lead glyph for a subject type."""

    return SUBJECT_GLYPHS.get(subject_type, FALLBACK_GLYPH)


def _quote(text: str) -> str:
    lines = text.splitlines() or [""]
    return "\n".join(f"> {line}" for line in lines)


def _diff_lines(diff: IssueDiff) -> list[str]:
    lines: list[str] = []
    if diff.state is not None:
        lines.append(f"State changed to: {diff.state.display}")
    if diff.title is not None:
        lines.append(f"Title changed to: {diff.title}")
    if diff.assignee_changed:
        if diff.assignee is not None:
            lines.append(f"Assigned to: {diff.assignee.login}")
        else:
            lines.append("Unassigned")
    return lines


def build_payload(rendered: RenderedMessage, extra: Optional[dict[str, Any]] = None) -> MessagePayload:
    """Wrap a rendering into the payload handed to delivery adapters."""

    return MessagePayload(
        body=rendered.plain,
        formatted_body=rendered.rich,
        extra=dict(extra or {}),
    )


class NotificationFormatter:
    """Renders notifications as markdown text plus rich text."""

    def __init__(self, render_rich: RichRenderer) -> None:
        self._render_rich = render_rich

    def _render(self, plain: str) -> RenderedMessage:
        return RenderedMessage(plain=plain, rich=self._render_rich(plain))

    def format_notification(
        self,
        notification: UserNotification,
        diff: Optional[IssueDiff],
        has_new_comment: bool,
    ) -> RenderedMessage:
        """Render the headline, an optional change block and an optional comment.

        An empty diff is treated like no diff: no change block is emitted.
        """

        glyph = glyph_for(notification.subject_type)
        plain = f"{glyph} [{notification.subject_title}]({notification.subject_url})"
        number = notification.item_number
        if number is not None:
            plain += f" #{number}"
        repository = notification.repository
        if repository is not None:
            plain += f" for **[{repository.full_name}]({repository.html_url})**"

        if diff is not None and not diff.is_empty:
            plain += "\n\n" + "\n\n".join(_diff_lines(diff))

        if has_new_comment:
            comment = notification.latest_comment
            if comment is None:
                raise MissingCommentError(
                    f"New comment flagged for {notification.subject_url} without comment details"
                )
            author = comment.author
            plain += f"\n\n**[{author.login}]({author.html_url})**:\n\n{_quote(comment.body)}"

        return self._render(plain)

    def format_security_alert(self, notification: UserNotification) -> RenderedMessage:
        """Render a vulnerability alert: glyph, title and repository link only."""

        plain = f"{glyph_for(SubjectType.VULNERABILITY_ALERT)} {notification.subject_title}"
        repository = notification.repository
        if repository is not None:
            plain += f" - for **[{repository.full_name}]({repository.html_url})**"
        return self._render(plain)

from __future__ import annotations

from typing import Optional

import pytest

from adapters.markdown_renderer import render_markdown
from core.display_fields import fields_for_comment, fields_for_item, fields_for_repository
from core.formatting import (
    FALLBACK_GLYPH,
    MissingCommentError,
    NotificationFormatter,
    build_payload,
    glyph_for,
)
from core.models import (
    CommentRef,
    IssueDiff,
    ItemState,
    RepositoryRef,
    SubjectType,
    TrackedItemSnapshot,
    UserNotification,
    UserRef,
)

REPO = RepositoryRef(full_name="org/repo", html_url="https://github.com/org/repo")
ALICE = UserRef(id=1, login="alice", html_url="https://github.com/alice")
COMMENT = CommentRef(
    author=ALICE,
    body="Looks good\nShip it",
    url="https://github.com/org/repo/issues/42#issuecomment-1",
)


def _plain_formatter() -> NotificationFormatter:
    return NotificationFormatter(lambda text: f"<rich>{text}</rich>")


def _notification(
    subject_type: SubjectType = SubjectType.ISSUE,
    *,
    number: Optional[int] = 42,
    repository: Optional[RepositoryRef] = REPO,
    comment: Optional[CommentRef] = None,
) -> UserNotification:
    snapshot = None
    if number is not None:
        snapshot = TrackedItemSnapshot(
            number=number,
            title="Crash on start",
            state=ItemState.OPEN,
            url=f"https://github.com/org/repo/issues/{number}",
        )
    return UserNotification(
        subject_type=subject_type,
        subject_title="Crash on start",
        subject_url="https://github.com/org/repo/issues/42",
        snapshot=snapshot,
        latest_comment_url=comment.url if comment else None,
        latest_comment=comment,
        repository=repository,
    )


def test_glyphs_cover_every_subject_type() -> None:
    assert glyph_for(SubjectType.ISSUE) == "📝"
    assert glyph_for(SubjectType.PULL_REQUEST) == "⤵"
    assert glyph_for(SubjectType.VULNERABILITY_ALERT) == "⚠️"
    assert glyph_for(SubjectType.OTHER) == FALLBACK_GLYPH
    assert SubjectType.parse("Release") is SubjectType.OTHER


def test_headline_with_number_and_repository() -> None:
    rendered = _plain_formatter().format_notification(_notification(), None, False)
    assert rendered.plain == (
        "📝 [Crash on start](https://github.com/org/repo/issues/42) #42"
        " for **[org/repo](https://github.com/org/repo)**"
    )
    assert rendered.rich == f"<rich>{rendered.plain}</rich>"


def test_headline_without_number_or_repository() -> None:
    notification = _notification(SubjectType.OTHER, number=None, repository=None)
    rendered = _plain_formatter().format_notification(notification, None, False)
    assert rendered.plain == "🔔 [Crash on start](https://github.com/org/repo/issues/42)"


def test_no_diff_and_no_comment_has_no_blocks() -> None:
    rendered = _plain_formatter().format_notification(_notification(comment=COMMENT), None, False)
    assert "State changed to" not in rendered.plain
    assert ">" not in rendered.plain
    assert "\n" not in rendered.plain


def test_diff_block_lists_each_changed_field() -> None:
    diff = IssueDiff(state=ItemState.CLOSED, title="Renamed", assignee=ALICE, assignee_changed=True)
    rendered = _plain_formatter().format_notification(_notification(), diff, False)
    _, block = rendered.plain.split("\n\n", 1)
    assert block.split("\n\n") == [
        "State changed to: Closed",
        "Title changed to: Renamed",
        "Assigned to: alice",
    ]


def test_diff_block_reports_unassignment() -> None:
    diff = IssueDiff(assignee=None, assignee_changed=True)
    rendered = _plain_formatter().format_notification(_notification(), diff, False)
    assert rendered.plain.endswith("\n\nUnassigned")


def test_empty_diff_renders_no_change_block() -> None:
    formatter = _plain_formatter()
    with_empty = formatter.format_notification(_notification(), IssueDiff(), False)
    without = formatter.format_notification(_notification(), None, False)
    assert with_empty == without


def test_new_comment_block_quotes_every_line() -> None:
    rendered = _plain_formatter().format_notification(_notification(comment=COMMENT), None, True)
    assert rendered.plain.endswith(
        "\n\n**[alice](https://github.com/alice)**:\n\n> Looks good\n> Ship it"
    )


def test_new_comment_without_details_is_a_contract_violation() -> None:
    with pytest.raises(MissingCommentError):
        _plain_formatter().format_notification(_notification(), None, True)


def test_security_alert_has_only_headline() -> None:
    rendered = _plain_formatter().format_security_alert(
        _notification(SubjectType.VULNERABILITY_ALERT, comment=COMMENT)
    )
    assert rendered.plain == "⚠️ Crash on start - for **[org/repo](https://github.com/org/repo)**"


def test_markdown_renderer_produces_html() -> None:
    formatter = NotificationFormatter(render_markdown)
    rendered = formatter.format_notification(_notification(comment=COMMENT), None, True)
    assert "<strong>" in rendered.rich
    assert '<a href="https://github.com/org/repo">org/repo</a>' in rendered.rich
    assert "<blockquote>" in rendered.rich


def test_payload_carries_display_fields() -> None:
    rendered = _plain_formatter().format_notification(_notification(), None, False)
    payload = build_payload(rendered, fields_for_repository(REPO))
    assert payload.body == rendered.plain
    assert payload.formatted_body == rendered.rich
    assert payload.kind == "text"
    assert payload.format == "html"
    assert payload.extra["external_url"] == "https://github.com/org/repo"


def test_item_and_comment_display_fields() -> None:
    snapshot = _notification().snapshot
    assert snapshot is not None
    item_fields = fields_for_item(REPO, snapshot)
    assert item_fields["external_url"] == snapshot.url
    assert item_fields["item"]["number"] == 42

    comment_fields = fields_for_comment(COMMENT, REPO, snapshot)
    assert comment_fields["external_url"] == COMMENT.url
    assert comment_fields["comment"]["author"] == "alice"
    assert comment_fields["item"]["state"] == "open"
    assert "item" not in fields_for_comment(COMMENT, REPO)


def test_security_alert_without_repository() -> None:
    rendered = _plain_formatter().format_security_alert(
        _notification(SubjectType.VULNERABILITY_ALERT, repository=None)
    )
    assert rendered.plain == "⚠️ Crash on start"


def test_markdown_renderer_escapes_raw_html() -> None:
    comment = CommentRef(
        author=ALICE,
        body='Fixed, see <a href="https://evil.example">the patch</a>',
        url="https://github.com/org/repo/issues/42#issuecomment-2",
    )
    notification = UserNotification(
        subject_type=SubjectType.ISSUE,
        subject_title="Crash when <input> is empty",
        subject_url="https://github.com/org/repo/issues/42",
        latest_comment_url=comment.url,
        latest_comment=comment,
        repository=REPO,
    )

    rich = NotificationFormatter(render_markdown).format_notification(notification, None, True).rich

    assert "<input>" not in rich
    assert "&lt;input&gt;" in rich
    assert '<a href="https://evil.example"' not in rich
    assert "&lt;a href=" in rich

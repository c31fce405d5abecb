"""Supplemental payload fields derived from repositories, items and comments.

Delivery adapters may use these (e.g. ``external_url`` for a link button);
the core only merges them into the outgoing payload.
"""

from __future__ import annotations

from typing import Any, Optional

from core.models import CommentRef, RepositoryRef, TrackedItemSnapshot


def _repository_fields(repository: RepositoryRef) -> dict[str, Any]:
    return {"full_name": repository.full_name, "html_url": repository.html_url}


def _item_fields(snapshot: TrackedItemSnapshot) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "number": snapshot.number,
        "title": snapshot.title,
        "state": snapshot.state.value,
        "html_url": snapshot.url,
    }
    if snapshot.assignee is not None:
        fields["assignee"] = snapshot.assignee.login
    return fields


def fields_for_repository(repository: RepositoryRef) -> dict[str, Any]:
    """Return display fields for a repository-level message."""

    return {
        "external_url": repository.html_url,
        "repository": _repository_fields(repository),
    }


def fields_for_item(repository: RepositoryRef, snapshot: TrackedItemSnapshot) -> dict[str, Any]:
    """Return display fields for an issue or pull request message."""

    return {
        "external_url": snapshot.url,
        "repository": _repository_fields(repository),
        "item": _item_fields(snapshot),
    }


def fields_for_comment(
    comment: CommentRef,
    repository: RepositoryRef,
    snapshot: Optional[TrackedItemSnapshot] = None,
) -> dict[str, Any]:
    """Return display fields for a new-comment message."""

    fields: dict[str, Any] = {
        "external_url": comment.url,
        "repository": _repository_fields(repository),
        "comment": {
            "author": comment.author.login,
            "author_url": comment.author.html_url,
            "html_url": comment.url,
        },
    }
    if snapshot is not None:
        fields["item"] = _item_fields(snapshot)
    return fields

"""Data model shared by the reconciler stages and the providers."""

from __future__ import annotations

import enum
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Union


@dataclass(frozen=True)
class Branch:
    """A named branch and the commit it currently points to."""

    name: str
    head_commit_id: str


@dataclass(frozen=True)
class FileInfo:
    """What a resolver sees about the file it decides on."""

    exists: bool
    path: str
    contents: str


@dataclass(frozen=True)
class Content:
    """Replace the file with ``text`` (creating it when absent)."""

    text: str


@dataclass(frozen=True)
class Resolve:
    """Compute the new content from the current file state.

    ``fn`` must be pure and return a string (new content) or ``None``
    (delete the file).
    """

    fn: Callable[[FileInfo], str | None]


@dataclass(frozen=True)
class Delete:
    """Remove the file."""


ChangeRequest = Union[Content, Resolve, Delete]
RawChange = Union[str, Callable[[FileInfo], Optional[str]], None, Content, Resolve, Delete]


class ActionKind(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


@dataclass(frozen=True)
class Action:
    path: str
    kind: ActionKind
    content: str | None = None


@dataclass(frozen=True)
class Author:
    name: str
    email: str


@dataclass(frozen=True)
class Commit:
    sha: str
    message: str
    author: Author
    date: datetime | None = None


@dataclass(frozen=True)
class PullRequest:
    id: str
    source_branch: str
    target_branch: str
    title: str
    description: str
    link: str


@dataclass
class ReconcileOptions:
    """Inputs of one reconcile invocation."""

    source_branch: str
    target_branch: str
    commit_message: str
    title: str
    changes: Mapping[str, RawChange] = field(default_factory=dict)
    description: str = ""
    path: str | None = None
    reset_source_branch_if_exists: bool = False


def parse_timestamp(value: object) -> datetime | None:
    """Parse an ISO-8601 timestamp as returned by the provider APIs."""
    if not isinstance(value, str) or not value:
        return None
    text = value.replace("Z", "+00:00")
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None

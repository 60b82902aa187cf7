"""Changeset compilation: resolve change requests against current file state."""

from __future__ import annotations

from collections.abc import Mapping

from .models import (
    Action,
    ActionKind,
    ChangeRequest,
    Content,
    Delete,
    FileInfo,
    RawChange,
    Resolve,
)
from .paths import join_scope


def as_change_request(value: RawChange) -> ChangeRequest:
    """Coerce a raw change value into the tagged union.

    ``str`` → ``Content``, callable → ``Resolve``, ``None`` → ``Delete``;
    values that are already change requests pass through.
    """
    if isinstance(value, (Content, Resolve, Delete)):
        return value
    if value is None:
        return Delete()
    if isinstance(value, str):
        return Content(value)
    if callable(value):
        return Resolve(value)
    raise TypeError(f"Unsupported change value of type {type(value).__name__}")


def compile_changeset(
    existing: Mapping[str, str],
    changes: Mapping[str, RawChange],
    base_path: str | None = None,
) -> list[Action]:
    """Turn ``changes`` into create/update/delete actions.

    ``existing`` is keyed by full repository paths; ``changes`` by paths
    relative to ``base_path``.  Resolvers are called synchronously with the
    scoped existence flag and the stored content (``""`` when absent), and
    their result is treated exactly like a literal.  Actions keep the
    insertion order of ``changes``.  Deleting an absent path is not an error.
    """
    actions: list[Action] = []
    for path, raw in changes.items():
        request = as_change_request(raw)
        full_path = join_scope(base_path, path)
        exists = full_path in existing

        if isinstance(request, Content):
            content: str | None = request.text
        elif isinstance(request, Delete):
            content = None
        else:
            info = FileInfo(exists=exists, path=path, contents=existing[full_path] if exists else "")
            content = request.fn(info)
            if content is not None and not isinstance(content, str):
                raise TypeError(
                    f"Resolver for {path!r} returned {type(content).__name__}; expected str or None"
                )

        if content is None:
            actions.append(Action(path=full_path, kind=ActionKind.DELETE))
        elif exists:
            actions.append(Action(path=full_path, kind=ActionKind.UPDATE, content=content))
        else:
            actions.append(Action(path=full_path, kind=ActionKind.CREATE, content=content))
    return actions

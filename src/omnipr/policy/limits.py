"""Limit enforcement for changesets."""

from __future__ import annotations

from collections.abc import Iterable

from ..constants import MAX_CHANGED_FILES


def enforce_changeset_limits(paths: Iterable[str], max_files: int = MAX_CHANGED_FILES) -> None:
    """Ensure that a changeset does not touch too many files.

    :param paths: paths named by the changeset
    :param max_files: the largest accepted number of paths
    :raises ValueError: if the changeset exceeds the limit
    """
    file_count = len(set(paths))
    if file_count > max_files:
        raise ValueError(
            f"Changeset touches {file_count} files which exceeds the limit of {max_files}"
        )

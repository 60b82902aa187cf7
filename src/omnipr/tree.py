"""Tree reading: scoped, optionally recursive file listing plus content fetch."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from .errors import ReadFailed, UpstreamError
from .paths import normalize_directory_path, strip_scope
from .providers.base import GitProvider
from .session import ApiSession

logger = logging.getLogger(__name__)


def read_files(
    provider: GitProvider,
    session: ApiSession,
    branch: str,
    scope: str | None = None,
    specific_files: Iterable[str] | None = None,
    recursive: bool = False,
) -> dict[str, str]:
    """Return ``{relative path: content}`` for files under ``scope`` on ``branch``.

    Paths are relative to ``scope``.  Without ``recursive`` only direct
    children of the scope are returned.  ``specific_files`` (relative paths)
    narrows the result after the scope filter.  Contents are fetched
    concurrently and only returned once every fetch has finished; a file
    that disappears between listing and fetch is left out.
    """
    root = normalize_directory_path(scope)
    wanted = None
    if specific_files is not None:
        wanted = {p.replace("\\", "/").lstrip("/") for p in specific_files}
        if not wanted:
            return {}

    try:
        listed = provider.list_files(session, branch, root, recursive)
    except UpstreamError as exc:
        raise ReadFailed(branch, exc) from exc

    selected: list[tuple[str, str]] = []
    seen: set[str] = set()
    for full_path in listed:
        relative = strip_scope(root, full_path)
        if not relative or full_path in seen:
            continue
        if not recursive and "/" in relative:
            continue
        if wanted is not None and relative not in wanted:
            continue
        seen.add(full_path)
        selected.append((full_path, relative))

    def fetch(item: tuple[str, str]) -> str | None:
        full_path, _relative = item
        try:
            return provider.get_file_content(session, branch, full_path)
        except UpstreamError as exc:
            raise ReadFailed(branch, exc, path=full_path) from exc

    contents = session.map_concurrently(fetch, selected)
    files: dict[str, str] = {}
    for (full_path, relative), content in zip(selected, contents):
        if content is None:
            logger.debug("%s vanished from %s before it could be read", full_path, branch)
            continue
        files[relative] = content
    logger.debug("Read %d file(s) from %s under %r", len(files), branch, root or "/")
    return files

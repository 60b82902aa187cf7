"""Helpers for scope paths: the optional directory prefix narrowing reads and writes."""

from __future__ import annotations


def normalize_directory_path(path: str | None) -> str:
    """Return ``path`` with forward slashes and no leading or trailing slash.

    ``None``, ``""``, ``"."``, ``"./"`` and ``"/"`` all denote the repository root
    and normalise to ``""``.
    """
    if not path:
        return ""
    normalized = path.replace("\\", "/").strip("/")
    while normalized.startswith("./"):
        normalized = normalized[2:]
    if normalized in ("", "."):
        return ""
    return normalized


def join_scope(scope: str | None, path: str) -> str:
    """Re-add the scope prefix to a caller-visible relative path."""
    root = normalize_directory_path(scope)
    relative = path.replace("\\", "/").lstrip("/")
    if not root:
        return relative
    return f"{root}/{relative}"


def strip_scope(scope: str | None, full_path: str) -> str | None:
    """Return ``full_path`` relative to ``scope``, or ``None`` when outside it."""
    root = normalize_directory_path(scope)
    if not root:
        return full_path
    prefix = f"{root}/"
    if full_path.startswith(prefix):
        return full_path[len(prefix):]
    return None

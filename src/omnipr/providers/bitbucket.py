"""Bitbucket Cloud REST API (2.0) provider.

Changesets are pushed as one multipart ``POST /src``: every written file is
its own form field named by its path, and deletions are listed in the
``files`` field.  Bitbucket turns the whole form into a single commit.
"""

from __future__ import annotations

import logging
import posixpath
import re
from collections.abc import Sequence
from urllib.parse import quote

import httpx

from ..constants import BITBUCKET_API_URL, PAGE_SIZE
from ..errors import (
    BranchAlreadyExists,
    BranchNotFound,
    PullRequestAlreadyExists,
    SetupFailed,
    UpstreamError,
)
from ..models import Action, ActionKind, Author, Branch, Commit, PullRequest, parse_timestamp
from ..paths import normalize_directory_path
from ..session import ApiSession, build_client, default_error_message, verify_access
from ..urls import owner_and_repo

logger = logging.getLogger(__name__)

_RAW_AUTHOR_RE = re.compile(r"^\s*(?P<name>.*?)\s*<(?P<email>[^>]*)>\s*$")


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return default_error_message(response)
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict) and error.get("message"):
        detail = error.get("detail")
        if detail:
            return f"{error['message']}: {detail}"
        return str(error["message"])
    return default_error_message(response)


def _author_from(data: dict[str, object]) -> Author:
    raw = data.get("raw") or ""
    match = _RAW_AUTHOR_RE.match(raw)
    if match:
        return Author(name=match.group("name"), email=match.group("email"))
    user = data.get("user") or {}
    return Author(name=user.get("display_name", raw), email="")


def _commit_from(target: dict[str, object]) -> Commit:
    return Commit(
        sha=str(target["hash"]),
        message=target.get("message", ""),
        author=_author_from(target.get("author") or {}),
        date=parse_timestamp(target.get("date")),
    )


def _pull_request_from(data: dict[str, object]) -> PullRequest:
    return PullRequest(
        id=str(data["id"]),
        source_branch=data.get("source", {}).get("branch", {}).get("name", ""),
        target_branch=data.get("destination", {}).get("branch", {}).get("name", ""),
        title=data.get("title") or "",
        description=data.get("description") or "",
        link=data.get("links", {}).get("html", {}).get("href", ""),
    )


def _quote_query_value(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


class BitbucketProvider:
    """Bitbucket Cloud."""

    name = "bitbucket"
    # Bitbucket has no reliable duplicate-PR error, so search first.
    search_before_create = True

    def setup(
        self,
        token: str,
        url: str,
        *,
        api_url: str | None = None,
        project_id: str | None = None,
        client: httpx.Client | None = None,
    ) -> ApiSession:
        if not token:
            raise SetupFailed("A Bitbucket token is required", provider=self.name)
        workspace, repo = owner_and_repo(url)
        session = ApiSession(
            provider=self.name,
            base_url=f"{(api_url or BITBUCKET_API_URL).rstrip('/')}/repositories/{workspace}/{repo}",
            client=build_client(token, {"Accept": "application/json"}, client),
            token=token,
            repository=f"{workspace}/{repo}",
            owner=workspace,
            extract_error=_error_message,
        )
        verify_access(session)
        return session

    # Branches

    def _branch_target(self, session: ApiSession, name: str) -> dict[str, object] | None:
        data = session.json("GET", f"/refs/branches/{quote(name, safe='/')}", allow_404=True)
        if data is None:
            return None
        return data["target"]

    def get_branch(self, session: ApiSession, name: str) -> Branch | None:
        target = self._branch_target(session, name)
        if target is None:
            return None
        return Branch(name=name, head_commit_id=target["hash"])

    def create_branch(self, session: ApiSession, name: str, sha: str) -> Branch:
        try:
            data = session.json("POST", "/refs/branches", json={"name": name, "target": {"hash": sha}})
        except UpstreamError as exc:
            if exc.status == 400 and "already exists" in exc.upstream_message.lower():
                raise BranchAlreadyExists(name, exc) from exc
            raise
        return Branch(name=name, head_commit_id=(data or {}).get("target", {}).get("hash", sha))

    def delete_branch(self, session: ApiSession, name: str) -> None:
        session.request("DELETE", f"/refs/branches/{quote(name, safe='/')}")

    # Files

    def _resolve_commit(self, session: ApiSession, ref: str) -> str:
        """Branch names may contain slashes, which ``/src`` cannot tell from paths."""
        target = self._branch_target(session, ref)
        if target is None:
            raise BranchNotFound(ref)
        return target["hash"]

    def list_files(self, session: ApiSession, ref: str, scope: str, recursive: bool) -> list[str]:
        commit = self._resolve_commit(session, ref)
        directories = [normalize_directory_path(scope)]
        paths: list[str] = []
        while directories:
            directory = directories.pop(0)
            listing = f"/src/{commit}/{quote(directory, safe='/')}/" if directory else f"/src/{commit}/"
            for page in session.iter_body_pages(listing, params={"pagelen": PAGE_SIZE}):
                for entry in page:
                    if entry.get("type") == "commit_file":
                        paths.append(entry["path"])
                    elif entry.get("type") == "commit_directory" and recursive:
                        directories.append(entry["path"])
        return paths

    def get_file_content(self, session: ApiSession, ref: str, path: str) -> str | None:
        commit = self._resolve_commit(session, ref) if "/" in ref else ref
        resp = session.request("GET", f"/src/{commit}/{quote(path, safe='/')}", allow_404=True)
        if resp is None:
            return None
        return resp.text

    def _exists(self, session: ApiSession, commit: str, path: str) -> bool:
        resp = session.request(
            "GET", f"/src/{commit}/{quote(path, safe='/')}", params={"format": "meta"}, allow_404=True
        )
        return resp is not None

    # Commit

    def commit(self, session: ApiSession, branch: str, actions: Sequence[Action], message: str) -> Commit:
        head = self._branch_target(session, branch)
        if head is None:
            raise BranchNotFound(branch)
        head_sha = head["hash"]

        files: list[tuple[str, tuple[str, bytes]]] = []
        removed: list[str] = []
        deletes = [a for a in actions if a.kind is ActionKind.DELETE]
        present = session.map_concurrently(lambda a: self._exists(session, head_sha, a.path), deletes)
        for action, exists in zip(deletes, present):
            if exists:
                removed.append(action.path)
            else:
                logger.debug("Skipping deletion of absent path %s on %s", action.path, branch)
        for action in actions:
            if action.kind is not ActionKind.DELETE:
                content = (action.content or "").encode("utf-8")
                files.append((action.path, (posixpath.basename(action.path), content)))

        if not files and not removed:
            logger.info("Nothing to commit on %s", branch)
            return _commit_from(head)

        form: dict[str, object] = {"branch": branch, "message": message, "parents": head_sha}
        if removed:
            form["files"] = removed
        session.request("POST", "/src", data=form, files=files or None)

        # /src answers 201 without a body; the new head is read back from the branch.
        new_head = self._branch_target(session, branch)
        if new_head is None:
            raise BranchNotFound(branch)
        return _commit_from(new_head)

    # Pull requests

    def create_pull_request(
        self, session: ApiSession, source: str, target: str, title: str, description: str
    ) -> PullRequest:
        try:
            data = session.json(
                "POST",
                "/pullrequests",
                json={
                    "title": title,
                    "description": description,
                    "source": {"branch": {"name": source}},
                    "destination": {"branch": {"name": target}},
                },
            )
        except UpstreamError as exc:
            if exc.status == 400 and "already exists" in exc.upstream_message.lower():
                raise PullRequestAlreadyExists(source, target, exc) from exc
            raise
        return _pull_request_from(data)

    def find_open_pull_request(self, session: ApiSession, source: str, target: str) -> PullRequest | None:
        query = (
            f'source.branch.name = "{_quote_query_value(source)}" '
            f'AND destination.branch.name = "{_quote_query_value(target)}" '
            'AND state = "OPEN"'
        )
        data = session.json("GET", "/pullrequests", params={"q": query})
        values = (data or {}).get("values") or []
        if not values:
            return None
        return _pull_request_from(values[0])

    def update_pull_request(
        self, session: ApiSession, pr_id: str, title: str, description: str
    ) -> PullRequest:
        data = session.json("PUT", f"/pullrequests/{pr_id}", json={"title": title, "description": description})
        return _pull_request_from(data)

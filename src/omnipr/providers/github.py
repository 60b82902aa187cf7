"""GitHub REST API provider.

Changesets are committed with the compose-then-move-ref protocol: blobs for
every written file, one tree layered onto the branch's base tree, one commit
whose parent is the current head, then a ref update pointing the branch at it.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import quote

import httpx

from ..constants import GITHUB_API_URL, GITHUB_API_VERSION
from ..errors import (
    BranchAlreadyExists,
    BranchNotFound,
    PullRequestAlreadyExists,
    ReadFailed,
    SetupFailed,
    UpstreamError,
)
from ..models import Action, ActionKind, Author, Branch, Commit, PullRequest, parse_timestamp
from ..paths import normalize_directory_path
from ..session import ApiSession, build_client, default_error_message, verify_access
from ..urls import owner_and_repo

logger = logging.getLogger(__name__)

_FILE_MODE = "100644"


def _error_message(response: httpx.Response) -> str:
    """Join GitHub's top-level message with its validation error messages."""
    try:
        body = response.json()
    except ValueError:
        return default_error_message(response)
    if not isinstance(body, dict):
        return default_error_message(response)
    message = str(body.get("message") or response.reason_phrase)
    details = [
        str(err.get("message") if isinstance(err, dict) else err)
        for err in body.get("errors") or []
        if err
    ]
    if details:
        return f"{message}: {'; '.join(details)}"
    return message


def _commit_from(data: dict[str, object]) -> Commit:
    """Build a Commit from a git commit object or a branch's ``commit`` field."""
    git_commit = data.get("commit") if isinstance(data.get("commit"), dict) else data
    author = git_commit.get("author") or {}
    return Commit(
        sha=str(data["sha"]),
        message=git_commit.get("message", ""),
        author=Author(name=author.get("name", ""), email=author.get("email", "")),
        date=parse_timestamp(author.get("date")),
    )


def _pull_request_from(data: dict[str, object]) -> PullRequest:
    return PullRequest(
        id=str(data["number"]),
        source_branch=data.get("head", {}).get("ref", ""),
        target_branch=data.get("base", {}).get("ref", ""),
        title=data.get("title") or "",
        description=data.get("body") or "",
        link=data.get("html_url", ""),
    )


class GithubProvider:
    """GitHub (and GitHub Enterprise via ``api_url``)."""

    name = "github"
    search_before_create = False

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
            raise SetupFailed("A GitHub token is required", provider=self.name)
        owner, repo = owner_and_repo(url)
        base_url = f"{(api_url or GITHUB_API_URL).rstrip('/')}/repos/{owner}/{repo}"
        session = ApiSession(
            provider=self.name,
            base_url=base_url,
            client=build_client(
                token,
                {
                    "Accept": "application/vnd.github+json",
                    "X-GitHub-Api-Version": GITHUB_API_VERSION,
                },
                client,
            ),
            token=token,
            repository=f"{owner}/{repo}",
            owner=owner,
            extract_error=_error_message,
        )
        verify_access(session)
        return session

    # Branches

    def _branch_data(self, session: ApiSession, name: str) -> dict[str, object] | None:
        return session.json("GET", f"/branches/{quote(name, safe='/')}", allow_404=True)

    def get_branch(self, session: ApiSession, name: str) -> Branch | None:
        data = self._branch_data(session, name)
        if data is None:
            return None
        return Branch(name=name, head_commit_id=data["commit"]["sha"])

    def create_branch(self, session: ApiSession, name: str, sha: str) -> Branch:
        try:
            session.request("POST", "/git/refs", json={"ref": f"refs/heads/{name}", "sha": sha})
        except UpstreamError as exc:
            if exc.status == 422 and "already exists" in exc.upstream_message.lower():
                raise BranchAlreadyExists(name, exc) from exc
            raise
        return Branch(name=name, head_commit_id=sha)

    def delete_branch(self, session: ApiSession, name: str) -> None:
        session.request("DELETE", f"/git/refs/heads/{quote(name, safe='/')}")

    # Files

    def list_files(self, session: ApiSession, ref: str, scope: str, recursive: bool) -> list[str]:
        """List blob paths under ``scope``, reading only that part of the tree.

        The scope's tree is found by descending from the root one level per
        path segment.  A recursive listing that GitHub truncates is read again
        one tree level at a time.
        """
        branch = self._branch_data(session, ref)
        if branch is None:
            raise BranchNotFound(ref)
        root = normalize_directory_path(scope)
        tree_sha = self._scope_tree_sha(session, ref, branch["commit"]["commit"]["tree"]["sha"], root)
        if tree_sha is None:
            return []
        prefix = f"{root}/" if root else ""

        if recursive:
            listing = self._tree(session, tree_sha, recursive=True)
            if not listing.get("truncated"):
                return [prefix + e["path"] for e in listing.get("tree", []) if e.get("type") == "blob"]
            logger.debug("Recursive tree listing of %r on %s was truncated; walking it level by level", root, ref)

        paths: list[str] = []
        level = [(tree_sha, prefix)]
        while level:
            listings = session.map_concurrently(lambda item: self._level(session, ref, item[0]), level)
            next_level: list[tuple[str, str]] = []
            for (_sha, base), entries in zip(level, listings):
                for entry in entries:
                    if entry.get("type") == "blob":
                        paths.append(base + entry["path"])
                    elif entry.get("type") == "tree" and recursive:
                        next_level.append((entry["sha"], f"{base}{entry['path']}/"))
            level = next_level
        return paths

    def _tree(self, session: ApiSession, sha: str, recursive: bool = False) -> dict[str, object]:
        params = {"recursive": "1"} if recursive else None
        return session.json("GET", f"/git/trees/{sha}", params=params)

    def _level(self, session: ApiSession, ref: str, sha: str) -> list[dict[str, object]]:
        """Entries of one tree, which must be complete."""
        listing = self._tree(session, sha)
        if listing.get("truncated"):
            raise ReadFailed(ref, "tree listing was truncated by GitHub")
        return listing.get("tree", [])

    def _scope_tree_sha(self, session: ApiSession, ref: str, root_sha: str, scope: str) -> str | None:
        sha = root_sha
        for segment in scope.split("/") if scope else []:
            entries = self._level(session, ref, sha)
            match = next((e for e in entries if e.get("path") == segment and e.get("type") == "tree"), None)
            if match is None:
                return None
            sha = match["sha"]
        return sha

    def get_file_content(self, session: ApiSession, ref: str, path: str) -> str | None:
        resp = session.request(
            "GET",
            f"/contents/{quote(path, safe='/')}",
            params={"ref": ref},
            headers={"Accept": "application/vnd.github.raw"},
            allow_404=True,
        )
        if resp is None:
            return None
        return resp.text

    def _exists(self, session: ApiSession, ref: str, path: str) -> bool:
        resp = session.request(
            "GET", f"/contents/{quote(path, safe='/')}", params={"ref": ref}, allow_404=True
        )
        return resp is not None

    # Commit

    def commit(self, session: ApiSession, branch: str, actions: Sequence[Action], message: str) -> Commit:
        # Base tree and parent are resolved fresh on every attempt.
        current = self._branch_data(session, branch)
        if current is None:
            raise BranchNotFound(branch)
        parent_sha = current["commit"]["sha"]
        base_tree_sha = current["commit"]["commit"]["tree"]["sha"]

        writes = [a for a in actions if a.kind is not ActionKind.DELETE]
        deletes = [a for a in actions if a.kind is ActionKind.DELETE]
        present = session.map_concurrently(lambda a: self._exists(session, parent_sha, a.path), deletes)
        skipped = [a.path for a, exists in zip(deletes, present) if not exists]
        if skipped:
            logger.debug("Skipping deletion of absent paths on %s: %s", branch, skipped)
        deletes = [a for a, exists in zip(deletes, present) if exists]

        if not writes and not deletes:
            logger.info("Nothing to commit on %s", branch)
            return _commit_from(current["commit"])

        blob_shas = session.map_concurrently(lambda a: self._create_blob(session, a.content or ""), writes)
        tree = [
            {"path": a.path, "mode": _FILE_MODE, "type": "blob", "sha": sha}
            for a, sha in zip(writes, blob_shas)
        ]
        tree += [{"path": a.path, "mode": _FILE_MODE, "type": "blob", "sha": None} for a in deletes]

        new_tree = session.json("POST", "/git/trees", json={"base_tree": base_tree_sha, "tree": tree})
        new_commit = session.json(
            "POST",
            "/git/commits",
            json={"message": message, "tree": new_tree["sha"], "parents": [parent_sha]},
        )
        session.request(
            "PATCH",
            f"/git/refs/heads/{quote(branch, safe='/')}",
            json={"sha": new_commit["sha"], "force": False},
        )
        return _commit_from(new_commit)

    def _create_blob(self, session: ApiSession, content: str) -> str:
        blob = session.json("POST", "/git/blobs", json={"content": content, "encoding": "utf-8"})
        return blob["sha"]

    # Pull requests

    def create_pull_request(
        self, session: ApiSession, source: str, target: str, title: str, description: str
    ) -> PullRequest:
        try:
            data = session.json(
                "POST",
                "/pulls",
                json={"title": title, "body": description, "head": source, "base": target},
            )
        except UpstreamError as exc:
            if exc.status == 422 and "pull request already exists" in exc.upstream_message.lower():
                raise PullRequestAlreadyExists(source, target, exc) from exc
            raise
        return _pull_request_from(data)

    def find_open_pull_request(self, session: ApiSession, source: str, target: str) -> PullRequest | None:
        data = session.json(
            "GET",
            "/pulls",
            params={"state": "open", "head": f"{session.owner}:{source}", "base": target},
        )
        if not data:
            return None
        return _pull_request_from(data[0])

    def update_pull_request(
        self, session: ApiSession, pr_id: str, title: str, description: str
    ) -> PullRequest:
        data = session.json("PATCH", f"/pulls/{pr_id}", json={"title": title, "body": description})
        return _pull_request_from(data)

"""GitLab REST API (v4) provider.

Changesets are committed as one atomic action list: GitLab applies every
create/update/delete in a single commit or rejects the whole batch.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from urllib.parse import quote

import httpx

from ..constants import PAGE_SIZE
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
from ..urls import parse_repository_url

logger = logging.getLogger(__name__)


def encode_component(value: str) -> str:
    """Encode a project path, branch name or file path as one URL path segment."""
    return quote(value, safe="").replace(".", "%2E")


def _flatten(value: object) -> list[str]:
    if isinstance(value, dict):
        return [f"{key} {msg}" for key, item in value.items() for msg in _flatten(item)]
    if isinstance(value, (list, tuple)):
        return [msg for item in value for msg in _flatten(item)]
    return [str(value)]


def _error_message(response: httpx.Response) -> str:
    """GitLab reports ``message`` as a string, a list or a field → messages map."""
    try:
        body = response.json()
    except ValueError:
        return default_error_message(response)
    if isinstance(body, dict):
        value = body.get("message") or body.get("error")
        if value:
            return "; ".join(_flatten(value))
    return default_error_message(response)


def _commit_from(data: dict[str, object]) -> Commit:
    return Commit(
        sha=str(data["id"]),
        message=data.get("message", ""),
        author=Author(name=data.get("author_name", ""), email=data.get("author_email", "")),
        date=parse_timestamp(data.get("authored_date") or data.get("created_at")),
    )


def _merge_request_from(data: dict[str, object]) -> PullRequest:
    return PullRequest(
        id=str(data["iid"]),
        source_branch=data.get("source_branch", ""),
        target_branch=data.get("target_branch", ""),
        title=data.get("title") or "",
        description=data.get("description") or "",
        link=data.get("web_url", ""),
    )


class GitlabProvider:
    """GitLab.com or a self-managed instance; pull requests are merge requests."""

    name = "gitlab"
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
        """Connect to the project named by ``url``.

        The instance is taken from ``api_url`` when given, otherwise from the
        URL's host.  ``project_id`` (numeric id or full path) overrides the
        project path derived from the URL, which may include subgroups.
        """
        if not token:
            raise SetupFailed("A GitLab token is required", provider=self.name)
        parsed = parse_repository_url(url)
        project = str(project_id) if project_id else parsed.path
        if not project_id and len(parsed.segments) < 2:
            raise SetupFailed(f"Repository URL must name a namespace and a project: {url!r}", url=url)
        instance = (api_url or parsed.origin).rstrip("/")
        session = ApiSession(
            provider=self.name,
            base_url=f"{instance}/api/v4/projects/{encode_component(project)}",
            client=build_client(token, {"Accept": "application/json"}, client),
            token=token,
            repository=project,
            owner=parsed.segments[0] if parsed.segments else "",
            extract_error=_error_message,
        )
        verify_access(session)
        return session

    # Branches

    def get_branch(self, session: ApiSession, name: str) -> Branch | None:
        data = session.json("GET", f"/repository/branches/{encode_component(name)}", allow_404=True)
        if data is None:
            return None
        return Branch(name=name, head_commit_id=data["commit"]["id"])

    def create_branch(self, session: ApiSession, name: str, sha: str) -> Branch:
        try:
            data = session.json("POST", "/repository/branches", json={"branch": name, "ref": sha})
        except UpstreamError as exc:
            if exc.status == 400 and "already exists" in exc.upstream_message.lower():
                raise BranchAlreadyExists(name, exc) from exc
            raise
        return Branch(name=name, head_commit_id=data["commit"]["id"])

    def delete_branch(self, session: ApiSession, name: str) -> None:
        session.request("DELETE", f"/repository/branches/{encode_component(name)}")

    # Files

    def list_files(self, session: ApiSession, ref: str, scope: str, recursive: bool) -> list[str]:
        if self.get_branch(session, ref) is None:
            raise BranchNotFound(ref)
        params: dict[str, object] = {
            "ref": ref,
            "recursive": "true" if recursive else "false",
            "per_page": PAGE_SIZE,
        }
        root = normalize_directory_path(scope)
        if root:
            params["path"] = root
        paths: list[str] = []
        for page in session.iter_link_pages("/repository/tree", params=params):
            paths.extend(item["path"] for item in page if item.get("type") == "blob")
        return paths

    def get_file_content(self, session: ApiSession, ref: str, path: str) -> str | None:
        resp = session.request(
            "GET",
            f"/repository/files/{encode_component(path)}/raw",
            params={"ref": ref},
            allow_404=True,
        )
        if resp is None:
            return None
        return resp.text

    def _exists(self, session: ApiSession, ref: str, path: str) -> bool:
        resp = session.request(
            "HEAD", f"/repository/files/{encode_component(path)}", params={"ref": ref}, allow_404=True
        )
        return resp is not None

    # Commit

    def commit(self, session: ApiSession, branch: str, actions: Sequence[Action], message: str) -> Commit:
        head = session.json("GET", f"/repository/commits/{encode_component(branch)}", allow_404=True)
        if head is None:
            raise BranchNotFound(branch)

        # Create vs update follows the branch as it is now, not the earlier read.
        present = session.map_concurrently(lambda a: self._exists(session, branch, a.path), actions)
        payload: list[dict[str, object]] = []
        for action, exists in zip(actions, present):
            if action.kind is ActionKind.DELETE:
                if not exists:
                    logger.debug("Skipping deletion of absent path %s on %s", action.path, branch)
                    continue
                payload.append({"action": "delete", "file_path": action.path})
            else:
                payload.append(
                    {
                        "action": "update" if exists else "create",
                        "file_path": action.path,
                        "content": action.content or "",
                        "encoding": "text",
                    }
                )

        if not payload:
            logger.info("Nothing to commit on %s", branch)
            return _commit_from(head)

        data = session.json(
            "POST",
            "/repository/commits",
            json={"branch": branch, "commit_message": message, "actions": payload},
        )
        return _commit_from(data)

    # Merge requests

    def create_pull_request(
        self, session: ApiSession, source: str, target: str, title: str, description: str
    ) -> PullRequest:
        try:
            data = session.json(
                "POST",
                "/merge_requests",
                json={
                    "source_branch": source,
                    "target_branch": target,
                    "title": title,
                    "description": description,
                },
            )
        except UpstreamError as exc:
            if exc.status == 409 and "already exists" in exc.upstream_message.lower():
                raise PullRequestAlreadyExists(source, target, exc) from exc
            raise
        return _merge_request_from(data)

    def find_open_pull_request(self, session: ApiSession, source: str, target: str) -> PullRequest | None:
        data = session.json(
            "GET",
            "/merge_requests",
            params={"state": "opened", "source_branch": source, "target_branch": target},
        )
        if not data:
            return None
        return _merge_request_from(data[0])

    def update_pull_request(
        self, session: ApiSession, pr_id: str, title: str, description: str
    ) -> PullRequest:
        data = session.json(
            "PUT", f"/merge_requests/{pr_id}", json={"title": title, "description": description}
        )
        return _merge_request_from(data)

"""Authenticated HTTP session shared by one provider setup.

``ApiSession`` is the explicit context object returned by a provider's
``setup``: it owns the ``httpx`` client, the API base URL and the repository
identity, and every later provider call receives it as its first argument.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, TypeVar

import httpx

from .constants import HTTP_TIMEOUT_S, MAX_CONCURRENT_REQUESTS, USER_AGENT
from .errors import SetupFailed, UpstreamError
from .policy.redaction import redact_secrets

logger = logging.getLogger(__name__)

ErrorExtractor = Callable[[httpx.Response], str]
T = TypeVar("T")
R = TypeVar("R")


def default_error_message(response: httpx.Response) -> str:
    """Best-effort message from an error response body."""
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict):
        for key in ("message", "error_description", "error"):
            value = body.get(key)
            if value:
                return value if isinstance(value, str) else str(value)
    return response.text or response.reason_phrase


def build_client(
    token: str,
    headers: dict[str, str] | None = None,
    client: httpx.Client | None = None,
) -> httpx.Client:
    """Return an ``httpx.Client`` with the Authorization header set.

    When ``client`` is given (tests inject one built on ``httpx.MockTransport``)
    its headers are updated in place instead of building a new client.
    """
    merged = {
        "Authorization": f"Bearer {token}",
        "User-Agent": USER_AGENT,
        **(headers or {}),
    }
    if client is not None:
        client.headers.update(merged)
        return client
    return httpx.Client(headers=merged, timeout=HTTP_TIMEOUT_S)


@dataclass
class ApiSession:
    """Authenticated access to one repository on one provider."""

    provider: str
    base_url: str
    client: httpx.Client
    token: str
    repository: str
    owner: str = ""
    max_workers: int = MAX_CONCURRENT_REQUESTS
    extract_error: ErrorExtractor = default_error_message

    def url(self, path: str) -> str:
        if path.startswith("http://") or path.startswith("https://"):
            return path
        if not path:
            return self.base_url.rstrip("/")
        return f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"

    def request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, object] | None = None,
        json: object | None = None,
        data: dict[str, object] | None = None,
        files: list[tuple[str, tuple[str, bytes]]] | None = None,
        headers: dict[str, str] | None = None,
        allow_404: bool = False,
    ) -> httpx.Response | None:
        """Perform an HTTP request against the provider API.

        Returns the response for 2xx statuses, ``None`` for a 404 when
        ``allow_404`` is set, and raises ``UpstreamError`` for everything
        else, including transport failures.  Messages are redacted before
        they are logged or raised.
        """
        url = self.url(path)
        logger.debug("%s %s %s", self.provider, method, url)
        try:
            resp = self.client.request(
                method, url, params=params, json=json, data=data, files=files, headers=headers
            )
        except httpx.HTTPError as exc:
            message = self.redact(str(exc))
            logger.error("%s API request failed: %s", self.provider, message)
            raise UpstreamError(0, message, url) from exc

        if allow_404 and resp.status_code == 404:
            return None

        if 200 <= resp.status_code < 300:
            return resp

        message = self.redact(self.extract_error(resp))
        logger.error("%s API error %s on %s %s: %s", self.provider, resp.status_code, method, url, message)
        raise UpstreamError(resp.status_code, message, url)

    def json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Like ``request`` but returns the decoded JSON body (``None`` on 404/empty)."""
        resp = self.request(method, path, **kwargs)
        if resp is None or resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def iter_link_pages(self, path: str, params: dict[str, object] | None = None) -> Iterator[list[Any]]:
        """Yield each page of a list endpoint paginated by ``Link: rel="next"`` headers.

        A 404 on the first page yields nothing.
        """
        resp = self.request("GET", path, params=params, allow_404=True)
        while resp is not None:
            yield resp.json() or []
            next_url = resp.links.get("next", {}).get("url")
            if not next_url:
                return
            resp = self.request("GET", next_url)

    def iter_body_pages(self, path: str, params: dict[str, object] | None = None) -> Iterator[list[Any]]:
        """Yield the ``values`` of each page of an endpoint paginated by a ``next`` body field.

        A 404 on the first page yields nothing.
        """
        resp = self.request("GET", path, params=params, allow_404=True)
        while resp is not None:
            page = resp.json() or {}
            yield page.get("values", [])
            next_url = page.get("next")
            if not next_url:
                return
            resp = self.request("GET", next_url)

    def map_concurrently(self, fn: Callable[[T], R], items: Iterable[T]) -> list[R]:
        """Apply ``fn`` to every item, up to ``max_workers`` at a time.

        Results keep the order of ``items``.  All calls are joined before
        returning; the first failure is re-raised.
        """
        pending = list(items)
        if len(pending) <= 1 or self.max_workers <= 1:
            return [fn(item) for item in pending]
        with ThreadPoolExecutor(max_workers=min(self.max_workers, len(pending))) as pool:
            return list(pool.map(fn, pending))

    def redact(self, text: str) -> str:
        return redact_secrets(text, [self.token])

    def close(self) -> None:
        self.client.close()

    def __enter__(self) -> ApiSession:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()


def verify_access(session: ApiSession, path: str = "") -> None:
    """Issue one read against the repository and raise ``SetupFailed`` if it fails.

    The session's client is closed when verification fails.
    """
    try:
        session.request("GET", path)
    except UpstreamError as exc:
        session.close()
        raise SetupFailed(
            f"Couldn't set up the connection to {session.provider} repository {session.repository!r}.",
            provider=session.provider,
            status=exc.status,
            upstream=exc.upstream_message,
            url=exc.url,
        ) from exc

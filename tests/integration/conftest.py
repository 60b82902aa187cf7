"""Fixtures for provider tests against a scripted HTTP API."""

from __future__ import annotations

from collections.abc import Callable

import httpx
import pytest

Reply = tuple[int, dict[str, object]]


class Router:
    """Answers requests from registered (method, raw path) routes.

    A route is a reply ``(status, response kwargs)``, a list of replies used
    one per request (the last one repeats), or a callable taking the request.
    Unknown routes answer 404.  Paths are matched undecoded, so GitLab's
    ``%2F``-encoded segments are registered as sent.
    """

    def __init__(self) -> None:
        self.routes: dict[tuple[str, str], object] = {}
        self.requests: list[httpx.Request] = []

    def add(self, method: str, path: str, status: int = 200, **kwargs: object) -> None:
        self.routes[(method, path)] = (status, kwargs)

    def add_sequence(self, method: str, path: str, replies: list[Reply]) -> None:
        self.routes[(method, path)] = list(replies)

    def add_handler(self, method: str, path: str, handler: Callable[[httpx.Request], httpx.Response]) -> None:
        self.routes[(method, path)] = handler

    def __call__(self, request: httpx.Request) -> httpx.Response:
        request.read()
        self.requests.append(request)
        route = self.routes.get((request.method, raw_path(request)))
        if route is None:
            return httpx.Response(404, json={"message": "404 Not Found"})
        if callable(route):
            return route(request)
        if isinstance(route, list):
            status, kwargs = route.pop(0) if len(route) > 1 else route[0]
        else:
            status, kwargs = route
        return httpx.Response(status, **kwargs)

    def client(self) -> httpx.Client:
        return httpx.Client(transport=httpx.MockTransport(self))

    def calls(self, method: str, path: str) -> list[httpx.Request]:
        return [r for r in self.requests if r.method == method and raw_path(r) == path]

    def sequence(self) -> list[str]:
        return [f"{r.method} {raw_path(r)}" for r in self.requests]


def raw_path(request: httpx.Request) -> str:
    return request.url.raw_path.decode("ascii").split("?", 1)[0]


@pytest.fixture
def router() -> Router:
    return Router()

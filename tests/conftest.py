"""Shared fixtures: a recording fake of the remote REST APIs."""

from __future__ import annotations

import base64
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import Any

import httpx
import pytest

from git_packages.infrastructure.credentials import MappingCredentialStore
from git_packages.infrastructure.providers.bitbucket import BitbucketProvider
from git_packages.infrastructure.providers.github import GitHubProvider
from git_packages.infrastructure.providers.gitlab import GitLabProvider

Responder = Callable[[httpx.Request], httpx.Response]


@dataclass
class _Route:
    path: str
    params: dict[str, str]
    responder: Responder


@dataclass
class FakeApi:
    """Route table for ``httpx.MockTransport``; records every request.

    Routes match on the *raw* (still percent-encoded) request path and on a
    subset of query parameters.  Later routes win over earlier ones.
    """

    routes: list[_Route] = field(default_factory=list)
    requests: list[httpx.Request] = field(default_factory=list)

    def add(
        self,
        path: str,
        json: Any = None,
        *,
        status: int = 200,
        text: str | None = None,
        params: dict[str, str] | None = None,
        headers: dict[str, str] | None = None,
        responder: Responder | None = None,
    ) -> None:
        if responder is None:

            def responder(request: httpx.Request) -> httpx.Response:
                if text is not None:
                    return httpx.Response(status, text=text, headers=headers)
                return httpx.Response(status, json=json, headers=headers)

        self.routes.append(_Route(path, dict(params or {}), responder))

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        raw_path = request.url.raw_path.split(b"?")[0].decode("ascii")
        for route in reversed(self.routes):
            if route.path != raw_path:
                continue
            if all(request.url.params.get(k) == v for k, v in route.params.items()):
                return route.responder(request)
        return httpx.Response(404, json={"message": "404 Not Found"})

    def requests_to(self, path: str) -> list[httpx.Request]:
        return [
            r for r in self.requests if r.url.raw_path.split(b"?")[0].decode("ascii") == path
        ]

    @property
    def auth_headers(self) -> list[str | None]:
        return [r.headers.get("Authorization") for r in self.requests]


def b64(text: str) -> str:
    return base64.b64encode(text.encode("utf-8")).decode("ascii")


def blobs(*paths: str) -> list[dict[str, str]]:
    return [{"path": p, "type": "blob"} for p in paths]


@pytest.fixture
def fake_api() -> FakeApi:
    return FakeApi()


@pytest.fixture
def http_client(fake_api: FakeApi) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(fake_api.handler))


@pytest.fixture
def credentials() -> MappingCredentialStore:
    return MappingCredentialStore()


@pytest.fixture
def gitlab(http_client, credentials) -> GitLabProvider:
    return GitLabProvider(http_client, credentials)


@pytest.fixture
def github(http_client, credentials) -> GitHubProvider:
    return GitHubProvider(http_client, credentials)


@pytest.fixture
def bitbucket(http_client, credentials) -> BitbucketProvider:
    return BitbucketProvider(http_client, credentials)

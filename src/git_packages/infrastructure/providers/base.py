"""Shared Provider implementation — concrete hosts only supply the REST shapes."""

from __future__ import annotations

import asyncio
import base64
import binascii
import logging
from abc import ABC, abstractmethod
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import replace
from typing import Any

import httpx

from git_packages.domain.entities import (
    BranchInfo,
    FileEntry,
    PackageDescriptor,
    ProviderKey,
    TreeEntry,
)
from git_packages.domain.exceptions import DecodeFailure, InvalidRepositoryUrlError
from git_packages.domain.ports.credential_store import CredentialStore
from git_packages.domain.value_objects import RepositoryIdentity, normalize_directory
from git_packages.infrastructure.auth import TokenAuth
from git_packages.infrastructure.rest_client import RestClient
from git_packages.services.pagination import DEFAULT_PAGE_SIZE, Page, collect_pages
from git_packages.services.tree_walker import DEFAULT_SOURCE_EXTENSION, walk_tree

logger = logging.getLogger(__name__)


def expect_json(data: Any, kind: type, url: str) -> Any:
    """Return *data* if it is a JSON object/array of the given *kind*."""
    if not isinstance(data, kind):
        raise DecodeFailure(
            url, f"expected a JSON {kind.__name__}, got {type(data).__name__}"
        )
    return data


@contextmanager
def payload_shape(url: str) -> Iterator[None]:
    """Report missing or mistyped fields of a payload as DecodeFailure."""
    try:
        yield
    except (KeyError, TypeError, AttributeError) as exc:
        raise DecodeFailure(url, f"unexpected payload shape ({exc!r})") from exc


class BaseProvider(ABC):
    """Template for one Git hosting service.

    Subclasses define URL parsing, API paths, pagination parameters and the
    archive URL template; the request flow of :meth:`get_info` and
    :meth:`validate_directory` is shared.
    """

    key: ProviderKey
    display_name: str

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: CredentialStore,
        *,
        source_extension: str = DEFAULT_SOURCE_EXTENSION,
        page_size: int = DEFAULT_PAGE_SIZE,
        max_concurrent_fetches: int = 10,
    ) -> None:
        self._rest = RestClient(client, default_headers=self._default_headers())
        self._auth = self._build_auth(credentials)
        self._source_extension = source_extension
        self._page_size = page_size
        self._max_concurrent_fetches = max(1, max_concurrent_fetches)

    # ── Capabilities ────────────────────────────────────────────────────

    def name(self) -> str:
        return self.display_name

    def has_credential(self) -> bool:
        return self._auth.has_credential()

    def auth_header(self) -> str | None:
        return self._auth.resolve_header()

    def validate_url(self, url: str) -> bool:
        if not url:
            return False
        try:
            self.parse_url(url)
        except InvalidRepositoryUrlError:
            return False
        return True

    @abstractmethod
    def parse_url(self, url: str) -> RepositoryIdentity:
        """Parse *url* into a RepositoryIdentity or raise InvalidRepositoryUrlError."""

    # ── Public operations ───────────────────────────────────────────────

    async def get_info(self, url: str) -> PackageDescriptor:
        """Fetch repository metadata and branches as a PackageDescriptor."""
        identity = self.parse_url(url)
        auth_header = self.auth_header()
        api_url = self._api_url(identity)
        logger.info("Checking %s repository %s", self.display_name, identity.canonical_url)

        metadata = expect_json(await self._rest.get_json(api_url, auth_header), dict, api_url)
        with payload_shape(api_url):
            name, private, base_url = self._describe(metadata)
        branches = await self._list_branches(identity, metadata, auth_header)

        return PackageDescriptor(
            key=identity.repo_name,
            name=name,
            private=private,
            provider=self.key,
            branches=branches,
            base_url=base_url,
            api_url=api_url,
            warnings=self._branch_warnings(identity, branches),
        )

    async def validate_directory(
        self, url: str, branch: str, directory: str = ""
    ) -> list[FileEntry]:
        """List installable files under *directory* and fetch their contents."""
        identity = self.parse_url(url)
        auth_header = self.auth_header()
        prefix = normalize_directory(directory)

        async def fetch_page(
            page_number: int, previous: Page[TreeEntry] | None
        ) -> Page[TreeEntry]:
            return await self._tree_page(
                identity, branch, prefix, page_number, previous, auth_header
            )

        entries = await walk_tree(
            fetch_page,
            directory=prefix,
            extension=self._source_extension,
            page_size=self._page_size,
        )
        files = [
            FileEntry(path=e.path, fetch_url=self._file_url(identity, branch, e.path))
            for e in entries
        ]
        contents = await self._fetch_contents([f.fetch_url for f in files], auth_header)
        return [replace(f, content=c) for f, c in zip(files, contents)]

    async def fetch_file_content(self, fetch_url: str) -> str:
        """Fetch one file by its API URL and return its text."""
        return await self._fetch_content(fetch_url, self.auth_header())

    # ── Shared helpers ──────────────────────────────────────────────────

    async def _list_branches(
        self,
        identity: RepositoryIdentity,
        metadata: dict[str, Any],
        auth_header: str | None,
    ) -> dict[str, BranchInfo]:
        async def fetch_page(
            page_number: int, previous: Page[BranchInfo] | None
        ) -> Page[BranchInfo]:
            return await self._branch_page(
                identity, metadata, page_number, previous, auth_header
            )

        branches = await collect_pages(fetch_page, self._page_size)
        return {b.name: b for b in branches}

    def _branch_warnings(
        self, identity: RepositoryIdentity, branches: dict[str, BranchInfo]
    ) -> tuple[str, ...]:
        defaults = [name for name, b in branches.items() if b.is_default]
        if len(defaults) <= 1:
            return ()
        logger.warning(
            "%s reports %d default branches for %s: %s",
            self.display_name,
            len(defaults),
            identity.canonical_url,
            ", ".join(defaults),
        )
        return (f"Multiple default branches reported: {', '.join(defaults)}",)

    async def _fetch_contents(
        self, urls: list[str], auth_header: str | None
    ) -> list[str]:
        """Fetch file contents concurrently; results keep the order of *urls*."""
        if not urls:
            return []
        sem = asyncio.Semaphore(self._max_concurrent_fetches)

        async def _fetch_one(url: str) -> str:
            async with sem:
                return await self._fetch_content(url, auth_header)

        tasks = [asyncio.ensure_future(_fetch_one(url)) for url in urls]
        try:
            return list(await asyncio.gather(*tasks))
        except BaseException:
            for task in tasks:
                task.cancel()
            # Collect the cancelled siblings so none is left unretrieved.
            await asyncio.gather(*tasks, return_exceptions=True)
            raise

    async def _fetch_content(self, fetch_url: str, auth_header: str | None) -> str:
        """Decode the base64 ``content`` field of a JSON file payload."""
        payload = await self._rest.get_json(fetch_url, auth_header)
        if not isinstance(payload, dict) or "content" not in payload:
            raise DecodeFailure(fetch_url, "payload has no content field")
        try:
            return base64.b64decode(payload["content"]).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError, TypeError) as exc:
            raise DecodeFailure(fetch_url, str(exc)) from exc

    # ── Provider hooks ──────────────────────────────────────────────────

    def _default_headers(self) -> dict[str, str]:
        return {"Accept": "application/json"}

    def _build_auth(self, credentials: CredentialStore) -> TokenAuth:
        return TokenAuth(credentials, self.key.value)

    @abstractmethod
    def _api_url(self, identity: RepositoryIdentity) -> str:
        """Repository metadata endpoint."""

    @abstractmethod
    def _describe(self, metadata: dict[str, Any]) -> tuple[str, bool, str]:
        """Return ``(name, private, base_url)`` from the metadata payload."""

    @abstractmethod
    async def _branch_page(
        self,
        identity: RepositoryIdentity,
        metadata: dict[str, Any],
        page_number: int,
        previous: Page[BranchInfo] | None,
        auth_header: str | None,
    ) -> Page[BranchInfo]:
        """Fetch one page of branches."""

    @abstractmethod
    async def _tree_page(
        self,
        identity: RepositoryIdentity,
        branch: str,
        prefix: str,
        page_number: int,
        previous: Page[TreeEntry] | None,
        auth_header: str | None,
    ) -> Page[TreeEntry]:
        """Fetch one page of the recursive tree listing."""

    @abstractmethod
    def _file_url(self, identity: RepositoryIdentity, branch: str, path: str) -> str:
        """API URL that returns the content of *path* on *branch*."""

"""Bitbucket Cloud REST API (2.0) provider."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote

import httpx

from git_packages.domain.entities import BranchInfo, ProviderKey, TreeEntry
from git_packages.domain.exceptions import InvalidRepositoryUrlError
from git_packages.domain.ports.credential_store import CredentialStore
from git_packages.domain.value_objects import (
    RepositoryIdentity,
    host_fragment,
    normalize_repo_url,
)
from git_packages.infrastructure.auth import BitbucketAuth, TokenAuth
from git_packages.infrastructure.providers.base import BaseProvider, expect_json, payload_shape
from git_packages.services.pagination import Page

DEFAULT_BITBUCKET_HOST = "bitbucket.org"
DEFAULT_BITBUCKET_API = "https://api.bitbucket.org/2.0"

_ENTRY_TYPES = {"commit_file": "blob", "commit_directory": "tree"}


class BitbucketProvider(BaseProvider):
    """Provider for Bitbucket workspaces; pagination follows ``next`` links."""

    key = ProviderKey.BITBUCKET
    display_name = "Bitbucket"

    def __init__(
        self,
        client: httpx.AsyncClient,
        credentials: CredentialStore,
        *,
        host: str = DEFAULT_BITBUCKET_HOST,
        api_base: str = DEFAULT_BITBUCKET_API,
        **kwargs: Any,
    ) -> None:
        super().__init__(client, credentials, **kwargs)
        self._host = host.lower()
        self._api_base = api_base.rstrip("/")
        escaped = re.escape(self._host)
        # Clone URLs may carry a user name: https://jane@bitbucket.org/acme/plugin.git
        self._url_re = re.compile(
            rf"^(?:https://(?:[^@/\s]+@)?{escaped}/|git@{escaped}:)"
            r"(?P<workspace>[A-Za-z0-9\-_.~{}]+)/(?P<slug>[A-Za-z0-9\-_.]+?)(?:\.git)?"
            r"(?:/\S*)?$"
        )

    def parse_url(self, url: str) -> RepositoryIdentity:
        match = self._url_re.match(normalize_repo_url(url))
        if not match:
            raise InvalidRepositoryUrlError(url, host_fragment(url))
        workspace, slug = match["workspace"], match["slug"]
        return RepositoryIdentity(
            host=self.key,
            id=f"{workspace}/{slug}",
            repo_name=slug,
            canonical_url=f"https://{self._host}/{workspace}/{slug}",
        )

    def _build_auth(self, credentials: CredentialStore) -> TokenAuth:
        return BitbucketAuth(credentials, self.key.value)

    def _api_url(self, identity: RepositoryIdentity) -> str:
        return f"{self._api_base}/repositories/{identity.id}"

    def _describe(self, metadata: dict[str, Any]) -> tuple[str, bool, str]:
        html = metadata.get("links", {}).get("html", {}).get("href", "")
        return metadata["name"], bool(metadata.get("is_private", False)), html

    async def _branch_page(
        self,
        identity: RepositoryIdentity,
        metadata: dict[str, Any],
        page_number: int,
        previous: Page[BranchInfo] | None,
        auth_header: str | None,
    ) -> Page[BranchInfo]:
        base_url = f"https://{self._host}/{identity.id}"
        url = f"{self._api_url(identity)}/refs/branches"
        data = await self._get_page(
            url, previous, auth_header, params={"pagelen": str(self._page_size)}
        )
        with payload_shape(url):
            main_branch = (metadata.get("mainbranch") or {}).get("name")
            items = [
                BranchInfo(
                    name=b["name"],
                    web_url=b.get("links", {}).get("html", {}).get("href")
                    or f"{base_url}/branch/{_ref_path(b['name'])}",
                    archive_zip_url=f"{base_url}/get/{_ref_path(b['name'])}.zip",
                    is_default=b["name"] == main_branch,
                )
                for b in expect_json(data.get("values", []), list, url)
            ]
        return Page(items=items, is_last=data.get("next") is None, next_url=data.get("next"))

    async def _tree_page(
        self,
        identity: RepositoryIdentity,
        branch: str,
        prefix: str,
        page_number: int,
        previous: Page[TreeEntry] | None,
        auth_header: str | None,
    ) -> Page[TreeEntry]:
        # Deep enough for direct children of the prefix, no deeper.
        max_depth = prefix.count("/") + 1
        url = f"{self._api_url(identity)}/src/{_ref_path(branch)}/"
        data = await self._get_page(
            url,
            previous,
            auth_header,
            params={"max_depth": str(max_depth), "pagelen": str(self._page_size)},
        )
        with payload_shape(url):
            items = [
                TreeEntry(path=e["path"], type=_ENTRY_TYPES.get(e.get("type", ""), e.get("type", "")))
                for e in expect_json(data.get("values", []), list, url)
            ]
        return Page(items=items, is_last=data.get("next") is None, next_url=data.get("next"))

    async def _get_page(
        self,
        first_url: str,
        previous: Page[Any] | None,
        auth_header: str | None,
        params: dict[str, str],
    ) -> dict[str, Any]:
        # ``next`` links already carry every query parameter.
        if previous is not None and previous.next_url:
            url = previous.next_url
            data = await self._rest.get_json(url, auth_header)
        else:
            url = first_url
            data = await self._rest.get_json(url, auth_header, params=params)
        return expect_json(data, dict, url)

    def _file_url(self, identity: RepositoryIdentity, branch: str, path: str) -> str:
        return f"{self._api_url(identity)}/src/{_ref_path(branch)}/{quote(path)}"

    async def _fetch_content(self, fetch_url: str, auth_header: str | None) -> str:
        # The src endpoint serves raw file bodies rather than JSON.
        return await self._rest.get_text(fetch_url, auth_header)


def _ref_path(branch: str) -> str:
    # Bitbucket resolves slash-named branches from literal slashes; %2F is not matched.
    return quote(branch, safe="/")

"""GitHub REST API provider."""

from __future__ import annotations

import logging
import re
from typing import Any
from urllib.parse import quote, urlencode

from git_packages.domain.entities import BranchInfo, ProviderKey, TreeEntry
from git_packages.domain.exceptions import DecodeFailure, InvalidRepositoryUrlError
from git_packages.domain.value_objects import (
    RepositoryIdentity,
    host_fragment,
    normalize_repo_url,
)
from git_packages.infrastructure.providers.base import BaseProvider, expect_json, payload_shape
from git_packages.services.pagination import Page

logger = logging.getLogger(__name__)

_GITHUB_WEB = "https://github.com"
_GITHUB_API = "https://api.github.com"
_CODELOAD = "https://codeload.github.com"

_GITHUB_URL_RE = re.compile(
    r"^(?:https://github\.com/|git@github\.com:)"
    r"(?P<owner>[A-Za-z0-9\-_.]+)/(?P<repo>[A-Za-z0-9\-_.]+?)(?:\.git)?"
    r"(?:/(?:tree|blob|releases|issues|pulls)(?:/\S*)?)?$"
)


class GitHubProvider(BaseProvider):
    """Provider for github.com repositories (REST API v3)."""

    key = ProviderKey.GITHUB
    display_name = "Github"

    def parse_url(self, url: str) -> RepositoryIdentity:
        match = _GITHUB_URL_RE.match(normalize_repo_url(url))
        if not match:
            raise InvalidRepositoryUrlError(url, host_fragment(url))
        owner, repo = match["owner"], match["repo"]
        return RepositoryIdentity(
            host=self.key,
            id=f"{owner}/{repo}",
            repo_name=repo,
            canonical_url=f"{_GITHUB_WEB}/{owner}/{repo}",
        )

    def _default_headers(self) -> dict[str, str]:
        return {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _api_url(self, identity: RepositoryIdentity) -> str:
        return f"{_GITHUB_API}/repos/{identity.id}"

    def _describe(self, metadata: dict[str, Any]) -> tuple[str, bool, str]:
        return (
            metadata["name"],
            bool(metadata.get("private", False)),
            metadata.get("html_url", ""),
        )

    async def _branch_page(
        self,
        identity: RepositoryIdentity,
        metadata: dict[str, Any],
        page_number: int,
        previous: Page[BranchInfo] | None,
        auth_header: str | None,
    ) -> Page[BranchInfo]:
        # Branch objects carry no default flag; the repository does.
        default_branch = metadata.get("default_branch")
        base_url = metadata.get("html_url") or f"{_GITHUB_WEB}/{identity.id}"
        url = f"{self._api_url(identity)}/branches"
        data = await self._rest.get_json(
            url,
            auth_header,
            params={"per_page": str(self._page_size), "page": str(page_number)},
        )
        with payload_shape(url):
            return Page(
                items=[
                    BranchInfo(
                        name=b["name"],
                        web_url=f"{base_url}/tree/{_ref_path(b['name'])}",
                        archive_zip_url=(
                            f"{_CODELOAD}/{identity.id}/zip/refs/heads/{_ref_path(b['name'])}"
                        ),
                        is_default=b["name"] == default_branch,
                    )
                    for b in expect_json(data, list, url)
                ]
            )

    async def _tree_page(
        self,
        identity: RepositoryIdentity,
        branch: str,
        prefix: str,
        page_number: int,
        previous: Page[TreeEntry] | None,
        auth_header: str | None,
    ) -> Page[TreeEntry]:
        # The git trees API returns the whole recursive tree in one response.
        url = f"{self._api_url(identity)}/git/trees/{_ref_path(branch)}"
        data = expect_json(
            await self._rest.get_json(url, auth_header, params={"recursive": "1"}),
            dict,
            url,
        )
        if data.get("truncated"):
            logger.warning(
                "GitHub truncated the tree of %s@%s; refusing a partial listing",
                identity.id,
                branch,
            )
            raise DecodeFailure(url, "recursive tree listing was truncated")
        with payload_shape(url):
            return Page(
                items=[
                    TreeEntry(path=e["path"], type=e.get("type", "blob"))
                    for e in expect_json(data.get("tree", []), list, url)
                ],
                is_last=True,
            )

    def _file_url(self, identity: RepositoryIdentity, branch: str, path: str) -> str:
        return f"{self._api_url(identity)}/contents/{quote(path)}?{urlencode({'ref': branch})}"


def _ref_path(branch: str) -> str:
    # github.com and codeload resolve slash-named branches from literal slashes.
    return quote(branch, safe="/")

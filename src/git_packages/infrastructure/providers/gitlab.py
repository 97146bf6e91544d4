"""GitLab REST API (v4) provider."""

from __future__ import annotations

import re
from typing import Any
from urllib.parse import quote, urlencode

from git_packages.domain.entities import BranchInfo, ProviderKey, TreeEntry
from git_packages.domain.exceptions import InvalidRepositoryUrlError
from git_packages.domain.value_objects import (
    RepositoryIdentity,
    host_fragment,
    normalize_repo_url,
)
from git_packages.infrastructure.providers.base import BaseProvider, expect_json, payload_shape
from git_packages.services.pagination import Page

_GITLAB_WEB = "https://gitlab.com"
_GITLAB_API = "https://gitlab.com/api/v4"

_GITLAB_URL_RE = re.compile(r"^(?:https://gitlab\.com/|git@gitlab\.com:)(?P<path>[^\s?#]+)$")


class GitLabProvider(BaseProvider):
    """Provider for gitlab.com projects, including nested groups."""

    key = ProviderKey.GITLAB
    display_name = "Gitlab"

    def parse_url(self, url: str) -> RepositoryIdentity:
        # UI links such as ``…/my-plugin/-/tree/main`` name the same project.
        normalized = normalize_repo_url(url.strip().split("/-/")[0])
        match = _GITLAB_URL_RE.match(normalized)
        segments = match["path"].split("/") if match else []
        if len(segments) < 2 or not all(segments):
            raise InvalidRepositoryUrlError(url, host_fragment(url))

        path = "/".join(segments)
        return RepositoryIdentity(
            host=self.key,
            id=quote(path, safe=""),
            repo_name=segments[-1],
            canonical_url=f"{_GITLAB_WEB}/{path}",
        )

    def _api_url(self, identity: RepositoryIdentity) -> str:
        return f"{_GITLAB_API}/projects/{identity.id}"

    def _describe(self, metadata: dict[str, Any]) -> tuple[str, bool, str]:
        return (
            metadata["name"],
            metadata.get("visibility") == "private",
            metadata.get("web_url", ""),
        )

    async def _branch_page(
        self,
        identity: RepositoryIdentity,
        metadata: dict[str, Any],
        page_number: int,
        previous: Page[BranchInfo] | None,
        auth_header: str | None,
    ) -> Page[BranchInfo]:
        api_url = self._api_url(identity)
        url = f"{api_url}/repository/branches"
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
                        web_url=b.get("web_url", ""),
                        archive_zip_url=f"{api_url}/repository/archive.zip?{urlencode({'sha': b['name']})}",
                        is_default=bool(b.get("default", False)),
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
        url = f"{self._api_url(identity)}/repository/tree"
        data = await self._rest.get_json(
            url,
            auth_header,
            params={
                "ref": branch,
                "recursive": "1",
                "per_page": str(self._page_size),
                "page": str(page_number),
            },
        )
        with payload_shape(url):
            return Page(
                items=[
                    TreeEntry(path=e["path"], type=e.get("type", "blob"))
                    for e in expect_json(data, list, url)
                ]
            )

    def _file_url(self, identity: RepositoryIdentity, branch: str, path: str) -> str:
        return (
            f"{self._api_url(identity)}/repository/files/{quote(path, safe='')}"
            f"?{urlencode({'ref': branch})}"
        )

"""Tests for GitHubProvider against a mocked GitHub REST API."""

import logging

import pytest
from conftest import b64, blobs

from git_packages.domain.entities import ProviderKey
from git_packages.domain.exceptions import DecodeFailure, HttpFailure
from git_packages.infrastructure.credentials import MappingCredentialStore
from git_packages.infrastructure.providers.github import GitHubProvider

URL = "https://github.com/acme/my-plugin"
API = "/repos/acme/my-plugin"
API_URL = "https://api.github.com/repos/acme/my-plugin"


@pytest.fixture
def github_repo(fake_api):
    fake_api.add(
        API,
        {
            "name": "my-plugin",
            "private": True,
            "html_url": URL,
            "default_branch": "main",
        },
    )
    fake_api.add(f"{API}/branches", [{"name": "dev"}, {"name": "main"}])
    return fake_api


class TestGetInfo:
    async def test_descriptor(self, github, github_repo):
        info = await github.get_info("git@github.com:acme/my-plugin.git")

        assert info.key == "my-plugin"
        assert info.private is True
        assert info.provider == ProviderKey.GITHUB
        assert info.api_url == API_URL
        assert info.base_url == URL
        assert list(info.branches) == ["dev", "main"]
        assert info.default_branches == ["main"]
        assert info.branches["dev"].web_url == f"{URL}/tree/dev"
        assert (
            info.branches["main"].archive_zip_url
            == "https://codeload.github.com/acme/my-plugin/zip/refs/heads/main"
        )

    async def test_headers(self, http_client, github_repo):
        provider = GitHubProvider(http_client, MappingCredentialStore({"github": "ghp_x"}))
        await provider.get_info(URL)
        for request in github_repo.requests:
            assert request.headers["Authorization"] == "Bearer ghp_x"
            assert request.headers["Accept"] == "application/vnd.github+json"
            assert request.headers["X-GitHub-Api-Version"] == "2022-11-28"

    async def test_branch_pagination_parameters(self, github, github_repo):
        await github.get_info(URL)
        branch_request = github_repo.requests_to(f"{API}/branches")[0]
        assert branch_request.url.params["per_page"] == "100"
        assert branch_request.url.params["page"] == "1"

    async def test_slash_named_branch_urls(self, github, github_repo):
        github_repo.add(f"{API}/branches", [{"name": "feature/x"}])
        info = await github.get_info(URL)
        branch = info.branches["feature/x"]
        assert branch.web_url == f"{URL}/tree/feature/x"
        assert (
            branch.archive_zip_url
            == "https://codeload.github.com/acme/my-plugin/zip/refs/heads/feature/x"
        )

    async def test_metadata_without_name(self, github, fake_api):
        fake_api.add(API, {"private": False, "html_url": URL})
        with pytest.raises(DecodeFailure):
            await github.get_info(URL)
        assert fake_api.requests_to(f"{API}/branches") == []

    async def test_exhausted_quota(self, github, fake_api):
        fake_api.add(
            API,
            {"message": "API rate limit exceeded"},
            status=403,
            headers={"x-ratelimit-remaining": "0"},
        )
        with pytest.raises(HttpFailure) as exc_info:
            await github.get_info(URL)
        assert exc_info.value.code == "rate_limited"


class TestValidateDirectory:
    async def test_single_tree_response(self, github, fake_api):
        fake_api.add(
            f"{API}/git/trees/main",
            {
                "sha": "abc",
                "tree": blobs("style.css", "functions.php", "inc/setup.php")
                + [{"path": "inc", "type": "tree"}, {"path": "lib.php", "type": "commit"}],
                "truncated": False,
            },
            params={"recursive": "1"},
        )
        fake_api.add(f"{API}/contents/style.css", {"content": b64("/* Theme */"), "encoding": "base64"})
        fake_api.add(f"{API}/contents/functions.php", {"content": b64("<?php"), "encoding": "base64"})

        files = await github.validate_directory(URL, "main")

        assert [(f.path, f.content) for f in files] == [
            ("style.css", "/* Theme */"),
            ("functions.php", "<?php"),
        ]
        assert files[1].fetch_url == f"{API_URL}/contents/functions.php?ref=main"
        assert len(fake_api.requests_to(f"{API}/git/trees/main")) == 1

    async def test_subdirectory_paths_keep_slashes(self, github, fake_api):
        fake_api.add(f"{API}/git/trees/main", {"tree": blobs("plugins/hello/hello.php")})
        fake_api.add(f"{API}/contents/plugins/hello/hello.php", {"content": b64("<?php")})

        files = await github.validate_directory(URL, "main", "plugins/hello")

        assert files[0].fetch_url == f"{API_URL}/contents/plugins/hello/hello.php?ref=main"
        assert files[0].content == "<?php"

    async def test_truncated_tree_fails(self, github, fake_api, caplog):
        fake_api.add(
            f"{API}/git/trees/main",
            {"tree": blobs("a.php"), "truncated": True},
        )
        with caplog.at_level(logging.WARNING), pytest.raises(DecodeFailure) as exc_info:
            await github.validate_directory(URL, "main")
        assert exc_info.value.code == "upstream_error"
        assert "truncated" in caplog.text
        assert fake_api.requests_to(f"{API}/contents/a.php") == []

    async def test_slash_named_branch(self, github, fake_api):
        fake_api.add(f"{API}/git/trees/feature/x", {"tree": blobs("a.php")})
        fake_api.add(f"{API}/contents/a.php", {"content": b64("<?php")})

        files = await github.validate_directory(URL, "feature/x")

        assert files[0].fetch_url == f"{API_URL}/contents/a.php?ref=feature%2Fx"
        assert files[0].content == "<?php"

    async def test_tree_field_not_a_list(self, github, fake_api):
        fake_api.add(f"{API}/git/trees/main", {"tree": "oops"})
        with pytest.raises(DecodeFailure):
            await github.validate_directory(URL, "main")

    async def test_unknown_branch(self, github, fake_api):
        with pytest.raises(HttpFailure) as exc_info:
            await github.validate_directory(URL, "missing")
        assert exc_info.value.code == "not_found"

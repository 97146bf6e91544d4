"""Tests for the REST surface via FastAPI's TestClient."""

import base64

import httpx
import pytest
from conftest import b64, blobs
from fastapi.testclient import TestClient

from git_packages.infrastructure.config import Settings
from git_packages.infrastructure.credentials import MappingCredentialStore
from git_packages.interface.app import create_app
from git_packages.interface.dependencies import build_providers, get_package_service
from git_packages.interface.routes import decode_repository_url
from git_packages.services.package_service import PackageService
from git_packages.services.registry import ProviderRegistry

REPO_URL = "https://gitlab.com/acme/my-plugin"
GITLAB_API = "/api/v4/projects/acme%2Fmy-plugin"


@pytest.fixture
def api_client(http_client):
    settings = Settings(_env_file=None)
    credentials = MappingCredentialStore({"gitlab": "glpat-1"})
    service = PackageService(
        ProviderRegistry(build_providers(http_client, credentials, settings))
    )
    app = create_app()
    app.dependency_overrides[get_package_service] = lambda: service
    return TestClient(app)


@pytest.fixture
def gitlab_project(fake_api):
    fake_api.add(
        GITLAB_API,
        {"name": "my-plugin", "visibility": "public", "web_url": REPO_URL},
    )
    fake_api.add(
        f"{GITLAB_API}/repository/branches",
        [{"name": "main", "web_url": f"{REPO_URL}/-/tree/main", "default": True}],
    )
    return fake_api


def _encoded(url):
    return base64.b64encode(url.encode()).decode()


class TestDecodeRepositoryUrl:
    def test_plain(self):
        assert decode_repository_url(REPO_URL) == REPO_URL

    def test_standard_base64(self):
        assert decode_repository_url(_encoded(REPO_URL)) == REPO_URL

    def test_urlsafe_base64_without_padding(self):
        encoded = base64.urlsafe_b64encode(b"git@gitlab.com:acme/x.git").decode().rstrip("=")
        assert decode_repository_url(encoded) == "git@gitlab.com:acme/x.git"

    def test_garbage_is_passed_through(self):
        assert decode_repository_url("not-a-url") == "not-a-url"


class TestProviders:
    def test_lists_providers(self, api_client):
        resp = api_client.get("/providers")
        assert resp.status_code == 200
        assert resp.json() == [
            {"key": "github", "name": "Github", "hasToken": False},
            {"key": "gitlab", "name": "Gitlab", "hasToken": True},
            {"key": "bitbucket", "name": "Bitbucket", "hasToken": False},
        ]


class TestCheck:
    def test_base64_url(self, api_client, gitlab_project):
        resp = api_client.get(f"/providers/check/{_encoded(REPO_URL)}")

        assert resp.status_code == 200
        assert resp.json() == {
            "key": "my-plugin",
            "name": "my-plugin",
            "private": False,
            "provider": "gitlab",
            "branches": {
                "main": {
                    "name": "main",
                    "url": f"{REPO_URL}/-/tree/main",
                    "zip": f"https://gitlab.com{GITLAB_API}/repository/archive.zip?sha=main",
                    "default": True,
                }
            },
            "baseUrl": REPO_URL,
            "apiUrl": f"https://gitlab.com{GITLAB_API}",
            "warnings": [],
        }
        assert set(gitlab_project.auth_headers) == {"Bearer glpat-1"}

    def test_invalid_url(self, api_client, fake_api):
        resp = api_client.get(f"/providers/check/{_encoded('https://example.com/foo')}")
        assert resp.status_code == 422
        body = resp.json()
        assert body["status"] == "error"
        assert body["code"] == "invalid_url"
        assert "example.com" in body["message"]
        assert fake_api.requests == []

    def test_already_installed(self, api_client, gitlab_project):
        resp = api_client.get(
            f"/providers/check/{_encoded(REPO_URL)}", params={"installed": ["my-plugin"]}
        )
        assert resp.status_code == 409
        assert resp.json()["code"] == "already_installed"

    @pytest.mark.parametrize(
        ("status", "headers", "http_status", "code"),
        [
            (401, None, 401, "unauthorized"),
            (404, None, 404, "not_found"),
            (429, None, 429, "rate_limited"),
            (503, None, 502, "upstream_error"),
        ],
    )
    def test_upstream_errors(self, api_client, fake_api, status, headers, http_status, code):
        fake_api.add(GITLAB_API, {"message": "error"}, status=status, headers=headers)
        resp = api_client.get(f"/providers/check/{_encoded(REPO_URL)}")
        assert resp.status_code == http_status
        assert resp.json()["code"] == code

    def test_rate_limit_reset_time(self, api_client, fake_api):
        fake_api.add(
            GITLAB_API,
            {"message": "slow down"},
            status=429,
            headers={"X-RateLimit-Reset": "0"},
        )
        resp = api_client.get(f"/providers/check/{_encoded(REPO_URL)}")
        assert "1970-01-01 00:00:00 UTC" in resp.json()["message"]

    def test_transport_failure(self, fake_api):
        def handler(request):
            raise httpx.ConnectError("unreachable", request=request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        service = PackageService(
            ProviderRegistry(
                build_providers(client, MappingCredentialStore(), Settings(_env_file=None))
            )
        )
        app = create_app()
        app.dependency_overrides[get_package_service] = lambda: service

        resp = TestClient(app).get(f"/providers/check/{_encoded(REPO_URL)}")

        assert resp.status_code == 502
        assert resp.json()["code"] == "upstream_error"


class TestValidateDir:
    def test_returns_files(self, api_client, fake_api):
        fake_api.add(
            f"{GITLAB_API}/repository/tree",
            blobs("style.css", "plugins/hello/hello.php", "plugins/hello/lib/x.php"),
        )
        fake_api.add(f"{GITLAB_API}/repository/files/style.css", {"content": b64("/* T */")})
        fake_api.add(
            f"{GITLAB_API}/repository/files/plugins%2Fhello%2Fhello.php",
            {"content": b64("<?php")},
        )

        resp = api_client.get(
            "/providers/validate-dir",
            params={"url": REPO_URL, "branch": "main", "dir": "plugins/hello/"},
        )

        assert resp.status_code == 200
        assert resp.json() == [
            {
                "file": "style.css",
                "fileUrl": f"https://gitlab.com{GITLAB_API}/repository/files/style.css?ref=main",
                "content": "/* T */",
            },
            {
                "file": "plugins/hello/hello.php",
                "fileUrl": (
                    f"https://gitlab.com{GITLAB_API}/repository/files/"
                    "plugins%2Fhello%2Fhello.php?ref=main"
                ),
                "content": "<?php",
            },
        ]

    def test_malformed_tree_is_upstream_error(self, api_client, fake_api):
        fake_api.add(f"{GITLAB_API}/repository/tree", {"message": "weird"})
        resp = api_client.get(
            "/providers/validate-dir", params={"url": REPO_URL, "branch": "main"}
        )
        assert resp.status_code == 502
        assert resp.json()["code"] == "upstream_error"

    def test_missing_branch_parameter(self, api_client):
        resp = api_client.get("/providers/validate-dir", params={"url": REPO_URL})
        assert resp.status_code == 422
        assert resp.json()["code"] == "invalid_input"

    def test_empty_result(self, api_client, fake_api):
        fake_api.add(f"{GITLAB_API}/repository/tree", [])
        resp = api_client.get(
            "/providers/validate-dir", params={"url": REPO_URL, "branch": "main"}
        )
        assert resp.status_code == 200
        assert resp.json() == []


def test_health(api_client):
    assert api_client.get("/health").json() == {"status": "ok"}

"""FastAPI dependency injection wiring."""

from __future__ import annotations

from functools import lru_cache

import httpx

from git_packages.domain.ports.credential_store import CredentialStore
from git_packages.domain.ports.provider import Provider
from git_packages.infrastructure.config import Settings, get_settings
from git_packages.infrastructure.credentials import SettingsCredentialStore
from git_packages.infrastructure.providers.bitbucket import BitbucketProvider
from git_packages.infrastructure.providers.github import GitHubProvider
from git_packages.infrastructure.providers.gitlab import GitLabProvider
from git_packages.services.package_service import PackageService
from git_packages.services.registry import ProviderRegistry

_http_client: httpx.AsyncClient | None = None


async def startup() -> None:
    """Initialise shared resources — called from the lifespan context manager."""
    global _http_client  # noqa: PLW0603

    settings = get_settings()
    _http_client = httpx.AsyncClient(timeout=httpx.Timeout(settings.http_timeout))


async def shutdown() -> None:
    """Release shared resources."""
    global _http_client  # noqa: PLW0603

    if _http_client:
        await _http_client.aclose()
        _http_client = None


@lru_cache(maxsize=1)
def _settings() -> Settings:
    return get_settings()


def build_providers(
    client: httpx.AsyncClient,
    credentials: CredentialStore,
    settings: Settings,
) -> list[Provider]:
    """Instantiate every provider in matching order: GitHub, GitLab, Bitbucket."""
    common = {
        "source_extension": settings.source_extension,
        "page_size": settings.page_size,
        "max_concurrent_fetches": settings.max_concurrent_fetches,
    }
    return [
        GitHubProvider(client, credentials, **common),
        GitLabProvider(client, credentials, **common),
        BitbucketProvider(
            client,
            credentials,
            host=settings.bitbucket_host,
            api_base=settings.bitbucket_api_url,
            **common,
        ),
    ]


def get_package_service() -> PackageService:
    """Build the package service with providers bound to the shared client."""
    settings = _settings()

    assert _http_client is not None, "startup() was not called"

    credentials = SettingsCredentialStore(settings)
    registry = ProviderRegistry(build_providers(_http_client, credentials, settings))
    return PackageService(registry)

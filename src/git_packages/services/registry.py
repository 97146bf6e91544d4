"""Provider registry — pick the provider that owns a repository URL."""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from git_packages.domain.entities import ProviderKey
from git_packages.domain.exceptions import InvalidRepositoryUrlError
from git_packages.domain.ports.provider import Provider
from git_packages.domain.value_objects import host_fragment


class ProviderRegistry:
    """Registered providers, tried in a fixed order; the first match wins."""

    def __init__(self, providers: Iterable[Provider]) -> None:
        self._providers: list[Provider] = []
        for provider in providers:
            if any(p.key == provider.key for p in self._providers):
                raise ValueError(f"Provider {provider.key.value!r} registered twice")
            self._providers.append(provider)

    def __iter__(self) -> Iterator[Provider]:
        return iter(self._providers)

    def __len__(self) -> int:
        return len(self._providers)

    def get(self, key: ProviderKey | str) -> Provider:
        """Return the provider registered under *key*."""
        for provider in self._providers:
            if provider.key == key:
                return provider
        raise KeyError(key)

    def matching(self, url: str) -> list[Provider]:
        """Every provider that accepts *url* (at most one for a sane registry)."""
        return [p for p in self._providers if p.validate_url(url)]

    def resolve(self, url: str) -> Provider:
        """Return the first provider accepting *url*.

        Raises:
            InvalidRepositoryUrlError: No registered provider accepts *url*.
        """
        for provider in self._providers:
            if provider.validate_url(url):
                return provider
        raise InvalidRepositoryUrlError(url, host_fragment(url))

    def describe(self) -> list[dict[str, object]]:
        """Summary of each provider for settings screens."""
        return [
            {"key": p.key.value, "name": p.name(), "hasToken": p.has_credential()}
            for p in self._providers
        ]

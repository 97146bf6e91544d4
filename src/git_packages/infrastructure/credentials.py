"""Credential stores — implement the CredentialStore port."""

from __future__ import annotations

from collections.abc import Mapping

from git_packages.infrastructure.config import Settings


class SettingsCredentialStore:
    """Tokens read from ``GITHUB_TOKEN`` / ``GITLAB_TOKEN`` / ``BITBUCKET_TOKEN``."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    def get_token(self, provider_key: str) -> str | None:
        secret = getattr(self._settings, f"{provider_key}_token", None)
        if secret is None:
            return None
        return secret.get_secret_value() or None


class MappingCredentialStore:
    """Tokens held in a plain mapping of provider key → token."""

    def __init__(self, tokens: Mapping[str, str | None] | None = None) -> None:
        self._tokens = dict(tokens or {})

    def get_token(self, provider_key: str) -> str | None:
        return self._tokens.get(provider_key) or None

"""Port: credential store — tokens are owned and persisted elsewhere."""

from __future__ import annotations

from typing import Protocol


class CredentialStore(Protocol):
    """Read-only access to per-provider access tokens."""

    def get_token(self, provider_key: str) -> str | None:
        """Return the stored token for *provider_key*, or None."""
        ...

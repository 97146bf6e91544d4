"""Domain exception hierarchy.

Each exception carries a stable ``code`` that the interface layer maps to an
HTTP status.  Inner layers raise these; nothing in between swallows or
re-wraps them, so callers can still tell a bad URL from a missing token.
"""

from __future__ import annotations

from collections.abc import Mapping


class GitPackagesError(Exception):
    """Base exception for the entire application."""

    code = "upstream_error"


# ── Input validation ────────────────────────────────────────────────────────


class InvalidRepositoryUrlError(GitPackagesError):
    """The supplied URL is not a repository of any known provider."""

    code = "invalid_url"

    def __init__(self, url: str, host: str) -> None:
        self.url = url
        self.host = host
        super().__init__(f'"{url}" is not a valid repository URL (host: {host or "unknown"}).')


# ── Remote request failures ─────────────────────────────────────────────────


class RequestFailure(GitPackagesError):
    """A request to the remote host did not yield a usable response."""


class TransportFailure(RequestFailure):
    """DNS, connect, TLS or timeout error — no HTTP response was received."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Network error fetching {url}: {reason}")


class HttpFailure(RequestFailure):
    """The remote host answered with a non-2xx status."""

    def __init__(
        self,
        url: str,
        status: int,
        body: str = "",
        headers: Mapping[str, str] | None = None,
    ) -> None:
        self.url = url
        self.status = status
        self.body = body
        self.headers = dict(headers or {})
        super().__init__(f"{url} returned HTTP {status}")

    @property
    def code(self) -> str:  # type: ignore[override]
        if self.status == 429:
            return "rate_limited"
        if self.status == 403 and self.headers.get("x-ratelimit-remaining") == "0":
            return "rate_limited"
        if self.status in (401, 403):
            return "unauthorized"
        if self.status == 404:
            return "not_found"
        return "upstream_error"


class DecodeFailure(RequestFailure):
    """The response body could not be decoded."""

    def __init__(self, url: str, reason: str) -> None:
        self.url = url
        self.reason = reason
        super().__init__(f"Could not decode response from {url}: {reason}")


# ── Package-level checks ────────────────────────────────────────────────────


class AlreadyInstalledError(GitPackagesError):
    """The resolved repository key collides with an installed package."""

    code = "already_installed"

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f'A package with the key "{key}" is already installed.')

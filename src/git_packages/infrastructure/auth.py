"""Authorization header resolution per provider."""

from __future__ import annotations

import base64

from git_packages.domain.ports.credential_store import CredentialStore


class TokenAuth:
    """Turn the stored provider token into an ``Authorization`` header value.

    Tokens are often pasted with a trailing newline, so the stored value is
    trimmed before use.  No token means unauthenticated requests.
    """

    def __init__(
        self,
        credentials: CredentialStore,
        provider_key: str,
        scheme: str = "Bearer",
    ) -> None:
        self._credentials = credentials
        self._provider_key = provider_key
        self._scheme = scheme

    def token(self) -> str | None:
        raw = self._credentials.get_token(self._provider_key)
        if raw is None:
            return None
        return raw.strip() or None

    def has_credential(self) -> bool:
        return self.token() is not None

    def resolve_header(self) -> str | None:
        token = self.token()
        if token is None:
            return None
        return f"{self._scheme} {token}"


class BitbucketAuth(TokenAuth):
    """Bitbucket accepts access tokens (Bearer) and app passwords (Basic).

    A stored value of the form ``username:app_password`` is sent as HTTP
    Basic credentials; anything else is treated as an access token.
    """

    def resolve_header(self) -> str | None:
        token = self.token()
        if token is None:
            return None
        if ":" in token:
            encoded = base64.b64encode(token.encode("utf-8")).decode("ascii")
            return f"Basic {encoded}"
        return f"Bearer {token}"

"""Value objects — self-validating domain primitives."""

from __future__ import annotations

import re
from dataclasses import dataclass

from git_packages.domain.entities import ProviderKey

_HOST_RE = re.compile(r"^(?:[A-Za-z][A-Za-z0-9+.\-]*://)?(?:[^@/\s]+@)?(?P<host>[^/:\s]*)")


@dataclass(frozen=True, slots=True)
class RepositoryIdentity:
    """Canonical location of a repository on one provider.

    ``id`` is exactly what the provider's REST API expects as a path
    component, already percent-encoded where the API demands it
    (``acme%2Fmy-plugin`` for GitLab, ``acme/my-plugin`` for GitHub).
    """

    host: ProviderKey
    id: str
    repo_name: str
    canonical_url: str


def host_fragment(url: str) -> str:
    """Best-effort host part of *url*, for error messages.

    >>> host_fragment("https://example.com/foo")
    'example.com'
    >>> host_fragment("git@gitlab.com:acme/plugin.git")
    'gitlab.com'
    """
    match = _HOST_RE.match(url.strip())
    return match["host"].lower() if match else ""


def normalize_repo_url(url: str) -> str:
    """Strip whitespace, trailing slashes and a trailing ``.git`` suffix."""
    url = url.strip().rstrip("/")
    if url.endswith(".git"):
        url = url[: -len(".git")]
    return url.rstrip("/")


def normalize_directory(directory: str) -> str:
    """Turn a user-supplied directory into a tree-path prefix.

    ``""`` and ``"/"`` mean the repository root; anything else gets exactly
    one trailing slash and no leading one.
    """
    directory = directory.strip().strip("/")
    return f"{directory}/" if directory else ""

"""Port: Git hosting provider — defined by the domain, implemented by infrastructure."""

from __future__ import annotations

from typing import Protocol

from git_packages.domain.entities import FileEntry, PackageDescriptor, ProviderKey
from git_packages.domain.value_objects import RepositoryIdentity


class Provider(Protocol):
    """Uniform contract implemented once per Git hosting service."""

    key: ProviderKey

    def name(self) -> str:
        """Human-readable provider name."""
        ...

    def has_credential(self) -> bool:
        """Return True when a token is configured for this provider."""
        ...

    def validate_url(self, url: str) -> bool:
        """Return True when *url* is a repository URL of this provider."""
        ...

    def parse_url(self, url: str) -> RepositoryIdentity:
        """Parse *url* or raise ``InvalidRepositoryUrlError``."""
        ...

    def auth_header(self) -> str | None:
        """Return the Authorization header value, if a token is configured."""
        ...

    async def get_info(self, url: str) -> PackageDescriptor:
        """Return repository metadata and branches."""
        ...

    async def validate_directory(
        self, url: str, branch: str, directory: str = ""
    ) -> list[FileEntry]:
        """Return the installable files under *directory*, contents included."""
        ...

    async def fetch_file_content(self, fetch_url: str) -> str:
        """Return the decoded text content of a single file."""
        ...

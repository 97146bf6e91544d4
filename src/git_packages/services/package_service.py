"""Package use cases — check a repository, then validate one of its directories.

The service depends only on the :class:`ProviderRegistry`; the interface
layer injects concrete providers at runtime.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable

from git_packages.domain.entities import FileEntry, PackageDescriptor
from git_packages.domain.exceptions import AlreadyInstalledError
from git_packages.services.registry import ProviderRegistry

logger = logging.getLogger(__name__)


class PackageService:
    """Orchestrates the two user-facing steps of adding a Git package.

    Parameters
    ----------
    registry:
        Providers to select from, in matching order.
    """

    def __init__(self, registry: ProviderRegistry) -> None:
        self._registry = registry

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    async def check_repository(
        self, url: str, installed_keys: Iterable[str] = ()
    ) -> PackageDescriptor:
        """Resolve *url* and return its PackageDescriptor.

        Raises ``AlreadyInstalledError`` when the repository key is one of
        *installed_keys*.
        """
        provider = self._registry.resolve(url)
        descriptor = await provider.get_info(url)
        if descriptor.key in set(installed_keys):
            raise AlreadyInstalledError(descriptor.key)
        logger.info(
            "Resolved %s as %s package %r with %d branch(es)",
            url,
            provider.name(),
            descriptor.key,
            len(descriptor.branches),
        )
        return descriptor

    async def validate_directory(
        self, url: str, branch: str, directory: str = ""
    ) -> list[FileEntry]:
        """Return the installable files under *directory*; empty is valid."""
        provider = self._registry.resolve(url)
        files = await provider.validate_directory(url, branch, directory)
        if not files:
            logger.info("No installable files under %r of %s@%s", directory, url, branch)
        return files

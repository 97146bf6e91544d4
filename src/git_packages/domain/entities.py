"""Domain entities — pure data structures with no external dependencies."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class ProviderKey(str, Enum):
    """Supported Git hosting services."""

    GITHUB = "github"
    GITLAB = "gitlab"
    BITBUCKET = "bitbucket"


@dataclass(frozen=True, slots=True)
class TreeEntry:
    """A single node from a tree listing (blob, sub-tree or submodule)."""

    path: str
    type: str  # "blob", "tree" or "commit"

    @property
    def is_blob(self) -> bool:
        return self.type == "blob"


@dataclass(frozen=True, slots=True)
class BranchInfo:
    """A branch together with its web and archive download URLs."""

    name: str
    web_url: str
    archive_zip_url: str
    is_default: bool = False


@dataclass(frozen=True, slots=True)
class PackageDescriptor:
    """Everything the installer needs to know about a repository."""

    key: str
    name: str
    private: bool
    provider: ProviderKey
    branches: dict[str, BranchInfo]
    base_url: str
    api_url: str
    warnings: tuple[str, ...] = ()

    @property
    def default_branches(self) -> list[str]:
        return [name for name, branch in self.branches.items() if branch.is_default]


@dataclass(frozen=True, slots=True)
class FileEntry:
    """An installable file; ``content`` stays ``None`` until fetched."""

    path: str
    fetch_url: str
    content: str | None = None

"""Tree walking — list the installable files under a directory prefix."""

from __future__ import annotations

import logging

from git_packages.domain.entities import TreeEntry
from git_packages.domain.value_objects import normalize_directory
from git_packages.services.pagination import DEFAULT_PAGE_SIZE, PageFetcher, iterate_pages

logger = logging.getLogger(__name__)

# A stylesheet at the repository root marks a WordPress theme.
ROOT_STYLESHEET = "style.css"
DEFAULT_SOURCE_EXTENSION = ".php"


def is_installable(entry: TreeEntry, prefix: str, extension: str) -> bool:
    """Return True when *entry* belongs to the package rooted at *prefix*.

    Only blobs qualify.  ``style.css`` at the repository root is always kept;
    everything else must be a direct child of *prefix* ending in *extension*.
    """
    if not entry.is_blob:
        return False
    if entry.path == ROOT_STYLESHEET:
        return True
    if not entry.path.startswith(prefix):
        return False
    relative = entry.path[len(prefix):]
    if "/" in relative:
        return False
    return relative.endswith(extension)


async def walk_tree(
    fetch_page: PageFetcher[TreeEntry],
    *,
    directory: str = "",
    extension: str = DEFAULT_SOURCE_EXTENSION,
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[TreeEntry]:
    """Page through a recursive tree listing and keep installable entries.

    Matches are accumulated in the order the provider returns them, neither
    sorted nor deduplicated.  A failing page aborts the whole walk.
    """
    prefix = normalize_directory(directory)
    matches: list[TreeEntry] = []
    pages = 0
    async for page in iterate_pages(fetch_page, page_size):
        pages += 1
        matches.extend(e for e in page.items if is_installable(e, prefix, extension))

    logger.info(
        "Tree walk under %r: %d match(es) across %d page(s)",
        prefix,
        len(matches),
        pages,
    )
    return matches

"""Page-by-page traversal of provider listings."""

from __future__ import annotations

from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass, field
from typing import Generic, TypeVar

T = TypeVar("T")

DEFAULT_PAGE_SIZE = 100


@dataclass(frozen=True, slots=True)
class Page(Generic[T]):
    """One page of a listing.

    ``is_last`` is ``None`` when the provider exposes no cursor; the end of
    the listing is then inferred from a short page.  ``next_url`` carries a
    link-based cursor for providers that have one.
    """

    items: list[T] = field(default_factory=list)
    is_last: bool | None = None
    next_url: str | None = None


PageFetcher = Callable[[int, Page[T] | None], Awaitable[Page[T]]]


async def iterate_pages(
    fetch_page: PageFetcher[T],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> AsyncIterator[Page[T]]:
    """Yield pages starting at page 1 until the listing is exhausted.

    ``fetch_page(page_number, previous_page)`` is awaited strictly in
    sequence.  A page ends the listing when the provider marks it last, or,
    without a cursor, when it holds fewer than *page_size* items.
    """
    page_number = 0
    previous: Page[T] | None = None
    while True:
        page_number += 1
        page = await fetch_page(page_number, previous)
        yield page
        is_last = page.is_last
        if is_last is None:
            is_last = len(page.items) < page_size
        if is_last:
            return
        previous = page


async def collect_pages(
    fetch_page: PageFetcher[T],
    page_size: int = DEFAULT_PAGE_SIZE,
) -> list[T]:
    """Concatenate the items of every page, in order."""
    items: list[T] = []
    async for page in iterate_pages(fetch_page, page_size):
        items.extend(page.items)
    return items

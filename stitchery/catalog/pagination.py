"""
Local pagination shared by every listing of the catalog cache.
"""

from __future__ import annotations

from typing import List, NamedTuple, Sequence, TypeVar

T = TypeVar("T")


class PageSlice(NamedTuple):
    entries: List
    total_items: int
    total_pages: int
    page: int
    page_size: int


def paginate(entries: Sequence[T], page: int, page_size: int) -> PageSlice:
    """Slice an already ordered sequence into one page.

    ``page_size`` below 1 is clamped to 1 and ``page`` below 1 is clamped
    to the first page; the clamped values are what gets reported.
    ``total_pages`` is never less than 1, so an empty result still has a
    well-defined single page. A page past the end yields no entries but
    keeps the metadata.
    """
    page_size = max(1, int(page_size))
    page = max(1, int(page))
    total = len(entries)
    total_pages = max(1, (total + page_size - 1) // page_size)
    start = (page - 1) * page_size
    end = start + page_size
    return PageSlice(
        entries=list(entries[start:end]),
        total_items=total,
        total_pages=total_pages,
        page=page,
        page_size=page_size,
    )

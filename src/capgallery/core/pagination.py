"""Page slicing and page-navigation windows.

Pure functions, safe to call repeatedly and concurrently over an already
materialized item sequence.  Page numbers are one-based throughout.

A page window is a list of page numbers with ``PAGE_GAP`` markers standing in
for skipped runs of pages::

    >>> page_window(current_page=1, total_pages=10, max_buttons=5)
    [1, 2, 3, 4, 5, None, 10]
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

# Gap marker inside a page window.  Serialises to JSON ``null``.
PAGE_GAP = None


def total_pages(item_count: int, page_size: int) -> int:
    """Number of pages needed for ``item_count`` items; 0 when empty."""
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")
    if item_count <= 0:
        return 0
    return (item_count + page_size - 1) // page_size


def paginate(items: Sequence[T], page_size: int, page_number: int) -> list[T]:
    """Return the items on ``page_number``.

    The slice ``[(page_number - 1) * page_size, page_number * page_size)`` is
    clamped to the bounds of ``items``.  Out-of-range page numbers give an
    empty page rather than an error.

    Args:
        items: Full ordered sequence.
        page_size: Items per page.
        page_number: One-based page number.

    Returns:
        The items of the requested page.

    Raises:
        ValueError: If ``page_size`` is less than 1.
    """
    if page_size < 1:
        raise ValueError(f"page_size must be at least 1, got {page_size}")

    start = max(0, (page_number - 1) * page_size)
    end = max(0, page_number * page_size)
    return list(items[start:end])


def page_window(current_page: int, total_pages: int, max_buttons: int) -> list[int | None]:
    """Compute the page numbers to show as navigation controls.

    The window holds at most ``max_buttons`` consecutive pages centred on
    ``current_page`` and clamped to ``[1, total_pages]``.  When the window
    does not reach page 1 or ``total_pages``, that page is added as an anchor,
    preceded or followed by ``PAGE_GAP`` unless it is adjacent to the window.

    Args:
        current_page: Currently displayed page.
        total_pages: Total number of pages.
        max_buttons: Maximum number of consecutive pages in the window.

    Returns:
        Page numbers and gap markers in display order; empty when there are
        no pages.

    Raises:
        ValueError: If ``max_buttons`` is less than 1.
    """
    if max_buttons < 1:
        raise ValueError(f"max_buttons must be at least 1, got {max_buttons}")
    if total_pages <= 0:
        return []

    start = max(1, current_page - max_buttons // 2)
    end = min(total_pages, start + max_buttons - 1)

    # Near the last page the centred window runs short; slide it back.
    if end - start + 1 < max_buttons:
        start = max(1, total_pages - max_buttons + 1)

    window: list[int | None] = []

    if start > 1:
        window.append(1)
        if start > 2:
            window.append(PAGE_GAP)

    window.extend(range(start, end + 1))

    if end < total_pages:
        if end < total_pages - 1:
            window.append(PAGE_GAP)
        window.append(total_pages)

    return window

"""
Sort orders for the bookmark list.

All orders are stable: bookmarks that compare equal keep the relative
order they had before sorting.
"""

import unicodedata
from enum import Enum
from typing import Iterable, List, Optional, Tuple, Union

from .data_models import Bookmark


class SortBy(str, Enum):
    """Sort orders offered by the list header."""

    NEWEST = "newest"
    OLDEST = "oldest"
    MOST_VISITED = "most-visited"
    TITLE = "title"

    @classmethod
    def parse(cls, value: Optional[Union[str, "SortBy"]]) -> "SortBy":
        """Parse a sort order; anything unrecognised falls back to newest."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return cls.NEWEST


def title_sort_key(title: str) -> Tuple[str, str, str]:
    """
    Collation key approximating a locale-aware title comparison.

    Accents and case are ignored at the first level, so "école" sorts next
    to "ecole" and "Zebra" after "apple". Remaining ties are broken by
    case-folded text, then lowercase before uppercase.
    """
    decomposed = unicodedata.normalize("NFKD", title)
    base = "".join(ch for ch in decomposed if not unicodedata.combining(ch)).casefold()
    return (base, title.casefold(), title.swapcase())


def sort_bookmarks(
    bookmarks: Iterable[Bookmark], sort_by: Optional[Union[str, SortBy]] = SortBy.NEWEST
) -> List[Bookmark]:
    """
    Sort bookmarks by the requested order.

    Args:
        bookmarks: Bookmarks to sort (not modified)
        sort_by: One of the SortBy values; unknown values mean newest first

    Returns:
        New sorted list
    """
    order = SortBy.parse(sort_by)
    items = list(bookmarks)

    if order == SortBy.OLDEST:
        return sorted(items, key=lambda b: b.created_at)
    if order == SortBy.MOST_VISITED:
        return sorted(items, key=lambda b: b.visit_count, reverse=True)
    if order == SortBy.TITLE:
        return sorted(items, key=lambda b: title_sort_key(b.title))
    return sorted(items, key=lambda b: b.created_at, reverse=True)

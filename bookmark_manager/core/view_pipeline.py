"""
Bookmark view pipeline.

Derives the ordered list shown for a view from a single snapshot of the
collections:

    privacy partition -> view predicate -> search -> sort

The pipeline is pure. It is recomputed in full on every input change and
never keeps state between calls.
"""

from datetime import datetime
from typing import Iterable, List, Optional, Union

from .active_filter import ActiveFilter
from .data_models import PRIVATE_FOLDER_ID, Bookmark, Folder
from .filters import ABANDONED_AFTER_DAYS, FilterChain, PrivacyFilter
from .sorting import SortBy, sort_bookmarks

FREQUENTLY_VISITED_LIMIT = 4


def filter_bookmarks(
    bookmarks: Iterable[Bookmark],
    folders: Iterable[Folder],
    active_filter: ActiveFilter,
    search_term: str = "",
    sort_by: Union[str, SortBy] = SortBy.NEWEST,
    now: Optional[datetime] = None,
    private_folder_id: str = PRIVATE_FOLDER_ID,
    abandoned_days: int = ABANDONED_AFTER_DAYS,
) -> List[Bookmark]:
    """
    Compute the ordered bookmark list for a view.

    Args:
        bookmarks: Full bookmark snapshot
        folders: Full folder snapshot
        active_filter: Selected view
        search_term: Free-text search (empty matches everything)
        sort_by: Sort order
        now: Reference time for the abandoned view (defaults to now)
        private_folder_id: Reserved private folder id
        abandoned_days: Age threshold for the abandoned view

    Returns:
        New list of the visible bookmarks in display order
    """
    chain = FilterChain.for_view(
        active_filter,
        list(folders),
        search_term=search_term,
        now=now,
        private_folder_id=private_folder_id,
        abandoned_days=abandoned_days,
    )
    return sort_bookmarks(chain.apply(bookmarks), sort_by)


def frequently_visited(
    bookmarks: Iterable[Bookmark], limit: int = FREQUENTLY_VISITED_LIMIT
) -> List[Bookmark]:
    """
    Most visited non-private bookmarks, for the strip above the ``all`` view.

    Never-visited bookmarks are left out.
    """
    visible = PrivacyFilter(private=False).filter(bookmarks)
    visited = [b for b in visible if b.visit_count > 0]
    return sort_bookmarks(visited, SortBy.MOST_VISITED)[: max(0, limit)]

"""
Reading-list support.

Folders under the reserved reading-list category, and bookmarks placed
directly in it, behave as a reading list: the view splits into unread and
read items based on visit count alone.
"""

from dataclasses import dataclass, field
from typing import Iterable, List

from .active_filter import ActiveFilter, CategoryView, FolderView, PinnedView
from .data_models import READING_LIST_CATEGORY_ID, Bookmark, Folder


@dataclass
class ReadingListBuckets:
    """Unread and read items, each in the order they were received."""

    unread: List[Bookmark] = field(default_factory=list)
    read: List[Bookmark] = field(default_factory=list)

    def __len__(self) -> int:
        return len(self.unread) + len(self.read)


def is_reading_list_view(
    active_filter: ActiveFilter,
    folders: Iterable[Folder],
    reading_list_category_id: str = READING_LIST_CATEGORY_ID,
) -> bool:
    """
    Check whether a view shows a reading list.

    True for the reading-list category itself and for folder or pinned views
    of a folder owned by that category.
    """
    if isinstance(active_filter, CategoryView):
        return active_filter.category_id == reading_list_category_id

    if isinstance(active_filter, (FolderView, PinnedView)):
        folder = next((f for f in folders if f.id == active_filter.folder_id), None)
        return folder is not None and folder.category_id == reading_list_category_id

    return False


def bucketize(bookmarks: Iterable[Bookmark]) -> ReadingListBuckets:
    """
    Split pipeline output into unread (never visited) and read items.

    Args:
        bookmarks: Ordered output of the view pipeline

    Returns:
        ReadingListBuckets preserving the incoming order within each bucket
    """
    buckets = ReadingListBuckets()
    for bookmark in bookmarks:
        if bookmark.visit_count == 0:
            buckets.unread.append(bookmark)
        else:
            buckets.read.append(bookmark)
    return buckets

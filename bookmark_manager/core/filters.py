"""
Filter Infrastructure for the bookmark list.

This module provides a composable filtering system for selecting the
bookmarks visible in a view: privacy partition, view predicates
(favorites, archived, abandoned, category, folder, label) and free-text
search.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Iterable, List, Optional

from .active_filter import (
    AbandonedView,
    ActiveFilter,
    ArchivedView,
    CategoryView,
    FavoritesView,
    FolderView,
    LabelView,
    PinnedView,
)
from .data_models import (
    PRIVATE_FOLDER_ID,
    Bookmark,
    Folder,
    is_reserved_folder,
    parse_timestamp,
    utc_now,
)

ABANDONED_AFTER_DAYS = 30


class BookmarkFilter(ABC):
    """
    Abstract base class for bookmark filters.

    Filters can be combined using & (AND) and | (OR) operators
    to create complex filter chains.
    """

    @abstractmethod
    def matches(self, bookmark: Bookmark) -> bool:
        """
        Check if a bookmark matches this filter.

        Args:
            bookmark: The bookmark to check

        Returns:
            True if the bookmark matches the filter criteria
        """
        pass

    def __and__(self, other: "BookmarkFilter") -> "CompositeFilter":
        if isinstance(other, CompositeFilter) and other.operator == "and":
            return CompositeFilter([self] + other.filters, operator="and")
        return CompositeFilter([self, other], operator="and")

    def __or__(self, other: "BookmarkFilter") -> "CompositeFilter":
        if isinstance(other, CompositeFilter) and other.operator == "or":
            return CompositeFilter([self] + other.filters, operator="or")
        return CompositeFilter([self, other], operator="or")

    def __invert__(self) -> "NotFilter":
        return NotFilter(self)

    def filter(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        """
        Filter a list of bookmarks, keeping their order.

        Args:
            bookmarks: Bookmarks to filter

        Returns:
            List of bookmarks that match the filter
        """
        return [b for b in bookmarks if self.matches(b)]


class CompositeFilter(BookmarkFilter):
    """
    Composite filter that combines multiple filters.

    Supports AND and OR operations between child filters.
    """

    def __init__(self, filters: List[BookmarkFilter], operator: str = "and"):
        self.filters = filters
        self.operator = operator.lower()

        if self.operator not in ("and", "or"):
            raise ValueError(f"Invalid operator: {operator}. Must be 'and' or 'or'.")

    def matches(self, bookmark: Bookmark) -> bool:
        if not self.filters:
            return True

        if self.operator == "and":
            return all(f.matches(bookmark) for f in self.filters)
        else:  # or
            return any(f.matches(bookmark) for f in self.filters)


class NotFilter(BookmarkFilter):
    """Filter that negates another filter."""

    def __init__(self, filter_to_negate: BookmarkFilter):
        self.inner_filter = filter_to_negate

    def matches(self, bookmark: Bookmark) -> bool:
        return not self.inner_filter.matches(bookmark)


class PassFilter(BookmarkFilter):
    """Matches every bookmark (the ``all`` view and unknown view types)."""

    def matches(self, bookmark: Bookmark) -> bool:
        return True


class PrivacyFilter(BookmarkFilter):
    """
    Partition bookmarks into the private collection and everything else.

    Args:
        private: True to keep only private bookmarks, False to keep only
            non-private ones
    """

    def __init__(self, private: bool):
        self.private = private

    def matches(self, bookmark: Bookmark) -> bool:
        return bool(bookmark.is_private) == self.private

    @classmethod
    def for_view(
        cls, active_filter: ActiveFilter, private_folder_id: str = PRIVATE_FOLDER_ID
    ) -> "PrivacyFilter":
        """Private view iff the view is scoped to the reserved private folder."""
        return cls(private=is_reserved_folder(active_filter.scope_id, private_folder_id))


class FavoriteFilter(BookmarkFilter):
    """Bookmarks flagged as favorite."""

    def matches(self, bookmark: Bookmark) -> bool:
        return bookmark.is_favorite


class ArchivedFilter(BookmarkFilter):
    """Bookmarks with an archived page snapshot."""

    def matches(self, bookmark: Bookmark) -> bool:
        return bookmark.is_archived


class AbandonedFilter(BookmarkFilter):
    """
    Bookmarks not touched for a while.

    A bookmark is abandoned when its last visit, or its creation time if it
    was never visited, lies strictly before ``now - days``.
    """

    def __init__(self, now: Optional[datetime] = None, days: int = ABANDONED_AFTER_DAYS):
        self.now = parse_timestamp(now) or utc_now()
        self.days = days
        self.cutoff = self.now - timedelta(days=days)

    def matches(self, bookmark: Bookmark) -> bool:
        if bookmark.last_visited_at is not None:
            return bookmark.last_visited_at < self.cutoff
        return bookmark.created_at < self.cutoff


class CategoryFilter(BookmarkFilter):
    """
    Bookmarks assigned to a category directly or through one of its folders.

    Args:
        category_id: Category to match
        folders: Current folder snapshot, used to find the category's folders
    """

    def __init__(self, category_id: str, folders: Iterable[Folder]):
        self.category_id = category_id
        self._folder_ids = {f.id for f in folders if f.category_id == category_id}

    def matches(self, bookmark: Bookmark) -> bool:
        if bookmark.category_id == self.category_id:
            return True
        return bool(bookmark.folder_id) and bookmark.folder_id in self._folder_ids


class FolderFilter(BookmarkFilter):
    """Bookmarks stored in one folder."""

    def __init__(self, folder_id: str):
        self.folder_id = folder_id

    def matches(self, bookmark: Bookmark) -> bool:
        return bookmark.folder_id == self.folder_id


class LabelFilter(BookmarkFilter):
    """Bookmarks carrying any of the given labels. No labels matches nothing."""

    def __init__(self, label_ids: Iterable[str]):
        self.label_ids = frozenset(label_ids)

    def matches(self, bookmark: Bookmark) -> bool:
        return any(label_id in self.label_ids for label_id in bookmark.labels)


class SearchFilter(BookmarkFilter):
    """
    Case-insensitive substring search over title, description and url.

    An empty search term matches everything.
    """

    def __init__(self, term: str):
        self.term = (term or "").lower()

    def matches(self, bookmark: Bookmark) -> bool:
        if not self.term:
            return True
        return (
            self.term in bookmark.title.lower()
            or self.term in bookmark.description.lower()
            or self.term in bookmark.url.lower()
        )


def view_filter_for(
    active_filter: ActiveFilter,
    folders: Iterable[Folder],
    now: Optional[datetime] = None,
    abandoned_days: int = ABANDONED_AFTER_DAYS,
) -> BookmarkFilter:
    """
    Map a view selector to the predicate that implements it.

    Args:
        active_filter: Selected view
        folders: Current folder snapshot (needed by category views)
        now: Reference time for the abandoned view
        abandoned_days: Age threshold for the abandoned view

    Returns:
        BookmarkFilter for the view; unknown views pass everything
    """
    if isinstance(active_filter, FavoritesView):
        return FavoriteFilter()
    if isinstance(active_filter, ArchivedView):
        return ArchivedFilter()
    if isinstance(active_filter, AbandonedView):
        return AbandonedFilter(now=now, days=abandoned_days)
    if isinstance(active_filter, CategoryView):
        return CategoryFilter(active_filter.category_id, folders)
    if isinstance(active_filter, (FolderView, PinnedView)):
        return FolderFilter(active_filter.folder_id)
    if isinstance(active_filter, LabelView):
        return LabelFilter(active_filter.label_ids)
    return PassFilter()


@dataclass
class FilterChain:
    """
    Apply multiple filters in order.

    Each stage narrows the output of the previous one, so the chain is
    equivalent to an AND of its filters while keeping input order.
    """

    filters: List[BookmarkFilter] = field(default_factory=list)

    def add(self, filter_obj: BookmarkFilter) -> "FilterChain":
        """
        Add a filter to the chain.

        Args:
            filter_obj: Filter to add

        Returns:
            Self for method chaining
        """
        self.filters.append(filter_obj)
        return self

    def apply(self, bookmarks: Iterable[Bookmark]) -> List[Bookmark]:
        result = list(bookmarks)
        for stage in self.filters:
            result = stage.filter(result)
        return result

    def matches(self, bookmark: Bookmark) -> bool:
        return all(f.matches(bookmark) for f in self.filters)

    @classmethod
    def for_view(
        cls,
        active_filter: ActiveFilter,
        folders: Iterable[Folder],
        search_term: str = "",
        now: Optional[datetime] = None,
        private_folder_id: str = PRIVATE_FOLDER_ID,
        abandoned_days: int = ABANDONED_AFTER_DAYS,
    ) -> "FilterChain":
        """
        Build the privacy → view → search chain for a view.

        Args:
            active_filter: Selected view
            folders: Current folder snapshot
            search_term: Free-text search term
            now: Reference time for the abandoned view
            private_folder_id: Reserved private folder id
            abandoned_days: Age threshold for the abandoned view

        Returns:
            FilterChain with the three stages
        """
        return (
            cls()
            .add(PrivacyFilter.for_view(active_filter, private_folder_id))
            .add(view_filter_for(active_filter, folders, now, abandoned_days))
            .add(SearchFilter(search_term))
        )

    def __len__(self) -> int:
        return len(self.filters)

    def __bool__(self) -> bool:
        return bool(self.filters)

"""
Dashboard application state.

All view inputs live in one immutable ``AppState``. Reducers return a new
state and never mutate the old one, so every derived view is computed from
a single consistent snapshot of the collections and selectors.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from ..utils.error_handler import PrivateCollectionLockedError
from .active_filter import ActiveFilter, AllView, FilterType
from .bulk_actions import Selection
from .data_models import (
    ENTITY_TYPES,
    PRIVATE_FOLDER_ID,
    READING_LIST_CATEGORY_ID,
    Bookmark,
    Category,
    Folder,
    Label,
    is_reserved_folder,
)
from .filters import ABANDONED_AFTER_DAYS
from .reading_list import ReadingListBuckets, bucketize, is_reading_list_view
from .sorting import SortBy
from .view_pipeline import FREQUENTLY_VISITED_LIMIT, filter_bookmarks, frequently_visited


@dataclass(frozen=True)
class AppState:
    """Snapshot of everything the dashboard view depends on."""

    bookmarks: Tuple[Bookmark, ...] = ()
    folders: Tuple[Folder, ...] = ()
    categories: Tuple[Category, ...] = ()
    labels: Tuple[Label, ...] = ()
    active_filter: ActiveFilter = field(default_factory=AllView)
    search_term: str = ""
    sort_by: SortBy = SortBy.NEWEST
    selection: Selection = field(default_factory=Selection)
    private_unlocked: bool = False

    def find_bookmark(self, bookmark_id: str) -> Optional[Bookmark]:
        return next((b for b in self.bookmarks if b.id == bookmark_id), None)

    def find_folder(self, folder_id: str) -> Optional[Folder]:
        return next((f for f in self.folders if f.id == folder_id), None)


def with_collection(state: AppState, name: str, documents: Iterable[Dict[str, Any]]) -> AppState:
    """
    Replace one collection with a fresh snapshot.

    Selected ids whose bookmarks disappeared from the snapshot are dropped
    from the selection.
    """
    entity_type = ENTITY_TYPES[name]
    items = tuple(entity_type.from_dict(doc) for doc in documents)

    if name != "bookmarks":
        return replace(state, **{name: items})

    present = {b.id for b in items}
    selection = Selection(tuple(i for i in state.selection if i in present))
    return replace(state, bookmarks=items, selection=selection)


def with_active_filter(state: AppState, active_filter: ActiveFilter) -> AppState:
    return replace(state, active_filter=active_filter, selection=Selection())


def with_search_term(state: AppState, search_term: str) -> AppState:
    return replace(state, search_term=search_term or "", selection=Selection())


def with_sort(state: AppState, sort_by: Union[str, SortBy]) -> AppState:
    return replace(state, sort_by=SortBy.parse(sort_by))


def with_selection_toggled(state: AppState, bookmark_id: str) -> AppState:
    return replace(state, selection=state.selection.toggle(bookmark_id))


def with_all_toggled(state: AppState, visible: Iterable[Bookmark]) -> AppState:
    return replace(state, selection=state.selection.toggle_all(visible))


def with_selection_cleared(state: AppState) -> AppState:
    return replace(state, selection=Selection())


def with_private_unlocked(state: AppState, unlocked: bool = True) -> AppState:
    return replace(state, private_unlocked=unlocked)


@dataclass
class DashboardView:
    """
    Everything the dashboard renders for one state.

    Attributes:
        bookmarks: Ordered pipeline output
        reading_list: Unread/read split when the view is a reading list
        frequently_visited: Most visited strip, only on the ``all`` view
    """

    bookmarks: List[Bookmark] = field(default_factory=list)
    reading_list: Optional[ReadingListBuckets] = None
    frequently_visited: List[Bookmark] = field(default_factory=list)

    @property
    def is_reading_list(self) -> bool:
        return self.reading_list is not None


def derive_view(state: AppState, config=None, now: Optional[datetime] = None) -> DashboardView:
    """
    Compute the dashboard view for a state.

    Args:
        state: Current application state
        config: Optional ``ManagerConfig`` for reserved ids and view limits
        now: Reference time for the abandoned view

    Returns:
        DashboardView for the state
    """
    private_folder_id = PRIVATE_FOLDER_ID
    reading_list_category_id = READING_LIST_CATEGORY_ID
    abandoned_days = ABANDONED_AFTER_DAYS
    frequent_limit = FREQUENTLY_VISITED_LIMIT
    if config is not None:
        private_folder_id = config.collections.private_folder_id
        reading_list_category_id = config.collections.reading_list_category_id
        abandoned_days = config.view.abandoned_after_days
        frequent_limit = config.view.frequently_visited_limit

    visible = filter_bookmarks(
        state.bookmarks,
        state.folders,
        state.active_filter,
        search_term=state.search_term,
        sort_by=state.sort_by,
        now=now,
        private_folder_id=private_folder_id,
        abandoned_days=abandoned_days,
    )

    view = DashboardView(bookmarks=visible)
    if is_reading_list_view(state.active_filter, state.folders, reading_list_category_id):
        view.reading_list = bucketize(visible)
    if state.active_filter.filter_type == FilterType.ALL:
        view.frequently_visited = frequently_visited(state.bookmarks, frequent_limit)
    return view


def check_view_access(
    state: AppState, active_filter: ActiveFilter, private_folder_id: str = PRIVATE_FOLDER_ID
) -> None:
    """
    Raises:
        PrivateCollectionLockedError: If the private collection is requested
            while it is locked
    """
    if is_reserved_folder(active_filter.scope_id, private_folder_id) and not state.private_unlocked:
        raise PrivateCollectionLockedError("Unlock the private collection to view it.")

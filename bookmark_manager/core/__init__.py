"""
Core engine: data model, view pipeline, commands and controllers.
"""

from .active_filter import (
    AbandonedView,
    ActiveFilter,
    AllView,
    ArchivedView,
    CategoryView,
    FavoritesView,
    FilterType,
    FolderView,
    LabelView,
    PinnedView,
)
from .data_models import PRIVATE_FOLDER_ID, READING_LIST_CATEGORY_ID, Bookmark, Category, Folder, Label
from .entity_store import InMemoryCollection, StoreOperation, UserStore, execute_operations
from .sorting import SortBy
from .view_pipeline import filter_bookmarks, frequently_visited

__all__ = [
    "AbandonedView",
    "ActiveFilter",
    "AllView",
    "ArchivedView",
    "Bookmark",
    "Category",
    "CategoryView",
    "FavoritesView",
    "FilterType",
    "Folder",
    "FolderView",
    "InMemoryCollection",
    "Label",
    "LabelView",
    "PRIVATE_FOLDER_ID",
    "PinnedView",
    "READING_LIST_CATEGORY_ID",
    "SortBy",
    "StoreOperation",
    "UserStore",
    "execute_operations",
    "filter_bookmarks",
    "frequently_visited",
]

"""
Classification and location rules for bookmarks.

A bookmark lives in exactly one of three places: a folder, a category
(directly, without a folder) or nowhere. This module turns ids into
display paths and turns a user's choice from the combined
folder/category selector into the stored ``(folderId, categoryId)``
pair.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Iterable, Optional

from ..utils.error_handler import ValidationError
from .active_filter import ActiveFilter, CategoryView, FolderView
from .data_models import PRIVATE_FOLDER_ID, Bookmark, Category, Folder, is_reserved_folder

logger = logging.getLogger(__name__)

NO_LOCATION = "No Location"


@dataclass(frozen=True)
class Location:
    """Resolved location; at most one of the two ids is set."""

    folder_id: Optional[str] = None
    category_id: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return self.folder_id is None and self.category_id is None


def describe_location(
    folder_id: Optional[str],
    category_id: Optional[str],
    folders: Iterable[Folder],
    categories: Iterable[Category],
) -> str:
    """
    Human-readable path for a location.

    Args:
        folder_id: Bookmark's folder id, if any
        category_id: Bookmark's direct category id, if any
        folders: Folder snapshot
        categories: Category snapshot

    Returns:
        "<Category> / <Folder>", "<Folder>", "<Category>" or "No Location"
    """
    category_names = {c.id: c.name for c in categories}

    if folder_id:
        folder = next((f for f in folders if f.id == folder_id), None)
        if folder is not None:
            category_name = category_names.get(folder.category_id)
            if category_name:
                return f"{category_name} / {folder.name}"
            return folder.name
    elif category_id:
        category_name = category_names.get(category_id)
        if category_name:
            return category_name

    return NO_LOCATION


def describe_bookmark_location(
    bookmark: Bookmark, folders: Iterable[Folder], categories: Iterable[Category]
) -> str:
    """Display path for a bookmark's current location."""
    return describe_location(bookmark.folder_id, bookmark.category_id, folders, categories)


def resolve_location_choice(
    value: Optional[str], folders: Iterable[Folder], categories: Iterable[Category]
) -> Location:
    """
    Resolve an id picked from the combined folder/category selector.

    Selecting a folder clears the category and vice versa. An empty value
    means no location. An id that matches neither is logged and treated as
    no location.

    Args:
        value: Selected folder or category id
        folders: Folder snapshot
        categories: Category snapshot

    Returns:
        Location with at most one id set
    """
    if not value:
        return Location()

    if any(f.id == value for f in folders):
        return Location(folder_id=value)
    if any(c.id == value for c in categories):
        return Location(category_id=value)

    logger.warning(f"Selected location does not match any known category or folder: {value}")
    return Location()


def location_fields(
    folder_id: Optional[str],
    category_id: Optional[str],
    private_folder_id: str = PRIVATE_FOLDER_ID,
) -> Dict[str, Any]:
    """
    Stored fields for a location, with the privacy flag recomputed.

    Args:
        folder_id: Target folder id (empty string means none)
        category_id: Target category id (empty string means none)
        private_folder_id: Reserved private folder id

    Returns:
        Dictionary with ``folderId``, ``categoryId`` and ``isPrivate``

    Raises:
        ValidationError: If both a folder and a category are given
    """
    folder_id = folder_id or None
    category_id = category_id or None

    if folder_id and category_id:
        raise ValidationError("A bookmark can be in a folder or a category, not both.")

    return {
        "folderId": folder_id,
        "categoryId": category_id,
        "isPrivate": is_reserved_folder(folder_id, private_folder_id),
    }


def effective_category_id(bookmark: Bookmark, folders: Iterable[Folder]) -> Optional[str]:
    """
    Category a bookmark belongs to, directly or through its folder.

    Returns:
        Category id, or None for bookmarks without a location
    """
    if bookmark.category_id:
        return bookmark.category_id
    if bookmark.folder_id:
        folder = next((f for f in folders if f.id == bookmark.folder_id), None)
        if folder is not None:
            return folder.category_id
    return None


def initial_location_for(active_filter: ActiveFilter) -> Location:
    """Default location for a bookmark created while a view is open."""
    if isinstance(active_filter, FolderView):
        return Location(folder_id=active_filter.folder_id)
    if isinstance(active_filter, CategoryView):
        return Location(category_id=active_filter.category_id)
    return Location()

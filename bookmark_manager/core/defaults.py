"""
Default collections for a new user.

A freshly registered user, or one who resets their data, starts with a
small set of categories, folders and labels. The set always contains the
reserved private folder and the reading-list category.
"""

from typing import Any, Dict, List

from .data_models import PRIVATE_FOLDER_ID, READING_LIST_CATEGORY_ID
from .entity_store import CATEGORIES, FOLDERS, LABELS

GENERAL_CATEGORY_ID = "general"


def private_folder_document(private_folder_id: str = PRIVATE_FOLDER_ID) -> Dict[str, Any]:
    """Stored document of the protected private collection."""
    return {
        "id": private_folder_id,
        "name": "Private",
        "categoryId": None,
        "isPinned": False,
        "isPrivate": True,
    }


def default_documents(
    private_folder_id: str = PRIVATE_FOLDER_ID,
    reading_list_category_id: str = READING_LIST_CATEGORY_ID,
) -> Dict[str, List[Dict[str, Any]]]:
    """
    Build the default categories, folders and labels.

    Args:
        private_folder_id: Reserved private folder id
        reading_list_category_id: Reserved reading-list category id

    Returns:
        ``{collection: [documents]}`` with fixed ids; bookmarks are not seeded
    """
    return {
        CATEGORIES: [
            {"id": GENERAL_CATEGORY_ID, "name": "General"},
            {"id": reading_list_category_id, "name": "Reading List"},
        ],
        FOLDERS: [
            {
                "id": "unsorted",
                "name": "Unsorted",
                "categoryId": GENERAL_CATEGORY_ID,
                "isPinned": True,
                "isPrivate": False,
            },
            {
                "id": "read-later",
                "name": "Read Later",
                "categoryId": reading_list_category_id,
                "isPinned": False,
                "isPrivate": False,
            },
            private_folder_document(private_folder_id),
        ],
        LABELS: [
            {"id": "important", "name": "Important"},
            {"id": "reference", "name": "Reference"},
        ],
    }

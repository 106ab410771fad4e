"""
Test data fixtures for bookmark manager tests.

Documents are in the stored shape (camelCase keys, ISO timestamps), so they
can be fed straight into an in-memory store or a JSON backup.
"""

import copy
from datetime import datetime, timezone
from typing import Any, Dict, List

from bookmark_manager.core.data_models import Bookmark

# Reference time for every time-dependent test; the abandoned cutoff is
# 2024-05-02T12:00:00Z with the default 30 days.
REFERENCE_NOW = datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)

SAMPLE_CATEGORIES = [
    {"id": "c-work", "name": "Work"},
    {"id": "reading", "name": "Reading List"},
    {"id": "c-empty", "name": "Empty"},
]

SAMPLE_FOLDERS = [
    {"id": "f-python", "name": "Python", "categoryId": "c-work", "isPinned": False, "isPrivate": False},
    {"id": "f-news", "name": "News", "categoryId": "c-work", "isPinned": True, "isPrivate": False},
    {"id": "f-later", "name": "Later", "categoryId": "reading", "isPinned": False, "isPrivate": False},
    {"id": "private", "name": "Private", "categoryId": None, "isPinned": False, "isPrivate": True},
]

SAMPLE_LABELS = [
    {"id": "l-py", "name": "python"},
    {"id": "l-async", "name": "async"},
    {"id": "l-read", "name": "to-read"},
]

SAMPLE_BOOKMARKS = [
    {
        "id": "b1",
        "url": "https://docs.python.org/3/",
        "title": "Python docs",
        "description": "Official documentation",
        "folderId": "f-python",
        "categoryId": None,
        "labels": ["l-py"],
        "createdAt": "2024-05-01T10:00:00Z",
        "isFavorite": True,
        "visitCount": 5,
        "lastVisitedAt": "2024-05-30T09:00:00Z",
        "archiveFailed": False,
        "isPrivate": False,
    },
    {
        "id": "b2",
        "url": "https://example.com/asyncio",
        "title": "Asyncio guide",
        "description": "Event loops explained",
        "folderId": "f-python",
        "categoryId": None,
        "labels": ["l-py", "l-async"],
        "createdAt": "2024-04-01T10:00:00Z",
        "isFavorite": False,
        "visitCount": 0,
        "lastVisitedAt": None,
        "archiveFailed": False,
        "isPrivate": False,
    },
    {
        "id": "b3",
        "url": "https://news.example.com/",
        "title": "Morning news",
        "description": "",
        "folderId": "f-news",
        "categoryId": None,
        "labels": [],
        "createdAt": "2024-05-20T07:00:00Z",
        "isFavorite": False,
        "visitCount": 2,
        "lastVisitedAt": "2024-04-15T07:30:00Z",
        "archiveFailed": False,
        "isPrivate": False,
    },
    {
        "id": "b4",
        "url": "https://longform.example.com/essay",
        "title": "Long read",
        "description": "",
        "folderId": "f-later",
        "categoryId": None,
        "labels": ["l-read"],
        "createdAt": "2024-03-01T10:00:00Z",
        "isFavorite": False,
        "visitCount": 0,
        "lastVisitedAt": None,
        "archiveFailed": False,
        "isPrivate": False,
    },
    {
        "id": "b5",
        "url": "https://blog.example.com/post",
        "title": "Finished article",
        "description": "",
        "folderId": None,
        "categoryId": "reading",
        "labels": [],
        "createdAt": "2024-05-25T10:00:00Z",
        "isFavorite": False,
        "visitCount": 1,
        "lastVisitedAt": "2024-05-26T10:00:00Z",
        "archivedHtml": "<html><head><title>Finished</title></head><body>...</body></html>",
        "archiveFailed": False,
        "isPrivate": False,
    },
    {
        "id": "b6",
        "url": "https://diary.example.com/",
        "title": "Secret diary",
        "description": "",
        "folderId": "private",
        "categoryId": None,
        "labels": [],
        "createdAt": "2024-05-10T10:00:00Z",
        "isFavorite": True,
        "visitCount": 9,
        "lastVisitedAt": "2024-05-31T10:00:00Z",
        "archiveFailed": False,
        "isPrivate": True,
    },
    {
        "id": "b7",
        "url": "https://misc.example.com/",
        "title": "Unsorted link",
        "description": "",
        "folderId": None,
        "categoryId": None,
        "labels": [],
        "createdAt": "2024-05-31T10:00:00Z",
        "isFavorite": False,
        "visitCount": 0,
        "lastVisitedAt": None,
        "archiveFailed": False,
        "isPrivate": False,
    },
]


def create_sample_documents() -> Dict[str, List[Dict[str, Any]]]:
    """Fresh copy of every sample collection, keyed by collection name."""
    return {
        "bookmarks": copy.deepcopy(SAMPLE_BOOKMARKS),
        "folders": copy.deepcopy(SAMPLE_FOLDERS),
        "categories": copy.deepcopy(SAMPLE_CATEGORIES),
        "labels": copy.deepcopy(SAMPLE_LABELS),
    }


def make_bookmark(bookmark_id: str, **overrides: Any) -> Bookmark:
    """Bookmark with sensible defaults for tests that need just one."""
    fields = {
        "id": bookmark_id,
        "url": f"https://example.com/{bookmark_id}",
        "title": f"Bookmark {bookmark_id}",
        "created_at": datetime(2024, 5, 1, tzinfo=timezone.utc),
    }
    fields.update(overrides)
    return Bookmark(**fields)


def create_page_html(title: str = "Example page", body_length: int = 2000) -> str:
    """HTML document padded to roughly ``body_length`` characters."""
    head = f"<html><head><title>{title}</title></head><body><p>"
    tail = "</p></body></html>"
    filler = "x" * max(0, body_length - len(head) - len(tail))
    return head + filler + tail


def ids_of(bookmarks) -> List[str]:
    """Bookmark ids in order, for compact assertions."""
    return [b.id for b in bookmarks]

"""
Data models for the Bookmark Manager.

This module defines the four entity kinds kept per user (bookmarks,
folders, categories and labels) and their mapping to and from the
document shape stored in the entity store.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

# Reserved identifiers
PRIVATE_FOLDER_ID = "private"
READING_LIST_CATEGORY_ID = "reading"


def utc_now() -> datetime:
    """Current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


def parse_timestamp(value: Any) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware datetime.

    Accepts datetimes, ISO-8601 strings (with a trailing ``Z``) and
    epoch milliseconds. Naive values are taken as UTC.

    Args:
        value: Raw timestamp value

    Returns:
        Aware datetime, or None when the value is empty or unparseable
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    else:
        try:
            parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
        except ValueError:
            return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Format a datetime the way the store keeps it (ISO-8601, UTC ``Z``)."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat().replace("+00:00", "Z")


def unique_ids(ids: List[str]) -> List[str]:
    """Drop duplicate and empty ids while keeping first-seen order."""
    seen = set()
    result = []
    for item in ids:
        if item and item not in seen:
            seen.add(item)
            result.append(item)
    return result


@dataclass
class Bookmark:
    """
    A saved web link.

    A bookmark sits in at most one location: a folder, a category, or
    nowhere. ``is_private`` mirrors whether that folder is the reserved
    private folder.
    """

    id: str
    url: str
    title: str
    description: str = ""
    notes: str = ""
    image_url: Optional[str] = None
    folder_id: Optional[str] = None
    category_id: Optional[str] = None
    labels: List[str] = field(default_factory=list)
    created_at: datetime = field(default_factory=utc_now)
    is_favorite: bool = False
    visit_count: int = 0
    last_visited_at: Optional[datetime] = None
    archived_html: Optional[str] = None
    archive_failed: bool = False
    is_private: bool = False

    @property
    def is_archived(self) -> bool:
        return bool(self.archived_html)

    @property
    def is_unread(self) -> bool:
        return self.visit_count == 0

    def to_dict(self) -> Dict[str, Any]:
        """
        Convert bookmark to its stored document shape.

        Returns:
            Dictionary keyed by the store's field names
        """
        return {
            "id": self.id,
            "url": self.url,
            "title": self.title,
            "description": self.description,
            "notes": self.notes,
            "imageUrl": self.image_url,
            "folderId": self.folder_id,
            "categoryId": self.category_id,
            "labels": list(self.labels),
            "createdAt": format_timestamp(self.created_at),
            "isFavorite": self.is_favorite,
            "visitCount": self.visit_count,
            "lastVisitedAt": format_timestamp(self.last_visited_at),
            "archivedHtml": self.archived_html,
            "archiveFailed": self.archive_failed,
            "isPrivate": self.is_private,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Bookmark":
        """
        Create bookmark from a stored document.

        Args:
            data: Document dictionary (unknown keys are ignored)

        Returns:
            Bookmark object
        """
        return cls(
            id=str(data.get("id", "")),
            url=str(data.get("url") or ""),
            title=str(data.get("title") or ""),
            description=str(data.get("description") or ""),
            notes=str(data.get("notes") or ""),
            image_url=data.get("imageUrl") or None,
            folder_id=data.get("folderId") or None,
            category_id=data.get("categoryId") or None,
            labels=unique_ids(list(data.get("labels") or [])),
            created_at=parse_timestamp(data.get("createdAt")) or utc_now(),
            is_favorite=bool(data.get("isFavorite", False)),
            visit_count=max(0, int(data.get("visitCount") or 0)),
            last_visited_at=parse_timestamp(data.get("lastVisitedAt")),
            archived_html=data.get("archivedHtml") or None,
            archive_failed=bool(data.get("archiveFailed", False)),
            is_private=bool(data.get("isPrivate", False)),
        )


@dataclass
class Folder:
    """A named folder owned by a category."""

    id: str
    name: str
    category_id: Optional[str] = None
    is_pinned: bool = False
    is_private: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "categoryId": self.category_id,
            "isPinned": self.is_pinned,
            "isPrivate": self.is_private,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Folder":
        return cls(
            id=str(data.get("id", "")),
            name=str(data.get("name") or ""),
            category_id=data.get("categoryId") or None,
            is_pinned=bool(data.get("isPinned", False)),
            is_private=bool(data.get("isPrivate", False)),
        )


@dataclass
class Category:
    """A top-level grouping of folders and directly assigned bookmarks."""

    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Category":
        return cls(id=str(data.get("id", "")), name=str(data.get("name") or ""))


@dataclass
class Label:
    """A free-form label; many-to-many with bookmarks."""

    id: str
    name: str

    def to_dict(self) -> Dict[str, Any]:
        return {"id": self.id, "name": self.name}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Label":
        return cls(id=str(data.get("id", "")), name=str(data.get("name") or ""))


ENTITY_TYPES = {
    "bookmarks": Bookmark,
    "folders": Folder,
    "categories": Category,
    "labels": Label,
}


def is_reserved_folder(folder_id: Optional[str], private_folder_id: str = PRIVATE_FOLDER_ID) -> bool:
    """Check whether a folder id is the protected private collection."""
    return folder_id == private_folder_id

"""
Entity commands.

Each command validates its input against the current snapshot and returns
a write plan (a list of StoreOperation). Nothing here talks to the store:
rejected commands raise before any write is planned, so a validation or
invariant error never leaves a partial mutation behind.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..utils.error_handler import InvariantViolationError, SnapshotFormatError, ValidationError
from .data_models import (
    ENTITY_TYPES,
    PRIVATE_FOLDER_ID,
    READING_LIST_CATEGORY_ID,
    Bookmark,
    Category,
    Folder,
    Label,
    format_timestamp,
    is_reserved_folder,
    unique_ids,
    utc_now,
)
from .defaults import default_documents, private_folder_document
from .entity_store import (
    BOOKMARKS,
    CATEGORIES,
    COLLECTION_NAMES,
    FOLDERS,
    LABELS,
    StoreOperation,
)
from .location import location_fields

logger = logging.getLogger(__name__)


def _require_name(name: Optional[str], what: str) -> str:
    cleaned = (name or "").strip()
    if not cleaned:
        raise ValidationError(f"{what} name cannot be empty")
    return cleaned


def _find(items: Iterable, item_id: str):
    return next((item for item in items if item.id == item_id), None)


# ============================================================================
# Bookmarks
# ============================================================================


@dataclass
class BookmarkDraft:
    """Form data for creating or editing a bookmark."""

    url: str
    title: str
    description: str = ""
    notes: str = ""
    image_url: Optional[str] = None
    folder_id: Optional[str] = None
    category_id: Optional[str] = None
    labels: List[str] = field(default_factory=list)


def plan_save_bookmark(
    draft: BookmarkDraft,
    bookmark_id: Optional[str] = None,
    now: Optional[datetime] = None,
    private_folder_id: str = PRIVATE_FOLDER_ID,
) -> List[StoreOperation]:
    """
    Plan a bookmark create (no id) or update (with id).

    The privacy flag is recomputed from the target folder. New bookmarks
    start unvisited, not favorite, with the creation time set to ``now``.

    Raises:
        ValidationError: If url or title is missing, or both a folder and a
            category were chosen
    """
    url = (draft.url or "").strip()
    title = (draft.title or "").strip()
    if not url or not title:
        raise ValidationError("A bookmark needs both a URL and a title.")

    fields = {
        "url": url,
        "title": title,
        "description": draft.description or "",
        "notes": draft.notes or "",
        "imageUrl": draft.image_url or None,
        "labels": unique_ids(list(draft.labels)),
        **location_fields(draft.folder_id, draft.category_id, private_folder_id),
    }

    if bookmark_id:
        return [StoreOperation.update(BOOKMARKS, bookmark_id, fields)]

    fields.update(
        {
            "createdAt": format_timestamp(now or utc_now()),
            "isFavorite": False,
            "visitCount": 0,
            "archiveFailed": False,
        }
    )
    return [StoreOperation.add(BOOKMARKS, fields)]


def plan_visit(
    bookmarks: Iterable[Bookmark], bookmark_id: str, now: Optional[datetime] = None
) -> List[StoreOperation]:
    """Count a visit and stamp the visit time."""
    bookmark = _find(bookmarks, bookmark_id)
    if bookmark is None:
        logger.warning(f"Visit for unknown bookmark {bookmark_id}")
        return []
    return [
        StoreOperation.update(
            BOOKMARKS,
            bookmark_id,
            {
                "visitCount": bookmark.visit_count + 1,
                "lastVisitedAt": format_timestamp(now or utc_now()),
            },
        )
    ]


def plan_mark_unread(bookmark_id: str) -> List[StoreOperation]:
    """Reset the visit count so the item returns to the unread bucket."""
    return [StoreOperation.update(BOOKMARKS, bookmark_id, {"visitCount": 0})]


def plan_toggle_favorite(bookmarks: Iterable[Bookmark], bookmark_id: str) -> List[StoreOperation]:
    bookmark = _find(bookmarks, bookmark_id)
    if bookmark is None:
        logger.warning(f"Favorite toggle for unknown bookmark {bookmark_id}")
        return []
    return [StoreOperation.update(BOOKMARKS, bookmark_id, {"isFavorite": not bookmark.is_favorite})]


# ============================================================================
# Categories
# ============================================================================


def plan_add_category(name: str) -> List[StoreOperation]:
    return [StoreOperation.add(CATEGORIES, {"name": _require_name(name, "Category")})]


def plan_rename_category(category_id: str, name: str) -> List[StoreOperation]:
    return [StoreOperation.update(CATEGORIES, category_id, {"name": _require_name(name, "Category")})]


def plan_delete_category(
    category_id: str,
    categories: Iterable[Category],
    folders: Iterable[Folder],
    bookmarks: Iterable[Bookmark],
) -> List[StoreOperation]:
    """
    Plan a category delete.

    Raises:
        InvariantViolationError: If any folder or directly assigned bookmark
            still references the category
    """
    category = _find(categories, category_id)
    name = category.name if category else category_id

    if any(f.category_id == category_id for f in folders):
        raise InvariantViolationError(
            f'Cannot delete "{name}". Please delete or move all folders from this category first.'
        )
    if any(b.category_id == category_id for b in bookmarks):
        raise InvariantViolationError(
            f'Cannot delete "{name}". Please delete or move all bookmarks directly '
            f"assigned to this category first."
        )
    return [StoreOperation.remove(CATEGORIES, category_id)]


# ============================================================================
# Folders
# ============================================================================


def plan_add_folder(name: str, category_id: Optional[str]) -> List[StoreOperation]:
    cleaned = _require_name(name, "Folder")
    if not category_id:
        raise ValidationError("A folder must belong to a category.")
    return [
        StoreOperation.add(
            FOLDERS,
            {"name": cleaned, "categoryId": category_id, "isPinned": False, "isPrivate": False},
        )
    ]


def plan_rename_folder(
    folder_id: str, name: str, private_folder_id: str = PRIVATE_FOLDER_ID
) -> List[StoreOperation]:
    if is_reserved_folder(folder_id, private_folder_id):
        raise InvariantViolationError("The private collection cannot be renamed.")
    return [StoreOperation.update(FOLDERS, folder_id, {"name": _require_name(name, "Folder")})]


def plan_toggle_pin(
    folders: Iterable[Folder], folder_id: str, private_folder_id: str = PRIVATE_FOLDER_ID
) -> List[StoreOperation]:
    if is_reserved_folder(folder_id, private_folder_id):
        raise InvariantViolationError("The private collection cannot be pinned.")
    folder = _find(folders, folder_id)
    if folder is None:
        logger.warning(f"Pin toggle for unknown folder {folder_id}")
        return []
    return [StoreOperation.update(FOLDERS, folder_id, {"isPinned": not folder.is_pinned})]


def plan_delete_folder(
    folder_id: str,
    folders: Iterable[Folder],
    bookmarks: Iterable[Bookmark],
    private_folder_id: str = PRIVATE_FOLDER_ID,
) -> List[StoreOperation]:
    """
    Plan a folder delete with its bookmarks moved to a fallback folder.

    The fallback is the first remaining non-reserved folder. Bookmark
    reassignments are planned before the folder removal.

    Raises:
        InvariantViolationError: For the private folder, or when the folder
            is the user's last deletable folder
    """
    if is_reserved_folder(folder_id, private_folder_id):
        raise InvariantViolationError("The private collection cannot be deleted.")

    deletable = [f for f in folders if not is_reserved_folder(f.id, private_folder_id)]
    folder = _find(deletable, folder_id)
    name = folder.name if folder else folder_id

    if len(deletable) <= 1:
        raise InvariantViolationError(f'Cannot delete "{name}" as it is your only folder.')

    fallback = next(f for f in deletable if f.id != folder_id)
    moved = location_fields(fallback.id, None, private_folder_id)

    operations = [
        StoreOperation.update(BOOKMARKS, b.id, moved) for b in bookmarks if b.folder_id == folder_id
    ]
    operations.append(StoreOperation.remove(FOLDERS, folder_id))
    return operations


def build_folder_share_text(folder: Folder, bookmarks: Iterable[Bookmark]) -> str:
    """
    Plain-text listing of a folder for sharing.

    Raises:
        ValidationError: If the folder holds no bookmarks
    """
    contents = [b for b in bookmarks if b.folder_id == folder.id]
    if not contents:
        raise ValidationError("This folder is empty.")
    body = "\n\n".join(f"{b.title}\n{b.url}" for b in contents)
    return f'Bookmarks from "{folder.name}":\n\n{body}'


# ============================================================================
# Labels
# ============================================================================


def find_label_by_name(labels: Iterable[Label], name: str) -> Optional[Label]:
    """
    Case-insensitive lookup used to avoid duplicate labels.

    This check is advisory: two near-simultaneous creations of the same
    name can both pass it.
    """
    wanted = name.strip().lower()
    return next((label for label in labels if label.name.lower() == wanted), None)


def plan_add_label(name: str) -> List[StoreOperation]:
    return [StoreOperation.add(LABELS, {"name": _require_name(name, "Label")})]


def plan_delete_label(label_id: str, bookmarks: Iterable[Bookmark]) -> List[StoreOperation]:
    """Strip the label from every bookmark, then remove it."""
    operations = [
        StoreOperation.update(
            BOOKMARKS, b.id, {"labels": [lid for lid in b.labels if lid != label_id]}
        )
        for b in bookmarks
        if label_id in b.labels
    ]
    operations.append(StoreOperation.remove(LABELS, label_id))
    return operations


# ============================================================================
# Data management
# ============================================================================

# Current collections by name, e.g. ``{"folders": state.folders, ...}``
Collections = Mapping[str, Iterable[Any]]


def _remove_all(name: str, items: Iterable[Any]) -> List[StoreOperation]:
    ids = [item.id for item in items]
    return [StoreOperation.bulk_delete(name, ids)] if ids else []


def plan_seed_defaults(
    existing: Collections,
    private_folder_id: str = PRIVATE_FOLDER_ID,
    reading_list_category_id: str = READING_LIST_CATEGORY_ID,
) -> List[StoreOperation]:
    """Add every default category, folder and label whose id is not taken yet."""
    operations = []
    for name, documents in default_documents(private_folder_id, reading_list_category_id).items():
        taken = {item.id for item in existing.get(name, ())}
        operations.extend(
            StoreOperation.add(name, document) for document in documents if document["id"] not in taken
        )
    return operations


def plan_reset_to_defaults(
    existing: Collections,
    private_folder_id: str = PRIVATE_FOLDER_ID,
    reading_list_category_id: str = READING_LIST_CATEGORY_ID,
) -> List[StoreOperation]:
    """
    Replace categories, folders and labels with the defaults.

    Bookmarks are left untouched, including references to folders,
    categories or labels that no longer exist afterwards.
    """
    defaults = default_documents(private_folder_id, reading_list_category_id)
    operations = []
    for name in (CATEGORIES, FOLDERS, LABELS):
        operations.extend(_remove_all(name, existing.get(name, ())))
    for name in (CATEGORIES, FOLDERS, LABELS):
        operations.extend(StoreOperation.add(name, document) for document in defaults[name])
    return operations


def plan_clear_all(
    existing: Collections, private_folder_id: str = PRIVATE_FOLDER_ID
) -> List[StoreOperation]:
    """Delete every document of every collection, keeping an empty private folder."""
    operations = []
    for name in COLLECTION_NAMES:
        operations.extend(_remove_all(name, existing.get(name, ())))
    operations.append(StoreOperation.add(FOLDERS, private_folder_document(private_folder_id)))
    return operations


def plan_import_snapshot(
    documents: Mapping[str, Iterable[Dict[str, Any]]],
    existing: Collections,
    private_folder_id: str = PRIVATE_FOLDER_ID,
) -> List[StoreOperation]:
    """
    Replace all four collections with the documents of a backup.

    Imported documents are normalised through the entity models, and each
    bookmark's privacy flag is recomputed from its folder. The private
    folder is added when the backup does not carry one.

    Raises:
        SnapshotFormatError: If a document has values of the wrong type
    """
    operations = []
    for name in COLLECTION_NAMES:
        operations.extend(_remove_all(name, existing.get(name, ())))

    has_private_folder = False
    for name in COLLECTION_NAMES:
        entity_type = ENTITY_TYPES[name]
        for document in documents.get(name) or []:
            try:
                item = entity_type.from_dict(document).to_dict()
            except (TypeError, ValueError) as e:
                raise SnapshotFormatError(f"Invalid document in '{name}': {e}") from e
            if name == BOOKMARKS:
                item["isPrivate"] = is_reserved_folder(item.get("folderId"), private_folder_id)
            if name == FOLDERS:
                item["isPrivate"] = is_reserved_folder(item["id"], private_folder_id)
                has_private_folder = has_private_folder or item["isPrivate"]
            operations.append(StoreOperation.add(name, item))

    if not has_private_folder:
        operations.append(StoreOperation.add(FOLDERS, private_folder_document(private_folder_id)))
    return operations

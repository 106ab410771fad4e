"""
Bulk actions over a selection of bookmarks.

Move and delete are single batched writes. Adding labels writes each
bookmark separately because every bookmark ends up with a different label
set, so a failure part-way leaves earlier bookmarks updated. Every action
clears the selection when it finishes, whatever the per-item outcome.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Tuple

from ..utils.error_handler import ValidationError
from .data_models import PRIVATE_FOLDER_ID, Bookmark, unique_ids
from .entity_store import BOOKMARKS, StoreOperation, UserStore, WriteReport, execute_operations
from .location import location_fields

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Selection:
    """Ordered set of selected bookmark ids."""

    ids: Tuple[str, ...] = ()

    def __contains__(self, bookmark_id: object) -> bool:
        return bookmark_id in self.ids

    def __iter__(self) -> Iterator[str]:
        return iter(self.ids)

    def __len__(self) -> int:
        return len(self.ids)

    def toggle(self, bookmark_id: str) -> "Selection":
        if bookmark_id in self.ids:
            return Selection(tuple(i for i in self.ids if i != bookmark_id))
        return Selection(self.ids + (bookmark_id,))

    def toggle_all(self, visible: Iterable[Bookmark]) -> "Selection":
        """Select every visible bookmark, or clear if all are already selected."""
        visible_ids = tuple(b.id for b in visible)
        if len(self.ids) == len(visible_ids):
            return Selection()
        return Selection(visible_ids)

    @staticmethod
    def cleared() -> "Selection":
        return Selection()


def plan_bulk_move(
    selection: Iterable[str], target_folder_id: str, private_folder_id: str = PRIVATE_FOLDER_ID
) -> List[StoreOperation]:
    """One batched write moving every selected bookmark into a folder."""
    ids = list(selection)
    if not ids:
        return []
    if not target_folder_id:
        raise ValidationError("Choose a folder to move the bookmarks to.")
    return [
        StoreOperation.bulk_update(
            BOOKMARKS, ids, location_fields(target_folder_id, None, private_folder_id)
        )
    ]


def plan_bulk_add_labels(
    selection: Iterable[str], bookmarks: Iterable[Bookmark], label_ids: Iterable[str]
) -> List[StoreOperation]:
    """One write per selected bookmark with the union of old and new labels."""
    selected = set(selection)
    new_ids = list(label_ids)
    return [
        StoreOperation.update(BOOKMARKS, b.id, {"labels": unique_ids(b.labels + new_ids)})
        for b in bookmarks
        if b.id in selected
    ]


def plan_bulk_delete(selection: Iterable[str]) -> List[StoreOperation]:
    ids = list(selection)
    if not ids:
        return []
    return [StoreOperation.bulk_delete(BOOKMARKS, ids)]


@dataclass
class BulkActionResult:
    """Write report plus the selection to use afterwards (always empty)."""

    action: str
    report: WriteReport
    selection: Selection = field(default_factory=Selection)


class BulkActionCoordinator:
    """
    Runs bulk actions for one user's store.

    Args:
        store: Target user store
        private_folder_id: Reserved private folder id
    """

    def __init__(self, store: UserStore, private_folder_id: str = PRIVATE_FOLDER_ID):
        self.store = store
        self.private_folder_id = private_folder_id

    async def move(self, selection: Selection, target_folder_id: str) -> BulkActionResult:
        operations = plan_bulk_move(selection, target_folder_id, self.private_folder_id)
        return await self._run("move", selection, operations)

    async def add_labels(
        self, selection: Selection, bookmarks: Iterable[Bookmark], label_ids: Iterable[str]
    ) -> BulkActionResult:
        operations = plan_bulk_add_labels(selection, bookmarks, label_ids)
        return await self._run("add_labels", selection, operations)

    async def delete(self, selection: Selection) -> BulkActionResult:
        return await self._run("delete", selection, plan_bulk_delete(selection))

    async def _run(
        self, action: str, selection: Selection, operations: List[StoreOperation]
    ) -> BulkActionResult:
        report = await execute_operations(self.store, operations)
        logger.info(f"Bulk {action} on {len(selection)} bookmark(s): {report}")
        return BulkActionResult(action=action, report=report, selection=Selection.cleared())

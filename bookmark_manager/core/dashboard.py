"""
Dashboard controller.

Binds one user's store to an ``AppState``: every snapshot event from the
store replaces the matching collection and recomputes the view, and every
user command is validated, planned, written and reported here. Command
methods never raise; rejected input and invariant violations are surfaced
through the notifier and store failures are logged and reported.
"""

import logging
from datetime import datetime
from typing import Any, Callable, Iterable, List, Optional

from ..config.pydantic_config import ManagerConfig
from ..utils.error_handler import (
    InvariantViolationError,
    PrivateCollectionLockedError,
    SnapshotFormatError,
    ValidationError,
)
from .active_filter import ActiveFilter, AllView
from .app_state import (
    AppState,
    DashboardView,
    check_view_access,
    derive_view,
    with_active_filter,
    with_all_toggled,
    with_collection,
    with_private_unlocked,
    with_search_term,
    with_selection_cleared,
    with_selection_toggled,
    with_sort,
)
from .archiver import ArchiveOutcome, PageArchiver
from .bulk_actions import BulkActionCoordinator, BulkActionResult
from .commands import (
    BookmarkDraft,
    build_folder_share_text,
    find_label_by_name,
    plan_add_category,
    plan_add_folder,
    plan_add_label,
    plan_clear_all,
    plan_delete_category,
    plan_delete_folder,
    plan_delete_label,
    plan_import_snapshot,
    plan_mark_unread,
    plan_rename_category,
    plan_rename_folder,
    plan_reset_to_defaults,
    plan_save_bookmark,
    plan_seed_defaults,
    plan_toggle_favorite,
    plan_toggle_pin,
    plan_visit,
)
from .data_models import utc_now
from .entity_store import COLLECTION_NAMES, StoreOperation, UserStore, WriteReport, execute_operations
from .exporters.json_exporter import parse_snapshot
from .location import Location, initial_location_for
from .notifications import LoggingNotifier, Notifier
from .sorting import SortBy

logger = logging.getLogger(__name__)

STORE_FAILURE_MESSAGE = "Something went wrong while saving your changes. Please try again."
IMPORT_FAILURE_MESSAGE = "Failed to import data. The file might be corrupted."

ViewListener = Callable[[DashboardView], None]


class Dashboard:
    """
    Controller for one user's dashboard.

    Example Usage:
        >>> async with Dashboard(UserStore("user-1")) as dashboard:
        ...     await dashboard.add_category("Work")
        ...     print(dashboard.view.bookmarks)
    """

    def __init__(
        self,
        store: UserStore,
        config: Optional[ManagerConfig] = None,
        notifier: Optional[Notifier] = None,
        archiver: Optional[PageArchiver] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.store = store
        self.config = config or ManagerConfig()
        self.notifier = notifier or LoggingNotifier()
        self.private_folder_id = self.config.collections.private_folder_id
        self.archiver = archiver or PageArchiver.from_config(
            store, self.config.archive, notifier=self.notifier
        )
        self._owns_archiver = archiver is None
        self.bulk = BulkActionCoordinator(store, self.private_folder_id)
        self._clock = clock or utc_now

        self.state = AppState(sort_by=SortBy.parse(self.config.view.default_sort))
        self.view = derive_view(self.state, self.config, now=self._clock())
        self._listeners: List[ViewListener] = []
        self._unsubscribers: List[Callable[[], None]] = []

    # ------------------------------------------------------------------
    # Lifecycle and view events
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Subscribe to all four collections; each delivers its snapshot at once."""
        if self._unsubscribers:
            return
        for name in COLLECTION_NAMES:
            self._unsubscribers.append(self.store.collection(name).subscribe(self._on_snapshot))
        logger.debug(f"Dashboard subscribed to {len(self._unsubscribers)} collections")

    def stop(self) -> None:
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    async def aclose(self) -> None:
        """Unsubscribe and close the archiver's HTTP client if this dashboard created it."""
        self.stop()
        if self._owns_archiver:
            await self.archiver.aclose()

    async def __aenter__(self) -> "Dashboard":
        self.start()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.aclose()

    def add_listener(self, listener: ViewListener) -> Callable[[], None]:
        """Call ``listener`` with every recomputed view; returns an unsubscribe function."""
        self._listeners.append(listener)

        def remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return remove

    def _on_snapshot(self, name: str, documents: List[dict]) -> None:
        self._set_state(with_collection(self.state, name, documents))

    def _set_state(self, state: AppState) -> None:
        self.state = state
        self.view = derive_view(state, self.config, now=self._clock())
        for listener in list(self._listeners):
            try:
                listener(self.view)
            except Exception as e:
                logger.error(f"View listener failed: {e}", exc_info=True)

    def refresh(self) -> DashboardView:
        """Recompute the view, e.g. after the clock moved past an abandoned cutoff."""
        self._set_state(self.state)
        return self.view

    # ------------------------------------------------------------------
    # Selectors
    # ------------------------------------------------------------------

    def open_view(self, active_filter: ActiveFilter) -> bool:
        """
        Switch to a view.

        Returns:
            False when the private collection is requested while locked
        """
        try:
            check_view_access(self.state, active_filter, self.private_folder_id)
        except PrivateCollectionLockedError as e:
            self.notifier.alert(str(e))
            return False

        self._set_state(with_active_filter(self.state, active_filter))
        return True

    def unlock_private(self) -> None:
        self._set_state(with_private_unlocked(self.state, True))

    def lock_private(self) -> None:
        state = with_private_unlocked(self.state, False)
        if state.active_filter.scope_id == self.private_folder_id:
            state = with_active_filter(state, AllView())
        self._set_state(state)

    def search(self, term: str) -> None:
        self._set_state(with_search_term(self.state, term))

    def set_sort(self, sort_by) -> None:
        self._set_state(with_sort(self.state, sort_by))

    def toggle_selection(self, bookmark_id: str) -> None:
        self._set_state(with_selection_toggled(self.state, bookmark_id))

    def toggle_select_all(self) -> None:
        self._set_state(with_all_toggled(self.state, self.view.bookmarks))

    def clear_selection(self) -> None:
        self._set_state(with_selection_cleared(self.state))

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    async def _run(
        self,
        plan: Callable[[], Iterable[StoreOperation]],
        success_message: Optional[str] = None,
    ) -> Optional[WriteReport]:
        """Plan, then write. Returns None when the command was rejected."""
        try:
            operations = list(plan())
        except ValidationError as e:
            self.notifier.notify(str(e))
            return None
        except InvariantViolationError as e:
            self.notifier.alert(str(e))
            return None

        report = await execute_operations(self.store, operations)
        if report.has_errors:
            self.notifier.notify(STORE_FAILURE_MESSAGE)
        elif success_message:
            self.notifier.notify(success_message)
        return report

    async def save_bookmark(
        self, draft: BookmarkDraft, bookmark_id: Optional[str] = None
    ) -> Optional[WriteReport]:
        return await self._run(
            lambda: plan_save_bookmark(
                draft, bookmark_id, now=self._clock(), private_folder_id=self.private_folder_id
            ),
            "Bookmark updated." if bookmark_id else "Bookmark added.",
        )

    async def visit(self, bookmark_id: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_visit(self.state.bookmarks, bookmark_id, self._clock()))

    async def mark_unread(self, bookmark_id: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_mark_unread(bookmark_id))

    async def toggle_favorite(self, bookmark_id: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_toggle_favorite(self.state.bookmarks, bookmark_id))

    async def add_category(self, name: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_add_category(name))

    async def rename_category(self, category_id: str, name: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_rename_category(category_id, name))

    async def delete_category(self, category_id: str) -> Optional[WriteReport]:
        return await self._run(
            lambda: plan_delete_category(
                category_id, self.state.categories, self.state.folders, self.state.bookmarks
            )
        )

    async def add_folder(self, name: str, category_id: Optional[str]) -> Optional[WriteReport]:
        return await self._run(lambda: plan_add_folder(name, category_id))

    async def rename_folder(self, folder_id: str, name: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_rename_folder(folder_id, name, self.private_folder_id))

    async def toggle_pin(self, folder_id: str) -> Optional[WriteReport]:
        return await self._run(
            lambda: plan_toggle_pin(self.state.folders, folder_id, self.private_folder_id)
        )

    async def delete_folder(self, folder_id: str) -> Optional[WriteReport]:
        report = await self._run(
            lambda: plan_delete_folder(
                folder_id, self.state.folders, self.state.bookmarks, self.private_folder_id
            )
        )
        if report is not None and self.state.active_filter.scope_id == folder_id:
            self._set_state(with_active_filter(self.state, AllView()))
        return report

    async def add_label(self, name: str) -> Optional[str]:
        """
        Create a label, or reuse an existing one with the same name.

        Returns:
            The new or existing label id, or None if rejected or not written
        """
        existing = find_label_by_name(self.state.labels, name or "")
        if existing is not None:
            return existing.id
        report = await self._run(lambda: plan_add_label(name))
        if report is None or not report.created_ids:
            return None
        return report.created_ids[0]

    async def delete_label(self, label_id: str) -> Optional[WriteReport]:
        return await self._run(lambda: plan_delete_label(label_id, self.state.bookmarks))

    def share_folder(self, folder_id: str) -> Optional[str]:
        """Plain-text listing for a folder, or None (with a notification) if empty."""
        folder = self.state.find_folder(folder_id)
        if folder is None:
            logger.warning(f"Share requested for unknown folder {folder_id}")
            return None
        try:
            return build_folder_share_text(folder, self.state.bookmarks)
        except ValidationError as e:
            self.notifier.notify(str(e))
            return None

    async def archive(self, bookmark_id: str) -> Optional[ArchiveOutcome]:
        bookmark = self.state.find_bookmark(bookmark_id)
        if bookmark is None:
            logger.warning(f"Archive requested for unknown bookmark {bookmark_id}")
            return None
        return await self.archiver.archive(bookmark)

    def default_location(self) -> Location:
        """Location pre-filled for a bookmark created from the open view."""
        return initial_location_for(self.state.active_filter)

    # ------------------------------------------------------------------
    # Data management
    # ------------------------------------------------------------------

    def _existing(self) -> dict:
        return {name: getattr(self.state, name) for name in COLLECTION_NAMES}

    async def _replace_data(
        self, plan: Callable[[], Iterable[StoreOperation]], success_message: str
    ) -> Optional[WriteReport]:
        report = await self._run(plan, success_message)
        if report is not None:
            state = with_selection_cleared(with_active_filter(self.state, AllView()))
            self._set_state(state)
        return report

    async def seed_defaults(self) -> Optional[WriteReport]:
        """Add the default categories, folders and labels that are missing."""
        report = await self._run(
            lambda: plan_seed_defaults(
                self._existing(),
                self.private_folder_id,
                self.config.collections.reading_list_category_id,
            )
        )
        if report is not None:
            logger.info(f"Seeded {report.succeeded} default documents")
        return report

    async def reset_to_defaults(self) -> Optional[WriteReport]:
        """Replace categories, folders and labels with the defaults; bookmarks are kept."""
        return await self._replace_data(
            lambda: plan_reset_to_defaults(
                self._existing(),
                self.private_folder_id,
                self.config.collections.reading_list_category_id,
            ),
            "Your data has been reset to the default configuration.",
        )

    async def clear_all(self) -> Optional[WriteReport]:
        """Delete everything, leaving only the empty private folder."""
        return await self._replace_data(
            lambda: plan_clear_all(self._existing(), self.private_folder_id),
            "All data has been cleared.",
        )

    async def import_data(self, payload: Any) -> Optional[WriteReport]:
        """
        Replace all collections with a decoded JSON backup.

        A malformed backup is reported as an alert and nothing is written.
        """
        try:
            operations = plan_import_snapshot(
                parse_snapshot(payload), self._existing(), self.private_folder_id
            )
        except SnapshotFormatError as e:
            logger.warning(f"Rejected import: {e}")
            self.notifier.alert(IMPORT_FAILURE_MESSAGE)
            return None
        return await self._replace_data(lambda: operations, "Data imported successfully!")

    # ------------------------------------------------------------------
    # Bulk actions
    # ------------------------------------------------------------------

    async def _run_bulk(self, action) -> Optional[BulkActionResult]:
        try:
            result = await action()
        except ValidationError as e:
            self.notifier.notify(str(e))
            return None
        finally:
            self._set_state(with_selection_cleared(self.state))

        if result.report.has_errors:
            self.notifier.notify(STORE_FAILURE_MESSAGE)
        return result

    async def bulk_move(self, target_folder_id: str) -> Optional[BulkActionResult]:
        selection = self.state.selection
        return await self._run_bulk(lambda: self.bulk.move(selection, target_folder_id))

    async def bulk_add_labels(self, label_ids: Iterable[str]) -> Optional[BulkActionResult]:
        selection = self.state.selection
        bookmarks = self.state.bookmarks
        return await self._run_bulk(lambda: self.bulk.add_labels(selection, bookmarks, label_ids))

    async def bulk_delete(self) -> Optional[BulkActionResult]:
        selection = self.state.selection
        return await self._run_bulk(lambda: self.bulk.delete(selection))

"""
Tests for selection handling and bulk actions.
"""

import pytest

from bookmark_manager.core.bulk_actions import (
    BulkActionCoordinator,
    Selection,
    plan_bulk_add_labels,
    plan_bulk_delete,
    plan_bulk_move,
)
from bookmark_manager.core.entity_store import BOOKMARKS, InMemoryCollection, UserStore
from bookmark_manager.utils.error_handler import StoreWriteError, ValidationError
from tests.fixtures.test_data import make_bookmark


class FlakyBookmarks(InMemoryCollection):
    """Bookmark collection that rejects updates to one document."""

    def __init__(self, documents, fail_id):
        super().__init__(BOOKMARKS, documents)
        self.fail_id = fail_id

    async def update(self, document_id, fields):
        if document_id == self.fail_id:
            raise StoreWriteError("write rejected")
        await super().update(document_id, fields)


class TestSelection:
    """Tests for Selection."""

    def test_toggle(self):
        selection = Selection().toggle("a").toggle("b")
        assert selection.ids == ("a", "b")
        assert "a" in selection
        assert selection.toggle("a").ids == ("b",)

    def test_toggle_all_selects_visible(self):
        visible = [make_bookmark("a"), make_bookmark("b")]
        assert Selection(("a",)).toggle_all(visible).ids == ("a", "b")

    def test_toggle_all_clears_when_all_selected(self):
        """Test toggling all with everything selected clears the selection."""
        visible = [make_bookmark("a"), make_bookmark("b")]
        assert len(Selection(("a", "b")).toggle_all(visible)) == 0

    def test_toggle_all_compares_counts(self):
        """Test the clear decision compares counts, not ids."""
        visible = [make_bookmark("c"), make_bookmark("d")]
        assert len(Selection(("a", "b")).toggle_all(visible)) == 0

    def test_immutable(self):
        selection = Selection(("a",))
        selection.toggle("b")
        assert selection.ids == ("a",)

    def test_cleared(self):
        assert list(Selection.cleared()) == []


class TestBulkPlans:
    """Tests for the bulk planners."""

    def test_move_is_single_batch(self):
        (operation,) = plan_bulk_move(Selection(("b1", "b2")), "f-news")

        assert operation.action == "bulk_update"
        assert operation.document_ids == ["b1", "b2"]
        assert operation.fields == {"folderId": "f-news", "categoryId": None, "isPrivate": False}

    def test_move_into_private(self):
        (operation,) = plan_bulk_move(["b1"], "private")
        assert operation.fields["isPrivate"] is True

    def test_move_requires_target(self):
        with pytest.raises(ValidationError):
            plan_bulk_move(["b1"], "")

    def test_move_empty_selection(self):
        assert plan_bulk_move([], "") == []

    def test_add_labels_unions(self, bookmarks):
        """Test each bookmark gets its own union of old and new labels."""
        operations = plan_bulk_add_labels(["b1", "b2", "b3"], bookmarks, ["l-async", "l-read"])

        assert [op.document_id for op in operations] == ["b1", "b2", "b3"]
        assert operations[0].fields == {"labels": ["l-py", "l-async", "l-read"]}
        assert operations[1].fields == {"labels": ["l-py", "l-async", "l-read"]}
        assert operations[2].fields == {"labels": ["l-async", "l-read"]}

    def test_delete(self):
        (operation,) = plan_bulk_delete(Selection(("b1", "b2")))
        assert operation.action == "bulk_delete"
        assert operation.document_ids == ["b1", "b2"]
        assert plan_bulk_delete([]) == []


class TestBulkActionCoordinator:
    """Tests for BulkActionCoordinator."""

    @pytest.mark.asyncio
    async def test_move(self, store):
        coordinator = BulkActionCoordinator(store)

        result = await coordinator.move(Selection(("b1", "b7")), "f-news")

        assert result.report.succeeded == 1
        assert len(result.selection) == 0
        assert store.bookmarks.get("b1")["folderId"] == "f-news"
        assert store.bookmarks.get("b7")["folderId"] == "f-news"

    @pytest.mark.asyncio
    async def test_move_is_atomic(self, store):
        """Test a missing id fails the whole batch and moves nothing."""
        coordinator = BulkActionCoordinator(store)

        result = await coordinator.move(Selection(("b1", "gone")), "f-news")

        assert result.report.failed == 1
        assert store.bookmarks.get("b1")["folderId"] == "f-python"
        assert len(result.selection) == 0

    @pytest.mark.asyncio
    async def test_add_labels_partial_failure(self, sample_documents, bookmarks):
        """Test a failed write leaves the other bookmarks updated."""
        store = UserStore(
            "user-1", {BOOKMARKS: FlakyBookmarks(sample_documents["bookmarks"], fail_id="b2")}
        )
        coordinator = BulkActionCoordinator(store)

        result = await coordinator.add_labels(Selection(("b1", "b2", "b3")), bookmarks, ["l-read"])

        assert result.report.succeeded == 2
        assert result.report.failed == 1
        assert store.bookmarks.get("b1")["labels"] == ["l-py", "l-read"]
        assert store.bookmarks.get("b2")["labels"] == ["l-py", "l-async"]
        assert store.bookmarks.get("b3")["labels"] == ["l-read"]
        assert len(result.selection) == 0

    @pytest.mark.asyncio
    async def test_delete(self, store):
        coordinator = BulkActionCoordinator(store)

        result = await coordinator.delete(Selection(("b1", "b2")))

        assert result.action == "delete"
        assert "b1" not in store.bookmarks
        assert "b2" not in store.bookmarks
        assert len(store.bookmarks) == 5

"""
Tests for the in-memory entity store and write plan execution.
"""

import pytest

from bookmark_manager.core.entity_store import (
    BOOKMARKS,
    COLLECTION_NAMES,
    FOLDERS,
    EntityCollection,
    InMemoryCollection,
    StoreOperation,
    UserStore,
    WriteReport,
    execute_operations,
)
from bookmark_manager.utils.error_handler import DocumentNotFoundError, StoreWriteError


class RecordingSubscriber:
    """Collects every snapshot it receives."""

    def __init__(self):
        self.calls = []

    def __call__(self, name, documents):
        self.calls.append((name, documents))

    @property
    def last(self):
        return self.calls[-1][1]


class FailingCollection(InMemoryCollection):
    """Collection whose writes always fail."""

    async def update(self, document_id, fields):
        raise StoreWriteError("backend unavailable")

    async def bulk_update(self, document_ids, fields):
        raise StoreWriteError("backend unavailable")


class TestInMemoryCollection:
    """Tests for InMemoryCollection."""

    def test_satisfies_protocol(self):
        assert isinstance(InMemoryCollection(BOOKMARKS), EntityCollection)

    def test_initial_documents_get_ids(self):
        collection = InMemoryCollection(FOLDERS, [{"id": "f1", "name": "A"}, {"name": "B"}])
        assert len(collection) == 2
        assert "f1" in collection
        assert all(doc["id"] for doc in collection.snapshot())

    def test_subscribe_delivers_immediately(self):
        """Test a new subscriber gets the current snapshot at once."""
        collection = InMemoryCollection(FOLDERS, [{"id": "f1", "name": "A"}])
        subscriber = RecordingSubscriber()

        collection.subscribe(subscriber)

        assert subscriber.calls == [(FOLDERS, [{"id": "f1", "name": "A"}])]

    @pytest.mark.asyncio
    async def test_add_publishes_snapshot(self):
        collection = InMemoryCollection(FOLDERS, id_factory=lambda: "generated")
        subscriber = RecordingSubscriber()
        collection.subscribe(subscriber)

        new_id = await collection.add({"name": "Work"})

        assert new_id == "generated"
        assert subscriber.last == [{"name": "Work", "id": "generated"}]

    @pytest.mark.asyncio
    async def test_add_duplicate_id_rejected(self):
        collection = InMemoryCollection(FOLDERS, [{"id": "f1", "name": "A"}])
        with pytest.raises(StoreWriteError):
            await collection.add({"id": "f1", "name": "B"})

    @pytest.mark.asyncio
    async def test_update_merges_fields(self):
        collection = InMemoryCollection(FOLDERS, [{"id": "f1", "name": "A", "isPinned": False}])

        await collection.update("f1", {"isPinned": True, "id": "ignored"})

        assert collection.get("f1") == {"id": "f1", "name": "A", "isPinned": True}

    @pytest.mark.asyncio
    async def test_update_missing_document(self):
        collection = InMemoryCollection(FOLDERS)
        with pytest.raises(DocumentNotFoundError):
            await collection.update("nope", {"name": "x"})

    @pytest.mark.asyncio
    async def test_bulk_update_is_all_or_nothing(self):
        """Test one unknown id leaves every document untouched."""
        collection = InMemoryCollection(BOOKMARKS, [{"id": "a", "v": 1}, {"id": "b", "v": 1}])

        with pytest.raises(DocumentNotFoundError):
            await collection.bulk_update(["a", "missing", "b"], {"v": 2})

        assert [doc["v"] for doc in collection.snapshot()] == [1, 1]

    @pytest.mark.asyncio
    async def test_bulk_update_publishes_once(self):
        collection = InMemoryCollection(BOOKMARKS, [{"id": "a"}, {"id": "b"}])
        subscriber = RecordingSubscriber()
        collection.subscribe(subscriber)

        await collection.bulk_update(["a", "b"], {"folderId": "f1"})

        assert len(subscriber.calls) == 2
        assert all(doc["folderId"] == "f1" for doc in subscriber.last)

    @pytest.mark.asyncio
    async def test_bulk_delete_and_remove(self):
        collection = InMemoryCollection(BOOKMARKS, [{"id": "a"}, {"id": "b"}, {"id": "c"}])

        await collection.bulk_delete(["a", "b"])
        await collection.remove("c")
        await collection.remove("already-gone")

        assert len(collection) == 0

    def test_snapshot_is_a_copy(self):
        collection = InMemoryCollection(BOOKMARKS, [{"id": "a", "labels": ["x"]}])
        collection.snapshot()[0]["labels"].append("y")
        assert collection.get("a")["labels"] == ["x"]

    @pytest.mark.asyncio
    async def test_unsubscribe(self):
        collection = InMemoryCollection(FOLDERS)
        subscriber = RecordingSubscriber()
        unsubscribe = collection.subscribe(subscriber)

        unsubscribe()
        await collection.add({"name": "Work"})

        assert len(subscriber.calls) == 1

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_block_others(self):
        """Test a subscriber that raises is logged and the others still run."""
        collection = InMemoryCollection(FOLDERS)

        def broken(name, documents):
            raise RuntimeError("boom")

        subscriber = RecordingSubscriber()
        collection.subscribe(broken)
        collection.subscribe(subscriber)

        await collection.add({"name": "Work"})

        assert len(subscriber.calls) == 2


class TestUserStore:
    """Tests for UserStore."""

    def test_requires_user_id(self):
        with pytest.raises(ValueError):
            UserStore("")

    def test_has_all_collections(self):
        store = UserStore("user-1")
        assert set(store.collections) == set(COLLECTION_NAMES)
        assert store.bookmarks.name == BOOKMARKS

    def test_unknown_collection(self):
        with pytest.raises(KeyError):
            UserStore("user-1").collection("notes")

    def test_snapshot_round_trip(self, sample_documents):
        store = UserStore.from_snapshot("user-1", sample_documents)
        assert store.to_snapshot() == sample_documents

    def test_missing_collections_start_empty(self):
        store = UserStore.from_snapshot("user-1", {"labels": [{"id": "l1", "name": "x"}]})
        assert len(store.bookmarks.snapshot()) == 0
        assert len(store.labels.snapshot()) == 1


class TestExecuteOperations:
    """Tests for execute_operations."""

    @pytest.mark.asyncio
    async def test_runs_in_order(self, store):
        report = await execute_operations(
            store,
            [
                StoreOperation.add(FOLDERS, {"id": "f-new", "name": "New", "categoryId": "c-work"}),
                StoreOperation.update(BOOKMARKS, "b7", {"folderId": "f-new"}),
            ],
        )

        assert report.total == 2
        assert report.succeeded == 2
        assert report.created_ids == ["f-new"]
        assert store.bookmarks.get("b7")["folderId"] == "f-new"

    @pytest.mark.asyncio
    async def test_failure_does_not_stop_plan(self, store):
        """Test a failed operation is recorded and later operations still run."""
        report = await execute_operations(
            store,
            [
                StoreOperation.update(BOOKMARKS, "missing", {"title": "x"}),
                StoreOperation.update(BOOKMARKS, "b1", {"title": "Renamed"}),
            ],
        )

        assert report.failed == 1
        assert report.succeeded == 1
        assert report.has_errors
        assert "missing" in report.errors[0]
        assert store.bookmarks.get("b1")["title"] == "Renamed"

    @pytest.mark.asyncio
    async def test_backend_failure_is_reported(self, sample_documents):
        store = UserStore(
            "user-1",
            {BOOKMARKS: FailingCollection(BOOKMARKS, sample_documents["bookmarks"])},
        )

        report = await execute_operations(
            store, [StoreOperation.bulk_update(BOOKMARKS, ["b1", "b2"], {"folderId": "f-news"})]
        )

        assert report.failed == 1
        assert "backend unavailable" in report.errors[0]

    @pytest.mark.asyncio
    async def test_unknown_action(self, store):
        report = await execute_operations(store, [StoreOperation(BOOKMARKS, "upsert")])
        assert report.failed == 1

    @pytest.mark.asyncio
    async def test_empty_plan(self, store):
        report = await execute_operations(store, [])
        assert report.total == 0
        assert not report.has_errors

    def test_describe(self):
        assert StoreOperation.remove(FOLDERS, "f1").describe() == "remove folders [f1]"
        assert (
            StoreOperation.bulk_delete(BOOKMARKS, ["a", "b"]).describe()
            == "bulk_delete bookmarks [a, b]"
        )
        assert StoreOperation.add(FOLDERS, {}).describe() == "add folders [new document]"

    def test_report_str(self):
        assert str(WriteReport(total=2, succeeded=1, failed=1)) == (
            "WriteReport(total=2, succeeded=1, failed=1)"
        )

"""
Entity store interface and in-memory implementation.

The engine reads each user's collections (bookmarks, folders, categories,
labels) as full snapshots delivered to subscribers on every change, and
writes back through a small set of document operations. Writes are
fire-and-forget from the engine's point of view: a failed write is logged
and counted, never retried, and the next snapshot reconciles state.
"""

import copy
import logging
import uuid
from dataclasses import dataclass, field
from typing import (
    Any,
    Callable,
    Dict,
    Iterable,
    List,
    Optional,
    Protocol,
    runtime_checkable,
)

from ..utils.error_handler import DocumentNotFoundError, StoreWriteError

logger = logging.getLogger(__name__)

BOOKMARKS = "bookmarks"
FOLDERS = "folders"
CATEGORIES = "categories"
LABELS = "labels"
COLLECTION_NAMES = (BOOKMARKS, FOLDERS, CATEGORIES, LABELS)

Document = Dict[str, Any]
SnapshotCallback = Callable[[str, List[Document]], None]


@runtime_checkable
class EntityCollection(Protocol):
    """
    Protocol for one user's document collection of one entity kind.

    Example Usage:
        >>> folders = InMemoryCollection(FOLDERS)
        >>> unsubscribe = folders.subscribe(lambda name, docs: print(len(docs)))
        >>> folder_id = await folders.add({"name": "Work", "categoryId": "c1"})
        >>> await folders.update(folder_id, {"isPinned": True})
    """

    name: str

    async def add(self, item: Document) -> str:
        """Create a document and return its id."""
        ...

    async def update(self, document_id: str, fields: Document) -> None:
        """Merge fields into one document."""
        ...

    async def remove(self, document_id: str) -> None:
        """Delete one document."""
        ...

    async def bulk_update(self, document_ids: List[str], fields: Document) -> None:
        """Merge the same fields into several documents as one atomic batch."""
        ...

    async def bulk_delete(self, document_ids: List[str]) -> None:
        """Delete several documents as one atomic batch."""
        ...

    def snapshot(self) -> List[Document]:
        """Return all current documents."""
        ...

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        """Register for full snapshots; returns an unsubscribe function."""
        ...


class InMemoryCollection:
    """
    Dictionary-backed collection with snapshot subscriptions.

    Subscribers receive ``(collection_name, documents)`` once on subscribe and
    after every successful write. A subscriber that raises is logged and
    does not stop delivery to the others.
    """

    def __init__(
        self,
        name: str,
        documents: Optional[Iterable[Document]] = None,
        id_factory: Optional[Callable[[], str]] = None,
    ):
        self.name = name
        self._documents: Dict[str, Document] = {}
        self._subscribers: List[SnapshotCallback] = []
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

        for document in documents or []:
            document_id = str(document.get("id") or self._id_factory())
            self._documents[document_id] = {**copy.deepcopy(document), "id": document_id}

    def __len__(self) -> int:
        return len(self._documents)

    def __contains__(self, document_id: str) -> bool:
        return document_id in self._documents

    def get(self, document_id: str) -> Optional[Document]:
        document = self._documents.get(document_id)
        return copy.deepcopy(document) if document is not None else None

    def snapshot(self) -> List[Document]:
        return [copy.deepcopy(doc) for doc in self._documents.values()]

    def subscribe(self, callback: SnapshotCallback) -> Callable[[], None]:
        self._subscribers.append(callback)
        self._deliver(callback, self.snapshot())

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    async def add(self, item: Document) -> str:
        document_id = str(item.get("id") or self._id_factory())
        if document_id in self._documents:
            raise StoreWriteError(f"Document '{document_id}' already exists in '{self.name}'")
        self._documents[document_id] = {**copy.deepcopy(item), "id": document_id}
        self._publish()
        return document_id

    async def update(self, document_id: str, fields: Document) -> None:
        self._require(document_id)
        self._documents[document_id].update(self._clean(fields))
        self._publish()

    async def remove(self, document_id: str) -> None:
        self._documents.pop(document_id, None)
        self._publish()

    async def bulk_update(self, document_ids: List[str], fields: Document) -> None:
        if not document_ids:
            return
        # All-or-nothing: validate every id before touching any document
        for document_id in document_ids:
            self._require(document_id)
        cleaned = self._clean(fields)
        for document_id in document_ids:
            self._documents[document_id].update(copy.deepcopy(cleaned))
        self._publish()

    async def bulk_delete(self, document_ids: List[str]) -> None:
        if not document_ids:
            return
        for document_id in document_ids:
            self._documents.pop(document_id, None)
        self._publish()

    def _require(self, document_id: str) -> None:
        if document_id not in self._documents:
            raise DocumentNotFoundError(self.name, document_id)

    @staticmethod
    def _clean(fields: Document) -> Document:
        return {k: copy.deepcopy(v) for k, v in fields.items() if k != "id"}

    def _publish(self) -> None:
        documents = self.snapshot()
        for callback in list(self._subscribers):
            self._deliver(callback, documents)

    def _deliver(self, callback: SnapshotCallback, documents: List[Document]) -> None:
        try:
            callback(self.name, copy.deepcopy(documents))
        except Exception as e:
            logger.error(f"Snapshot subscriber failed for '{self.name}': {e}", exc_info=True)


class UserStore:
    """The four collections owned by a single user."""

    def __init__(self, user_id: str, collections: Optional[Dict[str, EntityCollection]] = None):
        if not user_id:
            raise ValueError("A user id must be provided to open a store.")
        self.user_id = user_id
        collections = collections or {}
        self.collections: Dict[str, EntityCollection] = {
            name: collections.get(name) or InMemoryCollection(name) for name in COLLECTION_NAMES
        }

    def collection(self, name: str) -> EntityCollection:
        try:
            return self.collections[name]
        except KeyError:
            raise KeyError(f"Unknown collection: {name}") from None

    @property
    def bookmarks(self) -> EntityCollection:
        return self.collections[BOOKMARKS]

    @property
    def folders(self) -> EntityCollection:
        return self.collections[FOLDERS]

    @property
    def categories(self) -> EntityCollection:
        return self.collections[CATEGORIES]

    @property
    def labels(self) -> EntityCollection:
        return self.collections[LABELS]

    def to_snapshot(self) -> Dict[str, List[Document]]:
        return {name: self.collections[name].snapshot() for name in COLLECTION_NAMES}

    @classmethod
    def from_snapshot(cls, user_id: str, data: Dict[str, Iterable[Document]]) -> "UserStore":
        """
        Build an in-memory store from a ``{collection: [documents]}`` mapping.

        Missing collections start empty.
        """
        return cls(
            user_id,
            {name: InMemoryCollection(name, data.get(name) or []) for name in COLLECTION_NAMES},
        )


@dataclass
class StoreOperation:
    """
    One planned write against a collection.

    Commands build lists of operations; ``execute_operations`` runs them.
    """

    collection: str
    action: str  # add | update | remove | bulk_update | bulk_delete
    document_id: Optional[str] = None
    document_ids: List[str] = field(default_factory=list)
    fields: Document = field(default_factory=dict)

    @classmethod
    def add(cls, collection: str, item: Document) -> "StoreOperation":
        return cls(collection, "add", fields=dict(item))

    @classmethod
    def update(cls, collection: str, document_id: str, fields: Document) -> "StoreOperation":
        return cls(collection, "update", document_id=document_id, fields=dict(fields))

    @classmethod
    def remove(cls, collection: str, document_id: str) -> "StoreOperation":
        return cls(collection, "remove", document_id=document_id)

    @classmethod
    def bulk_update(
        cls, collection: str, document_ids: Iterable[str], fields: Document
    ) -> "StoreOperation":
        return cls(collection, "bulk_update", document_ids=list(document_ids), fields=dict(fields))

    @classmethod
    def bulk_delete(cls, collection: str, document_ids: Iterable[str]) -> "StoreOperation":
        return cls(collection, "bulk_delete", document_ids=list(document_ids))

    def describe(self) -> str:
        target = self.document_id or ", ".join(self.document_ids) or "new document"
        return f"{self.action} {self.collection} [{target}]"


@dataclass
class WriteReport:
    """
    Outcome of executing a write plan.

    Attributes:
        total: Number of operations attempted
        succeeded: Number of operations the store accepted
        failed: Number of operations that raised
        errors: Error messages for failed operations
        created_ids: Ids returned by ``add`` operations, in order
    """

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    errors: List[str] = field(default_factory=list)
    created_ids: List[str] = field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.failed > 0

    def __str__(self) -> str:
        return f"WriteReport(total={self.total}, succeeded={self.succeeded}, failed={self.failed})"


async def execute_operations(store: UserStore, operations: Iterable[StoreOperation]) -> WriteReport:
    """
    Run a write plan in order.

    Each operation is independent: a failure is logged and recorded, and the
    remaining operations still run. Nothing is retried or rolled back.

    Args:
        store: Target user store
        operations: Planned writes

    Returns:
        WriteReport summarising the run
    """
    report = WriteReport()

    for operation in operations:
        report.total += 1
        collection = store.collection(operation.collection)
        try:
            if operation.action == "add":
                report.created_ids.append(await collection.add(operation.fields))
            elif operation.action == "update":
                await collection.update(operation.document_id, operation.fields)
            elif operation.action == "remove":
                await collection.remove(operation.document_id)
            elif operation.action == "bulk_update":
                await collection.bulk_update(operation.document_ids, operation.fields)
            elif operation.action == "bulk_delete":
                await collection.bulk_delete(operation.document_ids)
            else:
                raise StoreWriteError(f"Unknown store action: {operation.action}")
            report.succeeded += 1
        except Exception as e:
            report.failed += 1
            report.errors.append(f"{operation.describe()}: {e}")
            logger.error(f"Error during {operation.describe()}: {e}")

    return report

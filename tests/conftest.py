"""
Pytest configuration and shared fixtures for bookmark manager tests.
"""

from datetime import datetime
from typing import Dict, List

import pytest

from bookmark_manager.core.app_state import AppState, with_collection
from bookmark_manager.core.data_models import Bookmark, Category, Folder, Label
from bookmark_manager.core.entity_store import COLLECTION_NAMES, UserStore
from bookmark_manager.core.notifications import CollectingNotifier
from tests.fixtures.test_data import REFERENCE_NOW, create_sample_documents


@pytest.fixture
def now() -> datetime:
    """Fixed reference time."""
    return REFERENCE_NOW


@pytest.fixture
def sample_documents() -> Dict[str, List[dict]]:
    """Sample collections in stored document shape."""
    return create_sample_documents()


@pytest.fixture
def bookmarks(sample_documents) -> List[Bookmark]:
    return [Bookmark.from_dict(d) for d in sample_documents["bookmarks"]]


@pytest.fixture
def folders(sample_documents) -> List[Folder]:
    return [Folder.from_dict(d) for d in sample_documents["folders"]]


@pytest.fixture
def categories(sample_documents) -> List[Category]:
    return [Category.from_dict(d) for d in sample_documents["categories"]]


@pytest.fixture
def labels(sample_documents) -> List[Label]:
    return [Label.from_dict(d) for d in sample_documents["labels"]]


@pytest.fixture
def store(sample_documents) -> UserStore:
    """In-memory store populated with the sample collections."""
    return UserStore.from_snapshot("user-1", sample_documents)


@pytest.fixture
def state(sample_documents) -> AppState:
    """AppState holding the sample collections on the default view."""
    result = AppState()
    for name in COLLECTION_NAMES:
        result = with_collection(result, name, sample_documents[name])
    return result


@pytest.fixture
def notifier() -> CollectingNotifier:
    return CollectingNotifier()

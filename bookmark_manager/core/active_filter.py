"""
View selectors for the bookmark list.

The active filter decides which slice of the collection the user is
looking at. Each view kind is its own frozen dataclass so the pipeline
never has to inspect whether an identifier is a string or a list.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, Optional

logger = logging.getLogger(__name__)


class FilterType(str, Enum):
    """Kinds of views the sidebar can select."""

    ALL = "all"
    FAVORITES = "favorites"
    ARCHIVED = "archived"
    ABANDONED = "abandoned"
    CATEGORY = "category"
    FOLDER = "folder"
    LABEL = "label"
    PINNED = "pinned"


@dataclass(frozen=True)
class ActiveFilter:
    """Base class for all view selectors."""

    name: str

    filter_type = None  # type: Optional[FilterType]

    @property
    def scope_id(self) -> Optional[str]:
        """The single entity id this view is scoped to, if any."""
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "type": self.filter_type.value if self.filter_type else None,
            "id": self.scope_id if self.scope_id is not None else self.filter_type.value,
            "name": self.name,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ActiveFilter":
        """
        Build a view from the legacy ``{type, id, name}`` shape.

        A label view whose id is not a list selects no labels, and an
        unrecognised type yields a view that passes everything.

        Args:
            data: Dictionary with ``type``, ``id`` and ``name`` keys

        Returns:
            Matching ActiveFilter variant
        """
        kind = data.get("type")
        raw_id = data.get("id")
        name = str(data.get("name") or "")

        if kind == FilterType.ALL.value:
            return AllView(name or "All Bookmarks")
        if kind == FilterType.FAVORITES.value:
            return FavoritesView(name or "Favorites")
        if kind == FilterType.ARCHIVED.value:
            return ArchivedView(name or "Archived")
        if kind == FilterType.ABANDONED.value:
            return AbandonedView(name or "Abandoned")
        if kind == FilterType.CATEGORY.value:
            return CategoryView(name, category_id=str(raw_id))
        if kind == FilterType.FOLDER.value:
            return FolderView(name, folder_id=str(raw_id))
        if kind == FilterType.PINNED.value:
            return PinnedView(name, folder_id=str(raw_id))
        if kind == FilterType.LABEL.value:
            if isinstance(raw_id, (list, tuple, set, frozenset)):
                return LabelView(name, label_ids=frozenset(str(i) for i in raw_id))
            logger.warning(f"Label view without a list of label ids: {raw_id!r}")
            return LabelView(name, label_ids=frozenset())

        logger.warning(f"Unknown view type {kind!r}; showing everything")
        return UnknownView(name, kind=str(kind), raw_id=None if raw_id is None else str(raw_id))


@dataclass(frozen=True)
class AllView(ActiveFilter):
    name: str = "All Bookmarks"
    filter_type = FilterType.ALL


@dataclass(frozen=True)
class FavoritesView(ActiveFilter):
    name: str = "Favorites"
    filter_type = FilterType.FAVORITES


@dataclass(frozen=True)
class ArchivedView(ActiveFilter):
    name: str = "Archived"
    filter_type = FilterType.ARCHIVED


@dataclass(frozen=True)
class AbandonedView(ActiveFilter):
    name: str = "Abandoned"
    filter_type = FilterType.ABANDONED


@dataclass(frozen=True)
class CategoryView(ActiveFilter):
    category_id: str = ""
    filter_type = FilterType.CATEGORY

    @property
    def scope_id(self) -> Optional[str]:
        return self.category_id


@dataclass(frozen=True)
class FolderView(ActiveFilter):
    folder_id: str = ""
    filter_type = FilterType.FOLDER

    @property
    def scope_id(self) -> Optional[str]:
        return self.folder_id


@dataclass(frozen=True)
class PinnedView(ActiveFilter):
    """A pinned folder opened from the sidebar's pinned section."""

    folder_id: str = ""
    filter_type = FilterType.PINNED

    @property
    def scope_id(self) -> Optional[str]:
        return self.folder_id


@dataclass(frozen=True)
class LabelView(ActiveFilter):
    """One or more labels; a bookmark matches if it carries any of them."""

    label_ids: FrozenSet[str] = frozenset()
    filter_type = FilterType.LABEL

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.filter_type.value, "id": sorted(self.label_ids), "name": self.name}

    @classmethod
    def of(cls, label_ids: Iterable[str], name: str = "") -> "LabelView":
        return cls(name, label_ids=frozenset(label_ids))


@dataclass(frozen=True)
class UnknownView(ActiveFilter):
    """A view type this engine does not know; it filters nothing."""

    kind: str = ""
    raw_id: Optional[str] = None

    @property
    def scope_id(self) -> Optional[str]:
        return self.raw_id

    def to_dict(self) -> Dict[str, Any]:
        return {"type": self.kind, "id": self.raw_id, "name": self.name}

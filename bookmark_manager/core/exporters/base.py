"""
Base classes for bookmark exporters.

This module provides the abstract base class and common utilities
for all export formats. Exporters work on an ``ExportData`` bundle holding
one consistent snapshot of a user's four collections.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ...utils.error_handler import ExportError
from ..data_models import Bookmark, Category, Folder, Label
from ..entity_store import UserStore


@dataclass
class ExportData:
    """A user's collections as entity objects."""

    user_id: str
    bookmarks: List[Bookmark] = field(default_factory=list)
    folders: List[Folder] = field(default_factory=list)
    categories: List[Category] = field(default_factory=list)
    labels: List[Label] = field(default_factory=list)

    @classmethod
    def from_store(cls, store: UserStore) -> "ExportData":
        return cls(
            user_id=store.user_id,
            bookmarks=[Bookmark.from_dict(d) for d in store.bookmarks.snapshot()],
            folders=[Folder.from_dict(d) for d in store.folders.snapshot()],
            categories=[Category.from_dict(d) for d in store.categories.snapshot()],
            labels=[Label.from_dict(d) for d in store.labels.snapshot()],
        )

    @classmethod
    def from_state(cls, user_id: str, state) -> "ExportData":
        """Bundle the collections held by an ``AppState``."""
        return cls(
            user_id=user_id,
            bookmarks=list(state.bookmarks),
            folders=list(state.folders),
            categories=list(state.categories),
            labels=list(state.labels),
        )

    def to_documents(self) -> Dict[str, List[Dict[str, Any]]]:
        return {
            "bookmarks": [b.to_dict() for b in self.bookmarks],
            "folders": [f.to_dict() for f in self.folders],
            "categories": [c.to_dict() for c in self.categories],
            "labels": [label.to_dict() for label in self.labels],
        }


@dataclass
class ExportResult:
    """
    Result of an export operation.

    Attributes:
        path: Path to the exported file
        count: Number of bookmarks exported
        format_name: Name of the export format used
        exported_at: Timestamp of the export
        additional_info: Any format-specific additional information
        warnings: List of non-fatal warnings during export
    """

    path: Path
    count: int
    format_name: str
    exported_at: datetime = field(default_factory=datetime.now)
    additional_info: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    def __str__(self) -> str:
        return f"ExportResult(format={self.format_name}, count={self.count}, path={self.path})"


class BookmarkExporter(ABC):
    """
    Abstract base class for exporters.

    Example:
        >>> exporter = JSONExporter()
        >>> result = exporter.export(ExportData.from_store(store), Path("backup.json"))
        >>> print(f"Exported {result.count} bookmarks to {result.path}")
    """

    def __init__(self):
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    @abstractmethod
    def export(self, data: ExportData, output_path: Union[str, Path]) -> ExportResult:
        """
        Export a snapshot to the specified path.

        Raises:
            ExportError: If export fails
        """
        pass

    @property
    @abstractmethod
    def format_name(self) -> str:
        pass

    @property
    @abstractmethod
    def file_extension(self) -> str:
        """Default file extension without the leading dot."""
        pass

    def validate_data(self, data: ExportData) -> List[str]:
        """
        Check a snapshot before export.

        Returns:
            List of warning messages for any issues found
        """
        warnings = []

        if not data.bookmarks:
            warnings.append("No bookmarks in export")
            return warnings

        no_url_count = sum(1 for b in data.bookmarks if not b.url)
        if no_url_count:
            warnings.append(f"{no_url_count} bookmark(s) have no URL")

        folder_ids = {f.id for f in data.folders}
        orphaned = sum(1 for b in data.bookmarks if b.folder_id and b.folder_id not in folder_ids)
        if orphaned:
            warnings.append(f"{orphaned} bookmark(s) reference a missing folder")

        return warnings

    def prepare_output_path(self, output_path: Union[str, Path]) -> Path:
        """
        Create the parent directory and force the format's extension.

        Raises:
            ExportError: If the directory cannot be created
        """
        path = Path(output_path)
        if path.suffix.lower() != f".{self.file_extension}":
            path = path.with_suffix(f".{self.file_extension}")

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExportError(
                f"Failed to prepare output path: {path}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )
        return path

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(format={self.format_name})"


def default_export_filename(prefix: str, extension: str, when: Optional[datetime] = None) -> str:
    """``<prefix>_<YYYY-MM-DD>.<extension>``"""
    return f"{prefix}_{(when or datetime.now()).date().isoformat()}.{extension}"

"""
JSON backup export and import.

The backup mirrors the stored documents one-to-one, so a file written here
can be loaded straight back into a store.
"""

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, List, Union

from ...utils.error_handler import ExportError, SnapshotFormatError
from ..entity_store import COLLECTION_NAMES, UserStore
from .base import BookmarkExporter, ExportData, ExportResult

logger = logging.getLogger(__name__)

FORMAT_VERSION = "1.0"


class JSONExporter(BookmarkExporter):
    """
    Export a full snapshot as a JSON backup.

    Example:
        >>> exporter = JSONExporter(indent=2)
        >>> result = exporter.export(data, Path("bookmarks_backup.json"))
    """

    def __init__(self, indent: int = 2, ensure_ascii: bool = False, compact: bool = False):
        super().__init__()
        self.indent = None if compact else indent
        self.ensure_ascii = ensure_ascii
        self.compact = compact

    @property
    def format_name(self) -> str:
        return "JSON"

    @property
    def file_extension(self) -> str:
        return "json"

    def build_payload(self, data: ExportData) -> Dict[str, Any]:
        return {
            "exportInfo": {
                "exportedAt": datetime.now().isoformat(),
                "formatVersion": FORMAT_VERSION,
                "generator": "bookmark-manager",
            },
            "user": {"id": data.user_id},
            **data.to_documents(),
        }

    def export(self, data: ExportData, output_path: Union[str, Path]) -> ExportResult:
        """
        Write the snapshot to a JSON file.

        Raises:
            ExportError: If the file cannot be written
        """
        warnings = self.validate_data(data)
        path = self.prepare_output_path(output_path)

        try:
            with open(path, "w", encoding="utf-8") as f:
                json.dump(
                    self.build_payload(data),
                    f,
                    indent=self.indent,
                    ensure_ascii=self.ensure_ascii,
                )
        except (OSError, TypeError, ValueError) as e:
            raise ExportError(
                f"Failed to export JSON: {e}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )

        self.logger.info(f"Exported {len(data.bookmarks)} bookmarks to {path}")
        return ExportResult(
            path=path,
            count=len(data.bookmarks),
            format_name=self.format_name,
            additional_info={
                "folders": len(data.folders),
                "categories": len(data.categories),
                "labels": len(data.labels),
                "file_size": path.stat().st_size,
            },
            warnings=warnings,
        )


def parse_snapshot(payload: Any) -> Dict[str, List[Dict[str, Any]]]:
    """
    Extract the collection documents from a decoded backup.

    Missing collections are treated as empty.

    Raises:
        SnapshotFormatError: If the payload or a collection has the wrong shape
    """
    if not isinstance(payload, dict):
        raise SnapshotFormatError("Backup must be a JSON object.")

    documents: Dict[str, List[Dict[str, Any]]] = {}
    for name in COLLECTION_NAMES:
        items = payload.get(name) or []
        if not isinstance(items, list) or not all(isinstance(i, dict) for i in items):
            raise SnapshotFormatError(f"'{name}' must be a list of objects.")
        documents[name] = items
    return documents


def load_snapshot(path: Union[str, Path]) -> Dict[str, List[Dict[str, Any]]]:
    """
    Read a JSON backup file.

    Raises:
        SnapshotFormatError: If the file is unreadable or malformed
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            payload = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise SnapshotFormatError(
            f"Failed to import data from {path}. The file might be corrupted: {e}"
        ) from e
    return parse_snapshot(payload)


def load_store(path: Union[str, Path], user_id: str) -> UserStore:
    """Open an in-memory store populated from a JSON backup."""
    documents = load_snapshot(path)
    logger.info(
        f"Loaded {len(documents['bookmarks'])} bookmarks and "
        f"{len(documents['folders'])} folders from {path}"
    )
    return UserStore.from_snapshot(user_id, documents)

"""
CSV bookmark export.

One row per bookmark, with folder, category and label ids resolved to their
display names.
"""

from pathlib import Path
from typing import Dict, List, Union

import pandas as pd

from ...utils.error_handler import ExportError
from ..data_models import format_timestamp
from ..location import effective_category_id
from .base import BookmarkExporter, ExportData, ExportResult

CSV_COLUMNS = [
    "ID",
    "URL",
    "Title",
    "Description",
    "Notes",
    "Folder Name",
    "Category Name",
    "Labels",
    "Created At",
    "Visit Count",
    "Last Visited At",
    "Is Favorite",
]

LABEL_SEPARATOR = "; "


class CSVExporter(BookmarkExporter):
    """Export bookmarks as a flat CSV table."""

    @property
    def format_name(self) -> str:
        return "CSV"

    @property
    def file_extension(self) -> str:
        return "csv"

    def build_rows(self, data: ExportData) -> List[Dict[str, object]]:
        folders = {f.id: f for f in data.folders}
        category_names = {c.id: c.name for c in data.categories}
        label_names = {label.id: label.name for label in data.labels}

        rows = []
        for bookmark in data.bookmarks:
            folder = folders.get(bookmark.folder_id) if bookmark.folder_id else None
            category_id = effective_category_id(bookmark, data.folders)
            rows.append(
                {
                    "ID": bookmark.id,
                    "URL": bookmark.url,
                    "Title": bookmark.title,
                    "Description": bookmark.description,
                    "Notes": bookmark.notes,
                    "Folder Name": folder.name if folder else "",
                    "Category Name": category_names.get(category_id, "") if category_id else "",
                    "Labels": LABEL_SEPARATOR.join(
                        label_names[lid] for lid in bookmark.labels if lid in label_names
                    ),
                    "Created At": format_timestamp(bookmark.created_at) or "",
                    "Visit Count": bookmark.visit_count,
                    "Last Visited At": format_timestamp(bookmark.last_visited_at) or "",
                    "Is Favorite": str(bookmark.is_favorite).lower(),
                }
            )
        return rows

    def to_dataframe(self, data: ExportData) -> pd.DataFrame:
        return pd.DataFrame(self.build_rows(data), columns=CSV_COLUMNS)

    def export(self, data: ExportData, output_path: Union[str, Path]) -> ExportResult:
        """
        Write bookmarks to a CSV file.

        Raises:
            ExportError: If the file cannot be written
        """
        warnings = self.validate_data(data)
        path = self.prepare_output_path(output_path)

        try:
            df = self.to_dataframe(data)
            df.to_csv(path, index=False, encoding="utf-8", na_rep="")
        except OSError as e:
            raise ExportError(
                f"Failed to export CSV: {e}",
                format_name=self.format_name,
                path=path,
                original_error=e,
            )

        self.logger.info(f"Exported {len(df)} bookmarks to {path}")
        return ExportResult(
            path=path,
            count=len(df),
            format_name=self.format_name,
            additional_info={"columns": list(df.columns)},
            warnings=warnings,
        )

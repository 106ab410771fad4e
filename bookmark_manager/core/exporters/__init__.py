"""
Bookmark exporters.

JSON backups (export and import) and flat CSV export.
"""

from ...utils.error_handler import ExportError
from .base import BookmarkExporter, ExportData, ExportResult, default_export_filename
from .csv_exporter import CSVExporter
from .json_exporter import JSONExporter, load_snapshot, load_store, parse_snapshot

__all__ = [
    "BookmarkExporter",
    "CSVExporter",
    "ExportData",
    "ExportError",
    "ExportResult",
    "JSONExporter",
    "default_export_filename",
    "get_exporter",
    "load_snapshot",
    "load_store",
    "parse_snapshot",
]


EXPORTERS = {
    "json": JSONExporter,
    "csv": CSVExporter,
}


def get_exporter(format_name: str) -> type:
    """
    Get an exporter class by format name.

    Raises:
        ValueError: If format is not supported
    """
    format_lower = format_name.lower()
    if format_lower not in EXPORTERS:
        supported = ", ".join(sorted(EXPORTERS))
        raise ValueError(
            f"Unsupported export format: {format_name}. Supported formats: {supported}"
        )
    return EXPORTERS[format_lower]

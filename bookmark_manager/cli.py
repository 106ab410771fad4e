"""
Command-line interface for the Bookmark Manager.

Works on a JSON backup file: the file is loaded into an in-memory store,
the command runs through the dashboard controller, and commands that
change data write the store back to the same file.
"""

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape
from rich.table import Table
from rich.text import Text

from .config.pydantic_config import ConfigurationManager, ManagerConfig
from .core.active_filter import (
    AbandonedView,
    ActiveFilter,
    AllView,
    ArchivedView,
    CategoryView,
    FavoritesView,
    FolderView,
    LabelView,
    PinnedView,
)
from .core.app_state import AppState
from .core.commands import BookmarkDraft
from .core.dashboard import Dashboard
from .core.data_models import Bookmark
from .core.entity_store import UserStore
from .core.exporters import (
    ExportData,
    JSONExporter,
    default_export_filename,
    get_exporter,
    load_snapshot,
    load_store,
)
from .core.location import describe_bookmark_location, resolve_location_choice
from .core.notifications import CollectingNotifier, NotificationKind
from .core.sorting import SortBy
from .utils.error_handler import BookmarkManagerError, ConfigurationError, ValidationError
from .utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)

SIMPLE_VIEWS = {
    "all": AllView,
    "favorites": FavoritesView,
    "archived": ArchivedView,
    "abandoned": AbandonedView,
}


def parse_view(value: str, state: AppState, private_folder_id: str) -> ActiveFilter:
    """
    Turn a ``--view`` argument into a view selector.

    Accepted forms: ``all``, ``favorites``, ``archived``, ``abandoned``,
    ``private``, ``category:<id>``, ``folder:<id>``, ``pinned:<id>`` and
    ``label:<id>[,<id>...]``.

    Raises:
        ValidationError: For an unrecognised form
    """
    value = (value or "all").strip()
    if value in SIMPLE_VIEWS:
        return SIMPLE_VIEWS[value]()
    if value == "private":
        return FolderView("Private", folder_id=private_folder_id)

    kind, _, raw_id = value.partition(":")
    if not raw_id:
        raise ValidationError(f"Unknown view: {value}")

    if kind == "category":
        category = next((c for c in state.categories if c.id == raw_id), None)
        return CategoryView(category.name if category else raw_id, category_id=raw_id)
    if kind in ("folder", "pinned"):
        folder = state.find_folder(raw_id)
        name = folder.name if folder else raw_id
        if kind == "pinned":
            return PinnedView(name, folder_id=raw_id)
        return FolderView(name, folder_id=raw_id)
    if kind == "label":
        ids = [i.strip() for i in raw_id.split(",") if i.strip()]
        names = [label.name for label in state.labels if label.id in ids]
        return LabelView.of(ids, name=", ".join(names))

    raise ValidationError(f"Unknown view: {value}")


class CLIInterface:
    """Command line interface over a JSON bookmark backup."""

    def __init__(self, console: Optional[Console] = None):
        self.parser = self._create_parser()
        self.console = console or Console()

    def _create_parser(self) -> argparse.ArgumentParser:
        parser = argparse.ArgumentParser(
            prog="bookmark-manager",
            description="Bookmark Manager - organise, filter and archive saved links",
            formatter_class=argparse.RawDescriptionHelpFormatter,
            epilog="""
Examples:
  bookmark-manager --data bookmarks.json list --view favorites --sort title
  bookmark-manager --data bookmarks.json list --view folder:f1 --search python
  bookmark-manager --data bookmarks.json add --url https://example.com --title Example
  bookmark-manager --data bookmarks.json archive b1
  bookmark-manager --data bookmarks.json export --format csv --output export.csv
  bookmark-manager --data bookmarks.json import backup.json
  bookmark-manager --data new.json init
  bookmark-manager create-config --format toml

Configuration:
  Settings are read from bookmark_manager.toml or bookmark_manager.json in
  the current directory, or from the file given with --config.
  Environment variables: BOOKMARK_MANAGER_PROXY_URL, BOOKMARK_MANAGER_LOG_LEVEL
            """,
        )

        parser.add_argument("--version", "-V", action="version", version="%(prog)s 1.0.0")
        parser.add_argument("--config", "-c", type=Path, help="Configuration file (TOML or JSON)")
        parser.add_argument("--data", "-d", type=Path, help="JSON backup file to work on")
        parser.add_argument("--user", help="User id owning the data")
        parser.add_argument("--verbose", "-v", action="store_true", help="Log to the console")
        parser.add_argument(
            "--log-level", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Log level"
        )

        sub = parser.add_subparsers(dest="command", required=True)

        list_cmd = sub.add_parser("list", help="Show the bookmarks of a view")
        list_cmd.add_argument(
            "--view",
            default="all",
            help="all, favorites, archived, abandoned, private, category:ID, folder:ID, "
            "pinned:ID or label:ID[,ID...]",
        )
        list_cmd.add_argument("--search", default="", help="Case-insensitive search term")
        list_cmd.add_argument(
            "--sort", choices=[s.value for s in SortBy], help="Sort order"
        )
        list_cmd.add_argument(
            "--unlock-private", action="store_true", help="Allow the private collection view"
        )

        add_cmd = sub.add_parser("add", help="Add a bookmark")
        add_cmd.add_argument("--url", required=True)
        add_cmd.add_argument("--title", required=True)
        add_cmd.add_argument("--description", default="")
        add_cmd.add_argument("--location", help="Folder or category id")
        add_cmd.add_argument(
            "--view", help="Add from this view; its folder or category is the default location"
        )
        add_cmd.add_argument("--label", action="append", default=[], help="Label id (repeatable)")

        visit_cmd = sub.add_parser("visit", help="Record a visit to a bookmark")
        visit_cmd.add_argument("bookmark_id")

        archive_cmd = sub.add_parser("archive", help="Archive a bookmark's page")
        archive_cmd.add_argument("bookmark_id")
        archive_cmd.add_argument("--proxy-url", help="Override the archiving proxy")
        archive_cmd.add_argument("--max-retries", type=int, help="Retries for network errors")

        share_cmd = sub.add_parser("share", help="Print a folder as shareable text")
        share_cmd.add_argument("folder_id")

        export_cmd = sub.add_parser("export", help="Export bookmarks")
        export_cmd.add_argument("--format", choices=["json", "csv"], default="json")
        export_cmd.add_argument("--output", "-o", type=Path, help="Output file")

        import_cmd = sub.add_parser("import", help="Replace all data with a JSON backup")
        import_cmd.add_argument("file", type=Path)

        sub.add_parser("init", help="Create a new data file with the default collections")
        sub.add_parser("reset", help="Restore the default categories, folders and labels")

        clear_cmd = sub.add_parser("clear", help="Delete all bookmarks and collections")
        clear_cmd.add_argument("--yes", action="store_true", help="Confirm the deletion")

        config_cmd = sub.add_parser("create-config", help="Write a sample configuration file")
        config_cmd.add_argument("--format", choices=["toml", "json"], default="toml")
        config_cmd.add_argument("--output", "-o", type=Path, help="Output file")

        return parser

    def parse_args(self, args=None) -> argparse.Namespace:
        return self.parser.parse_args(args)

    def _handle_create_config(self, parsed: argparse.Namespace) -> int:
        output = parsed.output or Path(f"bookmark_manager.{parsed.format}")
        if output.exists():
            self.console.print(
                f"[red]Refusing to overwrite existing file: {escape(str(output))}[/red]"
            )
            return 1
        ConfigurationManager.create_sample_config(output, parsed.format)
        self.console.print(f"[green]Created configuration file: {escape(str(output))}[/green]")
        return 0

    def _load_config(self, parsed: argparse.Namespace) -> ManagerConfig:
        manager = ConfigurationManager(parsed.config)
        manager.update_from_cli_args(
            {
                "log_level": parsed.log_level,
                "user_id": parsed.user,
                "proxy_url": getattr(parsed, "proxy_url", None),
                "max_retries": getattr(parsed, "max_retries", None),
            }
        )
        return manager.config

    def run(self, args=None) -> int:
        """Execute CLI interface."""
        try:
            parsed = self.parse_args(args)

            if parsed.command == "create-config":
                return self._handle_create_config(parsed)

            config = self._load_config(parsed)
            setup_logging(
                level=config.logging.level,
                log_file=str(config.logging.log_file) if config.logging.log_file else None,
                console_output=parsed.verbose,
                log_dir=config.logging.log_dir,
            )

            if not parsed.data:
                raise ValidationError("A data file is required (use --data/-d)")

            return asyncio.run(self._dispatch(parsed, config))

        except ConfigurationError as e:
            print(str(e), file=sys.stderr)
            return 1
        except ValidationError as e:
            print(f"Validation Error: {e}", file=sys.stderr)
            return 1
        except BookmarkManagerError as e:
            print(f"Error: {e}", file=sys.stderr)
            return 1

    async def _dispatch(self, parsed: argparse.Namespace, config: ManagerConfig) -> int:
        store = self._open_store(parsed, config)
        notifier = CollectingNotifier()

        # Changes are saved before any notice is printed
        try:
            async with Dashboard(store, config=config, notifier=notifier) as dashboard:
                handler = getattr(self, f"_cmd_{parsed.command}")
                code, changed = await handler(dashboard, parsed)
            if changed:
                JSONExporter().export(ExportData.from_store(store), parsed.data)
                logger.info(f"Saved changes to {parsed.data}")
        finally:
            self._print_notices(notifier)
        return code

    def _open_store(self, parsed: argparse.Namespace, config: ManagerConfig) -> UserStore:
        if parsed.command == "init":
            if parsed.data.exists():
                raise ValidationError(f"Refusing to overwrite existing file: {parsed.data}")
            return UserStore(config.user_id)
        return load_store(parsed.data, config.user_id)

    def _print_notices(self, notifier: CollectingNotifier) -> None:
        for notice in notifier.drain():
            style = "red" if notice.kind == NotificationKind.ALERT else "cyan"
            self.console.print(Text(notice.message, style=style))

    # ------------------------------------------------------------------
    # Commands; each returns (exit code, whether the data changed)
    # ------------------------------------------------------------------

    async def _cmd_list(self, dashboard: Dashboard, parsed: argparse.Namespace):
        if parsed.unlock_private:
            dashboard.unlock_private()
        view = parse_view(parsed.view, dashboard.state, dashboard.private_folder_id)
        if not dashboard.open_view(view):
            return 1, False
        if parsed.sort:
            dashboard.set_sort(parsed.sort)
        if parsed.search:
            dashboard.search(parsed.search)

        result = dashboard.view
        title = view.name or "Bookmarks"
        if result.frequently_visited:
            self._print_table("Frequently Visited", result.frequently_visited, dashboard)
        if result.reading_list is not None:
            self._print_table(f"{title} - Unread", result.reading_list.unread, dashboard)
            self._print_table(f"{title} - Read", result.reading_list.read, dashboard)
        else:
            self._print_table(title, result.bookmarks, dashboard)
        return 0, False

    async def _cmd_add(self, dashboard: Dashboard, parsed: argparse.Namespace):
        if parsed.view:
            view = parse_view(parsed.view, dashboard.state, dashboard.private_folder_id)
            if not dashboard.open_view(view):
                return 1, False

        if parsed.location:
            location = resolve_location_choice(
                parsed.location, dashboard.state.folders, dashboard.state.categories
            )
        else:
            location = dashboard.default_location()
        draft = BookmarkDraft(
            url=parsed.url,
            title=parsed.title,
            description=parsed.description,
            folder_id=location.folder_id,
            category_id=location.category_id,
            labels=list(parsed.label),
        )
        report = await dashboard.save_bookmark(draft)
        if report is None or report.has_errors:
            return 1, False
        self.console.print(f"Bookmark id: {report.created_ids[0]}")
        return 0, True

    async def _cmd_visit(self, dashboard: Dashboard, parsed: argparse.Namespace):
        report = await dashboard.visit(parsed.bookmark_id)
        if not report or not report.succeeded:
            self.console.print(f"[red]Unknown bookmark: {escape(parsed.bookmark_id)}[/red]")
            return 1, False
        return 0, True

    async def _cmd_archive(self, dashboard: Dashboard, parsed: argparse.Namespace):
        outcome = await dashboard.archive(parsed.bookmark_id)
        if outcome is None:
            self.console.print(f"[red]Unknown bookmark: {escape(parsed.bookmark_id)}[/red]")
            return 1, False
        return (0 if outcome.success else 1), True

    async def _cmd_share(self, dashboard: Dashboard, parsed: argparse.Namespace):
        text = dashboard.share_folder(parsed.folder_id)
        if text is None:
            return 1, False
        self.console.print(text, markup=False, highlight=False)
        return 0, False

    async def _cmd_export(self, dashboard: Dashboard, parsed: argparse.Namespace):
        exporter = get_exporter(parsed.format)()
        output = parsed.output or Path(
            default_export_filename("bookmarks_export", exporter.file_extension)
        )
        data = ExportData.from_state(dashboard.store.user_id, dashboard.state)
        result = exporter.export(data, output)
        for warning in result.warnings:
            self.console.print(Text(warning, style="yellow"))
        self.console.print(
            f"[green]Exported {result.count} bookmarks to {escape(str(result.path))}[/green]"
        )
        return 0, False

    async def _cmd_import(self, dashboard: Dashboard, parsed: argparse.Namespace):
        report = await dashboard.import_data(load_snapshot(parsed.file))
        if report is None:
            return 1, False
        return (1 if report.has_errors else 0), True

    async def _cmd_init(self, dashboard: Dashboard, parsed: argparse.Namespace):
        report = await dashboard.seed_defaults()
        if report is None or report.has_errors:
            return 1, False
        self.console.print(f"[green]Created data file: {escape(str(parsed.data))}[/green]")
        return 0, True

    async def _cmd_reset(self, dashboard: Dashboard, parsed: argparse.Namespace):
        report = await dashboard.reset_to_defaults()
        if report is None:
            return 1, False
        return (1 if report.has_errors else 0), True

    async def _cmd_clear(self, dashboard: Dashboard, parsed: argparse.Namespace):
        if not parsed.yes:
            self.console.print(
                "[yellow]This deletes all data. Re-run with --yes to confirm.[/yellow]"
            )
            return 1, False
        report = await dashboard.clear_all()
        if report is None:
            return 1, False
        return (1 if report.has_errors else 0), True

    def _print_table(self, title: str, bookmarks: List[Bookmark], dashboard: Dashboard) -> None:
        state = dashboard.state
        table = Table(title=escape(title), show_header=True, header_style="bold cyan")
        table.add_column("ID", style="dim")
        table.add_column("Title")
        table.add_column("URL")
        table.add_column("Location")
        table.add_column("Visits", justify="right")
        table.add_column("Flags")

        for bookmark in bookmarks:
            flags = []
            if bookmark.is_favorite:
                flags.append("favorite")
            if bookmark.is_archived:
                flags.append("archived")
            if bookmark.archive_failed:
                flags.append("archive failed")
            table.add_row(
                Text(bookmark.id),
                Text(bookmark.title),
                Text(bookmark.url),
                Text(describe_bookmark_location(bookmark, state.folders, state.categories)),
                str(bookmark.visit_count),
                ", ".join(flags),
            )

        if not bookmarks:
            table.caption = "No bookmarks"
        self.console.print(table)


def main(args=None):
    """Main entry point for the CLI."""
    cli = CLIInterface()
    return cli.run(args)


if __name__ == "__main__":
    sys.exit(main())

"""Command-line interface (CLI) entrypoint.

Objective:
    Provide a human-friendly CLI wrapper around
    :class:`src.vimeo_organizer.folder_manager.VimeoFolderManager`.

Responsibilities:
    - Parse arguments (subcommand, strategy pinning, verbosity).
    - Configure logging (including suppressing noisy HTTP request logs).
    - Invoke the folder manager and print a readable summary.

High-level call tree:
    - :func:`main`
        - :func:`setup_logging`
            - installs :class:`_HttpRequestInfoToDebugFilter`
        - :func:`create_folder_manager`
        - ``resolve`` -> :meth:`VimeoFolderManager.create_organized_folder`
          -> :func:`print_resolution`
        - ``search`` -> :meth:`VimeoFolderManager.search_folders`
          -> :func:`print_folders`
        - ``stats`` -> :meth:`VimeoFolderManager.get_strategy_stats`
          -> :func:`print_stats`
        - ``hierarchy`` -> :meth:`VimeoFolderManager.get_folder_hierarchy`

Usage:
    ``python -m src.vimeo_organizer.cli resolve 26555277 "Jordan Lee"``
"""

import argparse
import logging
import sys
from typing import Optional

from .config import get_settings
from .exceptions import AllStrategiesExhausted
from .folder_manager import create_folder_manager
from .models import Folder, ResolutionResult, StrategyStats


class _HttpRequestInfoToDebugFilter(logging.Filter):
    """Filter to suppress noisy per-request INFO logs from HTTP libraries.

    ``urllib3`` and ``httpx`` log each connection/request. This filter hides
    those messages unless the root logger is in DEBUG mode.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        """Determine whether a log record should be emitted.

        Args:
            record: Log record emitted by the logging framework.

        Returns:
            bool: True to allow emission, False to suppress.
        """
        if record.levelno <= logging.INFO and record.name.startswith(("urllib3", "httpx")):
            return logging.getLogger().isEnabledFor(logging.DEBUG)
        return True


def setup_logging(level: str = "INFO") -> None:
    """
    Configure logging for the application.

    This sets the root logger level and installs the
    :class:`_HttpRequestInfoToDebugFilter` on all root handlers.

    Args:
        level: Logging level (DEBUG, INFO, WARNING, ERROR).
    """
    logging.basicConfig(
        level=getattr(logging, level.upper()),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout),
        ],
    )

    root_logger = logging.getLogger()
    downgrade_filter = _HttpRequestInfoToDebugFilter()
    for handler in root_logger.handlers:
        handler.addFilter(downgrade_filter)


def print_resolution(result: ResolutionResult) -> None:
    """Print a resolution result to console."""
    status = "reused" if result.was_existing else "created"
    print(f"\n📁 {result.folder.name}")
    print(f"   uri:      {result.folder.uri}")
    print(f"   strategy: {result.strategy} ({status})\n")


def print_folders(folders: list[Folder]) -> None:
    """Print a list of folders to console."""
    if not folders:
        print("\nNo folders found.")
        return

    print(f"\n{len(folders)} folder(s):")
    for folder in folders:
        print(f"  📁 {folder.name}  [{folder.uri}]")
    print()


def print_stats(stats: dict[str, StrategyStats]) -> None:
    """Print strategy viability to console."""
    print()
    for name, item in stats.items():
        if item.last_tested is None:
            verdict = "untested"
        else:
            verdict = "viable" if item.viable else "not viable"
        tested = item.last_tested.isoformat(timespec="seconds") if item.last_tested else "-"
        print(f"  {name:<14} {verdict:<11} last tested: {tested}")
    print()


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        description="Vimeo Folder Organizer - find or create organized folders",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s resolve 26555277 "Jordan Lee"          Find or create a folder
  %(prog)s resolve 26555277 "Jordan Lee" -s virtual-path
  %(prog)s search jordan                           Search folders by name
  %(prog)s stats                                   Probe and show strategy viability
        """,
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose output",
    )
    parser.add_argument(
        "--log-level",
        type=str,
        default="INFO",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    resolve = subparsers.add_parser("resolve", help="Find or create an organized folder")
    resolve.add_argument("parent_folder_id", help="Parent folder id")
    resolve.add_argument("folder_name", help="Folder name to resolve")
    resolve.add_argument(
        "--strategy",
        "-s",
        type=str,
        default=None,
        help="Only try this strategy (native-nested, virtual-path, enhanced-flat, showcase)",
    )
    resolve.add_argument(
        "--skip-cache",
        action="store_true",
        help="Bypass the folder cache",
    )

    search = subparsers.add_parser("search", help="Search folders by name")
    search.add_argument("term", help="Case-insensitive search term")

    subparsers.add_parser("stats", help="Probe strategies and show viability")

    hierarchy = subparsers.add_parser("hierarchy", help="Show folder path information")
    hierarchy.add_argument("folder_id", help="Folder id")

    return parser


def main(args: Optional[list[str]] = None) -> int:
    """
    Main CLI entry point.

    This function is structured to be testable: pass an explicit ``args`` list
    instead of relying on ``sys.argv``.

    Args:
        args: Command line arguments (uses sys.argv if None).

    Returns:
        int: Exit code (0 for success, 1 for error).
    """
    parser = build_parser()
    parsed_args = parser.parse_args(args)

    log_level = "DEBUG" if parsed_args.verbose else parsed_args.log_level
    setup_logging(log_level)

    logger = logging.getLogger(__name__)

    try:
        manager = create_folder_manager(get_settings())

        if parsed_args.command == "resolve":
            result = manager.create_organized_folder(
                parsed_args.parent_folder_id,
                parsed_args.folder_name,
                force_strategy=parsed_args.strategy,
                skip_cache=parsed_args.skip_cache,
            )
            print_resolution(result)
        elif parsed_args.command == "search":
            print_folders(manager.search_folders(parsed_args.term))
        elif parsed_args.command == "stats":
            print_stats(manager.probe_strategies())
        elif parsed_args.command == "hierarchy":
            hierarchy = manager.get_folder_hierarchy(parsed_args.folder_id)
            suffix = "" if hierarchy.complete else "  (ancestors not resolved)"
            print(f"\n{' / '.join(hierarchy.path)}{suffix}\n")

        return 0

    except AllStrategiesExhausted as e:
        logger.error("Folder resolution failed")
        print(f"\n❌ {e}")
        for name, reason in e.attempts.items():
            print(f"   {name}: {reason}")
        print()
        return 1
    except Exception as e:
        logger.exception("Fatal error")
        print(f"\n❌ Error: {e}\n")
        return 1


if __name__ == "__main__":
    sys.exit(main())

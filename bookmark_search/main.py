"""Main entry point for the bookmark search service."""
import sys
from pathlib import Path

# Add project root to Python path for absolute imports
_project_root = Path(__file__).parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

import argparse
import asyncio
import logging
from typing import List, Optional

from bookmark_search.config import get_config


LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Send log records to stderr; stdout carries the MCP protocol."""
    logging.basicConfig(level=level, format=LOG_FORMAT, stream=sys.stderr)


async def _import(bookmarks_path: Optional[Path]) -> int:
    from bookmark_search.bookmarks_reader import get_chrome_bookmarks_path, import_chrome_bookmarks
    from bookmark_search.bookmarks_store import SqliteBookmarkStore

    config = get_config()
    store = SqliteBookmarkStore(config.db_path)
    await store.initialize()
    try:
        path = bookmarks_path or get_chrome_bookmarks_path(config.chrome_profile)
        return await import_chrome_bookmarks(store, path)
    finally:
        await store.close()


def main(argv: Optional[List[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="bookmark-search", description="Search bookmarks over MCP or HTTP.")
    parser.add_argument(
        "command",
        nargs="?",
        default="mcp",
        choices=["mcp", "http", "import"],
        help="mcp: stdio MCP server (default); http: search endpoint; import: load Chrome bookmarks",
    )
    parser.add_argument("--bookmarks", type=Path, help="Chrome Bookmarks file to import")
    args = parser.parse_args(argv)

    config = get_config()
    configure_logging(config.log_level)

    if args.command == "http":
        from bookmark_search.http_app import run
        run(config)
    elif args.command == "import":
        count = asyncio.run(_import(args.bookmarks))
        print(f"Imported {count} bookmarks", file=sys.stderr)
    else:
        from bookmark_search.server import main as serve_mcp
        asyncio.run(serve_mcp())


if __name__ == "__main__":
    main()

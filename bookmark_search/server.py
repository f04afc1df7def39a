"""MCP server exposing bookmark search."""
import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

from mcp.server import Server
from mcp.server.stdio import stdio_server
from mcp.types import Tool, TextContent

from bookmark_search.bookmarks_reader import get_chrome_bookmarks_path, import_chrome_bookmarks
from bookmark_search.bookmarks_store import get_bookmark_store
from bookmark_search.config import get_config
from bookmark_search.models import ResponseFormat, SearchRequest
from bookmark_search.search import BookmarkSearch, render_jsonp


logger = logging.getLogger(__name__)

SEARCH_SCHEMA = {
    "type": "object",
    "properties": {
        "hostname": {
            "type": "string",
            "description": "Regular expression matched against the bookmark hostname (case-sensitive)",
        },
        "q": {
            "type": "string",
            "description": "Regular expression matched against title, description or URL (case-insensitive)",
        },
        "format": {
            "type": "string",
            "enum": ["html", "json", "jsonp"],
            "description": "Response shape; html returns the page context",
        },
        "callback": {
            "type": "string",
            "description": "JSONP callback name",
        },
    },
}


async def search_bookmarks_tool(arguments: Dict[str, Any]) -> list[TextContent]:
    """Tool handler for search_bookmarks.

    Args:
        arguments: Raw tool arguments

    Returns:
        List with one TextContent holding the shaped response
    """
    store = await get_bookmark_store()
    request = SearchRequest.from_params(arguments)
    response = await BookmarkSearch(store, diagnostics=logger).handle(request)

    if response.format is ResponseFormat.JSONP:
        script = render_jsonp(response.body, response.callback)
        if script is not None:
            return [TextContent(type="text", text=script)]

    return [TextContent(type="text", text=json.dumps(response.body, indent=2))]


async def list_hostnames_tool() -> list[TextContent]:
    """Tool handler for list_hostnames."""
    store = await get_bookmark_store()
    hostnames = await BookmarkSearch(store).list_hostnames()
    return [TextContent(type="text", text=json.dumps(hostnames, indent=2))]


async def import_chrome_bookmarks_tool(bookmarks_path: Optional[str] = None) -> list[TextContent]:
    """Tool handler for import_chrome_bookmarks."""
    store = await get_bookmark_store()
    if bookmarks_path:
        path = Path(bookmarks_path).expanduser()
    else:
        path = get_chrome_bookmarks_path(get_config().chrome_profile)
    count = await import_chrome_bookmarks(store, path)
    return [TextContent(type="text", text=json.dumps({"imported": count}))]


def create_server() -> Server:
    """Create and configure the MCP server.

    Returns:
        Configured Server instance
    """
    server = Server("bookmark-search")

    @server.list_tools()
    async def list_tools() -> list[Tool]:
        """List available tools."""
        return [
            Tool(
                name="search_bookmarks",
                description="Search bookmarks by hostname and/or text pattern, newest first. Invalid patterns are matched literally.",
                inputSchema=SEARCH_SCHEMA,
            ),
            Tool(
                name="list_hostnames",
                description="List the distinct hostnames of all stored bookmarks.",
                inputSchema={"type": "object", "properties": {}},
            ),
            Tool(
                name="import_chrome_bookmarks",
                description="Import bookmarks from a Chrome Bookmarks file into the search store.",
                inputSchema={
                    "type": "object",
                    "properties": {
                        "bookmarks_path": {
                            "type": "string",
                            "description": "Path to the Chrome Bookmarks file (default: the configured profile)",
                        }
                    },
                },
            ),
        ]

    @server.call_tool()
    async def call_tool(name: str, arguments: Any) -> list[TextContent]:
        """Handle tool calls."""
        arguments = arguments or {}
        if name == "search_bookmarks":
            return await search_bookmarks_tool(arguments)
        elif name == "list_hostnames":
            return await list_hostnames_tool()
        elif name == "import_chrome_bookmarks":
            return await import_chrome_bookmarks_tool(arguments.get("bookmarks_path"))
        else:
            raise ValueError(f"Unknown tool: {name}")

    return server


async def main():
    """Main entry point for the MCP server."""
    server = create_server()

    async with stdio_server() as (read_stream, write_stream):
        initialization_options = server.create_initialization_options()
        await server.run(read_stream, write_stream, initialization_options)

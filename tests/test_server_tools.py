"""Tests for MCP server tools."""
import asyncio
import json
import pytest
from unittest.mock import patch, AsyncMock

from bookmark_search.server import (
    create_server,
    import_chrome_bookmarks_tool,
    list_hostnames_tool,
    search_bookmarks_tool,
)


class TestServerTools:
    def test_server_creates(self):
        server = create_server()
        assert server.name == "bookmark-search"

    def test_all_tools_registered(self):
        from mcp.types import ListToolsRequest

        server = create_server()

        async def check():
            result = await server.request_handlers[ListToolsRequest](None)
            return result.root.tools

        tools = asyncio.run(check())
        tool_names = [t.name for t in tools]

        assert sorted(tool_names) == ["import_chrome_bookmarks", "list_hostnames", "search_bookmarks"]

    def test_mcp_major_version(self):
        from importlib.metadata import version

        assert version("mcp").split(".")[0] == "1"


@pytest.mark.asyncio
class TestToolHandlers:
    async def test_search_returns_page_context_by_default(self, memory_store):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=memory_store)):
            result = await search_bookmarks_tool({"hostname": "example"})

        data = json.loads(result[0].text)
        assert [b["id"] for b in data["bookmarks"]] == [1]
        assert data["title"] == "Bookmarks - Search Results"
        assert data["query"] == {"hostname": "example"}
        assert data["hostnames"] == ["docs.python.org", "example.com", "test.org"]

    async def test_search_json(self, memory_store):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=memory_store)):
            result = await search_bookmarks_tool({"q": "exa", "format": "json"})

        data = json.loads(result[0].text)
        assert list(data.keys()) == ["bookmarks"]
        assert [b["id"] for b in data["bookmarks"]] == [1]

    async def test_search_jsonp(self, memory_store):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=memory_store)):
            result = await search_bookmarks_tool({"format": "jsonp", "callback": "cb"})

        assert result[0].text.startswith("/**/ typeof cb === 'function' && cb(")

    async def test_search_bad_pattern(self, memory_store):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=memory_store)):
            result = await search_bookmarks_tool({"q": "(", "format": "json"})

        assert json.loads(result[0].text) == {"bookmarks": []}

    async def test_list_hostnames(self, memory_store):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=memory_store)):
            result = await list_hostnames_tool()

        assert json.loads(result[0].text) == ["docs.python.org", "example.com", "test.org"]

    async def test_import_chrome_bookmarks(self, sqlite_store, sample_bookmarks_path):
        with patch("bookmark_search.server.get_bookmark_store", AsyncMock(return_value=sqlite_store)):
            result = await import_chrome_bookmarks_tool(str(sample_bookmarks_path))

        assert json.loads(result[0].text) == {"imported": 5}
        assert len(await sqlite_store.distinct_hostnames()) == 5

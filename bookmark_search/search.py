"""Search execution and response shaping for bookmarks."""
import json
import logging
import re
from typing import Any, Dict, List, Optional, Protocol

from bookmark_search.models import (
    PAGE_TITLE,
    ResponseFormat,
    SearchRequest,
    SearchResponse,
    SearchResult,
)
from bookmark_search.query_builder import (
    NEWEST_FIRST,
    Diagnostics,
    FilterPredicate,
    SortKey,
    build_predicate,
)


logger = logging.getLogger(__name__)

_CALLBACK_UNSAFE = re.compile(r"[^\[\]\w$.]", re.ASCII)


class StoreError(RuntimeError):
    """The bookmark store could not be reached or failed a query."""


class BookmarkStore(Protocol):
    """Protocol for bookmark stores so the backend can be swapped."""

    async def find(self, predicate: FilterPredicate, sort: SortKey) -> List[Dict[str, Any]]:
        """Return all records matching ``predicate`` in ``sort`` order.

        Raises:
            StoreError: If the store is unavailable or the query fails
        """
        ...

    async def distinct_hostnames(self) -> List[str]:
        """Return the distinct hostnames across all records."""
        ...


class BookmarkSearch:
    """Runs search requests against a bookmark store."""

    def __init__(self, store: BookmarkStore, diagnostics: Optional[Diagnostics] = None):
        """Initialize the search.

        Args:
            store: Store to query
            diagnostics: Receiver for bad-pattern warnings (default: module logger)
        """
        self.store = store
        self.diagnostics = diagnostics or logger

    async def list_hostnames(self) -> List[str]:
        """Get every known hostname. Failures propagate."""
        return await self.store.distinct_hostnames()

    async def execute(self, request: SearchRequest) -> SearchResult:
        """Filter and sort bookmarks for a request.

        Args:
            request: Parsed search request

        Returns:
            SearchResult with bookmarks newest first

        Raises:
            StoreError: If the store fails
        """
        predicate = build_predicate(request, self.diagnostics)
        bookmarks = await self.store.find(predicate, NEWEST_FIRST)
        logger.debug(
            "search hostname=%r q=%r hits=%d", request.hostname, request.query, len(bookmarks)
        )
        return SearchResult(bookmarks=bookmarks)

    async def handle(self, request: SearchRequest) -> SearchResponse:
        """Look up hostnames, run the search, and shape the response."""
        hostnames = await self.list_hostnames()
        result = await self.execute(request)
        return shape_response(request, result, hostnames)


def shape_response(
    request: SearchRequest,
    result: SearchResult,
    hostnames: Optional[List[str]] = None,
) -> SearchResponse:
    """Shape a search result for the requested format.

    JSON and JSONP carry only the bookmarks. The page context also carries
    the title, the echoed request parameters and the known hostnames.
    """
    body: Dict[str, Any] = {"bookmarks": result.bookmarks}

    if request.format is ResponseFormat.JSON:
        return SearchResponse(ResponseFormat.JSON, body)
    if request.format is ResponseFormat.JSONP:
        return SearchResponse(ResponseFormat.JSONP, body, callback=request.callback)

    body["title"] = PAGE_TITLE
    body["query"] = dict(request.params)
    body["hostnames"] = list(hostnames or [])
    return SearchResponse(ResponseFormat.HTML, body)


def render_jsonp(body: Dict[str, Any], callback: Optional[str]) -> Optional[str]:
    """Wrap a JSON body in a JSONP callback invocation.

    Args:
        body: JSON-serialisable payload
        callback: Requested callback name (untrusted)

    Returns:
        JavaScript source, or None when there is no usable callback and the
        caller should send plain JSON instead
    """
    if not callback:
        return None

    name = _CALLBACK_UNSAFE.sub("", callback)
    if not name:
        return None

    payload = json.dumps(body, ensure_ascii=False, separators=(",", ":"))
    payload = payload.replace("\u2028", "\\u2028").replace("\u2029", "\\u2029")
    return f"/**/ typeof {name} === 'function' && {name}({payload});"

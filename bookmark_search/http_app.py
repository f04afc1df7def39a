"""HTTP endpoint for bookmark search."""
import html
import logging
from contextlib import asynccontextmanager
from typing import Any, Callable, Dict, List, Optional

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import HTMLResponse, JSONResponse, Response

from bookmark_search.bookmarks_store import SqliteBookmarkStore
from bookmark_search.config import Config, get_config
from bookmark_search.models import ResponseFormat, SearchRequest
from bookmark_search.search import (
    BookmarkSearch,
    BookmarkStore,
    StoreError,
    render_jsonp,
    shape_response,
)


logger = logging.getLogger(__name__)

# (template name, context) -> HTML
PageRenderer = Callable[[str, Dict[str, Any]], str]


def render_page(template: str, context: Dict[str, Any]) -> str:
    """Render a bare results page when no template renderer is configured."""
    title = html.escape(context.get("title", ""))
    items = "\n".join(
        '<li><a href="{href}">{text}</a></li>'.format(
            href=html.escape(b.get("href") or ""),
            text=html.escape(b.get("title") or b.get("href") or ""),
        )
        for b in context.get("bookmarks", [])
    )
    return (
        "<!DOCTYPE html>\n"
        f"<html><head><meta charset=\"utf-8\"><title>{title}</title></head>\n"
        f"<body><h1>{title}</h1>\n<ul>\n{items}\n</ul></body></html>\n"
    )


def get_search(request: Request) -> BookmarkSearch:
    return BookmarkSearch(request.app.state.store, diagnostics=logger)


async def known_hostnames(search: BookmarkSearch = Depends(get_search)) -> List[str]:
    """Hostname lookup that runs ahead of every search."""
    return await search.list_hostnames()


def create_app(
    store: Optional[BookmarkStore] = None,
    renderer: Optional[PageRenderer] = None,
    config: Optional[Config] = None,
) -> FastAPI:
    """Create the search application.

    Args:
        store: Bookmark store to search. If None, a SQLite store at the
            configured path is opened for the lifetime of the app.
        renderer: Page renderer for the default format
        config: Service configuration (default: from environment)

    Returns:
        Configured FastAPI app
    """
    config = config or get_config()
    renderer = renderer or render_page
    callback_param = config.http.jsonp_callback

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owned = None
        if app.state.store is None:
            owned = SqliteBookmarkStore(config.db_path)
            await owned.initialize()
            app.state.store = owned
        try:
            yield
        finally:
            if owned is not None:
                await owned.close()
                app.state.store = None

    app = FastAPI(title="Bookmark Search", lifespan=lifespan)
    app.state.store = store

    @app.exception_handler(StoreError)
    async def store_error_handler(request: Request, exc: StoreError) -> JSONResponse:
        logger.error("%s %s failed: %s", request.method, request.url.path, exc, exc_info=exc)
        return JSONResponse(status_code=500, content={"detail": "Internal Server Error"})

    @app.get("/search")
    async def search_bookmarks(
        request: Request,
        hostname: Optional[str] = Query(None, description="Pattern matched against the bookmark host"),
        q: Optional[str] = Query(None, description="Pattern matched against title, description or href"),
        format: Optional[str] = Query(None, description="json, jsonp, or omitted for a page"),
        hostnames: List[str] = Depends(known_hostnames),
        search: BookmarkSearch = Depends(get_search),
    ) -> Response:
        search_request = SearchRequest.from_params(
            {
                "hostname": hostname,
                "q": q,
                "format": format,
                callback_param: request.query_params.get(callback_param),
            },
            callback_param=callback_param,
        )

        result = await search.execute(search_request)
        response = shape_response(search_request, result, hostnames)

        if response.format is ResponseFormat.HTML:
            return HTMLResponse(renderer("search", response.body))

        if response.format is ResponseFormat.JSONP:
            script = render_jsonp(response.body, response.callback)
            if script is not None:
                return Response(
                    content=script,
                    media_type="text/javascript",
                    headers={"X-Content-Type-Options": "nosniff"},
                )

        return JSONResponse(response.body)

    return app


def run(config: Optional[Config] = None) -> None:
    """Serve the search app with uvicorn."""
    import uvicorn

    config = config or get_config()
    logger.info("Serving bookmark search on http://%s:%d/search", config.http.host, config.http.port)
    uvicorn.run(
        create_app(config=config),
        host=config.http.host,
        port=config.http.port,
        log_level=config.log_level.lower(),
    )

"""Request and response types for bookmark search."""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional


PAGE_TITLE = "Bookmarks - Search Results"

# Parameters echoed back to the page so it can re-populate the search form
ECHOED_PARAMS = ("hostname", "q", "format")


class ResponseFormat(str, Enum):
    """Output format of a search response."""
    HTML = "html"
    JSON = "json"
    JSONP = "jsonp"

    @classmethod
    def parse(cls, value: Optional[str]) -> "ResponseFormat":
        """Map a raw ``format`` parameter to a format.

        Only the exact strings "json" and "jsonp" select a data format;
        anything else, including a missing value, renders the page.
        """
        if value == "json":
            return cls.JSON
        if value == "jsonp":
            return cls.JSONP
        return cls.HTML


def _string_param(params: Mapping[str, Any], name: str) -> Optional[str]:
    """Read a single string parameter from a loosely-typed mapping."""
    value = params.get(name)
    if isinstance(value, (list, tuple)):
        value = value[-1] if value else None
    if value is None:
        return None
    return value if isinstance(value, str) else str(value)


@dataclass(frozen=True)
class SearchRequest:
    """The recognised parameters of a search request.

    ``hostname`` and ``query`` are untrusted pattern strings; they are
    compiled defensively by the query builder and never assumed valid.
    """
    hostname: Optional[str] = None
    query: Optional[str] = None
    format: ResponseFormat = ResponseFormat.HTML
    callback: Optional[str] = None
    params: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_params(
        cls,
        params: Mapping[str, Any],
        callback_param: str = "callback",
    ) -> "SearchRequest":
        """Build a request from raw query parameters.

        Args:
            params: Raw parameters (query string mapping, tool arguments, ...)
            callback_param: Name of the parameter carrying the JSONP callback

        Returns:
            SearchRequest with unrecognised parameters dropped
        """
        echoed = {}
        for name in ECHOED_PARAMS:
            value = _string_param(params, name)
            if value is not None:
                echoed[name] = value

        return cls(
            hostname=echoed.get("hostname"),
            query=echoed.get("q"),
            format=ResponseFormat.parse(echoed.get("format")),
            callback=_string_param(params, callback_param),
            params=echoed,
        )


@dataclass
class SearchResult:
    """Bookmarks matching a request, newest first."""
    bookmarks: List[Dict[str, Any]] = field(default_factory=list)


@dataclass
class SearchResponse:
    """A search result shaped for its output format."""
    format: ResponseFormat
    body: Dict[str, Any]
    callback: Optional[str] = None

"""Turns search requests into filter predicates over bookmark records."""
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol, Tuple

from bookmark_search.models import SearchRequest


logger = logging.getLogger(__name__)

HOST_FIELD = "url.hostname"
TEXT_FIELDS = ("title", "description", "href")


class Diagnostics(Protocol):
    """Anything that can receive warnings, e.g. a ``logging.Logger``."""

    def warning(self, msg: str, *args: Any) -> None:
        ...


def compile_or_literal(
    pattern: str,
    flags: int = 0,
    diagnostics: Optional[Diagnostics] = None,
) -> re.Pattern[str]:
    """Compile a user-supplied pattern, falling back to a literal match.

    A malformed pattern is not an error: it is reported to ``diagnostics``
    and then matched as an escaped substring with the same flags.

    Args:
        pattern: Untrusted regular expression
        flags: ``re`` flags to compile with
        diagnostics: Receiver for the bad-pattern warning (default: module logger)

    Returns:
        Compiled pattern
    """
    try:
        return re.compile(pattern, flags)
    except re.error as e:
        (diagnostics or logger).warning("Bad regex pattern %r: %s", pattern, e)
        return re.compile(re.escape(pattern), flags)


def get_field(record: Dict[str, Any], path: str) -> Any:
    """Look up a dotted field path (e.g. 'url.hostname') in a nested record."""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict):
            return None
        value = value.get(part)
    return value


@dataclass(frozen=True)
class FieldMatch:
    """A single field that must match a pattern."""
    field: str
    pattern: re.Pattern[str]

    def matches(self, record: Dict[str, Any]) -> bool:
        value = get_field(record, self.field)
        return isinstance(value, str) and self.pattern.search(value) is not None


@dataclass(frozen=True)
class FilterPredicate:
    """AND of clauses and OR-groups. Empty means match everything.

    SQL stores translate the predicate into a WHERE clause; ``matches`` is the
    reference evaluation for stores that hold records in memory.
    """
    clauses: Tuple[FieldMatch, ...] = ()
    any_of: Tuple[Tuple[FieldMatch, ...], ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.clauses and not self.any_of

    def and_(self, clause: FieldMatch) -> "FilterPredicate":
        return FilterPredicate(self.clauses + (clause,), self.any_of)

    def or_(self, *alternatives: FieldMatch) -> "FilterPredicate":
        return FilterPredicate(self.clauses, self.any_of + (tuple(alternatives),))

    def matches(self, record: Dict[str, Any]) -> bool:
        """Evaluate the predicate against a record."""
        if not all(clause.matches(record) for clause in self.clauses):
            return False
        return all(
            any(alternative.matches(record) for alternative in group)
            for group in self.any_of
        )


@dataclass(frozen=True)
class SortKey:
    field: str
    descending: bool = False


NEWEST_FIRST = SortKey("created", descending=True)


def build_predicate(
    request: SearchRequest,
    diagnostics: Optional[Diagnostics] = None,
) -> FilterPredicate:
    """Build the filter predicate for a search request.

    The hostname is matched case-sensitively against the record's host; the
    text query is matched case-insensitively against title, description or
    href. Absent or empty parameters add nothing.

    Args:
        request: Parsed search request
        diagnostics: Receiver for bad-pattern warnings

    Returns:
        FilterPredicate combining the present clauses
    """
    predicate = FilterPredicate()

    if request.hostname:
        pattern = compile_or_literal(request.hostname, 0, diagnostics)
        predicate = predicate.and_(FieldMatch(HOST_FIELD, pattern))

    if request.query:
        pattern = compile_or_literal(request.query, re.IGNORECASE, diagnostics)
        predicate = predicate.or_(*(FieldMatch(name, pattern) for name in TEXT_FIELDS))

    return predicate

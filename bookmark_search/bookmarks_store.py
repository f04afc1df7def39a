"""SQLite bookmark store with regex filtering."""
import functools
import logging
import re
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple
from urllib.parse import urlsplit

import aiosqlite

from bookmark_search.query_builder import FieldMatch, FilterPredicate, SortKey
from bookmark_search.search import StoreError


logger = logging.getLogger(__name__)

# Default database location
DEFAULT_DB_PATH = Path.home() / ".bookmark-search" / "bookmarks.db"

# Record field path -> column
_COLUMNS = {
    "id": "id",
    "title": "title",
    "description": "description",
    "href": "href",
    "url.hostname": "hostname",
    "created": "created",
}


@functools.lru_cache(maxsize=256)
def _compile(pattern: str, flags: int) -> re.Pattern:
    return re.compile(pattern, flags)


def _regexp(pattern: str, flags: int, value: Optional[str]) -> bool:
    """SQL function regexp(pattern, flags, value)."""
    if not isinstance(value, str):
        return False
    return _compile(pattern, flags).search(value) is not None


def format_timestamp(value: Optional[datetime] = None) -> str:
    """Format a datetime as fixed-width UTC ISO-8601 so text order is time order.

    Takes datetimes only, not ISO strings. Naive datetimes are taken to be
    UTC; None means now.
    """
    if value is None:
        value = datetime.now(timezone.utc)
    elif value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%fZ")


def hostname_of(href: str) -> Optional[str]:
    """Get the lower-cased hostname of a URL, or None if it has none."""
    try:
        return urlsplit(href).hostname
    except ValueError:
        return None


def _column(field: str) -> str:
    try:
        return _COLUMNS[field]
    except KeyError:
        raise ValueError(f"Unknown bookmark field: {field}")


def _match_sql(match: FieldMatch) -> Tuple[str, List[Any]]:
    return (
        f"regexp(?, ?, {_column(match.field)})",
        [match.pattern.pattern, match.pattern.flags],
    )


def compile_where(predicate: FilterPredicate) -> Tuple[str, List[Any]]:
    """Translate a predicate into a SQL WHERE clause and its parameters.

    Returns:
        Tuple of (clause, params); clause is empty for the empty predicate
    """
    conditions = []
    params: List[Any] = []

    for clause in predicate.clauses:
        sql, clause_params = _match_sql(clause)
        conditions.append(sql)
        params.extend(clause_params)

    for group in predicate.any_of:
        alternatives = []
        for match in group:
            sql, match_params = _match_sql(match)
            alternatives.append(sql)
            params.extend(match_params)
        conditions.append("(" + " OR ".join(alternatives) + ")")

    if not conditions:
        return "", params
    return "WHERE " + " AND ".join(conditions), params


class SqliteBookmarkStore:
    """Async SQLite store for bookmark records."""

    def __init__(self, db_path: Optional[Path] = None):
        """Initialize the bookmark store.

        Args:
            db_path: Path to SQLite database. Defaults to ~/.bookmark-search/bookmarks.db
        """
        self.db_path = db_path or DEFAULT_DB_PATH
        self._connection: Optional[aiosqlite.Connection] = None

    async def initialize(self) -> None:
        """Initialize the database, creating tables if needed."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            self._connection = await aiosqlite.connect(self.db_path)
            self._connection.row_factory = aiosqlite.Row
            await self._connection.create_function("regexp", 3, _regexp, deterministic=True)

            await self._connection.execute("""
                CREATE TABLE IF NOT EXISTS bookmarks (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    title TEXT NOT NULL DEFAULT '',
                    description TEXT,
                    href TEXT NOT NULL,
                    hostname TEXT,
                    created TEXT NOT NULL
                )
            """)
            await self._connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_bookmarks_created ON bookmarks(created)"
            )
            await self._connection.execute(
                "CREATE INDEX IF NOT EXISTS idx_bookmarks_hostname ON bookmarks(hostname)"
            )
            await self._connection.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Could not open bookmark database {self.db_path}: {e}") from e

        logger.info("Bookmark store opened at %s", self.db_path)

    async def close(self) -> None:
        """Close the database connection."""
        if self._connection:
            await self._connection.close()
            self._connection = None

    def _require_connection(self) -> aiosqlite.Connection:
        if not self._connection:
            raise StoreError("Database not initialized. Call initialize() first.")
        return self._connection

    async def add_bookmark(
        self,
        href: str,
        title: Optional[str] = "",
        description: Optional[str] = None,
        created: Optional[datetime] = None,
    ) -> Dict[str, Any]:
        """Insert a bookmark.

        Args:
            href: Bookmark URL; its hostname is derived from it
            title: Bookmark title (None is stored as "")
            description: Free-text description
            created: Creation time (default: now, UTC)

        Returns:
            The stored record
        """
        connection = self._require_connection()

        try:
            cursor = await connection.execute(
                "INSERT INTO bookmarks (title, description, href, hostname, created) "
                "VALUES (?, ?, ?, ?, ?)",
                (title or "", description, href, hostname_of(href), format_timestamp(created)),
            )
            await connection.commit()
            cursor = await connection.execute(
                "SELECT * FROM bookmarks WHERE id = ?", (cursor.lastrowid,)
            )
            row = await cursor.fetchone()
        except aiosqlite.Error as e:
            raise StoreError(f"Could not add bookmark {href}: {e}") from e

        return self._row_to_dict(row)

    async def add_bookmarks(self, records: Iterable[Dict[str, Any]]) -> int:
        """Insert many bookmarks at once.

        Args:
            records: Dicts with 'href' and optional 'title', 'description', 'created'

        Returns:
            Number of bookmarks inserted
        """
        connection = self._require_connection()

        rows = [
            (
                record.get("title") or "",
                record.get("description"),
                record["href"],
                hostname_of(record["href"]),
                format_timestamp(record.get("created")),
            )
            for record in records
        ]
        if not rows:
            return 0

        try:
            await connection.executemany(
                "INSERT INTO bookmarks (title, description, href, hostname, created) "
                "VALUES (?, ?, ?, ?, ?)",
                rows,
            )
            await connection.commit()
        except aiosqlite.Error as e:
            raise StoreError(f"Could not add bookmarks: {e}") from e

        return len(rows)

    async def find(self, predicate: FilterPredicate, sort: SortKey) -> List[Dict[str, Any]]:
        """Find bookmarks matching a predicate.

        Args:
            predicate: Filter to apply
            sort: Ordering of the results

        Returns:
            List of bookmark records
        """
        connection = self._require_connection()

        where, params = compile_where(predicate)
        direction = "DESC" if sort.descending else "ASC"
        sql = (
            f"SELECT * FROM bookmarks {where} "
            f"ORDER BY {_column(sort.field)} {direction}, id {direction}"
        )

        try:
            cursor = await connection.execute(sql, params)
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Bookmark query failed: {e}") from e

        return [self._row_to_dict(row) for row in rows]

    async def distinct_hostnames(self) -> List[str]:
        """Get every distinct hostname, sorted."""
        connection = self._require_connection()

        try:
            cursor = await connection.execute(
                "SELECT DISTINCT hostname FROM bookmarks "
                "WHERE hostname IS NOT NULL AND hostname != '' ORDER BY hostname"
            )
            rows = await cursor.fetchall()
        except aiosqlite.Error as e:
            raise StoreError(f"Hostname lookup failed: {e}") from e

        return [row["hostname"] for row in rows]

    def _row_to_dict(self, row: aiosqlite.Row) -> Dict[str, Any]:
        """Convert a database row to a bookmark record.

        Args:
            row: SQLite row object

        Returns:
            Record with the hostname nested under 'url'
        """
        return {
            "id": row["id"],
            "title": row["title"],
            "description": row["description"],
            "href": row["href"],
            "url": {"hostname": row["hostname"]},
            "created": row["created"],
        }


# Global store instance
_bookmark_store: Optional[SqliteBookmarkStore] = None


async def get_bookmark_store() -> SqliteBookmarkStore:
    """Get or create the global bookmark store instance.

    Returns:
        Initialized SqliteBookmarkStore
    """
    global _bookmark_store

    if _bookmark_store is None:
        from bookmark_search.config import get_config
        store = SqliteBookmarkStore(get_config().db_path)
        await store.initialize()
        _bookmark_store = store

    return _bookmark_store

"""Shared fixtures for tests."""
import json
import pytest
import pytest_asyncio

from bookmark_search.bookmarks_store import SqliteBookmarkStore
from bookmark_search.query_builder import get_field
from bookmark_search.search import StoreError


SAMPLE_BOOKMARKS = {
    "checksum": "test",
    "roots": {
        "bookmark_bar": {
            "children": [
                {
                    "date_added": "13350000000000000",
                    "id": "1",
                    "name": "Python Docs",
                    "type": "url",
                    "url": "https://docs.python.org"
                },
                {
                    "id": "2",
                    "name": "Work",
                    "type": "folder",
                    "children": [
                        {
                            "date_added": "13340000000000000",
                            "id": "3",
                            "name": "Jira Board",
                            "type": "url",
                            "url": "https://jira.example.com/board"
                        },
                        {
                            "date_added": "13345000000000000",
                            "id": "4",
                            "name": "Confluence",
                            "type": "url",
                            "url": "https://confluence.example.com"
                        }
                    ]
                },
                {
                    "id": "5",
                    "name": "Tutorials",
                    "type": "folder",
                    "children": [
                        {
                            "date_added": "13330000000000000",
                            "id": "6",
                            "name": "SQLite Guide",
                            "type": "url",
                            "url": "https://sqlite.org/guide"
                        }
                    ]
                }
            ],
            "id": "0",
            "name": "Bookmarks Bar",
            "type": "folder"
        },
        "other": {
            "children": [
                {
                    "id": "7",
                    "name": "Stack Overflow",
                    "type": "url",
                    "url": "https://stackoverflow.com"
                }
            ],
            "id": "100",
            "name": "Other Bookmarks",
            "type": "folder"
        },
        "synced": {
            "children": [],
            "id": "200",
            "name": "Mobile Bookmarks",
            "type": "folder"
        }
    },
    "version": 1
}


# Newest first: example.com, docs.python.org, test.org
SAMPLE_RECORDS = [
    {
        "id": 1,
        "title": "Example Domain",
        "description": "Reserved for documentation examples",
        "href": "https://example.com/",
        "url": {"hostname": "example.com"},
        "created": "2024-03-02T10:00:00.000000Z",
    },
    {
        "id": 2,
        "title": "Test Org",
        "description": "Testing services",
        "href": "https://test.org/about",
        "url": {"hostname": "test.org"},
        "created": "2024-01-15T08:30:00.000000Z",
    },
    {
        "id": 3,
        "title": "Python Docs",
        "description": None,
        "href": "https://docs.python.org/3/",
        "url": {"hostname": "docs.python.org"},
        "created": "2024-02-10T12:00:00.000000Z",
    },
]


class InMemoryBookmarkStore:
    """Bookmark store that evaluates predicates in Python."""

    def __init__(self, records=None, fail_find=False, fail_hostnames=False):
        self.records = list(records or [])
        self.fail_find = fail_find
        self.fail_hostnames = fail_hostnames
        self.calls = []

    async def find(self, predicate, sort):
        self.calls.append("find")
        if self.fail_find:
            raise StoreError("connection refused")
        hits = [r for r in self.records if predicate.matches(r)]
        return sorted(hits, key=lambda r: get_field(r, sort.field), reverse=sort.descending)

    async def distinct_hostnames(self):
        self.calls.append("distinct_hostnames")
        if self.fail_hostnames:
            raise StoreError("connection refused")
        return sorted({r["url"]["hostname"] for r in self.records})


@pytest.fixture
def sample_records():
    return [dict(r) for r in SAMPLE_RECORDS]


@pytest.fixture
def memory_store(sample_records):
    return InMemoryBookmarkStore(sample_records)


@pytest.fixture
def failing_store(sample_records):
    return InMemoryBookmarkStore(sample_records, fail_find=True)


@pytest.fixture
def sample_bookmarks_path(tmp_path):
    """Create a temporary Chrome bookmarks file with sample data."""
    bookmarks_file = tmp_path / "Bookmarks"
    bookmarks_file.write_text(json.dumps(SAMPLE_BOOKMARKS, indent=3))
    return bookmarks_file


@pytest.fixture
def db_path(tmp_path):
    """Return path for a temporary bookmark database."""
    return tmp_path / "test_bookmarks.db"


@pytest_asyncio.fixture
async def sqlite_store(db_path):
    """Create and initialize a test bookmark store."""
    s = SqliteBookmarkStore(db_path)
    await s.initialize()
    yield s
    await s.close()


class RecordingDiagnostics:
    """Collects warnings instead of logging them."""

    def __init__(self):
        self.warnings = []

    def warning(self, msg, *args):
        self.warnings.append(msg % args)


@pytest.fixture
def diagnostics():
    return RecordingDiagnostics()


@pytest.fixture
def make_store():
    return InMemoryBookmarkStore

"""Chrome bookmarks reader for importing into the bookmark store."""
import json
import logging
import os
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional


logger = logging.getLogger(__name__)

# Chrome timestamps count microseconds from this epoch
CHROME_EPOCH = datetime(1601, 1, 1, tzinfo=timezone.utc)

CHROME_ROOTS = ["bookmark_bar", "other", "synced"]


def get_chrome_bookmarks_path(profile: str = "Default") -> Path:
    """Get the path to Chrome bookmarks file.

    Args:
        profile: Chrome profile name (default: "Default")

    Returns:
        Path to the Bookmarks file
    """
    home = Path.home()
    if os.name == "nt":  # Windows
        chrome_path = home / "AppData" / "Local" / "Google" / "Chrome" / "User Data" / profile / "Bookmarks"
    elif sys.platform == "darwin":  # macOS
        chrome_path = home / "Library" / "Application Support" / "Google" / "Chrome" / profile / "Bookmarks"
    elif os.name == "posix":  # Linux
        chrome_path = home / ".config" / "google-chrome" / profile / "Bookmarks"
        # Also check for chromium
        if not chrome_path.exists():
            chrome_path = home / ".config" / "chromium" / profile / "Bookmarks"
    else:
        raise OSError(f"Unsupported operating system: {os.name}")

    return chrome_path


def load_bookmarks_file(bookmarks_path: Optional[Path] = None) -> Dict[str, Any]:
    """Load Chrome bookmarks JSON file.

    Args:
        bookmarks_path: Optional path to bookmarks file. If None, uses default Chrome location.

    Returns:
        Parsed JSON bookmarks data

    Raises:
        FileNotFoundError: If bookmarks file doesn't exist
        json.JSONDecodeError: If bookmarks file is malformed
    """
    if bookmarks_path is None:
        bookmarks_path = get_chrome_bookmarks_path()

    if not bookmarks_path.exists():
        raise FileNotFoundError(f"Bookmarks file not found at {bookmarks_path}")

    with open(bookmarks_path, "r", encoding="utf-8") as f:
        return json.load(f)


def chrome_time_to_datetime(value: Any) -> Optional[datetime]:
    """Convert a Chrome timestamp (microseconds since 1601, as a string).

    Returns:
        UTC datetime, or None for missing, zero or malformed values
    """
    try:
        micros = int(value)
    except (TypeError, ValueError):
        return None
    if micros <= 0:
        return None
    try:
        return CHROME_EPOCH + timedelta(microseconds=micros)
    except OverflowError:
        return None


def extract_bookmarks(node: Dict[str, Any], bookmarks: List[Dict[str, Any]], path: str = "") -> None:
    """Recursively extract bookmarks from Chrome bookmarks structure.

    Args:
        node: Current node in the bookmarks tree
        bookmarks: List to accumulate bookmarks
        path: Current folder path
    """
    if node.get("type") == "url":
        bookmarks.append({
            "href": node.get("url", ""),
            "title": node.get("name", ""),
            "description": path,  # Chrome has no description; use the folder
            "created": chrome_time_to_datetime(node.get("date_added")),
        })
    elif node.get("type") == "folder":
        folder_name = node.get("name", "")
        new_path = f"{path}/{folder_name}" if path else folder_name
        for child in node.get("children", []):
            extract_bookmarks(child, bookmarks, new_path)


def read_chrome_bookmarks(bookmarks_path: Optional[Path] = None) -> List[Dict[str, Any]]:
    """Read all bookmarks from Chrome bookmarks file.

    Args:
        bookmarks_path: Optional path to bookmarks file. If None, uses default Chrome location.

    Returns:
        List of records with 'href', 'title', 'description' and 'created' keys.
        Descriptions are folder paths prefixed with the root key
        (e.g., 'bookmark_bar/Work').

    Raises:
        FileNotFoundError: If bookmarks file doesn't exist
        json.JSONDecodeError: If bookmarks file is malformed
    """
    bookmarks_data = load_bookmarks_file(bookmarks_path)

    all_bookmarks: List[Dict[str, Any]] = []

    roots = bookmarks_data.get("roots", {})

    for root_name in CHROME_ROOTS:
        if root_name in roots:
            # Use the root key rather than its display name as the path prefix
            for child in roots[root_name].get("children", []):
                extract_bookmarks(child, all_bookmarks, root_name)

    return [b for b in all_bookmarks if b["href"]]


async def import_chrome_bookmarks(store: Any, bookmarks_path: Optional[Path] = None) -> int:
    """Load a Chrome bookmarks file into a bookmark store.

    Args:
        store: Store exposing ``add_bookmarks``
        bookmarks_path: Optional path to bookmarks file

    Returns:
        Number of bookmarks imported
    """
    records = read_chrome_bookmarks(bookmarks_path)
    count = await store.add_bookmarks(records)
    logger.info("Imported %d Chrome bookmarks", count)
    return count

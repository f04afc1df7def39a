"""Configuration for the bookmark search service."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from bookmark_search.models import ECHOED_PARAMS


@dataclass
class HttpConfig:
    """Configuration for the HTTP search endpoint."""
    host: str = "127.0.0.1"
    port: int = 3000

    # Query parameter carrying the JSONP callback name
    jsonp_callback: str = "callback"

    def __post_init__(self) -> None:
        if self.jsonp_callback in ECHOED_PARAMS:
            raise ValueError(
                f"JSONP callback parameter cannot be a search parameter: {self.jsonp_callback!r}"
            )

    @classmethod
    def from_env(cls) -> "HttpConfig":
        """Create config from environment variables."""
        return cls(
            host=os.environ.get("BOOKMARKS_HTTP_HOST", "127.0.0.1"),
            port=int(os.environ.get("BOOKMARKS_HTTP_PORT", "3000")),
            jsonp_callback=os.environ.get("BOOKMARKS_JSONP_CALLBACK", "callback"),
        )


@dataclass
class Config:
    """Main configuration for the bookmark search service."""
    http: HttpConfig = field(default_factory=HttpConfig.from_env)
    db_path: Optional[Path] = None  # None = use default
    chrome_profile: str = "Default"  # Chrome profile to import from
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Config":
        """Create config from environment variables."""
        db_path_str = os.environ.get("BOOKMARKS_DB")
        db_path = Path(db_path_str) if db_path_str else None

        return cls(
            http=HttpConfig.from_env(),
            db_path=db_path,
            chrome_profile=os.environ.get("BOOKMARKS_CHROME_PROFILE", "Default"),
            log_level=os.environ.get("BOOKMARKS_LOG_LEVEL", "INFO").upper(),
        )


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global config instance.

    Returns:
        Config loaded from environment
    """
    global _config

    if _config is None:
        _config = Config.from_env()

    return _config

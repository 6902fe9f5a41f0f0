"""
Central configuration for docpager.

All tunables live here. Nothing is hardcoded in module code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from functools import lru_cache


def _project_root() -> Path:
    """Walk up from this file to find the project root (where pyproject.toml lives)."""
    current = Path(__file__).resolve().parent
    while current != current.parent:
        if (current / "pyproject.toml").exists():
            return current
        current = current.parent
    # Fallback: two levels up from config/settings.py
    return Path(__file__).resolve().parent.parent.parent


@dataclass(frozen=True)
class PaginationSettings:
    """Settings for the keyset pagination engine."""

    # Page size used when the caller's limit is absent, negative, not a
    # number, or zero while unbounded fetches are forbidden
    default_limit: int = 10

    # Treat limit=0 as "use default_limit" instead of "no limit"
    forbid_unbounded_fetch: bool = False

    # Skip the independent count; PaginateResult.total_count stays None
    suppress_total_count: bool = False

    # Unique, totally ordered field appended to every sort
    tie_break_field: str = "_id"

    # Sort used when the caller requests none, as (path, direction) pairs.
    # Empty means a sort is mandatory.
    default_sort: tuple[tuple[str, str], ...] = ()

    # Cursor token encoding: "json" or "msgpack"
    cursor_codec: str = "json"


@dataclass(frozen=True)
class StorageSettings:
    """Settings for the MongoDB client used by the CLI."""

    # Connection string
    uri: str = "mongodb://localhost:27017"

    # Database holding the paginated collections
    database: str = "docpager"

    # How long the driver waits for a reachable server (milliseconds)
    server_selection_timeout_ms: int = 5000

    # Reported to the server in the connection handshake
    app_name: str = "docpager"


@dataclass(frozen=True)
class LoggingSettings:
    """Settings for setup_logging(); the engine itself only logs, never configures."""

    # Level for the docpager logger tree ("DEBUG" shows predicates and pipelines)
    level: str = "INFO"

    # Level for pymongo's own loggers, which log every command at DEBUG
    driver_level: str = "WARNING"

    log_file: str = "docpager.log"
    max_bytes: int = 10 * 1024 * 1024
    backup_count: int = 5

    format: str = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
    date_format: str = "%Y-%m-%d %H:%M:%S"


@dataclass
class Settings:
    """
    Top-level settings container. Aggregates all subsystem settings.

    Usage:
        settings = get_settings()
        print(settings.pagination.default_limit)
        print(settings.storage.uri)
    """

    project_root: Path = field(default_factory=_project_root)
    pagination: PaginationSettings = field(default_factory=PaginationSettings)
    storage: StorageSettings = field(default_factory=StorageSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)

    @property
    def data_dir(self) -> Path:
        """Root directory for runtime data."""
        return self.project_root / "data"

    @property
    def logs_dir(self) -> Path:
        """Root directory for log files."""
        return self.data_dir / "logs"

    def ensure_dirs(self) -> None:
        """Create all required data directories if they don't exist."""
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Returns the singleton Settings instance.

    Call this instead of constructing Settings() directly so the entire
    application shares one config object.
    """
    return Settings()

"""Centralised settings for the eventgraph relation store.

All runtime configuration is resolved here in one place.  Values can be
overridden via environment variables or a `.env` file in the project root
(loaded automatically when this module is imported).
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the project root (two levels up from this file)
_env_path = Path(__file__).resolve().parent.parent / ".env"
load_dotenv(_env_path, override=False)


@dataclass
class Settings:
    # ------------------------------------------------------------------
    # Workspace / storage
    # ------------------------------------------------------------------
    workspace_dir: Path = field(
        default_factory=lambda: Path(
            os.environ.get("EVENTGRAPH_WORKSPACE", Path.home() / ".eventgraph_data")
        )
    )
    database_url_override: str = field(
        default_factory=lambda: os.environ.get("EVENTGRAPH_DATABASE_URL", "")
    )

    @property
    def db_path(self) -> Path:
        """Absolute path to the default SQLite database file."""
        return self.workspace_dir / "relations.db"

    @property
    def database_url(self) -> str:
        """Connection string used by ``open_store()`` when none is given.

        ``EVENTGRAPH_DATABASE_URL`` wins; otherwise the SQLite file inside the
        workspace is used.
        """
        return self.database_url_override or str(self.db_path)

    @property
    def schema_path(self) -> Path:
        """Absolute path to the schema SQL file bundled with the package."""
        return Path(__file__).resolve().parent / "db" / "schema.sql"

    # ------------------------------------------------------------------
    # SQLite
    # ------------------------------------------------------------------
    sqlite_busy_timeout: int = field(
        default_factory=lambda: int(os.environ.get("SQLITE_BUSY_TIMEOUT", "5000"))
    )

    # ------------------------------------------------------------------
    # PostgreSQL connection pool
    # ------------------------------------------------------------------
    pg_pool_min_size: int = field(
        default_factory=lambda: int(os.environ.get("PG_POOL_MIN_SIZE", "1"))
    )
    pg_pool_max_size: int = field(
        default_factory=lambda: int(os.environ.get("PG_POOL_MAX_SIZE", "10"))
    )
    pg_pool_timeout: float = field(
        default_factory=lambda: float(os.environ.get("PG_POOL_TIMEOUT", "30.0"))
    )

    # ------------------------------------------------------------------
    # Logging
    # ------------------------------------------------------------------
    log_level: str = field(
        default_factory=lambda: os.environ.get("EVENTGRAPH_LOG_LEVEL", "WARNING")
    )

    def ensure_workspace(self) -> None:
        """Create the workspace directory if it does not exist."""
        self.workspace_dir.mkdir(parents=True, exist_ok=True)


# Module-level singleton, import this everywhere:
#   from eventgraph.config import settings
settings = Settings()

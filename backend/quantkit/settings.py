from __future__ import annotations

import os
from dataclasses import dataclass

DEFAULT_DATABASE_URL = "sqlite:///./quantkit.db"
DEFAULT_LOG_LEVEL = "INFO"


@dataclass(frozen=True)
class Settings:
    """Runtime configuration, read from the environment.

    DATABASE_URL        SQLAlchemy URL for the run store (SQLite by default)
    QUANTKIT_LOG_LEVEL  root logging level for the API process
    """

    database_url: str = DEFAULT_DATABASE_URL
    log_level: str = DEFAULT_LOG_LEVEL

    @classmethod
    def from_env(cls, database_url: str | None = None) -> "Settings":
        return cls(
            database_url=database_url or os.getenv("DATABASE_URL", DEFAULT_DATABASE_URL),
            log_level=os.getenv("QUANTKIT_LOG_LEVEL", DEFAULT_LOG_LEVEL).upper(),
        )

"""
Runtime configuration for the recipe catalog.

Values are read from environment variables; a `.env` file in the working
directory is loaded first when present (python-dotenv).

- DATABASE_URL: SQLAlchemy URL (empty -> in-memory SQLite for local dev)
- JWT_SECRET / JWT_ALGORITHM / ACCESS_TOKEN_EXPIRE_MINUTES: bearer token settings
- CORS_ALLOW_ORIGINS: comma-separated origins (empty -> allow all)
- MEDIA_ROOT / MEDIA_URL_PREFIX: where stored recipe images live and how they are referenced
- LOG_LEVEL: root log level (default INFO)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import List

from dotenv import load_dotenv

load_dotenv()  # loads variables from a .env file if present

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


# PUBLIC_INTERFACE
def parse_csv_env(value: str) -> List[str]:
    """Parse a comma-separated environment variable into a list of strings."""
    if not value:
        return []
    return [v.strip() for v in value.split(",") if v.strip()]


@dataclass(frozen=True)
class Settings:
    database_url: str = ""
    jwt_secret: str = "CHANGE_ME_DEV_ONLY"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60
    cors_allow_origins: List[str] = field(default_factory=list)
    media_root: str = "storage/public"
    media_url_prefix: str = "/storage/"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            database_url=os.getenv("DATABASE_URL", ""),
            jwt_secret=os.getenv("JWT_SECRET", "CHANGE_ME_DEV_ONLY"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60")),
            cors_allow_origins=parse_csv_env(os.getenv("CORS_ALLOW_ORIGINS", "")),
            media_root=os.getenv("MEDIA_ROOT", "storage/public"),
            media_url_prefix=os.getenv("MEDIA_URL_PREFIX", "/storage/"),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


# PUBLIC_INTERFACE
@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return the process-wide settings, read from the environment once."""
    return Settings.from_env()


# PUBLIC_INTERFACE
def configure_logging(level: str = "INFO") -> None:
    """Attach a single stream handler to the root logger (safe to call repeatedly)."""
    root = logging.getLogger()
    if not any(getattr(h, "_catalog_handler", False) for h in root.handlers):
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler._catalog_handler = True  # type: ignore[attr-defined]
        root.addHandler(handler)
    root.setLevel(level)

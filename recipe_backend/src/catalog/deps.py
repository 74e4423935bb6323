"""
Database and service dependencies for FastAPI routes.

- get_db: Yields a SQLAlchemy session bound to the configured engine.
- get_images: Returns the image store used to release replaced/deleted images.
- get_catalog: Builds a CatalogService around the request's session.

Configuration is sourced from catalog.config (DATABASE_URL, MEDIA_ROOT, MEDIA_URL_PREFIX).
"""

from __future__ import annotations

import logging
from typing import Generator, Optional

from fastapi import Depends
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from .config import get_settings
from .images import ImageStore
from .models import Base
from .service import CatalogService

logger = logging.getLogger(__name__)

_ENGINE: Optional[Engine] = None
_SessionLocal: Optional[sessionmaker] = None


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


# PUBLIC_INTERFACE
def create_db_engine(database_url: str) -> Engine:
    """Create an engine for the URL; in-memory SQLite shares one connection across threads."""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url:
            kwargs["poolclass"] = StaticPool
        engine = create_engine(database_url, **kwargs)
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
        return engine
    # The pool_pre_ping helps drop broken connections gracefully.
    return create_engine(database_url, pool_pre_ping=True)


def _ensure_engine_and_session() -> None:
    """Create global engine and SessionLocal singleton if not already created."""
    global _ENGINE, _SessionLocal
    if _ENGINE is not None and _SessionLocal is not None:
        return

    database_url = get_settings().database_url
    if not database_url:
        # No DB configured: fall back to an in-memory SQLite database so the app still starts.
        logger.warning("DATABASE_URL is not set; using in-memory SQLite")
        database_url = "sqlite+pysqlite:///:memory:"

    _ENGINE = create_db_engine(database_url)
    _SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=_ENGINE)


# PUBLIC_INTERFACE
def init_db() -> None:
    """Create all tables on the configured engine."""
    _ensure_engine_and_session()
    assert _ENGINE is not None
    Base.metadata.create_all(bind=_ENGINE)


# PUBLIC_INTERFACE
def get_db() -> Generator[Session, None, None]:
    """Yield a database session for request handling and ensure proper cleanup."""
    _ensure_engine_and_session()
    assert _SessionLocal is not None  # For type checkers
    db = _SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


# PUBLIC_INTERFACE
def get_images() -> ImageStore:
    """Return the local image store configured by MEDIA_ROOT / MEDIA_URL_PREFIX."""
    settings = get_settings()
    return ImageStore(settings.media_root, settings.media_url_prefix)


# PUBLIC_INTERFACE
def get_catalog(
    db: Session = Depends(get_db),
    images: ImageStore = Depends(get_images),
) -> CatalogService:
    """Catalog service bound to the request's session."""
    return CatalogService(db, images)

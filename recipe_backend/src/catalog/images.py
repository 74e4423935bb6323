"""
Stored recipe image references.

Recipes keep an image *reference*: either a URL under the media prefix
(``/storage/recipes/abc.jpg``), which maps to a file below the media root, or
an external URL, which the catalog does not own. Uploading is handled outside
the catalog; this module only releases blobs that are no longer referenced.

Releases requested during a transaction wait for its commit; a rollback keeps
the files, since the rows still point at them.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import List, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction

logger = logging.getLogger(__name__)

_PENDING = "catalog.pending_image_releases"


class ImageStore:
    """Local filesystem store for recipe images."""

    def __init__(self, media_root: str, url_prefix: str = "/storage/") -> None:
        self.media_root = Path(media_root).resolve()
        self.url_prefix = url_prefix if url_prefix.endswith("/") else url_prefix + "/"

    def path_for(self, reference: Optional[str]) -> Optional[Path]:
        """Local path of a reference, or None when it is not stored under the media root."""
        if not reference or not reference.startswith(self.url_prefix):
            return None
        relative = reference[len(self.url_prefix):]
        path = (self.media_root / relative).resolve()
        # refuse references escaping the media root (e.g. "../")
        if self.media_root not in path.parents:
            return None
        return path

    # PUBLIC_INTERFACE
    def release(self, reference: Optional[str]) -> bool:
        """Delete the blob behind a reference. Returns True when a file was removed."""
        path = self.path_for(reference)
        if path is None:
            if reference:
                logger.debug("Image %s is not managed locally; nothing to release", reference)
            return False
        try:
            path.unlink()
        except FileNotFoundError:
            logger.info("Image %s already gone", reference)
            return False
        logger.info("Released image %s", reference)
        return True


class NullImageStore(ImageStore):
    """Image store that owns nothing; used when no media root is available."""

    def __init__(self) -> None:
        super().__init__(".", "/storage/")

    def release(self, reference: Optional[str]) -> bool:
        return False


# PUBLIC_INTERFACE
def release_after_commit(db: Session, images: ImageStore, reference: Optional[str]) -> None:
    """Queue `reference` for release once the session's transaction commits."""
    if not reference:
        return
    pending: List[Tuple[ImageStore, str]] = db.info.setdefault(_PENDING, [])
    pending.append((images, reference))


@event.listens_for(Session, "after_commit")
def _release_committed(session: Session) -> None:
    if session.in_nested_transaction():
        return
    for images, reference in session.info.pop(_PENDING, []):
        images.release(reference)


@event.listens_for(Session, "after_transaction_end")
def _forget_rolled_back(session: Session, transaction: SessionTransaction) -> None:
    # after_commit has already drained the queue when the outer transaction committed
    if transaction.parent is None and session.info.get(_PENDING):
        logger.info("Transaction rolled back; keeping %d image(s)", len(session.info[_PENDING]))
        session.info.pop(_PENDING)

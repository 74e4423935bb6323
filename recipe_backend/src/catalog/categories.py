"""Category directory: lookup and maintenance of recipe categories."""

from __future__ import annotations

import logging
import re
import unicodedata
from typing import Any, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from .errors import NotFoundError, ValidationError
from .models import Category

logger = logging.getLogger(__name__)

_NON_SLUG = re.compile(r"[^a-z0-9]+")


# PUBLIC_INTERFACE
def slugify(name: str) -> str:
    """URL-safe slug: ASCII-folded, lowercase, words joined by single dashes."""
    folded = unicodedata.normalize("NFKD", name).encode("ascii", "ignore").decode("ascii")
    return _NON_SLUG.sub("-", folded.lower()).strip("-")


def list_categories(db: Session) -> List[Category]:
    return list(db.execute(select(Category).order_by(Category.name.asc())).scalars().all())


def get_category_or_404(db: Session, category_id: int) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFoundError("Category", category_id)
    return category


def _checked_slug(db: Session, name: str, exclude_id: Optional[int] = None) -> str:
    slug = slugify(name)
    if not slug:
        raise ValidationError.single("name", "slug", "The category name must contain letters or digits.")
    stmt = select(Category.id).where((Category.slug == slug) | (Category.name == name))
    if exclude_id is not None:
        stmt = stmt.where(Category.id != exclude_id)
    if db.execute(stmt).first() is not None:
        raise ValidationError.single("name", "unique", "The category name has already been taken.")
    return slug


# PUBLIC_INTERFACE
def create_category(db: Session, name: str, description: Optional[str] = None) -> Category:
    """Create a category; its slug is derived from the name and must be unique."""
    name = name.strip()
    category = Category(name=name, slug=_checked_slug(db, name), description=description)
    db.add(category)
    db.flush()
    logger.info("Category %s (%s) created", category.id, category.slug)
    return category


# PUBLIC_INTERFACE
def update_category(db: Session, category_id: int, changes: Dict[str, Any]) -> Category:
    category = get_category_or_404(db, category_id)
    if changes.get("name"):
        name = changes["name"].strip()
        category.slug = _checked_slug(db, name, exclude_id=category.id)
        category.name = name
    if "description" in changes:
        category.description = changes["description"]
    db.flush()
    logger.info("Category %s updated", category.id)
    return category


# PUBLIC_INTERFACE
def delete_category(db: Session, category_id: int) -> None:
    """Delete a category; recipes simply lose the link to it."""
    category = get_category_or_404(db, category_id)
    db.delete(category)
    db.flush()
    logger.info("Category %s deleted", category_id)

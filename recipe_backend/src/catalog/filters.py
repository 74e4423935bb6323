"""
Recipe list filters.

Each filter is an independent predicate; `apply_filters` AND-s together the
ones that are set and leaves the query untouched for the ones that are not.
Results are ordered by recipe id so repeated identical queries return the same
sequence.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

from sqlalchemy import Select, func, or_, select
from sqlalchemy.orm import Session, selectinload

from .models import Category, Recipe, RecipeDietTag
from .schemas import RecipeFilters


def search_predicate(term: Optional[str]):
    """Case-insensitive substring match on title OR description."""
    if not term:
        return None
    return or_(
        Recipe.title.icontains(term, autoescape=True),
        Recipe.description.icontains(term, autoescape=True),
    )


def category_predicate(category_id: Optional[int]):
    if not category_id:
        return None
    return Recipe.categories.any(Category.id == category_id)


def difficulty_predicate(difficulty: Optional[str]):
    if not difficulty:
        return None
    return Recipe.difficulty == difficulty


def cuisine_predicate(cuisine: Optional[str]):
    if not cuisine:
        return None
    return func.lower(Recipe.cuisine) == cuisine.lower()


def max_cooking_time_predicate(max_time: Optional[int]):
    if not max_time:
        return None
    return Recipe.cooking_time <= max_time


def diet_tags_predicates(tags: Optional[Sequence[str]]) -> List:
    """One EXISTS per requested tag: the recipe's tags must contain all of them."""
    if not tags:
        return []
    return [Recipe.diet_tag_rows.any(RecipeDietTag.tag == tag) for tag in dict.fromkeys(tags)]


# PUBLIC_INTERFACE
def apply_filters(stmt: Select, filters: Optional[RecipeFilters]) -> Select:
    """Narrow a `select(Recipe)` statement by every filter that is set."""
    if filters is None:
        return stmt
    predicates = [
        search_predicate(filters.search),
        category_predicate(filters.category_id),
        difficulty_predicate(filters.difficulty),
        cuisine_predicate(filters.cuisine),
        max_cooking_time_predicate(filters.max_cooking_time),
        *diet_tags_predicates(filters.diet_tags),
    ]
    active = [p for p in predicates if p is not None]
    if active:
        stmt = stmt.where(*active)
    return stmt


def with_details(stmt: Select) -> Select:
    """Eager-load everything a RecipeView needs, one query per relationship."""
    return stmt.options(
        selectinload(Recipe.categories),
        selectinload(Recipe.ingredients),
        selectinload(Recipe.steps),
        selectinload(Recipe.diet_tag_rows),
    )


# PUBLIC_INTERFACE
def list_recipes(db: Session, filters: Optional[RecipeFilters] = None) -> List[Recipe]:
    """Return the recipes matching `filters`, ordered by id."""
    stmt = with_details(apply_filters(select(Recipe), filters)).order_by(Recipe.id.asc())
    return list(db.execute(stmt).scalars().all())

"""
Per-recipe aggregates and viewer personalisation.

`decorate` turns ORM recipes into immutable `RecipeView`s carrying:
- average_rating (0.0 when unrated), ratings_count
- favorites_count, comments_count
- is_favorite for the viewer (False without a viewer)

Aggregates are computed with one grouped query per metric for the whole batch,
so listing N recipes costs a fixed number of queries. Nothing is written.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Sequence, Set, Tuple

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from .models import Comment, Favorite, Rating, Recipe
from .schemas import CategoryRead, IngredientRead, RecipeView, StepRead


def _rating_stats(db: Session, ids: Sequence[int]) -> Dict[int, Tuple[float, int]]:
    rows = db.execute(
        select(Rating.recipe_id, func.avg(Rating.rating), func.count(Rating.id))
        .where(Rating.recipe_id.in_(ids))
        .group_by(Rating.recipe_id)
    ).all()
    return {recipe_id: (float(avg or 0), int(count)) for recipe_id, avg, count in rows}


def _counts(db: Session, column, ids: Sequence[int]) -> Dict[int, int]:
    rows = db.execute(
        select(column, func.count()).where(column.in_(ids)).group_by(column)
    ).all()
    return {recipe_id: int(count) for recipe_id, count in rows}


def _viewer_favorites(db: Session, viewer: Optional[int], ids: Sequence[int]) -> Set[int]:
    if viewer is None:
        return set()
    return set(
        db.execute(
            select(Favorite.recipe_id).where(Favorite.user_id == viewer, Favorite.recipe_id.in_(ids))
        ).scalars().all()
    )


def to_view(
    recipe: Recipe,
    *,
    average_rating: float = 0.0,
    ratings_count: int = 0,
    favorites_count: int = 0,
    comments_count: int = 0,
    is_favorite: bool = False,
) -> RecipeView:
    return RecipeView(
        id=recipe.id,
        title=recipe.title,
        description=recipe.description,
        ingredients=[IngredientRead.model_validate(i) for i in recipe.ingredients],
        steps=[StepRead.model_validate(s) for s in recipe.steps],
        cuisine=recipe.cuisine,
        difficulty=recipe.difficulty,
        diet_tags=list(recipe.diet_tags),
        cooking_time=recipe.cooking_time,
        image=recipe.image,
        user_id=recipe.user_id,
        created_at=recipe.created_at,
        updated_at=recipe.updated_at,
        is_favorite=is_favorite,
        average_rating=average_rating,
        ratings_count=ratings_count,
        favorites_count=favorites_count,
        comments_count=comments_count,
        categories=[CategoryRead.model_validate(c) for c in recipe.categories],
    )


# PUBLIC_INTERFACE
def decorate(
    db: Session,
    recipes: Iterable[Recipe],
    viewer: Optional[int] = None,
    force_favorite: bool = False,
) -> List[RecipeView]:
    """Attach aggregates (and the viewer's favorite flag) to each recipe, preserving order."""
    recipes = list(recipes)
    if not recipes:
        return []
    ids = [r.id for r in recipes]

    ratings = _rating_stats(db, ids)
    favorites = _counts(db, Favorite.recipe_id, ids)
    comments = _counts(db, Comment.recipe_id, ids)
    mine = set(ids) if force_favorite else _viewer_favorites(db, viewer, ids)

    views = []
    for recipe in recipes:
        average, count = ratings.get(recipe.id, (0.0, 0))
        views.append(
            to_view(
                recipe,
                average_rating=average,
                ratings_count=count,
                favorites_count=favorites.get(recipe.id, 0),
                comments_count=comments.get(recipe.id, 0),
                is_favorite=recipe.id in mine,
            )
        )
    return views


# PUBLIC_INTERFACE
def decorate_one(db: Session, recipe: Recipe, viewer: Optional[int] = None) -> RecipeView:
    """Single-recipe decoration; goes through the bulk path so values always agree."""
    return decorate(db, [recipe], viewer)[0]

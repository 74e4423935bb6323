"""
Ownership and mutation rules for recipes, ratings and favorites.

Order of checks for every guarded mutation:
1. the recipe exists (NotFoundError)
2. the requester owns it, for update/delete (ForbiddenError)
3. the payload is valid (ValidationError)
Only then is anything written.

Ratings and favorites are keyed on (user, recipe). Writes go through a single
INSERT .. ON CONFLICT statement where the dialect supports it, so concurrent
duplicate requests converge on one row instead of surfacing a duplicate-key error.
"""

from __future__ import annotations

import logging
from typing import Any, List, Optional, Sequence, Type, TypeVar

from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy import delete, insert, select, update
from sqlalchemy.dialects import postgresql, sqlite
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from .errors import FieldError, ForbiddenError, NotFoundError, ValidationError
from .filters import with_details
from .images import ImageStore, release_after_commit
from .models import (
    Category,
    Favorite,
    Rating,
    Recipe,
    RecipeDietTag,
    RecipeIngredient,
    RecipeStep,
    utcnow,
)
from .schemas import IngredientIn, RatingIn, RecipeCreate, RecipeUpdate, StepIn

logger = logging.getLogger(__name__)

SchemaT = TypeVar("SchemaT", bound=BaseModel)

_UPSERT_DIALECTS = {
    "sqlite": sqlite.insert,
    "postgresql": postgresql.insert,
}


# -----------------------------------------------------------------------------
# Checks
# -----------------------------------------------------------------------------

# PUBLIC_INTERFACE
def validate(schema: Type[SchemaT], payload: Any) -> SchemaT:
    """Validate raw input against a schema, raising the catalog's ValidationError."""
    if isinstance(payload, schema):
        return payload
    if isinstance(payload, BaseModel):
        payload = payload.model_dump(exclude_unset=True)
    try:
        return schema.model_validate(payload)
    except PydanticValidationError as exc:
        raise ValidationError.from_pydantic(exc) from exc


# PUBLIC_INTERFACE
def get_recipe_or_404(db: Session, recipe_id: int, for_update: bool = False) -> Recipe:
    """Load a recipe with its details; lock the row when it is about to be mutated."""
    stmt = with_details(select(Recipe).where(Recipe.id == recipe_id))
    if for_update:
        stmt = stmt.with_for_update()
    recipe = db.execute(stmt).scalar_one_or_none()
    if recipe is None:
        raise NotFoundError("Recipe", recipe_id)
    return recipe


# PUBLIC_INTERFACE
def ensure_owner(recipe: Recipe, requester: int) -> None:
    """Only the user who created a recipe may change or delete it."""
    if recipe.user_id != requester:
        logger.warning("User %s tried to modify recipe %s owned by %s", requester, recipe.id, recipe.user_id)
        raise ForbiddenError()


# PUBLIC_INTERFACE
def resolve_categories(db: Session, category_ids: Sequence[int]) -> List[Category]:
    """Load the categories for `category_ids`, failing on the first id that does not exist."""
    wanted = list(dict.fromkeys(category_ids))
    found = {
        c.id: c
        for c in db.execute(select(Category).where(Category.id.in_(wanted))).scalars().all()
    }
    errors = [
        FieldError(
            field=f"categories.{index}",
            rule="exists",
            message="One or more selected categories do not exist.",
        )
        for index, category_id in enumerate(category_ids)
        if category_id not in found
    ]
    if errors:
        raise ValidationError(errors)
    return [found[category_id] for category_id in wanted]


# -----------------------------------------------------------------------------
# Recipes
# -----------------------------------------------------------------------------

def _ingredient_rows(items: Sequence[IngredientIn]) -> List[RecipeIngredient]:
    return [
        RecipeIngredient(position=i, name=item.name, amount=item.amount, unit=item.unit)
        for i, item in enumerate(items)
    ]


def _step_rows(items: Sequence[StepIn]) -> List[RecipeStep]:
    return [RecipeStep(position=i, step=item.step, instruction=item.instruction) for i, item in enumerate(items)]


def _tag_rows(tags: Optional[Sequence[str]]) -> List[RecipeDietTag]:
    return [RecipeDietTag(position=i, tag=tag) for i, tag in enumerate(tags or [])]


def _replace_children(db: Session, collection: list, rows: list) -> None:
    # flush the removals first so re-inserted rows cannot collide with unique keys
    collection.clear()
    db.flush()
    collection.extend(rows)


# PUBLIC_INTERFACE
def create_recipe(db: Session, payload: Any, owner: int) -> Recipe:
    """Validate a draft and store it as a new recipe owned by `owner`."""
    draft = validate(RecipeCreate, payload)
    categories = resolve_categories(db, draft.categories)

    recipe = Recipe(
        title=draft.title,
        description=draft.description,
        cuisine=draft.cuisine,
        difficulty=draft.difficulty,
        cooking_time=draft.cooking_time,
        image=draft.image,
        user_id=owner,
    )
    recipe.ingredients = _ingredient_rows(draft.ingredients)
    recipe.steps = _step_rows(draft.steps)
    recipe.diet_tag_rows = _tag_rows(draft.diet_tags)
    recipe.categories = categories
    db.add(recipe)
    db.flush()
    logger.info("Recipe %s created by user %s", recipe.id, owner)
    return recipe


# PUBLIC_INTERFACE
def update_recipe(
    db: Session,
    recipe_id: int,
    payload: Any,
    requester: int,
    images: Optional[ImageStore] = None,
) -> Recipe:
    """Apply a partial update; only the recipe's owner may do this."""
    recipe = get_recipe_or_404(db, recipe_id, for_update=True)
    ensure_owner(recipe, requester)
    patch = validate(RecipeUpdate, payload)
    changes = patch.changes()

    categories = resolve_categories(db, patch.categories) if "categories" in changes else None

    for name in ("title", "description", "cuisine", "cooking_time", "difficulty"):
        if name in changes:
            setattr(recipe, name, changes[name])

    released = None
    if "image" in changes and changes["image"] != recipe.image:
        released = recipe.image
        recipe.image = changes["image"]

    if "ingredients" in changes:
        _replace_children(db, recipe.ingredients, _ingredient_rows(patch.ingredients))
    if "steps" in changes:
        _replace_children(db, recipe.steps, _step_rows(patch.steps))
    if "diet_tags" in changes:
        _replace_children(db, recipe.diet_tag_rows, _tag_rows(patch.diet_tags))
    if categories is not None:
        recipe.categories = categories

    recipe.updated_at = utcnow()
    db.flush()

    if released and images is not None:
        release_after_commit(db, images, released)
    logger.info("Recipe %s updated by user %s (%s)", recipe.id, requester, ", ".join(sorted(changes)) or "no fields")
    return recipe


# PUBLIC_INTERFACE
def delete_recipe(
    db: Session,
    recipe_id: int,
    requester: int,
    images: Optional[ImageStore] = None,
) -> None:
    """Delete a recipe together with its favorites, ratings and comments."""
    recipe = get_recipe_or_404(db, recipe_id, for_update=True)
    ensure_owner(recipe, requester)
    image = recipe.image

    db.delete(recipe)
    db.flush()

    if image and images is not None:
        release_after_commit(db, images, image)
    logger.info("Recipe %s deleted by user %s", recipe_id, requester)


# -----------------------------------------------------------------------------
# Ratings
# -----------------------------------------------------------------------------

def _dialect(db: Session) -> str:
    return db.get_bind().dialect.name


# PUBLIC_INTERFACE
def rate_recipe(db: Session, recipe_id: int, user: int, value: Any) -> Rating:
    """Create or replace the user's rating of a recipe."""
    get_recipe_or_404(db, recipe_id)
    rating = validate(RatingIn, {"rating": value}).rating
    now = utcnow()

    upsert = _UPSERT_DIALECTS.get(_dialect(db))
    if upsert is not None:
        stmt = upsert(Rating).values(
            user_id=user, recipe_id=recipe_id, rating=rating, created_at=now, updated_at=now
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=["user_id", "recipe_id"],
            set_={"rating": rating, "updated_at": now},
        )
        db.execute(stmt)
    else:
        try:
            with db.begin_nested():
                db.execute(
                    insert(Rating).values(
                        user_id=user, recipe_id=recipe_id, rating=rating, created_at=now, updated_at=now
                    )
                )
        except IntegrityError:
            logger.debug("Rating (%s, %s) exists; updating instead", user, recipe_id)
            db.execute(
                update(Rating)
                .where(Rating.user_id == user, Rating.recipe_id == recipe_id)
                .values(rating=rating, updated_at=now)
            )

    logger.info("User %s rated recipe %s with %s", user, recipe_id, rating)
    return db.execute(
        select(Rating)
        .where(Rating.user_id == user, Rating.recipe_id == recipe_id)
        .execution_options(populate_existing=True)
    ).scalar_one()


# PUBLIC_INTERFACE
def get_rating(db: Session, recipe_id: int, user: int) -> Optional[Rating]:
    get_recipe_or_404(db, recipe_id)
    return db.execute(
        select(Rating).where(Rating.user_id == user, Rating.recipe_id == recipe_id)
    ).scalar_one_or_none()


# PUBLIC_INTERFACE
def delete_rating(db: Session, recipe_id: int, user: int) -> bool:
    """Remove the user's own rating; returns False when there was none."""
    get_recipe_or_404(db, recipe_id)
    result = db.execute(
        delete(Rating).where(Rating.user_id == user, Rating.recipe_id == recipe_id)
    )
    removed = bool(result.rowcount)
    if removed:
        logger.info("User %s removed rating of recipe %s", user, recipe_id)
    return removed


# -----------------------------------------------------------------------------
# Favorites
# -----------------------------------------------------------------------------

# PUBLIC_INTERFACE
def add_favorite(db: Session, recipe_id: int, user: int) -> bool:
    """Favorite a recipe; favoriting it again is a no-op. Returns True when a row was added."""
    get_recipe_or_404(db, recipe_id)
    values = {"user_id": user, "recipe_id": recipe_id, "created_at": utcnow()}

    upsert = _UPSERT_DIALECTS.get(_dialect(db))
    if upsert is not None:
        stmt = upsert(Favorite).values(**values).on_conflict_do_nothing(
            index_elements=["user_id", "recipe_id"]
        )
        added = bool(db.execute(stmt).rowcount)
    else:
        try:
            with db.begin_nested():
                db.execute(insert(Favorite).values(**values))
            added = True
        except IntegrityError:
            added = False

    if added:
        logger.info("User %s favorited recipe %s", user, recipe_id)
    else:
        logger.debug("Recipe %s already favorited by user %s", recipe_id, user)
    return added


# PUBLIC_INTERFACE
def remove_favorite(db: Session, recipe_id: int, user: int) -> bool:
    """Unfavorite a recipe; unfavoriting a recipe that is not a favorite is a no-op."""
    get_recipe_or_404(db, recipe_id)
    result = db.execute(
        delete(Favorite).where(Favorite.user_id == user, Favorite.recipe_id == recipe_id)
    )
    removed = bool(result.rowcount)
    if removed:
        logger.info("User %s unfavorited recipe %s", user, recipe_id)
    return removed


# PUBLIC_INTERFACE
def is_favorite(db: Session, recipe_id: int, user: int) -> bool:
    get_recipe_or_404(db, recipe_id)
    return db.execute(
        select(Favorite.id).where(Favorite.user_id == user, Favorite.recipe_id == recipe_id)
    ).first() is not None

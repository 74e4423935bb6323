"""
Catalog service: the public operations of the recipe catalog.

Each operation is a single read or a single guarded mutation composed from the
filter pipeline (filters.py), the ownership guard (guard.py) and the
aggregation layer (aggregation.py). The viewer is always an explicit argument;
operations that need one raise UnauthenticatedError when it is missing.
"""

from __future__ import annotations

from typing import Any, List, Optional, Union

from sqlalchemy import select
from sqlalchemy.orm import Session

from . import categories as category_directory
from . import guard
from .aggregation import decorate, decorate_one
from .errors import UnauthenticatedError
from .filters import list_recipes, with_details
from .images import ImageStore, NullImageStore
from .models import Favorite, Recipe
from .schemas import (
    CategoryCreate,
    CategoryDetail,
    CategoryUpdate,
    RatingView,
    RecipeFilters,
    RecipeView,
)


def require_viewer(viewer: Optional[int]) -> int:
    if viewer is None:
        raise UnauthenticatedError()
    return viewer


class CatalogService:
    """Recipe catalog operations bound to one database session."""

    def __init__(self, db: Session, images: Optional[ImageStore] = None) -> None:
        self.db = db
        self.images = images if images is not None else NullImageStore()

    # -- recipes -------------------------------------------------------------

    def list_recipes(
        self,
        filters: Union[RecipeFilters, dict, None] = None,
        viewer: Optional[int] = None,
    ) -> List[RecipeView]:
        """ListRecipes: recipes matching every set filter, decorated for the viewer."""
        if filters is not None and not isinstance(filters, RecipeFilters):
            filters = guard.validate(RecipeFilters, filters)
        return decorate(self.db, list_recipes(self.db, filters), viewer)

    def get_recipe(self, recipe_id: int, viewer: Optional[int] = None) -> RecipeView:
        recipe = guard.get_recipe_or_404(self.db, recipe_id)
        return decorate_one(self.db, recipe, viewer)

    def create_recipe(self, draft: Any, owner: Optional[int]) -> RecipeView:
        owner = require_viewer(owner)
        recipe = guard.create_recipe(self.db, draft, owner)
        return decorate_one(self.db, recipe, owner)

    def update_recipe(self, recipe_id: int, patch: Any, requester: Optional[int]) -> RecipeView:
        requester = require_viewer(requester)
        recipe = guard.update_recipe(self.db, recipe_id, patch, requester, self.images)
        return decorate_one(self.db, recipe, requester)

    def delete_recipe(self, recipe_id: int, requester: Optional[int]) -> None:
        guard.delete_recipe(self.db, recipe_id, require_viewer(requester), self.images)

    # -- favorites -----------------------------------------------------------

    def list_favorites(self, viewer: Optional[int]) -> List[RecipeView]:
        """ListFavorites: the viewer's favorites, most recently added first."""
        viewer = require_viewer(viewer)
        stmt = with_details(
            select(Recipe)
            .join(Favorite, Favorite.recipe_id == Recipe.id)
            .where(Favorite.user_id == viewer)
            .order_by(Favorite.created_at.desc(), Favorite.id.desc())
        )
        recipes = self.db.execute(stmt).scalars().all()
        return decorate(self.db, recipes, viewer, force_favorite=True)

    def add_favorite(self, recipe_id: int, viewer: Optional[int]) -> None:
        guard.add_favorite(self.db, recipe_id, require_viewer(viewer))

    def remove_favorite(self, recipe_id: int, viewer: Optional[int]) -> None:
        guard.remove_favorite(self.db, recipe_id, require_viewer(viewer))

    def is_favorite(self, recipe_id: int, viewer: Optional[int]) -> bool:
        return guard.is_favorite(self.db, recipe_id, require_viewer(viewer))

    # -- ratings -------------------------------------------------------------

    def rate_recipe(self, recipe_id: int, viewer: Optional[int], rating: Any) -> RatingView:
        stored = guard.rate_recipe(self.db, recipe_id, require_viewer(viewer), rating)
        return RatingView.model_validate(stored)

    def get_my_rating(self, recipe_id: int, viewer: Optional[int]) -> Optional[int]:
        stored = guard.get_rating(self.db, recipe_id, require_viewer(viewer))
        return stored.rating if stored is not None else None

    def delete_my_rating(self, recipe_id: int, viewer: Optional[int]) -> None:
        guard.delete_rating(self.db, recipe_id, require_viewer(viewer))

    # -- categories ----------------------------------------------------------

    def list_categories(self) -> List[CategoryDetail]:
        return [CategoryDetail.model_validate(c) for c in category_directory.list_categories(self.db)]

    def get_category(self, category_id: int) -> CategoryDetail:
        return CategoryDetail.model_validate(category_directory.get_category_or_404(self.db, category_id))

    def create_category(self, payload: Any, viewer: Optional[int]) -> CategoryDetail:
        require_viewer(viewer)
        data = guard.validate(CategoryCreate, payload)
        category = category_directory.create_category(self.db, data.name, data.description)
        return CategoryDetail.model_validate(category)

    def update_category(self, category_id: int, payload: Any, viewer: Optional[int]) -> CategoryDetail:
        require_viewer(viewer)
        category_directory.get_category_or_404(self.db, category_id)
        data = guard.validate(CategoryUpdate, payload)
        category = category_directory.update_category(
            self.db, category_id, data.model_dump(exclude_unset=True)
        )
        return CategoryDetail.model_validate(category)

    def delete_category(self, category_id: int, viewer: Optional[int]) -> None:
        require_viewer(viewer)
        category_directory.delete_category(self.db, category_id)

"""
Recipes, Categories, Favorites, and Ratings API routes.

This module defines:
- Categories router: list, detail, create, update, delete categories.
- Recipes router: filtered list, detail, create, update, delete recipes.
- Favorites: list the viewer's favorites; add/remove/check a favorite per recipe.
- Ratings: rate a recipe (upsert), read and delete the viewer's own rating.

Recipe listing filters (all optional, combined with AND):
- search: substring of title or description, case-insensitive
- category: category id
- difficulty, cuisine, max_cooking_time
- diet_tags: comma-separated or repeated; the recipe must carry every tag

Mutating endpoints take the raw JSON body and hand it to the catalog service, which
checks existence and ownership before validating the payload.

Security:
- Listing and detail are public; a bearer token personalises `is_favorite`.
- Every mutation, favorites and ratings require authentication (get_current_user).
"""

from __future__ import annotations

from typing import Any, List, Optional

from fastapi import APIRouter, Body, Depends, Path, Query, Response, status

from .auth import get_current_user, get_optional_user
from .deps import get_catalog
from .models import User
from .schemas import (
    MAX_ID,
    CategoryDetail,
    FavoriteStatus,
    Message,
    MyRating,
    RatingView,
    RecipeView,
)
from .service import CatalogService

# -----------------------------------------------------------------------------
# Routers
# -----------------------------------------------------------------------------

categories_router = APIRouter(prefix="/categories", tags=["Categories"])
recipes_router = APIRouter(prefix="/recipes", tags=["Recipes"])
favorites_router = APIRouter(tags=["Favorites"])
ratings_router = APIRouter(prefix="/recipes", tags=["Ratings"])


def _viewer_id(user: Optional[User]) -> Optional[int]:
    return user.id if user is not None else None


def _rating_value(payload: Any) -> Any:
    return payload.get("rating") if isinstance(payload, dict) else None


# -----------------------------------------------------------------------------
# Categories
# -----------------------------------------------------------------------------

@categories_router.get(
    "",
    response_model=List[CategoryDetail],
    summary="List categories",
    description="Return all recipe categories ordered by name.",
)
def list_categories(catalog: CatalogService = Depends(get_catalog)) -> List[CategoryDetail]:
    """List all categories."""
    return catalog.list_categories()


@categories_router.get(
    "/{category_id}",
    response_model=CategoryDetail,
    summary="Get a category",
    responses={404: {"description": "Category not found"}},
)
def get_category(
    category_id: int = Path(..., ge=1, le=MAX_ID, description="Category ID"),
    catalog: CatalogService = Depends(get_catalog),
) -> CategoryDetail:
    """Retrieve a category or 404."""
    return catalog.get_category(category_id)


@categories_router.post(
    "",
    response_model=CategoryDetail,
    status_code=status.HTTP_201_CREATED,
    summary="Create a category",
    description="Create a category. The slug is derived from the name and must be unique.",
    responses={422: {"description": "Validation error"}},
)
def create_category(
    payload: Any = Body(default=None),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> CategoryDetail:
    """Create a category (authenticated)."""
    return catalog.create_category(payload, user.id)


@categories_router.put(
    "/{category_id}",
    response_model=CategoryDetail,
    summary="Update a category",
    responses={404: {"description": "Category not found"}, 422: {"description": "Validation error"}},
)
def update_category(
    category_id: int = Path(..., ge=1, le=MAX_ID),
    payload: Any = Body(default=None),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> CategoryDetail:
    """Rename or re-describe a category (authenticated)."""
    return catalog.update_category(category_id, payload, user.id)


@categories_router.delete(
    "/{category_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a category",
    responses={404: {"description": "Category not found"}},
)
def delete_category(
    category_id: int = Path(..., ge=1, le=MAX_ID),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> Response:
    """Delete a category (authenticated)."""
    catalog.delete_category(category_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -----------------------------------------------------------------------------
# Recipes
# -----------------------------------------------------------------------------

@recipes_router.get(
    "",
    response_model=List[RecipeView],
    summary="List recipes",
    description="Return recipes matching every provided filter, with ratings and favorite counts.",
)
def list_recipes(
    search: Optional[str] = Query(None, description="Substring of title or description"),
    category: Optional[str] = Query(None, description="Category ID"),
    difficulty: Optional[str] = Query(None, description="easy, medium or hard"),
    cuisine: Optional[str] = Query(None, description="Cuisine name"),
    max_cooking_time: Optional[str] = Query(None, description="Maximum cooking time in minutes"),
    diet_tags: Optional[List[str]] = Query(None, description="Diet tags; all must be present"),
    catalog: CatalogService = Depends(get_catalog),
    user: Optional[User] = Depends(get_optional_user),
) -> List[RecipeView]:
    """List recipes, personalised for the viewer when a token is sent."""
    filters = {
        "search": search,
        "category_id": category,
        "difficulty": difficulty,
        "cuisine": cuisine,
        "max_cooking_time": max_cooking_time,
        "diet_tags": diet_tags,
    }
    return catalog.list_recipes(filters, _viewer_id(user))


@recipes_router.get(
    "/{recipe_id}",
    response_model=RecipeView,
    summary="Get recipe details",
    responses={404: {"description": "Recipe not found"}},
)
def get_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: Optional[User] = Depends(get_optional_user),
) -> RecipeView:
    """Retrieve recipe details or 404 if not found."""
    return catalog.get_recipe(recipe_id, _viewer_id(user))


@recipes_router.post(
    "",
    response_model=RecipeView,
    status_code=status.HTTP_201_CREATED,
    summary="Create a recipe",
    description="Publish a recipe owned by the current user.",
    responses={401: {"description": "Not authenticated"}, 422: {"description": "Validation error"}},
)
def create_recipe(
    payload: Any = Body(default=None),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> RecipeView:
    """Create a recipe; the owner is always the current user."""
    return catalog.create_recipe(payload, user.id)


@recipes_router.put(
    "/{recipe_id}",
    response_model=RecipeView,
    summary="Update a recipe",
    description="Partially update a recipe. Only its owner may do this.",
    responses={
        403: {"description": "Unauthorized to update this recipe"},
        404: {"description": "Recipe not found"},
        422: {"description": "Validation error"},
    },
)
def update_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    payload: Any = Body(default=None),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> RecipeView:
    """Update the fields present in the payload."""
    return catalog.update_recipe(recipe_id, payload, user.id)


@recipes_router.delete(
    "/{recipe_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a recipe",
    responses={
        403: {"description": "Unauthorized to delete this recipe"},
        404: {"description": "Recipe not found"},
    },
)
def delete_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> Response:
    """Delete a recipe with its favorites and ratings."""
    catalog.delete_recipe(recipe_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -----------------------------------------------------------------------------
# Favorites (Protected)
# -----------------------------------------------------------------------------

@favorites_router.get(
    "/favorites",
    response_model=List[RecipeView],
    summary="List my favorite recipes",
    description="Return the current user's favorite recipes, most recent first.",
)
def list_my_favorites(
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> List[RecipeView]:
    """List the current user's favorite recipes."""
    return catalog.list_favorites(user.id)


@favorites_router.post(
    "/recipes/{recipe_id}/favorite",
    response_model=Message,
    summary="Add recipe to favorites",
    description="Mark a recipe as favorite for the current user. Repeating the call is harmless.",
    responses={404: {"description": "Recipe not found"}},
)
def add_favorite(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> Message:
    """Add a recipe to the current user's favorites."""
    catalog.add_favorite(recipe_id, user.id)
    return Message(message="Recipe added to favorites")


@favorites_router.get(
    "/recipes/{recipe_id}/favorite",
    response_model=FavoriteStatus,
    summary="Check if recipe is favorited",
    responses={404: {"description": "Recipe not found"}},
)
def check_favorite(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> FavoriteStatus:
    """Report whether the current user has favorited the recipe."""
    return FavoriteStatus(is_favorite=catalog.is_favorite(recipe_id, user.id))


@favorites_router.delete(
    "/recipes/{recipe_id}/favorite",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove recipe from favorites",
    description="Unmark a recipe as favorite. Removing a recipe that is not a favorite is harmless.",
    responses={404: {"description": "Recipe not found"}},
)
def remove_favorite(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID to remove from favorites"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> Response:
    """Remove a recipe from the current user's favorites."""
    catalog.remove_favorite(recipe_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# -----------------------------------------------------------------------------
# Ratings (Protected)
# -----------------------------------------------------------------------------

@ratings_router.post(
    "/{recipe_id}/rate",
    response_model=RatingView,
    summary="Rate a recipe",
    description="Rate a recipe from 1 to 5. Rating again replaces the previous value.",
    responses={404: {"description": "Recipe not found"}, 422: {"description": "Validation error"}},
)
@ratings_router.put(
    "/{recipe_id}/rate",
    response_model=RatingView,
    summary="Update recipe rating",
    responses={404: {"description": "Recipe not found"}, 422: {"description": "Validation error"}},
)
def rate_recipe(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    payload: Any = Body(default=None),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> RatingView:
    """Create or replace the current user's rating."""
    return catalog.rate_recipe(recipe_id, user.id, _rating_value(payload))


@ratings_router.get(
    "/{recipe_id}/rate",
    response_model=MyRating,
    summary="Get user's rating for a recipe",
    responses={404: {"description": "Recipe not found"}},
)
def get_my_rating(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> MyRating:
    """Return the current user's rating, or null when they have not rated the recipe."""
    return MyRating(rating=catalog.get_my_rating(recipe_id, user.id))


@ratings_router.delete(
    "/{recipe_id}/rate",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete recipe rating",
    responses={404: {"description": "Recipe not found"}},
)
def delete_my_rating(
    recipe_id: int = Path(..., ge=1, le=MAX_ID, description="Recipe ID"),
    catalog: CatalogService = Depends(get_catalog),
    user: User = Depends(get_current_user),
) -> Response:
    """Delete the current user's rating of the recipe."""
    catalog.delete_my_rating(recipe_id, user.id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)

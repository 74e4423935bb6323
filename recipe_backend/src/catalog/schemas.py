"""
Pydantic schemas for the recipe catalog.

Input schemas:
- RecipeCreate: every recipe field required (categories must be non-empty).
- RecipeUpdate: every field optional; a field that is present must still be valid.
- RecipeFilters: independently optional list filters; empty values mean "no filter".
- RatingIn, CategoryCreate, CategoryUpdate.

Output schemas are immutable views (frozen models) assembled by the aggregation layer.
"""

from __future__ import annotations

from datetime import datetime
from typing import Annotated, Any, List, Literal, Optional

from pydantic import AfterValidator, BaseModel, ConfigDict, Field, field_validator

Difficulty = Literal["easy", "medium", "hard"]

# Upper bound for ids and other integers stored in INTEGER columns
MAX_ID = 2**31 - 1

RecordId = Annotated[int, Field(ge=1, le=MAX_ID)]


def _unique_tags(tags: List[str]) -> List[str]:
    return list(dict.fromkeys(tags))


# Diet tags behave as a set but keep the order they were submitted in
DietTags = Annotated[List[Annotated[str, Field(min_length=1, max_length=100)]], AfterValidator(_unique_tags)]


# -----------------------------------------------------------------------------
# Input
# -----------------------------------------------------------------------------

class IngredientIn(BaseModel):
    """One ingredient line of a submitted recipe."""
    name: str = Field(..., min_length=1, max_length=255, description="Ingredient name")
    amount: float = Field(..., ge=0, description="Quantity, at least 0")
    unit: str = Field(..., min_length=1, max_length=50, description="Unit of the amount (g, cup, pcs)")


class StepIn(BaseModel):
    """One numbered instruction of a submitted recipe."""
    step: int = Field(..., ge=1, le=MAX_ID, description="Step number, starting at 1")
    instruction: str = Field(..., min_length=1, description="What to do in this step")


class RecipeCreate(BaseModel):
    """Payload to publish a new recipe. The owner always comes from the viewer, never the body."""
    model_config = ConfigDict(extra="ignore")

    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    ingredients: List[IngredientIn] = Field(..., min_length=1)
    steps: List[StepIn] = Field(..., min_length=1)
    cuisine: str = Field(..., min_length=1, max_length=255)
    diet_tags: Optional[DietTags] = Field(default=None, description="Diet tags such as 'vegan'")
    cooking_time: int = Field(..., ge=1, le=MAX_ID, description="Cooking time in minutes")
    categories: List[RecordId] = Field(..., min_length=1, description="IDs of existing categories")
    difficulty: Optional[Difficulty] = None
    image: Optional[str] = Field(default=None, max_length=500, description="Stored image reference")


class RecipeUpdate(BaseModel):
    """Partial update of a recipe: only the fields present in the payload are applied."""
    model_config = ConfigDict(extra="ignore")

    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, min_length=1)
    ingredients: Optional[List[IngredientIn]] = Field(default=None, min_length=1)
    steps: Optional[List[StepIn]] = Field(default=None, min_length=1)
    cuisine: Optional[str] = Field(default=None, min_length=1, max_length=255)
    diet_tags: Optional[DietTags] = None
    cooking_time: Optional[int] = Field(default=None, ge=1, le=MAX_ID)
    categories: Optional[List[RecordId]] = Field(default=None, min_length=1)
    difficulty: Optional[Difficulty] = None
    image: Optional[str] = Field(default=None, max_length=500)

    @field_validator(
        "title", "description", "ingredients", "steps", "cuisine", "cooking_time", "categories",
        mode="before",
    )
    @classmethod
    def _present_fields_not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("This field may not be null when present")
        return value

    def changes(self) -> dict:
        """The fields that were actually sent, as plain data."""
        return self.model_dump(exclude_unset=True)


class RecipeFilters(BaseModel):
    """Filters for listing recipes. Every field is optional and AND-ed with the others."""
    search: Optional[str] = Field(default=None, description="Substring of title or description")
    category_id: Optional[int] = Field(default=None, ge=0, le=MAX_ID, description="Recipe must be in this category")
    difficulty: Optional[Difficulty] = Field(default=None, description="easy, medium or hard")
    cuisine: Optional[str] = Field(default=None, description="Cuisine, case-insensitive")
    max_cooking_time: Optional[int] = Field(default=None, ge=0, le=MAX_ID, description="Upper bound in minutes")
    diet_tags: Optional[List[str]] = Field(default=None, description="All of these tags must be present")

    @field_validator("search", "difficulty", "cuisine", mode="before")
    @classmethod
    def _blank_text_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return value or None

    @field_validator("difficulty", mode="before")
    @classmethod
    def _lowercase_difficulty(cls, value: Any) -> Any:
        return value.lower() if isinstance(value, str) else value

    @field_validator("category_id", "max_cooking_time", mode="before")
    @classmethod
    def _blank_number_is_unset(cls, value: Any) -> Any:
        if isinstance(value, str):
            value = value.strip()
        return None if value == "" else value

    @field_validator("category_id", "max_cooking_time")
    @classmethod
    def _zero_is_unset(cls, value: Optional[int]) -> Optional[int]:
        return value or None

    @field_validator("diet_tags", mode="before")
    @classmethod
    def _split_tags(cls, value: Any) -> Any:
        if not value:
            return None
        if isinstance(value, str):
            value = [value]
        # accepts ["vegan", "keto"], "vegan,keto" or a mix of both
        tags = [
            tag.strip()
            for item in value
            if isinstance(item, str)
            for tag in item.split(",")
            if tag.strip()
        ]
        return list(dict.fromkeys(tags)) or None


class RatingIn(BaseModel):
    """Payload to rate a recipe."""
    rating: int = Field(..., ge=1, le=5, strict=True, description="Rating from 1 to 5")


class CategoryCreate(BaseModel):
    """Payload to create a category; the slug is derived from the name."""
    name: str = Field(..., min_length=1, max_length=100)
    description: Optional[str] = None


class CategoryUpdate(BaseModel):
    """Payload to update a category."""
    name: Optional[str] = Field(default=None, min_length=1, max_length=100)
    description: Optional[str] = None


# -----------------------------------------------------------------------------
# Output
# -----------------------------------------------------------------------------

class CategoryRead(BaseModel):
    """Public representation of a category."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    name: str
    slug: str


class CategoryDetail(CategoryRead):
    """Category with its description, returned by the category endpoints."""
    description: Optional[str] = None


class IngredientRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    name: str
    amount: float
    unit: str


class StepRead(BaseModel):
    model_config = ConfigDict(from_attributes=True, frozen=True)

    step: int
    instruction: str


class RecipeView(BaseModel):
    """A recipe decorated with its aggregates, as seen by one viewer."""
    model_config = ConfigDict(frozen=True)

    id: int
    title: str
    description: str
    ingredients: List[IngredientRead]
    steps: List[StepRead]
    cuisine: str
    difficulty: Optional[str] = None
    diet_tags: List[str]
    cooking_time: int
    image: Optional[str] = None
    user_id: int
    created_at: datetime
    updated_at: datetime
    is_favorite: bool = False
    average_rating: float = 0.0
    ratings_count: int = 0
    favorites_count: int = 0
    comments_count: int = 0
    categories: List[CategoryRead] = []


class RatingView(BaseModel):
    """A stored rating."""
    model_config = ConfigDict(from_attributes=True, frozen=True)

    id: int
    recipe_id: int
    user_id: int
    rating: int
    created_at: datetime
    updated_at: datetime


class FavoriteStatus(BaseModel):
    is_favorite: bool


class MyRating(BaseModel):
    rating: Optional[int] = None


class Message(BaseModel):
    message: str

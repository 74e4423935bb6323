"""
SQLAlchemy ORM models for the recipe catalog.

Defines:
- Base: Declarative base for all models
- User: Owner/viewer reference records
- Category: Recipe categories with a unique URL-safe slug
- Recipe: Recipes with ordered ingredients, steps and diet tags
- recipe_categories: Association table for many-to-many Recipe<->Category
- RecipeIngredient / RecipeStep / RecipeDietTag: Ordered child rows of a recipe
- Favorite: Users' favorite recipes, unique per (user, recipe)
- Rating: Users' 1..5 ratings, unique per (user, recipe)
- Comment: Comments on recipes (only counted by the catalog)
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Table,
    Text,
    UniqueConstraint,
)
from sqlalchemy.ext.associationproxy import AssociationProxy, association_proxy
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

DIFFICULTIES = ("easy", "medium", "hard")


def utcnow() -> datetime:
    """Current UTC time as a naive datetime; timestamp columns store naive UTC."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""
    pass


# Association table for many-to-many Recipe <-> Category
recipe_categories_table = Table(
    "recipe_categories",
    Base.metadata,
    Column("recipe_id", ForeignKey("recipes.id", ondelete="CASCADE"), primary_key=True),
    Column("category_id", ForeignKey("categories.id", ondelete="CASCADE"), primary_key=True),
    UniqueConstraint("recipe_id", "category_id", name="uq_recipe_category"),
)


class User(Base):
    """Represents an application user account (owner or viewer of recipes)."""
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, index=True, nullable=False)
    full_name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    recipes: Mapped[List["Recipe"]] = relationship(
        back_populates="owner",
        passive_deletes=True,
    )

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"User(id={self.id}, email={self.email!r})"


class Category(Base):
    """Represents a category to which recipes can belong (e.g., Breakfast, Italian)."""
    __tablename__ = "categories"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    name: Mapped[str] = mapped_column(String(100), unique=True, index=True, nullable=False)
    slug: Mapped[str] = mapped_column(String(120), unique=True, index=True, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    recipes: Mapped[List["Recipe"]] = relationship(
        secondary=recipe_categories_table,
        back_populates="categories",
    )

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Category(id={self.id}, slug={self.slug!r})"


class Recipe(Base):
    """Represents a published recipe owned by the user who created it."""
    __tablename__ = "recipes"
    __table_args__ = (
        CheckConstraint("cooking_time >= 1", name="ck_recipe_cooking_time_positive"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    title: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    cuisine: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    difficulty: Mapped[Optional[str]] = mapped_column(String(10), index=True, nullable=True)
    cooking_time: Mapped[int] = mapped_column(Integer, index=True, nullable=False)
    image: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)

    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    owner: Mapped[User] = relationship(back_populates="recipes")
    categories: Mapped[List[Category]] = relationship(
        secondary=recipe_categories_table,
        back_populates="recipes",
        order_by="Category.id",
    )
    ingredients: Mapped[List["RecipeIngredient"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeIngredient.position",
    )
    steps: Mapped[List["RecipeStep"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeStep.position",
    )
    diet_tag_rows: Mapped[List["RecipeDietTag"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="RecipeDietTag.position",
    )
    favorites: Mapped[List["Favorite"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    ratings: Mapped[List["Rating"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )
    comments: Mapped[List["Comment"]] = relationship(
        back_populates="recipe",
        cascade="all, delete-orphan",
        passive_deletes=True,
    )

    # Plain list of tag strings backed by the ordered diet tag rows
    diet_tags: AssociationProxy[List[str]] = association_proxy(
        "diet_tag_rows",
        "tag",
        creator=lambda tag: RecipeDietTag(tag=tag),
    )

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Recipe(id={self.id}, title={self.title!r})"


class RecipeIngredient(Base):
    """Represents an ingredient line belonging to a recipe."""
    __tablename__ = "recipe_ingredients"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    name: Mapped[str] = mapped_column(String(255), index=True, nullable=False)
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    unit: Mapped[str] = mapped_column(String(50), nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="ingredients")

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"RecipeIngredient(id={self.id}, name={self.name!r})"


class RecipeStep(Base):
    """Represents a numbered preparation step belonging to a recipe."""
    __tablename__ = "recipe_steps"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    step: Mapped[int] = mapped_column(Integer, nullable=False)
    instruction: Mapped[str] = mapped_column(Text, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="steps")


class RecipeDietTag(Base):
    """A single diet tag (e.g. 'vegan') attached to a recipe."""
    __tablename__ = "recipe_diet_tags"
    __table_args__ = (
        UniqueConstraint("recipe_id", "tag", name="uq_recipe_diet_tag"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    tag: Mapped[str] = mapped_column(String(100), index=True, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="diet_tag_rows")


class Favorite(Base):
    """Represents a user's favorite recipe."""
    __tablename__ = "favorites"
    __table_args__ = (
        UniqueConstraint("user_id", "recipe_id", name="uq_favorite_user_recipe"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="favorites")

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Favorite(id={self.id}, user_id={self.user_id}, recipe_id={self.recipe_id})"


class Rating(Base):
    """Represents a user's 1..5 rating of a recipe; one row per (user, recipe)."""
    __tablename__ = "recipe_ratings"
    __table_args__ = (
        UniqueConstraint("user_id", "recipe_id", name="uq_rating_user_recipe"),
        CheckConstraint("rating >= 1 AND rating <= 5", name="ck_rating_range"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    rating: Mapped[int] = mapped_column(Integer, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime, default=utcnow, onupdate=utcnow, nullable=False
    )

    recipe: Mapped[Recipe] = relationship(back_populates="ratings")

    # PUBLIC_INTERFACE
    def __repr__(self) -> str:
        """String representation for debugging."""
        return f"Rating(user_id={self.user_id}, recipe_id={self.recipe_id}, rating={self.rating})"


class Comment(Base):
    """Represents a user's comment on a recipe."""
    __tablename__ = "comments"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, index=True)
    user_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    recipe_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("recipes.id", ondelete="CASCADE"), index=True, nullable=False
    )
    body: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime, default=utcnow, nullable=False)

    recipe: Mapped[Recipe] = relationship(back_populates="comments")

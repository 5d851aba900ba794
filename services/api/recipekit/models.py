"""SQLAlchemy ORM models for RecipeKit.

Tables:
- ingredients: Ingredient catalog with supported units, bridging conversions and pricing
- recipes: Core recipe data
- recipe_ingredients: Ordered ingredient lines (unit + quantity or free text)
- recipe_steps: Ordered cooking steps for a recipe
- suggestions: Feature requests and bug reports, with one vote per voter
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Optional

from sqlalchemy import (
    String,
    DateTime,
    Text,
    Integer,
    Float,
    ForeignKey,
    Index,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy.sql import func
from sqlalchemy.types import JSON

from .db import Base


def generate_uuid() -> str:
    return str(uuid.uuid4())


class Ingredient(Base):
    """Ingredient catalog entry.

    unit_conversions holds bridging rules as [{"from": "cup", "to": "g", "factor": 120}],
    meaning 1 cup of this ingredient weighs 120 g.
    """
    __tablename__ = "ingredients"
    __table_args__ = (
        Index("ix_ingredients_name", "name"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    aliases: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    allergens: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    nutrition: Mapped[Optional[dict]] = mapped_column(JSON, nullable=True)
    # "metadata" is reserved on declarative classes
    extra_metadata: Mapped[Optional[dict]] = mapped_column("metadata", JSON, nullable=True)

    supported_units: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    unit_conversions: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    # Price of one `price_unit` of this ingredient
    price_per_unit: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    price_unit: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    recipe_lines: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient", back_populates="ingredient"
    )


class Recipe(Base):
    """Core recipe."""
    __tablename__ = "recipes"

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    servings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    tags: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    categories: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    source_url: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    # Recipe this one was duplicated from
    variant_of: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    ingredients: Mapped[list["RecipeIngredient"]] = relationship(
        "RecipeIngredient",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeIngredient.position",
    )
    steps: Mapped[list["RecipeStep"]] = relationship(
        "RecipeStep",
        back_populates="recipe",
        cascade="all, delete-orphan",
        order_by="RecipeStep.step_index",
    )


class RecipeIngredient(Base):
    """Ingredient line of a recipe: a numeric quantity in a unit, or free text."""
    __tablename__ = "recipe_ingredients"
    __table_args__ = (
        Index("ix_recipe_ingredients_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    ingredient_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("ingredients.id"), nullable=False
    )
    position: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    unit: Mapped[str] = mapped_column(String(20), nullable=False)
    quantity: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    quantity_text: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)
    note: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="ingredients")
    ingredient: Mapped["Ingredient"] = relationship("Ingredient", back_populates="recipe_lines")

    @property
    def ingredient_name(self) -> str:
        return self.ingredient.name if self.ingredient else ""


class RecipeStep(Base):
    """Ordered cooking step."""
    __tablename__ = "recipe_steps"
    __table_args__ = (
        Index("ix_recipe_steps_recipe_id", "recipe_id"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    recipe_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="CASCADE"), nullable=False
    )
    step_index: Mapped[int] = mapped_column(Integer, nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    equipment: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    recipe: Mapped["Recipe"] = relationship("Recipe", back_populates="steps")


class Suggestion(Base):
    """Feature request, bug report or improvement idea.

    votes is a running count of SuggestionVote rows.
    """
    __tablename__ = "suggestions"
    __table_args__ = (
        Index("ix_suggestions_status", "status"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # feature | bug | improvement | other
    category: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    # low | medium | high
    priority: Mapped[str] = mapped_column(String(10), nullable=False, default="medium")
    # submitted | under-review | accepted | rejected | implemented
    status: Mapped[str] = mapped_column(String(20), nullable=False, default="submitted")
    related_recipe_id: Mapped[Optional[str]] = mapped_column(
        String(36), ForeignKey("recipes.id", ondelete="SET NULL"), nullable=True
    )
    variant_of: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    votes: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    voters: Mapped[list["SuggestionVote"]] = relationship(
        "SuggestionVote", back_populates="suggestion", cascade="all, delete-orphan"
    )


class SuggestionVote(Base):
    __tablename__ = "suggestion_votes"
    __table_args__ = (
        UniqueConstraint("suggestion_id", "voter", name="uq_suggestion_voter"),
    )

    id: Mapped[str] = mapped_column(
        String(36), primary_key=True, default=generate_uuid
    )
    suggestion_id: Mapped[str] = mapped_column(
        String(36), ForeignKey("suggestions.id", ondelete="CASCADE"), nullable=False
    )
    voter: Mapped[str] = mapped_column(String(100), nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    suggestion: Mapped["Suggestion"] = relationship("Suggestion", back_populates="voters")

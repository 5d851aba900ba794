"""FastAPI dependencies for RecipeKit API.

Provides:
- Database session dependency
- Ingredient / recipe / suggestion resolution by path id (404 when missing)
- Range check for computed quantities
"""

import math

from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session, selectinload

from .db import get_db
from .models import Ingredient, Recipe, RecipeIngredient, Suggestion


def get_ingredient(ingredient_id: str, db: Session = Depends(get_db)) -> Ingredient:
    ingredient = db.get(Ingredient, ingredient_id)
    if not ingredient:
        raise HTTPException(status_code=404, detail=f"Ingredient '{ingredient_id}' not found")
    return ingredient


def load_recipe(db: Session, recipe_id: str) -> Recipe | None:
    """Fetch a recipe with its lines (and their ingredients) and steps."""
    return (
        db.query(Recipe)
        .options(
            selectinload(Recipe.ingredients).selectinload(RecipeIngredient.ingredient),
            selectinload(Recipe.steps),
        )
        .filter(Recipe.id == recipe_id)
        .first()
    )


def get_recipe(recipe_id: str, db: Session = Depends(get_db)) -> Recipe:
    recipe = load_recipe(db, recipe_id)
    if not recipe:
        raise HTTPException(status_code=404, detail=f"Recipe '{recipe_id}' not found")
    return recipe


def get_suggestion(suggestion_id: str, db: Session = Depends(get_db)) -> Suggestion:
    suggestion = db.get(Suggestion, suggestion_id)
    if not suggestion:
        raise HTTPException(status_code=404, detail=f"Suggestion '{suggestion_id}' not found")
    return suggestion


def require_finite(value: float, what: str = "Converted quantity") -> float:
    """400 when a conversion overflowed; JSON has no infinity."""
    if not math.isfinite(value):
        raise HTTPException(status_code=400, detail=f"{what} is out of range")
    return value

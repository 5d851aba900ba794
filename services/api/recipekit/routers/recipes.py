import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_recipe, load_recipe
from ..services.recipe_scaling import describe_quantity, scale_quantity, servings_multiplier
from ..services.unit_conversion import round_to_precision
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("recipekit.recipes")


def _require_ingredients(db: Session, lines) -> None:
    """404 unless every line points at a catalog ingredient."""
    ingredient_ids = {line.ingredient_id for line in lines}
    if not ingredient_ids:
        return
    found = {
        row.id for row in
        db.query(models.Ingredient.id).filter(models.Ingredient.id.in_(ingredient_ids)).all()
    }
    missing = sorted(ingredient_ids - found)
    if missing:
        raise HTTPException(status_code=404, detail=f"Ingredient(s) not found: {', '.join(missing)}")


def _build_line(line: schemas.RecipeIngredientIn) -> models.RecipeIngredient:
    # Units are stored canonically ("free_text" -> "free-text")
    return models.RecipeIngredient(
        ingredient_id=line.ingredient_id,
        unit=line.unit.value,
        quantity=line.quantity,
        quantity_text=line.quantity_text,
        note=line.note,
    )


def _copy_line(line: models.RecipeIngredient) -> models.RecipeIngredient:
    return models.RecipeIngredient(
        ingredient_id=line.ingredient_id,
        unit=line.unit,
        quantity=line.quantity,
        quantity_text=line.quantity_text,
        note=line.note,
    )


def _build_step(step: schemas.RecipeStepIn) -> models.RecipeStep:
    return models.RecipeStep(step_index=0, text=step.text.strip(), equipment=list(step.equipment))


def _renumber(recipe: models.Recipe) -> None:
    for position, line in enumerate(recipe.ingredients):
        line.position = position
    for idx, step in enumerate(recipe.steps):
        step.step_index = idx


def _edit_list(current, add, remove) -> list[str]:
    removed = set(remove or [])
    result = [v for v in current or [] if v not in removed]
    result += [v for v in add or [] if v not in result]
    return result


def _unique(values) -> list[str]:
    return _edit_list([], values, None)


@router.get("/recipes", response_model=list[schemas.RecipeListOut])
def list_recipes(
    db: Session = Depends(get_db),
    limit: int = Query(50, ge=1, le=200),
    offset: int = 0,
):
    return (
        db.query(models.Recipe)
        .order_by(models.Recipe.created_at.desc())
        .limit(limit)
        .offset(offset)
        .all()
    )


@router.get("/recipes/search", response_model=list[schemas.RecipeListOut])
def search_recipes(
    q: str = Query(..., min_length=1),
    ingredient: Optional[list[str]] = Query(None),
    tag: Optional[list[str]] = Query(None),
    category: Optional[list[str]] = Query(None),
    db: Session = Depends(get_db),
    limit: int = Query(20, ge=1, le=50),
):
    """
    Case-insensitive match on name or description.

    Repeated `ingredient`, `tag` and `category` params narrow the results to
    recipes carrying all of them.
    """
    needle = q.lower()
    query = db.query(models.Recipe).filter(or_(
        func.lower(models.Recipe.name).contains(needle),
        func.lower(models.Recipe.description).contains(needle),
    ))
    for ingredient_id in ingredient or []:
        query = query.filter(
            models.Recipe.ingredients.any(models.RecipeIngredient.ingredient_id == ingredient_id)
        )
    recipes = query.order_by(models.Recipe.name).all()

    # tags / categories are JSON lists, filtered here rather than in SQL
    if tag:
        recipes = [r for r in recipes if set(tag) <= set(r.tags or [])]
    if category:
        recipes = [r for r in recipes if set(category) <= set(r.categories or [])]
    return recipes[:limit]


@router.post("/recipes", response_model=schemas.RecipeOut, status_code=status.HTTP_201_CREATED)
def create_recipe(
    recipe_in: schemas.RecipeCreate,
    db: Session = Depends(get_db),
):
    """Create a recipe with its ingredient lines and steps."""
    _require_ingredients(db, recipe_in.ingredients)

    recipe = models.Recipe(
        name=recipe_in.name.strip(),
        description=recipe_in.description.strip(),
        servings=recipe_in.servings,
        tags=_unique(recipe_in.tags),
        categories=_unique(recipe_in.categories),
        source_url=recipe_in.source_url,
    )
    recipe.ingredients = [_build_line(line) for line in recipe_in.ingredients]
    recipe.steps = [_build_step(step) for step in recipe_in.steps]
    _renumber(recipe)

    db.add(recipe)
    db.commit()
    logger.info(f"Created recipe {recipe.id} with {len(recipe_in.ingredients)} ingredient line(s)")
    return load_recipe(db, recipe.id)


@router.get("/recipes/{recipe_id}", response_model=schemas.RecipeOut)
def read_recipe(recipe: models.Recipe = Depends(get_recipe)):
    return recipe


@router.patch("/recipes/{recipe_id}", response_model=schemas.RecipeOut)
def update_recipe(
    recipe_in: schemas.RecipeUpdate,
    recipe: models.Recipe = Depends(get_recipe),
    db: Session = Depends(get_db),
):
    """
    Update a recipe.

    Lists are replaced when given whole, otherwise edited with the add / remove
    fields. The result must still have at least one ingredient and one step.
    """
    fields = recipe_in.model_fields_set

    if recipe_in.name is not None:
        recipe.name = recipe_in.name.strip()
    if recipe_in.description is not None:
        recipe.description = recipe_in.description.strip()
    if "servings" in fields:
        recipe.servings = recipe_in.servings
    if "source_url" in fields:
        recipe.source_url = recipe_in.source_url

    if recipe_in.tags is not None:
        recipe.tags = _unique(recipe_in.tags)
    elif recipe_in.add_tags or recipe_in.remove_tags:
        recipe.tags = _edit_list(recipe.tags, recipe_in.add_tags, recipe_in.remove_tags)

    if recipe_in.categories is not None:
        recipe.categories = _unique(recipe_in.categories)
    elif recipe_in.add_categories or recipe_in.remove_categories:
        recipe.categories = _edit_list(
            recipe.categories, recipe_in.add_categories, recipe_in.remove_categories
        )

    # Ingredient lines
    if recipe_in.ingredients is not None:
        _require_ingredients(db, recipe_in.ingredients)
        recipe.ingredients = [_build_line(line) for line in recipe_in.ingredients]
    else:
        if recipe_in.remove_ingredient_ids:
            removed = set(recipe_in.remove_ingredient_ids)
            recipe.ingredients = [line for line in recipe.ingredients if line.ingredient_id not in removed]
        if recipe_in.add_ingredients:
            _require_ingredients(db, recipe_in.add_ingredients)
            recipe.ingredients.extend(_build_line(line) for line in recipe_in.add_ingredients)

    # Steps
    if recipe_in.steps is not None:
        recipe.steps = [_build_step(step) for step in recipe_in.steps]
    else:
        if recipe_in.remove_step_indexes:
            out_of_range = sorted(i for i in set(recipe_in.remove_step_indexes) if i >= len(recipe.steps))
            if out_of_range:
                raise HTTPException(
                    status_code=400,
                    detail=f"Step index out of range: {', '.join(str(i) for i in out_of_range)}",
                )
            removed = set(recipe_in.remove_step_indexes)
            recipe.steps = [s for i, s in enumerate(recipe.steps) if i not in removed]
        if recipe_in.add_steps:
            recipe.steps.extend(_build_step(step) for step in recipe_in.add_steps)

    if not recipe.ingredients:
        raise HTTPException(status_code=400, detail="Recipe must have at least one ingredient")
    if not recipe.steps:
        raise HTTPException(status_code=400, detail="Recipe must have at least one step")

    _renumber(recipe)
    db.commit()
    logger.info(f"Updated recipe {recipe.id}")
    return load_recipe(db, recipe.id)


@router.delete("/recipes/{recipe_id}")
def delete_recipe(
    recipe: models.Recipe = Depends(get_recipe),
    db: Session = Depends(get_db),
):
    # Suggestions outlive the recipe they point at
    db.query(models.Suggestion).filter(
        models.Suggestion.related_recipe_id == recipe.id
    ).update({"related_recipe_id": None})
    db.delete(recipe)
    db.commit()
    return {"ok": True}


@router.post(
    "/recipes/{recipe_id}/duplicate",
    response_model=schemas.RecipeOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_recipe(
    overrides: schemas.RecipeDuplicate,
    recipe: models.Recipe = Depends(get_recipe),
    db: Session = Depends(get_db),
):
    """Copy a recipe with its lines and steps; any given field overrides the copy."""
    fields = overrides.model_fields_set

    copy = models.Recipe(
        name=overrides.name.strip() if overrides.name else f"{recipe.name} (copy)"[:200],
        description=(
            overrides.description.strip() if overrides.description else recipe.description
        ),
        servings=overrides.servings if "servings" in fields else recipe.servings,
        tags=_unique(overrides.tags if overrides.tags is not None else recipe.tags or []),
        categories=_unique(
            overrides.categories if overrides.categories is not None else recipe.categories or []
        ),
        source_url=overrides.source_url if "source_url" in fields else recipe.source_url,
        variant_of=recipe.id,
    )

    if overrides.ingredients is not None:
        _require_ingredients(db, overrides.ingredients)
        copy.ingredients = [_build_line(line) for line in overrides.ingredients]
    else:
        copy.ingredients = [_copy_line(line) for line in recipe.ingredients]

    if overrides.steps is not None:
        copy.steps = [_build_step(step) for step in overrides.steps]
    else:
        copy.steps = [
            models.RecipeStep(step_index=0, text=s.text, equipment=list(s.equipment or []))
            for s in recipe.steps
        ]
    _renumber(copy)

    db.add(copy)
    db.commit()
    logger.info(f"Duplicated recipe {recipe.id} as {copy.id}")
    return load_recipe(db, copy.id)


@router.get("/recipes/{recipe_id}/scaled", response_model=schemas.ScaledRecipeOut)
def scale_recipe(
    servings: Optional[int] = Query(None, ge=1, le=100),
    recipe: models.Recipe = Depends(get_recipe),
):
    """Ingredient lines scaled to `servings`, rounded and labelled for display."""
    multiplier = servings_multiplier(recipe.servings, servings)
    precision = settings.display_precision

    lines = []
    for line in recipe.ingredients:
        qty = scale_quantity(line.quantity, line.unit, multiplier)
        lines.append(schemas.ScaledIngredientLine(
            ingredient_id=line.ingredient_id,
            ingredient_name=line.ingredient_name,
            unit=line.unit,
            quantity=round_to_precision(qty, precision) if qty is not None else None,
            quantity_text=line.quantity_text,
            note=line.note,
            display=describe_quantity(qty, line.unit, line.quantity_text, precision),
        ))

    return schemas.ScaledRecipeOut(
        recipe_id=recipe.id,
        name=recipe.name,
        base_servings=recipe.servings,
        servings=servings or recipe.servings,
        multiplier=multiplier,
        ingredients=lines,
    )

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import func
from sqlalchemy.orm import Session

from .. import models, schemas
from ..deps import get_db, get_ingredient, require_finite
from ..services.ingredient_conversions import convert_for_ingredient
from ..services.recipe_scaling import describe_quantity
from ..services.unit_conversion import round_to_precision
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("recipekit.ingredients")


def _dump_units(units) -> list[str]:
    # Keep order, drop repeats
    seen = []
    for u in units:
        if u.value not in seen:
            seen.append(u.value)
    return seen


def _apply_fields(ingredient: models.Ingredient, data: dict) -> None:
    """Copy validated schema fields onto the ORM row in storage form."""
    if "metadata" in data:
        ingredient.extra_metadata = data.pop("metadata")
    if "nutrition" in data and data["nutrition"] is not None:
        data["nutrition"] = dict(data["nutrition"])
    if "supported_units" in data and data["supported_units"] is not None:
        data["supported_units"] = _dump_units(data["supported_units"])
    if "unit_conversions" in data and data["unit_conversions"] is not None:
        data["unit_conversions"] = [
            {"from_unit": r["from_unit"].value, "to_unit": r["to_unit"].value, "factor": r["factor"]}
            for r in data["unit_conversions"]
        ]
    if data.get("price_unit") is not None:
        data["price_unit"] = data["price_unit"].value

    for k, v in data.items():
        setattr(ingredient, k, v)


@router.get("/ingredients", response_model=list[schemas.IngredientOut])
def list_ingredients(
    db: Session = Depends(get_db),
    q: Optional[str] = None,
    limit: int = 100,
    offset: int = 0,
):
    """List ingredients, optionally filtered by name."""
    query = db.query(models.Ingredient)
    if q:
        query = query.filter(func.lower(models.Ingredient.name).contains(q.lower()))
    return query.order_by(models.Ingredient.name).limit(limit).offset(offset).all()


@router.post("/ingredients", response_model=schemas.IngredientOut, status_code=status.HTTP_201_CREATED)
def create_ingredient(
    item_in: schemas.IngredientCreate,
    db: Session = Depends(get_db),
):
    """Create a new ingredient."""
    ingredient = models.Ingredient()
    _apply_fields(ingredient, item_in.model_dump())
    db.add(ingredient)
    db.commit()
    db.refresh(ingredient)
    logger.info(f"Created ingredient {ingredient.id} ({ingredient.name})")
    return ingredient


@router.get("/ingredients/{ingredient_id}", response_model=schemas.IngredientOut)
def read_ingredient(ingredient: models.Ingredient = Depends(get_ingredient)):
    return ingredient


@router.patch("/ingredients/{ingredient_id}", response_model=schemas.IngredientOut)
def update_ingredient(
    item_in: schemas.IngredientUpdate,
    ingredient: models.Ingredient = Depends(get_ingredient),
    db: Session = Depends(get_db),
):
    """Update an ingredient. Supported units can be replaced, or added to / removed from."""
    data = item_in.model_dump(exclude_unset=True)
    to_add = data.pop("add_supported_units", None) or []
    to_remove = data.pop("remove_supported_units", None) or []

    if to_add or to_remove:
        removed = {u.value for u in to_remove}
        current = [u for u in ingredient.supported_units if u not in removed]
        current += [u.value for u in to_add if u.value not in current]
        ingredient.supported_units = current

    price_unit = data.get("price_unit", ingredient.price_unit)
    price = data.get("price_per_unit", ingredient.price_per_unit)
    if price is not None and price_unit is None:
        raise HTTPException(status_code=400, detail="price_unit is required when price_per_unit is set")

    _apply_fields(ingredient, data)
    db.commit()
    db.refresh(ingredient)
    return ingredient


@router.delete("/ingredients/{ingredient_id}")
def delete_ingredient(
    ingredient: models.Ingredient = Depends(get_ingredient),
    db: Session = Depends(get_db),
):
    in_use = db.query(models.RecipeIngredient).filter(
        models.RecipeIngredient.ingredient_id == ingredient.id
    ).count()
    if in_use:
        raise HTTPException(
            status_code=409,
            detail=f"Ingredient is used by {in_use} recipe line(s) and cannot be deleted",
        )
    db.delete(ingredient)
    db.commit()
    return {"ok": True}


@router.post(
    "/ingredients/{ingredient_id}/duplicate",
    response_model=schemas.IngredientOut,
    status_code=status.HTTP_201_CREATED,
)
def duplicate_ingredient(
    overrides: schemas.IngredientDuplicate,
    ingredient: models.Ingredient = Depends(get_ingredient),
    db: Session = Depends(get_db),
):
    """Copy an ingredient, optionally with a new name or supported units."""
    copy = models.Ingredient(
        name=overrides.name or f"{ingredient.name} (copy)"[:100],
        aliases=list(ingredient.aliases or []),
        categories=list(ingredient.categories or []),
        allergens=list(ingredient.allergens or []),
        nutrition=dict(ingredient.nutrition) if ingredient.nutrition else None,
        extra_metadata=dict(ingredient.extra_metadata) if ingredient.extra_metadata else None,
        supported_units=(
            _dump_units(overrides.supported_units)
            if overrides.supported_units is not None
            else list(ingredient.supported_units or [])
        ),
        unit_conversions=[dict(r) for r in ingredient.unit_conversions or []],
        price_per_unit=ingredient.price_per_unit,
        price_unit=ingredient.price_unit,
    )
    db.add(copy)
    db.commit()
    db.refresh(copy)
    return copy


@router.post("/ingredients/{ingredient_id}/convert", response_model=schemas.UnitConvertResponse)
def convert_ingredient_quantity(
    req: schemas.IngredientConvertRequest,
    ingredient: models.Ingredient = Depends(get_ingredient),
):
    """Convert using the ingredient's own bridging rules (e.g. cups of flour -> grams)."""
    qty = require_finite(
        convert_for_ingredient(req.qty, req.from_unit, req.to_unit, ingredient.unit_conversions)
    )
    return schemas.UnitConvertResponse(
        qty=qty,
        unit=req.to_unit,
        display_qty=round_to_precision(qty, settings.display_precision),
        display=describe_quantity(qty, req.to_unit),
    )

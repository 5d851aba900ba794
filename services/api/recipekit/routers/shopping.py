import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from .. import schemas
from ..deps import get_db, load_recipe
from ..services.recipe_scaling import describe_quantity, servings_multiplier
from ..services.shopping_list import build_shopping_list
from ..services.unit_conversion import Unit, round_to_precision
from ..settings import settings

router = APIRouter()
logger = logging.getLogger("recipekit.shopping")


@router.post("/shopping-list", response_model=schemas.ShoppingListResponse)
def generate_shopping_list(
    request: schemas.ShoppingListRequest,
    db: Session = Depends(get_db),
):
    """Aggregate ingredients across recipes, each scaled to the requested servings."""
    pairs = []
    for ref in request.recipes:
        recipe = load_recipe(db, ref.recipe_id)
        if not recipe:
            raise HTTPException(status_code=404, detail=f"Recipe '{ref.recipe_id}' not found")
        pairs.append((recipe, servings_multiplier(recipe.servings, ref.servings)))

    result = build_shopping_list(pairs)
    precision = settings.display_precision

    def _round(value):
        return round_to_precision(value, precision) if value is not None else None

    items = []
    for bucket in result.items:
        if bucket.unit == Unit.FREE_TEXT:
            display = ", ".join(bucket.quantity_texts)
        else:
            display = describe_quantity(bucket.quantity, bucket.unit, precision=precision)
        items.append(schemas.ShoppingListItem(
            ingredient_id=bucket.ingredient_id,
            ingredient_name=bucket.ingredient_name,
            unit=bucket.unit,
            quantity=_round(bucket.quantity),
            quantity_texts=bucket.quantity_texts,
            display=display,
            # Unrounded: per-gram prices sit below display precision
            unit_price=bucket.unit_price,
            estimated_cost=_round(bucket.estimated_cost),
            sources=[
                schemas.ShoppingListSource(
                    recipe_id=s.recipe_id,
                    recipe_name=s.recipe_name,
                    multiplier=s.multiplier,
                )
                for s in bucket.sources
            ],
        ))

    logger.info(f"Shopping list for {len(pairs)} recipe(s): {len(items)} item(s)")
    return schemas.ShoppingListResponse(
        items=items,
        estimated_total=_round(result.estimated_total),
    )

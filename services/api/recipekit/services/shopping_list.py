"""
Shopping list aggregation.

Sums ingredient quantities across several recipes, each scaled by its own
servings multiplier. Lines are converted into a shared unit per ingredient when
the unit catalog (or the ingredient's own bridging rules) allows it; anything
that cannot be converted stays in a separate bucket instead of being dropped.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, Optional

from .ingredient_conversions import convert_for_ingredient
from .recipe_scaling import scale_quantity
from .unit_conversion import (
    IncompatibleUnitsError,
    Unit,
    are_units_compatible,
    category_of,
    convert_price_per_unit,
    convert_unit,
    parse_unit,
)

logger = logging.getLogger("recipekit.shopping")


@dataclass
class ShoppingSource:
    recipe_id: str
    recipe_name: str
    multiplier: float


@dataclass
class ShoppingBucket:
    ingredient_id: str
    ingredient_name: str
    unit: Unit
    quantity: Optional[float] = None
    quantity_texts: list[str] = field(default_factory=list)
    sources: list[ShoppingSource] = field(default_factory=list)
    unit_price: Optional[float] = None
    estimated_cost: Optional[float] = None

    def add_source(self, source: ShoppingSource):
        if not any(s.recipe_id == source.recipe_id for s in self.sources):
            self.sources.append(source)


@dataclass
class ShoppingList:
    items: list[ShoppingBucket]
    estimated_total: Optional[float]


def _bucket_key(ingredient_id: str, unit: Unit):
    # One numeric bucket per ingredient and category; free text gets its own
    return (ingredient_id, category_of(unit))


def _price_bucket(bucket: ShoppingBucket, ingredient) -> None:
    if bucket.unit == Unit.FREE_TEXT or bucket.quantity is None:
        return
    if ingredient.price_per_unit is None or not ingredient.price_unit:
        return

    price_unit = parse_unit(ingredient.price_unit)
    if are_units_compatible(price_unit, bucket.unit):
        bucket.unit_price = convert_price_per_unit(ingredient.price_per_unit, price_unit, bucket.unit)
        bucket.estimated_cost = bucket.quantity * bucket.unit_price
        return

    # Cross-category: express the total in the priced unit instead
    try:
        in_price_unit = convert_for_ingredient(
            bucket.quantity, bucket.unit, price_unit, ingredient.unit_conversions
        )
    except IncompatibleUnitsError:
        logger.info(
            f"No price conversion for {ingredient.name}: {bucket.unit} vs {price_unit}"
        )
        return
    bucket.estimated_cost = in_price_unit * ingredient.price_per_unit
    if bucket.quantity:
        bucket.unit_price = bucket.estimated_cost / bucket.quantity


def build_shopping_list(recipes_with_multipliers: Iterable[tuple]) -> ShoppingList:
    """
    Aggregate (recipe, multiplier) pairs into a shopping list.

    The first numeric line of an ingredient fixes its bucket unit; later lines
    are converted into it. Quantities are left unrounded.
    """
    buckets: dict = {}
    # ingredient_id -> key of the bucket numeric lines try first
    primary: dict = {}
    ingredients: dict = {}

    for recipe, multiplier in recipes_with_multipliers:
        source = ShoppingSource(recipe_id=recipe.id, recipe_name=recipe.name, multiplier=multiplier)

        for line in recipe.ingredients:
            ingredient = line.ingredient
            ingredients[ingredient.id] = ingredient
            unit = parse_unit(line.unit)

            # Free text: collect, never add up
            if unit == Unit.FREE_TEXT or line.quantity is None:
                key = (ingredient.id, category_of(Unit.FREE_TEXT))
                bucket = buckets.get(key)
                if bucket is None:
                    bucket = ShoppingBucket(ingredient.id, ingredient.name, Unit.FREE_TEXT)
                    buckets[key] = bucket
                if line.quantity_text and line.quantity_text not in bucket.quantity_texts:
                    bucket.quantity_texts.append(line.quantity_text)
                bucket.add_source(source)
                continue

            qty = scale_quantity(line.quantity, unit, multiplier)

            target_key = primary.get(ingredient.id)
            if target_key is not None:
                target = buckets[target_key]
                try:
                    converted = convert_for_ingredient(
                        qty, unit, target.unit, ingredient.unit_conversions
                    )
                except IncompatibleUnitsError:
                    pass
                else:
                    target.quantity += converted
                    target.add_source(source)
                    continue

            # Open (or reuse) the bucket for this line's own category
            key = _bucket_key(ingredient.id, unit)
            bucket = buckets.get(key)
            if bucket is None:
                bucket = ShoppingBucket(ingredient.id, ingredient.name, unit, quantity=0.0)
                buckets[key] = bucket
                primary.setdefault(ingredient.id, key)
                if primary[ingredient.id] != key:
                    logger.info(
                        f"Keeping {ingredient.name} in {unit} separate from {buckets[primary[ingredient.id]].unit}"
                    )
            bucket.quantity += convert_unit(qty, unit, bucket.unit)
            bucket.add_source(source)

    total = None
    for bucket in buckets.values():
        _price_bucket(bucket, ingredients[bucket.ingredient_id])
        if bucket.estimated_cost is not None:
            total = (total or 0.0) + bucket.estimated_cost

    items = sorted(buckets.values(), key=lambda b: (b.ingredient_name.lower(), b.unit == Unit.FREE_TEXT))
    return ShoppingList(items=items, estimated_total=total)


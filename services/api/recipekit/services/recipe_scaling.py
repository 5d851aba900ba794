import math
from typing import Optional

from ..settings import settings
from .unit_conversion import Unit, UnitLike, format_unit, parse_unit, round_to_precision


def servings_multiplier(base_servings: Optional[int], target_servings: Optional[int]) -> float:
    """Factor to scale a recipe written for `base_servings` to `target_servings`."""
    if base_servings is not None and base_servings <= 0:
        raise ValueError("Recipe servings must be positive")
    if target_servings is not None and target_servings <= 0:
        raise ValueError("Servings must be positive")
    if not base_servings or not target_servings:
        return 1.0
    return target_servings / base_servings


def scale_quantity(quantity: Optional[float], unit: UnitLike, multiplier: float) -> Optional[float]:
    # Free-text amounts ("a pinch") stay as written
    if quantity is None or parse_unit(unit) == Unit.FREE_TEXT:
        return quantity
    return quantity * multiplier


def describe_quantity(
    quantity: Optional[float],
    unit: UnitLike,
    quantity_text: Optional[str] = None,
    precision: Optional[int] = None,
) -> str:
    """Render a quantity line, e.g. "2.5 cups" or "a pinch"."""
    unit = parse_unit(unit)
    if unit == Unit.FREE_TEXT or quantity is None:
        return quantity_text or ""

    if precision is None:
        precision = settings.display_precision
    rounded = round_to_precision(quantity, precision)
    if not math.isfinite(rounded):
        return f"{rounded} {format_unit(unit)}"
    # 3.0 -> "3"
    qty_str = str(int(rounded)) if rounded == int(rounded) else str(rounded)
    return f"{qty_str} {format_unit(unit)}"

"""
Ingredient-aware conversions.

Some ingredients declare how their units relate across categories
(e.g. 1 cup flour = 120 g). Those rules bridge weight, volume, spoon and count
measures for that ingredient only; free-text is never bridged.
"""

from dataclasses import dataclass
from typing import Iterable, Mapping, Union

from .unit_conversion import (
    IncompatibleUnitsError,
    Unit,
    UnitLike,
    are_units_compatible,
    convert_unit,
    parse_unit,
)


@dataclass(frozen=True)
class ConversionRule:
    """1 `from_unit` of the ingredient equals `factor` `to_unit`."""
    from_unit: Unit
    to_unit: Unit
    factor: float

    @classmethod
    def from_dict(cls, data: Mapping) -> "ConversionRule":
        # Stored rows use the backend's "from"/"to" keys
        return cls(
            from_unit=parse_unit(data.get("from_unit", data.get("from"))),
            to_unit=parse_unit(data.get("to_unit", data.get("to"))),
            factor=float(data["factor"]),
        )


RuleLike = Union[ConversionRule, Mapping]


def _as_rules(conversions: Iterable[RuleLike]) -> list[ConversionRule]:
    return [
        c if isinstance(c, ConversionRule) else ConversionRule.from_dict(c)
        for c in conversions or []
    ]


def convert_for_ingredient(
    quantity: float,
    from_unit: UnitLike,
    to_unit: UnitLike,
    conversions: Iterable[RuleLike] = (),
) -> float:
    """
    Convert a quantity, falling back to the ingredient's bridging rules when
    the units live in different categories.
    """
    from_unit = parse_unit(from_unit)
    to_unit = parse_unit(to_unit)

    # Case 1: Same category (or identity)
    if are_units_compatible(from_unit, to_unit):
        return convert_unit(quantity, from_unit, to_unit)

    # Case 2: Bridge through a rule, in either direction
    for rule in _as_rules(conversions):
        if Unit.FREE_TEXT in (rule.from_unit, rule.to_unit):
            continue

        if are_units_compatible(from_unit, rule.from_unit) and are_units_compatible(rule.to_unit, to_unit):
            bridged = convert_unit(quantity, from_unit, rule.from_unit) * rule.factor
            return convert_unit(bridged, rule.to_unit, to_unit)

        if are_units_compatible(from_unit, rule.to_unit) and are_units_compatible(rule.from_unit, to_unit):
            bridged = convert_unit(quantity, from_unit, rule.to_unit) / rule.factor
            return convert_unit(bridged, rule.from_unit, to_unit)

    # Case 3: Nothing relates the two categories
    raise IncompatibleUnitsError(from_unit, to_unit)


def can_convert_for_ingredient(
    from_unit: UnitLike, to_unit: UnitLike, conversions: Iterable[RuleLike] = ()
) -> bool:
    try:
        convert_for_ingredient(1.0, from_unit, to_unit, conversions)
    except IncompatibleUnitsError:
        return False
    return True

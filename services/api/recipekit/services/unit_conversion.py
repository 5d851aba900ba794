"""
Unit Conversion Service for RecipeKit.

Handles weight, volume, spoon and count conversions over a fixed unit catalog.
Free-text quantities ("a pinch", "to taste") are carried as a sentinel unit and
never take part in arithmetic.
"""

import math
from decimal import Decimal, ROUND_HALF_UP, localcontext
from enum import Enum
from types import MappingProxyType
from typing import Optional, Union

# --- Types ---

class Unit(str, Enum):
    G = "g"
    KG = "kg"
    OZ = "oz"
    LB = "lb"
    ML = "ml"
    L = "l"
    FL_OZ = "fl-oz"
    CUP = "cup"
    PINT = "pint"
    QUART = "quart"
    GALLON = "gallon"
    TSP = "tsp"
    TBSP = "tbsp"
    PIECE = "piece"
    FREE_TEXT = "free-text"

    @classmethod
    def _missing_(cls, value):
        # Case-insensitive match, plus spellings used by the recipe backend
        if isinstance(value, str):
            key = value.strip().lower()
            for member in cls:
                if member.value == key:
                    return member
            return _ALIASES.get(key)
        return None

    def __str__(self) -> str:
        return self.value


class UnitCategory(str, Enum):
    WEIGHT = "weight"
    VOLUME = "volume"
    SPOON = "spoon"
    COUNT = "count"
    FREE_TEXT = "freeText"

    def __str__(self) -> str:
        return self.value


UnitLike = Union[Unit, str]

_ALIASES = {
    "fl oz": Unit.FL_OZ,
    "fl_oz": Unit.FL_OZ,
    "free_text": Unit.FREE_TEXT,
}

# --- Errors ---

class UnitConversionError(ValueError):
    """Base class for deterministic conversion failures."""


class UnknownUnitError(UnitConversionError):
    def __init__(self, value):
        self.value = value
        super().__init__(f"Unknown unit: {value}")


class IncompatibleUnitsError(UnitConversionError):
    def __init__(self, from_unit: Unit, to_unit: Unit):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(
            f"Cannot convert from {from_unit} to {to_unit}: incompatible unit types"
        )


class MissingConversionFactorError(UnitConversionError):
    def __init__(self, from_unit: Unit, to_unit: Unit):
        self.from_unit = from_unit
        self.to_unit = to_unit
        super().__init__(f"Missing conversion factor for {from_unit} or {to_unit}")

# --- Data Tables ---

# Unit -> factor_to_base
# Base units: g (weight), ml (volume), tsp (spoon), piece (count)
CONVERSION_TO_BASE = MappingProxyType({
    # Weight (base: g)
    Unit.G: 1.0,
    Unit.KG: 1000.0,
    Unit.OZ: 28.3495,
    Unit.LB: 453.592,

    # Volume (base: ml)
    Unit.ML: 1.0,
    Unit.L: 1000.0,
    Unit.FL_OZ: 29.5735,
    Unit.CUP: 236.588,
    Unit.PINT: 473.176,
    Unit.QUART: 946.353,
    Unit.GALLON: 3785.41,

    # Spoon (base: tsp)
    Unit.TSP: 1.0,
    Unit.TBSP: 3.0,

    # Count
    Unit.PIECE: 1.0,
})

UNIT_CATEGORIES = MappingProxyType({
    UnitCategory.WEIGHT: (Unit.G, Unit.KG, Unit.OZ, Unit.LB),
    UnitCategory.VOLUME: (
        Unit.ML, Unit.L, Unit.FL_OZ, Unit.CUP, Unit.PINT, Unit.QUART, Unit.GALLON,
    ),
    UnitCategory.SPOON: (Unit.TSP, Unit.TBSP),
    UnitCategory.COUNT: (Unit.PIECE,),
    UnitCategory.FREE_TEXT: (Unit.FREE_TEXT,),
})

UNIT_NAMES = MappingProxyType({
    Unit.G: "grams",
    Unit.KG: "kilograms",
    Unit.ML: "milliliters",
    Unit.L: "liters",
    Unit.OZ: "ounces",
    Unit.LB: "pounds",
    Unit.TSP: "teaspoons",
    Unit.TBSP: "tablespoons",
    Unit.FL_OZ: "fluid ounces",
    Unit.CUP: "cups",
    Unit.PINT: "pints",
    Unit.QUART: "quarts",
    Unit.GALLON: "gallons",
    Unit.PIECE: "pieces",
    Unit.FREE_TEXT: "free text",
})

# --- Catalog ---

def parse_unit(value: UnitLike) -> Unit:
    """Coerce a unit identifier (or backend alias) to a Unit."""
    if isinstance(value, Unit):
        return value
    try:
        return Unit(value)
    except ValueError:
        raise UnknownUnitError(value) from None


def category_of(unit: UnitLike) -> Optional[UnitCategory]:
    """Return the category whose member list contains the unit."""
    unit = parse_unit(unit)
    for category, members in UNIT_CATEGORIES.items():
        if unit in members:
            return category
    return None


def conversion_factor(unit: UnitLike) -> Optional[float]:
    return CONVERSION_TO_BASE.get(parse_unit(unit))

# --- Core Functions ---

def are_units_compatible(from_unit: UnitLike, to_unit: UnitLike) -> bool:
    """Check if two units can be converted into each other."""
    from_unit = parse_unit(from_unit)
    to_unit = parse_unit(to_unit)

    if from_unit == to_unit:
        return True

    # free-text only ever matches itself
    if Unit.FREE_TEXT in (from_unit, to_unit):
        return False

    from_category = category_of(from_unit)
    return from_category is not None and from_category == category_of(to_unit)


def convert_unit(quantity: float, from_unit: UnitLike, to_unit: UnitLike) -> float:
    """
    Convert a quantity between two units of the same category.

    Raises IncompatibleUnitsError when the categories differ (or free-text is
    involved), MissingConversionFactorError when the catalog lacks a factor.
    """
    from_unit = parse_unit(from_unit)
    to_unit = parse_unit(to_unit)

    if from_unit == to_unit:
        return quantity

    if not are_units_compatible(from_unit, to_unit):
        raise IncompatibleUnitsError(from_unit, to_unit)

    from_factor = CONVERSION_TO_BASE.get(from_unit)
    to_factor = CONVERSION_TO_BASE.get(to_unit)
    if from_factor is None or to_factor is None:
        raise MissingConversionFactorError(from_unit, to_unit)

    return quantity * (from_factor / to_factor)


def convert_price_per_unit(
    price_per_unit: float, from_unit: UnitLike, to_unit: UnitLike
) -> float:
    """
    Convert a price per unit to a price per target unit.

    If 1 kg costs 100, one kg holds 1000 g, so a gram costs 100 / 1000 = 0.1.
    """
    one_unit_in_target = convert_unit(1, from_unit, to_unit)
    return price_per_unit / one_unit_in_target

# --- Display ---

def format_unit(unit: UnitLike) -> str:
    """Human-readable plural label for a unit."""
    try:
        return UNIT_NAMES.get(parse_unit(unit), str(unit))
    except UnknownUnitError:
        return str(unit)


def round_to_precision(value: float, precision: int = 2) -> float:
    """
    Round for display, half away from zero.

    Works on the shortest decimal repr so 2.675 -> 2.68 rather than the
    binary-float 2.67. Never apply before persisting or converting again.
    """
    if precision < 0:
        raise ValueError("precision must be non-negative")
    if not math.isfinite(value):
        return value

    exact = Decimal(repr(float(value)))
    quantum = Decimal(1).scaleb(-precision)
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, exact.adjusted() + precision + 2)
        return float(exact.quantize(quantum, rounding=ROUND_HALF_UP))

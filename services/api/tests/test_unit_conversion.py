"""
Tests for the unit conversion service (catalog, conversions, display).
"""

import itertools

import pytest

from recipekit.services import unit_conversion
from recipekit.services.unit_conversion import (
    IncompatibleUnitsError,
    MissingConversionFactorError,
    Unit,
    UnitCategory,
    UnknownUnitError,
    are_units_compatible,
    category_of,
    convert_price_per_unit,
    convert_unit,
    format_unit,
    parse_unit,
    round_to_precision,
)

NUMERIC_UNITS = [u for u in Unit if u != Unit.FREE_TEXT]


# --- Concrete scenarios ---

def test_grams_to_kilograms():
    assert convert_unit(1000, "g", "kg") == 1


def test_pounds_to_grams():
    assert convert_unit(2, "lb", "g") == pytest.approx(907.184)


def test_tablespoon_to_teaspoons():
    assert convert_unit(1, "tbsp", "tsp") == 3


def test_volume_to_weight_is_incompatible():
    with pytest.raises(IncompatibleUnitsError) as exc:
        convert_unit(5, "cup", "g")
    assert exc.value.from_unit == Unit.CUP
    assert exc.value.to_unit == Unit.G
    assert "Cannot convert from cup to g" in str(exc.value)


def test_price_per_kg_to_price_per_gram():
    assert convert_price_per_unit(100, "kg", "g") == pytest.approx(0.1)


def test_format_and_round():
    assert format_unit("fl-oz") == "fluid ounces"
    assert round_to_precision(3.14159, 2) == 3.14


# --- Properties ---

@pytest.mark.parametrize("unit", list(Unit))
def test_identity_is_exact(unit):
    for x in (0.0, 1.0, 0.1, -2.5, 123456.789, 1e-12):
        assert convert_unit(x, unit, unit) == x


def test_round_trip_within_category():
    for a, b in itertools.permutations(NUMERIC_UNITS, 2):
        if not are_units_compatible(a, b):
            continue
        x = 123.456
        back = convert_unit(convert_unit(x, a, b), b, a)
        assert back == pytest.approx(x, rel=1e-9)


def test_category_closure():
    for a, b in itertools.product(Unit, repeat=2):
        expected = a == b or (
            Unit.FREE_TEXT not in (a, b) and category_of(a) == category_of(b)
        )
        assert are_units_compatible(a, b) is expected


def test_free_text_only_matches_itself():
    assert are_units_compatible(Unit.FREE_TEXT, Unit.FREE_TEXT)
    for unit in NUMERIC_UNITS:
        assert not are_units_compatible(Unit.FREE_TEXT, unit)
        assert not are_units_compatible(unit, Unit.FREE_TEXT)
        with pytest.raises(IncompatibleUnitsError):
            convert_unit(1, Unit.FREE_TEXT, unit)


def test_price_inversion():
    for a, b in [("kg", "g"), ("lb", "oz"), ("gallon", "cup"), ("tbsp", "tsp")]:
        there = convert_price_per_unit(42.0, a, b)
        assert convert_price_per_unit(there, b, a) == pytest.approx(42.0, rel=1e-9)


def test_price_propagates_incompatibility():
    with pytest.raises(IncompatibleUnitsError):
        convert_price_per_unit(10, "piece", "g")


def test_spoons_are_not_volume():
    # tsp/tbsp form their own category
    assert category_of("tsp") == UnitCategory.SPOON
    assert not are_units_compatible("tbsp", "ml")


def test_missing_factor_is_reported(monkeypatch):
    broken = {u: f for u, f in unit_conversion.CONVERSION_TO_BASE.items() if u != Unit.OZ}
    monkeypatch.setattr(unit_conversion, "CONVERSION_TO_BASE", broken)

    with pytest.raises(MissingConversionFactorError):
        convert_unit(1, "oz", "g")


def test_catalog_is_read_only():
    with pytest.raises(TypeError):
        unit_conversion.CONVERSION_TO_BASE[Unit.G] = 2.0


# --- Parsing ---

def test_parse_accepts_backend_spellings():
    assert parse_unit("fl oz") == Unit.FL_OZ
    assert parse_unit("free_text") == Unit.FREE_TEXT
    assert parse_unit("KG") == Unit.KG
    assert parse_unit(Unit.CUP) is Unit.CUP


def test_parse_rejects_unknown_unit():
    with pytest.raises(UnknownUnitError):
        parse_unit("glarps")
    # Still a ValueError for callers that only know the builtin
    with pytest.raises(ValueError):
        convert_unit(1, "glarps", "g")


def test_category_of_free_text():
    assert category_of("free-text") == UnitCategory.FREE_TEXT


# --- Display ---

def test_format_unit_labels():
    assert format_unit(Unit.KG) == "kilograms"
    assert format_unit("fl oz") == "fluid ounces"
    assert format_unit("free-text") == "free text"


def test_format_unit_echoes_unknown():
    assert format_unit("glarps") == "glarps"


def test_round_half_away_from_zero():
    assert round_to_precision(2.5, 0) == 3.0
    assert round_to_precision(-2.5, 0) == -3.0
    assert round_to_precision(0.125) == 0.13
    assert round_to_precision(-0.125) == -0.13


def test_round_uses_decimal_repr():
    # Binary floats would give 2.67 / 1.0
    assert round_to_precision(2.675, 2) == 2.68
    assert round_to_precision(1.005, 2) == 1.01


def test_round_negative_precision_rejected():
    with pytest.raises(ValueError):
        round_to_precision(1.0, -1)

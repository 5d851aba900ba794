import pytest

from recipekit.services.recipe_scaling import describe_quantity, scale_quantity, servings_multiplier


def test_multiplier():
    assert servings_multiplier(4, 6) == 1.5
    assert servings_multiplier(2, 2) == 1.0


def test_multiplier_defaults_to_one():
    assert servings_multiplier(None, 6) == 1.0
    assert servings_multiplier(4, None) == 1.0


def test_multiplier_rejects_non_positive():
    with pytest.raises(ValueError):
        servings_multiplier(0, 2)
    with pytest.raises(ValueError):
        servings_multiplier(2, 0)


def test_scale_quantity():
    assert scale_quantity(200, "g", 1.5) == 300
    assert scale_quantity(None, "g", 2) is None
    # "a pinch" stays a pinch
    assert scale_quantity(1, "free_text", 3) == 1


def test_describe_quantity():
    assert describe_quantity(2.5, "cup") == "2.5 cups"
    assert describe_quantity(3.0, "tsp") == "3 teaspoons"
    assert describe_quantity(1 / 3, "cup") == "0.33 cups"
    assert describe_quantity(1 / 3, "cup", precision=1) == "0.3 cups"
    assert describe_quantity(None, "free-text", "a pinch") == "a pinch"


def test_describe_quantity_non_finite():
    assert describe_quantity(float("inf"), "ml") == "inf milliliters"
    assert describe_quantity(float("nan"), "g") == "nan grams"

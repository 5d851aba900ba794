"""Tests for shopping list aggregation across recipes."""

import pytest


@pytest.fixture
def pantry(make_ingredient):
    return {
        "flour": make_ingredient(
            "Flour",
            unit_conversions=[{"from_unit": "cup", "to_unit": "g", "factor": 120}],
            price_per_unit=20,
            price_unit="kg",
        ),
        "egg": make_ingredient("Egg", price_per_unit=3, price_unit="piece"),
        "salt": make_ingredient("Salt"),
    }


@pytest.fixture
def recipes(pantry, make_recipe):
    bread = make_recipe("Bread", [
        {"ingredient_id": pantry["flour"]["id"], "unit": "g", "quantity": 200},
        {"ingredient_id": pantry["egg"]["id"], "unit": "piece", "quantity": 2},
        {"ingredient_id": pantry["salt"]["id"], "unit": "free-text", "quantity_text": "a pinch"},
    ], servings=2)
    cake = make_recipe("Cake", [
        {"ingredient_id": pantry["flour"]["id"], "unit": "cup", "quantity": 1},
        {"ingredient_id": pantry["egg"]["id"], "unit": "piece", "quantity": 4},
        {"ingredient_id": pantry["salt"]["id"], "unit": "tsp", "quantity": 1},
    ], servings=4)
    return bread, cake


def test_aggregates_across_recipes(client, recipes):
    bread, cake = recipes
    response = client.post("/api/shopping-list", json={"recipes": [
        {"recipe_id": bread["id"], "servings": 4},  # doubled
        {"recipe_id": cake["id"]},
    ]})
    assert response.status_code == 200
    data = response.json()

    items = [(i["ingredient_name"], i["unit"]) for i in data["items"]]
    assert items == [("Egg", "piece"), ("Flour", "g"), ("Salt", "tsp"), ("Salt", "free-text")]
    egg, flour, salt_tsp, salt_text = data["items"]

    # 2 * 200 g + 1 cup (120 g via the ingredient's rule)
    assert flour["quantity"] == 520
    assert flour["display"] == "520 grams"
    assert flour["unit_price"] == 0.02
    assert flour["estimated_cost"] == pytest.approx(10.4)
    assert {s["recipe_name"]: s["multiplier"] for s in flour["sources"]} == {"Bread": 2.0, "Cake": 1.0}

    assert egg["quantity"] == 8
    assert egg["estimated_cost"] == 24

    # Spoon measures and free text never merge
    assert salt_tsp["quantity"] == 1
    assert salt_tsp["estimated_cost"] is None
    assert salt_text["quantity"] is None
    assert salt_text["quantity_texts"] == ["a pinch"]
    assert salt_text["display"] == "a pinch"

    assert data["estimated_total"] == pytest.approx(34.4)


def test_unconvertible_lines_get_own_bucket(client, pantry, make_recipe):
    soup = make_recipe("Soup", [
        {"ingredient_id": pantry["egg"]["id"], "unit": "piece", "quantity": 2},
    ])
    omelette = make_recipe("Omelette", [
        {"ingredient_id": pantry["egg"]["id"], "unit": "g", "quantity": 150},
    ])
    response = client.post("/api/shopping-list", json={"recipes": [
        {"recipe_id": soup["id"]},
        {"recipe_id": omelette["id"]},
    ]})
    assert response.status_code == 200
    units = {i["unit"]: i for i in response.json()["items"]}
    assert units["piece"]["quantity"] == 2
    assert units["g"]["quantity"] == 150
    # Priced per piece, no rule from grams
    assert units["g"]["estimated_cost"] is None
    assert response.json()["estimated_total"] == 6


def test_cross_category_pricing(client, pantry, make_recipe):
    cookies = make_recipe("Cookies", [
        {"ingredient_id": pantry["flour"]["id"], "unit": "cup", "quantity": 2},
    ])
    response = client.post("/api/shopping-list", json={"recipes": [{"recipe_id": cookies["id"]}]})
    item = response.json()["items"][0]
    assert item["unit"] == "cup"
    # 2 cups = 240 g = 0.24 kg at 20/kg
    assert item["estimated_cost"] == pytest.approx(4.8)
    assert item["unit_price"] == pytest.approx(2.4)


def test_unknown_recipe(client):
    response = client.post("/api/shopping-list", json={"recipes": [{"recipe_id": "nope"}]})
    assert response.status_code == 404


def test_empty_request(client):
    response = client.post("/api/shopping-list", json={"recipes": []})
    assert response.status_code == 422


def test_unit_price_keeps_small_values(client, make_ingredient, make_recipe):
    sugar = make_ingredient("Sugar", price_per_unit=2, price_unit="kg")
    cake = make_recipe("Sponge", [
        {"ingredient_id": sugar["id"], "unit": "g", "quantity": 600},
    ])
    response = client.post("/api/shopping-list", json={"recipes": [{"recipe_id": cake["id"]}]})
    item = response.json()["items"][0]
    assert item["unit"] == "g"
    assert item["unit_price"] == pytest.approx(0.002)
    assert item["estimated_cost"] == 1.2

"""
Tests for the /api/units router.
"""

import pytest
from fastapi.testclient import TestClient

from recipekit.main import app

client = TestClient(app)


def test_convert_weight_simple():
    # 1 kg = 1000 g
    response = client.post("/api/units/convert", json={
        "qty": 1,
        "from_unit": "kg",
        "to_unit": "g"
    })
    assert response.status_code == 200
    data = response.json()
    assert data["qty"] == 1000
    assert data["unit"] == "g"
    assert data["display"] == "1000 grams"


def test_convert_rounds_display_only():
    # 2 lb = 907.184 g
    response = client.post("/api/units/convert", json={
        "qty": 2,
        "from_unit": "lb",
        "to_unit": "g"
    })
    assert response.status_code == 200
    data = response.json()
    assert data["qty"] == pytest.approx(907.184)
    assert data["display_qty"] == 907.18
    assert data["display"] == "907.18 grams"


def test_convert_accepts_backend_alias():
    response = client.post("/api/units/convert", json={
        "qty": 1,
        "from_unit": "fl oz",
        "to_unit": "ml"
    })
    assert response.status_code == 200
    assert response.json()["qty"] == pytest.approx(29.5735)


def test_convert_incompatible_is_400():
    response = client.post("/api/units/convert", json={
        "qty": 5,
        "from_unit": "cup",
        "to_unit": "g"
    })
    assert response.status_code == 400
    data = response.json()
    assert data["error"] == "IncompatibleUnitsError"
    assert "Cannot convert from cup to g" in data["detail"]


def test_convert_free_text_is_400():
    response = client.post("/api/units/convert", json={
        "qty": 1,
        "from_unit": "free-text",
        "to_unit": "g"
    })
    assert response.status_code == 400


def test_convert_unknown_unit_is_422():
    response = client.post("/api/units/convert", json={
        "qty": 10,
        "from_unit": "glarps",
        "to_unit": "g"
    })
    assert response.status_code == 422


def test_compatible():
    response = client.post("/api/units/compatible", json={
        "from_unit": "cup",
        "to_unit": "gallon"
    })
    assert response.status_code == 200
    data = response.json()
    assert data["compatible"] is True
    assert data["from_category"] == "volume"
    assert data["to_category"] == "volume"

    response = client.post("/api/units/compatible", json={
        "from_unit": "tsp",
        "to_unit": "ml"
    })
    assert response.json()["compatible"] is False


def test_price():
    response = client.post("/api/units/price", json={
        "price_per_unit": 100,
        "from_unit": "kg",
        "to_unit": "g"
    })
    assert response.status_code == 200
    data = response.json()
    assert data["price_per_unit"] == pytest.approx(0.1)
    assert data["display_price"] == 0.1
    assert data["unit"] == "g"


def test_format():
    response = client.get("/api/units/fl-oz/format")
    assert response.status_code == 200
    assert response.json()["display_name"] == "fluid ounces"

    response = client.get("/api/units/handful/format")
    assert response.status_code == 200
    assert response.json()["display_name"] == "handful"


def test_list_units():
    response = client.get("/api/units")
    assert response.status_code == 200
    units = {u["unit"]: u for u in response.json()}
    assert len(units) == 15
    assert units["lb"]["category"] == "weight"
    assert units["lb"]["factor_to_base"] == 453.592
    assert units["free-text"]["factor_to_base"] is None
    assert units["tbsp"]["display_name"] == "tablespoons"


def test_convert_overflow_is_400():
    # 1e308 gallons is finite, the result in ml is not
    response = client.post("/api/units/convert", json={
        "qty": 1e308,
        "from_unit": "gallon",
        "to_unit": "ml"
    })
    assert response.status_code == 400
    assert "out of range" in response.json()["detail"]


def test_price_overflow_is_400():
    response = client.post("/api/units/price", json={
        "price_per_unit": 1e308,
        "from_unit": "g",
        "to_unit": "kg"
    })
    assert response.status_code == 400


def test_convert_rejects_nan():
    response = client.post(
        "/api/units/convert",
        content='{"qty": NaN, "from_unit": "g", "to_unit": "kg"}',
        headers={"Content-Type": "application/json"},
    )
    assert response.status_code == 422


def test_default_rate_limit_applies():
    limiter = app.state.limiter
    limiter.reset()
    limiter.enabled = True
    try:
        statuses = [client.get("/api/units").status_code for _ in range(101)]
    finally:
        limiter.enabled = False
        limiter.reset()
    # rate_limit_default is 100/minute
    assert statuses[:100] == [200] * 100
    assert statuses[100] == 429

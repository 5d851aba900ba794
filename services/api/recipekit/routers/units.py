"""
Router for unit conversion utilities.
"""

from fastapi import APIRouter

from ..deps import require_finite
from ..schemas import (
    UnitCompatibleRequest,
    UnitCompatibleResponse,
    UnitConvertRequest,
    UnitConvertResponse,
    UnitFormatResponse,
    UnitOut,
    UnitPriceRequest,
    UnitPriceResponse,
)
from ..services.recipe_scaling import describe_quantity
from ..services.unit_conversion import (
    Unit,
    are_units_compatible,
    category_of,
    conversion_factor,
    convert_price_per_unit,
    convert_unit,
    format_unit,
    round_to_precision,
)
from ..settings import settings

router = APIRouter()


@router.get("", response_model=list[UnitOut])
def list_units():
    """All units known to the catalog, grouped by category order."""
    return [
        UnitOut(
            unit=unit,
            category=category_of(unit),
            factor_to_base=conversion_factor(unit),
            display_name=format_unit(unit),
        )
        for unit in Unit
    ]


@router.post("/convert", response_model=UnitConvertResponse)
def convert_units(req: UnitConvertRequest):
    """
    Convert a quantity from one unit to another.

    Incompatible units surface as 400 through the UnitConversionError handler.
    """
    qty = require_finite(convert_unit(req.qty, req.from_unit, req.to_unit))
    return UnitConvertResponse(
        qty=qty,
        unit=req.to_unit,
        display_qty=round_to_precision(qty, settings.display_precision),
        display=describe_quantity(qty, req.to_unit),
    )


@router.post("/compatible", response_model=UnitCompatibleResponse)
def check_compatible(req: UnitCompatibleRequest):
    return UnitCompatibleResponse(
        compatible=are_units_compatible(req.from_unit, req.to_unit),
        from_category=category_of(req.from_unit),
        to_category=category_of(req.to_unit),
    )


@router.post("/price", response_model=UnitPriceResponse)
def convert_price(req: UnitPriceRequest):
    """Price per `from_unit` -> price per `to_unit`."""
    price = require_finite(
        convert_price_per_unit(req.price_per_unit, req.from_unit, req.to_unit),
        "Converted price",
    )
    return UnitPriceResponse(
        price_per_unit=price,
        unit=req.to_unit,
        display_price=round_to_precision(price, settings.display_precision),
    )


@router.get("/{unit}/format", response_model=UnitFormatResponse)
def format_unit_name(unit: str):
    # Unknown identifiers echo back rather than 404
    return UnitFormatResponse(unit=unit, display_name=format_unit(unit))

from typing import Any, Dict, List, Literal, Optional
import logging

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field, model_validator
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.database import get_db
from app.core.pricing import (
    PricingBreakdown,
    PricingInput,
    calculate_gst,
    calculate_order_total,
    calculate_price,
    format_inr,
)
from app.core.serialization_helpers import serialize_datetime, serialize_decimal
from app.services import rate_provider
from app.services.making_charges import resolve_charges

router = APIRouter()
logger = logging.getLogger(__name__)

AMOUNT_FIELDS = ("gold_value", "making_charges", "wastage_amount", "subtotal", "gst_amount", "total_price")


class PriceCalculationRequest(BaseModel):
    weight: float = Field(gt=0, allow_inf_nan=False)
    purity: str
    making_charge_type: Literal["percentage", "fixed"] = "percentage"
    making_charge_percentage: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    # used when making_charge_type is "fixed"
    making_charge_per_gram: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    wastage_percentage: Optional[float] = Field(None, ge=0, allow_inf_nan=False)
    category: Optional[str] = None

    @model_validator(mode="after")
    def validate_fixed_charge(self):
        if self.making_charge_type == "fixed" and self.making_charge_per_gram is None:
            raise ValueError("making_charge_per_gram is required for fixed making charges")
        return self


class BulkPriceRequest(BaseModel):
    items: List[PriceCalculationRequest] = Field(min_length=1)


class GSTRequest(BaseModel):
    amount: float = Field(ge=0, allow_inf_nan=False)


class OrderLine(BaseModel):
    quantity: int = Field(1, gt=0)
    unit_price: float = Field(ge=0, allow_inf_nan=False)
    making_charges: float = Field(0, ge=0, allow_inf_nan=False)
    wastage_amount: float = Field(0, ge=0, allow_inf_nan=False)


class OrderTotalRequest(BaseModel):
    items: List[OrderLine] = Field(min_length=1)


def _breakdown_response(
    data: PricingInput,
    breakdown: PricingBreakdown,
    current: rate_provider.CurrentRates,
) -> Dict[str, Any]:
    response: Dict[str, Any] = {
        "weight": serialize_decimal(data.weight_grams),
        "purity": data.purity.value,
        "category": data.category,
        "gold_rate": serialize_decimal(breakdown.gold_rate),
        "making_charge_type": data.making_charge_type,
        "making_charge_percentage": serialize_decimal(data.making_charge_pct),
        "making_charge_per_gram": serialize_decimal(data.making_charge_per_gram),
        "wastage_percentage": serialize_decimal(data.wastage_pct),
        "gst_rate": serialize_decimal(breakdown.gst_rate),
    }
    for field in AMOUNT_FIELDS:
        response[field] = serialize_decimal(getattr(breakdown, field))
    response["breakdown"] = {
        "gold_cost": response["gold_value"],
        "making_charges": response["making_charges"],
        "wastage": response["wastage_amount"],
        "gst": response["gst_amount"],
    }
    response["formatted"] = {field: format_inr(getattr(breakdown, field)) for field in AMOUNT_FIELDS}
    response["rates_last_updated"] = serialize_datetime(current.last_updated)
    response["rates_source"] = current.source
    return response


def _price_request(db: Session, request: PriceCalculationRequest, current: rate_provider.CurrentRates) -> Dict[str, Any]:
    fixed = request.making_charge_type == "fixed"
    making = 0 if fixed else request.making_charge_percentage
    wastage = request.wastage_percentage
    if making is None or wastage is None:
        defaults = resolve_charges(db, request.category, request.purity)
        making = defaults["making_charge_pct"] if making is None else making
        wastage = defaults["wastage_pct"] if wastage is None else wastage

    data = PricingInput.build(
        weight_grams=request.weight,
        purity=request.purity,
        making_charge_pct=making,
        wastage_pct=wastage,
        category=request.category,
        making_charge_type=request.making_charge_type,
        making_charge_per_gram=request.making_charge_per_gram or 0,
    )
    breakdown = calculate_price(data, current.rates, gst_rate=settings.gst_rate)
    return _breakdown_response(data, breakdown, current)


@router.post("/calculate-item-price")
def calculate_item_price(request: PriceCalculationRequest, db: Session = Depends(get_db)):
    """Price breakdown for one item at current rates"""
    current = rate_provider.require_fresh(rate_provider.get_current_rates(db))
    result = _price_request(db, request, current)
    logger.info("Price calculated: %s %sg total=%s", result["purity"], result["weight"], result["total_price"])
    return result


@router.post("/calculate-bulk")
def calculate_bulk(request: BulkPriceRequest, db: Session = Depends(get_db)):
    """Breakdowns for several items against a single rate read"""
    current = rate_provider.require_fresh(rate_provider.get_current_rates(db))
    return [_price_request(db, item, current) for item in request.items]


@router.post("/calculate-gst")
def calculate_gst_endpoint(request: GSTRequest):
    result = calculate_gst(request.amount, gst_rate=settings.gst_rate)
    response = {key: serialize_decimal(value) for key, value in result.items()}
    response["formatted_total"] = format_inr(result["total"])
    return response


@router.post("/calculate-order-total")
def calculate_order_total_endpoint(request: OrderTotalRequest):
    result = calculate_order_total([line.model_dump() for line in request.items], gst_rate=settings.gst_rate)
    response = {key: serialize_decimal(value) for key, value in result.items()}
    response["formatted_total"] = format_inr(result["total_amount"])
    return response

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, condecimal
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.database import get_db
from app.core.deps import get_current_user, require_admin
from app.core.serialization_helpers import serialize_decimal
from app.models.user import User
from app.services import inventory_service, rate_provider

router = APIRouter()


class ItemBase(BaseModel):
    sku: str = Field(min_length=1, max_length=100)
    name: str = Field(min_length=1, max_length=255)
    category: Optional[str] = None
    metal_type: Optional[str] = None
    purity: str
    weight: condecimal(max_digits=10, decimal_places=3, gt=0)
    making_charges: condecimal(max_digits=6, decimal_places=2, ge=0) = 0
    wastage_percentage: condecimal(max_digits=6, decimal_places=2, ge=0) = 0
    base_price: condecimal(max_digits=12, decimal_places=2, ge=0) = 0
    selling_price: condecimal(max_digits=12, decimal_places=2, ge=0) = 0
    stock_quantity: int = Field(0, ge=0)
    min_stock_level: int = Field(0, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None


class ItemUpdate(BaseModel):
    name: Optional[str] = None
    category: Optional[str] = None
    metal_type: Optional[str] = None
    purity: Optional[str] = None
    weight: Optional[condecimal(max_digits=10, decimal_places=3, gt=0)] = None
    making_charges: Optional[condecimal(max_digits=6, decimal_places=2, ge=0)] = None
    wastage_percentage: Optional[condecimal(max_digits=6, decimal_places=2, ge=0)] = None
    base_price: Optional[condecimal(max_digits=12, decimal_places=2, ge=0)] = None
    selling_price: Optional[condecimal(max_digits=12, decimal_places=2, ge=0)] = None
    stock_quantity: Optional[int] = Field(None, ge=0)
    min_stock_level: Optional[int] = Field(None, ge=0)
    location: Optional[str] = None
    description: Optional[str] = None


def _one(db: Session, item) -> dict:
    rates = rate_provider.get_rates_or_none(db)
    return inventory_service.augment_with_live_value([item], rates.rates if rates else None)[0]


@router.get("")
def list_items(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    q: Optional[str] = Query(None, description="Search by name, SKU or category"),
    category: Optional[str] = Query(None),
    purity: Optional[str] = Query(None),
    low_stock: bool = Query(False),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=500),
):
    """Items with their live value; stored selling_price when rates are unavailable"""
    items = inventory_service.list_items(
        db, q=q, category=category, purity=purity, low_stock=low_stock, skip=skip, limit=limit
    )
    current = rate_provider.get_rates_or_none(db)
    return {
        "items": inventory_service.augment_with_live_value(items, current.rates if current else None),
        "rates_available": current is not None,
        "rates_last_updated": current.as_response()["last_updated"] if current else None,
        "skip": skip,
        "limit": limit,
    }


@router.get("/valuation")
def get_valuation(
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    current = rate_provider.get_rates_or_none(db)
    valuation = inventory_service.get_valuation(db, current.rates if current else None)
    valuation["total_value"] = serialize_decimal(valuation["total_value"])
    for group in valuation["by_purity"].values():
        group["weight"] = serialize_decimal(group["weight"])
        group["value"] = serialize_decimal(group["value"])
    valuation["rates_available"] = current is not None
    return valuation


@router.get("/{item_id}")
def get_item(
    item_id: int,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    return _one(db, inventory_service.get_item(db, item_id))


@router.post("", status_code=201)
def create_item(
    data: ItemBase,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    try:
        item = inventory_service.create_item(db, data.model_dump())
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail="SKU already exists")
    db.refresh(item)
    return _one(db, item)


@router.put("/{item_id}")
def update_item(
    item_id: int,
    data: ItemUpdate,
    db: Session = Depends(get_db),
    user: User = Depends(require_admin),
):
    item = inventory_service.update_item(db, item_id, data.model_dump(exclude_unset=True))
    db.commit()
    db.refresh(item)
    return _one(db, item)

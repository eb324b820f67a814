"""
Inventory items and their live value at current rates.

Stored prices are never rewritten here: the live value is computed on every
read and attached next to the stored fields.
"""
import logging
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Mapping, Optional

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidInput, NotFound, RateUnavailable
from app.core.pricing import PricingInput, calculate_price, to_decimal
from app.core.purities import parse_purity
from app.core.serialization_helpers import serialize_datetime, serialize_decimal
from app.models.jewelry_item import JewelryItem

logger = logging.getLogger(__name__)

ITEM_FIELDS = (
    "id", "sku", "name", "category", "metal_type", "purity", "weight", "making_charges",
    "wastage_percentage", "base_price", "selling_price", "stock_quantity", "min_stock_level",
    "location", "description", "created_at", "updated_at",
)
DECIMAL_FIELDS = {"weight", "making_charges", "wastage_percentage", "base_price", "selling_price"}
DATETIME_FIELDS = {"created_at", "updated_at"}
# NOT NULL columns that an update may not clear
REQUIRED_FIELDS = {
    "sku", "name", "purity", "weight", "making_charges", "wastage_percentage",
    "base_price", "selling_price", "stock_quantity", "min_stock_level",
}


def stock_status(item) -> str:
    if (item.stock_quantity or 0) <= 0:
        return "out_of_stock"
    if item.stock_quantity <= (item.min_stock_level or 0):
        return "low_stock"
    return "in_stock"


def serialize_item(item: JewelryItem) -> Dict[str, Any]:
    data: Dict[str, Any] = {}
    for field in ITEM_FIELDS:
        value = getattr(item, field)
        if field in DECIMAL_FIELDS:
            value = serialize_decimal(value)
        elif field in DATETIME_FIELDS:
            value = serialize_datetime(value)
        data[field] = value
    return data


def live_value(item: JewelryItem, rates: Mapping) -> Decimal:
    """GST-inclusive price of one item at the given rates."""
    data = PricingInput.build(
        weight_grams=item.weight,
        purity=item.purity,
        making_charge_pct=item.making_charges,
        wastage_pct=item.wastage_percentage,
        category=item.category,
    )
    return calculate_price(data, rates, gst_rate=settings.gst_rate).total_price


def augment_with_live_value(items: Iterable[JewelryItem], rates: Optional[Mapping]) -> List[Dict[str, Any]]:
    """
    Stored fields plus calculated_value / display_price / price_source / stock_status.

    With no rates every item falls back to its stored selling_price.
    """
    augmented = []
    for item in items:
        data = serialize_item(item)
        value = None
        if rates is not None:
            try:
                value = live_value(item, rates)
            except (InvalidInput, RateUnavailable) as exc:
                logger.warning("No live value for item %s (%s): %s", item.id, item.sku, exc.message)
        data["calculated_value"] = serialize_decimal(value)
        data["display_price"] = serialize_decimal(value) if value is not None else data["selling_price"]
        data["price_source"] = "live" if value is not None else "stored"
        data["stock_status"] = stock_status(item)
        augmented.append(data)
    return augmented


def list_items(
    db: Session,
    q: Optional[str] = None,
    category: Optional[str] = None,
    purity: Optional[str] = None,
    low_stock: bool = False,
    skip: int = 0,
    limit: int = 50,
) -> List[JewelryItem]:
    query = db.query(JewelryItem)
    if q:
        qn = q.strip().lower()
        if qn:
            query = query.filter(
                or_(
                    func.lower(JewelryItem.name).like(f"%{qn}%"),
                    func.lower(JewelryItem.sku).like(f"%{qn}%"),
                    func.lower(JewelryItem.category).like(f"%{qn}%"),
                )
            )
    if category:
        query = query.filter(func.lower(JewelryItem.category) == category.strip().lower())
    if purity:
        query = query.filter(JewelryItem.purity == parse_purity(purity).value)
    if low_stock:
        query = query.filter(JewelryItem.stock_quantity <= JewelryItem.min_stock_level)
    return query.order_by(JewelryItem.id).offset(skip).limit(limit).all()


def get_item(db: Session, item_id: int) -> JewelryItem:
    item = db.query(JewelryItem).filter(JewelryItem.id == item_id).first()
    if not item:
        raise NotFound("Item not found")
    return item


def _validate_item_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
    cleared = sorted(key for key in REQUIRED_FIELDS if key in fields and fields[key] is None)
    if cleared:
        raise InvalidInput(f"Fields cannot be null: {', '.join(cleared)}")
    if "purity" in fields and fields["purity"] is not None:
        fields["purity"] = parse_purity(fields["purity"]).value
    if "weight" in fields and fields["weight"] is not None and to_decimal(fields["weight"]) <= 0:
        raise InvalidInput("Weight must be greater than zero")
    return fields


def create_item(db: Session, fields: Dict[str, Any]) -> JewelryItem:
    item = JewelryItem(**_validate_item_fields(dict(fields)))
    db.add(item)
    db.flush()
    return item


def update_item(db: Session, item_id: int, changes: Dict[str, Any]) -> JewelryItem:
    item = get_item(db, item_id)
    for key, value in _validate_item_fields(dict(changes)).items():
        setattr(item, key, value)
    db.flush()
    return item


def get_valuation(db: Session, rates: Optional[Mapping]) -> Dict[str, Any]:
    """Stock value grouped by purity, live where possible, stored price otherwise."""
    groups: Dict[str, Dict[str, Any]] = {}
    total = Decimal("0")
    live_items = 0
    items = db.query(JewelryItem).all()
    for data in augment_with_live_value(items, rates):
        quantity = data["stock_quantity"] or 0
        unit = to_decimal(data["display_price"])
        value = unit * quantity
        group = groups.setdefault(
            data["purity"],
            {"count": 0, "stock_quantity": 0, "weight": Decimal("0"), "value": Decimal("0")},
        )
        group["count"] += 1
        group["stock_quantity"] += quantity
        group["weight"] += to_decimal(data["weight"]) * quantity
        group["value"] += value
        total += value
        if data["price_source"] == "live":
            live_items += 1

    return {
        "total_items": len(items),
        "live_priced_items": live_items,
        "total_value": total,
        "by_purity": groups,
    }

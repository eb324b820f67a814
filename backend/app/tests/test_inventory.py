from decimal import Decimal

import pytest

from app.core.errors import InvalidInput
from app.models.jewelry_item import JewelryItem
from app.services import inventory_service

from conftest import TEST_RATES


def make_item(db, **overrides) -> JewelryItem:
    fields = dict(
        sku="RG22-0001",
        name="Band Ring",
        category="ring",
        metal_type="gold",
        purity="22K",
        weight=Decimal("10"),
        making_charges=Decimal("12"),
        wastage_percentage=Decimal("2"),
        base_price=Decimal("60000"),
        selling_price=Decimal("65000"),
        stock_quantity=5,
        min_stock_level=2,
    )
    fields.update(overrides)
    item = JewelryItem(**fields)
    db.add(item)
    db.commit()
    db.refresh(item)
    return item


def test_live_value_is_attached_without_touching_stored_fields(db):
    item = make_item(db)

    [data] = inventory_service.augment_with_live_value([item], TEST_RATES)

    assert data["calculated_value"] == 70452.0
    assert data["display_price"] == 70452.0
    assert data["price_source"] == "live"
    assert data["selling_price"] == 65000.0
    assert data["base_price"] == 60000.0
    assert data["sku"] == "RG22-0001"
    db.refresh(item)
    assert item.selling_price == Decimal("65000")


def test_no_rates_falls_back_to_stored_price(db):
    items = [make_item(db), make_item(db, sku="RG22-0002", selling_price=Decimal("41000"))]

    augmented = inventory_service.augment_with_live_value(items, None)

    assert [d["calculated_value"] for d in augmented] == [None, None]
    assert [d["display_price"] for d in augmented] == [65000.0, 41000.0]
    assert {d["price_source"] for d in augmented} == {"stored"}


def test_item_without_usable_rate_keeps_stored_price(db):
    good = make_item(db)
    platinum = make_item(db, sku="PT-0001", purity="Platinum", selling_price=Decimal("99000"))

    augmented = inventory_service.augment_with_live_value([good, platinum], {"22K": Decimal("6000")})

    assert augmented[0]["price_source"] == "live"
    assert augmented[1]["calculated_value"] is None
    assert augmented[1]["display_price"] == 99000.0


@pytest.mark.parametrize(
    "stock, minimum, expected",
    [(0, 2, "out_of_stock"), (2, 2, "low_stock"), (1, 3, "low_stock"), (3, 2, "in_stock")],
)
def test_stock_status(stock, minimum, expected):
    item = JewelryItem(stock_quantity=stock, min_stock_level=minimum)
    assert inventory_service.stock_status(item) == expected


def test_list_filters(db):
    make_item(db)
    make_item(db, sku="NK18-0001", name="Chain Necklace", category="necklace", purity="18K",
              stock_quantity=1, min_stock_level=1)

    assert [i.sku for i in inventory_service.list_items(db, q="chain")] == ["NK18-0001"]
    assert [i.sku for i in inventory_service.list_items(db, purity="22k")] == ["RG22-0001"]
    assert [i.sku for i in inventory_service.list_items(db, category="Ring")] == ["RG22-0001"]
    assert [i.sku for i in inventory_service.list_items(db, low_stock=True)] == ["NK18-0001"]


def test_create_item_validates(db):
    with pytest.raises(InvalidInput):
        inventory_service.create_item(db, dict(sku="X", name="X", purity="24K", weight=Decimal("1")))
    with pytest.raises(InvalidInput):
        inventory_service.create_item(db, dict(sku="X", name="X", purity="22K", weight=Decimal("0")))

    item = inventory_service.create_item(db, dict(sku="X", name="X", purity="silver", weight=Decimal("1")))
    assert item.purity == "Silver"


def test_valuation_groups_by_purity(db):
    make_item(db, stock_quantity=2)
    make_item(db, sku="AN-0001", purity="Silver", weight=Decimal("100"), making_charges=Decimal("0"),
              wastage_percentage=Decimal("0"), selling_price=Decimal("9000"), stock_quantity=1)

    valuation = inventory_service.get_valuation(db, TEST_RATES)

    assert valuation["total_items"] == 2
    assert valuation["live_priced_items"] == 2
    assert valuation["by_purity"]["22K"]["value"] == Decimal("140904")
    assert valuation["by_purity"]["Silver"]["value"] == Decimal("8755")
    assert valuation["total_value"] == Decimal("149659")


def test_valuation_without_rates_uses_stored_prices(db):
    make_item(db, stock_quantity=2)

    valuation = inventory_service.get_valuation(db, None)

    assert valuation["live_priced_items"] == 0
    assert valuation["total_value"] == Decimal("130000")

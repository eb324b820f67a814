from decimal import Decimal

from sqlalchemy.orm import Session

from app.core.security import hash_password
from app.models.jewelry_item import JewelryItem
from app.models.making_charge import MakingChargeConfig
from app.models.metal_rate import MetalRate
from app.models.user import User
from app.services.rate_provider import record_rates


DEMO_RATES = {
    "22K": Decimal("6200"),
    "18K": Decimal("5100"),
    "14K": Decimal("3970"),
    "Silver": Decimal("85"),
    "Platinum": Decimal("3200"),
}

DEMO_CHARGES = [
    # category, purity, making %, wastage %
    (None, None, Decimal("10"), Decimal("2")),
    ("ring", None, Decimal("12"), Decimal("2")),
    ("necklace", None, Decimal("14"), Decimal("3")),
    ("bangle", "22K", Decimal("8"), Decimal("1.5")),
    (None, "Silver", Decimal("6"), Decimal("0")),
]

DEMO_ITEMS = [
    dict(sku="RG22-0001", name="Classic Band Ring", category="ring", metal_type="gold", purity="22K",
         weight=Decimal("5.200"), making_charges=Decimal("12"), wastage_percentage=Decimal("2"),
         base_price=Decimal("32000"), selling_price=Decimal("37500"), stock_quantity=6, min_stock_level=2),
    dict(sku="NK22-0001", name="Temple Necklace", category="necklace", metal_type="gold", purity="22K",
         weight=Decimal("28.750"), making_charges=Decimal("14"), wastage_percentage=Decimal("3"),
         base_price=Decimal("178000"), selling_price=Decimal("212000"), stock_quantity=2, min_stock_level=1),
    dict(sku="BG22-0001", name="Plain Bangle Pair", category="bangle", metal_type="gold", purity="22K",
         weight=Decimal("20.000"), making_charges=Decimal("8"), wastage_percentage=Decimal("1.5"),
         base_price=Decimal("124000"), selling_price=Decimal("139000"), stock_quantity=4, min_stock_level=2),
    dict(sku="ER18-0001", name="Diamond Stud Earrings", category="earring", metal_type="gold", purity="18K",
         weight=Decimal("3.100"), making_charges=Decimal("18"), wastage_percentage=Decimal("2"),
         base_price=Decimal("15800"), selling_price=Decimal("21500"), stock_quantity=1, min_stock_level=2),
    dict(sku="AN92-0001", name="Silver Anklet", category="anklet", metal_type="silver", purity="Silver",
         weight=Decimal("42.000"), making_charges=Decimal("6"), wastage_percentage=Decimal("0"),
         base_price=Decimal("3570"), selling_price=Decimal("4200"), stock_quantity=0, min_stock_level=3),
]


def seed_demo(db: Session):
    if not db.query(User).filter(User.email == "owner@demo.in").first():
        db.add(User(email="owner@demo.in", hashed_password=hash_password("secret123"), role="owner"))
        db.commit()

    if db.query(MetalRate).count() == 0:
        record_rates(db, DEMO_RATES, source="Seed")

    if db.query(MakingChargeConfig).count() == 0:
        for category, purity, making, wastage in DEMO_CHARGES:
            db.add(MakingChargeConfig(category=category, purity=purity,
                                      making_charge_pct=making, wastage_pct=wastage))
        db.commit()

    if db.query(JewelryItem).count() == 0:
        for fields in DEMO_ITEMS:
            db.add(JewelryItem(**fields))
        db.commit()

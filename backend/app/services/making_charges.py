"""
Making-charge and wastage rules per category / purity.
"""
from decimal import Decimal
from typing import Dict, List, Optional

from sqlalchemy.orm import Session

from app.core.config import settings
from app.core.errors import InvalidInput, NotFound
from app.core.pricing import to_decimal
from app.core.purities import parse_purity
from app.models.making_charge import MakingChargeConfig


def _normalize_category(category: Optional[str]) -> Optional[str]:
    if category is None:
        return None
    category = category.strip().lower()
    return category or None


def _normalize_purity(purity) -> Optional[str]:
    if purity is None or purity == "":
        return None
    return parse_purity(purity).value


def _validate_pcts(making_charge_pct, wastage_pct) -> None:
    for label, value in (("making_charge_pct", making_charge_pct), ("wastage_pct", wastage_pct)):
        if value is None:
            continue
        number = to_decimal(value)
        if not number.is_finite() or number < 0:
            raise InvalidInput(f"{label} must be a finite, non-negative number")


def resolve_charges(db: Session, category: Optional[str], purity) -> Dict[str, Decimal]:
    """
    Most specific active rule wins:
    (category, purity) -> (category, any) -> (any, purity) -> (any, any) -> settings defaults.
    """
    category = _normalize_category(category)
    purity = _normalize_purity(purity)

    rules = db.query(MakingChargeConfig).filter(MakingChargeConfig.is_active == True).all()  # noqa: E712
    candidates = list(dict.fromkeys([(category, purity), (category, None), (None, purity), (None, None)]))
    for wanted_category, wanted_purity in candidates:
        for rule in rules:
            if rule.category == wanted_category and rule.purity == wanted_purity:
                return {
                    "making_charge_pct": to_decimal(rule.making_charge_pct),
                    "wastage_pct": to_decimal(rule.wastage_pct),
                    "rule_id": rule.id,
                }

    return {
        "making_charge_pct": settings.default_making_charge_pct,
        "wastage_pct": settings.default_wastage_pct,
        "rule_id": None,
    }


def list_configs(
    db: Session,
    category: Optional[str] = None,
    purity: Optional[str] = None,
    include_inactive: bool = False,
) -> List[MakingChargeConfig]:
    query = db.query(MakingChargeConfig)
    if not include_inactive:
        query = query.filter(MakingChargeConfig.is_active == True)  # noqa: E712
    if category:
        query = query.filter(MakingChargeConfig.category == _normalize_category(category))
    if purity:
        query = query.filter(MakingChargeConfig.purity == _normalize_purity(purity))
    return query.order_by(MakingChargeConfig.category, MakingChargeConfig.purity).all()


def get_config(db: Session, config_id: int) -> MakingChargeConfig:
    config = db.query(MakingChargeConfig).filter(MakingChargeConfig.id == config_id).first()
    if not config:
        raise NotFound("Making charges configuration not found")
    return config


def create_config(
    db: Session,
    making_charge_pct,
    wastage_pct,
    category: Optional[str] = None,
    purity: Optional[str] = None,
) -> MakingChargeConfig:
    _validate_pcts(making_charge_pct, wastage_pct)
    config = MakingChargeConfig(
        category=_normalize_category(category),
        purity=_normalize_purity(purity),
        making_charge_pct=to_decimal(making_charge_pct),
        wastage_pct=to_decimal(wastage_pct),
        is_active=True,
    )
    db.add(config)
    db.commit()
    db.refresh(config)
    return config


def update_config(db: Session, config_id: int, **changes) -> MakingChargeConfig:
    config = get_config(db, config_id)
    _validate_pcts(changes.get("making_charge_pct"), changes.get("wastage_pct"))
    if "category" in changes:
        config.category = _normalize_category(changes["category"])
    if "purity" in changes:
        config.purity = _normalize_purity(changes["purity"])
    if changes.get("making_charge_pct") is not None:
        config.making_charge_pct = to_decimal(changes["making_charge_pct"])
    if changes.get("wastage_pct") is not None:
        config.wastage_pct = to_decimal(changes["wastage_pct"])
    if changes.get("is_active") is not None:
        config.is_active = bool(changes["is_active"])
    db.commit()
    db.refresh(config)
    return config


def deactivate_config(db: Session, config_id: int) -> MakingChargeConfig:
    config = get_config(db, config_id)
    config.is_active = False
    db.commit()
    return config

from decimal import Decimal

import pytest

from app.core.errors import InvalidInput, NotFound
from app.services import making_charges


def test_defaults_when_no_rule(db):
    resolved = making_charges.resolve_charges(db, "ring", "22K")
    assert resolved == {"making_charge_pct": Decimal("10"), "wastage_pct": Decimal("2"), "rule_id": None}


def test_most_specific_rule_wins(db):
    generic = making_charges.create_config(db, 9, 1)
    by_purity = making_charges.create_config(db, 11, 2, purity="18k")
    by_category = making_charges.create_config(db, 14, 3, category="Necklace")
    exact = making_charges.create_config(db, 16, 4, category="necklace", purity="18K")

    assert making_charges.resolve_charges(db, "necklace", "18K")["rule_id"] == exact.id
    assert making_charges.resolve_charges(db, "NECKLACE", "22K")["rule_id"] == by_category.id
    assert making_charges.resolve_charges(db, "ring", "18K")["rule_id"] == by_purity.id
    assert making_charges.resolve_charges(db, "ring", "22K")["rule_id"] == generic.id
    assert making_charges.resolve_charges(db, None, "14K")["making_charge_pct"] == Decimal("9")


def test_inactive_rules_are_ignored(db):
    rule = making_charges.create_config(db, 15, 3, category="bangle")
    making_charges.deactivate_config(db, rule.id)

    assert making_charges.resolve_charges(db, "bangle", "22K")["rule_id"] is None
    assert making_charges.list_configs(db) == []
    assert [c.id for c in making_charges.list_configs(db, include_inactive=True)] == [rule.id]


def test_update_config(db):
    rule = making_charges.create_config(db, 12, 2, category="ring")

    updated = making_charges.update_config(db, rule.id, making_charge_pct=13, purity="silver")

    assert updated.making_charge_pct == Decimal("13")
    assert updated.wastage_pct == Decimal("2")
    assert updated.purity == "Silver"


def test_negative_percentages_rejected(db):
    with pytest.raises(InvalidInput):
        making_charges.create_config(db, -1, 2)
    rule = making_charges.create_config(db, 10, 2)
    with pytest.raises(InvalidInput):
        making_charges.update_config(db, rule.id, wastage_pct=-0.5)


def test_unknown_config(db):
    with pytest.raises(NotFound):
        making_charges.get_config(db, 999)
    with pytest.raises(InvalidInput):
        making_charges.create_config(db, 10, 2, purity="24K")


def test_non_finite_percentages_rejected(db):
    with pytest.raises(InvalidInput):
        making_charges.create_config(db, Decimal("Infinity"), 2)

"""
Live-rate jewelry pricing.

All amounts stay at full Decimal precision through the arithmetic chain.
Rounding to whole rupees (ROUND_HALF_UP) happens only in round_inr / format_inr,
which are meant for the presentation layer.
"""
from dataclasses import dataclass, asdict
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Mapping, Optional

from app.core.errors import InvalidInput, RateUnavailable
from app.core.purities import Purity, parse_purity


HUNDRED = Decimal("100")
DEFAULT_GST_RATE = Decimal("0.03")

MAKING_PERCENTAGE = "percentage"
MAKING_FIXED = "fixed"
MAKING_CHARGE_TYPES = (MAKING_PERCENTAGE, MAKING_FIXED)


def to_decimal(value) -> Decimal:
    if value is None:
        return Decimal("0")
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


def _non_negative(label: str, value) -> Decimal:
    number = to_decimal(value)
    if not number.is_finite() or number < 0:
        raise InvalidInput(f"{label} must be a finite, non-negative number")
    return number


@dataclass(frozen=True)
class PricingInput:
    weight_grams: Decimal
    purity: Purity
    making_charge_pct: Decimal = Decimal("0")
    wastage_pct: Decimal = Decimal("0")
    category: Optional[str] = None
    # "fixed" charges making_charge_per_gram * weight instead of a percentage of metal value
    making_charge_type: str = MAKING_PERCENTAGE
    making_charge_per_gram: Decimal = Decimal("0")

    @classmethod
    def build(
        cls,
        weight_grams,
        purity,
        making_charge_pct=0,
        wastage_pct=0,
        category=None,
        making_charge_type=MAKING_PERCENTAGE,
        making_charge_per_gram=0,
    ) -> "PricingInput":
        """Coerce raw values; raises InvalidInput for weight <= 0, unknown purity or unusable charges."""
        weight = to_decimal(weight_grams)
        if not weight.is_finite() or weight <= 0:
            raise InvalidInput("Weight must be greater than zero")
        if making_charge_type not in MAKING_CHARGE_TYPES:
            raise InvalidInput(f"Unknown making charge type: {making_charge_type!r}")
        return cls(
            weight_grams=weight,
            purity=parse_purity(purity),
            making_charge_pct=_non_negative("making_charge_pct", making_charge_pct),
            wastage_pct=_non_negative("wastage_pct", wastage_pct),
            category=category,
            making_charge_type=making_charge_type,
            making_charge_per_gram=_non_negative("making_charge_per_gram", making_charge_per_gram),
        )


@dataclass(frozen=True)
class PricingBreakdown:
    gold_rate: Decimal
    gold_value: Decimal
    making_charges: Decimal
    wastage_amount: Decimal
    subtotal: Decimal
    gst_rate: Decimal
    gst_amount: Decimal
    total_price: Decimal

    def as_dict(self) -> Dict[str, Decimal]:
        return asdict(self)


def lookup_rate(rates: Mapping, purity: Purity) -> Decimal:
    """Rate for a purity from a mapping keyed by Purity or its string value."""
    raw = rates.get(purity.value)
    if raw is None:
        raw = rates.get(purity)
    if raw is None:
        raise RateUnavailable(f"No rate available for {purity.value}", purity=purity.value)
    rate = to_decimal(raw)
    if rate <= 0:
        raise RateUnavailable(f"Invalid rate for {purity.value}: {raw}", purity=purity.value)
    return rate


def calculate_price(
    data: PricingInput,
    rates: Mapping,
    gst_rate: Decimal = DEFAULT_GST_RATE,
) -> PricingBreakdown:
    if data.weight_grams <= 0:
        raise InvalidInput("Weight must be greater than zero")
    purity = parse_purity(data.purity)
    rate = lookup_rate(rates, purity)

    gold_value = data.weight_grams * rate
    if data.making_charge_type == MAKING_FIXED:
        making_charges = data.weight_grams * data.making_charge_per_gram
    else:
        making_charges = gold_value * data.making_charge_pct / HUNDRED
    wastage_amount = gold_value * data.wastage_pct / HUNDRED
    subtotal = gold_value + making_charges + wastage_amount
    gst_amount = subtotal * gst_rate
    total_price = subtotal + gst_amount

    return PricingBreakdown(
        gold_rate=rate,
        gold_value=gold_value,
        making_charges=making_charges,
        wastage_amount=wastage_amount,
        subtotal=subtotal,
        gst_rate=gst_rate,
        gst_amount=gst_amount,
        total_price=total_price,
    )


def calculate_gst(amount, gst_rate: Decimal = DEFAULT_GST_RATE) -> Dict[str, Decimal]:
    value = _non_negative("amount", amount)
    gst_amount = value * gst_rate
    return {
        "amount": value,
        "gst_rate": gst_rate,
        "gst_amount": gst_amount,
        "total": value + gst_amount,
    }


def calculate_order_total(
    lines: Iterable[Mapping[str, Any]],
    gst_rate: Decimal = DEFAULT_GST_RATE,
) -> Dict[str, Decimal]:
    """
    Totals for order lines carrying quantity, unit_price and optional
    making_charges / wastage_amount. GST applies to the whole pre-tax sum.
    """
    subtotal = Decimal("0")
    making = Decimal("0")
    wastage = Decimal("0")
    for line in lines:
        quantity = to_decimal(line.get("quantity", 1))
        if not quantity.is_finite() or quantity <= 0:
            raise InvalidInput("Quantity must be greater than zero")
        subtotal += quantity * _non_negative("unit_price", line.get("unit_price"))
        making += _non_negative("making_charges", line.get("making_charges"))
        wastage += _non_negative("wastage_amount", line.get("wastage_amount"))

    before_gst = subtotal + making + wastage
    gst_amount = before_gst * gst_rate
    return {
        "subtotal": subtotal,
        "making_charges": making,
        "wastage_amount": wastage,
        "gst_amount": gst_amount,
        "total_amount": before_gst + gst_amount,
    }


def round_inr(value) -> Decimal:
    """Whole rupees, half-up."""
    return to_decimal(value).quantize(Decimal("1"), rounding=ROUND_HALF_UP)


def format_inr(value) -> str:
    """₹ with Indian digit grouping, e.g. 123456.5 -> ₹1,23,457."""
    rounded = round_inr(value)
    sign = "-" if rounded < 0 else ""
    digits = str(abs(int(rounded)))
    if len(digits) > 3:
        head, tail = digits[:-3], digits[-3:]
        groups = []
        while len(head) > 2:
            groups.insert(0, head[-2:])
            head = head[:-2]
        if head:
            groups.insert(0, head)
        digits = ",".join(groups + [tail])
    return f"{sign}₹{digits}"

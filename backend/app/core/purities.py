from decimal import Decimal
from enum import Enum

from app.core.errors import InvalidInput


class Purity(str, Enum):
    k22 = "22K"
    k18 = "18K"
    k14 = "14K"
    silver = "Silver"
    platinum = "Platinum"


ALL_PURITIES = [p.value for p in Purity]

# Fraction of fine gold, applied to the 24K spot rate
GOLD_FINENESS = {
    Purity.k22: Decimal("0.916"),
    Purity.k18: Decimal("0.750"),
    Purity.k14: Decimal("0.583"),
}

_LOOKUP = {p.value.lower(): p for p in Purity}


def parse_purity(value) -> Purity:
    """Case-insensitive purity lookup; raises InvalidInput for unknown keys."""
    if isinstance(value, Purity):
        return value
    key = str(value or "").strip().lower()
    purity = _LOOKUP.get(key)
    if purity is None:
        raise InvalidInput(f"Unknown purity: {value!r}")
    return purity

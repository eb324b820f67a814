"""
Generic serialization helpers. Formatting only, no business rules.
"""


def serialize_decimal(value):
    """Decimal -> float for JSON responses"""
    if value is None:
        return None
    return float(value)


def serialize_datetime(value):
    """datetime -> ISO string for JSON responses"""
    if value is None:
        return None
    return value.isoformat()

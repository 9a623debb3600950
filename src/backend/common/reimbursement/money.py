from __future__ import annotations

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Optional

CENTS = Decimal("0.01")
TENTHS = Decimal("0.1")
HUNDRED = Decimal("100")


def to_decimal(value: Any, default: Optional[Decimal] = None) -> Optional[Decimal]:
    if value is None or value == "":
        return default
    if isinstance(value, Decimal):
        return value
    try:
        # str() keeps float inputs like 0.1 from carrying binary noise
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return default


def to_cents(value: Decimal) -> Decimal:
    return value.quantize(CENTS, rounding=ROUND_HALF_UP)


def format_money(value: Decimal) -> str:
    return f"${to_cents(value):,.2f}"

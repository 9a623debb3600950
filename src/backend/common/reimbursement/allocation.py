from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional

from .models import AllocationAmount, FundingCategory, StudentAllocation
from .money import HUNDRED, TENTHS, to_cents, to_decimal


def normalize_percentage(value: Any) -> Decimal:
    """Clamp a user-entered percentage to 0..100 with one decimal place."""
    pct = to_decimal(value, Decimal("0"))
    pct = max(Decimal("0"), min(HUNDRED, pct))
    return pct.quantize(TENTHS, rounding=ROUND_HALF_UP)


def calculated_amount_for(percentage: Decimal, total_amount: Decimal) -> Decimal:
    return to_cents((percentage / HUNDRED) * total_amount)


def compute_allocation_amount(
    percentage: Decimal,
    total_amount: Decimal,
    category: Optional[FundingCategory],
    remaining_budget: Decimal,
) -> AllocationAmount:
    """
    Dollar amount for one student's share of a purchase.

    `calculated_amount` is always the plain percentage of the total. When the
    category carries a funding limit, `amount` is clamped to that share of the
    student's remaining budget; `calculated_amount` keeps the unclamped value.
    """
    calculated = calculated_amount_for(percentage, total_amount)

    if category is None or not category.has_funding_limit:
        return AllocationAmount(calculated_amount=calculated, amount=calculated, is_limited=False)

    cap = to_cents(remaining_budget * category.limit_fraction)
    amount = min(calculated, cap)
    return AllocationAmount(calculated_amount=calculated, amount=amount, is_limited=calculated > cap)


def apply_allocation_amount(
    allocation: StudentAllocation,
    *,
    total_amount: Decimal,
    category: Optional[FundingCategory],
    remaining_budget: Decimal,
) -> StudentAllocation:
    """Return a copy of `allocation` with amount fields recomputed from its percentage."""
    percentage = normalize_percentage(allocation.percentage)
    result = compute_allocation_amount(percentage, total_amount, category, remaining_budget)
    return allocation.model_copy(
        update={
            "percentage": percentage,
            "calculated_amount": result.calculated_amount,
            "amount": result.amount,
            "is_limited": result.is_limited,
        }
    )

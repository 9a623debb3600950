from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import TYPE_CHECKING, Dict, List, Mapping, Optional, Sequence

from .config import ClaimRulesConfig

if TYPE_CHECKING:
    from common.reimbursement.models import (
        FundingCategory,
        ReimbursementClaim,
        StudentAllocation,
        StudentBudget,
    )


@dataclass(frozen=True)
class ClaimContext:
    claim: "ReimbursementClaim"
    student_budgets: Mapping[str, "StudentBudget"] = field(default_factory=dict)
    student_categories: Mapping[str, Sequence["FundingCategory"]] = field(default_factory=dict)
    rules_config: ClaimRulesConfig = field(default_factory=ClaimRulesConfig)

    @property
    def allocations(self) -> List["StudentAllocation"]:
        return list(self.claim.student_allocations)

    def get_budget(self, student_id: str) -> Optional["StudentBudget"]:
        return self.student_budgets.get(student_id)

    def get_category(self, allocation: "StudentAllocation") -> Optional["FundingCategory"]:
        key = allocation.category_key
        if not key:
            return None
        for category in self.student_categories.get(allocation.student_id, ()):
            if category.key == key:
                return category
        return None

    def categories_by_student(self) -> Dict[str, List[str]]:
        return {sid: [c.key for c in cats] for sid, cats in self.student_categories.items()}


def quantize_amount(value: Decimal, quantize: Optional[Decimal]) -> Decimal:
    if quantize is None:
        return value
    return value.quantize(quantize, rounding=ROUND_HALF_UP)

from __future__ import annotations

from decimal import Decimal
from typing import List

from ..config import AmountRuleConfig
from ..context import ClaimContext, quantize_amount
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_WITHIN_REMAINING_BUDGET(Rule):
    rule_id = "ALLOCATION-WITHIN-REMAINING-BUDGET"
    rule_title = "Allocated amount fits the student's remaining annual budget"
    field = "amount"
    config_model = AmountRuleConfig

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, AmountRuleConfig)
        if not cfg.enabled:
            return []

        errors: List[ValidationError] = []
        for allocation in ctx.allocations:
            budget = ctx.get_budget(allocation.student_id)
            # No loaded budget means nothing is left to allocate.
            remaining = quantize_amount(budget.remaining if budget is not None else Decimal("0"), cfg.amount_quantize)
            amount = quantize_amount(allocation.amount, cfg.amount_quantize)
            if amount > remaining:
                errors.append(
                    self.error(
                        "exceeds_remaining_budget",
                        f"Amount exceeds remaining budget of ${remaining:.2f}",
                        student_id=allocation.student_id,
                        values={"amount": str(amount), "remaining": str(remaining)},
                    )
                )
        return errors

from __future__ import annotations

from typing import List

from common.reimbursement.allocation import calculated_amount_for

from ..config import AmountRuleConfig
from ..context import ClaimContext, quantize_amount
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_WITHIN_CATEGORY_LIMIT(Rule):
    """Reject shares that exceed a limited category's portion of the annual budget.

    The unclamped amount is re-derived from percentage and total rather than
    trusting a stored `calculated_amount`, so a share the form silently clamped
    still blocks submission here.
    """

    rule_id = "ALLOCATION-WITHIN-CATEGORY-LIMIT"
    rule_title = "Limited categories stay within their share of the student's funding"
    field = "amount"
    config_model = AmountRuleConfig

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, AmountRuleConfig)
        if not cfg.enabled:
            return []

        total = ctx.claim.purchase_info.total_amount
        errors: List[ValidationError] = []
        for allocation in ctx.allocations:
            category = ctx.get_category(allocation)
            budget = ctx.get_budget(allocation.student_id)
            if category is None or not category.has_funding_limit or budget is None:
                continue

            calculated = calculated_amount_for(allocation.percentage, total)
            max_allowed = quantize_amount(budget.limit * category.limit_fraction, cfg.amount_quantize)
            if calculated > max_allowed:
                pct = category.funding_limit_percentage.normalize()
                errors.append(
                    self.error(
                        "exceeds_category_limit",
                        f"Amount exceeds {pct:f}% funding limit of ${max_allowed:.2f} for this category",
                        student_id=allocation.student_id,
                        values={
                            "category": category.key,
                            "calculated_amount": str(calculated),
                            "max_allowed": str(max_allowed),
                            "funding_limit_percentage": str(category.funding_limit_percentage),
                        },
                    )
                )
        return errors

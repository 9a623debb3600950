from __future__ import annotations

from typing import List

from ..config import RuleConfigBase
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_PERCENTAGE_POSITIVE(Rule):
    rule_id = "ALLOCATION-PERCENTAGE-POSITIVE"
    rule_title = "Each selected student receives a positive share of the purchase"
    field = "percentage"
    config_model = RuleConfigBase

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, RuleConfigBase)
        if not cfg.enabled:
            return []

        return [
            self.error(
                "not_positive",
                "Percentage must be greater than 0",
                student_id=allocation.student_id,
                values={"percentage": str(allocation.percentage)},
            )
            for allocation in ctx.allocations
            if allocation.percentage is None or allocation.percentage <= 0
        ]

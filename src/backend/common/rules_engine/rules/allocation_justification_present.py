from __future__ import annotations

from typing import List

from ..config import RuleConfigBase
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_JUSTIFICATION_PRESENT(Rule):
    rule_id = "ALLOCATION-JUSTIFICATION-PRESENT"
    rule_title = "Each allocation explains how the purchase serves the student"
    field = "categoryJustification"
    config_model = RuleConfigBase

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, RuleConfigBase)
        if not cfg.enabled:
            return []

        return [
            self.error("required", "Justification is required", student_id=allocation.student_id)
            for allocation in ctx.allocations
            if not (allocation.category_justification or "").strip()
        ]

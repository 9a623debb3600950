from __future__ import annotations

from typing import List

from ..config import RuleConfigBase
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_CATEGORY_SELECTED(Rule):
    rule_id = "ALLOCATION-CATEGORY-SELECTED"
    rule_title = "Each allocation names a category from the student's program plan"
    field = "soloCategories"
    config_model = RuleConfigBase

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, RuleConfigBase)
        if not cfg.enabled:
            return []

        errors: List[ValidationError] = []
        for allocation in ctx.allocations:
            key = allocation.category_key
            if not key:
                errors.append(
                    self.error(
                        "required",
                        "A program plan category is required",
                        student_id=allocation.student_id,
                    )
                )
                continue

            # Only students with a loaded plan can be checked for membership.
            if allocation.student_id in ctx.student_categories and ctx.get_category(allocation) is None:
                errors.append(
                    self.error(
                        "not_in_plan",
                        "Selected category is not part of this student's program plan",
                        student_id=allocation.student_id,
                        values={
                            "category": key,
                            "plan_categories": ctx.categories_by_student().get(allocation.student_id, []),
                        },
                    )
                )
        return errors

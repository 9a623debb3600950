from __future__ import annotations

from typing import List

from ..config import PercentageTotalRuleConfig
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class ALLOCATION_PERCENTAGES_TOTAL(Rule):
    rule_id = "ALLOCATION-PERCENTAGES-TOTAL"
    rule_title = "Student percentages add up to the whole purchase"
    field = "percentages"
    config_model = PercentageTotalRuleConfig

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, PercentageTotalRuleConfig)
        if not cfg.enabled:
            return []

        total = ctx.claim.total_percentage()
        if abs(total - cfg.expected_total) <= cfg.tolerance:
            return []

        # Claim-level: at most one error regardless of how many allocations are off.
        return [
            self.error(
                "total_mismatch",
                f"Percentages must total {cfg.expected_total:f}%. Current total: {total:.1f}%",
                values={"total": str(total), "expected": str(cfg.expected_total)},
            )
        ]

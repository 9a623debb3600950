from __future__ import annotations

from typing import List

from ..config import RuleConfigBase
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class CLAIM_PURCHASE_INFO_COMPLETE(Rule):
    rule_id = "CLAIM-PURCHASE-INFO-COMPLETE"
    rule_title = "Purchase details, receipt and at least one student are provided"
    field = "purchaseInfo"
    config_model = RuleConfigBase

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, RuleConfigBase)
        if not cfg.enabled:
            return []

        claim = ctx.claim
        info = claim.purchase_info
        errors: List[ValidationError] = []

        if info.purchase_date is None:
            errors.append(self.error("required", "Purchase date is required", field="purchaseDate"))
        if not info.vendor.strip():
            errors.append(self.error("required", "Vendor name is required", field="vendor"))
        if info.total_amount is None or info.total_amount <= 0:
            errors.append(
                self.error(
                    "invalid_total",
                    "Valid total amount is required",
                    field="totalAmount",
                    values={"total_amount": str(info.total_amount)},
                )
            )
        if not info.description.strip():
            errors.append(self.error("required", "Purchase description is required", field="description"))
        if not claim.receipts:
            errors.append(self.error("required", "A receipt is required", field="receipts"))
        if not claim.student_allocations:
            errors.append(self.error("required", "At least one student must be selected", field="students"))

        return errors

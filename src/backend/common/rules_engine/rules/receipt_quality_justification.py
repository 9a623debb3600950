from __future__ import annotations

from typing import List

from ..config import ReceiptQualityRuleConfig
from ..context import ClaimContext
from ..models import ValidationError
from ..registry import register_rule
from ..rule import Rule


@register_rule
class RECEIPT_QUALITY_JUSTIFICATION(Rule):
    rule_id = "RECEIPT-QUALITY-JUSTIFICATION"
    rule_title = "Low-quality receipts carry a written manual justification"
    field = "manualValidationNotes"
    config_model = ReceiptQualityRuleConfig

    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:
        cfg = ctx.rules_config.get_rule_config(self.rule_id, ReceiptQualityRuleConfig)
        if not cfg.enabled:
            return []

        analysis = ctx.claim.ai_analysis
        # A failed analysis means manual entry; the score carries no signal then.
        if analysis is None or analysis.failed:
            return []
        if analysis.validation_score >= cfg.min_validation_score:
            return []

        notes = (ctx.claim.manual_validation_notes or "").strip()
        values = {
            "validation_score": analysis.validation_score,
            "min_validation_score": cfg.min_validation_score,
            "notes_length": len(notes),
        }
        if not notes:
            return [
                self.error(
                    "required",
                    "Manual validation explanation is required for this document",
                    values=values,
                )
            ]
        if len(notes) < cfg.min_notes_length:
            return [
                self.error(
                    "too_short",
                    f"Please provide a more detailed explanation (at least {cfg.min_notes_length} characters)",
                    values=values,
                )
            ]
        return []

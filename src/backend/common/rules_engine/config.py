from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, Optional, Type, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T", bound=BaseModel)


class RuleConfigBase(BaseModel):
    enabled: bool = True


class PercentageTotalRuleConfig(RuleConfigBase):
    expected_total: Decimal = Decimal("100")
    # Absolute slack allowed around the expected total.
    tolerance: Decimal = Decimal("0.01")


class ReceiptQualityRuleConfig(RuleConfigBase):
    # Receipts scoring below this require a written manual justification.
    min_validation_score: int = 50
    min_notes_length: int = 50


class AmountRuleConfig(RuleConfigBase):
    # Quantization for money comparisons; None compares exactly.
    amount_quantize: Optional[Decimal] = Decimal("0.01")


class ClaimRulesConfig(BaseModel):
    """Per-deployment configuration for all claim validation rules.

    Rules pull their typed config via `get_rule_config`.
    """

    rules: Dict[str, Dict[str, Any]] = Field(default_factory=dict)

    def get_rule_config(
        self,
        rule_id: str,
        model: Type[T],
        default: Optional[T] = None,
    ) -> T:
        if rule_id not in self.rules:
            if default is not None:
                return default
            return model()  # type: ignore[call-arg]
        raw = self.rules.get(rule_id, {})
        return model.model_validate(raw)

    def with_rule(self, rule_id: str, **values: Any) -> "ClaimRulesConfig":
        merged = dict(self.rules)
        merged[rule_id] = {**merged.get(rule_id, {}), **values}
        return ClaimRulesConfig(rules=merged)

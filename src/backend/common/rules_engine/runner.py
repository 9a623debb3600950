from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Iterable, List, Mapping, Optional, Sequence

from .config import ClaimRulesConfig
from .context import ClaimContext
from .models import ValidationError, ValidationReport
from .registry import registry

logger = logging.getLogger(__name__)


class ClaimValidator:
    def __init__(self, rules: Optional[Iterable] = None, *, rule_ids: Optional[Iterable[str]] = None):
        self._rules = list(rules) if rules is not None else registry.create_all(rule_ids)

    def run(self, ctx: ClaimContext, *, rule_ids: Optional[set[str]] = None) -> ValidationReport:
        errors: List[ValidationError] = []
        totals: dict[str, int] = {}
        for rule in self._rules:
            if rule_ids is not None and rule.rule_id not in rule_ids:
                continue
            # Every rule runs; one failing check never hides another.
            found = rule.evaluate(ctx)
            if found:
                totals[rule.rule_id] = len(found)
                errors.extend(found)

        report = ValidationReport(
            run_id=str(uuid.uuid4()),
            generated_at=datetime.now(timezone.utc),
            claim_id=ctx.claim.claim_id,
            errors=errors,
            totals=totals,
        )
        if errors:
            logger.info(
                "Claim %s failed validation: %s",
                ctx.claim.claim_id or "<new>",
                ", ".join(sorted(totals)),
            )
        return report


def validate_claim(
    claim,
    student_budgets: Mapping,
    student_categories: Mapping[str, Sequence],
    *,
    config: Optional[ClaimRulesConfig] = None,
    rule_ids: Optional[Iterable[str]] = None,
) -> List[ValidationError]:
    """Run the claim rules (all, or only `rule_ids`); an empty list means the claim may be submitted."""
    ctx = ClaimContext(
        claim=claim,
        student_budgets=student_budgets,
        student_categories=student_categories,
        rules_config=config or ClaimRulesConfig(),
    )
    return ClaimValidator(rule_ids=rule_ids).run(ctx).errors

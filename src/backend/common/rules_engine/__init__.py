"""Registry-driven validation rules for reimbursement claims.

Rules only see the claim, the derived student budgets and the program-plan
categories handed to them; no store or network access lives here.
"""

from .models import ValidationError, ValidationReport
from .config import ClaimRulesConfig, RuleConfigBase
from .context import ClaimContext
from .runner import ClaimValidator, validate_claim

# Import built-in rules so they self-register with the global registry.
from . import rules as _builtin_rules  # noqa: F401

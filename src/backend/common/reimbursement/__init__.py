"""Reimbursement allocation rules: budgets, category caps, claim submission.

The store-backed engine is imported from `common.reimbursement.engine` directly.
"""

from .models import (
    AllocationAmount,
    ClaimStatus,
    FundingCategory,
    FundingType,
    PurchaseInfo,
    ReceiptAnalysis,
    ReceiptFile,
    ReimbursementClaim,
    ReviewPriority,
    StudentAllocation,
    StudentBudget,
)
from .allocation import apply_allocation_amount, compute_allocation_amount, normalize_percentage
from .budget import build_student_budget, funding_limit_for_grade, funding_type_for_grade, remaining_budget
from .categories import categories_from_program_plan
from .eligibility import calculate_prorated_allocation, determine_funding_eligibility
from .status import can_transition, transition
from .receipts import check_receipt_upload, requires_manual_review_for, review_priority_for

__all__ = [
    "AllocationAmount",
    "ClaimStatus",
    "FundingCategory",
    "FundingType",
    "PurchaseInfo",
    "ReceiptAnalysis",
    "ReceiptFile",
    "ReimbursementClaim",
    "ReviewPriority",
    "StudentAllocation",
    "StudentBudget",
    "apply_allocation_amount",
    "build_student_budget",
    "calculate_prorated_allocation",
    "can_transition",
    "categories_from_program_plan",
    "check_receipt_upload",
    "compute_allocation_amount",
    "determine_funding_eligibility",
    "funding_limit_for_grade",
    "funding_type_for_grade",
    "normalize_percentage",
    "remaining_budget",
    "requires_manual_review_for",
    "review_priority_for",
    "transition",
]

from __future__ import annotations

from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ClaimStatus(str, Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    PAID = "paid"
    REJECTED = "rejected"


# Statuses whose allocations count against a student's annual budget.
SPENT_STATUSES = (ClaimStatus.APPROVED, ClaimStatus.PAID)


class ReviewPriority(str, Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class FundingType(str, Enum):
    KINDERGARTEN = "kindergarten"
    GRADES_1_12 = "grades_1_12"


class FundingCategory(BaseModel):
    key: str
    name: str = ""
    description: str = ""
    section: str = "Resources and Materials"
    has_funding_limit: bool = False
    funding_limit_percentage: Decimal = Decimal("100")

    @property
    def limit_fraction(self) -> Decimal:
        return self.funding_limit_percentage / Decimal("100")


class PurchaseInfo(BaseModel):
    purchase_date: Optional[date] = None
    vendor: str = ""
    total_amount: Decimal = Decimal("0")
    tax_amount: Optional[Decimal] = None
    description: str = ""


class ReceiptFile(BaseModel):
    file_id: str
    file_name: str
    file_url: str = ""
    file_type: str = ""
    file_size: int = 0
    uploaded_at: Optional[str] = None


class ReceiptLineItem(BaseModel):
    description: str = ""
    amount: Optional[Decimal] = None
    is_educational: bool = False
    confidence: float = 0.0


class SuggestedAllocation(BaseModel):
    student_id: str
    student_name: str = ""
    suggested_category: Optional[str] = None
    suggested_justification: str = ""
    confidence: float = 0.0
    relevant_items: List[str] = Field(default_factory=list)


class ReceiptAnalysis(BaseModel):
    """Output of the external receipt-analysis service, treated as opaque input."""

    receipt_id: Optional[str] = None
    mixed: bool = False
    failed: bool = False
    error: Optional[str] = None

    validation_score: int = 0
    review_priority: Optional[ReviewPriority] = None
    requires_manual_review: bool = False
    category_mismatch_warning: Optional[str] = None

    vendor: Optional[str] = None
    purchase_date: Optional[date] = None
    total_amount: Optional[Decimal] = None
    tax_amount: Optional[Decimal] = None
    purchase_description: Optional[str] = None

    items: List[ReceiptLineItem] = Field(default_factory=list)
    educational_total: Optional[Decimal] = None
    recommended_claim_amount: Optional[Decimal] = None
    suggested_allocations: List[SuggestedAllocation] = Field(default_factory=list)

    raw: Dict[str, Any] = Field(default_factory=dict)


class StudentAllocation(BaseModel):
    student_id: str
    student_name: str = ""
    percentage: Decimal = Decimal("0")
    amount: Decimal = Decimal("0")
    calculated_amount: Optional[Decimal] = None
    is_limited: bool = False
    solo_categories: List[str] = Field(default_factory=list)
    category_justification: str = ""
    is_ai_suggested: bool = False
    ai_confidence: Optional[float] = None

    @property
    def category_key(self) -> Optional[str]:
        return self.solo_categories[0] if self.solo_categories else None


class ReimbursementClaim(BaseModel):
    claim_id: Optional[str] = None
    family_id: str
    school_year: str

    purchase_info: PurchaseInfo = Field(default_factory=PurchaseInfo)
    receipts: List[ReceiptFile] = Field(default_factory=list)
    student_allocations: List[StudentAllocation] = Field(default_factory=list)

    status: ClaimStatus = ClaimStatus.PENDING_REVIEW

    ai_analysis: Optional[ReceiptAnalysis] = None
    manual_validation_notes: Optional[str] = None
    requires_manual_review: bool = False
    review_priority: ReviewPriority = ReviewPriority.LOW
    has_manual_overrides: bool = False
    manual_entry_reason: Optional[str] = None

    submitted_at: Optional[int] = None
    submitted_by: Optional[str] = None
    last_updated: Optional[int] = None
    registrar_notes: Optional[str] = None

    def total_percentage(self) -> Decimal:
        return sum((a.percentage for a in self.student_allocations), Decimal("0"))


class StudentBudget(BaseModel):
    student_id: str
    limit: Decimal
    spent: Decimal = Decimal("0")
    remaining: Decimal
    grade: Optional[str] = None
    funding_type: FundingType = FundingType.GRADES_1_12
    funding_label: str = ""

    @property
    def percentage_used(self) -> Decimal:
        if not self.limit:
            return Decimal("0")
        return (self.spent / self.limit) * Decimal("100")


class AllocationAmount(BaseModel):
    calculated_amount: Decimal
    amount: Decimal
    is_limited: bool = False

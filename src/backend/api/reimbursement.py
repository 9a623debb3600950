from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from common.reimbursement.engine import ClaimSubmission, ReceiptUpload, ReimbursementAllocationEngine
from common.reimbursement.models import (
    AllocationAmount,
    ClaimStatus,
    FundingCategory,
    ReceiptAnalysis,
    ReceiptFile,
    ReimbursementClaim,
    StudentAllocation,
    StudentBudget,
)
from common.rules_engine.models import ValidationError

from .deps import get_reimbursement_engine


router = APIRouter(prefix="/reimbursement", tags=["reimbursement"])


class AllocationRequest(BaseModel):
    percentage: Decimal
    total_amount: Decimal
    category: Optional[FundingCategory] = None
    remaining_budget: Decimal


class ClaimBundle(BaseModel):
    """A claim plus the per-student context it is checked against.

    Budgets and categories omitted from the bundle are loaded from the store.
    Only the validate route accepts client-supplied context.
    """

    claim: ReimbursementClaim
    student_budgets: Optional[Dict[str, StudentBudget]] = None
    student_categories: Optional[Dict[str, List[FundingCategory]]] = None


class ClaimSubmissionRequest(BaseModel):
    """A claim to persist; its budgets and categories always come from the store."""

    claim: ReimbursementClaim
    submitted_by: str


class ValidationResult(BaseModel):
    valid: bool
    errors: List[ValidationError]


class ReceiptUploadRequest(BaseModel):
    file_name: str
    file_type: str
    file_size: int


class ReceiptAnalysisRequest(BaseModel):
    receipt: ReceiptFile
    student_plans: List[Dict[str, Any]] = Field(default_factory=list)
    mixed: bool = False


class ReceiptAnalysisResult(BaseModel):
    analysis: ReceiptAnalysis
    suggested_allocations: List[StudentAllocation]


class StatusChange(BaseModel):
    status: ClaimStatus
    registrar_notes: Optional[str] = None


def _resolve_context(engine: ReimbursementAllocationEngine, bundle: ClaimBundle):
    claim = bundle.claim
    student_ids = [a.student_id for a in claim.student_allocations]
    budgets = bundle.student_budgets
    if budgets is None:
        budgets = engine.student_budgets(claim.family_id, claim.school_year)
    categories = bundle.student_categories
    if categories is None:
        categories = engine.student_categories(claim.family_id, claim.school_year, student_ids)
    return budgets, categories


@router.post("/allocations/compute", response_model=AllocationAmount)
def compute_allocation(
    body: AllocationRequest,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    return engine.compute_allocation_amount(body.percentage, body.total_amount, body.category, body.remaining_budget)


@router.post("/claims/validate", response_model=ValidationResult)
def validate_claim(
    body: ClaimBundle,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    budgets, categories = _resolve_context(engine, body)
    claim = engine.recompute_allocations(body.claim, budgets, categories)
    errors = engine.validate_claim(claim, budgets, categories)
    return ValidationResult(valid=not errors, errors=errors)


@router.post("/claims", response_model=ClaimSubmission, status_code=201)
def submit_claim(
    body: ClaimSubmissionRequest,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    claim = body.claim
    budgets = engine.student_budgets(claim.family_id, claim.school_year)
    categories = engine.student_categories(
        claim.family_id, claim.school_year, [a.student_id for a in claim.student_allocations]
    )
    result = engine.submit_claim(claim, budgets, categories, submitted_by=body.submitted_by)
    if not result.submitted:
        return JSONResponse(status_code=422, content=result.model_dump(mode="json"))
    return result


@router.get("/budgets/{family_id}/{school_year}", response_model=Dict[str, StudentBudget])
def student_budgets(
    family_id: str,
    school_year: str,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    return engine.student_budgets(family_id, school_year)


@router.post("/claims/{family_id}/{school_year}/{claim_id}/status", response_model=ReimbursementClaim)
def advance_claim_status(
    family_id: str,
    school_year: str,
    claim_id: str,
    body: StatusChange,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    return engine.advance_claim_status(
        family_id, school_year, claim_id, body.status, registrar_notes=body.registrar_notes
    )


@router.post("/receipts/{family_id}/{school_year}/uploads", response_model=ReceiptUpload)
def prepare_receipt_upload(
    family_id: str,
    school_year: str,
    body: ReceiptUploadRequest,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    result = engine.prepare_receipt_upload(family_id, school_year, body.file_name, body.file_type, body.file_size)
    if result.errors:
        return JSONResponse(status_code=422, content=result.model_dump(mode="json"))
    return result


@router.post("/receipts/analyze", response_model=ReceiptAnalysisResult)
def analyze_receipt(
    body: ReceiptAnalysisRequest,
    engine: ReimbursementAllocationEngine = Depends(get_reimbursement_engine),
):
    analysis = engine.analyze_receipt(body.receipt, body.student_plans, mixed=body.mixed)
    return ReceiptAnalysisResult(analysis=analysis, suggested_allocations=engine.suggest_allocations(analysis))

from __future__ import annotations

from datetime import date, datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from common.reimbursement.models import (
    ClaimStatus,
    PurchaseInfo,
    ReceiptFile,
    ReimbursementClaim,
    ReviewPriority,
    StudentAllocation,
)
from common.reimbursement.money import to_cents, to_decimal

from .receipt_analysis import analysis_from_record, analysis_to_record


class ReimbursementAdapterError(ValueError):
    pass


def _as_list(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return [r for r in raw if r is not None]
    if isinstance(raw, Mapping):
        return list(raw.values())
    return []


def _parse_date(raw: Any) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError as exc:
        raise ReimbursementAdapterError(f"Invalid purchase date {raw!r}") from exc


def _money(value) -> Optional[float]:
    return None if value is None else float(to_cents(value))


def purchase_info_from_record(raw: Any) -> PurchaseInfo:
    raw = raw if isinstance(raw, Mapping) else {}
    return PurchaseInfo(
        purchase_date=_parse_date(raw.get("date")),
        vendor=str(raw.get("vendor") or ""),
        total_amount=to_decimal(raw.get("totalAmount"), to_decimal(0)),
        tax_amount=to_decimal(raw.get("taxAmount")),
        description=str(raw.get("description") or ""),
    )


def receipt_from_record(raw: Mapping[str, Any]) -> ReceiptFile:
    return ReceiptFile(
        file_id=str(raw.get("fileId") or ""),
        file_name=str(raw.get("fileName") or ""),
        file_url=str(raw.get("fileUrl") or ""),
        file_type=str(raw.get("fileType") or ""),
        file_size=int(raw.get("fileSize") or 0),
        uploaded_at=raw.get("uploadedAt"),
    )


def allocation_from_record(raw: Mapping[str, Any]) -> StudentAllocation:
    if raw.get("studentId") is None:
        raise ReimbursementAdapterError("Student allocation is missing studentId.")
    zero = to_decimal(0)
    return StudentAllocation(
        student_id=str(raw["studentId"]),
        student_name=str(raw.get("studentName") or ""),
        percentage=to_decimal(raw.get("percentage"), zero),
        amount=to_decimal(raw.get("amount"), zero),
        calculated_amount=to_decimal(raw.get("calculatedAmount")),
        is_limited=bool(raw.get("isLimited")),
        solo_categories=[str(c) for c in _as_list(raw.get("soloCategories"))],
        category_justification=str(raw.get("categoryJustification") or ""),
        is_ai_suggested=bool(raw.get("isAISuggested")),
        ai_confidence=raw.get("aiConfidence"),
    )


def claim_from_record(
    raw: Mapping[str, Any],
    *,
    claim_id: Optional[str] = None,
    family_id: Optional[str] = None,
    school_year: Optional[str] = None,
) -> ReimbursementClaim:
    if not isinstance(raw, Mapping):
        raise ReimbursementAdapterError("Claim record must be a JSON object.")

    analysis_raw = raw.get("aiAnalysis")
    try:
        status = ClaimStatus(raw.get("status") or ClaimStatus.PENDING_REVIEW.value)
        priority = ReviewPriority(raw.get("reviewPriority") or ReviewPriority.LOW.value)
    except ValueError as exc:
        raise ReimbursementAdapterError(str(exc)) from exc

    return ReimbursementClaim(
        claim_id=claim_id or raw.get("claimId"),
        family_id=str(family_id or raw.get("familyId") or ""),
        school_year=str(school_year or raw.get("schoolYear") or ""),
        purchase_info=purchase_info_from_record(raw.get("purchaseInfo")),
        receipts=[receipt_from_record(r) for r in _as_list(raw.get("receipts")) if isinstance(r, Mapping)],
        student_allocations=[
            allocation_from_record(a) for a in _as_list(raw.get("studentAllocations")) if isinstance(a, Mapping)
        ],
        status=status,
        ai_analysis=analysis_from_record(analysis_raw) if isinstance(analysis_raw, Mapping) else None,
        manual_validation_notes=raw.get("manualValidationNotes"),
        requires_manual_review=bool(raw.get("requiresManualReview")),
        review_priority=priority,
        has_manual_overrides=bool(raw.get("hasManualOverrides")),
        manual_entry_reason=raw.get("manualEntryReason"),
        submitted_at=raw.get("submittedAt"),
        submitted_by=raw.get("submittedBy"),
        last_updated=raw.get("lastUpdated"),
        registrar_notes=raw.get("registrarNotes"),
    )


def claims_from_node(node: Any, *, family_id: str, school_year: str) -> List[ReimbursementClaim]:
    """All claims stored under one family/school-year node, keyed by push id."""
    if not isinstance(node, Mapping):
        return []
    return [
        claim_from_record(raw, claim_id=key, family_id=family_id, school_year=school_year)
        for key, raw in node.items()
        if isinstance(raw, Mapping)
    ]


def allocation_to_record(allocation: StudentAllocation) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "studentId": allocation.student_id,
        "studentName": allocation.student_name,
        "percentage": float(allocation.percentage),
        "amount": _money(allocation.amount),
        "calculatedAmount": _money(allocation.calculated_amount),
        "isLimited": allocation.is_limited,
        "soloCategories": list(allocation.solo_categories),
        "categoryJustification": allocation.category_justification,
        "isAISuggested": allocation.is_ai_suggested,
        "aiConfidence": allocation.ai_confidence,
    }
    return {k: v for k, v in record.items() if v is not None}


def claim_to_record(claim: ReimbursementClaim) -> Dict[str, Any]:
    info = claim.purchase_info
    purchase = {
        "date": info.purchase_date.isoformat() if info.purchase_date else None,
        "vendor": info.vendor,
        "totalAmount": _money(info.total_amount),
        "taxAmount": _money(info.tax_amount),
        "description": info.description,
    }
    record: Dict[str, Any] = {
        "claimId": claim.claim_id,
        "familyId": claim.family_id,
        "schoolYear": claim.school_year,
        "purchaseInfo": {k: v for k, v in purchase.items() if v is not None},
        "receipts": [
            {
                k: v
                for k, v in {
                    "fileId": r.file_id,
                    "fileName": r.file_name,
                    "fileUrl": r.file_url,
                    "fileType": r.file_type,
                    "fileSize": r.file_size,
                    "uploadedAt": r.uploaded_at,
                }.items()
                if v is not None
            }
            for r in claim.receipts
        ],
        "studentAllocations": [allocation_to_record(a) for a in claim.student_allocations],
        "status": claim.status.value,
        "aiAnalysis": analysis_to_record(claim.ai_analysis) if claim.ai_analysis else None,
        "manualValidationNotes": claim.manual_validation_notes,
        "requiresManualReview": claim.requires_manual_review,
        "reviewPriority": claim.review_priority.value,
        "hasManualOverrides": claim.has_manual_overrides,
        "manualEntryReason": claim.manual_entry_reason,
        "submittedAt": claim.submitted_at,
        "submittedBy": claim.submitted_by,
        "lastUpdated": claim.last_updated,
        "registrarNotes": claim.registrar_notes,
    }
    return {k: v for k, v in record.items() if v is not None}


def students_from_node(node: Any) -> List[Dict[str, Any]]:
    """Family students node (list or push-key map) as a list of records with string ids."""
    students: List[Dict[str, Any]] = []
    items = node.items() if isinstance(node, Mapping) else enumerate(_as_list(node))
    for key, raw in items:
        if not isinstance(raw, Mapping):
            continue
        student = dict(raw)
        student["id"] = str(raw.get("id", key))
        students.append(student)
    return students


def student_birthday(student: Mapping[str, Any]) -> Optional[date]:
    raw = student.get("birthday")
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError as exc:
        raise ReimbursementAdapterError(f"Invalid birthday {raw!r} for student {student.get('id')}") from exc


def registered_at_from_record(raw: Any) -> Optional[datetime]:
    """`registeredAt` of a PASI registration: epoch millis or ISO-8601 text (naive values are UTC)."""
    value = raw.get("registeredAt") if isinstance(raw, Mapping) else None
    if value is None or value == "":
        return None
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    try:
        parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError as exc:
        raise ReimbursementAdapterError(f"Invalid registeredAt {value!r}") from exc
    return parsed if parsed.tzinfo is not None else parsed.replace(tzinfo=timezone.utc)

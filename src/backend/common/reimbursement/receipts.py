from __future__ import annotations

import re
from typing import List, Optional

from common.rules_engine.models import ValidationError
from common.school_year import to_db_key
from common.settings import ReimbursementSettings

from .models import ReceiptAnalysis, ReviewPriority, StudentAllocation

RECEIPT_UPLOAD_RULE_ID = "RECEIPT-UPLOAD-CONSTRAINTS"
RECEIPT_STORAGE_ROOT = "rtdAcademy/reimbursementReceipts"

# Suggestions below this confidence are shown but never pre-filled.
MIN_SUGGESTION_CONFIDENCE = 0.7

_UNSAFE_NAME_CHARS = re.compile(r"[/\\#?\[\]]")


def check_receipt_upload(
    file_name: str,
    file_type: str,
    file_size: int,
    settings: ReimbursementSettings,
) -> List[ValidationError]:
    errors: List[ValidationError] = []
    if file_type not in settings.receipt_allowed_types:
        errors.append(
            ValidationError(
                rule_id=RECEIPT_UPLOAD_RULE_ID,
                code="unsupported_type",
                field="receipts",
                message=f"File type {file_type} not supported. Please use JPG, PNG, WEBP, or PDF.",
                values={"file_type": file_type, "allowed": list(settings.receipt_allowed_types)},
            )
        )
    if file_size > settings.receipt_max_bytes:
        max_mb = settings.receipt_max_bytes // (1024 * 1024)
        errors.append(
            ValidationError(
                rule_id=RECEIPT_UPLOAD_RULE_ID,
                code="too_large",
                field="receipts",
                message=f"File {file_name} is too large. Maximum size is {max_mb}MB.",
                values={"file_size": file_size, "max_bytes": settings.receipt_max_bytes},
            )
        )
    return errors


def receipt_file_id(timestamp_ms: int) -> str:
    return f"receipt_{timestamp_ms}"


def receipt_storage_path(family_id: str, school_year: str, file_name: str, timestamp_ms: int) -> str:
    safe_name = _UNSAFE_NAME_CHARS.sub("_", file_name)
    return f"{RECEIPT_STORAGE_ROOT}/{family_id}/{to_db_key(school_year)}/{receipt_file_id(timestamp_ms)}_{safe_name}"


def review_priority_for(analysis: Optional[ReceiptAnalysis], manual_entry: bool = False) -> ReviewPriority:
    if manual_entry:
        return ReviewPriority.HIGH
    if analysis is None:
        return ReviewPriority.LOW
    if analysis.category_mismatch_warning:
        return ReviewPriority.HIGH
    if analysis.review_priority is not None:
        return analysis.review_priority
    if analysis.validation_score < 30:
        return ReviewPriority.HIGH
    if analysis.validation_score < 70:
        return ReviewPriority.MEDIUM
    return ReviewPriority.LOW


def requires_manual_review_for(
    analysis: Optional[ReceiptAnalysis],
    manual_entry: bool,
    settings: ReimbursementSettings,
) -> bool:
    if manual_entry:
        return True
    if analysis is None:
        return False
    return bool(
        analysis.requires_manual_review
        or analysis.validation_score < settings.min_receipt_validation_score
        or analysis.category_mismatch_warning
    )


def suggested_allocations(
    analysis: ReceiptAnalysis,
    *,
    min_confidence: float = MIN_SUGGESTION_CONFIDENCE,
) -> List[StudentAllocation]:
    """Pre-filled allocations for confident category suggestions; percentages are left for the family."""
    allocations: List[StudentAllocation] = []
    for suggestion in analysis.suggested_allocations:
        category = suggestion.suggested_category
        if not category or category == "null":
            continue
        if suggestion.confidence < min_confidence:
            continue
        allocations.append(
            StudentAllocation(
                student_id=suggestion.student_id,
                student_name=suggestion.student_name,
                solo_categories=[category],
                category_justification=suggestion.suggested_justification,
                is_ai_suggested=True,
                ai_confidence=suggestion.confidence,
            )
        )
    return allocations

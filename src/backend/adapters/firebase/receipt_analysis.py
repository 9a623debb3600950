from __future__ import annotations

from datetime import date
from typing import Any, Dict, List, Mapping, Optional

from common.reimbursement.models import (
    ReceiptAnalysis,
    ReceiptLineItem,
    ReviewPriority,
    SuggestedAllocation,
)
from common.reimbursement.money import to_cents, to_decimal


def _parse_date(raw: Any) -> Optional[date]:
    if not raw:
        return None
    try:
        return date.fromisoformat(str(raw)[:10])
    except ValueError:
        # Extraction is best-effort; an unreadable date is left for the family to enter.
        return None


def _parse_priority(raw: Any) -> Optional[ReviewPriority]:
    try:
        return ReviewPriority(str(raw).lower()) if raw else None
    except ValueError:
        return None


def _parse_score(raw: Any) -> int:
    score = to_decimal(raw)
    if score is None:
        return 0
    return max(0, min(100, int(score)))


def _as_list(raw: Any) -> List[Any]:
    if isinstance(raw, list):
        return raw
    if isinstance(raw, Mapping):
        return list(raw.values())
    return []


def _line_items(raw: Any) -> List[ReceiptLineItem]:
    items: List[ReceiptLineItem] = []
    for item in _as_list(raw):
        if not isinstance(item, Mapping):
            continue
        items.append(
            ReceiptLineItem(
                description=str(item.get("description") or ""),
                amount=to_decimal(item.get("amount")),
                is_educational=bool(item.get("isEducational")),
                confidence=float(item.get("confidence") or 0),
            )
        )
    return items


def _suggestions(raw: Any) -> List[SuggestedAllocation]:
    suggestions: List[SuggestedAllocation] = []
    for entry in _as_list(raw):
        if not isinstance(entry, Mapping) or entry.get("studentId") is None:
            continue
        category = entry.get("suggestedCategory")
        suggestions.append(
            SuggestedAllocation(
                student_id=str(entry["studentId"]),
                student_name=str(entry.get("studentName") or ""),
                suggested_category=None if category in (None, "", "null") else str(category),
                suggested_justification=str(entry.get("suggestedJustification") or ""),
                confidence=float(entry.get("confidence") or 0),
                relevant_items=[str(i) for i in _as_list(entry.get("relevantItems"))],
            )
        )
    return suggestions


def failed_analysis(receipt_id: Optional[str], error: str) -> ReceiptAnalysis:
    """Placeholder stored when analysis fails; the claim proceeds with manual entry."""
    return ReceiptAnalysis(
        receipt_id=receipt_id,
        failed=True,
        error=error,
        validation_score=0,
        raw={"educationReasoning": "AI analysis failed - manual review required"},
    )


def analysis_from_payload(
    payload: Any,
    *,
    receipt_id: Optional[str] = None,
    mixed: bool = False,
) -> ReceiptAnalysis:
    """
    Convert a receipt-analysis reply (`{success, analysis, error}`) into a ReceiptAnalysis.

    Any unusable reply becomes a failed analysis rather than an exception.
    """
    if not isinstance(payload, Mapping):
        return failed_analysis(receipt_id, "Receipt analysis returned no data")
    if not payload.get("success"):
        return failed_analysis(receipt_id, str(payload.get("error") or "Analysis failed"))
    analysis = payload.get("analysis")
    if not isinstance(analysis, Mapping):
        return failed_analysis(receipt_id, "Receipt analysis returned no analysis")
    return analysis_from_record(analysis, receipt_id=receipt_id, mixed=mixed)


def analysis_from_record(
    raw: Mapping[str, Any],
    *,
    receipt_id: Optional[str] = None,
    mixed: Optional[bool] = None,
) -> ReceiptAnalysis:
    items = _line_items(raw.get("items"))
    is_mixed = bool(raw.get("mixed")) if mixed is None else mixed
    return ReceiptAnalysis(
        receipt_id=receipt_id or raw.get("receiptId"),
        mixed=is_mixed or bool(items),
        failed=bool(raw.get("failed")),
        error=raw.get("error"),
        validation_score=_parse_score(raw.get("validationScore")),
        review_priority=_parse_priority(raw.get("reviewPriority")),
        requires_manual_review=bool(raw.get("requiresManualReview")),
        category_mismatch_warning=raw.get("categoryMismatchWarning") or None,
        vendor=raw.get("vendor") or None,
        purchase_date=_parse_date(raw.get("purchaseDate")),
        total_amount=to_decimal(raw.get("totalAmount")),
        tax_amount=to_decimal(raw.get("taxAmount")),
        purchase_description=raw.get("purchaseDescription") or None,
        items=items,
        educational_total=to_decimal(raw.get("educationalTotal")),
        recommended_claim_amount=to_decimal(raw.get("recommendedClaimAmount")),
        suggested_allocations=_suggestions(raw.get("suggestedAllocations")),
        raw=dict(raw),
    )


def _money(value) -> Optional[float]:
    return None if value is None else float(to_cents(value))


def analysis_to_record(analysis: ReceiptAnalysis) -> Dict[str, Any]:
    record: Dict[str, Any] = dict(analysis.raw)
    record.update(
        {
            "receiptId": analysis.receipt_id,
            "mixed": analysis.mixed,
            "failed": analysis.failed,
            "error": analysis.error,
            "validationScore": analysis.validation_score,
            "reviewPriority": analysis.review_priority.value if analysis.review_priority else None,
            "requiresManualReview": analysis.requires_manual_review,
            "categoryMismatchWarning": analysis.category_mismatch_warning,
            "vendor": analysis.vendor,
            "purchaseDate": analysis.purchase_date.isoformat() if analysis.purchase_date else None,
            "totalAmount": _money(analysis.total_amount),
            "taxAmount": _money(analysis.tax_amount),
            "purchaseDescription": analysis.purchase_description,
            "educationalTotal": _money(analysis.educational_total),
            "recommendedClaimAmount": _money(analysis.recommended_claim_amount),
        }
    )
    if analysis.items:
        record["items"] = [
            {
                "description": item.description,
                "amount": _money(item.amount),
                "isEducational": item.is_educational,
                "confidence": item.confidence,
            }
            for item in analysis.items
        ]
    return {k: v for k, v in record.items() if v is not None}

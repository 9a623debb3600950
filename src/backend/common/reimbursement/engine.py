from __future__ import annotations

import logging
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import TYPE_CHECKING, Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field

from adapters.firebase.receipt_analysis import analysis_from_payload, failed_analysis
from adapters.firebase.reimbursement import (
    claim_from_record,
    claim_to_record,
    claims_from_node,
    registered_at_from_record,
    student_birthday,
    students_from_node,
)
from common.errors import RecordNotFound
from common.rules_engine.config import ClaimRulesConfig
from common.rules_engine.models import ValidationError
from common.rules_engine.runner import validate_claim
from common.school_year import SchoolYearCalendar, to_display
from common.settings import ReimbursementSettings, load_settings
from connectors.receipt_analysis.client import ReceiptAnalysisError, analyze_receipt
from connectors.receipt_analysis.config import ReceiptAnalysisConfig, get_receipt_analysis_config
from pipelines import paths

from .allocation import apply_allocation_amount, compute_allocation_amount
from .budget import build_student_budget, remaining_budget
from .categories import categories_from_program_plan
from .eligibility import calculate_prorated_allocation, determine_funding_eligibility
from .models import (
    AllocationAmount,
    ClaimStatus,
    FundingCategory,
    ReceiptAnalysis,
    ReceiptFile,
    ReimbursementClaim,
    StudentAllocation,
    StudentBudget,
)
from .money import to_cents
from .receipts import (
    check_receipt_upload,
    receipt_file_id,
    receipt_storage_path,
    requires_manual_review_for,
    review_priority_for,
    suggested_allocations,
)
from .status import transition

if TYPE_CHECKING:
    from pipelines.record_store import RecordStore

logger = logging.getLogger(__name__)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class ReceiptUpload(BaseModel):
    receipt: Optional[ReceiptFile] = None
    storage_path: Optional[str] = None
    errors: List[ValidationError] = Field(default_factory=list)


class ClaimSubmission(BaseModel):
    claim: ReimbursementClaim
    errors: List[ValidationError] = Field(default_factory=list)

    @property
    def submitted(self) -> bool:
        return not self.errors and self.claim.claim_id is not None


def rules_config_from_settings(settings: ReimbursementSettings) -> ClaimRulesConfig:
    return ClaimRulesConfig().with_rule(
        "RECEIPT-QUALITY-JUSTIFICATION",
        min_validation_score=settings.min_receipt_validation_score,
        min_notes_length=settings.min_manual_validation_notes_length,
    )


class ReimbursementAllocationEngine:
    """Budget, allocation and claim submission rules over a record store."""

    def __init__(
        self,
        store: "RecordStore",
        settings: Optional[ReimbursementSettings] = None,
        *,
        clock: Callable[[], int] = _epoch_millis,
        rules_config: Optional[ClaimRulesConfig] = None,
    ) -> None:
        self._store = store
        self._settings = settings or load_settings()
        self._clock = clock
        self._rules_config = rules_config or rules_config_from_settings(self._settings)

    @property
    def settings(self) -> ReimbursementSettings:
        return self._settings

    def calendar(self) -> SchoolYearCalendar:
        now = datetime.fromtimestamp(self._clock() / 1000, tz=timezone.utc)
        local = now.astimezone(ZoneInfo(self._settings.timezone))
        return SchoolYearCalendar(local.date(), receipt_deadline=self._settings.receipt_upload_deadline)

    # Pure rules

    def compute_allocation_amount(
        self,
        percentage: Decimal,
        total_amount: Decimal,
        category: Optional[FundingCategory],
        remaining: Decimal,
    ) -> AllocationAmount:
        return compute_allocation_amount(percentage, total_amount, category, remaining)

    def remaining_budget(
        self,
        student_id: str,
        school_year: str,
        claims: Iterable[ReimbursementClaim],
        grade: Any,
    ) -> Decimal:
        return remaining_budget(student_id, school_year, claims, grade, self._settings)

    def validate_claim(
        self,
        claim: ReimbursementClaim,
        student_budgets: Mapping[str, StudentBudget],
        student_categories: Mapping[str, Sequence[FundingCategory]],
        *,
        rule_ids: Optional[Iterable[str]] = None,
    ) -> List[ValidationError]:
        return validate_claim(
            claim, student_budgets, student_categories, config=self._rules_config, rule_ids=rule_ids
        )

    def recompute_allocations(
        self,
        claim: ReimbursementClaim,
        student_budgets: Mapping[str, StudentBudget],
        student_categories: Mapping[str, Sequence[FundingCategory]],
    ) -> ReimbursementClaim:
        """Re-derive every allocation's amounts from its percentage, category and remaining budget."""
        total = claim.purchase_info.total_amount
        allocations = []
        for allocation in claim.student_allocations:
            key = allocation.category_key
            category = next((c for c in student_categories.get(allocation.student_id, ()) if c.key == key), None)
            budget = student_budgets.get(allocation.student_id)
            remaining = budget.remaining if budget is not None else Decimal("0")
            allocations.append(
                apply_allocation_amount(
                    allocation,
                    total_amount=total,
                    category=category if budget is not None else None,
                    remaining_budget=remaining,
                )
            )
        return claim.model_copy(update={"student_allocations": allocations})

    def apply_receipt_analysis(
        self,
        payload: Any,
        *,
        receipt_id: Optional[str] = None,
        mixed: bool = False,
    ) -> ReceiptAnalysis:
        analysis = analysis_from_payload(payload, receipt_id=receipt_id, mixed=mixed)
        if analysis.failed:
            logger.warning("Receipt analysis failed for %s: %s", receipt_id, analysis.error)
        return analysis

    def analyze_receipt(
        self,
        receipt: ReceiptFile,
        student_plans: List[Dict[str, Any]],
        *,
        mixed: bool = False,
        config: Optional[ReceiptAnalysisConfig] = None,
    ) -> ReceiptAnalysis:
        """Run the external analysis for one uploaded receipt; service failures fall back to manual entry."""
        try:
            payload = analyze_receipt(
                config or get_receipt_analysis_config(),
                file_url=receipt.file_url,
                file_name=receipt.file_name,
                mime_type=receipt.file_type,
                student_plans=student_plans,
                mixed=mixed,
            )
        except ReceiptAnalysisError as exc:
            logger.warning("Receipt analysis unavailable for %s: %s", receipt.file_id, exc)
            return failed_analysis(receipt.file_id, str(exc))
        return self.apply_receipt_analysis(payload, receipt_id=receipt.file_id, mixed=mixed)

    def suggest_allocations(self, analysis: ReceiptAnalysis) -> List[StudentAllocation]:
        return suggested_allocations(analysis)

    def prepare_receipt_upload(
        self,
        family_id: str,
        school_year: str,
        file_name: str,
        file_type: str,
        file_size: int,
    ) -> ReceiptUpload:
        """Check an upload against the type and size limits and name the storage object it goes to."""
        errors = check_receipt_upload(file_name, file_type, file_size, self._settings)
        if errors:
            return ReceiptUpload(errors=errors)
        now = self._clock()
        year = school_year or self.calendar().receipt_submission_year()
        return ReceiptUpload(
            receipt=ReceiptFile(
                file_id=receipt_file_id(now),
                file_name=file_name,
                file_type=file_type,
                file_size=file_size,
                uploaded_at=datetime.fromtimestamp(now / 1000, tz=timezone.utc).isoformat(),
            ),
            storage_path=receipt_storage_path(family_id, year, file_name, now),
        )

    # Store-backed operations

    def load_claims(self, family_id: str, school_year: str) -> List[ReimbursementClaim]:
        node = self._store.get(paths.claims_path(family_id, school_year))
        return claims_from_node(node, family_id=family_id, school_year=to_display(school_year))

    def load_students(self, family_id: str) -> List[Dict[str, Any]]:
        return students_from_node(self._store.get(paths.students_path(family_id)))

    def student_budgets(
        self,
        family_id: str,
        school_year: str,
        students: Optional[Iterable[Mapping[str, Any]]] = None,
    ) -> Dict[str, StudentBudget]:
        claims = self.load_claims(family_id, school_year)
        roster = list(students) if students is not None else self.load_students(family_id)
        registrations = self._store.get(paths.pasi_registrations_path(family_id, school_year))
        if not isinstance(registrations, Mapping):
            registrations = {}
        budgets: Dict[str, StudentBudget] = {}
        for student in roster:
            sid = str(student["id"])
            budgets[sid] = build_student_budget(
                sid,
                school_year,
                claims,
                student.get("grade"),
                self._settings,
                limit_override=self.funding_limit(student, school_year, registrations.get(sid)),
            )
        return budgets

    def funding_limit(
        self,
        student: Mapping[str, Any],
        school_year: str,
        registration: Any,
    ) -> Optional[Decimal]:
        """
        Annual limit from the student's age and PASI registration date.

        Ineligible students get 0 and mid-term registrations get the prorated
        half. Returns None, meaning the grade rate applies, when the birthday
        or the registration date is missing.
        """
        birthday = student_birthday(student)
        if birthday is None:
            return None
        registered_at = registered_at_from_record(registration)
        if registered_at is None:
            logger.warning("No registeredAt for student %s in %s; using grade rate", student.get("id"), school_year)
            return None

        eligibility = determine_funding_eligibility(birthday, school_year, self._settings)
        if not eligibility.funding_eligible:
            logger.info("Student %s not eligible for funding: %s", student.get("id"), eligibility.message)
            return Decimal("0")
        allocation = calculate_prorated_allocation(
            eligibility.funding_amount, registered_at, school_year, self._settings
        )
        return allocation.current_allocation

    def student_categories(
        self,
        family_id: str,
        school_year: str,
        student_ids: Iterable[str],
    ) -> Dict[str, List[FundingCategory]]:
        return {
            sid: categories_from_program_plan(
                self._store.get(paths.program_plan_path(family_id, school_year, sid)),
                self._settings,
            )
            for sid in student_ids
        }

    def submit_claim(
        self,
        claim: ReimbursementClaim,
        student_budgets: Mapping[str, StudentBudget],
        student_categories: Mapping[str, Sequence[FundingCategory]],
        *,
        submitted_by: str,
    ) -> ClaimSubmission:
        """
        Validate and, when valid, persist a new claim as `pending_review`.

        Invalid claims are returned with their errors and nothing is written.
        """
        school_year = claim.school_year or self.calendar().receipt_submission_year()
        prepared = self.recompute_allocations(
            claim.model_copy(update={"school_year": to_display(school_year)}),
            student_budgets,
            student_categories,
        )
        errors = self.validate_claim(prepared, student_budgets, student_categories)
        if errors:
            return ClaimSubmission(claim=prepared, errors=errors)

        manual_entry = prepared.has_manual_overrides
        analysis = prepared.ai_analysis
        now = self._clock()
        stamped = prepared.model_copy(
            update={
                "status": ClaimStatus.PENDING_REVIEW,
                "student_allocations": [
                    a.model_copy(update={"amount": to_cents(a.amount)}) for a in prepared.student_allocations
                ],
                "manual_validation_notes": (prepared.manual_validation_notes or "").strip() or None,
                "requires_manual_review": requires_manual_review_for(analysis, manual_entry, self._settings),
                "review_priority": review_priority_for(analysis, manual_entry),
                "manual_entry_reason": prepared.manual_entry_reason if manual_entry else None,
                "submitted_at": now,
                "submitted_by": submitted_by,
                "last_updated": now,
            }
        )

        base = paths.claims_path(stamped.family_id, stamped.school_year)
        claim_id = self._store.push(base, claim_to_record(stamped))
        stamped = stamped.model_copy(update={"claim_id": claim_id})
        self._store.update(f"{base}/{claim_id}", {"claimId": claim_id})
        logger.info(
            "Claim %s submitted for family %s (%s) by %s",
            claim_id,
            stamped.family_id,
            stamped.school_year,
            submitted_by,
        )
        return ClaimSubmission(claim=stamped)

    def get_claim(self, family_id: str, school_year: str, claim_id: str) -> ReimbursementClaim:
        path = paths.claim_path(family_id, school_year, claim_id)
        raw = self._store.get(path)
        if raw is None:
            raise RecordNotFound(path)
        return claim_from_record(raw, claim_id=claim_id, family_id=family_id, school_year=to_display(school_year))

    def advance_claim_status(
        self,
        family_id: str,
        school_year: str,
        claim_id: str,
        new_status: ClaimStatus,
        *,
        registrar_notes: Optional[str] = None,
    ) -> ReimbursementClaim:
        claim = self.get_claim(family_id, school_year, claim_id)
        status = transition(claim.status, new_status)
        now = self._clock()
        fields: Dict[str, Any] = {"status": status.value, "lastUpdated": now}
        if registrar_notes is not None:
            fields["registrarNotes"] = registrar_notes
        self._store.update(paths.claim_path(family_id, school_year, claim_id), fields)
        logger.info("Claim %s moved %s -> %s", claim_id, claim.status.value, status.value)
        return claim.model_copy(
            update={
                "status": status,
                "last_updated": now,
                "registrar_notes": registrar_notes if registrar_notes is not None else claim.registrar_notes,
            }
        )

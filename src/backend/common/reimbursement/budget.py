from __future__ import annotations

from decimal import Decimal
from typing import Any, Iterable, Optional

from common.school_year import to_db_key
from common.settings import ReimbursementSettings

from .models import SPENT_STATUSES, FundingType, ReimbursementClaim, StudentBudget
from .money import to_cents


def _normalize_grade(grade: Any) -> str:
    if grade is None:
        return ""
    return str(grade).strip().lower()


def funding_type_for_grade(grade: Any, settings: ReimbursementSettings) -> FundingType:
    if _normalize_grade(grade) in settings.kindergarten_grades:
        return FundingType.KINDERGARTEN
    return FundingType.GRADES_1_12


def funding_limit_for_grade(grade: Any, settings: ReimbursementSettings) -> Decimal:
    if funding_type_for_grade(grade, settings) == FundingType.KINDERGARTEN:
        return settings.kindergarten_rate
    return settings.grades_1_to_12_rate


def funding_label(funding_type: FundingType) -> str:
    return "Kindergarten" if funding_type == FundingType.KINDERGARTEN else "Grades 1-12"


def spent_amount(
    student_id: str,
    school_year: str,
    claims: Iterable[ReimbursementClaim],
) -> Decimal:
    year_key = to_db_key(school_year)
    spent = Decimal("0")
    for claim in claims:
        if to_db_key(claim.school_year) != year_key:
            continue
        if claim.status not in SPENT_STATUSES:
            continue
        for allocation in claim.student_allocations:
            if allocation.student_id == student_id:
                spent += allocation.amount
    return to_cents(spent)


def remaining_budget(
    student_id: str,
    school_year: str,
    claims: Iterable[ReimbursementClaim],
    grade: Any,
    settings: ReimbursementSettings,
) -> Decimal:
    limit = funding_limit_for_grade(grade, settings)
    remaining = limit - spent_amount(student_id, school_year, claims)
    return max(Decimal("0"), to_cents(remaining))


def build_student_budget(
    student_id: str,
    school_year: str,
    claims: Iterable[ReimbursementClaim],
    grade: Any,
    settings: ReimbursementSettings,
    *,
    limit_override: Optional[Decimal] = None,
) -> StudentBudget:
    claims = list(claims)
    funding_type = funding_type_for_grade(grade, settings)
    limit = limit_override if limit_override is not None else funding_limit_for_grade(grade, settings)
    spent = spent_amount(student_id, school_year, claims)
    return StudentBudget(
        student_id=student_id,
        limit=limit,
        spent=spent,
        remaining=max(Decimal("0"), to_cents(limit - spent)),
        grade=None if grade is None else str(grade),
        funding_type=funding_type,
        funding_label=funding_label(funding_type),
    )

from decimal import Decimal

import pytest

from common.reimbursement.budget import (
    build_student_budget,
    funding_limit_for_grade,
    funding_type_for_grade,
    remaining_budget,
    spent_amount,
)
from common.reimbursement.models import ClaimStatus, FundingType


@pytest.mark.parametrize("grade", ["K", "k", " Kindergarten ", "0", "KG", 0])
def test_kindergarten_aliases(grade, settings):
    assert funding_type_for_grade(grade, settings) == FundingType.KINDERGARTEN
    assert funding_limit_for_grade(grade, settings) == Decimal("450.50")


@pytest.mark.parametrize("grade", ["1", 7, "12", None, ""])
def test_other_grades_get_full_rate(grade, settings):
    assert funding_type_for_grade(grade, settings) == FundingType.GRADES_1_12
    assert funding_limit_for_grade(grade, settings) == Decimal("901.00")


def _spent_claims(make_claim, make_allocation):
    return [
        make_claim(
            allocations=[make_allocation("s1", "100", amount="200.00")],
            status=ClaimStatus.APPROVED,
        ),
        make_claim(
            allocations=[make_allocation("s1", "50", amount="50.25"), make_allocation("s2", "50", amount="50.25")],
            status=ClaimStatus.PAID,
        ),
        make_claim(allocations=[make_allocation("s1", "100", amount="300.00")], status=ClaimStatus.PENDING_REVIEW),
        make_claim(allocations=[make_allocation("s1", "100", amount="400.00")], status=ClaimStatus.REJECTED),
        make_claim(
            allocations=[make_allocation("s1", "100", amount="100.00")],
            status=ClaimStatus.APPROVED,
            school_year="24/25",
        ),
    ]


def test_only_approved_and_paid_claims_of_the_year_count(make_claim, make_allocation):
    claims = _spent_claims(make_claim, make_allocation)
    assert spent_amount("s1", "25_26", claims) == Decimal("250.25")
    assert spent_amount("s2", "25/26", claims) == Decimal("50.25")
    assert spent_amount("s1", "24/25", claims) == Decimal("100.00")


def test_remaining_budget_never_negative(make_claim, make_allocation, settings):
    claims = [
        make_claim(allocations=[make_allocation("s1", "100", amount="500.00")], status=ClaimStatus.PAID)
    ]
    assert remaining_budget("s1", "25/26", claims, "K", settings) == Decimal("0")
    assert remaining_budget("s1", "25/26", claims, "3", settings) == Decimal("401.00")


def test_build_student_budget(make_claim, make_allocation, settings):
    budget = build_student_budget("s1", "25/26", _spent_claims(make_claim, make_allocation), "4", settings)
    assert budget.limit == Decimal("901.00")
    assert budget.spent == Decimal("250.25")
    assert budget.remaining == Decimal("650.75")
    assert budget.funding_label == "Grades 1-12"
    assert budget.grade == "4"
    assert round(budget.percentage_used, 2) == Decimal("27.77")


def test_limit_override(settings):
    budget = build_student_budget("s1", "25/26", [], "K", settings, limit_override=Decimal("225.25"))
    assert budget.limit == budget.remaining == Decimal("225.25")
    assert budget.funding_type == FundingType.KINDERGARTEN

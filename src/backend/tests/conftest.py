import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work,
# even when pytest's rootdir is the repository root.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

from datetime import date
from decimal import Decimal

import pytest

from common.course_status.models import CourseStatus, CourseStatusSummary
from common.reimbursement.models import (
    FundingCategory,
    PurchaseInfo,
    ReceiptAnalysis,
    ReceiptFile,
    ReimbursementClaim,
    StudentAllocation,
    StudentBudget,
)
from common.settings import ReimbursementSettings
from pipelines.record_store import InMemoryRecordStore

# 2025-10-15T18:00:00Z
BASE_MILLIS = 1_760_551_200_000


@pytest.fixture
def settings() -> ReimbursementSettings:
    return ReimbursementSettings(admin_emails=["admin@example.org"])


@pytest.fixture
def clock():
    """Deterministic epoch-millis clock that advances one second per call."""
    ticks = {"now": BASE_MILLIS}

    def _now() -> int:
        ticks["now"] += 1000
        return ticks["now"]

    return _now


@pytest.fixture
def make_store():
    def _make(data=None) -> InMemoryRecordStore:
        return InMemoryRecordStore(data)

    return _make


@pytest.fixture
def make_category():
    def _make(key: str = "books", *, limit=None, description: str = "Novel study") -> FundingCategory:
        return FundingCategory(
            key=key,
            name=key.replace("_", " ").title(),
            description=description,
            has_funding_limit=limit is not None,
            funding_limit_percentage=Decimal(str(limit)) if limit is not None else Decimal("100"),
        )

    return _make


@pytest.fixture
def make_budget():
    def _make(student_id: str = "s1", *, limit="901.00", spent="0") -> StudentBudget:
        limit_d = Decimal(str(limit))
        spent_d = Decimal(str(spent))
        return StudentBudget(
            student_id=student_id,
            limit=limit_d,
            spent=spent_d,
            remaining=max(Decimal("0"), limit_d - spent_d),
        )

    return _make


@pytest.fixture
def make_allocation():
    def _make(
        student_id: str = "s1",
        percentage="100",
        *,
        category="books",
        justification: str = "Reading program for the year",
        amount="0",
    ) -> StudentAllocation:
        return StudentAllocation(
            student_id=student_id,
            student_name=f"Student {student_id}",
            percentage=Decimal(str(percentage)),
            amount=Decimal(str(amount)),
            solo_categories=[category] if category else [],
            category_justification=justification,
        )

    return _make


@pytest.fixture
def make_claim(make_allocation):
    def _make(
        *,
        allocations=None,
        total="100.00",
        vendor: str = "Book Depot",
        description: str = "Novels for literature unit",
        purchase_date=date(2025, 10, 1),
        receipts=None,
        family_id: str = "fam1",
        school_year: str = "25/26",
        **overrides,
    ) -> ReimbursementClaim:
        if allocations is None:
            allocations = [make_allocation()]
        if receipts is None:
            receipts = [
                ReceiptFile(
                    file_id="receipt_1",
                    file_name="receipt.pdf",
                    file_url="https://files.example.org/receipt.pdf",
                    file_type="application/pdf",
                    file_size=2048,
                )
            ]
        return ReimbursementClaim(
            family_id=family_id,
            school_year=school_year,
            purchase_info=PurchaseInfo(
                purchase_date=purchase_date,
                vendor=vendor,
                total_amount=Decimal(str(total)),
                description=description,
            ),
            receipts=receipts,
            student_allocations=allocations,
            **overrides,
        )

    return _make


@pytest.fixture
def make_analysis():
    def _make(score: int = 85, **overrides) -> ReceiptAnalysis:
        return ReceiptAnalysis(receipt_id="receipt_1", validation_score=score, **overrides)

    return _make


@pytest.fixture
def make_course_status():
    def _make(**fields) -> CourseStatus:
        fields.setdefault("course_id", "c1")
        return CourseStatus(**fields)

    return _make


@pytest.fixture
def make_summary():
    def _make(
        *,
        family_id: str = "fam1",
        student_id: str = "s1",
        course_id: str = "c1",
        school_year: str = "25_26",
        **fields,
    ) -> CourseStatusSummary:
        return CourseStatusSummary(
            family_id=family_id,
            student_id=student_id,
            course_id=course_id,
            school_year=school_year,
            **fields,
        )

    return _make

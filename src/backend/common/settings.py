from __future__ import annotations

import os
from decimal import Decimal
from typing import Dict, List, Tuple

from dotenv import load_dotenv
from pydantic import BaseModel, Field


load_dotenv()


class ProrationPolicy(BaseModel):
    """Mid-year registration window in which only half the funding is released up front."""

    school_year: str = "25/26"
    mid_term_start: str = "2025-10-06T00:00:00-06:00"
    mid_term_end: str = "2026-01-31T23:59:59-07:00"
    upgrade_eligible_date: str = "2026-02-01"


class ReimbursementSettings(BaseModel):
    kindergarten_rate: Decimal = Decimal("450.50")
    grades_1_to_12_rate: Decimal = Decimal("901.00")
    kindergarten_grades: List[str] = Field(default_factory=lambda: ["k", "kindergarten", "0", "kg"])

    # Category key -> percentage of the student's funding the category may consume.
    limited_categories: Dict[str, Decimal] = Field(
        default_factory=lambda: {"internet": Decimal("50"), "field_trips": Decimal("50")}
    )

    min_receipt_validation_score: int = 50
    min_manual_validation_notes_length: int = 50

    receipt_max_bytes: int = 10 * 1024 * 1024
    receipt_allowed_types: List[str] = Field(
        default_factory=lambda: ["image/jpeg", "image/png", "image/webp", "application/pdf"]
    )
    # (month, day) after which receipts are filed against the next school year.
    receipt_upload_deadline: Tuple[int, int] = (8, 31)

    proration: ProrationPolicy = Field(default_factory=ProrationPolicy)
    timezone: str = "America/Edmonton"

    admin_emails: List[str] = Field(default_factory=list)


def load_settings() -> ReimbursementSettings:
    """
    Build settings from defaults plus environment overrides.

    Reads (all optional):
      FUNDING_RATE_KINDERGARTEN, FUNDING_RATE_GRADES_1_TO_12,
      RECEIPT_MIN_VALIDATION_SCORE, RECEIPT_MIN_NOTES_LENGTH,
      RECEIPT_UPLOAD_DEADLINE (MM-DD), ADMIN_EMAILS (comma separated)
    """
    overrides: Dict[str, object] = {}

    k_rate = os.getenv("FUNDING_RATE_KINDERGARTEN", "").strip()
    if k_rate:
        overrides["kindergarten_rate"] = Decimal(k_rate)
    g_rate = os.getenv("FUNDING_RATE_GRADES_1_TO_12", "").strip()
    if g_rate:
        overrides["grades_1_to_12_rate"] = Decimal(g_rate)

    min_score = os.getenv("RECEIPT_MIN_VALIDATION_SCORE", "").strip()
    if min_score:
        overrides["min_receipt_validation_score"] = int(min_score)
    min_notes = os.getenv("RECEIPT_MIN_NOTES_LENGTH", "").strip()
    if min_notes:
        overrides["min_manual_validation_notes_length"] = int(min_notes)

    deadline = os.getenv("RECEIPT_UPLOAD_DEADLINE", "").strip()
    if deadline:
        overrides["receipt_upload_deadline"] = _parse_month_day(deadline)

    admins = os.getenv("ADMIN_EMAILS", "").strip()
    if admins:
        overrides["admin_emails"] = [a.strip().lower() for a in admins.split(",") if a.strip()]

    return ReimbursementSettings.model_validate(overrides)


def _parse_month_day(raw: str) -> Tuple[int, int]:
    month_raw, sep, day_raw = raw.partition("-")
    if not sep or not month_raw.isdigit() or not day_raw.isdigit():
        raise ValueError("RECEIPT_UPLOAD_DEADLINE must look like MM-DD.")
    return int(month_raw), int(day_raw)

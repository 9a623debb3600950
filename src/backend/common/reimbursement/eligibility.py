"""Age-based funding eligibility and mid-year proration for home education students."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from common.school_year import start_year, to_display
from common.settings import ReimbursementSettings

from .money import to_cents

# Kindergarten requires 4 years 8 months on September 1.
KINDERGARTEN_MIN_MONTHS = 56


class AgeCategory(str, Enum):
    KINDERGARTEN = "kindergarten"
    GRADES_1_12 = "grades_1_12"
    TOO_YOUNG = "too_young"
    TOO_OLD = "too_old"
    UNKNOWN = "unknown"


class RegistrationPhase(str, Enum):
    EARLY = "early"
    MID_TERM = "mid_term"
    LATE = "late"
    NOT_APPLICABLE = "not_applicable"


class AgeOn(BaseModel):
    years: int
    months: int


class FundingEligibility(BaseModel):
    funding_eligible: bool
    funding_amount: Decimal
    age_category: AgeCategory
    message: Optional[str] = None
    age_on_sept_1: Optional[AgeOn] = None
    age_on_dec_31: Optional[AgeOn] = None


class ProratedAllocation(BaseModel):
    full_amount: Decimal
    current_allocation: Decimal
    remaining_allocation: Decimal
    registration_phase: RegistrationPhase
    prorated_reason: Optional[str] = None
    upgrade_eligible_after: Optional[str] = None


def age_in_years(birthday: date, on: date) -> int:
    years = on.year - birthday.year
    if (on.month, on.day) < (birthday.month, birthday.day):
        years -= 1
    return years


def age_with_months(birthday: date, on: date) -> AgeOn:
    years = on.year - birthday.year
    months = on.month - birthday.month
    if on.day < birthday.day:
        months -= 1
    if months < 0:
        years -= 1
        months += 12
    return AgeOn(years=years, months=months)


def determine_funding_eligibility(
    birthday: Optional[date],
    school_year: Optional[str],
    settings: ReimbursementSettings,
) -> FundingEligibility:
    if birthday is None or not school_year:
        # Missing data is treated as eligible with no amount so the family can proceed.
        return FundingEligibility(
            funding_eligible=True,
            funding_amount=Decimal("0"),
            age_category=AgeCategory.UNKNOWN,
        )

    year = start_year(school_year)
    sept_1 = date(year, 9, 1)
    dec_31 = date(year, 12, 31)
    on_sept_1 = age_with_months(birthday, sept_1)
    on_dec_31 = age_with_months(birthday, dec_31)
    age_sept_1 = age_in_years(birthday, sept_1)
    total_months = on_sept_1.years * 12 + on_sept_1.months

    if age_sept_1 <= 6 and total_months >= KINDERGARTEN_MIN_MONTHS:
        return FundingEligibility(
            funding_eligible=True,
            funding_amount=settings.kindergarten_rate,
            age_category=AgeCategory.KINDERGARTEN,
            message=(
                "This student is kindergarten age and eligible for "
                f"${settings.kindergarten_rate:,.2f} in funding."
            ),
            age_on_sept_1=on_sept_1,
            age_on_dec_31=on_dec_31,
        )

    if 6 < age_sept_1 < 20:
        return FundingEligibility(
            funding_eligible=True,
            funding_amount=settings.grades_1_to_12_rate,
            age_category=AgeCategory.GRADES_1_12,
            age_on_sept_1=on_sept_1,
            age_on_dec_31=on_dec_31,
        )

    if age_sept_1 >= 20:
        return FundingEligibility(
            funding_eligible=False,
            funding_amount=Decimal("0"),
            age_category=AgeCategory.TOO_OLD,
            message=(
                f"This student is too old for funding (20 or older as of September 1, {year}). "
                "They can still be added but will not receive funding."
            ),
            age_on_sept_1=on_sept_1,
            age_on_dec_31=on_dec_31,
        )

    if age_in_years(birthday, dec_31) < 5:
        message = (
            "This student is too young for funding. Kindergarten students must turn 5 by "
            f"December 31, {year}. They can still be added but will not receive funding."
        )
    else:
        message = (
            "This student must be at least 4 years 8 months old by September 1, "
            f"{year} to be eligible for kindergarten funding. They can still be added but will not receive funding."
        )
    return FundingEligibility(
        funding_eligible=False,
        funding_amount=Decimal("0"),
        age_category=AgeCategory.TOO_YOUNG,
        message=message,
        age_on_sept_1=on_sept_1,
        age_on_dec_31=on_dec_31,
    )


def determine_registration_phase(
    registered_at: Optional[datetime],
    school_year: str,
    settings: ReimbursementSettings,
) -> RegistrationPhase:
    policy = settings.proration
    if to_display(school_year) != policy.school_year or registered_at is None:
        return RegistrationPhase.NOT_APPLICABLE
    if registered_at.tzinfo is None:
        raise ValueError("registered_at must be timezone-aware")

    window_start = datetime.fromisoformat(policy.mid_term_start)
    window_end = datetime.fromisoformat(policy.mid_term_end)
    if registered_at < window_start:
        return RegistrationPhase.EARLY
    if registered_at <= window_end:
        return RegistrationPhase.MID_TERM
    return RegistrationPhase.LATE


def calculate_prorated_allocation(
    full_amount: Decimal,
    registered_at: Optional[datetime],
    school_year: str,
    settings: ReimbursementSettings,
) -> ProratedAllocation:
    phase = determine_registration_phase(registered_at, school_year, settings)
    if phase != RegistrationPhase.MID_TERM:
        reasons = {
            RegistrationPhase.EARLY: "Registered before the mid-term window - full funding immediately",
            RegistrationPhase.LATE: "Registered after the mid-term window - full funding immediately",
            RegistrationPhase.NOT_APPLICABLE: "Proration not applicable for this school year",
        }
        return ProratedAllocation(
            full_amount=full_amount,
            current_allocation=full_amount,
            remaining_allocation=Decimal("0"),
            registration_phase=phase,
            prorated_reason=reasons[phase],
        )

    half = to_cents(full_amount / 2)
    return ProratedAllocation(
        full_amount=full_amount,
        current_allocation=half,
        remaining_allocation=half,
        registration_phase=phase,
        prorated_reason="Registered during the mid-term window. Half funding now, remainder later if continuing.",
        upgrade_eligible_after=settings.proration.upgrade_eligible_date,
    )

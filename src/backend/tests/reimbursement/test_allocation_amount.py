from decimal import Decimal

import pytest

from common.reimbursement.allocation import apply_allocation_amount, compute_allocation_amount, normalize_percentage
from common.reimbursement.budget import funding_limit_for_grade


def test_kindergarten_internet_capped_at_half_of_remaining(settings, make_category):
    remaining = funding_limit_for_grade("K", settings)
    result = compute_allocation_amount(Decimal("100"), Decimal("1000"), make_category("internet", limit=50), remaining)
    assert remaining == Decimal("450.50")
    assert result.calculated_amount == Decimal("1000.00")
    assert result.amount == Decimal("225.25")
    assert result.is_limited is True


def test_sixty_forty_split_has_no_drift():
    first = compute_allocation_amount(Decimal("60"), Decimal("500"), None, Decimal("901"))
    second = compute_allocation_amount(Decimal("40"), Decimal("500"), None, Decimal("901"))
    assert first.amount == Decimal("300.00")
    assert second.amount == Decimal("200.00")
    assert first.amount + second.amount == Decimal("500.00")
    assert not first.is_limited and not second.is_limited


def test_thirds_round_to_the_cent():
    amounts = [
        compute_allocation_amount(Decimal(p), Decimal("100"), None, Decimal("901")).amount
        for p in ("33.3", "33.3", "33.4")
    ]
    assert amounts == [Decimal("33.30"), Decimal("33.30"), Decimal("33.40")]


def test_unlimited_category_ignores_remaining_budget(make_category):
    result = compute_allocation_amount(Decimal("100"), Decimal("2000"), make_category("books"), Decimal("10"))
    assert result.amount == result.calculated_amount == Decimal("2000.00")
    assert result.is_limited is False


@pytest.mark.parametrize("remaining", ["0", "100", "450.50", "901"])
def test_amount_properties_hold_across_percentages(remaining, make_category):
    category = make_category("field_trips", limit=50)
    previous = Decimal("-1")
    for step in range(0, 101, 5):
        pct = Decimal(step)
        result = compute_allocation_amount(pct, Decimal("777.77"), category, Decimal(remaining))
        again = compute_allocation_amount(pct, Decimal("777.77"), category, Decimal(remaining))
        assert result == again
        assert result.calculated_amount >= previous
        assert result.amount <= result.calculated_amount
        assert result.is_limited == (result.amount < result.calculated_amount)
        previous = result.calculated_amount


@pytest.mark.parametrize(
    "raw, expected",
    [("55.55", "55.6"), ("-5", "0.0"), ("150", "100.0"), ("", "0.0"), (None, "0.0"), ("abc", "0.0"), (12.25, "12.3")],
)
def test_normalize_percentage(raw, expected):
    assert normalize_percentage(raw) == Decimal(expected)


def test_apply_allocation_amount_recomputes_fields(make_allocation, make_category):
    allocation = make_allocation("s1", "150", category="internet", amount="999")
    updated = apply_allocation_amount(
        allocation,
        total_amount=Decimal("300"),
        category=make_category("internet", limit=50),
        remaining_budget=Decimal("200"),
    )
    assert updated.percentage == Decimal("100.0")
    assert updated.calculated_amount == Decimal("300.00")
    assert updated.amount == Decimal("100.00")
    assert updated.is_limited is True
    assert allocation.amount == Decimal("999")

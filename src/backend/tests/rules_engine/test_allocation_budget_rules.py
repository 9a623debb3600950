from decimal import Decimal

from common.rules_engine.rules.allocation_within_category_limit import ALLOCATION_WITHIN_CATEGORY_LIMIT
from common.rules_engine.rules.allocation_within_remaining_budget import ALLOCATION_WITHIN_REMAINING_BUDGET


def test_amount_over_remaining_budget_rejected(make_claim, make_allocation, make_budget, make_ctx):
    claim = make_claim(total="500", allocations=[make_allocation("s1", "100", amount="500.00")])
    ctx = make_ctx(claim=claim, budgets=[make_budget("s1", limit="901.00", spent="500.00")])
    errors = ALLOCATION_WITHIN_REMAINING_BUDGET().evaluate(ctx)
    assert len(errors) == 1
    assert errors[0].code == "exceeds_remaining_budget"
    assert errors[0].values == {"amount": "500.00", "remaining": "401.00"}
    assert "$401.00" in errors[0].message


def test_amount_equal_to_remaining_budget_passes(make_claim, make_allocation, make_budget, make_ctx):
    claim = make_claim(total="401", allocations=[make_allocation("s1", "100", amount="401.00")])
    ctx = make_ctx(claim=claim, budgets=[make_budget("s1", limit="901.00", spent="500.00")])
    assert ALLOCATION_WITHIN_REMAINING_BUDGET().evaluate(ctx) == []


def test_student_without_budget_has_nothing_remaining(make_claim, make_allocation, make_ctx):
    claim = make_claim(total="5000", allocations=[make_allocation("s1", "100", amount="5000")])
    errors = ALLOCATION_WITHIN_REMAINING_BUDGET().evaluate(make_ctx(claim=claim))
    assert [e.code for e in errors] == ["exceeds_remaining_budget"]
    assert errors[0].values == {"amount": "5000.00", "remaining": "0.00"}


def test_zero_amount_passes_without_budget(make_claim, make_allocation, make_ctx):
    claim = make_claim(allocations=[make_allocation("s1", "100", amount="0")])
    assert ALLOCATION_WITHIN_REMAINING_BUDGET().evaluate(make_ctx(claim=claim)) == []


def test_limited_category_uses_unclamped_amount(make_claim, make_allocation, make_budget, make_category, make_ctx):
    # Amount was already clamped to the cap, but the purchase share is still too large.
    claim = make_claim(
        total="1000",
        allocations=[make_allocation("s1", "100", category="internet", amount="225.25")],
    )
    ctx = make_ctx(
        claim=claim,
        budgets=[make_budget("s1", limit="450.50")],
        categories={"s1": [make_category("internet", limit=50)]},
    )
    errors = ALLOCATION_WITHIN_CATEGORY_LIMIT().evaluate(ctx)
    assert len(errors) == 1
    assert errors[0].code == "exceeds_category_limit"
    assert Decimal(errors[0].values["max_allowed"]) == Decimal("225.25")
    assert Decimal(errors[0].values["calculated_amount"]) == Decimal("1000.00")
    assert "50% funding limit of $225.25" in errors[0].message


def test_limited_category_within_share_passes(make_claim, make_allocation, make_budget, make_category, make_ctx):
    claim = make_claim(total="400", allocations=[make_allocation("s1", "100", category="field_trips")])
    ctx = make_ctx(
        claim=claim,
        budgets=[make_budget("s1", limit="901.00")],
        categories={"s1": [make_category("field_trips", limit=50)]},
    )
    assert ALLOCATION_WITHIN_CATEGORY_LIMIT().evaluate(ctx) == []


def test_unlimited_category_never_capped(make_claim, make_allocation, make_budget, make_category, make_ctx):
    claim = make_claim(total="5000", allocations=[make_allocation("s1", "100", category="books")])
    ctx = make_ctx(
        claim=claim,
        budgets=[make_budget("s1")],
        categories={"s1": [make_category("books")]},
    )
    assert ALLOCATION_WITHIN_CATEGORY_LIMIT().evaluate(ctx) == []

from common.rules_engine.rules.claim_purchase_info_complete import CLAIM_PURCHASE_INFO_COMPLETE


def test_complete_claim_has_no_errors(make_ctx):
    assert CLAIM_PURCHASE_INFO_COMPLETE().evaluate(make_ctx()) == []


def test_missing_purchase_fields_each_reported(make_claim, make_ctx):
    claim = make_claim(vendor="  ", description="", purchase_date=None, total="0", receipts=[], allocations=[])
    errors = CLAIM_PURCHASE_INFO_COMPLETE().evaluate(make_ctx(claim=claim))
    fields = {e.field for e in errors}
    assert fields == {"purchaseDate", "vendor", "totalAmount", "description", "receipts", "students"}
    total_error = next(e for e in errors if e.field == "totalAmount")
    assert total_error.code == "invalid_total"


def test_disabled_rule_is_silent(make_claim, make_ctx):
    claim = make_claim(vendor="")
    ctx = make_ctx(claim=claim, client_rules={"CLAIM-PURCHASE-INFO-COMPLETE": {"enabled": False}})
    assert CLAIM_PURCHASE_INFO_COMPLETE().evaluate(ctx) == []

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path


def _ensure_backend_on_path() -> None:
    backend_dir = Path(__file__).resolve().parents[1]
    if str(backend_dir) not in sys.path:
        sys.path.insert(0, str(backend_dir))


def _load_json(path: Path):
    with path.open() as handle:
        return json.load(handle)


def check_bundle(bundle: dict, rule_ids=None):
    """
    Validate one claim bundle offline.

    The bundle holds `claim` plus optional `student_budgets`
    (student id -> budget) and `student_categories` (student id -> categories).
    Allocation amounts are re-derived before the rules run. `rule_ids`
    limits the check to those rules.
    """
    from common.reimbursement.engine import ReimbursementAllocationEngine
    from common.reimbursement.models import FundingCategory, ReimbursementClaim, StudentBudget
    from common.settings import load_settings
    from pipelines.record_store import InMemoryRecordStore

    claim = ReimbursementClaim.model_validate(bundle["claim"])
    budgets = {
        sid: StudentBudget.model_validate(raw) for sid, raw in (bundle.get("student_budgets") or {}).items()
    }
    categories = {
        sid: [FundingCategory.model_validate(c) for c in cats]
        for sid, cats in (bundle.get("student_categories") or {}).items()
    }

    engine = ReimbursementAllocationEngine(InMemoryRecordStore(), load_settings())
    prepared = engine.recompute_allocations(claim, budgets, categories)
    return prepared, engine.validate_claim(prepared, budgets, categories, rule_ids=rule_ids)


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Validate a reimbursement claim bundle without touching the store.")
    parser.add_argument("bundle", help="Path to a JSON claim bundle.")
    parser.add_argument("--json", action="store_true", dest="as_json", help="Print errors as JSON.")
    parser.add_argument(
        "--rule",
        action="append",
        dest="rule_ids",
        default=None,
        help="Only run this rule id (repeatable).",
    )
    args = parser.parse_args(argv)

    _ensure_backend_on_path()
    prepared, errors = check_bundle(_load_json(Path(args.bundle)), args.rule_ids)

    if args.as_json:
        print(json.dumps([e.model_dump(mode="json") for e in errors], indent=2))
    elif errors:
        for error in errors:
            who = f" [{error.student_id}]" if error.student_id else ""
            print(f"{error.rule_id}{who} {error.field}: {error.message}")
    else:
        from common.reimbursement.money import format_money

        amounts = ", ".join(f"{a.student_id}={format_money(a.amount)}" for a in prepared.student_allocations)
        print(f"Claim is valid ({amounts}).")
    return 1 if errors else 0


if __name__ == "__main__":
    raise SystemExit(main())

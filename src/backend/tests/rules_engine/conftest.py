import os
import sys


# Ensure `src/backend` is on sys.path so imports like `import common...` work.
BACKEND_DIR = os.path.abspath(os.path.join(os.path.dirname(__file__), "../.."))
if BACKEND_DIR not in sys.path:
    sys.path.insert(0, BACKEND_DIR)

import pytest

from common.rules_engine.config import ClaimRulesConfig
from common.rules_engine.context import ClaimContext


@pytest.fixture
def make_ctx(make_claim):
    def _make(*, claim=None, budgets=None, categories=None, client_rules=None) -> ClaimContext:
        return ClaimContext(
            claim=claim if claim is not None else make_claim(),
            student_budgets={b.student_id: b for b in budgets or []},
            student_categories=categories or {},
            rules_config=ClaimRulesConfig(rules=client_rules or {}),
        )

    return _make

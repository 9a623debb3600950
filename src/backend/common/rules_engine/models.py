from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ValidationError(BaseModel):
    """One expected business-rule violation, rendered next to the offending field.

    `field` uses the storage (camelCase) name so clients can attach the message
    to their form control; `student_id` is set for per-allocation checks.
    """

    rule_id: str
    code: str
    field: str
    message: str
    student_id: Optional[str] = None
    values: Dict[str, Any] = Field(default_factory=dict)


class ValidationReport(BaseModel):
    run_id: str
    generated_at: datetime
    claim_id: Optional[str] = None

    errors: List[ValidationError] = Field(default_factory=list)
    totals: Dict[str, int] = Field(default_factory=dict)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def for_student(self, student_id: str) -> List[ValidationError]:
        return [e for e in self.errors if e.student_id == student_id]

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional, Type

from pydantic import BaseModel

from .context import ClaimContext
from .models import ValidationError


class Rule(ABC):
    rule_id: str
    rule_title: str
    # Storage field the rule's errors attach to.
    field: str
    config_model: Type[BaseModel]

    def __init__(self):
        if not getattr(self, "rule_id", None):
            raise ValueError("Rule must define rule_id")

    @abstractmethod
    def evaluate(self, ctx: ClaimContext) -> List[ValidationError]:  # pragma: no cover
        raise NotImplementedError

    def error(
        self,
        code: str,
        message: str,
        *,
        field: Optional[str] = None,
        student_id: Optional[str] = None,
        values: Optional[Dict[str, Any]] = None,
    ) -> ValidationError:
        return ValidationError(
            rule_id=self.rule_id,
            code=code,
            field=field or self.field,
            message=message,
            student_id=student_id,
            values=values or {},
        )

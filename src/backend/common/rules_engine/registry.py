from __future__ import annotations

from typing import Dict, Iterable, List, Optional, Type

from .rule import Rule


class ClaimRuleRegistry:
    """Claim rule classes keyed by rule id, kept in registration order."""

    def __init__(self) -> None:
        self._rules: Dict[str, Type[Rule]] = {}

    def register(self, rule_cls: Type[Rule]) -> None:
        rule_id = getattr(rule_cls, "rule_id", None)
        if not rule_id:
            raise ValueError(f"Claim rule {rule_cls.__name__} has no rule_id")
        if not getattr(rule_cls, "field", None):
            raise ValueError(f"Claim rule {rule_id} does not name the claim field it reports on")
        existing = self._rules.get(rule_id)
        if existing is not None:
            raise ValueError(f"Claim rule id {rule_id} already registered by {existing.__name__}")
        self._rules[rule_id] = rule_cls

    def create_all(self, rule_ids: Optional[Iterable[str]] = None) -> List[Rule]:
        """Instantiate every rule, or only `rule_ids`; unknown ids raise KeyError before anything runs."""
        if rule_ids is None:
            return [cls() for cls in self._rules.values()]
        wanted = set(rule_ids)
        unknown = wanted - set(self._rules)
        if unknown:
            raise KeyError(f"Unknown claim rule ids: {', '.join(sorted(unknown))}")
        return [cls() for rid, cls in self._rules.items() if rid in wanted]

    def get(self, rule_id: str) -> Type[Rule]:
        return self._rules[rule_id]

    def ids(self) -> List[str]:
        return sorted(self._rules)

    def for_field(self, field: str) -> List[str]:
        """Ids of the rules whose errors attach to `field` (storage name, e.g. `amount`)."""
        return sorted(rid for rid, cls in self._rules.items() if cls.field == field)


registry = ClaimRuleRegistry()


def register_rule(rule_cls: Type[Rule]) -> Type[Rule]:
    registry.register(rule_cls)
    return rule_cls

from __future__ import annotations

import argparse
import json
from typing import Any, Dict, Iterable, List, Optional

import yaml
from pydantic import BaseModel

from .registry import registry

# Ensure built-in rules are imported/registered when generating a catalog.
from . import rules as _builtin_rules  # noqa: F401


class RuleCatalogEntry(BaseModel):
    rule_id: str
    rule_title: str
    # Claim field the rule's errors attach to, in storage (camelCase) form.
    field: str = ""
    module: str
    class_name: str

    config_model: str
    defaults: Dict[str, Any]
    config_schema: Dict[str, Any]


def build_catalog(
    rule_ids: Optional[Iterable[str]] = None,
    *,
    field: Optional[str] = None,
) -> List[RuleCatalogEntry]:
    """Describe registered claim rules, optionally only `rule_ids` (unknown ids raise KeyError) or one field."""
    wanted = registry.ids() if rule_ids is None else sorted(set(rule_ids))
    if field is not None:
        wanted = [rid for rid in wanted if rid in registry.for_field(field)]
    entries: List[RuleCatalogEntry] = []
    for rule_id in wanted:
        rule_cls = registry.get(rule_id)
        cfg_model = rule_cls.config_model
        entries.append(
            RuleCatalogEntry(
                rule_id=rule_id,
                rule_title=rule_cls.rule_title,
                field=rule_cls.field,
                module=rule_cls.__module__,
                class_name=rule_cls.__name__,
                config_model=cfg_model.__name__,
                defaults=cfg_model().model_dump(mode="json"),
                config_schema=cfg_model.model_json_schema(),
            )
        )

    entries.sort(key=lambda e: e.rule_id)
    return entries


def _render_markdown(entries: List[RuleCatalogEntry]) -> str:
    lines = ["| Rule | Field | Checks | Defaults |", "|---|---|---|---|"]
    for entry in entries:
        defaults = ", ".join(f"{k}={v}" for k, v in sorted(entry.defaults.items()))
        lines.append(f"| {entry.rule_id} | {entry.field} | {entry.rule_title} | {defaults} |")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(description="List the registered claim validation rules.")
    parser.add_argument(
        "--format",
        choices=("yaml", "json", "md"),
        default="yaml",
        help="Output format (default: yaml).",
    )
    parser.add_argument(
        "--rule",
        action="append",
        dest="rule_ids",
        default=None,
        help="Only describe this rule id (repeatable).",
    )
    parser.add_argument("--field", default=None, help="Only describe rules reporting on this claim field.")
    args = parser.parse_args(argv)

    entries = build_catalog(args.rule_ids, field=args.field)
    if args.format == "md":
        print(_render_markdown(entries))
        return

    catalog = [e.model_dump() for e in entries]
    if args.format == "json":
        print(json.dumps(catalog, indent=2, sort_keys=True))
    else:
        print(yaml.safe_dump(catalog, sort_keys=True))


if __name__ == "__main__":
    main()

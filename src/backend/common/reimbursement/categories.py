from __future__ import annotations

from decimal import Decimal
from typing import Any, Dict, List, Mapping, Optional

from common.settings import ReimbursementSettings

from .models import FundingCategory

# Standard resource options offered on the program plan form.
RESOURCE_LABELS: Dict[str, str] = {
    "internet": "Internet (50% of monthly fee from Sept. to end of Aug.)",
    "books": "Books / Novels",
    "field_trips": "Field trips / Admissions (max. 50% of funding)",
    "art_supplies": "Art / Craft supplies and equipment (e.g. sewing machine, camera)",
    "science_supplies": "Science supplies and equipment (e.g., microscopes, telescopes, kits)",
    "workbooks": "Workbooks / Textbooks / Curriculum",
    "tutoring": (
        "Tutoring (group of individual lessons necessary for the student's program delivered "
        "by a subject matter expert who is not an immediate family member)"
    ),
    "lessons": (
        "Lessons (including but not limited to, music, swimming, and language lessons "
        "taught by a certified instructor)"
    ),
    "games_puzzles": "Games / Puzzles / Manipulatives / Learning Aids",
    "online_courses_resource": "Online Courses",
    "technology": "Computers / Technology ie. printers, computers, tablets",
    "pe_equipment": "Phys Ed Equipment",
    "instruments": "Musical Instruments",
    "home_ec": "Home Economic Edibles (groceries used for children's cooking and baking projects)",
}

PLAN_SECTION = "Resources and Materials"


def _title_from_key(key: str) -> str:
    return " ".join(part[:1].upper() + part[1:] for part in key.replace("_", " ").split(" "))


def category_name(key: str, custom_resources: Optional[List[Mapping[str, Any]]] = None) -> str:
    for custom in custom_resources or []:
        if custom.get("key") == key and custom.get("name"):
            return str(custom["name"])
    if key in RESOURCE_LABELS:
        return RESOURCE_LABELS[key]
    return _title_from_key(key)


def categories_from_program_plan(
    plan_record: Optional[Mapping[str, Any]],
    settings: ReimbursementSettings,
) -> List[FundingCategory]:
    """
    Claimable categories for one student, taken from their program plan.

    Only resources the family both selected and described in the plan are
    claimable. A missing plan yields no categories.
    """
    if not plan_record:
        return []

    selected = plan_record.get("resourcesAndMaterials") or []
    descriptions = plan_record.get("resourceDescriptions") or {}
    custom_resources = plan_record.get("customResources") or []
    # Storage may hand back a list as a {"0": ..., "1": ...} map.
    if isinstance(selected, Mapping):
        selected = list(selected.values())
    if isinstance(custom_resources, Mapping):
        custom_resources = list(custom_resources.values())

    categories: List[FundingCategory] = []
    for key in selected:
        description = descriptions.get(key)
        if not description:
            continue
        limit_pct = settings.limited_categories.get(key)
        categories.append(
            FundingCategory(
                key=key,
                name=category_name(key, custom_resources),
                description=str(description),
                section=PLAN_SECTION,
                has_funding_limit=limit_pct is not None,
                funding_limit_percentage=limit_pct if limit_pct is not None else Decimal("100"),
            )
        )
    return categories

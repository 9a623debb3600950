from __future__ import annotations

from typing import Any, Dict

from common.errors import PrecheckFailed

from .models import BOOLEAN_FIELDS, WORKFLOW_FIELDS, CourseStatus, CourseStatusPatch

MARK_REQUIRED_MESSAGE = "Cannot confirm mark submission: A final mark must be entered first."
MARK_CONFIRMED_MESSAGE = (
    "Cannot remove the PASI registration confirmation while the mark submission is confirmed."
)


def apply_patch(current: CourseStatus, patch: CourseStatusPatch) -> CourseStatus:
    """
    Merge `patch` into `current` and repair the mark/registration invariants.

    - Clearing the final mark also clears the mark confirmation.
    - A confirmed mark always implies a confirmed registration.
    - Explicitly confirming a mark that does not exist, or un-confirming the
      registration while the mark stays confirmed, raises `PrecheckFailed`.
    """
    updates: Dict[str, Any] = {}
    for name, value in patch.present().items():
        if name in BOOLEAN_FIELDS and value is None:
            value = False
        if name == "activity_descriptions" and value is None:
            value = {}
        updates[name] = value

    merged = {**current.model_dump(), **updates}

    if merged["final_mark"] is None and merged["registrar_confirmed_mark"]:
        if updates.get("registrar_confirmed_mark") is True:
            raise PrecheckFailed("registrarConfirmedMark", "finalMark", MARK_REQUIRED_MESSAGE)
        merged["registrar_confirmed_mark"] = False

    if merged["registrar_confirmed_mark"]:
        if updates.get("registrar_confirmed_registration") is False:
            raise PrecheckFailed(
                "registrarConfirmedRegistration", "registrarConfirmedMark", MARK_CONFIRMED_MESSAGE
            )
        merged["registrar_confirmed_registration"] = True

    return CourseStatus.model_validate(merged)


def changed_fields(current: CourseStatus, nxt: CourseStatus, patch: CourseStatusPatch) -> Dict[str, Any]:
    """Workflow fields to write: everything the patch named plus anything invariant repair touched."""
    names = set(patch.present())
    names.update(name for name in WORKFLOW_FIELDS if getattr(current, name) != getattr(nxt, name))
    return {name: getattr(nxt, name) for name in WORKFLOW_FIELDS if name in names}

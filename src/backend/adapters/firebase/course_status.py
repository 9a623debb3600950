from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from common.course_status.models import CourseMetadata, CourseSource, CourseStatus, CourseStatusSummary


class CourseStatusAdapterError(ValueError):
    pass


# Python field name -> storage key.
STATUS_KEYS: Dict[str, str] = {
    "committed": "committed",
    "course_code_verified": "courseCodeVerified",
    "needs_pasi_registration": "needsPasiRegistration",
    "pasi_registration_comment": "pasiRegistrationComment",
    "registrar_confirmed_registration": "registrarConfirmedRegistration",
    "final_mark": "finalMark",
    "registrar_comment": "registrarComment",
    "registrar_confirmed_mark": "registrarConfirmedMark",
    "activity_descriptions": "activityDescriptions",
    "course_source": "courseSource",
    "course_code": "courseCode",
    "course_name": "courseName",
    "description": "description",
    "credits": "credits",
    "for_credit": "forCredit",
    "last_updated": "lastUpdated",
    "asn": "asn",
}

SUMMARY_KEYS: Dict[str, str] = {
    **STATUS_KEYS,
    "course_id": "courseId",
    "family_id": "familyId",
    "student_id": "studentId",
    "school_year": "schoolYear",
    "student_name": "studentName",
}


def _parse_mark(raw: Any) -> Optional[float]:
    if raw is None or raw == "":
        return None
    try:
        mark = float(raw)
    except (TypeError, ValueError) as exc:
        raise CourseStatusAdapterError(f"finalMark must be numeric, got {raw!r}") from exc
    if not 0 <= mark <= 100:
        raise CourseStatusAdapterError(f"finalMark must be between 0 and 100, got {mark}")
    return mark


def _parse_text_map(raw: Any) -> Dict[str, str]:
    # The database returns objects with dense integer keys as arrays.
    if isinstance(raw, list):
        return {str(i): str(v) for i, v in enumerate(raw) if v is not None}
    if isinstance(raw, Mapping):
        return {str(k): str(v) for k, v in raw.items() if v is not None}
    return {}


def _parse_source(raw: Any) -> Optional[CourseSource]:
    if not raw:
        return None
    try:
        return CourseSource(raw)
    except ValueError as exc:
        raise CourseStatusAdapterError(f"Unknown courseSource {raw!r}") from exc


def _from_record(raw: Mapping[str, Any], keys: Mapping[str, str]) -> Dict[str, Any]:
    values: Dict[str, Any] = {}
    for name, key in keys.items():
        if key not in raw:
            continue
        value = raw[key]
        if name == "final_mark":
            value = _parse_mark(value)
        elif name == "activity_descriptions":
            value = _parse_text_map(value)
        elif name == "course_source":
            value = _parse_source(value)
        elif name in ("course_id", "family_id", "student_id", "asn") and value is not None:
            value = str(value)
        elif value is None:
            continue
        values[name] = value
    return values


def course_status_from_record(raw: Any, *, course_id: Optional[str] = None) -> CourseStatus:
    """Build a CourseStatus from a stored node; a missing node yields the default record."""
    if raw is None:
        return CourseStatus(course_id=course_id)
    if not isinstance(raw, Mapping):
        raise CourseStatusAdapterError("Course status record must be a JSON object.")
    values = _from_record(raw, STATUS_KEYS)
    values["course_id"] = course_id
    return CourseStatus.model_validate(values)


def summary_from_record(key: str, raw: Mapping[str, Any]) -> CourseStatusSummary:
    if not isinstance(raw, Mapping):
        raise CourseStatusAdapterError(f"Summary row {key} must be a JSON object.")
    values = _from_record(raw, SUMMARY_KEYS)
    for required in ("family_id", "student_id", "school_year"):
        if not values.get(required):
            raise CourseStatusAdapterError(f"Summary row {key} is missing {SUMMARY_KEYS[required]}.")
    return CourseStatusSummary.model_validate(values)


def _value_to_record(name: str, value: Any) -> Any:
    if name == "course_source" and value is not None:
        return CourseSource(value).value
    if name == "activity_descriptions":
        return dict(value or {})
    return value


def fields_to_record(fields: Mapping[str, Any]) -> Dict[str, Any]:
    """Rename snake_case fields to storage keys; `None` values are kept so an update deletes them."""
    out: Dict[str, Any] = {}
    for name, value in fields.items():
        key = SUMMARY_KEYS.get(name)
        if key is None:
            raise CourseStatusAdapterError(f"No storage key for field {name!r}")
        out[key] = _value_to_record(name, value)
    return out


def metadata_to_record(metadata: CourseMetadata) -> Dict[str, Any]:
    return fields_to_record(metadata.model_dump(exclude_none=True))


def course_status_to_record(status: CourseStatus) -> Dict[str, Any]:
    record = fields_to_record(status.model_dump(exclude={"course_id"}, exclude_none=True))
    if not record.get("activityDescriptions"):
        record.pop("activityDescriptions", None)
    return record


def summary_to_record(summary: CourseStatusSummary) -> Dict[str, Any]:
    record = fields_to_record(summary.model_dump(exclude_none=True))
    if not record.get("activityDescriptions"):
        record.pop("activityDescriptions", None)
    return record

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable, Dict, Iterable, List, Mapping, Optional

from adapters.firebase.course_status import (
    course_status_from_record,
    fields_to_record,
    metadata_to_record,
    summary_from_record,
    summary_to_record,
)
from common.errors import ConcurrentUpdateError, ConfirmationRequired, PrecheckFailed
from common.school_year import to_db_key
from pipelines import paths

from .badges import derive_badge
from .dashboard import filter_for_dashboard
from .models import (
    BadgeKind,
    CourseMetadata,
    CourseStatus,
    CourseStatusPatch,
    CourseStatusSummary,
    DashboardTab,
    RegistrarFlag,
)
from .patch import MARK_CONFIRMED_MESSAGE, MARK_REQUIRED_MESSAGE, apply_patch, changed_fields

if TYPE_CHECKING:
    from pipelines.record_store import RecordStore

logger = logging.getLogger(__name__)

REGISTRATION_NOT_REQUESTED_MESSAGE = (
    'Cannot confirm PASI registration unless "Request PASI Registration" is checked first.'
)
NOT_COMMITTED_MESSAGE = "Cannot confirm mark submission: Student must be committed to the course first."

CONFIRMATION_PROMPTS: Dict[tuple, str] = {
    (RegistrarFlag.REGISTRATION, True): "Confirm that student has been registered in PASI?",
    (RegistrarFlag.REGISTRATION, False): "Remove confirmation that student was registered in PASI?",
    (RegistrarFlag.MARK, True): "Confirm that mark has been submitted to PASI?",
    (RegistrarFlag.MARK, False): "Remove confirmation that mark was submitted to PASI?",
}


def _epoch_millis() -> int:
    return int(time.time() * 1000)


class CourseStatusEngine:
    """Per-course PASI workflow over a record store.

    Writes are field-level merges: only the fields a patch names (plus any
    field invariant repair changed, the metadata snapshot, `asn` and
    `lastUpdated`) are sent, so concurrent edits to unrelated fields survive.
    """

    def __init__(self, store: "RecordStore", *, clock: Callable[[], int] = _epoch_millis) -> None:
        self._store = store
        self._clock = clock

    def get_status(self, family_id: str, school_year: str, student_id: str, course_id: str) -> CourseStatus:
        raw = self._store.get(paths.course_status_path(family_id, school_year, student_id, course_id))
        return course_status_from_record(raw, course_id=course_id)

    def update_status(
        self,
        family_id: str,
        school_year: str,
        student_id: str,
        course_id: str,
        patch: CourseStatusPatch,
        *,
        metadata: Optional[CourseMetadata] = None,
        asn: Optional[str] = None,
        expected_last_updated: Optional[int] = None,
    ) -> CourseStatus:
        path = paths.course_status_path(family_id, school_year, student_id, course_id)
        current = self.get_status(family_id, school_year, student_id, course_id)
        if expected_last_updated is not None and current.last_updated != expected_last_updated:
            raise ConcurrentUpdateError(path, expected_last_updated, current.last_updated)

        nxt = apply_patch(current, patch)
        self._check_raised_flags(current, nxt, patch)
        fields = fields_to_record(changed_fields(current, nxt, patch))

        stamp: Dict[str, object] = {"last_updated": self._clock()}
        if metadata is not None:
            stamp.update(metadata.model_dump(exclude_none=True))
        if asn is not None:
            stamp["asn"] = asn
        nxt = nxt.model_copy(update=stamp)
        if metadata is not None:
            fields.update(metadata_to_record(metadata))
        fields.update(fields_to_record({k: v for k, v in stamp.items() if k in ("last_updated", "asn")}))

        summary = CourseStatusSummary.model_validate(
            {
                **nxt.model_dump(),
                "family_id": family_id,
                "student_id": student_id,
                "course_id": course_id,
                "school_year": to_db_key(school_year),
            }
        )
        # Record fields and dashboard row land in one multi-path write.
        writes: Dict[str, object] = {f"{path}/{name}": value for name, value in fields.items()}
        summary_path = paths.course_status_summary_path(family_id, school_year, student_id, course_id)
        writes[summary_path] = summary_to_record(summary)
        self._store.update("", writes)
        logger.info(
            "Course status %s/%s/%s/%s updated: %s",
            family_id,
            to_db_key(school_year),
            student_id,
            course_id,
            ", ".join(sorted(fields)),
        )
        return nxt

    def set_registrar_flag(
        self,
        family_id: str,
        school_year: str,
        student_id: str,
        course_id: str,
        field: RegistrarFlag,
        new_value: bool,
        actor_is_registrar: bool,
        *,
        confirmed: bool = False,
        metadata: Optional[CourseMetadata] = None,
        asn: Optional[str] = None,
    ) -> CourseStatus:
        """
        Set or clear one of the registrar confirmation flags.

        Prerequisites are checked before anything is written. Confirming the
        mark also confirms the registration in the same update. Callers that
        are not registrars must pass `confirmed=True` after showing the prompt
        carried by `ConfirmationRequired`.
        """
        field = RegistrarFlag(field)
        current = self.get_status(family_id, school_year, student_id, course_id)
        self._check_registrar_prerequisites(current, field, new_value)

        if not actor_is_registrar and not confirmed:
            raise ConfirmationRequired(field.value, new_value, CONFIRMATION_PROMPTS[(field, new_value)])

        values: Dict[str, bool] = {field.field_name: new_value}
        if field is RegistrarFlag.MARK and new_value:
            values["registrar_confirmed_registration"] = True
        return self.update_status(
            family_id,
            school_year,
            student_id,
            course_id,
            CourseStatusPatch(**values),
            metadata=metadata,
            asn=asn,
        )

    def _check_raised_flags(self, current: CourseStatus, nxt: CourseStatus, patch: CourseStatusPatch) -> None:
        """A patch that raises a registrar flag must meet the same prerequisites as `set_registrar_flag`."""
        present = patch.present()
        if present.get("registrar_confirmed_mark") is True and not current.registrar_confirmed_mark:
            # Mark confirmation carries the registration with it.
            self._check_registrar_prerequisites(nxt, RegistrarFlag.MARK, True)
        elif present.get("registrar_confirmed_registration") is True and not current.registrar_confirmed_registration:
            self._check_registrar_prerequisites(nxt, RegistrarFlag.REGISTRATION, True)

    def _check_registrar_prerequisites(self, current: CourseStatus, field: RegistrarFlag, new_value: bool) -> None:
        failure: Optional[PrecheckFailed] = None
        if new_value and field is RegistrarFlag.REGISTRATION and not current.needs_pasi_registration:
            failure = PrecheckFailed(field.value, "needsPasiRegistration", REGISTRATION_NOT_REQUESTED_MESSAGE)
        elif new_value and field is RegistrarFlag.MARK and not current.committed:
            failure = PrecheckFailed(field.value, "committed", NOT_COMMITTED_MESSAGE)
        elif new_value and field is RegistrarFlag.MARK and current.final_mark is None:
            failure = PrecheckFailed(field.value, "finalMark", MARK_REQUIRED_MESSAGE)
        elif not new_value and field is RegistrarFlag.REGISTRATION and current.registrar_confirmed_mark:
            failure = PrecheckFailed(field.value, "registrarConfirmedMark", MARK_CONFIRMED_MESSAGE)

        if failure is not None:
            logger.warning("Rejected %s=%s: %s", field.value, new_value, failure)
            raise failure

    def remove_course(self, family_id: str, school_year: str, student_id: str, course_id: str) -> None:
        """Cascade delete for a course removed from the plan: status record and dashboard row."""
        self._store.update(
            "",
            {
                paths.course_status_path(family_id, school_year, student_id, course_id): None,
                paths.course_status_summary_path(family_id, school_year, student_id, course_id): None,
            },
        )
        logger.info(
            "Course status %s/%s/%s/%s removed", family_id, to_db_key(school_year), student_id, course_id
        )

    def derive_badge(self, status: CourseStatus) -> BadgeKind:
        return derive_badge(status)

    def filter_for_dashboard(
        self,
        statuses: Iterable[CourseStatus],
        tab: DashboardTab,
        *,
        search: Optional[str] = None,
        student_names: Optional[Mapping[str, str]] = None,
    ) -> List[CourseStatus]:
        return filter_for_dashboard(statuses, tab, search=search, student_names=student_names)

    def load_summaries(self, school_year: str) -> List[CourseStatusSummary]:
        rows = self._store.query_equal(paths.COURSE_STATUS_SUMMARY_ROOT, "schoolYear", to_db_key(school_year))
        return [summary_from_record(key, raw) for key, raw in rows.items()]

    def dashboard(
        self,
        school_year: str,
        tab: DashboardTab,
        *,
        search: Optional[str] = None,
        student_names: Optional[Mapping[str, str]] = None,
    ) -> List[CourseStatusSummary]:
        return filter_for_dashboard(
            self.load_summaries(school_year), tab, search=search, student_names=student_names
        )

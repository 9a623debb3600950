from __future__ import annotations

from enum import Enum
from typing import Dict, Optional

from pydantic import BaseModel, Field


class CourseSource(str, Enum):
    ALBERTA_COURSE = "albertaCourse"
    OTHER_COURSE = "otherCourse"


class BadgeKind(str, Enum):
    COMPLETE = "Complete"
    MARK_PENDING = "Mark Pending"
    REGISTERED = "Registered"
    REGISTRATION_PENDING = "Registration Pending"
    COMMITTED = "Committed"
    NOT_COMMITTED = "Not Committed"


class DashboardTab(str, Enum):
    ADD_TO_PASI = "add-to-pasi"
    COMPLETED = "completed"
    ALL = "all"


class RegistrarFlag(str, Enum):
    REGISTRATION = "registrarConfirmedRegistration"
    MARK = "registrarConfirmedMark"

    @property
    def field_name(self) -> str:
        return "registrar_confirmed_registration" if self is RegistrarFlag.REGISTRATION else "registrar_confirmed_mark"


class CourseMetadata(BaseModel):
    """Catalog snapshot copied onto every status write so records stay self-describing."""

    course_source: Optional[CourseSource] = None
    course_code: Optional[str] = None
    course_name: Optional[str] = None
    description: Optional[str] = None
    credits: Optional[float] = None
    for_credit: Optional[bool] = None


class CourseStatus(CourseMetadata):
    course_id: Optional[str] = None

    committed: bool = False
    # Only meaningful for non-catalog courses.
    course_code_verified: bool = False
    needs_pasi_registration: bool = False
    pasi_registration_comment: Optional[str] = None
    registrar_confirmed_registration: bool = False
    final_mark: Optional[float] = Field(default=None, ge=0, le=100)
    registrar_comment: Optional[str] = None
    registrar_confirmed_mark: bool = False

    activity_descriptions: Dict[str, str] = Field(default_factory=dict)

    last_updated: Optional[int] = None
    asn: Optional[str] = None

    def metadata(self) -> CourseMetadata:
        return CourseMetadata.model_validate(self.model_dump(include=set(CourseMetadata.model_fields)))


# Fields a patch may carry; metadata, asn and lastUpdated are stamped by the engine.
WORKFLOW_FIELDS = (
    "committed",
    "course_code_verified",
    "needs_pasi_registration",
    "pasi_registration_comment",
    "registrar_confirmed_registration",
    "final_mark",
    "registrar_comment",
    "registrar_confirmed_mark",
    "activity_descriptions",
)

BOOLEAN_FIELDS = frozenset(
    {
        "committed",
        "course_code_verified",
        "needs_pasi_registration",
        "registrar_confirmed_registration",
        "registrar_confirmed_mark",
    }
)


class CourseStatusPatch(BaseModel):
    """Partial update to a CourseStatus.

    A field counts as part of the patch only when explicitly set, so
    `CourseStatusPatch(final_mark=None)` clears the mark while
    `CourseStatusPatch()` leaves it alone.
    """

    committed: Optional[bool] = None
    course_code_verified: Optional[bool] = None
    needs_pasi_registration: Optional[bool] = None
    pasi_registration_comment: Optional[str] = None
    registrar_confirmed_registration: Optional[bool] = None
    final_mark: Optional[float] = Field(default=None, ge=0, le=100)
    registrar_comment: Optional[str] = None
    registrar_confirmed_mark: Optional[bool] = None
    activity_descriptions: Optional[Dict[str, str]] = None

    def present(self) -> Dict[str, object]:
        return {name: getattr(self, name) for name in WORKFLOW_FIELDS if name in self.model_fields_set}


class CourseStatusSummary(CourseStatus):
    """Dashboard index row; one per family, school year, student and course."""

    family_id: str
    student_id: str
    # Storage form, e.g. "25_26".
    school_year: str
    student_name: Optional[str] = None

    @property
    def summary_key(self) -> str:
        return f"{self.family_id}_{self.school_year}_{self.student_id}_{self.course_id}"

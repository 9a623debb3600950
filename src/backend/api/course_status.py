from __future__ import annotations

from typing import Dict, List, Optional

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Response
from pydantic import BaseModel

from common.course_status.dashboard import tab_counts
from common.course_status.engine import CourseStatusEngine
from common.course_status.models import (
    CourseMetadata,
    CourseStatus,
    CourseStatusPatch,
    CourseStatusSummary,
    DashboardTab,
    RegistrarFlag,
)

from .deps import get_course_status_engine


router = APIRouter(prefix="/course-status", tags=["course-status"])

_COURSE_PATH = "/{family_id}/{school_year}/{student_id}/{course_id}"
_ACTOR_ROLES = ("registrar", "parent")
_REGISTRAR_FIELDS = {"registrar_confirmed_registration", "registrar_confirmed_mark"}


class CourseStatusUpdate(BaseModel):
    patch: CourseStatusPatch
    metadata: Optional[CourseMetadata] = None
    asn: Optional[str] = None
    expected_last_updated: Optional[int] = None


class RegistrarFlagChange(BaseModel):
    field: RegistrarFlag
    value: bool
    confirmed: bool = False
    metadata: Optional[CourseMetadata] = None
    asn: Optional[str] = None


class DashboardView(BaseModel):
    school_year: str
    tab: DashboardTab
    counts: Dict[str, int]
    rows: List[CourseStatusSummary]


@router.get("/dashboard", response_model=DashboardView)
def course_status_dashboard(
    school_year: str = Query(...),
    tab: DashboardTab = Query(DashboardTab.ADD_TO_PASI),
    search: Optional[str] = Query(None),
    engine: CourseStatusEngine = Depends(get_course_status_engine),
):
    summaries = engine.load_summaries(school_year)
    return DashboardView(
        school_year=school_year,
        tab=tab,
        counts={k.value: v for k, v in tab_counts(summaries).items()},
        rows=engine.filter_for_dashboard(summaries, tab, search=search),
    )


@router.get(_COURSE_PATH, response_model=CourseStatus)
def get_course_status(
    family_id: str,
    school_year: str,
    student_id: str,
    course_id: str,
    engine: CourseStatusEngine = Depends(get_course_status_engine),
):
    return engine.get_status(family_id, school_year, student_id, course_id)


@router.patch(_COURSE_PATH, response_model=CourseStatus)
def update_course_status(
    family_id: str,
    school_year: str,
    student_id: str,
    course_id: str,
    body: CourseStatusUpdate,
    engine: CourseStatusEngine = Depends(get_course_status_engine),
):
    flags = _REGISTRAR_FIELDS & body.patch.model_fields_set
    if flags:
        raise HTTPException(
            status_code=400,
            detail=(
                f"{', '.join(sorted(flags))} can only be changed through "
                f"/course-status/{family_id}/{school_year}/{student_id}/{course_id}/registrar-flags."
            ),
        )
    return engine.update_status(
        family_id,
        school_year,
        student_id,
        course_id,
        body.patch,
        metadata=body.metadata,
        asn=body.asn,
        expected_last_updated=body.expected_last_updated,
    )


@router.delete(_COURSE_PATH, status_code=204)
def remove_course_status(
    family_id: str,
    school_year: str,
    student_id: str,
    course_id: str,
    engine: CourseStatusEngine = Depends(get_course_status_engine),
):
    engine.remove_course(family_id, school_year, student_id, course_id)
    return Response(status_code=204)


@router.post(_COURSE_PATH + "/registrar-flags", response_model=CourseStatus)
def set_registrar_flag(
    family_id: str,
    school_year: str,
    student_id: str,
    course_id: str,
    body: RegistrarFlagChange,
    actor_role: str = Header("parent", alias="X-Actor-Role"),
    engine: CourseStatusEngine = Depends(get_course_status_engine),
):
    role = actor_role.strip().lower()
    if role not in _ACTOR_ROLES:
        raise HTTPException(status_code=400, detail=f"Unknown actor role '{actor_role}'.")
    return engine.set_registrar_flag(
        family_id,
        school_year,
        student_id,
        course_id,
        body.field,
        body.value,
        role == "registrar",
        confirmed=body.confirmed,
        metadata=body.metadata,
        asn=body.asn,
    )

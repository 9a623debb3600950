from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional

from .models import CourseStatus, CourseStatusSummary, DashboardTab


def needs_pasi_registration(status: CourseStatus) -> bool:
    """Registrar work queue: requested, no mark yet, not yet registered."""
    return (
        status.needs_pasi_registration
        and status.final_mark is None
        and not status.registrar_confirmed_registration
    )


def registration_completed(status: CourseStatus) -> bool:
    return status.registrar_confirmed_registration


TAB_PREDICATES: Dict[DashboardTab, Callable[[CourseStatus], bool]] = {
    DashboardTab.ADD_TO_PASI: needs_pasi_registration,
    DashboardTab.COMPLETED: registration_completed,
    DashboardTab.ALL: lambda _status: True,
}


def _searchable_text(summary: CourseStatus) -> str:
    parts = [summary.course_name, summary.course_code, summary.description, summary.registrar_comment]
    return " ".join(p for p in parts if p).lower()


def _student_name(summary: CourseStatus, student_names: Optional[Mapping[str, str]]) -> str:
    if isinstance(summary, CourseStatusSummary):
        if student_names:
            name = student_names.get(f"{summary.family_id}_{summary.student_id}")
            if name:
                return name
        return summary.student_name or ""
    return ""


def matches_search(
    summary: CourseStatus,
    search: str,
    student_names: Optional[Mapping[str, str]] = None,
) -> bool:
    needle = search.strip().lower()
    if not needle:
        return True
    if needle in _searchable_text(summary):
        return True
    return needle in _student_name(summary, student_names).lower()


def filter_for_dashboard(
    statuses: Iterable[CourseStatus],
    tab: DashboardTab,
    *,
    search: Optional[str] = None,
    student_names: Optional[Mapping[str, str]] = None,
) -> List[CourseStatus]:
    """
    Rows for one dashboard tab, most recently updated first.

    `student_names` maps "{familyId}_{studentId}" to a display name so search
    can match on student as well as course fields.
    """
    predicate = TAB_PREDICATES[DashboardTab(tab)]
    rows = [s for s in statuses if predicate(s)]
    if search:
        rows = [s for s in rows if matches_search(s, search, student_names)]
    return sorted(rows, key=lambda s: s.last_updated or 0, reverse=True)


def tab_counts(statuses: Iterable[CourseStatus]) -> Dict[DashboardTab, int]:
    rows = list(statuses)
    return {tab: sum(1 for s in rows if predicate(s)) for tab, predicate in TAB_PREDICATES.items()}

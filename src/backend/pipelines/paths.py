from __future__ import annotations

from common.school_year import to_db_key

ROOT = "homeEducationFamilies"
FAMILY_ROOT = f"{ROOT}/familyInformation"
COURSE_STATUS_SUMMARY_ROOT = f"{ROOT}/courseStatusSummary"
ADMIN_AUDIT_LOG = "adminAuditLog"


def family_path(family_id: str) -> str:
    return f"{FAMILY_ROOT}/{family_id}"


def students_path(family_id: str) -> str:
    return f"{family_path(family_id)}/students"


def program_plan_path(family_id: str, school_year: str, student_id: str) -> str:
    return f"{family_path(family_id)}/SOLO_EDUCATION_PLANS/{to_db_key(school_year)}/{student_id}"


def course_status_path(family_id: str, school_year: str, student_id: str, course_id: str) -> str:
    return f"{program_plan_path(family_id, school_year, student_id)}/courseStatus/{course_id}"


def summary_key(family_id: str, school_year: str, student_id: str, course_id: str) -> str:
    return f"{family_id}_{to_db_key(school_year)}_{student_id}_{course_id}"


def course_status_summary_path(family_id: str, school_year: str, student_id: str, course_id: str) -> str:
    return f"{COURSE_STATUS_SUMMARY_ROOT}/{summary_key(family_id, school_year, student_id, course_id)}"


def claims_path(family_id: str, school_year: str) -> str:
    return f"{family_path(family_id)}/REIMBURSEMENT_CLAIMS/{to_db_key(school_year)}"


def claim_path(family_id: str, school_year: str, claim_id: str) -> str:
    return f"{claims_path(family_id, school_year)}/{claim_id}"


def pasi_registrations_path(family_id: str, school_year: str) -> str:
    return f"{family_path(family_id)}/PASI_REGISTRATIONS/{to_db_key(school_year)}"

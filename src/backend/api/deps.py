from __future__ import annotations

from fastapi import Request

from common.course_status.engine import CourseStatusEngine
from common.reimbursement.engine import ReimbursementAllocationEngine
from common.settings import ReimbursementSettings
from pipelines.identity import IdentityProvider
from pipelines.record_store import RecordStore


def get_store(request: Request) -> RecordStore:
    return request.app.state.store


def get_identity(request: Request) -> IdentityProvider:
    return request.app.state.identity


def get_settings(request: Request) -> ReimbursementSettings:
    return request.app.state.settings


def get_course_status_engine(request: Request) -> CourseStatusEngine:
    return request.app.state.course_status_engine


def get_reimbursement_engine(request: Request) -> ReimbursementAllocationEngine:
    return request.app.state.reimbursement_engine

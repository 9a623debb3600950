from __future__ import annotations

import logging
import os
from typing import Callable, Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.course_status.engine import CourseStatusEngine
from common.errors import (
    AdminActionError,
    ConcurrentUpdateError,
    ConfirmationRequired,
    InvalidClaimTransition,
    PersistenceError,
    PrecheckFailed,
    RecordNotFound,
)
from common.logging_config import setup_logging
from common.reimbursement.engine import ReimbursementAllocationEngine
from common.settings import ReimbursementSettings, load_settings
from pipelines.identity import IdentityProvider, get_identity_provider
from pipelines.record_store import RecordStore, get_record_store

from . import admin, course_status, reimbursement

logger = logging.getLogger(__name__)

ADMIN_ERROR_STATUS = {
    "unauthenticated": 401,
    "permission-denied": 403,
    "invalid-argument": 400,
    "internal": 500,
}


def create_app(
    store: Optional[RecordStore] = None,
    identity: Optional[IdentityProvider] = None,
    settings: Optional[ReimbursementSettings] = None,
    *,
    clock: Optional[Callable[[], int]] = None,
) -> FastAPI:
    """
    Build the API around one record store and identity provider.

    Defaults come from `RECORD_STORE` / `IDENTITY_PROVIDER` (memory|firebase).
    """
    setup_logging()
    store = store or get_record_store(os.getenv("RECORD_STORE", "memory"))
    identity = identity or get_identity_provider(os.getenv("IDENTITY_PROVIDER", "memory"))
    settings = settings or load_settings()
    clock_kwargs = {"clock": clock} if clock is not None else {}

    app = FastAPI(title="Home Education Backend")
    app.state.store = store
    app.state.identity = identity
    app.state.settings = settings
    app.state.course_status_engine = CourseStatusEngine(store, **clock_kwargs)
    app.state.reimbursement_engine = ReimbursementAllocationEngine(store, settings, **clock_kwargs)

    app.include_router(course_status.router)
    app.include_router(reimbursement.router)
    app.include_router(admin.router)
    _register_error_handlers(app)
    return app


def _register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(PrecheckFailed)
    def _precheck_failed(request: Request, exc: PrecheckFailed):
        return JSONResponse(
            status_code=409,
            content={"error": "precheck_failed", "field": exc.field, "prerequisite": exc.prerequisite, "detail": str(exc)},
        )

    @app.exception_handler(ConfirmationRequired)
    def _confirmation_required(request: Request, exc: ConfirmationRequired):
        return JSONResponse(
            status_code=428,
            content={"error": "confirmation_required", "field": exc.field, "value": exc.value, "prompt": exc.prompt},
        )

    @app.exception_handler(ConcurrentUpdateError)
    def _concurrent_update(request: Request, exc: ConcurrentUpdateError):
        return JSONResponse(
            status_code=409,
            content={"error": "concurrent_update", "expected": exc.expected, "actual": exc.actual, "detail": str(exc)},
        )

    @app.exception_handler(PersistenceError)
    def _persistence_error(request: Request, exc: PersistenceError):
        logger.error("Persistence failure on %s %s: %s", request.method, request.url.path, exc)
        return JSONResponse(status_code=503, content={"error": "persistence", "detail": str(exc)})

    @app.exception_handler(InvalidClaimTransition)
    def _invalid_transition(request: Request, exc: InvalidClaimTransition):
        return JSONResponse(
            status_code=409,
            content={"error": "invalid_transition", "current": exc.current, "requested": exc.requested},
        )

    @app.exception_handler(RecordNotFound)
    def _not_found(request: Request, exc: RecordNotFound):
        return JSONResponse(status_code=404, content={"error": "not_found", "detail": str(exc)})

    @app.exception_handler(AdminActionError)
    def _admin_error(request: Request, exc: AdminActionError):
        return JSONResponse(
            status_code=ADMIN_ERROR_STATUS[exc.code],
            content={"error": exc.code, "detail": str(exc)},
        )

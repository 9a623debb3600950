from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, Header
from pydantic import BaseModel

from common.admin import Caller, remove_family_claims
from common.settings import ReimbursementSettings
from pipelines.identity import IdentityProvider
from pipelines.record_store import RecordStore

from .deps import get_identity, get_settings, get_store


router = APIRouter(prefix="/admin", tags=["admin"])


class RemoveFamilyClaimsRequest(BaseModel):
    target_uid: Optional[str] = None
    target_email: Optional[str] = None


class RemoveFamilyClaimsResponse(BaseModel):
    success: bool = True
    uid: str
    email: str
    changed: bool
    removed_claims: Dict[str, Any]
    force_reauth_at: Optional[int] = None
    audit_logged: bool


@router.post("/remove-family-claims", response_model=RemoveFamilyClaimsResponse)
def remove_family_claims_route(
    body: RemoveFamilyClaimsRequest,
    caller_uid: Optional[str] = Header(None, alias="X-Caller-Uid"),
    caller_email: Optional[str] = Header(None, alias="X-Caller-Email"),
    identity: IdentityProvider = Depends(get_identity),
    store: RecordStore = Depends(get_store),
    settings: ReimbursementSettings = Depends(get_settings),
):
    result = remove_family_claims(
        Caller(uid=caller_uid, email=caller_email),
        identity=identity,
        store=store,
        settings=settings,
        target_uid=body.target_uid,
        target_email=body.target_email,
    )
    return RemoveFamilyClaimsResponse(
        uid=result.uid,
        email=result.email,
        changed=result.changed,
        removed_claims=result.removed,
        force_reauth_at=result.force_reauth_at,
        audit_logged=result.audit_logged,
    )

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional

from common.errors import AdminActionError, PersistenceError
from common.settings import ReimbursementSettings
from pipelines import paths

if TYPE_CHECKING:
    from pipelines.identity import IdentityProvider, UserRecord
    from pipelines.record_store import RecordStore

logger = logging.getLogger(__name__)

FAMILY_CLAIM_KEYS = ("familyId", "familyRole", "isHomeEducationParent")
ADMIN_CLAIM_KEYS = ("isAdminUser", "isSuperAdminUser")
REMOVE_FAMILY_CLAIMS_ACTION = "REMOVE_FAMILY_CLAIMS"


@dataclass(frozen=True)
class Caller:
    uid: Optional[str]
    email: Optional[str] = None


@dataclass(frozen=True)
class FamilyClaimsRemoval:
    uid: str
    email: str
    removed: Dict[str, Any] = field(default_factory=dict)
    force_reauth_at: Optional[int] = None
    audit_logged: bool = False

    @property
    def changed(self) -> bool:
        return bool(self.removed)


def _epoch_millis() -> int:
    return int(time.time() * 1000)


def _is_admin(caller: Caller, caller_record: Optional["UserRecord"], settings: ReimbursementSettings) -> bool:
    if caller.email and caller.email.strip().lower() in settings.admin_emails:
        return True
    if caller_record is None:
        return False
    claims = caller_record.custom_claims
    if any(claims.get(key) for key in ADMIN_CLAIM_KEYS):
        return True
    return "admin" in (claims.get("staffPermissions") or [])


def remove_family_claims(
    caller: Caller,
    *,
    identity: "IdentityProvider",
    store: "RecordStore",
    settings: ReimbursementSettings,
    target_uid: Optional[str] = None,
    target_email: Optional[str] = None,
    clock: Callable[[], int] = _epoch_millis,
) -> FamilyClaimsRemoval:
    """
    Strip the family authorization claims from an account and force re-authentication.

    Idempotent: when none of the family claims are present nothing is written
    and no audit entry is recorded. Failures surface as `AdminActionError`.
    """
    if not caller.uid:
        raise AdminActionError("unauthenticated", "User must be authenticated to perform this action.")
    if not target_uid and not target_email:
        raise AdminActionError("invalid-argument", "Either targetEmail or targetUid must be provided.")

    try:
        caller_record = identity.lookup(uid=caller.uid)
        if not _is_admin(caller, caller_record, settings):
            raise AdminActionError("permission-denied", "Only admin users can perform user management actions.")

        target = identity.lookup(uid=target_uid, email=target_email)
        if target is None:
            raise AdminActionError("invalid-argument", "User not found.")

        removed = {k: target.custom_claims[k] for k in FAMILY_CLAIM_KEYS if k in target.custom_claims}
        if not removed:
            logger.info("No family claims on %s; nothing to remove", target.uid)
            return FamilyClaimsRemoval(uid=target.uid, email=target.email)

        remaining = {k: v for k, v in target.custom_claims.items() if k not in FAMILY_CLAIM_KEYS}
        now = clock()
        identity.set_custom_claims(target.uid, remaining)
        identity.revoke_sessions(target.uid, now // 1000)
    except PersistenceError as exc:
        logger.error("Removing family claims failed: %s", exc)
        raise AdminActionError("internal", "An error occurred while removing family claims.") from exc

    audit_entry = {
        "actionType": REMOVE_FAMILY_CLAIMS_ACTION,
        "targetUser": {"email": target.email, "uid": target.uid},
        "performedBy": {"email": caller.email or "", "uid": caller.uid},
        "actionData": {"removedClaims": removed, "forceReauthAt": now},
        "timestamp": now,
    }
    audit_logged = True
    try:
        store.push(paths.ADMIN_AUDIT_LOG, audit_entry)
    except PersistenceError as exc:
        # Claims are already gone; report the missing audit entry instead of failing the call.
        logger.error("Failed to log admin action %s on %s: %s", REMOVE_FAMILY_CLAIMS_ACTION, target.uid, exc)
        audit_logged = False

    logger.info(
        "Removed family claims %s from %s by %s",
        ", ".join(sorted(removed)),
        target.email or target.uid,
        caller.email or caller.uid,
    )
    return FamilyClaimsRemoval(
        uid=target.uid,
        email=target.email,
        removed=removed,
        force_reauth_at=now,
        audit_logged=audit_logged,
    )

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Protocol, Tuple

from common.errors import PersistenceError
from connectors.firebase.client import FirebaseHttpError
from connectors.firebase.config import FirebaseConfig, get_identity_config
from connectors.firebase.identity import (
    custom_claims,
    lookup_account,
    revoke_refresh_tokens,
    set_custom_claims,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    uid: str
    email: str = ""
    custom_claims: Dict[str, Any] = field(default_factory=dict)


class IdentityProvider(Protocol):
    def lookup(self, *, uid: Optional[str] = None, email: Optional[str] = None) -> Optional[UserRecord]:
        ...

    def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        ...

    def revoke_sessions(self, uid: str, valid_since_seconds: int) -> None:
        ...


def get_identity_provider(name: str) -> IdentityProvider:
    """Resolve an identity provider by name (memory|firebase)."""
    source = (name or "").strip().lower()
    if source in ("memory", ""):
        return InMemoryIdentityProvider()
    if source == "firebase":
        return FirebaseIdentityProvider()
    raise ValueError(f"Unknown identity provider '{name}' (expected 'memory' or 'firebase').")


class InMemoryIdentityProvider:
    def __init__(self, users: Optional[List[UserRecord]] = None) -> None:
        self._users: Dict[str, UserRecord] = {u.uid: u for u in users or []}
        self.revocations: List[Tuple[str, int]] = []

    def add_user(self, user: UserRecord) -> None:
        self._users[user.uid] = user

    def lookup(self, *, uid: Optional[str] = None, email: Optional[str] = None) -> Optional[UserRecord]:
        if uid:
            user = self._users.get(uid)
        else:
            wanted = (email or "").strip().lower()
            user = next((u for u in self._users.values() if u.email.lower() == wanted), None)
        if user is None:
            return None
        return UserRecord(uid=user.uid, email=user.email, custom_claims=copy.deepcopy(user.custom_claims))

    def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        user = self._users[uid]
        self._users[uid] = UserRecord(uid=user.uid, email=user.email, custom_claims=dict(claims))

    def revoke_sessions(self, uid: str, valid_since_seconds: int) -> None:
        self.revocations.append((uid, valid_since_seconds))


class FirebaseIdentityProvider:
    """IdentityProvider backed by the Identity Toolkit admin REST endpoints."""

    def __init__(self, config: Optional[FirebaseConfig] = None) -> None:
        self._config = config or get_identity_config()

    def lookup(self, *, uid: Optional[str] = None, email: Optional[str] = None) -> Optional[UserRecord]:
        try:
            raw = lookup_account(self._config, uid=uid, email=email)
        except FirebaseHttpError as exc:
            raise PersistenceError(f"Account lookup failed: {exc}") from exc
        if raw is None:
            return None
        return UserRecord(uid=raw["localId"], email=raw.get("email", ""), custom_claims=custom_claims(raw))

    def set_custom_claims(self, uid: str, claims: Dict[str, Any]) -> None:
        try:
            set_custom_claims(self._config, uid, claims)
        except FirebaseHttpError as exc:
            raise PersistenceError(f"Updating custom claims for {uid} failed: {exc}") from exc
        logger.info("Custom claims updated for %s", uid)

    def revoke_sessions(self, uid: str, valid_since_seconds: int) -> None:
        try:
            revoke_refresh_tokens(self._config, uid, valid_since_seconds)
        except FirebaseHttpError as exc:
            raise PersistenceError(f"Revoking sessions for {uid} failed: {exc}") from exc

from __future__ import annotations

import json
from typing import Any

from .client import send_json
from .config import FirebaseConfig


def _accounts_url(config: FirebaseConfig, action: str) -> str:
    return f"{config.identity_base_url.rstrip('/')}/projects/{config.project_id}/accounts:{action}"


def _call(config: FirebaseConfig, action: str, payload: dict[str, Any]) -> dict[str, Any]:
    body = send_json(
        _accounts_url(config, action),
        "POST",
        data=json.dumps(payload).encode("utf-8"),
        headers={"Authorization": f"Bearer {config.access_token}"},
        timeout_seconds=config.timeout_seconds,
        max_retries=config.max_retries,
    )
    return body or {}


def lookup_account(config: FirebaseConfig, *, uid: str | None = None, email: str | None = None) -> dict[str, Any] | None:
    """Return the raw user record for a uid or email, or None when no account matches."""
    if uid:
        payload: dict[str, Any] = {"localId": [uid]}
    elif email:
        payload = {"email": [email]}
    else:
        raise ValueError("lookup_account requires uid or email")

    users = _call(config, "lookup", payload).get("users") or []
    return users[0] if users else None


def custom_claims(user: dict[str, Any]) -> dict[str, Any]:
    raw = user.get("customAttributes")
    if not raw:
        return {}
    return json.loads(raw)


def set_custom_claims(config: FirebaseConfig, uid: str, claims: dict[str, Any]) -> None:
    _call(config, "update", {"localId": uid, "customAttributes": json.dumps(claims)})


def revoke_refresh_tokens(config: FirebaseConfig, uid: str, valid_since_seconds: int) -> None:
    # Sessions minted before validSince must re-authenticate.
    _call(config, "update", {"localId": uid, "validSince": str(valid_since_seconds)})

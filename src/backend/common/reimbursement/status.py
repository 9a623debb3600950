from __future__ import annotations

from typing import Dict, FrozenSet

from common.errors import InvalidClaimTransition

from .models import ClaimStatus

# Registrar-side transitions; anything not listed is rejected.
ALLOWED_TRANSITIONS: Dict[ClaimStatus, FrozenSet[ClaimStatus]] = {
    ClaimStatus.PENDING_REVIEW: frozenset({ClaimStatus.APPROVED, ClaimStatus.REJECTED}),
    ClaimStatus.APPROVED: frozenset({ClaimStatus.PAID}),
    ClaimStatus.PAID: frozenset(),
    ClaimStatus.REJECTED: frozenset(),
}


def can_transition(current: ClaimStatus, requested: ClaimStatus) -> bool:
    return requested in ALLOWED_TRANSITIONS.get(ClaimStatus(current), frozenset())


def transition(current: ClaimStatus, requested: ClaimStatus) -> ClaimStatus:
    current = ClaimStatus(current)
    requested = ClaimStatus(requested)
    if not can_transition(current, requested):
        raise InvalidClaimTransition(current.value, requested.value)
    return requested


def is_terminal(status: ClaimStatus) -> bool:
    return not ALLOWED_TRANSITIONS.get(ClaimStatus(status))

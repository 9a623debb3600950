from __future__ import annotations

from .models import BadgeKind, CourseStatus


def derive_badge(status: CourseStatus) -> BadgeKind:
    """Single display badge for a status; first match wins."""
    if status.registrar_confirmed_mark and status.final_mark is not None:
        return BadgeKind.COMPLETE
    if status.final_mark is not None:
        return BadgeKind.MARK_PENDING
    if status.registrar_confirmed_registration:
        return BadgeKind.REGISTERED
    if status.needs_pasi_registration:
        return BadgeKind.REGISTRATION_PENDING
    if status.committed:
        return BadgeKind.COMMITTED
    return BadgeKind.NOT_COMMITTED

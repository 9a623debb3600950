"""Course PASI workflow: status records, invariant-repairing patches, badges and dashboard queues.

The store-backed engine is imported from `common.course_status.engine` directly.
"""

from .models import (
    BadgeKind,
    CourseMetadata,
    CourseSource,
    CourseStatus,
    CourseStatusPatch,
    CourseStatusSummary,
    DashboardTab,
    RegistrarFlag,
)
from .badges import derive_badge
from .dashboard import filter_for_dashboard, tab_counts
from .patch import apply_patch

__all__ = [
    "BadgeKind",
    "CourseMetadata",
    "CourseSource",
    "CourseStatus",
    "CourseStatusPatch",
    "CourseStatusSummary",
    "DashboardTab",
    "RegistrarFlag",
    "apply_patch",
    "derive_badge",
    "filter_for_dashboard",
    "tab_counts",
]

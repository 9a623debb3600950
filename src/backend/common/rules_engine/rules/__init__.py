from .claim_purchase_info_complete import CLAIM_PURCHASE_INFO_COMPLETE
from .allocation_percentage_positive import ALLOCATION_PERCENTAGE_POSITIVE
from .allocation_category_selected import ALLOCATION_CATEGORY_SELECTED
from .allocation_justification_present import ALLOCATION_JUSTIFICATION_PRESENT
from .allocation_within_remaining_budget import ALLOCATION_WITHIN_REMAINING_BUDGET
from .allocation_within_category_limit import ALLOCATION_WITHIN_CATEGORY_LIMIT
from .allocation_percentages_total import ALLOCATION_PERCENTAGES_TOTAL
from .receipt_quality_justification import RECEIPT_QUALITY_JUSTIFICATION

__all__ = [
    "CLAIM_PURCHASE_INFO_COMPLETE",
    "ALLOCATION_PERCENTAGE_POSITIVE",
    "ALLOCATION_CATEGORY_SELECTED",
    "ALLOCATION_JUSTIFICATION_PRESENT",
    "ALLOCATION_WITHIN_REMAINING_BUDGET",
    "ALLOCATION_WITHIN_CATEGORY_LIMIT",
    "ALLOCATION_PERCENTAGES_TOTAL",
    "RECEIPT_QUALITY_JUSTIFICATION",
]

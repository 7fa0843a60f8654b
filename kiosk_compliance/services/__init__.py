"""
Customer compliance services
"""
from .customer_service import CustomerService
from .override_tracker import OverrideTracker
from .status import derive_status, STATUS_MILESTONES

__all__ = [
    "CustomerService",
    "OverrideTracker",
    "derive_status",
    "STATUS_MILESTONES",
]

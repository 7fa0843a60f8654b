"""
Customer status derivation

A customer's status is the verification milestone with the most recent
timestamp. Ties go to the milestone listed first in STATUS_MILESTONES.
"""
from datetime import datetime, timezone
from typing import Any, Mapping, Optional, Tuple

from kiosk_compliance.models import CustomerStatus


STATUS_MILESTONES: Tuple[Tuple[CustomerStatus, str], ...] = (
    (CustomerStatus.PHONE, "phone_at"),
    (CustomerStatus.ID_CARD, "id_card_at"),
    (CustomerStatus.FRONT_FACING_CAMERA, "front_facing_cam_at"),
    (CustomerStatus.ID_CARD_IMAGE, "id_card_photo_at"),
)


def _as_utc(value: datetime) -> datetime:
    # Naive timestamps are stored as UTC
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def derive_status(customer: Mapping[str, Any]) -> Optional[CustomerStatus]:
    """
    Get the label of the latest completed verification milestone
    
    Args:
        customer: Customer keyed by storage column
        
    Returns:
        Latest milestone, or None when no milestone has a timestamp
    """
    status: Optional[CustomerStatus] = None
    latest: Optional[datetime] = None

    for milestone, column in STATUS_MILESTONES:
        reached_at = customer.get(column)
        if reached_at is None:
            continue
        reached_at = _as_utc(reached_at)
        if latest is None or reached_at > latest:
            status, latest = milestone, reached_at

    return status

"""
Customer models

The writable fields of a customer are declared once in CustomerFields; any key
outside that registry is rejected when an update payload is normalized.
"""
from pydantic import BaseModel, Field, ValidationError
from pydantic.alias_generators import to_camel, to_snake
from datetime import datetime
from decimal import Decimal
from typing import Optional, Dict, Any, Mapping
from enum import Enum

from kiosk_compliance.exceptions import CustomerValidationError


class CustomerStatus(str, Enum):
    """Verification milestones a customer can be in"""
    PHONE = "Phone"
    ID_CARD = "ID card"
    FRONT_FACING_CAMERA = "Front facing camera"
    ID_CARD_IMAGE = "ID card image"


class CustomerFields(BaseModel):
    """Fields that may be changed after a customer is created"""
    name: Optional[str] = None
    phone_at: Optional[datetime] = None

    id_card_data: Optional[Dict[str, Any]] = None
    id_card_data_number: Optional[str] = None
    id_card_data_expiration: Optional[datetime] = None
    id_card_at: Optional[datetime] = None
    id_card_photo_path: Optional[str] = None
    id_card_photo_at: Optional[datetime] = None
    front_facing_cam_path: Optional[str] = None
    front_facing_cam_at: Optional[datetime] = None
    sanctions: Optional[bool] = None
    sanctions_at: Optional[datetime] = None
    authorized_at: Optional[datetime] = None

    # Manual overrides set by a reviewer
    sms_override: Optional[str] = Field(None, min_length=1)
    id_card_data_override: Optional[str] = Field(None, min_length=1)
    id_card_photo_override: Optional[str] = Field(None, min_length=1)
    front_facing_cam_override: Optional[str] = Field(None, min_length=1)
    sanctions_check_override: Optional[str] = Field(None, min_length=1)
    authorized_override: Optional[str] = Field(None, min_length=1)


class CustomerCreate(BaseModel):
    """Model for registering a new customer"""
    phone: str = Field(..., min_length=1)


class CustomerUpdate(CustomerFields):
    """Partial update of a customer; unknown and read-only keys are rejected"""

    class Config:
        extra = "forbid"


class Customer(CustomerFields):
    """Stored customer with derived fields"""
    id: str
    phone: str
    created: Optional[datetime] = None

    sms_override_by: Optional[str] = None
    id_card_data_override_by: Optional[str] = None
    id_card_photo_override_by: Optional[str] = None
    front_facing_cam_override_by: Optional[str] = None
    sanctions_check_override_by: Optional[str] = None
    authorized_override_by: Optional[str] = None

    # Derived, never stored
    status: Optional[CustomerStatus] = None
    daily_volume: Optional[Decimal] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True


def normalize_customer_update(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Convert an external update payload to storage column names
    
    Args:
        data: Fields to update, keyed in camelCase, snake_case or kebab-case
        
    Returns:
        Dict keyed by storage column, containing only the keys that were given
        
    Raises:
        CustomerValidationError: Unknown, read-only or malformed fields
    """
    columns = {to_snake(key.replace("-", "_")): value for key, value in data.items()}
    columns.pop("id", None)

    try:
        update = CustomerUpdate.model_validate(columns)
    except ValidationError as e:
        fields = sorted({".".join(str(part) for part in error["loc"]) for error in e.errors()})
        raise CustomerValidationError(
            f"Invalid customer fields: {', '.join(fields)}",
            internal_message=str(e),
            context={"fields": fields},
        ) from e

    return update.model_dump(exclude_unset=True)

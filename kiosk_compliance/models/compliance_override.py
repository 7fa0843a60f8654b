"""
Compliance override audit models
"""
from pydantic import BaseModel, Field
from datetime import datetime
from typing import Optional, NamedTuple, Tuple
from enum import Enum


class ComplianceType(str, Enum):
    """Compliance checks a reviewer can override"""
    SMS = "sms"
    ID_CARD_DATA = "id_card_data"
    ID_CARD_PHOTO = "id_card_photo"
    FRONT_CAMERA = "front_camera"
    SANCTIONS = "sanctions"
    AUTHORIZED = "authorized"


class OverrideField(NamedTuple):
    """Customer column holding an override and the check it documents"""
    column: str
    compliance_type: ComplianceType

    @property
    def attribution_column(self) -> str:
        return f"{self.column}_by"


OVERRIDE_FIELDS: Tuple[OverrideField, ...] = (
    OverrideField("sms_override", ComplianceType.SMS),
    OverrideField("id_card_data_override", ComplianceType.ID_CARD_DATA),
    OverrideField("id_card_photo_override", ComplianceType.ID_CARD_PHOTO),
    OverrideField("front_facing_cam_override", ComplianceType.FRONT_CAMERA),
    OverrideField("sanctions_check_override", ComplianceType.SANCTIONS),
    OverrideField("authorized_override", ComplianceType.AUTHORIZED),
)


class ComplianceOverrideBase(BaseModel):
    """Base compliance override model"""
    customer_id: str
    compliance_type: ComplianceType
    override_by: Optional[str] = None
    verification: str


class ComplianceOverrideCreate(ComplianceOverrideBase):
    """Model for creating a new compliance override record"""
    pass


class ComplianceOverride(ComplianceOverrideBase):
    """Stored compliance override record"""
    id: Optional[str] = Field(None, alias="_id")
    override_at: Optional[datetime] = None

    class Config:
        populate_by_name = True

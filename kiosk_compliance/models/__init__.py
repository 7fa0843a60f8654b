"""
Pydantic models for data validation
"""
from .customer import (
    Customer,
    CustomerCreate,
    CustomerUpdate,
    CustomerStatus,
    normalize_customer_update,
)
from .compliance_override import (
    ComplianceOverride,
    ComplianceOverrideCreate,
    ComplianceType,
    OverrideField,
    OVERRIDE_FIELDS,
)

__all__ = [
    "Customer",
    "CustomerCreate",
    "CustomerUpdate",
    "CustomerStatus",
    "normalize_customer_update",
    "ComplianceOverride",
    "ComplianceOverrideCreate",
    "ComplianceType",
    "OverrideField",
    "OVERRIDE_FIELDS",
]

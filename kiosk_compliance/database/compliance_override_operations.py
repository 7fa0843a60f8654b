"""
Database operations for compliance override audit records
"""
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from uuid import uuid4
from motor.motor_asyncio import AsyncIOMotorClientSession
from kiosk_compliance.database.connection import get_collection, COLLECTION_COMPLIANCE_OVERRIDES
from kiosk_compliance.database.errors import store_errors
from kiosk_compliance.models import ComplianceOverrideCreate


async def create_compliance_override(
    override: ComplianceOverrideCreate,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Dict[str, Any]:
    """
    Append a compliance override audit record
    
    Args:
        override: Override to record
        session: Optional MongoDB session for transactions
        
    Returns:
        Created override document
    """
    collection = get_collection(COLLECTION_COMPLIANCE_OVERRIDES)
    
    override_dict = override.model_dump(mode="json")
    override_dict["_id"] = str(uuid4())
    override_dict["override_at"] = datetime.now(timezone.utc)
    
    with store_errors("create_compliance_override"):
        await collection.insert_one(override_dict, session=session)
    
    return override_dict


async def list_compliance_overrides(
    customer_id: str,
    session: Optional[AsyncIOMotorClientSession] = None
) -> List[Dict[str, Any]]:
    """
    List a customer's compliance override records, newest first
    
    Args:
        customer_id: ID of the customer
        session: Optional MongoDB session for transactions
    """
    collection = get_collection(COLLECTION_COMPLIANCE_OVERRIDES)
    
    overrides = []
    with store_errors("list_compliance_overrides"):
        cursor = collection.find({"customer_id": customer_id}, session=session)
        async for override in cursor.sort("override_at", -1):
            overrides.append(override)
    
    return overrides

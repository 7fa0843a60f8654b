"""
Database operations for customers and their transaction volume
"""
from typing import Dict, Any, List, Optional
from datetime import datetime, timezone
from decimal import Decimal
from bson.decimal128 import Decimal128
from pymongo import ReturnDocument
from motor.motor_asyncio import AsyncIOMotorClientSession
from kiosk_compliance.database.connection import (
    get_collection,
    COLLECTION_CUSTOMERS,
    COLLECTION_CASH_IN_TXS,
    COLLECTION_CASH_OUT_TXS,
)
from kiosk_compliance.database.errors import store_errors


def _to_customer(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Expose the MongoDB _id as the customer id"""
    if document is None:
        return None
    customer = dict(document)
    customer["id"] = customer.pop("_id")
    return customer


def _to_decimal(value: Any) -> Decimal:
    if value is None:
        return Decimal(0)
    if isinstance(value, Decimal128):
        return value.to_decimal()
    if isinstance(value, Decimal):
        return value
    return Decimal(str(value))


async def insert_customer(
    customer_id: str,
    phone: str,
    phone_at: datetime,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Dict[str, Any]:
    """
    Create a customer registered by phone
    
    Args:
        customer_id: New customer's id
        phone: Customer's phone number (unique)
        phone_at: When the phone number was registered
        session: Optional MongoDB session for transactions
        
    Returns:
        Created customer document
        
    Raises:
        DuplicatePhoneError: A customer with this phone already exists
        StoreError: Any other persistence failure
    """
    collection = get_collection(COLLECTION_CUSTOMERS)
    
    customer_dict = {
        "_id": customer_id,
        "phone": phone,
        "phone_at": phone_at,
        "created": phone_at,
    }
    
    with store_errors("insert_customer"):
        await collection.insert_one(customer_dict, session=session)
    
    return _to_customer(customer_dict)


async def find_customer_by_phone(
    phone: str,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Optional[Dict[str, Any]]:
    """Find a customer by phone number, or None"""
    collection = get_collection(COLLECTION_CUSTOMERS)
    with store_errors("find_customer_by_phone"):
        customer = await collection.find_one({"phone": phone}, session=session)
    return _to_customer(customer)


async def find_customer_by_id(
    customer_id: str,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Optional[Dict[str, Any]]:
    """Find a customer by id, or None"""
    collection = get_collection(COLLECTION_CUSTOMERS)
    with store_errors("find_customer_by_id"):
        customer = await collection.find_one({"_id": customer_id}, session=session)
    return _to_customer(customer)


async def update_customer_by_id(
    customer_id: str,
    fields: Dict[str, Any],
    session: Optional[AsyncIOMotorClientSession] = None
) -> Optional[Dict[str, Any]]:
    """
    Set the given columns on a customer, leaving all others untouched
    
    Args:
        customer_id: ID of the customer
        fields: Columns to set, keyed by storage name
        session: Optional MongoDB session for transactions
        
    Returns:
        Updated customer document, or None if no customer has this id
    """
    collection = get_collection(COLLECTION_CUSTOMERS)
    
    with store_errors("update_customer_by_id"):
        customer = await collection.find_one_and_update(
            {"_id": customer_id},
            {"$set": fields},
            return_document=ReturnDocument.AFTER,
            session=session
        )
    
    return _to_customer(customer)


async def list_recent_customers(
    exclude_id: str,
    limit: int,
    session: Optional[AsyncIOMotorClientSession] = None
) -> List[Dict[str, Any]]:
    """
    List the most recently created customers
    
    Args:
        exclude_id: Customer id left out of the listing
        limit: Maximum number of customers
        session: Optional MongoDB session for transactions
        
    Returns:
        Customers ordered by creation time, newest first
    """
    collection = get_collection(COLLECTION_CUSTOMERS)
    
    customers = []
    with store_errors("list_recent_customers"):
        cursor = collection.find({"_id": {"$ne": exclude_id}}, session=session)
        async for customer in cursor.sort("created", -1).limit(limit):
            customers.append(_to_customer(customer))
    
    return customers


async def _sum_fiat_since(
    collection_name: str,
    customer_id: str,
    since: datetime,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Decimal:
    collection = get_collection(collection_name)
    
    pipeline = [
        {"$match": {"customer_id": customer_id, "created": {"$gt": since}}},
        {"$group": {"_id": None, "total": {"$sum": "$fiat"}}},
    ]
    
    with store_errors(f"sum_fiat_since:{collection_name}"):
        results = await collection.aggregate(pipeline, session=session).to_list(length=1)
    
    if not results:
        return Decimal(0)
    return _to_decimal(results[0].get("total"))


async def sum_cash_in_since(
    customer_id: str,
    since: datetime,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Decimal:
    """Sum of fiat over a customer's cash-in transactions created after `since`"""
    return await _sum_fiat_since(COLLECTION_CASH_IN_TXS, customer_id, since, session)


async def sum_cash_out_since(
    customer_id: str,
    since: datetime,
    session: Optional[AsyncIOMotorClientSession] = None
) -> Decimal:
    """Sum of fiat over a customer's cash-out transactions created after `since`"""
    return await _sum_fiat_since(COLLECTION_CASH_OUT_TXS, customer_id, since, session)


async def upsert_placeholder_customer(
    customer_id: str,
    phone: str,
    name: str,
    session: Optional[AsyncIOMotorClientSession] = None
) -> None:
    """
    Create the reserved placeholder customer if it is missing
    
    Args:
        customer_id: Reserved id of the placeholder
        phone: Placeholder phone value
        name: Placeholder display name
        session: Optional MongoDB session for transactions
    """
    collection = get_collection(COLLECTION_CUSTOMERS)
    
    with store_errors("upsert_placeholder_customer"):
        await collection.update_one(
            {"_id": customer_id},
            {"$setOnInsert": {"phone": phone, "name": name, "created": datetime(1970, 1, 1, tzinfo=timezone.utc)}},
            upsert=True,
            session=session
        )

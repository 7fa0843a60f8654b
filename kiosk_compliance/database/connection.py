"""
MongoDB connection management using Motor (async)
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase, AsyncIOMotorCollection
from typing import Optional
from kiosk_compliance.config import get_settings


# Global async client instance
_client: Optional[AsyncIOMotorClient] = None


def get_client() -> AsyncIOMotorClient:
    """
    Get or create async MongoDB client instance
    
    Returns:
        AsyncIOMotorClient: Async MongoDB client
    """
    global _client
    if _client is None:
        _client = AsyncIOMotorClient(get_settings().mongodb_uri, tz_aware=True)
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """
    Get the kiosk database
    
    Returns:
        AsyncIOMotorDatabase: Async MongoDB database instance
    """
    client = get_client()
    return client[get_settings().database_name]


def get_collection(collection_name: str) -> AsyncIOMotorCollection:
    """
    Get a specific collection from the database
    
    Args:
        collection_name: Name of the collection
        
    Returns:
        AsyncIOMotorCollection: Async MongoDB collection instance
    """
    db = get_database()
    return db[collection_name]


async def close_connection():
    """Close the async MongoDB connection"""
    global _client
    if _client is not None:
        _client.close()
        _client = None


# Collection names
COLLECTION_CUSTOMERS = "customers"
COLLECTION_COMPLIANCE_OVERRIDES = "compliance_overrides"
COLLECTION_CASH_IN_TXS = "cash_in_txs"
COLLECTION_CASH_OUT_TXS = "cash_out_txs"


async def ensure_indexes():
    """
    Create all required indexes for the database
    """
    db = get_database()
    
    # Customers indexes
    await db[COLLECTION_CUSTOMERS].create_index([("phone", 1)], unique=True)
    await db[COLLECTION_CUSTOMERS].create_index([("created", -1)])
    
    # Compliance overrides indexes
    await db[COLLECTION_COMPLIANCE_OVERRIDES].create_index([("customer_id", 1), ("override_at", -1)])
    
    # Transaction indexes used by the daily volume sums
    await db[COLLECTION_CASH_IN_TXS].create_index([("customer_id", 1), ("created", -1)])
    await db[COLLECTION_CASH_OUT_TXS].create_index([("customer_id", 1), ("created", -1)])

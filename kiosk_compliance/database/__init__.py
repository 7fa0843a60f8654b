"""
Database connection and utilities
"""
from .connection import (
    get_client,
    get_database,
    get_collection,
    close_connection,
    ensure_indexes,
    COLLECTION_CUSTOMERS,
    COLLECTION_COMPLIANCE_OVERRIDES,
    COLLECTION_CASH_IN_TXS,
    COLLECTION_CASH_OUT_TXS,
)
from .transactions import with_transaction

__all__ = [
    "get_client",
    "get_database",
    "get_collection",
    "close_connection",
    "ensure_indexes",
    "with_transaction",
    "COLLECTION_CUSTOMERS",
    "COLLECTION_COMPLIANCE_OVERRIDES",
    "COLLECTION_CASH_IN_TXS",
    "COLLECTION_CASH_OUT_TXS",
]

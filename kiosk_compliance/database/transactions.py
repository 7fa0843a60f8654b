"""
MongoDB transaction utilities for Motor (async)
"""
from typing import Callable, Any
from functools import wraps
from motor.motor_asyncio import AsyncIOMotorClientSession
from kiosk_compliance.database.connection import get_client
from kiosk_compliance.exceptions import ComplianceError, StoreError


def with_transaction(func: Callable) -> Callable:
    """
    Decorator to execute an async function within a MongoDB transaction
    
    Args:
        func: Async function to execute within transaction
        
    Returns:
        Wrapped async function that runs within a transaction
    """
    @wraps(func)
    async def wrapper(*args, **kwargs) -> Any:
        client = get_client()
        session: AsyncIOMotorClientSession = await client.start_session()
        
        try:
            async with session.start_transaction():
                return await func(*args, session=session, **kwargs)
                
        except ComplianceError:
            # Transaction is automatically aborted on exception
            raise
        except Exception as e:
            raise StoreError(internal_message=f"Transaction failed: {e}") from e
            
        finally:
            await session.end_session()
    
    return wrapper

"""
Translation of driver errors into the compliance error taxonomy
"""
from contextlib import contextmanager
from typing import Iterator
from pymongo.errors import DuplicateKeyError, PyMongoError
from kiosk_compliance.exceptions import (
    StoreError,
    ConstraintViolationError,
    DuplicatePhoneError,
)


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """
    Re-raise MongoDB errors from the wrapped block as StoreError subclasses
    
    Args:
        operation: Name of the store operation, for logs
    """
    try:
        yield
    except DuplicateKeyError as e:
        key_pattern = (e.details or {}).get("keyPattern") or {}
        if "phone" in key_pattern:
            raise DuplicatePhoneError(
                internal_message=f"{operation}: {e}",
                context={"operation": operation},
            ) from e
        raise ConstraintViolationError(
            internal_message=f"{operation}: {e}",
            context={"operation": operation, "key_pattern": dict(key_pattern)},
        ) from e
    except PyMongoError as e:
        raise StoreError(
            internal_message=f"{operation}: {e}",
            context={"operation": operation},
        ) from e

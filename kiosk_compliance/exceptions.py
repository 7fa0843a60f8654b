"""
Typed errors raised by the customer compliance core.

Every error carries a short code that the wrapping transport layer can map to
a user-facing message, plus an internal message and context meant for logs only.
"""
from typing import Optional, Dict, Any


ERROR_CODES: Dict[str, str] = {
    "E001": "An internal error occurred.",
    "E002": "Customer store error.",
    "E009": "Validation error. Please check the provided data.",
    "E013": "A uniqueness constraint was violated.",
    "E014": "A customer with this phone number already exists.",
}


class ComplianceError(Exception):
    """
    Base error for the compliance core.

    Attributes:
        code: Error code (see ERROR_CODES)
        message: Message safe to show to callers
        internal_message: Detailed message for logging
        context: Additional context for logging
    """

    code = "E001"

    def __init__(
        self,
        message: Optional[str] = None,
        internal_message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message or ERROR_CODES.get(self.code, ERROR_CODES["E001"])
        self.internal_message = internal_message
        self.context = context or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Caller-safe representation (no internal details)."""
        return {"code": self.code, "message": self.message}


class CustomerValidationError(ComplianceError):
    """Raised when a customer payload has unknown, read-only or malformed fields"""
    code = "E009"


class StoreError(ComplianceError):
    """Raised on any persistence failure"""
    code = "E002"


class ConstraintViolationError(StoreError):
    """Raised when the store rejects a write on a uniqueness constraint"""
    code = "E013"


class DuplicatePhoneError(ConstraintViolationError):
    """Raised when a customer with the same phone number already exists"""
    code = "E014"

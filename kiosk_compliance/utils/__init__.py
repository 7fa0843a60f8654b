"""
Utility functions
"""
from .secure_logging import (
    SensitiveDataFilter,
    SecureFormatter,
    JSONSecureFormatter,
    SENSITIVE_PATTERNS,
    configure_secure_logging,
    get_secure_logger,
)

__all__ = [
    "SensitiveDataFilter",
    "SecureFormatter",
    "JSONSecureFormatter",
    "SENSITIVE_PATTERNS",
    "configure_secure_logging",
    "get_secure_logger",
]

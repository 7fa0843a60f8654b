"""
Secure Logging - Logging with automatic masking of customer PII and secrets

This module provides:
- SensitiveDataFilter for masking phone numbers, ID document numbers and credentials
- SecureFormatter / JSONSecureFormatter for text or structured output
- configure_secure_logging() for global secure logging setup

Usage:
    from kiosk_compliance.utils.secure_logging import configure_secure_logging

    configure_secure_logging()

    # Phone numbers are masked down to their last four digits
    logger.info(f"Lookup for {phone}")
"""

import re
import logging
import json
from typing import List, Tuple, Optional, Any, Dict, Union, Callable
from logging import LogRecord, Filter, Formatter


Replacement = Union[str, Callable[[re.Match], str]]


def _mask_phone(match: re.Match) -> str:
    digits = match.group(1)
    return "+" + "*" * len(digits) + match.group(2)


# Each tuple: (compiled regex pattern, replacement)
SENSITIVE_PATTERNS: List[Tuple[re.Pattern, Replacement]] = [
    # MongoDB URIs with credentials
    (re.compile(r'mongodb(\+srv)?://([^:/\s]+):([^@\s]+)@'), r'mongodb\1://[USER]:[PASS]@'),

    # Bearer/Auth tokens
    (re.compile(r'(Bearer\s+)[a-zA-Z0-9_.-]+', re.IGNORECASE), r'\1[TOKEN_REDACTED]'),

    # JWT tokens (3 base64 parts separated by dots)
    (re.compile(r'eyJ[a-zA-Z0-9_-]+\.eyJ[a-zA-Z0-9_-]+\.[a-zA-Z0-9_-]+'), '[JWT_REDACTED]'),

    # Passwords and secrets
    (re.compile(r'(password|passwd|pwd|secret)["\s:=]+["\']?([^\s"\']{4,})["\']?', re.IGNORECASE), r'\1=[REDACTED]'),

    # ID document numbers
    (re.compile(r'(id_card_data_number|idCardDataNumber)(["\']?\s*[:=]\s*["\']?)([A-Za-z0-9-]+)'), r'\1\2[DOCUMENT_REDACTED]'),

    # Phone numbers in E.164 form, keeping the last four digits
    (re.compile(r'\+(\d{3,11})(\d{4})\b'), _mask_phone),
]

_RESERVED_ATTRS = frozenset((
    'msg', 'args', 'name', 'levelname', 'levelno', 'pathname',
    'filename', 'module', 'lineno', 'funcName', 'created',
    'msecs', 'relativeCreated', 'thread', 'threadName', 'taskName',
    'processName', 'process', 'exc_info', 'exc_text', 'stack_info',
))


class SensitiveDataFilter(Filter):
    """
    Logging filter that masks sensitive data in log messages.
    """

    def __init__(self, name: str = '', additional_patterns: Optional[List[Tuple[re.Pattern, Replacement]]] = None):
        super().__init__(name)
        self.patterns = SENSITIVE_PATTERNS.copy()
        if additional_patterns:
            self.patterns.extend(additional_patterns)

    def filter(self, record: LogRecord) -> bool:
        """
        Mask the message, its arguments and string/dict extras.

        Returns:
            True (always passes the record)
        """
        if record.msg:
            record.msg = self._mask_sensitive(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._mask_sensitive(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, (list, tuple)):
                record.args = tuple(self._mask_sensitive(str(arg)) for arg in record.args)

        for key, value in list(record.__dict__.items()):
            if key in _RESERVED_ATTRS:
                continue
            if isinstance(value, str):
                setattr(record, key, self._mask_sensitive(value))
            elif isinstance(value, dict):
                setattr(record, key, self._mask_dict(value))

        return True

    def _mask_sensitive(self, text: str) -> str:
        if not text:
            return text
        for pattern, replacement in self.patterns:
            text = pattern.sub(replacement, text)
        return text

    def _mask_dict(self, data: Dict[str, Any]) -> Dict[str, Any]:
        result = {}
        for key, value in data.items():
            if isinstance(value, str):
                result[key] = self._mask_sensitive(value)
            elif isinstance(value, dict):
                result[key] = self._mask_dict(value)
            else:
                result[key] = value
        return result


class SecureFormatter(Formatter):
    """
    Text formatter with sensitive data masking and an optional trace ID.
    """

    def __init__(
        self,
        fmt: Optional[str] = None,
        datefmt: Optional[str] = None,
        include_trace_id: bool = True,
    ):
        if fmt is None:
            if include_trace_id:
                fmt = '%(asctime)s - %(name)s - %(levelname)s - [%(trace_id)s] - %(message)s'
            else:
                fmt = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'

        super().__init__(fmt, datefmt)
        self.include_trace_id = include_trace_id
        self._sensitive_filter = SensitiveDataFilter()

    def format(self, record: LogRecord) -> str:
        if self.include_trace_id and not hasattr(record, 'trace_id'):
            record.trace_id = '-'

        self._sensitive_filter.filter(record)
        return super().format(record)


class JSONSecureFormatter(Formatter):
    """
    JSON log formatter with sensitive data masking, for log aggregation.
    """

    def __init__(self):
        super().__init__()
        self._sensitive_filter = SensitiveDataFilter()

    def format(self, record: LogRecord) -> str:
        self._sensitive_filter.filter(record)

        log_data = {
            'timestamp': self.formatTime(record),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if hasattr(record, 'trace_id'):
            log_data['trace_id'] = record.trace_id

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        for key, value in record.__dict__.items():
            if key in _RESERVED_ATTRS or key in ('message', 'trace_id') or key.startswith('_'):
                continue
            log_data[key] = value

        return json.dumps(log_data, default=str)


def configure_secure_logging(
    level: Union[int, str] = logging.INFO,
    format_type: str = 'text',  # 'text' or 'json'
    include_trace_id: bool = True,
    additional_patterns: Optional[List[Tuple[re.Pattern, Replacement]]] = None,
) -> None:
    """
    Configure secure logging globally.

    Args:
        level: Logging level, as a number or a name such as "DEBUG"
        format_type: 'text' for human-readable, 'json' for structured logs
        include_trace_id: Include trace_id in text output
        additional_patterns: Additional regex patterns to mask
    """
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.addFilter(SensitiveDataFilter(additional_patterns=additional_patterns))

    if format_type == 'json':
        formatter = JSONSecureFormatter()
    else:
        formatter = SecureFormatter(include_trace_id=include_trace_id)

    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)


def get_secure_logger(name: str) -> logging.Logger:
    """
    Get a logger with SensitiveDataFilter already applied.
    """
    logger = logging.getLogger(name)

    if not any(isinstance(f, SensitiveDataFilter) for f in logger.filters):
        logger.addFilter(SensitiveDataFilter())

    return logger


__all__ = [
    'SensitiveDataFilter',
    'SecureFormatter',
    'JSONSecureFormatter',
    'SENSITIVE_PATTERNS',
    'configure_secure_logging',
    'get_secure_logger',
]

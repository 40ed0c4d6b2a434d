# Stow Kiosk Utilities
"""Utility functions and decorators for Stow Kiosk."""

from .logging_config import setup_logging, get_logger, log_with_fields
from .decorators import require_auth, require_slack_signature, retry

__all__ = [
    "setup_logging",
    "get_logger",
    "log_with_fields",
    "require_auth",
    "require_slack_signature",
    "retry",
]

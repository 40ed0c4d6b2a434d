"""Error taxonomy shared by the stores, the API and the Slack bridge."""

from typing import Any, Dict, Optional


class KioskError(Exception):
    """Base class for errors that map onto an HTTP response."""

    code = 'INTERNAL_ERROR'
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details

    @property
    def public_message(self) -> str:
        """Message that is safe to return to a caller."""
        return self.message


class ValidationError(KioskError):
    """Bad enum value, malformed id or missing fields."""

    code = 'INVALID_REQUEST'
    status_code = 400


class InvalidTransition(ValidationError):
    """Status or end indicator outside the allowed values."""

    code = 'INVALID_TRANSITION'


class NoOpUpdate(ValidationError):
    """Update request that carries no fields."""

    code = 'NO_FIELDS'

    def __init__(self, message: str = 'No updates provided'):
        super().__init__(message)


class NotFoundError(KioskError):
    code = 'NOT_FOUND'
    status_code = 404


class AuthError(KioskError):
    """Missing, invalid or expired token, or a failed Slack signature."""

    code = 'UNAUTHORIZED'
    status_code = 401


class ConfigError(KioskError):
    """A required secret or setting is missing."""

    code = 'CONFIG_ERROR'
    status_code = 500

    @property
    def public_message(self) -> str:
        return 'Server configuration error'


class UpstreamError(KioskError):
    """A call to Slack failed."""

    code = 'SLACK_ERROR'
    status_code = 502

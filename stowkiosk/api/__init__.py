"""REST and Slack endpoints for Stow Kiosk."""

from .validators import StationUpdateRequest, SafetyMessageCreateRequest, AvailableSpaceCreateRequest
from .errors import error_response, register_error_handlers

__all__ = [
    "StationUpdateRequest",
    "SafetyMessageCreateRequest",
    "AvailableSpaceCreateRequest",
    "error_response",
    "register_error_handlers",
]

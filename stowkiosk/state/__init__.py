# Stow Kiosk State Management
"""Relational state for stations, safety messages, bins and users."""

from .database import Base, Database
from .models import Station, SafetyMessage, AvailableSpace, User, Side, Status, Indicator
from .stations import StationStore, StationUpdate
from .messages import SafetyMessageStore
from .spaces import AvailableSpaceStore
from .users import UserStore
from .protocol import StationUpdateProtocol, next_status, toggle_end_indicator

__all__ = [
    "Base", "Database",
    "Station", "SafetyMessage", "AvailableSpace", "User", "Side", "Status", "Indicator",
    "StationStore", "StationUpdate", "SafetyMessageStore", "AvailableSpaceStore", "UserStore",
    "StationUpdateProtocol", "next_status", "toggle_end_indicator",
]

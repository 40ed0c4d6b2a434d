# Stow Kiosk Realtime Layer
"""WebSocket fan-out to kiosk displays."""

from .hub import BroadcastEvent, BroadcastHub, EVENT_TYPES

__all__ = ["BroadcastEvent", "BroadcastHub", "EVENT_TYPES"]

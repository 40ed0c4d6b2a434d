# Stow Kiosk Slack Integration
"""Slack integration for Stow Kiosk."""

from .client import SlackClient
from .bridge import SlackBridge
from .scheduler import ReminderScheduler
from .signature import verify_slack_signature
from .blocks import build_station_panel, build_reminder_blocks, STATUS_ICONS

__all__ = [
    "SlackClient",
    "SlackBridge",
    "ReminderScheduler",
    "verify_slack_signature",
    "build_station_panel",
    "build_reminder_blocks",
    "STATUS_ICONS",
]

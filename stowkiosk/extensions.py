"""Flask extension instances and the per-app service container."""

from dataclasses import dataclass
from typing import Optional

from flask import current_app
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

from .realtime.hub import BroadcastHub
from .slack.bridge import SlackBridge
from .slack.scheduler import ReminderScheduler
from .state.database import Database
from .state.messages import SafetyMessageStore
from .state.protocol import StationUpdateProtocol
from .state.spaces import AvailableSpaceStore
from .state.stations import StationStore
from .state.users import UserStore


limiter = Limiter(
    key_func=get_remote_address,
    strategy="fixed-window",
    headers_enabled=True,
)


@dataclass
class Services:
    """Everything a request handler needs, created once per app."""

    database: Database
    stations: StationStore
    messages: SafetyMessageStore
    spaces: AvailableSpaceStore
    users: UserStore
    hub: BroadcastHub
    protocol: StationUpdateProtocol
    bridge: SlackBridge
    scheduler: Optional[ReminderScheduler] = None

    def shutdown(self) -> None:
        """Stop reminders, drop sockets and release the engine."""
        if self.scheduler is not None:
            self.scheduler.stop_all()
        self.hub.close()
        self.database.dispose()


def get_services() -> Services:
    return current_app.extensions['stowkiosk']

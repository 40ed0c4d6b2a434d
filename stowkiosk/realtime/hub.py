"""Broadcast hub holding the live WebSocket connections.

A connection is anything with a ``send(str)`` method and a ``connected``
flag, which is what ``simple_websocket.Server`` provides.
"""

import json
import threading
from dataclasses import dataclass
from typing import Any, Dict

from simple_websocket import ConnectionClosed

from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.broadcast')

EVENT_TYPES = {'stationUpdate', 'availableSpaceUpdate', 'safetyMessageUpdate', 'info'}

WELCOME_MESSAGE = 'Connected to WebSocket'


@dataclass(frozen=True)
class BroadcastEvent:
    """Transient state-change notification pushed to every display."""

    type: str
    data: Any

    def __post_init__(self):
        if self.type not in EVENT_TYPES:
            raise ValueError(f"Event type must be one of: {', '.join(sorted(EVENT_TYPES))}")

    def to_dict(self) -> Dict[str, Any]:
        return {'type': self.type, 'data': self.data}

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class BroadcastHub:
    """Set of live connections with fire-and-forget fan-out.

    Created by the app factory and shared through ``app.extensions``;
    :meth:`close` tears it down on server stop.
    """

    def __init__(self):
        self._connections = set()
        self._lock = threading.Lock()

    def register(self, connection) -> None:
        """Add a connection and send it the one-time ``info`` acknowledgment."""
        with self._lock:
            self._connections.add(connection)
            total = len(self._connections)
        logger.info('WebSocket client connected (%d live)', total)

        try:
            connection.send(json.dumps({'type': 'info', 'message': WELCOME_MESSAGE}))
        except (ConnectionClosed, OSError) as e:
            logger.warning('Welcome send failed, dropping connection: %s', e)
            self.unregister(connection)

    def unregister(self, connection) -> None:
        with self._lock:
            if connection not in self._connections:
                return
            self._connections.discard(connection)
            total = len(self._connections)
        logger.info('WebSocket client disconnected (%d live)', total)

    def broadcast(self, event: BroadcastEvent) -> int:
        """Send one serialized payload to every open connection.

        Connections that are not open are skipped; they leave the set on
        their own close signal.

        Returns:
            Number of connections the payload was handed to
        """
        payload = event.to_json()
        with self._lock:
            targets = list(self._connections)

        logger.debug('Broadcasting %s event to %d clients', event.type, len(targets))

        delivered = 0
        for connection in targets:
            if not getattr(connection, 'connected', False):
                continue
            try:
                connection.send(payload)
                delivered += 1
            except (ConnectionClosed, OSError) as e:
                # Peer gone before the reader noticed; it unregisters on close
                logger.warning('Skipped %s event for dead connection: %s', event.type, e)
        return delivered

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)

    def close(self) -> None:
        """Close every live connection and empty the set."""
        with self._lock:
            targets = list(self._connections)
            self._connections.clear()
        for connection in targets:
            try:
                connection.close()
            except (ConnectionClosed, OSError):
                pass
        logger.info('Broadcast hub closed (%d connections dropped)', len(targets))

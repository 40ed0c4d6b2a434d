"""WebSocket endpoint at the server root."""

from flask import Blueprint, current_app
from flask_sock import Sock

from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.broadcast')

sock = Sock()
realtime_bp = Blueprint('realtime', __name__)


@sock.route('/', bp=realtime_bp)
def kiosk_socket(ws):
    """Server-to-client push channel.

    Incoming frames carry no application meaning and are dropped; the loop
    only waits for the transport to close.
    """
    hub = current_app.extensions['stowkiosk'].hub
    hub.register(ws)
    try:
        while ws.connected:
            ws.receive(timeout=30)
    finally:
        hub.unregister(ws)

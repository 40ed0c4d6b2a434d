"""Structured logging for Stow Kiosk.

Every record under the ``stowkiosk`` logger tree is rendered as one JSON
object per line. Records emitted while a Flask request is being handled
carry the request method, path and caller address; ``log_with_fields``
attaches arbitrary extra fields such as a station id or Slack action.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from flask import g, has_request_context, request


ROOT_LOGGER = 'stowkiosk'


class RequestContextFilter(logging.Filter):
    """Copy request details onto the record when inside a request."""

    def filter(self, record: logging.LogRecord) -> bool:
        if has_request_context():
            record.request = {
                'method': request.method,
                'path': request.path,
                'remote_addr': request.remote_addr,
            }
            user = g.get('user')
            if user:
                record.request['user'] = user.get('username')
        return True


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            'timestamp': datetime.fromtimestamp(record.created, timezone.utc)
                                 .isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        request_info = getattr(record, 'request', None)
        if request_info:
            log_data['request'] = request_info

        if hasattr(record, 'extra_fields'):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


def setup_logging(
    level: Optional[str] = None,
    handler: Optional[logging.Handler] = None,
    fmt: str = 'json'
) -> logging.Logger:
    """Configure the ``stowkiosk`` logger tree.

    Safe to call more than once; earlier handlers are replaced.

    Args:
        level: Logging level name, defaults to ``KIOSK_LOG_LEVEL`` or INFO
        handler: Custom handler (stdout by default)
        fmt: 'json' for structured output, anything else for plain text

    Returns:
        The root project logger
    """
    log_level = level or os.environ.get('KIOSK_LOG_LEVEL', 'INFO')
    if isinstance(log_level, str):
        log_level = getattr(logging, log_level.upper(), logging.INFO)

    if fmt == 'json':
        formatter = JSONFormatter()
    else:
        formatter = logging.Formatter('%(asctime)s [%(levelname)s] %(name)s: %(message)s')

    handler = handler or logging.StreamHandler(sys.stdout)
    handler.setLevel(log_level)
    handler.setFormatter(formatter)
    handler.addFilter(RequestContextFilter())

    logger = logging.getLogger(ROOT_LOGGER)
    logger.setLevel(log_level)
    logger.handlers = [handler]
    logger.propagate = False

    return logger


def get_logger(name: str = ROOT_LOGGER) -> logging.Logger:
    """Get a logger under the stowkiosk tree (``stations`` -> ``stowkiosk.stations``)."""
    if name != ROOT_LOGGER and not name.startswith(ROOT_LOGGER + '.'):
        name = f'{ROOT_LOGGER}.{name}'
    return logging.getLogger(name)


def log_with_fields(logger: logging.Logger, level: str, message: str, **fields) -> None:
    """Log ``message`` with ``fields`` merged into the JSON output."""
    extra = {'extra_fields': fields} if fields else None
    getattr(logger, level.lower(), logger.info)(message, extra=extra)

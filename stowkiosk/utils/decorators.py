"""Decorators for Stow Kiosk request handling and outbound calls."""

import time
from typing import Optional, List, Callable
from functools import wraps

import jwt
from flask import current_app, g, request

from ..errors import AuthError, ConfigError
from .logging_config import get_logger


logger = get_logger('stowkiosk.auth')


def require_auth(f: Callable) -> Callable:
    """Decorator to require a valid bearer JWT.

    The decoded claims are stored on ``flask.g.user``.

    Args:
        f: Function to decorate

    Returns:
        Decorated function
    """

    @wraps(f)
    def decorated(*args, **kwargs):
        auth_header = request.headers.get('Authorization', '')
        parts = auth_header.split(' ')
        token = parts[1] if len(parts) == 2 and parts[0] == 'Bearer' else None

        if not token:
            raise AuthError('No token provided')

        secret = current_app.config.get('JWT_SECRET')
        if not secret:
            logger.error('JWT_SECRET not configured')
            raise ConfigError('JWT_SECRET not configured')

        try:
            g.user = jwt.decode(token, secret, algorithms=['HS256'])
        except jwt.ExpiredSignatureError:
            raise AuthError('Token expired')
        except jwt.InvalidTokenError:
            raise AuthError('Invalid token')

        return f(*args, **kwargs)

    return decorated


def require_slack_signature(f: Callable) -> Callable:
    """Decorator to require a valid Slack request signature.

    Reads the raw body before any form parsing so the HMAC is computed
    over exactly the bytes Slack signed.
    """
    from ..slack.signature import verify_slack_signature

    @wraps(f)
    def decorated(*args, **kwargs):
        secret = current_app.config.get('SLACK_SIGNING_SECRET')
        if not secret:
            logger.error('SLACK_SIGNING_SECRET not configured')
            raise ConfigError('SLACK_SIGNING_SECRET not configured')

        raw_body = request.get_data(cache=True, as_text=True)
        valid = verify_slack_signature(
            signing_secret=secret,
            body=raw_body,
            timestamp=request.headers.get('X-Slack-Request-Timestamp'),
            signature=request.headers.get('X-Slack-Signature'),
        )
        if not valid:
            logger.warning('Slack signature verification failed for %s', request.path)
            raise AuthError('Unauthorized')

        return f(*args, **kwargs)

    return decorated


def retry(
    max_attempts: int = 3,
    backoff_seconds: Optional[List[float]] = None,
    exceptions: tuple = (Exception,)
) -> Callable:
    """Decorator to retry function on specified exceptions.

    Args:
        max_attempts: Maximum number of attempts
        backoff_seconds: List of delays between attempts
        exceptions: Tuple of exception types to catch

    Returns:
        Decorated function
    """
    backoff_seconds = backoff_seconds or [1, 2, 4]

    def decorator(func: Callable) -> Callable:
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_attempts):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt >= max_attempts - 1:
                        raise
                    delay = backoff_seconds[attempt % len(backoff_seconds)]
                    logger.warning(
                        '%s failed (attempt %d/%d): %s; retrying in %ss',
                        func.__name__, attempt + 1, max_attempts, e, delay
                    )
                    time.sleep(delay)

        return wrapper

    return decorator

"""Error handlers and response formatters for the Stow Kiosk API."""

import traceback
from typing import Any, Dict

from flask import current_app, jsonify, request
from werkzeug.exceptions import HTTPException

from ..errors import KioskError
from ..utils.logging_config import get_logger, log_with_fields


logger = get_logger('stowkiosk.api')


def error_response(code: str, message: str, details: Dict[str, Any] = None, status_code: int = None) -> tuple:
    """Create standard error response.

    Args:
        code: Error code (e.g., 'INVALID_STATUS')
        message: Human-readable error message
        details: Optional additional details
        status_code: HTTP status code (uses ERROR_CODES mapping if not provided)

    Returns:
        Tuple of (json response, status code)
    """
    if status_code is None:
        status_code = ERROR_CODES.get(code, {}).get('status', 400)

    response = {
        'error': {
            'code': code,
            'message': message
        }
    }

    if details:
        response['error']['details'] = details

    return jsonify(response), status_code


# Error code definitions
ERROR_CODES = {
    'UNAUTHORIZED': {
        'message': 'Missing or invalid credentials',
        'status': 401,
    },
    'INVALID_STATUS': {
        'message': 'Status must be one of: AQ, PS, Inactive',
        'status': 400,
    },
    'INVALID_INDICATOR': {
        'message': 'End indicator must be one of: Hi, Lo',
        'status': 400,
    },
    'INVALID_TRANSITION': {
        'message': 'Status or end indicator outside the allowed values',
        'status': 400,
    },
    'NO_FIELDS': {
        'message': 'No updates provided',
        'status': 400,
    },
    'INVALID_REQUEST': {
        'message': 'Invalid request payload',
        'status': 400,
    },
    'NOT_FOUND': {
        'message': 'Resource not found',
        'status': 404,
    },
    'RATE_LIMITED': {
        'message': 'Rate limit exceeded',
        'status': 429,
    },
    'CONFIG_ERROR': {
        'message': 'Server configuration error',
        'status': 500,
    },
    'INTERNAL_ERROR': {
        'message': 'Internal server error',
        'status': 500,
    },
    'SLACK_ERROR': {
        'message': 'Slack API call failed',
        'status': 502,
    },
}


def register_error_handlers(app):
    """Register custom error handlers with Flask app.

    Args:
        app: Flask application instance
    """

    @app.errorhandler(KioskError)
    def kiosk_error(error: KioskError):
        log_with_fields(
            logger, 'warning' if error.status_code < 500 else 'error',
            error.message, code=error.code, path=request.path
        )
        return error_response(
            error.code,
            error.public_message,
            error.details if error.status_code < 500 else None,
            status_code=error.status_code
        )

    @app.errorhandler(404)
    def not_found(error):
        return error_response('NOT_FOUND', 'Resource not found')

    @app.errorhandler(405)
    def method_not_allowed(error):
        return error_response('INVALID_REQUEST', 'Method not allowed', status_code=405)

    @app.errorhandler(429)
    def rate_limited(error):
        return error_response('RATE_LIMITED', 'Rate limit exceeded')

    @app.errorhandler(HTTPException)
    def http_error(error: HTTPException):
        return error_response(
            'INVALID_REQUEST' if error.code < 500 else 'INTERNAL_ERROR',
            error.description or error.name,
            status_code=error.code
        )

    @app.errorhandler(Exception)
    def unhandled(error: Exception):
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        response = {
            'error': {
                'code': 'INTERNAL_ERROR',
                'message': str(error) or 'Something went wrong'
            }
        }
        if current_app.config.get('ENVIRONMENT') != 'production':
            response['stack'] = traceback.format_exception(type(error), error, error.__traceback__)
        return jsonify(response), 500

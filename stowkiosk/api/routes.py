"""Flask routes for the Stow Kiosk REST API."""

import re
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional, Type

import jwt
import pydantic
from flask import Blueprint, current_app, g, jsonify, request

from ..errors import AuthError, ConfigError, ValidationError
from ..extensions import get_services, limiter
from ..realtime.hub import BroadcastEvent
from ..utils.decorators import require_auth
from ..utils.logging_config import get_logger
from .validators import (
    AvailableSpaceCreateRequest,
    AvailableSpaceUpdateRequest,
    LoginRequest,
    SafetyMessageCreateRequest,
    SafetyMessageUpdateRequest,
    StationUpdateRequest,
)

# Create API blueprint
api = Blueprint('api', __name__, url_prefix='/api')

logger = get_logger('stowkiosk.api')

_ID_PATTERN = re.compile(r'^\d+$')

# Field name -> error code for validation failures
_FIELD_ERROR_CODES = {
    'status': 'INVALID_STATUS',
    'endIndicator': 'INVALID_INDICATOR',
    'end_indicator': 'INVALID_INDICATOR',
}


def _write_limit() -> str:
    return current_app.config.get('RATELIMIT_WRITE', '60 per minute')


def _parse_id(raw: str, entity: str) -> int:
    """Path ids must be positive integers."""
    if not _ID_PATTERN.match(raw) or int(raw) == 0:
        raise ValidationError(f'{entity} ID must be a positive integer')
    return int(raw)


def _validate(model: Type[pydantic.BaseModel], data: Optional[Any]) -> pydantic.BaseModel:
    """Validate a JSON body, mapping the first failing field to an error code."""
    if not isinstance(data, dict):
        raise ValidationError('Invalid JSON payload')

    try:
        return model(**data)
    except pydantic.ValidationError as e:
        errors = e.errors()
        first = errors[0] if errors else {}
        loc = first.get('loc') or (None,)
        field = loc[0]
        message = str(first.get('msg', 'Invalid value')).replace('Value error, ', '')
        if first.get('type') == 'extra_forbidden':
            message = f'Unknown field: {field}'

        error = ValidationError(message, {'field': field} if field else None)
        error.code = _FIELD_ERROR_CODES.get(field, 'INVALID_REQUEST')
        raise error


# Stations

@api.route('/stations/side/<side>', methods=['GET'])
def get_stations_by_side(side: str):
    """Normalized stations of one side, in display order."""
    stations = get_services().stations.list_by_side(side)
    return jsonify(stations), 200


@api.route('/stations', methods=['GET'])
@require_auth
def get_all_stations():
    return jsonify(get_services().stations.list_all()), 200


@api.route('/stations/<station_id>', methods=['PUT'])
@limiter.limit(_write_limit)
@require_auth
def update_station(station_id: str):
    """Apply a partial status / end indicator update and broadcast it."""
    station_id = _parse_id(station_id, 'Station')
    validated = _validate(StationUpdateRequest, request.get_json(silent=True))

    station = get_services().protocol.apply(
        station_id,
        status=validated.status,
        end_indicator=validated.end_indicator,
    )
    return jsonify(station), 200


# Safety messages

def _broadcast_message(data: Dict[str, Any]) -> None:
    get_services().hub.broadcast(BroadcastEvent('safetyMessageUpdate', data))


@api.route('/safety-messages', methods=['GET'])
def get_active_messages():
    return jsonify(get_services().messages.list_active()), 200


@api.route('/safety-messages/all', methods=['GET'])
@require_auth
def get_all_messages():
    return jsonify(get_services().messages.list_all()), 200


@api.route('/safety-messages', methods=['POST'])
@limiter.limit(_write_limit)
@require_auth
def create_message():
    validated = _validate(SafetyMessageCreateRequest, request.get_json(silent=True))
    message = get_services().messages.create(text=validated.text, priority=validated.priority)
    _broadcast_message(message)
    return jsonify(message), 201


@api.route('/safety-messages/<message_id>', methods=['PUT'])
@limiter.limit(_write_limit)
@require_auth
def update_message(message_id: str):
    message_id = _parse_id(message_id, 'Safety message')
    validated = _validate(SafetyMessageUpdateRequest, request.get_json(silent=True))
    message = get_services().messages.update(
        message_id,
        text=validated.text,
        priority=validated.priority,
        is_active=validated.is_active,
    )
    _broadcast_message(message)
    return jsonify(message), 200


@api.route('/safety-messages/<message_id>', methods=['DELETE'])
@limiter.limit(_write_limit)
@require_auth
def delete_message(message_id: str):
    message_id = _parse_id(message_id, 'Safety message')
    get_services().messages.delete(message_id)
    _broadcast_message({'id': message_id, 'deleted': True})
    return jsonify({'message': 'Safety message deleted successfully'}), 200


# Available spaces

@api.route('/available-spaces', methods=['GET'])
def get_all_spaces():
    return jsonify(get_services().spaces.list_all()), 200


@api.route('/available-spaces/range', methods=['GET'])
def get_spaces_by_range():
    """Bins with percent between ``min`` and ``max`` (defaults 0 and 100)."""
    try:
        minimum = int(request.args.get('min', 0))
        maximum = int(request.args.get('max', 100))
    except ValueError:
        raise ValidationError('Invalid range parameters')
    return jsonify(get_services().spaces.list_by_range(minimum, maximum)), 200


@api.route('/available-spaces/type/<bin_type>', methods=['GET'])
def get_spaces_by_type(bin_type: str):
    return jsonify(get_services().spaces.list_by_type(bin_type)), 200


@api.route('/available-spaces/<space_id>', methods=['GET'])
def get_space(space_id: str):
    space_id = _parse_id(space_id, 'Space')
    return jsonify(get_services().spaces.get(space_id)), 200


@api.route('/available-spaces', methods=['POST'])
@limiter.limit(_write_limit)
@require_auth
def create_space():
    validated = _validate(AvailableSpaceCreateRequest, request.get_json(silent=True))
    space = get_services().spaces.create(
        aisle=validated.aisle,
        section=validated.section,
        position=validated.position,
        bin_type=validated.type,
        percent=validated.percent,
    )
    get_services().hub.broadcast(BroadcastEvent('availableSpaceUpdate', space))
    return jsonify(space), 201


@api.route('/available-spaces/<space_id>', methods=['PUT'])
@limiter.limit(_write_limit)
@require_auth
def update_space(space_id: str):
    space_id = _parse_id(space_id, 'Space')
    validated = _validate(AvailableSpaceUpdateRequest, request.get_json(silent=True))
    space = get_services().spaces.update_percent(space_id, validated.percent)
    get_services().hub.broadcast(BroadcastEvent('availableSpaceUpdate', space))
    return jsonify(space), 200


# Auth

@api.route('/auth/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    """Exchange admin credentials for a bearer token."""
    data = request.get_json(silent=True)
    try:
        validated = _validate(LoginRequest, data)
    except ValidationError:
        raise ValidationError('Username and password are required')

    secret = current_app.config.get('JWT_SECRET')
    if not secret:
        raise ConfigError('JWT_SECRET not configured')

    user = get_services().users.authenticate(validated.username, validated.password)
    if user is None:
        raise AuthError('Invalid credentials')

    ttl = timedelta(hours=current_app.config.get('TOKEN_TTL_HOURS', 8))
    token = jwt.encode(
        {
            'id': user['id'],
            'username': user['username'],
            'role': user['role'],
            'exp': datetime.now(timezone.utc) + ttl,
        },
        secret,
        algorithm='HS256',
    )
    logger.info('User %s logged in', user['username'])
    return jsonify({'token': token, 'user': user}), 200


@api.route('/auth/me', methods=['GET'])
@require_auth
def whoami():
    return jsonify({
        'id': g.user.get('id'),
        'username': g.user.get('username'),
        'role': g.user.get('role'),
    }), 200

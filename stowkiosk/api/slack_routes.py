"""Slack slash command and interactivity endpoints.

Slack expects a 200 for everything it sends here, so handler failures come
back as text bodies. Only a bad signature (401) or an unreadable payload
(400) produce an error status.
"""

import json

from flask import Blueprint, jsonify, request

from ..extensions import get_services
from ..utils.decorators import require_slack_signature
from ..utils.logging_config import get_logger


slack_api = Blueprint('slack_api', __name__, url_prefix='/api/slack')

logger = get_logger('stowkiosk.api.slack')


@slack_api.route('/command', methods=['POST'])
@require_slack_signature
def slash_command():
    """Handle ``/station-update`` and ``/safety-message``."""
    command = request.form.get('command', '')
    text = request.form.get('text', '')
    logger.info('Slash command %s from %s', command, request.form.get('user_id'))

    body = get_services().bridge.handle_command(command, text)
    return jsonify(body), 200


@slack_api.route('/interactive', methods=['POST'])
@require_slack_signature
def interactive():
    """Handle button clicks on station panels and reminders."""
    try:
        payload = json.loads(request.form['payload'])
    except (KeyError, TypeError, ValueError):
        logger.warning('Malformed Slack interactive payload')
        return jsonify({'text': 'Invalid payload format'}), 400

    if not isinstance(payload, dict) or payload.get('type') != 'block_actions':
        return jsonify({'text': 'Interaction type not supported'}), 200

    body = get_services().bridge.handle_interaction(payload)
    return jsonify(body), 200

"""Slack bridge: station panels, interactions, slash commands and reminders.

The bridge owns no state. Panels are rendered from the station store on
every call, and every button click is turned into a call on the station
update protocol, so Slack, kiosks and the admin panel all see one record.
"""

import json
from typing import Any, Callable, Dict, Optional

from .blocks import (
    INDICATOR_ARROWS,
    SAFETY_HELP_TEXT,
    build_reminder_blocks,
    build_station_panel,
    format_safety_message_list,
)
from .client import SlackClient
from ..errors import KioskError, ValidationError
from ..realtime.hub import BroadcastEvent, BroadcastHub
from ..state.messages import SafetyMessageStore
from ..state.protocol import StationUpdateProtocol, next_status, toggle_end_indicator
from ..state.stations import StationStore, parse_side
from ..utils.logging_config import get_logger, log_with_fields


logger = get_logger('stowkiosk.slack')

NOT_RECOGNIZED = {'text': 'Action not recognized'}

FAILURE_TEXT = {
    'cycle_status': 'Error updating status. Please try again.',
    'toggle_end_indicator': 'Error updating end indicator. Please try again.',
    'station_update': 'Error updating station. Please try again.',
    'update_side_a': 'Error creating station update message. Please try again.',
    'update_side_b': 'Error creating station update message. Please try again.',
}


def decode_action_value(action: Dict[str, Any]) -> Dict[str, Any]:
    """Decode the JSON a button carries in its ``value``."""
    try:
        value = json.loads(action.get('value') or '')
        value['station_id'] = int(value['station_id'])
    except (ValueError, TypeError, KeyError):
        raise ValidationError('Malformed action value', {'value': action.get('value')})
    return value


class SlackBridge:
    """Translate between Slack payloads and station update protocol calls."""

    def __init__(
        self,
        stations: StationStore,
        protocol: StationUpdateProtocol,
        messages: SafetyMessageStore,
        hub: BroadcastHub,
        client: Optional[SlackClient] = None,
    ):
        self.stations = stations
        self.protocol = protocol
        self.messages = messages
        self.hub = hub
        self.client = client or SlackClient()

        self._handlers: Dict[str, Callable[[Dict[str, Any], Optional[str]], Dict[str, Any]]] = {
            'cycle_status': self._handle_cycle_status,
            'toggle_end_indicator': self._handle_toggle_end_indicator,
            'station_update': self._handle_station_update,
            'update_side_a': lambda action, url: self.render_station_panel('A'),
            'update_side_b': lambda action, url: self.render_station_panel('B'),
        }

    def render_station_panel(self, side: str) -> Dict[str, Any]:
        """Render the interactive panel for a side from current state."""
        side = parse_side(side).value
        return build_station_panel(side, self.stations.list_by_side(side))

    # Interactions

    def handle_interaction(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Handle one ``block_actions`` payload.

        Always returns a response body; failures become a "please try
        again" message instead of an exception.

        Args:
            payload: Parsed interactive payload

        Returns:
            Response body for Slack
        """
        actions = payload.get('actions')
        action = actions[0] if isinstance(actions, list) and actions else None
        if not isinstance(action, dict):
            logger.info('Ignoring Slack interaction without a usable action')
            return dict(NOT_RECOGNIZED)

        action_id = action.get('action_id')
        handler = self._handlers.get(action_id) if isinstance(action_id, str) else None
        if handler is None:
            logger.info('Ignoring unrecognized Slack action %r', action_id)
            return dict(NOT_RECOGNIZED)

        user = payload.get('user')
        log_with_fields(
            logger, 'info', 'Slack interaction',
            action_id=action_id, user=user.get('id') if isinstance(user, dict) else None
        )
        try:
            return handler(action, payload.get('response_url'))
        except Exception:
            logger.exception('Slack action %s failed', action_id)
            return {'text': FAILURE_TEXT[action_id]}

    def _handle_cycle_status(self, action: Dict[str, Any], response_url: Optional[str]) -> Dict[str, Any]:
        value = decode_action_value(action)
        new_status = next_status(value.get('current_status'))
        station = self.protocol.apply(value['station_id'], status=new_status)
        self._replace_panel(station['side'], response_url)
        return {'text': f'Station updated to {new_status.value}'}

    def _handle_toggle_end_indicator(self, action: Dict[str, Any], response_url: Optional[str]) -> Dict[str, Any]:
        value = decode_action_value(action)
        new_end = toggle_end_indicator(value.get('current_end'))
        station = self.protocol.apply(value['station_id'], end_indicator=new_end)
        self._replace_panel(station['side'], response_url)
        return {'text': f'End indicator updated to {new_end.value}'}

    def _handle_station_update(self, action: Dict[str, Any], response_url: Optional[str]) -> Dict[str, Any]:
        """Explicit status/indicator pair from older messages; no panel refresh."""
        value = decode_action_value(action)
        station = self.protocol.apply(
            value['station_id'],
            status=value.get('status'),
            end_indicator=value.get('end_indicator'),
        )
        arrow = INDICATOR_ARROWS.get(station['end_indicator'], '')
        return {
            'text': (
                f"Station {station['side']}-{station['level']}-{station['station_number']} "
                f"updated to {station['status']} {arrow}"
            )
        }

    def _replace_panel(self, side: str, response_url: Optional[str]) -> None:
        """Re-render the side and replace the clicked message in place."""
        panel = self.render_station_panel(side)
        if not response_url:
            logger.warning('Interaction without response_url; panel for side %s not refreshed', side)
            return
        self.client.respond(response_url, {
            'replace_original': True,
            'text': panel['text'],
            'blocks': panel['blocks'],
        })

    # Slash commands

    def handle_command(self, command: str, text: Optional[str]) -> Dict[str, Any]:
        """Handle ``/station-update`` and ``/safety-message``."""
        text = (text or '').strip()

        if command == '/station-update':
            side = 'B' if text.upper() == 'B' else 'A'
            try:
                return self.render_station_panel(side)
            except Exception:
                logger.exception('Rendering station panel for side %s failed', side)
                return {'text': 'An error occurred processing your station update command. Please try again.'}

        if command == '/safety-message':
            try:
                return self._handle_safety_command(text)
            except KioskError as e:
                logger.warning('Safety message command failed: %s', e.message)
                return {'text': f'❌ {e.public_message}'}
            except Exception:
                logger.exception('Safety message command failed')
                return {'text': 'An error occurred processing your command. Please try again.'}

        return {'text': 'Unknown command'}

    def _handle_safety_command(self, text: str) -> Dict[str, Any]:
        if not text:
            return {'text': SAFETY_HELP_TEXT}

        parts = text.split()
        sub_command = parts[0].lower()

        if sub_command == 'list':
            return {'text': format_safety_message_list(self.messages.list_active())}

        if sub_command == 'add':
            content = ' '.join(parts[1:]).strip()
            if not content:
                return {
                    'text': "Please provide a message to add.\n"
                            "Example: `/safety-message add Equipment issue in aisle 5`"
                }
            message = self.messages.create(text=content)
            self.hub.broadcast(BroadcastEvent('safetyMessageUpdate', message))
            return {'text': f'✅ Safety message added: "{message["text"]}"'}

        return {'text': "I didn't understand that command. Try:\n" + SAFETY_HELP_TEXT.split('\n', 1)[1]}

    # Reminders

    def send_reminder(self, channel: str) -> Dict[str, Any]:
        """Post the two-button update prompt to a channel.

        Raises:
            UpstreamError: If Slack rejects the post
        """
        return self.client.post_message(
            channel=channel,
            blocks=build_reminder_blocks(),
            text='Hourly Station Update Reminder'
        )

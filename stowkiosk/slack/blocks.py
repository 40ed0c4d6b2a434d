"""Block Kit builders for the Stow Kiosk Slack integration."""

import json
from collections import defaultdict
from typing import Any, Dict, Iterable, List


# Status to icon mapping
STATUS_ICONS = {
    'AQ': '🔵',
    'PS': '🟠',
    'Inactive': '⚫',
}

STATUS_LABELS = {
    'AQ': 'AQ',
    'PS': 'PS',
    'Inactive': 'IA',
}

INDICATOR_ICONS = {
    'Hi': '⬆️',
    'Lo': '⬇️',
}

INDICATOR_ARROWS = {
    'Hi': '↑',
    'Lo': '↓',
}

SAFETY_HELP_TEXT = (
    "*Safety Message Commands:*\n"
    "• `/safety-message add Your message here` - Add a new safety message\n"
    "• `/safety-message list` - List all active safety messages"
)


def get_status_emoji(status: str) -> str:
    return STATUS_ICONS.get(status, STATUS_ICONS['Inactive'])


def get_status_display(status: str) -> str:
    return STATUS_LABELS.get(status, STATUS_LABELS['Inactive'])


def get_indicator_emoji(indicator: str) -> str:
    return INDICATOR_ICONS['Hi'] if indicator == 'Hi' else INDICATOR_ICONS['Lo']


def station_label(station: Dict[str, Any]) -> str:
    return f"{station['level']}-{station['side']}-{station['station_number']}"


def build_panel_header_block(side: str) -> Dict[str, Any]:
    """Build the header block of a station panel.

    Args:
        side: Facility side (A or B)

    Returns:
        Header block dictionary
    """
    return {
        'type': 'header',
        'text': {
            'type': 'plain_text',
            'text': f'Station Management – Side {side}',
            'emoji': True
        }
    }


def build_level_section_block(side: str, level: int) -> Dict[str, Any]:
    """Build the section block that opens one level."""
    return {
        'type': 'section',
        'block_id': f'side_{side.lower()}_level_{level}',
        'text': {
            'type': 'mrkdwn',
            'text': f'*Level {level}*'
        }
    }


def build_station_row_block(station: Dict[str, Any]) -> Dict[str, Any]:
    """Build the interactive row for one station.

    The row carries a label plus two independent controls. Each control's
    value encodes the state it was rendered from, so a click names both
    the station and the value it is moving away from.

    Args:
        station: Normalized station record

    Returns:
        Actions block dictionary
    """
    status = station['status']
    end_indicator = station['end_indicator']

    return {
        'type': 'actions',
        'block_id': f"station_{station['id']}",
        'elements': [
            {
                'type': 'button',
                'text': {
                    'type': 'plain_text',
                    'text': station_label(station)
                }
            },
            {
                'type': 'button',
                'text': {
                    'type': 'plain_text',
                    'text': f'{get_status_emoji(status)} {get_status_display(status)}',
                    'emoji': True
                },
                'value': json.dumps({
                    'station_id': station['id'],
                    'current_status': status
                }),
                'action_id': 'cycle_status'
            },
            {
                'type': 'button',
                'text': {
                    'type': 'plain_text',
                    'text': f'{get_indicator_emoji(end_indicator)} {end_indicator}',
                    'emoji': True
                },
                'value': json.dumps({
                    'station_id': station['id'],
                    'current_end': end_indicator
                }),
                'action_id': 'toggle_end_indicator'
            }
        ]
    }


def build_station_panel(side: str, stations: Iterable[Dict[str, Any]]) -> Dict[str, Any]:
    """Build the full interactive panel for one side.

    One header, then per level (ascending) a section block followed by one
    row per station (ascending station number).

    Args:
        side: Facility side (A or B)
        stations: Normalized station records of that side, in any order

    Returns:
        Message payload with ``blocks`` and fallback ``text``
    """
    by_level = defaultdict(list)
    for station in stations:
        by_level[int(station['level'])].append(station)

    blocks = [build_panel_header_block(side)]
    for level in sorted(by_level):
        blocks.append(build_level_section_block(side, level))
        for station in sorted(by_level[level], key=lambda s: int(s['station_number'])):
            blocks.append(build_station_row_block(station))

    return {
        'text': f'Station Management – Side {side}',
        'blocks': blocks
    }


def build_reminder_blocks() -> List[Dict[str, Any]]:
    """Build the fixed hourly reminder prompt."""
    return [
        {
            'type': 'section',
            'text': {
                'type': 'mrkdwn',
                'text': '*Hourly Station Update Reminder*\n⏰ Time to update your station statuses!'
            }
        },
        {
            'type': 'actions',
            'elements': [
                {
                    'type': 'button',
                    'text': {
                        'type': 'plain_text',
                        'text': 'Update Side A'
                    },
                    'value': 'A',
                    'action_id': 'update_side_a'
                },
                {
                    'type': 'button',
                    'text': {
                        'type': 'plain_text',
                        'text': 'Update Side B'
                    },
                    'value': 'B',
                    'action_id': 'update_side_b'
                }
            ]
        }
    ]


def format_safety_message_list(messages: List[Dict[str, Any]]) -> str:
    """Render active safety messages as a chat reply."""
    if not messages:
        return 'No active safety messages found.'

    lines = []
    for message in messages:
        marker = '🔴 [URGENT] ' if message.get('priority') == 'urgent' else '🔵 '
        lines.append(f"{message['id']}: {marker}{message['text']}")
    return '*Active Safety Messages:*\n' + '\n'.join(lines)

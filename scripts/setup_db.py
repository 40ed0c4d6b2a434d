# Stow Kiosk Database Setup
"""Create the schema and seed the fixed station topology."""

import os
import secrets
import sys

from dotenv import load_dotenv

from stowkiosk.config import DatabaseConfig
from stowkiosk.errors import ValidationError
from stowkiosk.state import Database, SafetyMessageStore, StationStore, UserStore


SIDES = ('A', 'B')
LEVELS = (1, 2, 3)
STATION_NUMBERS = (123, 149, 175, 203)

DEFAULT_MESSAGES = [
    'REMINDER: Always wear proper PPE in work areas',
    'SAFETY FIRST: Keep all aisles clear of obstructions',
    'REPORT hazards immediately to your supervisor',
]


def seed_stations(stations: StationStore) -> int:
    """Insert every side/level/station once; returns the number created."""
    if stations.count():
        return 0

    created = 0
    for side in SIDES:
        for level in LEVELS:
            for number in STATION_NUMBERS:
                stations.create(side=side, level=level, station_number=number)
                created += 1
    return created


def seed_messages(messages: SafetyMessageStore) -> int:
    if messages.list_all():
        return 0
    for text in DEFAULT_MESSAGES:
        messages.create(text=text)
    return len(DEFAULT_MESSAGES)


def generate_password() -> str:
    return secrets.token_urlsafe(12)


def main():
    """Main entry point."""
    load_dotenv()

    username = sys.argv[1] if len(sys.argv) > 1 else os.environ.get('KIOSK_ADMIN_USER', 'admin')
    password = os.environ.get('KIOSK_ADMIN_PASSWORD') or generate_password()

    database = Database(DatabaseConfig.from_env().url)
    database.create_all()

    print(f"Stations created: {seed_stations(StationStore(database))}")
    print(f"Safety messages created: {seed_messages(SafetyMessageStore(database))}")

    users = UserStore(database)
    if users.authenticate(username, password) is None:
        try:
            users.create(username, password)
        except ValidationError as e:
            print(f"Admin user not created: {e}")
        else:
            print(f"Admin user: {username}")
            if 'KIOSK_ADMIN_PASSWORD' not in os.environ:
                print(f"Generated password: {password}")

    database.dispose()


if __name__ == '__main__':
    main()

"""Data models for Stow Kiosk state."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from sqlalchemy import Boolean, Column, DateTime, Integer, String, UniqueConstraint

from .database import Base
from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.models')


class Side(str, Enum):
    A = 'A'
    B = 'B'


class Status(str, Enum):
    """Canonical station states."""
    AQ = 'AQ'
    PS = 'PS'
    INACTIVE = 'Inactive'


class Indicator(str, Enum):
    """Directional end indicator shown as an up/down arrow."""
    HI = 'Hi'
    LO = 'Lo'


VALID_STATUSES = {s.value for s in Status}
VALID_INDICATORS = {i.value for i in Indicator}
VALID_PRIORITIES = {'normal', 'urgent'}
VALID_POSITIONS = {'top', 'middle', 'bottom'}
VALID_BIN_TYPES = {'Library', 'Library Deep'}

# Stored by older kiosk builds; read back as AQ with PS as secondary
LEGACY_COMPOSITE_STATUSES = {'AQ+PS', 'PS+AQ'}


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: Optional[datetime]) -> Optional[str]:
    """Render a timestamp as ISO 8601 UTC with a trailing Z."""
    if value is None:
        return None
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc).isoformat().replace('+00:00', 'Z')


def normalize_status(raw: Optional[str]) -> Tuple[str, Optional[str]]:
    """Map a stored status onto ``(status, secondary_status)``.

    Canonical values pass through unchanged with no secondary status.
    Anything unrecognised reads as Inactive.
    """
    if raw in VALID_STATUSES:
        return raw, None
    if raw in LEGACY_COMPOSITE_STATUSES:
        return Status.AQ.value, Status.PS.value
    logger.warning('Unrecognised stored station status %r, reading as Inactive', raw)
    return Status.INACTIVE.value, None


def normalize_station(data: Dict[str, Any]) -> Dict[str, Any]:
    """Return a copy of a station record with its status normalized."""
    normalized = dict(data)
    status, secondary = normalize_status(data.get('status'))
    normalized['status'] = status
    if secondary is not None:
        normalized['secondary_status'] = secondary
    return normalized


class Station(Base):
    """A physical work location on one side of the facility."""
    __tablename__ = 'stations'

    id = Column(Integer, primary_key=True, index=True)
    side = Column(String(1), nullable=False, index=True)
    floor = Column(Integer, nullable=False, default=1)
    level = Column(Integer, nullable=False)
    station_number = Column(Integer, nullable=False)
    status = Column(String(16), nullable=False, default=Status.INACTIVE.value)
    end_indicator = Column(String(2), nullable=False, default=Indicator.HI.value)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        UniqueConstraint('side', 'floor', 'level', 'station_number', name='uq_station_position'),
    )

    def to_dict(self) -> Dict[str, Any]:
        """Normalized representation shared by kiosks, Slack and the admin panel."""
        return normalize_station({
            'id': self.id,
            'side': self.side,
            'floor': self.floor,
            'level': self.level,
            'station_number': self.station_number,
            'status': self.status,
            'end_indicator': self.end_indicator,
            'updated_at': format_timestamp(self.updated_at),
        })


class SafetyMessage(Base):
    """Rotating safety message shown on the kiosk screens."""
    __tablename__ = 'safety_messages'

    id = Column(Integer, primary_key=True, index=True)
    text = Column(String(500), nullable=False)
    priority = Column(String(8), nullable=False, default='normal')
    is_active = Column(Boolean, nullable=False, default=True, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'text': self.text,
            'priority': self.priority,
            'is_active': self.is_active,
            'updated_at': format_timestamp(self.updated_at),
        }


class AvailableSpace(Base):
    """Fill level of one storage bin."""
    __tablename__ = 'available_spaces'

    id = Column(Integer, primary_key=True, index=True)
    aisle = Column(Integer, nullable=False)
    section = Column(String(8), nullable=False)
    position = Column(String(8), nullable=False)
    type = Column(String(16), nullable=False)
    percent = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        return {
            'id': self.id,
            'aisle': self.aisle,
            'section': self.section,
            'position': self.position,
            'type': self.type,
            'percent': self.percent,
            'updated_at': format_timestamp(self.updated_at),
        }


class User(Base):
    """Admin panel account."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String(64), unique=True, nullable=False, index=True)
    password_hash = Column(String(256), nullable=False)
    role = Column(String(16), nullable=False, default='admin')

    def to_dict(self) -> Dict[str, Any]:
        return {'id': self.id, 'username': self.username, 'role': self.role}

"""Station store: the single source of truth for station state.

Writes are issued as one field-level UPDATE per call, so a request that
changes only the status never rewrites the end indicator (and the other
way round), even when two requests race on the same station.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Union

from sqlalchemy.exc import IntegrityError

from .database import Database
from .models import Indicator, Side, Station, Status, utcnow
from ..errors import InvalidTransition, NoOpUpdate, NotFoundError, ValidationError
from ..utils.logging_config import get_logger, log_with_fields


logger = get_logger('stowkiosk.stations')


def parse_side(side: Union[str, Side]) -> Side:
    """Accept ``a``/``b`` in either case."""
    try:
        return Side(str(side.value if isinstance(side, Side) else side).upper())
    except ValueError:
        raise ValidationError('Invalid side parameter', {'side': side})


@dataclass(frozen=True)
class StationUpdate:
    """Partial update: either field may be absent, never both."""

    status: Optional[Status] = None
    end_indicator: Optional[Indicator] = None

    def __post_init__(self):
        if self.status is not None and not isinstance(self.status, Status):
            try:
                object.__setattr__(self, 'status', Status(self.status))
            except ValueError:
                raise InvalidTransition('Invalid status. Must be AQ, PS, or Inactive.')
        if self.end_indicator is not None and not isinstance(self.end_indicator, Indicator):
            try:
                object.__setattr__(self, 'end_indicator', Indicator(self.end_indicator))
            except ValueError:
                raise InvalidTransition('Invalid end indicator. Must be Hi or Lo.')

    @property
    def is_empty(self) -> bool:
        return self.status is None and self.end_indicator is None

    def to_columns(self) -> Dict[str, Any]:
        columns = {}
        if self.status is not None:
            columns['status'] = self.status.value
        if self.end_indicator is not None:
            columns['end_indicator'] = self.end_indicator.value
        return columns


class StationStore:
    """Reads and field-level writes against the ``stations`` table."""

    def __init__(self, database: Database):
        self.database = database

    def get(self, station_id: int) -> Dict[str, Any]:
        """Fetch one normalized station.

        Raises:
            NotFoundError: If no station has that id
        """
        with self.database.session() as session:
            station = session.get(Station, station_id)
            if station is None:
                raise NotFoundError('Station not found', {'id': station_id})
            return station.to_dict()

    def list_by_side(self, side: Union[str, Side]) -> List[Dict[str, Any]]:
        """Stations of one side ordered by level, then station number."""
        side = parse_side(side)
        with self.database.session() as session:
            stations = (
                session.query(Station)
                .filter(Station.side == side.value)
                .order_by(Station.level, Station.station_number, Station.id)
                .all()
            )
            return [station.to_dict() for station in stations]

    def list_all(self) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            stations = (
                session.query(Station)
                .order_by(Station.side, Station.floor, Station.level, Station.station_number)
                .all()
            )
            return [station.to_dict() for station in stations]

    def apply(self, station_id: int, update: StationUpdate) -> Dict[str, Any]:
        """Apply a partial update and return the post-write station.

        Raises:
            NoOpUpdate: If the update carries no fields
            NotFoundError: If no station has that id
        """
        if update.is_empty:
            raise NoOpUpdate()

        values = update.to_columns()
        values['updated_at'] = utcnow()

        with self.database.session() as session:
            changed = (
                session.query(Station)
                .filter(Station.id == station_id)
                .update(values, synchronize_session=False)
            )
            if not changed:
                raise NotFoundError('Station not found', {'id': station_id})
            station = session.get(Station, station_id)
            result = station.to_dict()

        log_with_fields(
            logger, 'info', 'Station updated',
            station_id=station_id, **update.to_columns()
        )
        return result

    def create(
        self,
        side: Union[str, Side],
        level: int,
        station_number: int,
        floor: int = 1,
        status: Union[str, Status] = Status.INACTIVE,
        end_indicator: Union[str, Indicator] = Indicator.HI,
    ) -> Dict[str, Any]:
        """Create a station as part of the fixed topology."""
        side = parse_side(side)
        if level < 1 or station_number < 1 or floor < 1:
            raise ValidationError('Level, floor and station number must be positive')
        initial = StationUpdate(status=status, end_indicator=end_indicator)

        try:
            with self.database.session() as session:
                station = Station(
                    side=side.value,
                    floor=floor,
                    level=level,
                    station_number=station_number,
                    status=initial.status.value,
                    end_indicator=initial.end_indicator.value,
                )
                session.add(station)
                session.flush()
                return station.to_dict()
        except IntegrityError:
            raise ValidationError(
                f'Station {level}-{side.value}-{station_number} already exists on floor {floor}'
            )

    def count(self) -> int:
        with self.database.session() as session:
            return session.query(Station).count()

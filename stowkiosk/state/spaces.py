"""Available-space (bin fill level) store."""

from typing import Any, Dict, List

from .database import Database
from .models import AvailableSpace, VALID_BIN_TYPES, VALID_POSITIONS, utcnow
from ..errors import NotFoundError, ValidationError


def validate_percent(percent) -> int:
    """Percent must be a number in [0, 100]."""
    if isinstance(percent, bool) or not isinstance(percent, (int, float)):
        raise ValidationError('Percent must be a number between 0 and 100')
    if percent < 0 or percent > 100:
        raise ValidationError('Percent must be a number between 0 and 100')
    return int(round(percent))


class AvailableSpaceStore:
    """CRUD over ``available_spaces``."""

    def __init__(self, database: Database):
        self.database = database

    def list_all(self) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            spaces = (
                session.query(AvailableSpace)
                .order_by(AvailableSpace.aisle, AvailableSpace.section, AvailableSpace.position)
                .all()
            )
            return [space.to_dict() for space in spaces]

    def get(self, space_id: int) -> Dict[str, Any]:
        with self.database.session() as session:
            space = session.get(AvailableSpace, space_id)
            if space is None:
                raise NotFoundError('Available space record not found', {'id': space_id})
            return space.to_dict()

    def list_by_type(self, bin_type: str) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            spaces = (
                session.query(AvailableSpace)
                .filter(AvailableSpace.type == bin_type)
                .order_by(AvailableSpace.aisle, AvailableSpace.section, AvailableSpace.position)
                .all()
            )
            return [space.to_dict() for space in spaces]

    def list_by_range(self, minimum: int = 0, maximum: int = 100) -> List[Dict[str, Any]]:
        """Bins whose percent lies in ``[minimum, maximum]``, fullest first."""
        if minimum < 0 or maximum > 100 or minimum > maximum:
            raise ValidationError('Invalid range parameters')
        with self.database.session() as session:
            spaces = (
                session.query(AvailableSpace)
                .filter(AvailableSpace.percent.between(minimum, maximum))
                .order_by(AvailableSpace.percent.desc())
                .all()
            )
            return [space.to_dict() for space in spaces]

    def create(self, aisle: int, section: str, position: str, bin_type: str, percent) -> Dict[str, Any]:
        if position not in VALID_POSITIONS:
            raise ValidationError('Position must be one of: top, middle, bottom')
        if bin_type not in VALID_BIN_TYPES:
            raise ValidationError('Type must be Library or Library Deep')

        space = AvailableSpace(
            aisle=aisle,
            section=str(section),
            position=position,
            type=bin_type,
            percent=validate_percent(percent),
            updated_at=utcnow(),
        )
        with self.database.session() as session:
            session.add(space)
            session.flush()
            return space.to_dict()

    def update_percent(self, space_id: int, percent) -> Dict[str, Any]:
        value = validate_percent(percent)
        with self.database.session() as session:
            changed = (
                session.query(AvailableSpace)
                .filter(AvailableSpace.id == space_id)
                .update({'percent': value, 'updated_at': utcnow()}, synchronize_session=False)
            )
            if not changed:
                raise NotFoundError('Bin not found', {'id': space_id})
            return session.get(AvailableSpace, space_id).to_dict()

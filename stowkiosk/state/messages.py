"""Safety message store."""

from typing import Any, Dict, List, Optional

from sqlalchemy import case

from .database import Database
from .models import SafetyMessage, VALID_PRIORITIES, utcnow
from ..errors import NotFoundError, ValidationError


def _validate_text(text: Optional[str]) -> str:
    if text is None or not text.strip():
        raise ValidationError('Safety message text is required')
    return text.strip()


def _validate_priority(priority: str) -> str:
    if priority not in VALID_PRIORITIES:
        raise ValidationError('Priority must be normal or urgent')
    return priority


class SafetyMessageStore:
    """CRUD over ``safety_messages``.

    Any number of messages may be urgent; display priority is decided by
    the ordering of :meth:`list_active`, not enforced here.
    """

    def __init__(self, database: Database):
        self.database = database

    def list_active(self) -> List[Dict[str, Any]]:
        """Active messages, urgent first, then most recently updated."""
        urgent_first = case((SafetyMessage.priority == 'urgent', 0), else_=1)
        with self.database.session() as session:
            messages = (
                session.query(SafetyMessage)
                .filter(SafetyMessage.is_active.is_(True))
                .order_by(urgent_first, SafetyMessage.updated_at.desc(), SafetyMessage.id.desc())
                .all()
            )
            return [message.to_dict() for message in messages]

    def list_all(self) -> List[Dict[str, Any]]:
        with self.database.session() as session:
            messages = session.query(SafetyMessage).order_by(SafetyMessage.id).all()
            return [message.to_dict() for message in messages]

    def create(self, text: str, priority: str = 'normal', is_active: bool = True) -> Dict[str, Any]:
        message = SafetyMessage(
            text=_validate_text(text),
            priority=_validate_priority(priority),
            is_active=is_active,
            updated_at=utcnow(),
        )
        with self.database.session() as session:
            session.add(message)
            session.flush()
            return message.to_dict()

    def update(
        self,
        message_id: int,
        text: Optional[str] = None,
        priority: Optional[str] = None,
        is_active: Optional[bool] = None,
    ) -> Dict[str, Any]:
        """Update any subset of text, priority and active flag."""
        with self.database.session() as session:
            message = session.get(SafetyMessage, message_id)
            if message is None:
                raise NotFoundError('Safety message not found', {'id': message_id})

            if text is not None:
                message.text = _validate_text(text)
            if priority is not None:
                message.priority = _validate_priority(priority)
            if is_active is not None:
                message.is_active = bool(is_active)
            message.updated_at = utcnow()

            session.flush()
            return message.to_dict()

    def delete(self, message_id: int) -> Dict[str, Any]:
        with self.database.session() as session:
            message = session.get(SafetyMessage, message_id)
            if message is None:
                raise NotFoundError('Safety message not found', {'id': message_id})
            session.delete(message)
        return {'id': message_id}

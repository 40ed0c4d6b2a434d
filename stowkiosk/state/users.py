"""Admin user accounts."""

from typing import Any, Dict, Optional

from werkzeug.security import check_password_hash, generate_password_hash

from .database import Database
from .models import User
from ..errors import ValidationError


class UserStore:
    def __init__(self, database: Database):
        self.database = database

    def create(self, username: str, password: str, role: str = 'admin') -> Dict[str, Any]:
        if not username or not password:
            raise ValidationError('Username and password are required')
        with self.database.session() as session:
            if session.query(User).filter(User.username == username).first():
                raise ValidationError(f'User {username!r} already exists')
            user = User(
                username=username,
                password_hash=generate_password_hash(password),
                role=role,
            )
            session.add(user)
            session.flush()
            return user.to_dict()

    def authenticate(self, username: str, password: str) -> Optional[Dict[str, Any]]:
        """Return the user if the credentials match, otherwise None."""
        with self.database.session() as session:
            user = session.query(User).filter(User.username == username).first()
            if user is None or not check_password_hash(user.password_hash, password):
                return None
            return user.to_dict()

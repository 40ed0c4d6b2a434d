"""SQLAlchemy engine and session handling."""

from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from ..utils.logging_config import get_logger


logger = get_logger('stowkiosk.database')

Base = declarative_base()


class Database:
    """Owns the engine and hands out transactional sessions."""

    def __init__(self, url: str, echo: bool = False):
        self.url = url
        if url.startswith('sqlite:///') and url != 'sqlite:///:memory:':
            Path(url[len('sqlite:///'):]).parent.mkdir(parents=True, exist_ok=True)

        # SQLite needs check_same_thread=False under a threaded server
        self.engine = create_engine(
            url,
            connect_args={"check_same_thread": False} if url.startswith("sqlite") else {},
            echo=echo,
        )
        self._session_factory = sessionmaker(
            bind=self.engine, autoflush=False, expire_on_commit=False
        )

    def create_all(self) -> None:
        """Create any missing tables."""
        # Register the mapped classes before creating tables
        from . import models  # noqa: F401
        Base.metadata.create_all(bind=self.engine)
        logger.info('Database schema ready at %s', self.engine.url.render_as_string(hide_password=True))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session scope that commits on success and rolls back on error."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def dispose(self) -> None:
        self.engine.dispose()

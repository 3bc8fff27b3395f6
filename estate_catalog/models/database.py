"""Database models and session management."""

from datetime import datetime

from sqlalchemy import DateTime, String, Text, create_engine
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from estate_catalog.config import settings


class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


class KeyValueDB(Base):
    """Client-side key-value entry (favorites and other small blobs)."""

    __tablename__ = "key_values"

    key: Mapped[str] = mapped_column(String(200), primary_key=True)
    value: Mapped[str] = mapped_column(Text)
    updated_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.now, onupdate=datetime.now)


def get_engine(database_url: str | None = None):
    """Create database engine."""
    return create_engine(database_url or settings.database_url, echo=False)


def get_session(engine=None):
    """Create database session."""
    Session = sessionmaker(bind=engine or get_engine())
    return Session()


def init_db(engine=None):
    """Initialize database tables."""
    Base.metadata.create_all(engine or get_engine())

"""Database operations using SQLAlchemy."""

from datetime import datetime

from sqlalchemy import Column, DateTime, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from .config import AppConfig

Base = declarative_base()


class StorageEntryORM(Base):
    """Key/value table; each value is one JSON document."""

    __tablename__ = "storage_entries"

    key = Column(String(255), primary_key=True)
    value = Column(Text, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)


class DatabaseManager:
    """Database connection and session management."""

    def __init__(self, config: AppConfig):
        self.config = config

        connect_args = {}
        if config.database.url.startswith("sqlite"):
            connect_args = {
                "timeout": 30,
                "check_same_thread": False,
            }

        self.engine = create_engine(config.database.url, echo=config.database.echo, connect_args=connect_args)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self) -> None:
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get database session."""
        return self.SessionLocal()

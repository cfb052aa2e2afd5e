"""
Database models and initialization utilities for certificate tracking.
"""
import os

from sqlalchemy import create_engine, Column, Integer, String, DateTime, Text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.sql import func

Base = declarative_base()


class Certificate(Base):
    """Stored metadata for one uploaded certificate file."""

    __tablename__ = 'certificates'

    id = Column(Integer, primary_key=True, autoincrement=True)
    filename = Column(String(255), nullable=False, index=True)
    original_name = Column(String(255), nullable=True)
    valid_from = Column(DateTime, nullable=False)
    valid_to = Column(DateTime, nullable=False, index=True)
    issuer = Column(Text, nullable=True)
    serial_number = Column(String(128), nullable=True)
    common_name = Column(String(255), nullable=True)
    organization = Column(String(255), nullable=True)
    organizational_unit = Column(String(255), nullable=True)
    file_type = Column(String(100), nullable=True)
    password = Column(String(255), nullable=True)
    uploaded_at = Column(DateTime, default=func.now(), nullable=False)
    type = Column(String(50), default='certificate', nullable=False)
    description = Column(Text, nullable=True)

    def __repr__(self):
        return f"<Certificate(id={self.id}, common_name='{self.common_name}', valid_to={self.valid_to})>"


class DatabaseManager:
    """Database connection and initialization manager."""

    def __init__(self, database_url: str = None):
        """
        Initialize database manager.

        Args:
            database_url: Database connection URL. If None, uses SQLite with default path.
        """
        if database_url is None:
            data_dir = os.path.join(os.getcwd(), 'data')
            os.makedirs(data_dir, exist_ok=True)
            database_url = f"sqlite:///{os.path.join(data_dir, 'certwatch.db')}"
        elif not database_url.startswith(('sqlite://', 'postgresql://', 'mysql://')):
            # Plain file path
            database_url = f"sqlite:///{database_url}"

        self.database_url = database_url
        self.engine = create_engine(database_url, echo=False)
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def create_tables(self):
        """Create all database tables."""
        Base.metadata.create_all(bind=self.engine)

    def drop_tables(self):
        """Drop all database tables. Use with caution!"""
        Base.metadata.drop_all(bind=self.engine)

    def get_session(self) -> Session:
        """Get a new database session."""
        return self.SessionLocal()

    def close(self):
        """Dispose of pooled connections."""
        self.engine.dispose()


def get_database_manager(database_url: str = None) -> DatabaseManager:
    """
    Factory function to get a database manager instance.

    Args:
        database_url: Database connection URL or SQLite file path

    Returns:
        DatabaseManager instance
    """
    return DatabaseManager(database_url)

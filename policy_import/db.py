"""
Database configuration and session management.
"""

from sqlmodel import SQLModel, create_engine, Session
from sqlalchemy.engine import Engine
from typing import Generator, Optional
import os

# Import all models to ensure they are registered with SQLModel
from policy_import.models import Agent, LineOfBusiness, Carrier, UserAccount, Person, Policy

# Database URL - defaults to SQLite for development
DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./policy_import.db")

def create_db_engine(database_url: Optional[str] = None) -> Engine:
    """
    Create an engine for the given URL (or the configured DATABASE_URL).

    SQLite connections are shared between the request thread pool and the
    import listener, so the same-thread check is disabled for them.
    """
    url = database_url or DATABASE_URL
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, connect_args=connect_args)

# Engine used by the web process
engine = create_db_engine()

def create_db_and_tables(db_engine: Optional[Engine] = None):
    """Create database tables."""
    SQLModel.metadata.create_all(db_engine or engine)

def get_session() -> Generator[Session, None, None]:
    """Get database session."""
    with Session(engine) as session:
        yield session

def initialize_database():
    """Initialize database tables."""
    create_db_and_tables()

"""
Base database model and connection utilities for SQLAlchemy.
"""

from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

import config

# Create SQLAlchemy base model
Base = declarative_base()

# Create engine based on DATABASE_URL from config
engine = create_engine(config.DATABASE_URL, **config.DATABASE_CONFIG)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@contextmanager
def get_db_session(session_factory=None):
    """Context manager to handle database sessions with error handling."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind=None):
    """Initialize the database by creating all tables."""
    # Import all models here to ensure they're registered with Base
    from models.job import ExtractionJob  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)

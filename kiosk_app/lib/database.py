import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, scoped_session
from sqlalchemy.pool import QueuePool, StaticPool

from .models.store_models import Base

logger = logging.getLogger(__name__)

engine = None
Session = None


def configure_database(database_url: str):
    """Bind the engine and session factory to a database URL.

    In-memory SQLite gets a single shared connection so every session sees
    the same data. File databases get a small connection pool.
    """
    global engine, Session

    if Session is not None:
        Session.remove()
    if engine is not None:
        engine.dispose()

    if database_url in ('sqlite://', 'sqlite:///:memory:'):
        engine = create_engine(
            database_url,
            poolclass=StaticPool,
            connect_args={'check_same_thread': False}
        )
    else:
        logger.info(f"Using database at: {database_url}")
        engine = create_engine(
            database_url,
            poolclass=QueuePool,
            pool_size=5,
            max_overflow=0,
            pool_timeout=30,
            connect_args={
                'timeout': 30,
                'check_same_thread': False
            } if database_url.startswith('sqlite') else {}
        )

    Session = scoped_session(sessionmaker(
        bind=engine,
        expire_on_commit=False  # Don't expire objects after commit
    ))
    return engine


@contextmanager
def get_db():
    """Get a database session with proper resource management.

    Usage:
        with get_db() as db:
            item = db.get(KeyValueItem, key)
            # committed on success, rolled back on error
    """
    if Session is None:
        raise RuntimeError("Database is not configured, call configure_database() first")
    session = Session()
    try:
        yield session
        session.commit()
    except Exception as e:
        session.rollback()
        logger.error(f"Database error: {e}")
        raise
    finally:
        session.close()
        Session.remove()  # Remove session from registry


def init_db():
    """Initialize database, creating tables only if they don't exist"""
    try:
        Base.metadata.create_all(engine)

        # Verify we can connect
        with get_db() as db:
            db.execute(text('SELECT 1'))
            logger.info("Database connection verified successfully")
    except Exception as e:
        logger.error(f"Error initializing database: {e}")
        raise

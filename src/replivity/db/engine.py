"""
Database engine and session management
"""
import logging
from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ..config import config

logger = logging.getLogger(__name__)


def build_engine(database_url: str):
    """Create an engine with pool settings suited to the database backend"""
    if database_url.startswith("sqlite"):
        kwargs = {"connect_args": {"check_same_thread": False}}
        if ":memory:" in database_url or database_url in ("sqlite://", "sqlite:///"):
            kwargs["poolclass"] = StaticPool
        return create_engine(database_url, **kwargs)

    return create_engine(
        database_url,
        pool_pre_ping=True,
        pool_size=config.DB_POOL_SIZE,
        max_overflow=config.DB_MAX_OVERFLOW,
        pool_recycle=config.DB_POOL_RECYCLE,
        pool_timeout=config.DB_POOL_TIMEOUT,
        echo=False,
        connect_args={
            "connect_timeout": 10,
            "application_name": "replivity",
        },
    )


engine = build_engine(config.DATABASE_URL)

if config.is_sqlite:
    logger.info("SQLite engine configured")
else:
    logger.info(
        f"PostgreSQL engine configured: pool_size={config.DB_POOL_SIZE}, "
        f"max_overflow={config.DB_MAX_OVERFLOW}, pool_recycle={config.DB_POOL_RECYCLE}s"
    )

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator:
    """
    Get database session.
    Use as FastAPI dependency: db: Session = Depends(get_db)
    """
    db = SessionLocal()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(bind=None) -> None:
    """Create all tables that do not exist yet"""
    from .base import Base
    from . import models  # noqa: F401  (registers tables on Base.metadata)

    Base.metadata.create_all(bind=bind or engine)
    logger.info("✓ Database tables initialized")


def check_connection() -> bool:
    """Test database connection"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"✗ Database connection test failed: {e}")
        return False

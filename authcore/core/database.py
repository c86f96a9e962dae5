"""Database configuration and session management"""

from functools import lru_cache
from typing import Generator

from sqlalchemy import create_engine, text, inspect
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from authcore.config import Settings, settings
import logging

logger = logging.getLogger(__name__)

# Create base class for models
Base = declarative_base()


def build_engine(config: Settings) -> Engine:
    """
    Create an engine for the configured database

    Pool sizing only applies to server databases; SQLite manages its own pool.
    """
    url = config.get_database_url()
    if url.startswith("sqlite"):
        return create_engine(url, echo=config.DEBUG)
    return create_engine(
        url,
        pool_size=config.DATABASE_POOL_SIZE,
        max_overflow=config.DATABASE_MAX_OVERFLOW,
        pool_timeout=30,
        pool_recycle=3600,
        pool_pre_ping=True,
        echo=config.DEBUG
    )


@lru_cache()
def get_engine() -> Engine:
    return build_engine(settings)


@lru_cache()
def get_session_factory() -> sessionmaker:
    """Session factory bound to the application engine"""
    return sessionmaker(autocommit=False, autoflush=False, bind=get_engine())


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards

    Yields:
        Session: Database session
    """
    db = get_session_factory()()
    try:
        yield db
    finally:
        db.close()


def init_db(engine: Engine = None, config: Settings = None) -> None:
    """
    Initialize database according to configured strategy.

    DB_INIT_MODE:
      - migrate: require alembic_version table (migration-first discipline)
      - create_all: create tables from model metadata (local/test bootstrap)
      - off: skip initialization check
    """
    # Import models so metadata is populated.
    from authcore import models  # noqa: F401

    config = config or settings
    engine = engine or get_engine()
    mode = config.DB_INIT_MODE.lower().strip()
    if mode == "off":
        logger.info("DB initialization check skipped (DB_INIT_MODE=off)")
        return

    if mode == "create_all":
        Base.metadata.create_all(bind=engine)
        logger.warning("Using create_all database initialization (recommended only for local development).")
        return

    if mode == "migrate":
        with engine.connect() as conn:
            if engine.dialect.name == "postgresql":
                version_table_exists = conn.execute(
                    text("SELECT to_regclass('public.alembic_version')")
                ).scalar()
                exists = bool(version_table_exists)
            else:
                exists = "alembic_version" in inspect(conn).get_table_names()
            if config.DB_REQUIRE_HEAD and not exists:
                raise RuntimeError(
                    "Migration table missing. Run Alembic migrations before using the authorization store."
                )
        logger.info("Migration metadata detected.")
        return

    raise RuntimeError(f"Unknown DB_INIT_MODE: {config.DB_INIT_MODE}")

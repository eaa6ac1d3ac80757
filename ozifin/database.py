"""
Database configuration with fail-safe features:
- pool_pre_ping=True
- SSL enforced for Supabase
- Retry on OperationalError (max 2 times)
- SQLite fallback when DATABASE_URL is missing
"""
from sqlalchemy import create_engine, text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import QueuePool, StaticPool
import logging
from typing import Generator
import time

from ozifin.config import settings

logger = logging.getLogger(__name__)

DATABASE_URL = settings.DATABASE_URL

if not DATABASE_URL:
    logger.warning("DATABASE_URL environment variable is not set. Using local SQLite database.")
    DATABASE_URL = "sqlite:///./ozifin.sqlite3"

if DATABASE_URL.startswith("sqlite"):
    # In-memory databases must share one connection or every session sees an empty schema
    in_memory = DATABASE_URL in ("sqlite://", "sqlite:///:memory:")
    engine = create_engine(
        DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool if in_memory else None,
        echo=False,
    )
else:
    # Add SSL mode for Supabase if not present
    if "supabase" in DATABASE_URL and "sslmode" not in DATABASE_URL:
        DATABASE_URL += "?sslmode=require"
        logger.info("Added sslmode=require to DATABASE_URL")

    logger.info("Database connection configured")

    engine = create_engine(
        DATABASE_URL,
        poolclass=QueuePool,
        pool_pre_ping=True,
        pool_size=5,
        max_overflow=10,
        pool_recycle=300,
        pool_timeout=30,
        echo=False,
        connect_args={
            "connect_timeout": 10,
            "keepalives": 1,
            "keepalives_idle": 30,
            "keepalives_interval": 10,
            "keepalives_count": 5,
        }
    )

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False
)

Base = declarative_base()


def get_db() -> Generator:
    """
    Request-scoped database session.
    The connection is pinged first and retried on OperationalError (max 2 retries).
    """
    db = SessionLocal()
    try:
        for attempt in range(3):
            try:
                db.execute(text("SELECT 1"))
                break
            except OperationalError as e:
                db.rollback()
                if attempt == 2:
                    logger.error(f"Database connection failed after 3 attempts: {e}")
                    raise
                logger.warning(f"Database connection attempt {attempt + 1} failed, retrying...")
                time.sleep(1)
        yield db
    finally:
        db.close()


def test_connection() -> tuple[bool, str]:
    """Test database connection with retry"""
    for attempt in range(3):
        try:
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True, "Database connection successful"
        except OperationalError as e:
            if attempt == 2:
                return False, f"Database connection failed: {str(e)}"
            time.sleep(1)
    return False, "Database connection test failed"

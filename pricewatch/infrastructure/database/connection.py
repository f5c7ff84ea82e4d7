"""
Database Connection
"""
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from contextlib import contextmanager
from typing import Iterator, Optional, Dict, Any
import logging

from pricewatch.infrastructure.database.models import Base
from pricewatch.core.config import settings

logger = logging.getLogger(__name__)

class DatabaseManager:
    """Sync database manager shared by the API, the tasks and the engine."""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database.database_url
        self.engine = None
        self.SessionLocal = None
        self._initialize_engine()

    def _engine_options(self) -> Dict[str, Any]:
        if self.database_url.startswith("sqlite"):
            options = {"connect_args": {"check_same_thread": False}}
            # In-memory databases exist per connection
            if self.database_url in ("sqlite://", "sqlite:///:memory:"):
                options["poolclass"] = StaticPool
            return options

        # Server-side statement timeout for catalog queries
        timeout_ms = settings.monitoring.catalog_query_timeout_ms
        return {
            "pool_size": settings.database.pool_size,
            "max_overflow": settings.database.max_overflow,
            "pool_timeout": settings.database.pool_timeout,
            "pool_recycle": settings.database.pool_recycle,
            "pool_pre_ping": True,
            "connect_args": {"options": f"-c statement_timeout={timeout_ms}"},
        }

    def _initialize_engine(self):
        logger.info("Initializing database engine")

        self.engine = create_engine(
            self.database_url,
            echo=settings.debug,
            **self._engine_options()
        )

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            expire_on_commit=False
        )

    def create_tables(self):
        """Create all database tables."""
        try:
            Base.metadata.create_all(self.engine)
            logger.info("Database tables created successfully")
        except Exception as e:
            logger.error(f"Failed to create database tables: {e}")
            raise

    def check_connection(self) -> bool:
        """Check if database connection is healthy."""
        try:
            with self.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
                return True
        except Exception as e:
            logger.error(f"Database connection check failed: {e}")
            return False

    @contextmanager
    def get_session(self) -> Iterator[Session]:
        """Session that commits on success and rolls back on error."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def close(self):
        if self.engine:
            self.engine.dispose()
            logger.info("Database connections closed")

_db_manager: Optional[DatabaseManager] = None

def get_db_manager() -> DatabaseManager:
    """Process-wide database manager, created on first use."""
    global _db_manager
    if _db_manager is None:
        _db_manager = DatabaseManager()
    return _db_manager

def init_db():
    """Initialize database on startup."""
    get_db_manager().create_tables()
    logger.info("Database initialized")

def close_db():
    """Close database on shutdown."""
    if _db_manager is not None:
        _db_manager.close()

__all__ = ['DatabaseManager', 'get_db_manager', 'init_db', 'close_db']

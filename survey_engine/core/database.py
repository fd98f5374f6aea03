import logging
from contextlib import contextmanager
from typing import Generator, Iterator
from sqlalchemy import create_engine
from sqlalchemy.exc import DBAPIError, IntegrityError, TimeoutError as PoolTimeoutError
from sqlalchemy.orm import DeclarativeBase, Session, sessionmaker
from sqlalchemy.pool import StaticPool
from survey_engine.core.config import settings
from survey_engine.core.exceptions import StorageUnavailable

logger = logging.getLogger(__name__)

class Base(DeclarativeBase):
    pass

def _engine_options() -> dict:
    if settings.is_sqlite_memory():
        # in-memory sqlite must share one connection across threads
        return {"connect_args": {"check_same_thread": False}, "poolclass": StaticPool}
    if settings.is_sqlite():
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_size": settings.DATABASE_POOL_SIZE,
        "max_overflow": settings.DATABASE_MAX_OVERFLOW,
        "pool_timeout": settings.DATABASE_POOL_TIMEOUT,
        "pool_pre_ping": True,
    }

engine = create_engine(settings.DATABASE_URL, echo=settings.DATABASE_ECHO, future=True, **_engine_options())
SessionLocal = sessionmaker(bind=engine, autocommit=False, autoflush=False, expire_on_commit=False, future=True)

def get_db() -> Generator[Session, None, None]:
    """Request-scoped session dependency."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()

def init_db() -> None:
    """Create tables if they don't exist. Production deployments migrate instead."""
    from survey_engine.models import orm  # noqa: F401  registers the models
    Base.metadata.create_all(bind=engine)
    logger.info("Database schema ready")

@contextmanager
def storage_guard(operation: str) -> Iterator[None]:
    """Re-raise driver and pool failures as StorageUnavailable."""
    try:
        yield
    except IntegrityError:
        raise
    except (DBAPIError, PoolTimeoutError) as e:
        logger.error(f"Storage failure during {operation}: {e}")
        raise StorageUnavailable(f"Storage unavailable during {operation}") from e

import logging
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy import BigInteger, Integer
from sqlalchemy.orm import DeclarativeBase

from core.config import settings

logger = logging.getLogger(__name__)


# Base class for declarative models
class Base(DeclarativeBase):
    pass


# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer, "sqlite")


def enum_values(enum_cls) -> list[str]:
    """Persist enum values (e.g. "under review") rather than member names."""
    return [member.value for member in enum_cls]


def create_engine(database_url: str, echo: bool = False) -> AsyncEngine:
    """Create the process-wide async engine (connection pool)."""
    return create_async_engine(database_url, echo=echo, pool_pre_ping=True)


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


db_engine = create_engine(settings.database_url, echo=settings.database_echo)

# Create async session maker to be used throughout the application
AsyncSessionLocal = create_session_factory(db_engine)


# Dependency to get DB session
async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session


# Function to initialize the database (create tables)
async def init_db(engine: AsyncEngine = db_engine) -> None:
    # Register every model on the metadata before create_all
    from database.models import (  # noqa: F401
        applications,
        jobs,
        organizations,
        users,
    )

    logger.info("Initializing database schema")
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


# Function to close database connections
async def close_db(engine: AsyncEngine = db_engine) -> None:
    """Close database engine and connections."""
    await engine.dispose()

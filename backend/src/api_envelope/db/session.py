from collections.abc import AsyncGenerator

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from api_envelope.config import settings

# Async engine with connection pooling.
# The engine manages a pool of database connections that are reused across requests.
# Nothing connects until the first query, so importing this module never touches the network.
engine = create_async_engine(
    settings.database_url,
    pool_size=settings.db_pool_size,  # Persistent connections
    max_overflow=settings.db_max_overflow,  # Extra connections under load
    pool_timeout=settings.db_pool_timeout,  # Wait time for available connection
    pool_recycle=settings.db_pool_recycle,  # Max connection age (prevents stale connections)
    pool_pre_ping=settings.db_pool_pre_ping,  # Test connection before checkout
    echo=settings.db_echo,  # SQL logging
    # asyncpg driver options, passed directly to asyncpg.connect()
    connect_args={"command_timeout": settings.db_statement_timeout},  # Kill slow queries
)

# expire_on_commit=False keeps objects usable after commit without re-querying.
async_session = async_sessionmaker(engine, expire_on_commit=False)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency that provides a database session per request.

    Commits on success, rolls back on exception. This is the single place where
    transaction boundaries are managed. SQLAlchemy errors propagate unchanged;
    the fault pipeline translates them into data-layer faults.
    """
    async with async_session() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def shutdown() -> None:
    """Graceful shutdown: close all pooled database connections."""
    await engine.dispose()

"""
Database engine and session management.

One async engine per process; request handlers get a session through the
`get_db` dependency, and the pricing domain services receive that session
explicitly.
"""

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.orm import declarative_base
from pricing_backend.app.core.config import settings

engine = create_async_engine(
    settings.database_url,
    echo=settings.db_echo,
    pool_size=settings.db_pool_size,
    max_overflow=settings.db_max_overflow,
    pool_pre_ping=True,
)

AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autoflush=False,
)

Base = declarative_base()


async def init_models(bind=None) -> None:
    """Create catalog and pricing tables that do not exist yet."""
    # Register every mapped table on Base.metadata
    from pricing_backend.app.models import (  # noqa: F401
        poi, rate, vehicle_type, service, rate_price, client_price
    )

    async with (bind or engine).begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db():
    """
    FastAPI dependency yielding a request-scoped session.
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()

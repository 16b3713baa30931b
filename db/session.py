from fastapi import Request
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession, AsyncEngine
from sqlalchemy.pool import StaticPool
from core.config import Settings


def build_engine(settings: Settings) -> AsyncEngine:
    if settings.DATABASE_URL.startswith("sqlite"):
        if ":memory:" in settings.DATABASE_URL:
            # One shared connection, otherwise every checkout sees an empty database
            return create_async_engine(
                settings.DATABASE_URL,
                echo=settings.DB_ECHO,
                poolclass=StaticPool,
                connect_args={"check_same_thread": False},
            )
        return create_async_engine(settings.DATABASE_URL, echo=settings.DB_ECHO)

    # PostgreSQL driver for async operations is asyncpg
    return create_async_engine(
        settings.DATABASE_URL,
        echo=settings.DB_ECHO,
        pool_pre_ping=True,
        pool_recycle=3600,
        pool_size=20,       # Base connections
        max_overflow=10,    # Burst connections
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


async def init_models(engine: AsyncEngine):
    from models.base import Base
    # Register every table on Base.metadata
    import models.question, models.participant, models.settings  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def get_db(request: Request):
    async with request.app.state.session_factory() as session:
        try:
            yield session
        finally:
            await session.close()

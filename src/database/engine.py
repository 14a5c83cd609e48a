from sqlalchemy import create_engine
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from src.config import settings


def _pool_options(size: int) -> dict:
    return {
        "pool_size": size,
        "max_overflow": settings.database_max_overflow,
        "pool_recycle": settings.database_pool_recycle_seconds,
        "pool_pre_ping": True,
    }


# Request handlers
engine = create_async_engine(
    settings.database_url,
    echo=settings.database_echo,
    **_pool_options(settings.database_pool_size),
)
async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

# Outbox worker and migrations run synchronously; they need a handful of connections
sync_engine = create_engine(settings.database_url_sync, **_pool_options(2))

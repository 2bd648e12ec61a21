"""Database session configuration with connection pooling."""

import os

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from authguard.core.config import settings

# Configurable pool settings via environment variables
pool_size = int(os.getenv("DATABASE_POOL_SIZE", "20"))
max_overflow = int(os.getenv("DATABASE_MAX_OVERFLOW", "40"))

# Waiting for a pooled connection counts against the store timeout
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_size=pool_size,
    max_overflow=max_overflow,
    pool_timeout=settings.STORE_TIMEOUT_SECONDS,
    pool_recycle=3600,  # Recycle connections after 1 hour
    pool_pre_ping=True,
)

async_session_maker = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


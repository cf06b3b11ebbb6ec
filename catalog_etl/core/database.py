"""
Database configuration: lazily created async engine and session scopes
"""

from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

from catalog_etl.core.config import settings
from catalog_etl.core.logging import log


class DatabaseConfig:
    """Database configuration with environment-based settings"""

    def __init__(self, database_url: Optional[str] = None):
        self.database_url = database_url or settings.database_url
        self.pool_size = settings.db_pool_size
        self.max_overflow = settings.db_max_overflow
        self.pool_pre_ping = settings.db_pool_pre_ping
        self.echo = settings.db_echo

        # Advanced pool settings
        self.pool_recycle = 3600  # Recycle connections after 1 hour
        self.pool_timeout = 30    # Pool timeout in seconds

    @property
    def async_url(self) -> str:
        """Convert sync URL to async URL"""
        url = str(self.database_url)
        if url.startswith("postgresql://"):
            return url.replace("postgresql://", "postgresql+asyncpg://", 1)
        if url.startswith("sqlite:///"):
            return url.replace("sqlite:///", "sqlite+aiosqlite:///", 1)
        return url

    @property
    def is_sqlite(self) -> bool:
        return self.async_url.startswith("sqlite")

    @property
    def async_engine_kwargs(self) -> dict:
        """Get async engine configuration"""
        if self.is_sqlite:
            return {"echo": self.echo}
        return {
            "echo": self.echo,
            "pool_pre_ping": self.pool_pre_ping,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_recycle": self.pool_recycle,
            "pool_timeout": self.pool_timeout,
            "connect_args": {
                "server_settings": {
                    "application_name": settings.PROJECT_NAME,
                    "jit": "off",
                }
            },
        }


class DatabaseSessionManager:
    """Manages engine and session lifecycle with proper error handling"""

    def __init__(self, database_url: Optional[str] = None, **engine_kwargs):
        self.config = DatabaseConfig(database_url)
        self._engine_kwargs = engine_kwargs
        self._engine: Optional[AsyncEngine] = None
        self._sessionmaker: Optional[async_sessionmaker] = None

    def _ensure_engine(self):
        if self._engine is None:
            kwargs = self.config.async_engine_kwargs
            kwargs.update(self._engine_kwargs)
            self._engine = create_async_engine(self.config.async_url, **kwargs)
            self._sessionmaker = async_sessionmaker(
                bind=self._engine,
                class_=AsyncSession,
                autoflush=False,
                expire_on_commit=False,
            )

    @property
    def engine(self) -> AsyncEngine:
        self._ensure_engine()
        return self._engine

    @property
    def sessionmaker(self) -> async_sessionmaker:
        self._ensure_engine()
        return self._sessionmaker

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    async def init(self):
        """Initialize the database connection"""
        try:
            async with self.engine.begin() as conn:
                await conn.execute(text("SELECT 1"))
                log.info("Database connection established successfully")
        except Exception as e:
            log.error(f"Failed to connect to database: {e}")
            raise

    async def close(self):
        """Close database connection"""
        if self._engine is None:
            return

        await self._engine.dispose()
        self._engine = None
        self._sessionmaker = None
        log.info("Database connection closed")

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide a session that commits on success and rolls back on error"""
        async with self.sessionmaker() as session:
            try:
                yield session
                await session.commit()
            except Exception as e:
                await session.rollback()
                log.error(f"Database session error: {e}")
                raise

    @asynccontextmanager
    async def transaction(self) -> AsyncGenerator[AsyncSession, None]:
        """Provide an explicit all-or-nothing transaction scope"""
        async with self.sessionmaker() as session:
            async with session.begin():
                yield session


# Global session manager instance
db_manager = DatabaseSessionManager()


async def get_async_session() -> AsyncGenerator[AsyncSession, None]:
    """Async session dependency with proper lifecycle management"""
    async with db_manager.session() as session:
        yield session


async def init_db(manager: Optional[DatabaseSessionManager] = None):
    """Create tables; the catalog schema is small enough to skip migrations"""
    # Register table metadata
    import catalog_etl.models  # noqa: F401

    manager = manager or db_manager
    async with manager.engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
        log.info("Database tables created")


async def check_database_health(session: AsyncSession) -> bool:
    """Run a trivial query on the given session"""
    try:
        result = await session.execute(text("SELECT 1"))
        return result.scalar() == 1
    except Exception as e:
        log.error(f"Database health check failed: {e}")
        return False

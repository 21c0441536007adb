"""
Database service for PostgreSQL integration.
Stores the Cloudflare credential record and the local mirror of
email routing rules created through the dashboard.
"""
import asyncio
import logging
from contextlib import asynccontextmanager
from typing import Optional

import asyncpg
from asyncpg import Pool

from shared.config import get_shared_settings as get_settings

logger = logging.getLogger(__name__)


# SQL schema for creating tables
SCHEMA_SQL = """
-- Cloudflare credentials (single row, enforced by the singleton column)
CREATE TABLE IF NOT EXISTS cloudflare_config (
    id SERIAL PRIMARY KEY,
    singleton BOOLEAN NOT NULL DEFAULT TRUE UNIQUE CHECK (singleton),
    api_token TEXT NOT NULL,
    account_id TEXT NOT NULL,
    d1_database TEXT NOT NULL,
    worker_api TEXT NOT NULL,
    kv_storage TEXT NOT NULL,
    destination_emails JSONB NOT NULL DEFAULT '[]'::jsonb,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

-- Local mirror of routing rules created on Cloudflare
CREATE TABLE IF NOT EXISTS email_routing (
    id UUID PRIMARY KEY DEFAULT gen_random_uuid(),
    zone_id VARCHAR(64) NOT NULL,
    zone_name VARCHAR(255) NOT NULL,
    alias_part VARCHAR(255) NOT NULL,
    full_email VARCHAR(512) NOT NULL,
    destination VARCHAR(320) NOT NULL,
    rule_id VARCHAR(64) NOT NULL,
    is_active BOOLEAN NOT NULL DEFAULT TRUE,
    created_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
    updated_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW()
);

CREATE INDEX IF NOT EXISTS idx_email_routing_created_at ON email_routing(created_at DESC);
CREATE INDEX IF NOT EXISTS idx_email_routing_zone_id ON email_routing(zone_id);
"""


class DatabaseService:
    """
    Async database service for PostgreSQL operations.

    Constructed explicitly by the application lifespan and handed to the
    stores; there is no module-level instance.
    """

    def __init__(self, database_url: Optional[str] = None):
        self._database_url = database_url
        self._pool: Optional[Pool] = None
        self._lock = asyncio.Lock()

    @property
    def is_connected(self) -> bool:
        """Check if database is connected."""
        return self._pool is not None

    async def connect(self, max_retries: int = 5, retry_delay: float = 2.0) -> bool:
        """
        Create the connection pool and apply the schema.

        Retries with exponential backoff. Returns True on success, False when
        no DATABASE_URL is configured or every attempt failed.
        """
        settings = get_settings()
        database_url = self._database_url or settings.database_url
        if not database_url:
            logger.warning("DATABASE_URL not configured, database features disabled")
            return False

        async with self._lock:
            if self._pool is not None:
                return True

            delay = retry_delay
            for attempt in range(1, max_retries + 1):
                try:
                    logger.debug("Connecting to PostgreSQL (attempt %d/%d)...", attempt, max_retries)
                    self._pool = await asyncpg.create_pool(
                        dsn=database_url,
                        min_size=settings.db_pool_min_size,
                        max_size=settings.db_pool_max_size,
                        command_timeout=30,
                    )
                    await self._init_schema()
                    logger.info("✅ Database connection established")
                    return True

                except (OSError, asyncpg.PostgresError) as e:
                    if self._pool is not None:
                        await self._pool.close()
                    self._pool = None
                    if attempt < max_retries:
                        logger.warning(
                            "⚠️ Database connection attempt %d/%d failed: %s. Retrying in %.0fs...",
                            attempt, max_retries, e, delay,
                        )
                        await asyncio.sleep(delay)
                        delay = min(delay * 2, 30)
                    else:
                        logger.error("❌ Failed to connect to database after %d attempts: %s", max_retries, e)

        return False

    async def disconnect(self) -> None:
        """Close database connection pool."""
        async with self._lock:
            if self._pool is not None:
                await self._pool.close()
                self._pool = None
                logger.info("🗄️ Database disconnected")

    async def _init_schema(self) -> None:
        """Create tables if they do not exist."""
        async with self._pool.acquire() as conn:
            await conn.execute(SCHEMA_SQL)
            logger.debug("Database schema initialized")

    @asynccontextmanager
    async def acquire(self):
        """Acquire a connection from the pool."""
        if self._pool is None:
            raise RuntimeError("Database not connected")

        async with self._pool.acquire() as conn:
            yield conn

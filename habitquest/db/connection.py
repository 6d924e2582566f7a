"""
Async PostgreSQL access for the completion ledger, XP and challenges

Every query function borrows a connection from the shared pool for the
duration of one statement (or one commit); nothing holds a connection across
engine steps.
"""
import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator, Optional
import psycopg
from psycopg.rows import dict_row
from psycopg_pool import AsyncConnectionPool
from habitquest.config import DATABASE_URL, DB_POOL_MIN_SIZE, DB_POOL_MAX_SIZE

logger = logging.getLogger(__name__)


class Database:
    """Owns the AsyncConnectionPool used by habitquest.db.queries"""

    def __init__(
        self,
        connection_string: str = DATABASE_URL,
        min_size: int = DB_POOL_MIN_SIZE,
        max_size: int = DB_POOL_MAX_SIZE
    ):
        self.connection_string = connection_string
        self.min_size = min_size
        self.max_size = max_size
        self._pool: Optional[AsyncConnectionPool] = None

    async def init_pool(self) -> None:
        """Open the pool; called once from habitquest.main.startup()"""
        if self._pool:
            logger.warning("Habit store pool already open, ignoring init_pool()")
            return

        logger.info(f"Opening habit store pool (min={self.min_size}, max={self.max_size})")
        self._pool = AsyncConnectionPool(
            self.connection_string,
            min_size=self.min_size,
            max_size=self.max_size,
            open=False
        )
        await self._pool.open()

    async def close_pool(self) -> None:
        """Close the pool so a later init_pool() starts fresh"""
        if self._pool:
            logger.info("Closing habit store pool")
            await self._pool.close()
            self._pool = None

    @asynccontextmanager
    async def connection(self) -> AsyncGenerator[psycopg.AsyncConnection, None]:
        """
        Borrow a connection whose cursors return dict rows

        Raises:
            RuntimeError: init_pool() has not been awaited
        """
        if not self._pool:
            raise RuntimeError("Habit store pool not initialized; await db.init_pool() first")

        async with self._pool.connection() as conn:
            conn.row_factory = dict_row
            yield conn


# Shared instance used by every query module
db = Database()

"""Connection helper shared by the local stores."""
import json
import logging
from contextlib import asynccontextmanager
from typing import Any, List

import asyncpg

from shared.database import DatabaseService
from web.backend.core.errors import StorageError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def db_connection(db: DatabaseService, action: str):
    """Acquire a pooled connection, turning driver failures into StorageError.

    ``action`` is a short description used in the log line and the error
    message (e.g. ``"save config"``).
    """
    if db is None or not db.is_connected:
        raise StorageError("Database not available")
    try:
        async with db.acquire() as conn:
            yield conn
    except (asyncpg.PostgresError, asyncpg.InterfaceError, OSError) as e:
        logger.error("Database error during %s: %s", action, e)
        raise StorageError(f"Failed to {action}") from e


def parse_json_list(value: Any) -> List[Any]:
    """Decode a JSONB column that asyncpg hands back as text."""
    if value is None:
        return []
    if isinstance(value, str):
        value = json.loads(value)
    return list(value)

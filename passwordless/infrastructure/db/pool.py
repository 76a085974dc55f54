from __future__ import annotations

from typing import Optional

from psycopg.conninfo import conninfo_to_dict, make_conninfo
from psycopg_pool import AsyncConnectionPool

from passwordless.settings import Settings, get_settings

_pool: Optional[AsyncConnectionPool] = None


def session_conninfo(settings: Settings) -> str:
    """database_url with db_connect_timeout_seconds, unless the URL sets its own."""
    if "connect_timeout" in conninfo_to_dict(settings.database_url):
        return settings.database_url
    return make_conninfo(
        settings.database_url, connect_timeout=settings.db_connect_timeout_seconds
    )


def get_pool(settings: Optional[Settings] = None) -> AsyncConnectionPool:
    """
    The pool the session store borrows connections from, sized by the
    db_pool_* settings. Created closed on first call; open it at startup
    with open_pool() and release it at shutdown with close_pool().
    """
    global _pool
    if _pool is None:
        settings = settings or get_settings()
        _pool = AsyncConnectionPool(
            session_conninfo(settings),
            min_size=settings.db_pool_min_size,
            max_size=settings.db_pool_max_size,
            timeout=settings.db_pool_timeout_seconds,
            name="passwordless",
            open=False,
        )
    return _pool


async def open_pool(settings: Optional[Settings] = None) -> AsyncConnectionPool:
    pool = get_pool(settings)
    await pool.open()
    return pool


async def close_pool() -> None:
    global _pool
    if _pool is not None:
        await _pool.close()
        _pool = None

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from typing import Optional

from psycopg_pool import AsyncConnectionPool

from passwordless.domain.entities import Session
from passwordless.domain.errors import (
    DBConnectionNotValid,
    StoreError,
    TableNameNotValid,
    TokenExpired,
    TokenNotFound,
)
from passwordless.domain.ports.token_store import TokenStorePort
from passwordless.infrastructure.security.token_hash import TokenHasher

logger = logging.getLogger(__name__)

TABLE_NAME = "session"

# ISO-8601 UTC text; Postgres (and SQLite) parse it natively.
DATE_FORMAT = "%Y-%m-%dT%H:%M:%SZ"

_TABLE_NAME_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]{0,62}$")


def format_timestamp(when: datetime) -> str:
    return when.astimezone(timezone.utc).strftime(DATE_FORMAT)


def parse_timestamp(value: str) -> datetime:
    return datetime.strptime(value, DATE_FORMAT).replace(tzinfo=timezone.utc)


def expiry_for(now: datetime, ttl: timedelta) -> datetime:
    """
    now + ttl, rounded up to the whole second DATE_FORMAT keeps, so a token
    never lives shorter than its ttl. A ttl of zero or less is not rounded:
    such tokens are already expired.
    """
    expires = now + ttl
    if ttl > timedelta(0) and expires.microsecond:
        expires = expires.replace(microsecond=0) + timedelta(seconds=1)
    return expires


class PgSessionStore(TokenStorePort):
    """
    Postgres implementation of TokenStorePort.

    One row per uid holding the bcrypt hash of the current token. Each call
    borrows its own connection from the pool and writes with a single
    statement, so a cancelled call never leaves a half-written row. Consuming
    a token deletes on (uid, token_hash), which makes it single-use under
    concurrent verification.
    """

    def __init__(
        self,
        pool: AsyncConnectionPool,
        table_name: str = TABLE_NAME,
        *,
        bcrypt_rounds: int | None = None,
    ) -> None:
        if pool is None:
            raise DBConnectionNotValid()
        if not table_name:
            table_name = TABLE_NAME
        if not _TABLE_NAME_RE.match(table_name):
            raise TableNameNotValid(f"table name is not valid: {table_name!r}")
        self._pool = pool
        self.table_name = table_name
        self._hasher = TokenHasher(bcrypt_rounds)

    async def create_table(self) -> None:
        sql = f"""
        CREATE TABLE IF NOT EXISTS {self.table_name} (
            uid        text PRIMARY KEY,
            token_hash text NOT NULL,
            expires    text NOT NULL,
            created    text NOT NULL
        )
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql)

    async def store(self, token: str, uid: str, ttl: timedelta) -> None:
        # bcrypt blocks; run it in a worker thread
        token_hash = await asyncio.to_thread(self._hasher.hash, token)
        now = datetime.now(timezone.utc)

        sql = f"""
        INSERT INTO {self.table_name} (uid, token_hash, expires, created)
        VALUES (%s, %s, %s, %s)
        ON CONFLICT (uid) DO UPDATE
            SET token_hash = EXCLUDED.token_hash,
                expires = EXCLUDED.expires
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(
                    sql,
                    (
                        uid,
                        token_hash,
                        format_timestamp(expiry_for(now, ttl)),
                        format_timestamp(now),
                    ),
                )
        logger.debug("token stored", extra={"uid": uid, "ttl_s": ttl.total_seconds()})

    async def exists(self, uid: str) -> datetime:
        session = await self._get_session(uid)
        if session.is_expired(datetime.now(timezone.utc)):
            raise TokenExpired(session.expires)
        return session.expires

    async def verify(self, token: str, uid: str) -> bool:
        session = await self._get_session(uid)

        # expired rows are rejected before any hash comparison
        if session.is_expired(datetime.now(timezone.utc)):
            raise TokenExpired(session.expires)

        try:
            return await asyncio.to_thread(
                self._hasher.verify, token, session.token_hash
            )
        except ValueError as e:
            raise StoreError(f"stored token hash for {uid!r} is not valid") from e

    async def delete(self, uid: str, token: Optional[str] = None) -> bool:
        if token is None:
            sql = f"DELETE FROM {self.table_name} WHERE uid = %s"
            params: tuple = (uid,)
        else:
            token_hash = await self._matching_hash(uid, token)
            if token_hash is None:
                return False
            # the row goes only if it still holds the hash we just matched
            sql = f"DELETE FROM {self.table_name} WHERE uid = %s AND token_hash = %s"
            params = (uid, token_hash)

        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, params)
                removed = cur.rowcount > 0

        logger.debug("token deleted", extra={"uid": uid, "removed": removed})
        return removed

    async def _matching_hash(self, uid: str, token: str) -> Optional[str]:
        try:
            session = await self._get_session(uid)
        except TokenNotFound:
            return None
        if not await asyncio.to_thread(self._hasher.verify, token, session.token_hash):
            return None
        return session.token_hash

    async def _get_session(self, uid: str) -> Session:
        sql = f"""
        SELECT token_hash, expires, created
        FROM {self.table_name}
        WHERE uid = %s
        """
        async with self._pool.connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(sql, (uid,))
                row = await cur.fetchone()

        if not row:
            raise TokenNotFound()

        token_hash, expires, created = row
        try:
            return Session(
                uid=uid,
                token_hash=str(token_hash),
                expires=parse_timestamp(expires),
                created=parse_timestamp(created),
            )
        except (TypeError, ValueError) as e:
            raise StoreError(f"session row for {uid!r} has a bad timestamp") from e

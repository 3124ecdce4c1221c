"""Postgres-backed implementation of the account store contract."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime
from typing import AsyncIterator

import psycopg
from psycopg import AsyncConnection, errors, sql
from psycopg.rows import tuple_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

from .config import Settings
from .domain.contracts import AccountRecord
from .domain.errors import ConstraintViolation, StorageError

logger = logging.getLogger(__name__)

DEFAULT_TABLE_NAME = "users"
DEFAULT_TIMEOUT_SECONDS = 5.0

_COLUMN_NAMES = (
    "id",
    "email",
    "password_hash",
    "created_at",
    "active",
    "email_verified",
    "password_reset_token",
    "password_reset_token_expiration",
    "email_verification_token",
    "email_verification_token_expiration",
)
_COLUMNS = sql.SQL(", ").join(sql.Identifier(name) for name in _COLUMN_NAMES)

_CREATE_TABLE = """
CREATE TABLE IF NOT EXISTS {table} (
    id BIGSERIAL PRIMARY KEY,
    email VARCHAR(320) NOT NULL UNIQUE,
    password_hash VARCHAR(60) NOT NULL,
    created_at TIMESTAMPTZ NOT NULL DEFAULT NOW(),
    active BOOLEAN NOT NULL DEFAULT TRUE,
    email_verified BOOLEAN NOT NULL DEFAULT FALSE,
    password_reset_token VARCHAR(36),
    password_reset_token_expiration TIMESTAMPTZ,
    email_verification_token VARCHAR(36),
    email_verification_token_expiration TIMESTAMPTZ
)
"""


def create_pool(settings: Settings) -> AsyncConnectionPool:
    """Build an unopened pool whose connections carry a statement timeout."""
    timeout_ms = int(settings.store_timeout_seconds * 1000)
    return AsyncConnectionPool(
        settings.database_url,
        min_size=settings.pool_min_size,
        max_size=settings.pool_max_size,
        timeout=settings.store_timeout_seconds,
        kwargs={"options": f"-c statement_timeout={timeout_ms}"},
        open=False,
    )


class AccountRepository:
    """Account persistence on a single Postgres table."""

    def __init__(
        self,
        pool: AsyncConnectionPool,
        *,
        table_name: str = DEFAULT_TABLE_NAME,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
    ) -> None:
        """Store the connection pool used for all database interactions."""
        self._pool = pool
        self._table_name = table_name
        self._table = sql.Identifier(table_name)
        self._timeout = timeout

    async def open(self) -> None:
        if self._pool.closed:
            await self._pool.open(wait=True, timeout=self._timeout)

    async def close(self) -> None:
        await self._pool.close()

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[AsyncConnection]:
        """Borrow a pooled connection, translating driver failures to domain errors."""
        try:
            async with self._pool.connection(timeout=self._timeout) as conn:
                yield conn
        except errors.UniqueViolation as exc:
            raise ConstraintViolation(str(exc)) from exc
        except PoolTimeout as exc:
            raise StorageError(f"timed out waiting for a database connection: {exc}") from exc
        except psycopg.Error as exc:
            raise StorageError(str(exc)) from exc

    async def _execute(self, query: sql.Composable, params: tuple | None = None) -> int:
        """Run a write statement, commit, and return the affected row count."""
        async with self._connection() as conn:
            async with conn.cursor() as cur:
                await cur.execute(query, params)
                rowcount = cur.rowcount
            await conn.commit()
        return rowcount

    async def _fetch_scalar(self, query: sql.Composable, params: tuple) -> object | None:
        async with self._connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query, params)
                row = await cur.fetchone()
        return row[0] if row else None

    def _map_record(self, row: tuple) -> AccountRecord:
        """Convert a raw database tuple into an :class:`AccountRecord`."""
        return AccountRecord(
            account_id=str(row[0]),
            email=row[1],
            password_hash=row[2],
            created_at=row[3],
            active=row[4],
            email_verified=row[5],
            password_reset_token=row[6],
            password_reset_token_expiration=row[7],
            email_verification_token=row[8],
            email_verification_token_expiration=row[9],
        )

    async def ensure_schema(self) -> None:
        """Create the account table when it does not exist yet."""
        await self._execute(sql.SQL(_CREATE_TABLE).format(table=self._table))
        logger.debug("ensured account table %s", self._table_name)

    async def insert(self, email: str, password_hash: str) -> AccountRecord:
        query = sql.SQL(
            "INSERT INTO {table} (email, password_hash) VALUES (%s, %s) RETURNING {columns}"
        ).format(table=self._table, columns=_COLUMNS)
        async with self._connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query, (email, password_hash))
                row = await cur.fetchone()
            await conn.commit()
        return self._map_record(row)

    async def find_by_email(self, email: str) -> AccountRecord | None:
        query = sql.SQL("SELECT {columns} FROM {table} WHERE email = %s").format(
            table=self._table, columns=_COLUMNS
        )
        async with self._connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query, (email,))
                row = await cur.fetchone()
        if not row:
            return None
        return self._map_record(row)

    async def list_all(self) -> list[AccountRecord]:
        query = sql.SQL("SELECT {columns} FROM {table} ORDER BY id").format(
            table=self._table, columns=_COLUMNS
        )
        async with self._connection() as conn:
            async with conn.cursor(row_factory=tuple_row) as cur:
                await cur.execute(query)
                rows = await cur.fetchall()
        return [self._map_record(row) for row in rows]

    async def update_email(self, old_email: str, new_email: str) -> None:
        query = sql.SQL("UPDATE {table} SET email = %s WHERE email = %s").format(table=self._table)
        await self._execute(query, (new_email, old_email))

    async def update_password_hash(self, email: str, password_hash: str) -> None:
        query = sql.SQL("UPDATE {table} SET password_hash = %s WHERE email = %s").format(
            table=self._table
        )
        await self._execute(query, (password_hash, email))

    async def delete(self, email: str) -> None:
        query = sql.SQL("DELETE FROM {table} WHERE email = %s").format(table=self._table)
        await self._execute(query, (email,))

    async def set_password_reset_token(self, email: str, token: str, expiration: datetime) -> None:
        query = sql.SQL(
            """
            UPDATE {table}
            SET password_reset_token = %s,
                password_reset_token_expiration = %s
            WHERE email = %s
            """
        ).format(table=self._table)
        await self._execute(query, (token, expiration, email))

    async def get_password_reset_token(self, email: str) -> str | None:
        query = sql.SQL("SELECT password_reset_token FROM {table} WHERE email = %s").format(
            table=self._table
        )
        token = await self._fetch_scalar(query, (email,))
        return str(token) if token is not None else None

    async def set_email_verification_token(
        self, email: str, token: str, expiration: datetime
    ) -> None:
        query = sql.SQL(
            """
            UPDATE {table}
            SET email_verification_token = %s,
                email_verification_token_expiration = %s
            WHERE email = %s
            """
        ).format(table=self._table)
        await self._execute(query, (token, expiration, email))

    async def get_email_verification_token(self, email: str) -> str | None:
        query = sql.SQL("SELECT email_verification_token FROM {table} WHERE email = %s").format(
            table=self._table
        )
        token = await self._fetch_scalar(query, (email,))
        return str(token) if token is not None else None

    async def clear_password_reset_and_set_password(
        self, email: str, password_hash: str, *, expected_token: str
    ) -> bool:
        query = sql.SQL(
            """
            UPDATE {table}
            SET password_reset_token = NULL,
                password_reset_token_expiration = NULL,
                password_hash = %s
            WHERE email = %s AND password_reset_token = %s
            """
        ).format(table=self._table)
        return await self._execute(query, (password_hash, email, expected_token)) == 1

    async def clear_email_verification_and_mark_verified(
        self, email: str, *, expected_token: str
    ) -> bool:
        query = sql.SQL(
            """
            UPDATE {table}
            SET email_verification_token = NULL,
                email_verification_token_expiration = NULL,
                email_verified = TRUE
            WHERE email = %s AND email_verification_token = %s
            """
        ).format(table=self._table)
        return await self._execute(query, (email, expected_token)) == 1

    async def set_active(self, email: str, active: bool) -> None:
        query = sql.SQL("UPDATE {table} SET active = %s WHERE email = %s").format(table=self._table)
        await self._execute(query, (active, email))

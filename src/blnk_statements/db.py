"""Read access to Blnk's transaction table in Postgres."""

import asyncio
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import datetime
from typing import Any

import psycopg2
import structlog
from psycopg2 import extras, pool

from blnk_statements.config import get_settings
from blnk_statements.models import TransactionRecord

logger = structlog.get_logger(__name__)

TRANSACTIONS_QUERY = """
    SELECT
        effective_date,
        reference,
        description,
        source,
        destination,
        amount,
        currency,
        precision
    FROM blnk.transactions
    WHERE status = 'APPLIED'
        AND currency = %(currency)s
        AND (source = %(balance_id)s OR destination = %(balance_id)s)
        AND effective_date >= %(start)s
        AND effective_date < %(end)s
    ORDER BY effective_date ASC
"""


class TransactionStoreError(Exception):
    """The transaction store could not serve a query."""

    pass


class TransactionStore:
    """Queries applied transactions through a process-wide connection pool.

    The pool is created lazily on first use and lives until `close()`.
    Connections are borrowed per query and always handed back.
    """

    def __init__(
        self,
        dsn: str | None = None,
        min_connections: int | None = None,
        max_connections: int | None = None,
        connection_pool: pool.AbstractConnectionPool | None = None,
    ):
        settings = get_settings()
        if dsn is None and settings.blnk_db_url is not None:
            dsn = settings.blnk_db_url.get_secret_value()
        self._dsn = dsn
        self._min = min_connections if min_connections is not None else settings.db_pool_min
        self._max = max_connections if max_connections is not None else settings.db_pool_max
        self._pool = connection_pool
        self._logger = logger.bind(component="transaction_store")

    def _get_pool(self) -> pool.AbstractConnectionPool:
        if self._pool is None:
            if not self._dsn:
                raise TransactionStoreError("BLNK_DB_URL is not configured")
            self._pool = pool.ThreadedConnectionPool(self._min, self._max, dsn=self._dsn)
            self._logger.info("pool_opened", min=self._min, max=self._max)
        return self._pool

    @contextmanager
    def connection(self) -> Iterator[Any]:
        """Borrow a pooled connection for the duration of the block."""
        connection_pool = self._get_pool()
        conn = connection_pool.getconn()
        try:
            yield conn
        finally:
            # Read-only queries; roll back so the connection is returned idle
            try:
                conn.rollback()
            finally:
                connection_pool.putconn(conn)

    def _query_sync(
        self, balance_id: str, currency: str, start: datetime, end: datetime
    ) -> list[dict[str, Any]]:
        with self.connection() as conn:
            with conn.cursor(cursor_factory=extras.RealDictCursor) as cursor:
                cursor.execute(
                    TRANSACTIONS_QUERY,
                    {"balance_id": balance_id, "currency": currency, "start": start, "end": end},
                )
                return [dict(row) for row in cursor.fetchall()]

    async def query(
        self, balance_id: str, currency: str, start: datetime, end: datetime
    ) -> list[TransactionRecord]:
        """Return applied transactions touching `balance_id` in `[start, end)`.

        Rows come back in ascending effective date; ties keep the order the
        database returned them in.
        """
        try:
            rows = await asyncio.to_thread(self._query_sync, balance_id, currency, start, end)
        except psycopg2.Error as e:
            raise TransactionStoreError(f"Transaction query failed: {e}") from e

        return [TransactionRecord.model_validate(row) for row in rows]

    def close(self) -> None:
        """Close every pooled connection."""
        if self._pool is not None and not self._pool.closed:
            self._pool.closeall()
            self._logger.info("pool_closed")
        self._pool = None

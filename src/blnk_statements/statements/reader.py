"""Transaction log access for statements."""

from datetime import datetime
from typing import Protocol

import structlog
from pydantic import ValidationError

from blnk_statements.db import TransactionStoreError
from blnk_statements.errors import NoTransactionsInPeriod, TransactionQueryFailed
from blnk_statements.models import TransactionRecord

logger = structlog.get_logger(__name__)


class TransactionStoreProtocol(Protocol):
    async def query(
        self, balance_id: str, currency: str, start: datetime, end: datetime
    ) -> list[TransactionRecord]: ...


class TransactionLogReader:
    """Fetches the ordered applied transactions touching a balance."""

    def __init__(self, store: TransactionStoreProtocol):
        self._store = store
        self._logger = logger.bind(component="transaction_log_reader")

    async def fetch(
        self,
        balance_id: str,
        currency: str,
        period_start: datetime,
        period_end: datetime,
    ) -> list[TransactionRecord]:
        """Return transactions in `[period_start, period_end)`, oldest first.

        Raises:
            NoTransactionsInPeriod: The query succeeded but matched nothing.
            TransactionQueryFailed: The store failed or returned a bad row.
        """
        try:
            transactions = await self._store.query(balance_id, currency, period_start, period_end)
        except TransactionStoreError as e:
            raise TransactionQueryFailed(str(e)) from e
        except ValidationError as e:
            raise TransactionQueryFailed(
                "Transaction row has an unexpected shape",
                details=e.errors(include_url=False),
            ) from e

        if not transactions:
            raise NoTransactionsInPeriod(
                balance_id, period_start.isoformat(), period_end.isoformat()
            )

        self._logger.info(
            "transactions_fetched",
            balance_id=balance_id,
            currency=currency,
            count=len(transactions),
        )
        return list(transactions)

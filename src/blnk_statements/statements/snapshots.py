"""Point-in-time balance snapshots.

Opening and closing figures come from the ledger's own view of the balance
at each instant, not from the transaction rows. Transactions posted with a
back-dated effective date are therefore already reflected in the snapshot.
"""

from dataclasses import dataclass

import structlog

from blnk_statements.clients.blnk_api import BlnkAPIClient, BlnkAPIError
from blnk_statements.errors import InconsistentSnapshots, SnapshotUnavailable
from blnk_statements.models import BalanceSnapshot

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PeriodSnapshots:
    start: BalanceSnapshot
    end: BalanceSnapshot


class SnapshotResolver:
    """Resolves `BalanceSnapshot` values through the Blnk API."""

    def __init__(self, client: BlnkAPIClient):
        self._client = client
        self._logger = logger.bind(component="snapshot_resolver")

    async def at(self, balance_id: str, timestamp: str) -> BalanceSnapshot:
        """Fetch the balance state as of `timestamp`.

        Raises:
            SnapshotUnavailable: On any transport, HTTP or payload failure.
        """
        try:
            snapshot = await self._client.balance_at(balance_id, timestamp)
        except BlnkAPIError as e:
            raise SnapshotUnavailable(
                balance_id,
                timestamp,
                str(e),
                status_code=e.status_code,
                details=e.details,
            ) from e

        if snapshot.balance_id != balance_id:
            raise SnapshotUnavailable(
                balance_id,
                timestamp,
                f"ledger returned balance {snapshot.balance_id}",
            )

        self._logger.info(
            "snapshot_fetched",
            balance_id=balance_id,
            timestamp=timestamp,
            balance=str(snapshot.balance),
        )
        return snapshot

    async def period(self, balance_id: str, start: str, end: str) -> PeriodSnapshots:
        """Fetch the opening and closing snapshots for a period."""
        opening = await self.at(balance_id, start)
        closing = await self.at(balance_id, end)

        # Cumulative counters only ever grow
        if closing.credit_balance < opening.credit_balance:
            raise InconsistentSnapshots(
                f"credit_balance for {balance_id} decreased from "
                f"{opening.credit_balance} to {closing.credit_balance}"
            )
        if closing.debit_balance < opening.debit_balance:
            raise InconsistentSnapshots(
                f"debit_balance for {balance_id} decreased from "
                f"{opening.debit_balance} to {closing.debit_balance}"
            )

        return PeriodSnapshots(start=opening, end=closing)

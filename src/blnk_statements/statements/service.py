"""Statement pipeline: fetch, reconcile, assemble, export."""

import asyncio
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path

import structlog

from blnk_statements.clients.blnk_api import BlnkAPIClient
from blnk_statements.db import TransactionStore
from blnk_statements.errors import ConfigurationError, StatementAborted
from blnk_statements.exporters import ExportFormat, export_statement
from blnk_statements.models import Period, Statement
from blnk_statements.statements.assembler import assemble
from blnk_statements.statements.identity import CounterpartyResolver
from blnk_statements.statements.reader import TransactionLogReader, TransactionStoreProtocol
from blnk_statements.statements.reconciler import Reconciler
from blnk_statements.statements.snapshots import SnapshotResolver

logger = structlog.get_logger(__name__)

DEFAULT_CURRENCY = "USD"


def _parse_timestamp(name: str, value: str) -> datetime:
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError as e:
        raise ConfigurationError(f"{name} is not an ISO-8601 timestamp: {value!r}") from e
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


@dataclass(frozen=True)
class StatementRequest:
    """A validated statement request, keyed by balance and period."""

    balance_id: str
    period_start: str
    period_end: str
    start: datetime
    end: datetime
    currency: str = DEFAULT_CURRENCY
    export_format: ExportFormat = ExportFormat.CSV
    output_dir: str = "output"

    @classmethod
    def build(
        cls,
        balance_id: str | None,
        period_start: str | None,
        period_end: str | None,
        currency: str | None = None,
        export_format: str | ExportFormat | None = None,
        output_dir: str | None = None,
    ) -> "StatementRequest":
        """Validate raw inputs. Raises ConfigurationError on bad input."""
        balance_id = (balance_id or "").strip()
        period_start = (period_start or "").strip()
        period_end = (period_end or "").strip()
        if not balance_id:
            raise ConfigurationError("STATEMENT_BALANCE_ID is required")
        if not period_start:
            raise ConfigurationError("STATEMENT_PERIOD_START is required")
        if not period_end:
            raise ConfigurationError("STATEMENT_PERIOD_END is required")

        start = _parse_timestamp("STATEMENT_PERIOD_START", period_start)
        end = _parse_timestamp("STATEMENT_PERIOD_END", period_end)
        if start >= end:
            raise ConfigurationError(
                f"Period start {period_start} must be before period end {period_end}"
            )

        try:
            fmt = ExportFormat(export_format or ExportFormat.CSV)
        except ValueError as e:
            raise ConfigurationError(
                f"Invalid format: {export_format}. Use 'csv' or 'pdf'"
            ) from e

        return cls(
            balance_id=balance_id,
            period_start=period_start,
            period_end=period_end,
            start=start,
            end=end,
            currency=(currency or "").strip() or DEFAULT_CURRENCY,
            export_format=fmt,
            output_dir=output_dir or "output",
        )


class StatementService:
    """Runs one statement request end to end.

    Collaborators are injected; the service owns none of their lifecycles.
    """

    def __init__(
        self,
        reader: TransactionLogReader,
        snapshots: SnapshotResolver,
        reconciler: Reconciler,
    ):
        self._reader = reader
        self._snapshots = snapshots
        self._reconciler = reconciler

    @classmethod
    def from_clients(
        cls,
        client: BlnkAPIClient,
        store: TransactionStore | TransactionStoreProtocol,
        concurrency: int | None = None,
    ) -> "StatementService":
        return cls(
            reader=TransactionLogReader(store),
            snapshots=SnapshotResolver(client),
            reconciler=Reconciler(CounterpartyResolver(client, concurrency=concurrency)),
        )

    @staticmethod
    def _check_abort(abort: asyncio.Event | None, next_phase: str) -> None:
        if abort is not None and abort.is_set():
            raise StatementAborted(
                f"Statement request aborted before {next_phase}", phase=next_phase
            )

    async def generate(
        self, request: StatementRequest, abort: asyncio.Event | None = None
    ) -> Statement:
        """Build the statement for `request`."""
        transactions = await self._reader.fetch(
            request.balance_id, request.currency, request.start, request.end
        )

        self._check_abort(abort, "snapshots")
        snapshots = await self._snapshots.period(
            request.balance_id, request.period_start, request.period_end
        )

        reconciliation = await self._reconciler.reconcile(
            request.balance_id, request.currency, transactions, snapshots
        )
        statement = assemble(reconciliation, Period(request.period_start, request.period_end))
        logger.info(
            "statement_generated",
            balance_id=request.balance_id,
            transaction_count=statement.totals.transaction_count,
        )
        return statement

    async def export(self, request: StatementRequest, abort: asyncio.Event | None = None) -> Path:
        """Build the statement and write it in the requested format."""
        with structlog.contextvars.bound_contextvars(
            balance_id=request.balance_id, format=request.export_format.value
        ):
            statement = await self.generate(request, abort)
            self._check_abort(abort, "export")
            return export_statement(statement, request.export_format, request.output_dir)

"""Pytest configuration and fixtures."""

import asyncio
import os
from datetime import UTC, datetime
from decimal import Decimal

import pytest

# Set test environment variables before importing settings
os.environ.setdefault("BLNK_BASE_URL", "http://localhost:5001")
os.environ.setdefault("BLNK_API_KEY", "test-api-key")
for _name in (
    "BLNK_DB_URL",
    "STATEMENT_BALANCE_ID",
    "STATEMENT_PERIOD_START",
    "STATEMENT_PERIOD_END",
    "STATEMENT_CURRENCY",
    "STATEMENT_OUTPUT_DIR",
    "NAME_RESOLUTION_CONCURRENCY",
    "WORLD_LABEL_PATTERN",
    "BLNK_TIMEOUT",
    "BLNK_TRANSPORT_RETRIES",
    "BLNK_WEBHOOK_SECRET",
):
    os.environ.pop(_name, None)

from blnk_statements.clients.blnk_api import BlnkAPIError, SearchBalanceDocument  # noqa: E402
from blnk_statements.config import get_settings  # noqa: E402
from blnk_statements.models import (  # noqa: E402
    BalanceSnapshot,
    Direction,
    Period,
    Statement,
    StatementRow,
    Totals,
    TransactionRecord,
)

BALANCE_ID = "bln_123"
WORLD_ID = "bln_world"
PERIOD_START = "2026-01-01T00:00:00Z"
PERIOD_END = "2026-02-01T00:00:00Z"


@pytest.fixture(autouse=True)
def _fresh_settings():
    """Each test sees settings built from the current environment."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def make_tx(
    reference: str = "ref_001",
    source: str = WORLD_ID,
    destination: str = BALANCE_ID,
    amount: str | int = 10000,
    currency: str = "USD",
    precision: int = 100,
    effective_date: datetime | None = None,
    description: str = "Initial deposit",
) -> TransactionRecord:
    return TransactionRecord(
        effective_date=effective_date or datetime(2026, 1, 5, 10, 0, tzinfo=UTC),
        reference=reference,
        description=description,
        source=source,
        destination=destination,
        amount=Decimal(str(amount)),
        currency=currency,
        precision=precision,
    )


def make_snapshot(
    balance: int | str = 0,
    credit: int | str = 0,
    debit: int | str = 0,
    balance_id: str = BALANCE_ID,
) -> BalanceSnapshot:
    return BalanceSnapshot(
        balance_id=balance_id,
        balance=Decimal(str(balance)),
        credit_balance=Decimal(str(credit)),
        debit_balance=Decimal(str(debit)),
    )


def make_row(
    reference: str = "ref_001",
    description: str = "Initial deposit",
    direction: Direction = Direction.CREDIT,
    counterparty: str = "Deposit",
    amount: str = "10,000.00",
) -> StatementRow:
    return StatementRow(
        timestamp="2026-01-05 10:00:00",
        reference=reference,
        description=description,
        direction=direction,
        counterparty=counterparty,
        amount=amount,
        currency="USD",
    )


def make_statement(rows: list[StatementRow] | None = None) -> Statement:
    rows = [make_row()] if rows is None else rows
    return Statement(
        balance_id=BALANCE_ID,
        currency="USD",
        account_name="John Doe",
        period=Period(PERIOD_START, PERIOD_END),
        opening_balance="0.00",
        closing_balance="60.00",
        totals=Totals(credits="100.00", debits="40.00", transaction_count=len(rows)),
        rows=tuple(rows),
    )

class FakeStore:
    """In-memory TransactionStore."""

    def __init__(self, transactions: list[TransactionRecord] | None = None):
        self.transactions = transactions or []
        self.calls: list[tuple] = []

    async def query(self, balance_id, currency, start, end):
        self.calls.append((balance_id, currency, start, end))
        return list(self.transactions)


class FakeBlnkClient:
    """Stands in for BlnkAPIClient in pipeline tests.

    `names` maps balance ids to a search document, None (no hit) or an
    exception to raise. `delays` lets lookups finish out of order.
    """

    def __init__(
        self,
        snapshots: dict[str, BalanceSnapshot] | None = None,
        names: dict[str, object] | None = None,
        delays: dict[str, float] | None = None,
        snapshot_error: Exception | None = None,
    ):
        self.snapshots = snapshots or {}
        self.names = names or {}
        self.delays = delays or {}
        self.snapshot_error = snapshot_error
        self.balance_at_calls: list[tuple[str, str]] = []
        self.search_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def balance_at(self, balance_id: str, timestamp: str) -> BalanceSnapshot:
        self.balance_at_calls.append((balance_id, timestamp))
        if self.snapshot_error is not None:
            raise self.snapshot_error
        try:
            return self.snapshots[timestamp]
        except KeyError:
            raise BlnkAPIError("API error: 404", status_code=404, details={"error": "not found"})

    async def search_balance(self, balance_id: str) -> SearchBalanceDocument | None:
        self.search_calls.append(balance_id)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(balance_id, 0))
            result = self.names.get(balance_id)
            if isinstance(result, Exception):
                raise result
            return result
        finally:
            self.in_flight -= 1


@pytest.fixture
def scenario_transactions():
    """A deposit from World and a withdrawal back to World."""
    return [
        make_tx(),
        make_tx(
            reference="ref_002",
            source=BALANCE_ID,
            destination=WORLD_ID,
            amount=4000,
            effective_date=datetime(2026, 1, 20, 15, 30, tzinfo=UTC),
            description="ATM withdrawal",
        ),
    ]


@pytest.fixture
def scenario_client():
    return FakeBlnkClient(
        snapshots={
            PERIOD_START: make_snapshot(0, 0, 0),
            PERIOD_END: make_snapshot(6000, 10000, 4000),
        },
        names={
            BALANCE_ID: SearchBalanceDocument.model_validate(
                {
                    "balance_id": BALANCE_ID,
                    "identities": {"first_name": "John", "last_name": "Doe"},
                }
            ),
            WORLD_ID: SearchBalanceDocument.model_validate(
                {"balance_id": WORLD_ID, "indicator": "@World"}
            ),
        },
    )

"""Value types for statement reconciliation.

Records read from the ledger (transactions and balance snapshots) are pydantic
models so malformed rows and payloads are rejected where they enter the
system. Everything derived from them is a frozen dataclass.
"""

from dataclasses import dataclass
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from pydantic import BaseModel, ConfigDict, field_validator


class Direction(str, Enum):
    """Side of a transaction relative to the balance under report."""

    DEBIT = "DR"
    CREDIT = "CR"
    SELF = "SELF"  # balance is both source and destination


class TransactionRecord(BaseModel):
    """An applied ledger transaction, read-only."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    effective_date: datetime
    reference: str
    description: str = ""
    source: str
    destination: str
    amount: Decimal
    currency: str
    precision: int

    @field_validator("effective_date")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @field_validator("description", mode="before")
    @classmethod
    def _null_description(cls, value: object) -> object:
        return "" if value is None else value


class BalanceSnapshot(BaseModel):
    """State of a balance as of a single instant."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    balance_id: str
    balance: Decimal
    credit_balance: Decimal
    debit_balance: Decimal
    as_of: str | None = None


@dataclass(frozen=True)
class Period:
    """Statement window; `end` is exclusive for the transaction query."""

    start: str
    end: str


@dataclass(frozen=True)
class Totals:
    credits: str
    debits: str
    transaction_count: int


@dataclass(frozen=True)
class StatementRow:
    """One rendered statement line."""

    timestamp: str
    reference: str
    description: str
    direction: Direction
    counterparty: str
    amount: str
    currency: str

    def as_fields(self) -> list[str]:
        """Return the row in export column order."""
        return [
            self.timestamp,
            self.reference,
            self.description,
            self.direction.value,
            self.counterparty,
            self.amount,
            self.currency,
        ]


@dataclass(frozen=True)
class Statement:
    """A point-in-time-consistent account statement ready for export."""

    balance_id: str
    currency: str
    account_name: str
    period: Period
    opening_balance: str
    closing_balance: str
    totals: Totals
    rows: tuple[StatementRow, ...]


EXPORT_COLUMNS = (
    "Timestamp",
    "Reference",
    "Description",
    "Direction",
    "Counterparty",
    "Amount",
    "Currency",
)

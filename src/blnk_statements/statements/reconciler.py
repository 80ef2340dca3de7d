"""Statement reconciliation.

Statement-level figures are read from the two balance snapshots:

    opening = start.balance
    closing = end.balance
    credits = end.credit_balance - start.credit_balance
    debits  = end.debit_balance - start.debit_balance

They are never re-derived by summing transaction rows. Transaction rows only
contribute per-line direction, counterparty and amount.
"""

import re
from collections.abc import Sequence
from dataclasses import dataclass
from decimal import Decimal

import structlog

from blnk_statements.config import get_settings
from blnk_statements.errors import AmbiguousBalanceRole
from blnk_statements.models import (
    BalanceSnapshot,
    Direction,
    StatementRow,
    TransactionRecord,
)
from blnk_statements.statements.formatters import (
    currency_precision,
    format_amount,
    format_timestamp,
)
from blnk_statements.statements.identity import CounterpartyResolver, NameResolution
from blnk_statements.statements.snapshots import PeriodSnapshots

logger = structlog.get_logger(__name__)

DEPOSIT_LABEL = "Deposit"
WITHDRAWAL_LABEL = "Withdrawal"


@dataclass(frozen=True)
class PeriodTotals:
    credits: Decimal
    debits: Decimal


@dataclass(frozen=True)
class Reconciliation:
    """Raw reconciled values, before statement-level display formatting."""

    balance_id: str
    currency: str
    account_name: str
    precision: int
    opening_balance: Decimal
    closing_balance: Decimal
    totals: PeriodTotals
    rows: tuple[StatementRow, ...]


def direction(tx: TransactionRecord, balance_id: str) -> Direction:
    """Classify a transaction relative to `balance_id`.

    Debit when the balance is the source, credit when it is the destination,
    and SELF when it is both.
    """
    is_source = tx.source == balance_id
    is_destination = tx.destination == balance_id
    if is_source and is_destination:
        return Direction.SELF
    if is_source:
        return Direction.DEBIT
    if is_destination:
        return Direction.CREDIT
    raise AmbiguousBalanceRole(balance_id, tx.reference)


def counterparty_id(tx: TransactionRecord, balance_id: str) -> str:
    """Return the endpoint opposite `balance_id`."""
    if tx.source == balance_id:
        return tx.destination
    if tx.destination == balance_id:
        return tx.source
    raise AmbiguousBalanceRole(balance_id, tx.reference)


def period_totals(start: BalanceSnapshot, end: BalanceSnapshot) -> PeriodTotals:
    return PeriodTotals(
        credits=end.credit_balance - start.credit_balance,
        debits=end.debit_balance - start.debit_balance,
    )


def normalize_placeholder_label(
    label: str,
    tx: TransactionRecord,
    counterparty: str,
    pattern: str = "world",
) -> str:
    """Replace a world/placeholder label with Deposit or Withdrawal.

    Money coming from the placeholder is a deposit; money going to it is a
    withdrawal. Any other label is returned unchanged.
    """
    if not re.search(re.escape(pattern), label, re.IGNORECASE):
        return label
    if tx.source == counterparty:
        return DEPOSIT_LABEL
    if tx.destination == counterparty:
        return WITHDRAWAL_LABEL
    return label


class Reconciler:
    """Turns a transaction log and two snapshots into reconciled values."""

    def __init__(self, resolver: CounterpartyResolver, placeholder_pattern: str | None = None):
        self._resolver = resolver
        self._placeholder_pattern = placeholder_pattern or get_settings().world_label_pattern
        self._logger = logger.bind(component="reconciler")

    def _row(
        self,
        tx: TransactionRecord,
        row_direction: Direction,
        other_id: str,
        names: dict[str, NameResolution],
    ) -> StatementRow:
        label = names[other_id].label
        if row_direction is not Direction.SELF:
            label = normalize_placeholder_label(label, tx, other_id, self._placeholder_pattern)
        return StatementRow(
            timestamp=format_timestamp(tx.effective_date),
            reference=tx.reference,
            description=tx.description,
            direction=row_direction,
            counterparty=label,
            amount=format_amount(tx.amount),
            currency=tx.currency,
        )

    async def reconcile(
        self,
        balance_id: str,
        currency: str,
        transactions: Sequence[TransactionRecord],
        snapshots: PeriodSnapshots,
    ) -> Reconciliation:
        # Classify every row before any lookups so bad data fails fast
        roles = [
            (tx, direction(tx, balance_id), counterparty_id(tx, balance_id))
            for tx in transactions
        ]

        names = await self._resolver.resolve_many(
            [balance_id] + [other_id for _, _, other_id in roles]
        )
        rows = tuple(
            self._row(tx, row_direction, other_id, names)
            for tx, row_direction, other_id in roles
        )

        fallbacks = sum(1 for resolution in names.values() if not resolution.resolved)
        self._logger.info(
            "statement_reconciled",
            balance_id=balance_id,
            rows=len(rows),
            names_resolved=len(names) - fallbacks,
            names_fallback=fallbacks,
        )

        return Reconciliation(
            balance_id=balance_id,
            currency=currency,
            account_name=names[balance_id].label,
            precision=currency_precision(transactions, currency),
            opening_balance=snapshots.start.balance,
            closing_balance=snapshots.end.balance,
            totals=period_totals(snapshots.start, snapshots.end),
            rows=rows,
        )

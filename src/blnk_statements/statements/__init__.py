"""Statement reconciliation pipeline."""

from blnk_statements.statements.assembler import assemble
from blnk_statements.statements.identity import CounterpartyResolver, NameResolution
from blnk_statements.statements.reader import TransactionLogReader
from blnk_statements.statements.reconciler import (
    Reconciler,
    Reconciliation,
    counterparty_id,
    direction,
    normalize_placeholder_label,
    period_totals,
)
from blnk_statements.statements.service import StatementRequest, StatementService
from blnk_statements.statements.snapshots import PeriodSnapshots, SnapshotResolver

__all__ = [
    "CounterpartyResolver",
    "NameResolution",
    "PeriodSnapshots",
    "Reconciler",
    "Reconciliation",
    "SnapshotResolver",
    "StatementRequest",
    "StatementService",
    "TransactionLogReader",
    "assemble",
    "counterparty_id",
    "direction",
    "normalize_placeholder_label",
    "period_totals",
]

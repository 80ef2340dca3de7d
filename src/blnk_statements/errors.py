"""Errors raised while building and exporting a statement."""

from typing import Any


class StatementError(Exception):
    """Base exception for the statement pipeline.

    Args:
        message: Human readable description.
        phase: Pipeline phase that failed (e.g. "snapshots", "export").
        details: Upstream error payload, when one is available.
    """

    default_phase: str | None = None

    def __init__(self, message: str, phase: str | None = None, details: Any = None):
        super().__init__(message)
        self.phase = phase or self.default_phase
        self.details = details


class ConfigurationError(StatementError):
    """Required identifier or period is missing or malformed."""

    default_phase = "configuration"


class TransactionQueryFailed(StatementError):
    """The transaction store could not be queried."""

    default_phase = "transactions"


class NoTransactionsInPeriod(StatementError):
    """A valid request matched no applied transactions."""

    default_phase = "transactions"

    def __init__(self, balance_id: str, period_start: str, period_end: str):
        super().__init__(
            f"No transactions found for balance {balance_id} between "
            f"{period_start} and {period_end}"
        )
        self.balance_id = balance_id
        self.period_start = period_start
        self.period_end = period_end


class SnapshotUnavailable(StatementError):
    """A balance-at-timestamp snapshot could not be fetched."""

    default_phase = "snapshots"

    def __init__(
        self,
        balance_id: str,
        timestamp: str,
        reason: str,
        status_code: int | None = None,
        details: Any = None,
    ):
        super().__init__(
            f"Snapshot for balance {balance_id} at {timestamp} unavailable: {reason}",
            details=details,
        )
        self.balance_id = balance_id
        self.timestamp = timestamp
        self.status_code = status_code


class InconsistentSnapshots(StatementError):
    """Cumulative counters went backwards between the two snapshots."""

    default_phase = "snapshots"


class AmbiguousBalanceRole(StatementError):
    """A transaction has the queried balance on neither side."""

    default_phase = "reconcile"

    def __init__(self, balance_id: str, reference: str):
        super().__init__(
            f"Balance ID {balance_id} is neither source nor destination "
            f"in transaction {reference}"
        )
        self.balance_id = balance_id
        self.reference = reference


class NameResolutionFailure(StatementError):
    """A counterparty display name could not be resolved.

    Never escapes the resolver; it is turned into a fallback label.
    """

    default_phase = "reconcile"


class ExportIOFailure(StatementError):
    """Writing the output file failed."""

    default_phase = "export"


class StatementAborted(StatementError):
    """The caller abandoned the request."""

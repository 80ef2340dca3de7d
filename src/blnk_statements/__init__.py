"""Blnk Statements - point-in-time customer statements from a Blnk ledger."""

__version__ = "0.1.0"

from blnk_statements.clients import BlnkAPIClient, BlnkAPIError
from blnk_statements.config import configure_logging, get_settings
from blnk_statements.db import TransactionStore
from blnk_statements.errors import (
    AmbiguousBalanceRole,
    ConfigurationError,
    ExportIOFailure,
    InconsistentSnapshots,
    NameResolutionFailure,
    NoTransactionsInPeriod,
    SnapshotUnavailable,
    StatementAborted,
    StatementError,
    TransactionQueryFailed,
)
from blnk_statements.exporters import ExportFormat, export_csv, export_pdf, export_statement
from blnk_statements.models import (
    BalanceSnapshot,
    Direction,
    Statement,
    StatementRow,
    TransactionRecord,
)
from blnk_statements.statements import StatementRequest, StatementService

__all__ = [
    # Version
    "__version__",
    # Clients
    "BlnkAPIClient",
    "BlnkAPIError",
    "TransactionStore",
    # Pipeline
    "StatementRequest",
    "StatementService",
    # Models
    "BalanceSnapshot",
    "Direction",
    "Statement",
    "StatementRow",
    "TransactionRecord",
    # Exporters
    "ExportFormat",
    "export_csv",
    "export_pdf",
    "export_statement",
    # Errors
    "StatementError",
    "ConfigurationError",
    "NoTransactionsInPeriod",
    "TransactionQueryFailed",
    "SnapshotUnavailable",
    "InconsistentSnapshots",
    "AmbiguousBalanceRole",
    "NameResolutionFailure",
    "ExportIOFailure",
    "StatementAborted",
    # Config
    "get_settings",
    "configure_logging",
]

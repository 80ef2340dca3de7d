"""Clients for the Blnk ledger service."""

from blnk_statements.clients.blnk_api import (
    BlnkAPIClient,
    BlnkAPIError,
    MalformedResponseError,
    SearchBalanceDocument,
)

__all__ = [
    "BlnkAPIClient",
    "BlnkAPIError",
    "MalformedResponseError",
    "SearchBalanceDocument",
]

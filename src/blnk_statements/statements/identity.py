"""Best-effort display names for balances."""

import asyncio
from collections.abc import Iterable
from dataclasses import dataclass

import structlog

from blnk_statements.clients.blnk_api import BlnkAPIClient, BlnkAPIError
from blnk_statements.config import get_settings
from blnk_statements.errors import NameResolutionFailure

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class NameResolution:
    """Outcome of a name lookup.

    `label` is always usable. When `resolved` is False the label is the raw
    balance id and `error` says why the lookup fell back.
    """

    balance_id: str
    label: str
    resolved: bool
    error: str | None = None

    @classmethod
    def found(cls, balance_id: str, name: str) -> "NameResolution":
        return cls(balance_id=balance_id, label=name, resolved=True)

    @classmethod
    def fallback(cls, balance_id: str, error: str) -> "NameResolution":
        return cls(balance_id=balance_id, label=balance_id, resolved=False, error=error)


class CounterpartyResolver:
    """Resolves balance ids to names through the Blnk search index.

    Lookups for distinct ids may run concurrently, bounded by `concurrency`.
    """

    def __init__(self, client: BlnkAPIClient, concurrency: int | None = None):
        self._client = client
        self._concurrency = concurrency or get_settings().name_resolution_concurrency
        self._logger = logger.bind(component="counterparty_resolver")

    async def _lookup(self, balance_id: str) -> str:
        try:
            document = await self._client.search_balance(balance_id)
        except BlnkAPIError as e:
            raise NameResolutionFailure(str(e), details=e.details) from e

        if document is None:
            raise NameResolutionFailure(f"No search hit for balance {balance_id}")
        name = document.display_name()
        if not name:
            raise NameResolutionFailure(f"Balance {balance_id} has no identity or indicator")
        return name

    async def by_balance_id(self, balance_id: str) -> NameResolution:
        """Resolve one balance id; never raises for lookup failures."""
        try:
            name = await self._lookup(balance_id)
        except NameResolutionFailure as e:
            self._logger.warning(
                "name_resolution_fallback", balance_id=balance_id, error=str(e)
            )
            return NameResolution.fallback(balance_id, str(e))
        return NameResolution.found(balance_id, name)

    async def resolve_many(self, balance_ids: Iterable[str]) -> dict[str, NameResolution]:
        """Resolve each distinct id once and return results keyed by id."""
        unique_ids = list(dict.fromkeys(balance_ids))
        semaphore = asyncio.Semaphore(self._concurrency)

        async def _bounded(balance_id: str) -> NameResolution:
            async with semaphore:
                return await self.by_balance_id(balance_id)

        results = await asyncio.gather(*(_bounded(balance_id) for balance_id in unique_ids))
        return dict(zip(unique_ids, results))

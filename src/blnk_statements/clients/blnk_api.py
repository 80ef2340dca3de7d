"""Blnk ledger API client."""

from typing import Any

import httpx
import structlog
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from blnk_statements.config import get_settings
from blnk_statements.models import BalanceSnapshot

logger = structlog.get_logger(__name__)


class BlnkAPIError(Exception):
    """Base exception for Blnk API errors."""

    def __init__(self, message: str, status_code: int | None = None, details: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.details = details


class MalformedResponseError(BlnkAPIError):
    """Response body did not match the expected shape."""

    pass


# === Response shapes ===


class HistoricalBalanceResponse(BaseModel):
    """Body of `GET /balances/{id}/at`."""

    model_config = ConfigDict(extra="ignore")

    balance: BalanceSnapshot


class SearchIdentity(BaseModel):
    model_config = ConfigDict(extra="ignore")

    first_name: str | None = None
    last_name: str | None = None


class SearchBalanceDocument(BaseModel):
    """A balance document returned by `POST /search/balances`."""

    model_config = ConfigDict(extra="ignore")

    balance_id: str | None = None
    indicator: str | None = None
    identities: SearchIdentity | None = None

    @field_validator("identities", mode="before")
    @classmethod
    def _first_identity(cls, value: Any) -> Any:
        # Joined collections come back as a list when more than one matches
        if isinstance(value, list):
            return value[0] if value else None
        return value

    def display_name(self) -> str | None:
        """Identity full name, else the balance indicator, else None."""
        identity = self.identities
        if identity and identity.first_name and identity.last_name:
            return f"{identity.first_name} {identity.last_name}"
        return self.indicator or None


class SearchResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    hits: list[dict[str, Any]] = []

    def first_document(self) -> SearchBalanceDocument | None:
        if not self.hits:
            return None
        hit = self.hits[0]
        return SearchBalanceDocument.model_validate(hit.get("document", hit))


class BlnkAPIClient:
    """Async client for the Blnk ledger API.

    The client is created once by the caller and passed to every component
    that needs it; `close()` (or the async context manager) releases the
    underlying connection pool.
    """

    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        settings = get_settings()
        self.base_url = (base_url or settings.blnk_base_url).rstrip("/")
        if api_key is None and settings.blnk_api_key is not None:
            api_key = settings.blnk_api_key.get_secret_value()
        self._api_key = api_key
        self._timeout = timeout if timeout is not None else settings.blnk_timeout
        self._transport = transport or httpx.AsyncHTTPTransport(
            retries=settings.blnk_transport_retries
        )
        self._client: httpx.AsyncClient | None = None

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(self._timeout),
                transport=self._transport,
                headers=self._get_headers(),
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "BlnkAPIClient":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def _get_headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["X-blnk-key"] = self._api_key
        return headers

    # === Generic Request Methods ===

    async def _request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        json: dict[str, Any] | None = None,
    ) -> Any:
        """Make an API request and return the decoded JSON body."""
        client = await self._get_client()

        try:
            response = await client.request(method=method, url=path, params=params, json=json)
        except httpx.RequestError as e:
            raise BlnkAPIError(f"Request failed: {e}") from e

        if response.status_code >= 400:
            try:
                error_detail = response.json() if response.content else {}
            except ValueError:
                error_detail = {
                    "raw": response.text[:500] if response.text else "empty response"
                }
            raise BlnkAPIError(
                f"API error: {response.status_code}",
                status_code=response.status_code,
                details=error_detail,
            )

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise MalformedResponseError(
                f"Invalid JSON from {path}",
                status_code=response.status_code,
                details={"raw": response.text[:500]},
            ) from e

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """Make GET request."""
        return await self._request("GET", path, params=params)

    async def post(self, path: str, json: dict[str, Any] | None = None) -> Any:
        """Make POST request."""
        return await self._request("POST", path, json=json)

    # === Balance Endpoints ===

    async def balance_at(self, balance_id: str, timestamp: str) -> BalanceSnapshot:
        """Fetch the state of a balance as of `timestamp`."""
        data = await self.get(f"/balances/{balance_id}/at", params={"timestamp": timestamp})
        try:
            parsed = HistoricalBalanceResponse.model_validate(data)
        except ValidationError as e:
            raise MalformedResponseError(
                "Invalid historical balance response",
                details=e.errors(include_url=False),
            ) from e

        logger.debug("balance_at_fetched", balance_id=balance_id, timestamp=timestamp)
        return parsed.balance.model_copy(update={"as_of": timestamp})

    async def search_balance(self, balance_id: str) -> SearchBalanceDocument | None:
        """Look up a balance and its identity through the search index."""
        data = await self.post(
            "/search/balances",
            json={
                "q": balance_id,
                "query_by": "balance_id",
                "include_fields": "$identities(first_name,last_name)",
            },
        )
        try:
            return SearchResponse.model_validate(data).first_document()
        except ValidationError as e:
            raise MalformedResponseError(
                "Invalid balance search response",
                details=e.errors(include_url=False),
            ) from e

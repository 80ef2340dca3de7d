"""Tests for best-effort counterparty name resolution."""

import pytest
from conftest import FakeBlnkClient

from blnk_statements.clients.blnk_api import (
    BlnkAPIError,
    MalformedResponseError,
    SearchBalanceDocument,
)
from blnk_statements.statements.identity import CounterpartyResolver, NameResolution


def _doc(**data) -> SearchBalanceDocument:
    return SearchBalanceDocument.model_validate(data)


class TestByBalanceId:
    @pytest.mark.asyncio
    async def test_identity_name(self):
        client = FakeBlnkClient(
            names={"bln_1": _doc(identities={"first_name": "Ada", "last_name": "Lovelace"})}
        )

        result = await CounterpartyResolver(client).by_balance_id("bln_1")

        assert result == NameResolution.found("bln_1", "Ada Lovelace")
        assert result.resolved

    @pytest.mark.asyncio
    async def test_indicator_when_identity_incomplete(self):
        client = FakeBlnkClient(
            names={"bln_1": _doc(indicator="@Savings", identities={"first_name": "Ada"})}
        )

        result = await CounterpartyResolver(client).by_balance_id("bln_1")

        assert result.label == "@Savings"

    @pytest.mark.asyncio
    async def test_no_hit_falls_back(self):
        result = await CounterpartyResolver(FakeBlnkClient()).by_balance_id("bln_1")

        assert result.label == "bln_1"
        assert not result.resolved
        assert "No search hit" in result.error

    @pytest.mark.asyncio
    async def test_document_without_name_falls_back(self):
        client = FakeBlnkClient(names={"bln_1": _doc(balance_id="bln_1")})

        result = await CounterpartyResolver(client).by_balance_id("bln_1")

        assert result.label == "bln_1"
        assert not result.resolved

    @pytest.mark.asyncio
    async def test_transport_error_falls_back(self):
        client = FakeBlnkClient(names={"bln_1": BlnkAPIError("Request failed: timeout")})

        result = await CounterpartyResolver(client).by_balance_id("bln_1")

        assert result == NameResolution.fallback("bln_1", "Request failed: timeout")

    @pytest.mark.asyncio
    async def test_malformed_response_falls_back(self):
        client = FakeBlnkClient(
            names={"bln_1": MalformedResponseError("Invalid balance search response")}
        )

        result = await CounterpartyResolver(client).by_balance_id("bln_1")

        assert result.label == "bln_1"


class TestResolveMany:
    @pytest.mark.asyncio
    async def test_looks_up_each_id_once(self):
        client = FakeBlnkClient(names={"bln_1": _doc(indicator="One")})

        results = await CounterpartyResolver(client).resolve_many(
            ["bln_1", "bln_2", "bln_1", "bln_1"]
        )

        assert sorted(client.search_calls) == ["bln_1", "bln_2"]
        assert results["bln_1"].label == "One"
        assert results["bln_2"].label == "bln_2"

    @pytest.mark.asyncio
    async def test_concurrency_is_bounded(self):
        ids = [f"bln_{i}" for i in range(10)]
        client = FakeBlnkClient(delays={balance_id: 0.01 for balance_id in ids})

        await CounterpartyResolver(client, concurrency=2).resolve_many(ids)

        assert client.max_in_flight == 2

    @pytest.mark.asyncio
    async def test_empty_input(self):
        assert await CounterpartyResolver(FakeBlnkClient()).resolve_many([]) == {}

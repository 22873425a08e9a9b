"""
Tests for the accounting entries client.
"""

import json

import httpx
import pytest

from cxc_reconciler.exceptions import ExternalServiceError, ValidationError
from cxc_reconciler.integrations import AccountingEntriesClient
from cxc_reconciler.integrations.entries_api import filter_by_date_range

ITEMS = [
    {"id": 1, "fecha": "2024-01-01", "descripcion": "a"},
    {"id": 2, "date": "2024-01-15T10:00:00", "descripcion": "b"},
    {"id": 3, "fechaCreacion": "2024-01-31", "descripcion": "c"},
    {"id": 4, "fecha": "2024-02-01", "descripcion": "d"},
    {"id": 5, "descripcion": "undated"},
]


def entries_client(settings, handler, **kwargs):
    return AccountingEntriesClient(
        settings=settings, transport=httpx.MockTransport(handler), **kwargs
    )


def refuse(request):
    raise AssertionError("no request expected")


class TestListEntries:

    @pytest.mark.asyncio
    async def test_filters_inclusive_range(self, settings):
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={"items": ITEMS})

        items = await entries_client(settings, handler).list_entries("2024-01-01", "2024-01-31")

        assert [item["id"] for item in items] == [1, 2, 3]
        assert seen[0].headers["x-api-key"] == "cxc-key"

    @pytest.mark.asyncio
    async def test_no_filter_without_both_bounds(self, settings):
        client = entries_client(settings, lambda r: httpx.Response(200, json=ITEMS))

        items = await client.list_entries("2024-01-01", None)

        assert len(items) == len(ITEMS)

    @pytest.mark.asyncio
    async def test_unexpected_payload_yields_empty(self, settings):
        client = entries_client(settings, lambda r: httpx.Response(200, json={"total": 3}))
        assert await client.list_entries() == []

    @pytest.mark.asyncio
    async def test_missing_api_key(self, settings):
        client = entries_client(settings, refuse, api_key="")

        with pytest.raises(ValidationError, match="CXC_API_KEY"):
            await client.list_entries()

    @pytest.mark.asyncio
    async def test_upstream_error(self, settings):
        client = entries_client(settings, lambda r: httpx.Response(401, text="unauthorized"))

        with pytest.raises(ExternalServiceError) as exc_info:
            await client.list_entries()

        assert exc_info.value.status == 401

    def test_invalid_range(self):
        with pytest.raises(ValidationError):
            filter_by_date_range(ITEMS, "yesterday", "2024-01-31")


class TestCreateEntry:

    def test_payload_is_balanced(self, settings):
        client = AccountingEntriesClient(settings=settings)

        payload = client.build_payload(42, "Venta contado", "15 de enero", "250.75", year=2024)

        assert payload == {
            "fecha": "2024-01-15",
            "descripcion": "CxC Transaccion #42 - Venta contado",
            "movimientos": [
                {"cuenta": "1101", "debe": 250.75, "haber": 0},
                {"cuenta": "4101", "debe": 0, "haber": 250.75},
            ],
        }
        total_debe = sum(m["debe"] for m in payload["movimientos"])
        total_haber = sum(m["haber"] for m in payload["movimientos"])
        assert total_debe == total_haber

    @pytest.mark.parametrize("amount", [0, -5, "abc", "nan"])
    def test_amount_must_be_positive(self, settings, amount):
        client = AccountingEntriesClient(settings=settings)

        with pytest.raises(ValidationError, match="Monto"):
            client.build_payload(1, "x", "15 de enero", amount, year=2024)

    def test_missing_fields(self, settings):
        client = AccountingEntriesClient(settings=settings)

        with pytest.raises(ValidationError) as exc_info:
            client.build_payload(None, "", "15 de enero", 10)

        assert "idTransaccion" in str(exc_info.value)
        assert "descripcion" in str(exc_info.value)

    def test_bad_date(self, settings):
        client = AccountingEntriesClient(settings=settings)

        with pytest.raises(ValidationError, match="Unrecognized month name"):
            client.build_payload(1, "x", "15 de brumario", 10)

    @pytest.mark.asyncio
    async def test_create_returns_id(self, settings):
        bodies = []

        def handler(request):
            bodies.append(json.loads(request.content))
            return httpx.Response(201, json={"uuid": "abc-123"})

        result = await entries_client(settings, handler).create_entry(
            7, "Cobro", "3 de marzo", 99.9, year=2024
        )

        assert result.entry_id == "abc-123"
        assert bodies[0]["fecha"] == "2024-03-03"

    @pytest.mark.asyncio
    async def test_validation_happens_before_network(self, settings):
        client = entries_client(settings, refuse)

        with pytest.raises(ValidationError):
            await client.create_entry(7, "Cobro", "marzo 3", 99.9)

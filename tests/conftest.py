"""
Shared fixtures: settings and in-process fakes of the ledger and
transactions backends served through httpx.MockTransport.
"""

import json

import httpx
import pytest

from cxc_reconciler.config import Settings
from cxc_reconciler.integrations import LedgerClient, TransactionSourceClient
from cxc_reconciler.reconciliation import CxcReconciliationOrchestrator
from cxc_reconciler.utils import AuditLogger

LEDGER_URL = "http://ledger.test/api/public/entradas-contables"
TRANSACTIONS_URL = "http://transactions.test/api/Transacciones"
ENTRIES_URL = "http://entries.test/api/public/entradas-contables"


class FakeLedger:
    """Ledger service keeping posted entries in memory."""

    def __init__(self, entries=None):
        self.entries = list(entries or [])
        self.requests = []
        self.posted = []
        self.read_status = 200
        self.fail_post_for = set()
        self.fail_reads_after_post = False
        self._next_id = 100

    def add_entry(self, description, amount, entry_date, account_id=8, movement="CR"):
        self._next_id += 1
        entry = {
            "id": self._next_id,
            "descripcion": description,
            "auxiliar_Id": 7,
            "cuenta_Id": account_id,
            "tipoMovimiento": movement,
            "fechaAsiento": entry_date,
            "montoAsiento": amount,
            "estado_Id": 1,
        }
        self.entries.append(entry)
        return entry

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)

        if request.method == "GET":
            if self.read_status != 200:
                return httpx.Response(self.read_status, text="ledger unavailable")
            return httpx.Response(200, json={"success": True, "data": self.entries})

        body = json.loads(request.content)
        self.posted.append(body)
        if body["descripcion"] in self.fail_post_for:
            return httpx.Response(500, text="could not create entry")

        if self.fail_reads_after_post:
            self.read_status = 503

        entry = self.add_entry(
            body["descripcion"],
            body["montoAsiento"],
            body["fechaAsiento"],
            account_id=body["cuenta_Id"],
            movement=body["tipoMovimiento"],
        )
        return httpx.Response(201, json={"id": entry["id"]})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


class FakeTransactions:
    """Transactions backend returning a fixed payload."""

    def __init__(self, records=None):
        self.records = list(records or [])
        self.status = 200
        self.calls = 0

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.calls += 1
        if self.status != 200:
            return httpx.Response(self.status, text="transactions unavailable")
        return httpx.Response(200, json={"data": self.records})

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self.handler)


@pytest.fixture
def settings(tmp_path):
    return Settings(
        ledger_api_url=LEDGER_URL,
        ledger_api_key="ledger-key",
        transactions_api_url=TRANSACTIONS_URL,
        entries_api_url=ENTRIES_URL,
        cxc_api_key="cxc-key",
        reload_delay_seconds=0,
        reports_dir=tmp_path / "reports",
    )


@pytest.fixture
def sample_records():
    """Two clients; client 1 has two transactions."""
    return [
        {"id": 1, "tipo": "Factura", "clienteId": 1, "documento": "F-001",
         "fecha": "2024-01-05", "categoriaId": 3, "monto": 100},
        {"id": 2, "tipo": "Factura", "clienteId": 1, "documento": "F-002",
         "fecha": "2024-01-10", "categoriaId": 3, "monto": 50},
        {"id": 3, "tipo": "Factura", "clienteId": 2, "documento": "F-003",
         "fecha": "2024-01-07", "categoriaId": 3, "monto": 75.5},
    ]


@pytest.fixture
def fake_ledger():
    return FakeLedger()


@pytest.fixture
def fake_transactions(sample_records):
    return FakeTransactions(sample_records)


@pytest.fixture
def ledger_client(settings, fake_ledger):
    return LedgerClient(settings=settings, transport=fake_ledger.transport())


@pytest.fixture
def transaction_client(settings, fake_transactions):
    return TransactionSourceClient(settings=settings, transport=fake_transactions.transport())


@pytest.fixture
def orchestrator(settings, ledger_client, transaction_client):
    return CxcReconciliationOrchestrator(
        ledger_client,
        transaction_client,
        settings=settings,
        audit=AuditLogger(settings=settings),
    )

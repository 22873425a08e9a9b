"""
FastAPI application for the CxC consolidation service.

Exposes the consolidation workflow, the accounting entries integration and
thin CRUD endpoints over the in-memory bookkeeping store.
"""

from contextlib import asynccontextmanager
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional, Type, Union

from fastapi import APIRouter, FastAPI, HTTPException, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
import structlog

from .config import Settings, get_settings
from .exceptions import (
    ExternalServiceError,
    ReconciliationError,
    RequestTimeoutError,
    UnexpectedResponseShapeError,
    ValidationError,
    WorkflowStateError,
)
from .integrations import (
    AccountingEntriesClient,
    LedgerClient,
    StoreTransactionSource,
    TransactionSourceClient,
)
from .logging_config import setup_logging
from .reconciliation import CxcReconciliationOrchestrator
from .store import DataStore, Repository
from .utils.audit_logger import entry_to_dict
from .validators import validate_client

logger = structlog.get_logger()


# Request models
class PostRequest(BaseModel):
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class EntryCreateRequest(BaseModel):
    idTransaccion: Optional[Union[int, str]] = None
    descripcion: Optional[str] = None
    fechaTransaccion: Optional[str] = None
    monto: Optional[float] = None


class StateResponse(BaseModel):
    state: str
    pending: int
    last_error: Optional[str] = None


class ClienteIn(BaseModel):
    nombre: Optional[str] = None
    cedula: Optional[str] = None
    limiteCredito: float = 0
    estado: str = "Activo"


class TipoDocumentoIn(BaseModel):
    nombre: Optional[str] = None
    descripcion: str = ""
    prefijo: str = ""
    siguienteNumero: int = 1
    activo: bool = True


class AsientoContableIn(BaseModel):
    fecha: Optional[str] = None
    numeroComprobante: str = ""
    concepto: str = ""
    tipoDocumentoId: int = 0
    clienteId: Optional[int] = None
    totalDebito: float = 0
    totalCredito: float = 0
    estado: str = "Borrador"


class TransaccionIn(BaseModel):
    tipo: str = ""
    clienteId: int = 0
    documento: str = ""
    fecha: str = ""
    categoriaId: int = 0
    monto: float = 0


def error_status(exc: ReconciliationError) -> int:
    """HTTP status for a package error."""
    if isinstance(exc, ValidationError):
        return 400
    if isinstance(exc, RequestTimeoutError):
        return 408
    if isinstance(exc, WorkflowStateError):
        return 409
    if isinstance(exc, ExternalServiceError):
        return exc.status if exc.status and exc.status >= 400 else 502
    if isinstance(exc, UnexpectedResponseShapeError):
        return 502
    return 500


async def reconciliation_error_handler(request: Request, exc: ReconciliationError):
    status = error_status(exc)
    content: Dict[str, Any] = {"error": str(exc), "type": type(exc).__name__}
    if isinstance(exc, ExternalServiceError) and exc.body:
        content["details"] = exc.body
    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field

    logger.warning(
        "Request failed",
        path=request.url.path,
        status=status,
        error=str(exc),
        error_type=type(exc).__name__,
    )
    return JSONResponse(content, status_code=status)


def _orchestrator(request: Request) -> CxcReconciliationOrchestrator:
    return request.app.state.orchestrator


def _store(request: Request) -> DataStore:
    return request.app.state.store


# Consolidation endpoints
cxc_router = APIRouter(prefix="/api/cxc", tags=["cxc"])


@cxc_router.get("/reconciliation")
async def load_reconciliation(
    request: Request,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
):
    """Rebuild and return the consolidated CxC view."""
    view = await _orchestrator(request).load(date_from, date_to)
    return view.to_dict()


@cxc_router.post("/reconciliation/post")
async def post_reconciliation(request: Request, body: Optional[PostRequest] = None):
    """Post every pending row and return the summary plus the reloaded view."""
    body = body or PostRequest()
    report = await _orchestrator(request).post(body.date_from, body.date_to)
    return report.to_dict()


@cxc_router.get("/reconciliation/state", response_model=StateResponse)
async def reconciliation_state(request: Request):
    orchestrator = _orchestrator(request)
    return StateResponse(
        state=orchestrator.state.value,
        pending=orchestrator.pending_count,
        last_error=orchestrator.last_error,
    )


@cxc_router.get("/audit")
async def audit_log(
    request: Request,
    action: Optional[str] = None,
    client_id: Optional[int] = None,
):
    audit = _orchestrator(request).audit
    entries = audit.get_entries(action_filter=action, client_id=client_id)
    return {
        "summary": audit.summary(),
        "entries": [entry_to_dict(e) for e in entries],
    }


@cxc_router.post("/audit/export")
async def export_audit_log(request: Request):
    """Write the audit trail to a JSON report under reports_dir."""
    path = _orchestrator(request).audit.export_to_file()
    return {"path": str(path)}


@cxc_router.get("/entradas")
async def list_entradas(
    request: Request,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
):
    """List accounting entries, filtered inclusively when both bounds are given."""
    # "from" is a Python keyword, so the bounds may also arrive as raw query params
    date_from = date_from or request.query_params.get("from")
    date_to = date_to or request.query_params.get("to")

    client: AccountingEntriesClient = request.app.state.entries_client
    items = await client.list_entries(date_from, date_to)
    return {"items": items}


@cxc_router.post("/entradas")
async def create_entrada(request: Request, body: EntryCreateRequest):
    """Create a balanced CxC entry for one transaction."""
    client: AccountingEntriesClient = request.app.state.entries_client
    result = await client.create_entry(
        body.idTransaccion,
        body.descripcion,
        body.fechaTransaccion,
        body.monto,
    )
    return {"idAsiento": result.entry_id, "raw": result.raw}


def crud_router(
    name: str,
    model: Type[BaseModel],
    get_repository: Callable[[DataStore], Repository],
    label: str,
    validate: Optional[Callable[[Dict[str, Any]], None]] = None,
    filters: tuple = (),
) -> APIRouter:
    """Build list/get/create/update/delete routes for one store collection."""
    router = APIRouter(prefix=f"/api/{name}", tags=[name])

    @router.get("")
    async def list_records(request: Request) -> List[Dict[str, Any]]:
        criteria = {}
        for key in filters:
            value = request.query_params.get(key)
            if value is not None:
                criteria[key] = int(value) if value.isdigit() else value
        return get_repository(_store(request)).list(**criteria)

    @router.get("/{record_id}")
    async def get_record(request: Request, record_id: int):
        record = get_repository(_store(request)).get(record_id)
        if record is None:
            raise HTTPException(404, f"{label} no encontrado")
        return record

    @router.post("", status_code=201)
    async def create_record(request: Request, payload: model):
        data = payload.model_dump()
        if validate:
            validate(data)
        return get_repository(_store(request)).create(data)

    @router.put("/{record_id}")
    async def update_record(request: Request, record_id: int, payload: model):
        repository = get_repository(_store(request))
        current = repository.get(record_id)
        if current is None:
            raise HTTPException(404, f"{label} no encontrado")

        changes = payload.model_dump(exclude_unset=True)
        if validate:
            validate({**current, **changes})
        return repository.update(record_id, changes)

    @router.delete("/{record_id}")
    async def delete_record(request: Request, record_id: int):
        if not get_repository(_store(request)).delete(record_id):
            raise HTTPException(404, f"{label} no encontrado")
        return {"deleted": True, "id": record_id}

    return router


def create_app(
    settings: Optional[Settings] = None,
    orchestrator: Optional[CxcReconciliationOrchestrator] = None,
    entries_client: Optional[AccountingEntriesClient] = None,
    store: Optional[DataStore] = None,
    configure_logging: bool = True,
) -> FastAPI:
    """
    Build the application.

    Collaborators default to the HTTP clients configured in settings and
    can be injected for tests or alternative backends.
    """
    settings = settings or get_settings()
    if configure_logging:
        setup_logging(settings)

    store = store if store is not None else DataStore()
    if orchestrator is None:
        # Without a transactions backend, consolidate the locally stored ones
        if settings.transactions_api_url:
            source = TransactionSourceClient(settings=settings)
        else:
            source = StoreTransactionSource(store)
        orchestrator = CxcReconciliationOrchestrator(
            LedgerClient(settings=settings), source, settings=settings
        )
    entries_client = entries_client or AccountingEntriesClient(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan manager."""
        logger.info("Starting CxC consolidation API", env=settings.app_env)
        yield
        await orchestrator.close()
        await entries_client.close()
        logger.info("Shutting down CxC consolidation API")

    app = FastAPI(
        title="CxC Consolidation",
        description="Consolidacion de cuentas por cobrar contra el libro contable",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.entries_client = entries_client
    app.state.store = store

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.add_exception_handler(ReconciliationError, reconciliation_error_handler)

    @app.get("/health")
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy", "timestamp": datetime.utcnow().isoformat()}

    app.include_router(cxc_router)
    app.include_router(crud_router(
        "clientes", ClienteIn, lambda s: s.clients, "Cliente", validate=validate_client
    ))
    app.include_router(crud_router(
        "tipos-documentos", TipoDocumentoIn, lambda s: s.document_types, "Tipo de documento"
    ))
    app.include_router(crud_router(
        "asientos-contables", AsientoContableIn, lambda s: s.accounting_entries,
        "Asiento contable", filters=("clienteId",),
    ))
    app.include_router(crud_router(
        "transacciones", TransaccionIn, lambda s: s.transactions,
        "Transaccion", filters=("clienteId",),
    ))

    return app

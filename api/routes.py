"""API routes: dialect listing, DDL generation, layout and live schema import."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.concurrency import run_in_threadpool

from api.auth import require_bearer_token
from erdforge.codec import diagram_to_model, model_to_diagram
from erdforge.ddl import generate_model_ddl
from erdforge.dialects import get_adapter, supported_dialects
from erdforge.errors import SerializationError, UnsupportedDialectError
from erdforge.introspection import ConnectionInfo, import_schema
from erdforge.layout import arrange_tables, resolve_overlaps
from erdforge.model import SchemaModel
from erdforge.schemas import (
    ConnectionRequest,
    DdlRequest,
    DdlResponse,
    DiagramFile,
    ReconcileRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["erd"], dependencies=[Depends(require_bearer_token)])


def _to_model(diagram: DiagramFile) -> SchemaModel:
    try:
        return diagram_to_model(diagram)
    except SerializationError as e:
        raise HTTPException(status_code=422, detail=str(e)) from e


@router.get("/dialects")
async def list_dialects():
    """Names accepted by the dialect / DbType fields."""
    return {"dialects": list(supported_dialects())}


@router.post("/ddl", response_model=DdlResponse)
async def create_ddl(request: DdlRequest):
    """Render the diagram as a CREATE TABLE script for one dialect."""
    model = _to_model(request.diagram)
    try:
        sql = generate_model_ddl(model, request.dialect)
    except UnsupportedDialectError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    return DdlResponse(dialect=get_adapter(request.dialect).name, sql=sql)


@router.post("/layout", response_model=DiagramFile)
async def layout_diagram(diagram: DiagramFile):
    """Re-place every table with the grid scan, in diagram order."""
    model = _to_model(diagram)
    arrange_tables(model.tables)
    return model_to_diagram(model)


@router.post("/layout/reconcile", response_model=DiagramFile)
async def reconcile_layout(request: ReconcileRequest):
    """Push tables apart using the sizes the client actually rendered."""
    model = _to_model(request.diagram)
    sizes = {table_id: (s.width, s.height) for table_id, s in request.sizes.items()}
    passes = resolve_overlaps(model.tables, sizes)
    logger.debug(f"Overlap resolution finished in {passes} passes")
    return model_to_diagram(model)


@router.post("/import", response_model=DiagramFile)
async def import_database(request: ConnectionRequest):
    """Read tables, columns and foreign keys from a live database."""
    try:
        get_adapter(request.db_type)
    except UnsupportedDialectError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    info = ConnectionInfo(
        db_type=request.db_type,
        host=request.host,
        port=request.resolved_port(),
        user_id=request.user_id,
        password=request.password,
        database=request.database,
        schema=request.schema_name,
    )
    result = await run_in_threadpool(import_schema, info)
    if not result.is_success:
        raise HTTPException(
            status_code=502,
            detail={"detail": "Schema import failed", "error": result.error_message},
        )
    return model_to_diagram(result.schema.to_model())

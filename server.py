from contextlib import asynccontextmanager
from typing import Dict, List, Optional, Any

import uvicorn
from fastapi import FastAPI, Header, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from vind.config import get_settings
from vind.database import (
    AlterOperation,
    ColumnDefinition,
    ConstraintSpec,
    Filter,
    SessionManager,
    TableDataQuery,
)
from vind.errors import (
    DatabaseConnectionError,
    DatabaseEngineError,
    NotConnectedError,
    UnsupportedOperationError,
    ValidationError,
    VindError,
)
from vind.utils.logger import setup_logger

logger = setup_logger("vind.server")

# Shared session registry
_session_manager: Optional[SessionManager] = None


def get_session_manager() -> SessionManager:
    global _session_manager
    if _session_manager is None:
        settings = get_settings()
        _session_manager = SessionManager({
            'default_schema': settings.default_schema,
            'connect_timeout': settings.connect_timeout,
            'statement_timeout_ms': settings.statement_timeout_ms
        })
    return _session_manager


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    if _session_manager is not None:
        _session_manager.close_all()


app = FastAPI(title="vind", version="0.1.0", lifespan=lifespan)

SessionHeader = Header(default="default", alias="X-Session-ID")


# Request Models
class ConnectRequest(BaseModel):
    driver: Optional[str] = None
    dsn: str


class QueryRequest(BaseModel):
    sql: str
    returns_rows: Optional[bool] = None


class InsertRecordRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    table: str
    data: Dict[str, Any]


class UpdateRecordRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    table: str
    data: Dict[str, Any]
    where: Dict[str, Any]


class DeleteRecordRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    table: str
    conditions: Dict[str, Any]


class ColumnDefModel(BaseModel):
    name: str
    type: str
    primary_key: bool = False
    not_null: bool = False
    default: Optional[str] = None


class CreateTableRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    table_name: str
    columns: List[ColumnDefModel]


class AlterOperationModel(BaseModel):
    action: str
    column_name: str = ""
    type: Optional[str] = None
    new_name: Optional[str] = None
    not_null: Optional[bool] = None
    default: Optional[str] = None


class AlterTableRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    operations: List[AlterOperationModel]


class AddConstraintRequest(BaseModel):
    schema_name: Optional[str] = Field(default=None, alias="schema")
    table_name: str
    constraint_name: str
    type: str
    columns: List[str] = []
    ref_table: Optional[str] = None
    ref_columns: List[str] = []
    on_delete: Optional[str] = None
    on_update: Optional[str] = None
    check_expr: Optional[str] = None


# Error mapping
def _error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@app.exception_handler(ValidationError)
async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
    return _error_response(400, exc.message)


@app.exception_handler(UnsupportedOperationError)
async def unsupported_error_handler(request: Request, exc: UnsupportedOperationError) -> JSONResponse:
    return _error_response(400, exc.message)


@app.exception_handler(NotConnectedError)
async def not_connected_handler(request: Request, exc: NotConnectedError) -> JSONResponse:
    return _error_response(400, "No active DB connection")


@app.exception_handler(DatabaseConnectionError)
async def connection_error_handler(request: Request, exc: DatabaseConnectionError) -> JSONResponse:
    return _error_response(500, f"Failed to connect: {exc.message}")


@app.exception_handler(DatabaseEngineError)
async def engine_error_handler(request: Request, exc: DatabaseEngineError) -> JSONResponse:
    return _error_response(500, exc.message)


@app.exception_handler(VindError)
async def vind_error_handler(request: Request, exc: VindError) -> JSONResponse:
    return _error_response(500, exc.message)


@app.get("/ping")
def ping():
    return {"message": "pong"}


@app.get("/status")
def status(session_id: str = SessionHeader):
    """Get connection status"""
    manager = get_session_manager()
    return {
        "status": "running",
        "database_connected": manager.is_connected(session_id),
        "active_sessions": manager.active_count
    }


@app.post("/connect")
def connect(req: ConnectRequest, session_id: str = SessionHeader):
    """Connect the caller's session to a database"""
    get_session_manager().connect(req.dsn, driver=req.driver, session_id=session_id)
    return {"message": "Connected successfully"}


@app.post("/disconnect")
def disconnect(session_id: str = SessionHeader):
    get_session_manager().disconnect(session_id)
    return {"message": "Disconnected"}


@app.get("/schemas")
def list_schemas(session_id: str = SessionHeader):
    schemas = get_session_manager().get(session_id).list_schemas()
    return {"schemas": schemas}


@app.get("/tables")
def list_tables(schema: Optional[str] = None, session_id: str = SessionHeader):
    tables = get_session_manager().get(session_id).list_tables(schema)
    return {"tables": tables}


@app.get("/columns")
def list_columns(table: Optional[str] = None, schema: Optional[str] = None,
                 session_id: str = SessionHeader):
    """List columns of a table"""
    adapter = get_session_manager().get(session_id)
    if not table:
        raise ValidationError("Missing 'table' query parameter")

    logger.info(f"Listing columns for {table} (schema: {schema or 'default'})")
    columns = adapter.list_columns(schema, table)
    return {"columns": [c.to_dict() for c in columns]}


@app.post("/query")
def run_query(req: QueryRequest, session_id: str = SessionHeader):
    """Execute arbitrary SQL"""
    adapter = get_session_manager().get(session_id)
    result = adapter.execute_query(req.sql, returns_rows=req.returns_rows)

    if not result.columns:
        return {
            "message": "Query executed successfully",
            "affected_rows": result.affected_rows
        }
    return result.to_dict()


@app.get("/records")
def get_records(table: str, schema: Optional[str] = None, limit: str = "50", offset: str = "0",
                order_by: Optional[str] = None, filters: List[str] = Query(default=[], alias="filter"),
                session_id: str = SessionHeader):
    """Read table rows with filters, ordering and paging"""
    adapter = get_session_manager().get(session_id)

    parsed_filters = []
    malformed = []
    for raw in filters:
        parsed = Filter.parse(raw)
        if parsed is None:
            malformed.append(raw)
        else:
            parsed_filters.append(parsed)

    result = adapter.get_table_data(TableDataQuery(
        table=table,
        schema=schema or "",
        limit=limit,
        offset=offset,
        order_by=order_by,
        filters=parsed_filters
    ))

    response = result.to_dict()
    response["ignored_filters"] = [f.to_dict() for f in result.ignored_filters]
    response["malformed_filters"] = malformed
    return response


@app.post("/records", status_code=201)
def insert_record(req: InsertRecordRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    adapter.insert_record(req.schema_name, req.table, req.data)
    return {"message": "record inserted successfully"}


@app.put("/records")
def update_record(req: UpdateRecordRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    affected = adapter.update_record(req.schema_name, req.table, req.data, req.where)
    return {"message": "record updated successfully", "rows_affected": affected}


@app.delete("/records")
def delete_record(req: DeleteRecordRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    affected = adapter.delete_record(req.schema_name, req.table, req.conditions)
    return {"message": "record deleted successfully", "rows_affected": affected}


@app.post("/api/schema/tables", status_code=201)
def create_table(req: CreateTableRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    columns = [
        ColumnDefinition(
            name=c.name,
            type=c.type,
            primary_key=c.primary_key,
            not_null=c.not_null,
            default=c.default
        )
        for c in req.columns
    ]
    adapter.create_table(req.schema_name, req.table_name, columns)
    return {"message": "table created successfully", "table": req.table_name}


@app.patch("/api/schema/tables/{table_name}")
def alter_table(table_name: str, req: AlterTableRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    operations = [
        AlterOperation(
            action=op.action,
            column_name=op.column_name,
            type=op.type,
            new_name=op.new_name,
            not_null=op.not_null,
            default=op.default
        )
        for op in req.operations
    ]
    adapter.alter_table(req.schema_name, table_name, operations)
    return {"message": "table altered successfully", "table": table_name}


@app.delete("/api/schema/tables/{table_name}")
def drop_table(table_name: str, schema: Optional[str] = None, cascade: bool = False,
               session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    adapter.drop_table(schema, table_name, cascade)
    return {"message": "table dropped successfully", "table": table_name}


@app.post("/api/schema/constraints", status_code=201)
def add_constraint(req: AddConstraintRequest, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    adapter.add_constraint(ConstraintSpec(
        table_name=req.table_name,
        constraint_name=req.constraint_name,
        type=req.type,
        columns=list(req.columns),
        ref_table=req.ref_table,
        ref_columns=list(req.ref_columns),
        on_delete=req.on_delete,
        on_update=req.on_update,
        check_expr=req.check_expr,
        schema=req.schema_name or ""
    ))
    return {"message": "constraint added successfully", "constraint": req.constraint_name}


@app.delete("/api/schema/constraints/{table_name}/{constraint_name}")
def drop_constraint(table_name: str, constraint_name: str, schema: Optional[str] = None,
                    cascade: bool = False, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    adapter.drop_constraint(schema, table_name, constraint_name, cascade)
    return {"message": "constraint dropped successfully", "constraint": constraint_name}


@app.get("/api/schema/{table_name}/constraints")
def list_constraints(table_name: str, schema: Optional[str] = None, session_id: str = SessionHeader):
    adapter = get_session_manager().get(session_id)
    constraints = adapter.list_constraints(schema, table_name)
    return {"constraints": [c.to_dict() for c in constraints]}


def run():
    """Run the API server"""
    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()

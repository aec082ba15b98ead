from datetime import datetime, timezone
from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse
from typing import Optional

from order_desk.presentation.schemas import DeleteRequest, InsertRequest, TableRequest, UpdateRequest
from order_desk.domain.exceptions import PersistenceError

router = APIRouter()


def _storage(request: Request):
    return request.app.state.storage


def _writer_lock(request: Request):
    # Записи фасада не должны попадать между чтением и commit use case
    return request.app.state.uow.lock


def _fail(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "message": message})


@router.get("/")
@router.get("/health")
async def health():
    return {
        "success": True,
        "message": "Server is running",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


@router.post("/data/create-table")
async def create_table(body: TableRequest, request: Request):
    if not body.table:
        return _fail(400, "Table name required")
    try:
        async with _writer_lock(request):
            await _storage(request).create_table(body.table)
    except PersistenceError as e:
        return _fail(503, str(e))
    return {"success": True, "message": f"Table {body.table} created"}


@router.post("/data/insert")
async def insert_row(body: InsertRequest, request: Request):
    if not body.table or body.data is None:
        return _fail(400, "Table and data required")
    try:
        async with _writer_lock(request):
            row_id = await _storage(request).insert_row(body.table, body.data)
    except PersistenceError as e:
        return _fail(503, str(e))
    return {"success": True, "message": "Data inserted", "id": row_id}


@router.get("/data/read")
async def read_table(request: Request, table: Optional[str] = Query(None)):
    if not table:
        return _fail(400, "Table parameter required")
    rows = await _storage(request).read_table(table)
    return {"success": True, "data": rows}


@router.put("/data/update")
async def update_rows(body: UpdateRequest, request: Request):
    if not body.table or not body.where or body.data is None:
        return _fail(400, "Invalid parameters or table not found")
    try:
        async with _writer_lock(request):
            count = await _storage(request).update_rows(body.table, body.where, body.data)
    except PersistenceError as e:
        return _fail(503, str(e))
    return {"success": True, "message": f"{count} records updated", "count": count}


@router.delete("/data/delete")
async def delete_rows(body: DeleteRequest, request: Request):
    if not body.table or not body.where:
        return _fail(400, "Invalid parameters or table not found")
    try:
        async with _writer_lock(request):
            count = await _storage(request).delete_rows(body.table, body.where)
    except PersistenceError as e:
        return _fail(503, str(e))
    return {"success": True, "message": f"{count} records deleted", "count": count}

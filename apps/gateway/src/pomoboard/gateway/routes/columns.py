"""看板列路由

GET    /api/columns             列表（按 order）
POST   /api/columns             创建（状态标识不可重复）
PATCH  /api/columns/{column_id} 部分更新
DELETE /api/columns/{column_id} 删除非默认列：先把该列任务改回 TODO，再删除列
"""

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from pomoboard.core.exceptions import BoardValidationError, EntityNotFoundError
from pomoboard.core.models import BoardColumn, NewColumn, TaskStatus
from pydantic import BaseModel

from ..deps import get_gateway
from ..errors import error_response

log = structlog.get_logger()

router = APIRouter()


class ColumnListResponse(BaseModel):
    columns: list[BoardColumn]


class ColumnIdResponse(BaseModel):
    column_id: str


@router.get("/api/columns", response_model=ColumnListResponse)
async def list_columns(gateway=Depends(get_gateway)):
    return ColumnListResponse(columns=await gateway.load_columns())


@router.post("/api/columns", response_model=ColumnIdResponse, status_code=201)
async def create_column(column: NewColumn, gateway=Depends(get_gateway)):
    if column.status in {c.status for c in await gateway.load_columns()}:
        raise BoardValidationError(f"Status {column.status} already has a column", field="status")
    return ColumnIdResponse(column_id=await gateway.create_column(column))


@router.patch("/api/columns/{column_id}", response_model=BoardColumn)
async def update_column(
    column_id: str,
    fields: dict[str, Any] = Body(...),
    gateway=Depends(get_gateway),
):
    await gateway.update_column(column_id, fields)
    return next(c for c in await gateway.load_columns() if c.column_id == column_id)


@router.delete("/api/columns/{column_id}", status_code=204)
async def delete_column(column_id: str, gateway=Depends(get_gateway)):
    """删除非默认列

    - 默认列返回 409
    - 任务重新分配是独立调用，任一失败时列保留并返回错误
    """
    column = next((c for c in await gateway.load_columns() if c.column_id == column_id), None)
    if column is None:
        raise EntityNotFoundError("columns", column_id)
    if column.is_default:
        return error_response(
            409,
            "DEFAULT_COLUMN",
            f"Column {column_id} is a default column and cannot be deleted",
        )

    task_ids = [t.task_id for t in await gateway.load_tasks() if t.status == column.status]
    results = await asyncio.gather(
        *(gateway.update_task(tid, {"status": TaskStatus.TODO.value}) for tid in task_ids),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            log.warning("column_reassign_failed", column_id=column_id, error=str(result))
            raise result

    await gateway.delete_column(column_id)
    log.info("column_deleted", column_id=column_id, reassigned=len(task_ids))

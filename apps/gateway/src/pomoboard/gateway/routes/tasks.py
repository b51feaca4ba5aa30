"""任务路由

GET    /api/tasks                          活跃任务列表（created_at 倒序）
POST   /api/tasks                          创建任务
PATCH  /api/tasks/{task_id}                部分更新（None 字段被拒绝）
DELETE /api/tasks/{task_id}                软删除：移动到已删除集合
POST   /api/tasks/{task_id}/complete       完成：复制到已完成集合 + 状态改为 DONE
POST   /api/tasks/{task_id}/pomodoro/sessions  追加番茄钟会话
PUT    /api/tasks/{task_id}/pomodoro/state     同步计时器快照
GET    /api/tasks/deleted|completed        历史集合
POST   /api/tasks/deleted|completed/{id}/restore  恢复为新任务
DELETE /api/tasks/deleted|completed/{id}   永久删除
"""

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from pomoboard.core.exceptions import BoardValidationError, EntityNotFoundError
from pomoboard.core.models import (
    NewTask,
    PomodoroSession,
    PomodoroStatus,
    SessionType,
    Task,
    TaskStatus,
    is_done,
)
from pomoboard.core.store import SqliteGateway
from pydantic import BaseModel, Field

from ..deps import get_gateway
from ..errors import error_response

log = structlog.get_logger()

router = APIRouter()


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[Task]


class TaskIdResponse(BaseModel):
    """创建/恢复响应"""

    task_id: str


class CompleteResponse(BaseModel):
    """完成响应 -- 复制失败不影响已持久化的状态"""

    task_id: str
    status: str
    completed_copy: bool


class PomodoroStateUpdate(BaseModel):
    """计时器快照"""

    status: PomodoroStatus
    current_time: int = Field(ge=0, description="当前会话已计时毫秒数")
    phase: SessionType = Field(default=SessionType.WORK, description="计时阶段")


async def _find_task(gateway: SqliteGateway, task_id: str) -> Task:
    task = next((t for t in await gateway.load_tasks() if t.task_id == task_id), None)
    if task is None:
        raise EntityNotFoundError("tasks", task_id)
    return task


async def _check_references(gateway: SqliteGateway, fields: dict[str, Any]) -> None:
    """project_id 必须指向存在的项目，status 必须匹配现有看板列"""
    if "project_id" in fields:
        project_ids = {p.project_id for p in await gateway.load_projects()}
        if fields["project_id"] not in project_ids:
            raise BoardValidationError(
                f"Project {fields['project_id']} does not exist", field="project_id"
            )
    if "status" in fields:
        statuses = {c.status for c in await gateway.load_columns()}
        if fields["status"] not in statuses:
            raise BoardValidationError(
                f"No column with status {fields['status']}", field="status"
            )


# ---- 历史集合（需在 /{task_id} 路由之前注册） ----


@router.get("/api/tasks/deleted", response_model=TaskListResponse)
async def list_deleted_tasks(gateway=Depends(get_gateway)):
    return TaskListResponse(tasks=await gateway.load_deleted_tasks())


@router.get("/api/tasks/completed", response_model=TaskListResponse)
async def list_completed_tasks(gateway=Depends(get_gateway)):
    return TaskListResponse(tasks=await gateway.load_completed_tasks())


@router.post("/api/tasks/deleted/{deleted_id}/restore", response_model=TaskIdResponse)
async def restore_deleted_task(deleted_id: str, gateway=Depends(get_gateway)):
    """从已删除集合恢复（新 ID）"""
    return TaskIdResponse(task_id=await gateway.restore_deleted_task(deleted_id))


@router.post("/api/tasks/completed/{completed_id}/restore", response_model=TaskIdResponse)
async def restore_completed_task(completed_id: str, gateway=Depends(get_gateway)):
    """从已完成集合恢复（新 ID，状态重置为 TODO）"""
    return TaskIdResponse(task_id=await gateway.restore_completed_task(completed_id))


@router.delete("/api/tasks/deleted/{deleted_id}", status_code=204)
async def permanently_delete_task(deleted_id: str, gateway=Depends(get_gateway)):
    await gateway.permanently_delete_task(deleted_id)


@router.delete("/api/tasks/completed/{completed_id}", status_code=204)
async def permanently_delete_completed_task(completed_id: str, gateway=Depends(get_gateway)):
    await gateway.permanently_delete_completed_task(completed_id)


# ---- 活跃任务 ----


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(gateway=Depends(get_gateway)):
    return TaskListResponse(tasks=await gateway.load_tasks())


@router.post("/api/tasks", response_model=TaskIdResponse, status_code=201)
async def create_task(task: NewTask, gateway=Depends(get_gateway)):
    """创建任务；项目与状态在写入前校验"""
    if not task.project_id:
        raise BoardValidationError("project_id is required", field="project_id")
    await _check_references(gateway, {"project_id": task.project_id, "status": task.status})
    task_id = await gateway.create_task(task)
    log.info("task_created", task_id=task_id, project_id=task.project_id)
    return TaskIdResponse(task_id=task_id)


@router.patch("/api/tasks/{task_id}", response_model=Task)
async def update_task(
    task_id: str,
    fields: dict[str, Any] = Body(...),
    gateway=Depends(get_gateway),
):
    """部分更新任务字段"""
    await _check_references(gateway, fields)
    await gateway.update_task(task_id, fields)
    return await _find_task(gateway, task_id)


@router.delete("/api/tasks/{task_id}", status_code=204)
async def soft_delete_task(task_id: str, gateway=Depends(get_gateway)):
    """软删除 -- 移动到已删除集合"""
    task = await _find_task(gateway, task_id)
    await gateway.move_task_to_deleted(task_id, task)
    log.info("task_soft_deleted", task_id=task_id)


@router.post("/api/tasks/{task_id}/complete", response_model=CompleteResponse)
async def complete_task(task_id: str, gateway=Depends(get_gateway)):
    """完成任务

    复制到已完成集合与更新状态是两个独立调用：
    - 状态更新失败返回错误
    - 仅复制失败时返回 200 且 completed_copy=false
    - 已是 DONE 的任务返回 409
    """
    task = await _find_task(gateway, task_id)
    if is_done(task.status):
        return error_response(409, "TASK_ALREADY_DONE", f"Task {task_id} is already done")

    copy_result, status_result = await asyncio.gather(
        gateway.copy_task_to_completed(task_id, task),
        gateway.update_task(task_id, {"status": TaskStatus.DONE.value}),
        return_exceptions=True,
    )
    if isinstance(status_result, BaseException):
        raise status_result
    if isinstance(copy_result, BaseException):
        log.warning("completed_copy_failed", task_id=task_id, error=str(copy_result))

    return CompleteResponse(
        task_id=task_id,
        status=TaskStatus.DONE.value,
        completed_copy=not isinstance(copy_result, BaseException),
    )


@router.post("/api/tasks/{task_id}/pomodoro/sessions", response_model=Task)
async def record_pomodoro_session(
    task_id: str,
    session: PomodoroSession,
    gateway=Depends(get_gateway),
):
    """追加会话、递增计数并清空进行中字段"""
    if session.task_id != task_id:
        raise BoardValidationError("session.task_id does not match the path", field="task_id")
    await gateway.update_task_pomodoro(task_id, session)
    return await _find_task(gateway, task_id)


@router.put("/api/tasks/{task_id}/pomodoro/state", status_code=204)
async def sync_pomodoro_state(
    task_id: str,
    body: PomodoroStateUpdate,
    gateway=Depends(get_gateway),
):
    await gateway.update_task_pomodoro_state(task_id, body.status, body.current_time, body.phase)

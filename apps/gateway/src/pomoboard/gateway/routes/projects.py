"""项目路由

GET    /api/projects              项目列表（按 order）
POST   /api/projects              创建项目
PUT    /api/projects/order        按给定 ID 顺序重排（order 依次为 0..n-1）
PATCH  /api/projects/{project_id} 部分更新
DELETE /api/projects/{project_id} 删除（不级联删除任务）
"""

import asyncio
from typing import Any

import structlog
from fastapi import APIRouter, Body, Depends
from pomoboard.core.exceptions import BoardValidationError
from pomoboard.core.models import NewProject, Project
from pydantic import BaseModel, Field

from ..deps import get_gateway

log = structlog.get_logger()

router = APIRouter()


class ProjectListResponse(BaseModel):
    projects: list[Project]


class ProjectIdResponse(BaseModel):
    project_id: str


class ProjectOrder(BaseModel):
    """重排请求 -- 完整的项目 ID 顺序"""

    project_ids: list[str] = Field(description="新的项目顺序")


@router.get("/api/projects", response_model=ProjectListResponse)
async def list_projects(gateway=Depends(get_gateway)):
    return ProjectListResponse(projects=await gateway.load_projects())


@router.post("/api/projects", response_model=ProjectIdResponse, status_code=201)
async def create_project(project: NewProject, gateway=Depends(get_gateway)):
    if project.order is None:
        orders = [p.order for p in await gateway.load_projects() if p.order is not None]
        project = project.model_copy(update={"order": (max(orders) + 1) if orders else 0})
    return ProjectIdResponse(project_id=await gateway.create_project(project))


@router.put("/api/projects/order", response_model=ProjectListResponse)
async def reorder_projects(body: ProjectOrder, gateway=Depends(get_gateway)):
    """并发独立持久化每个项目的新 order；任一失败返回错误，已成功的不回退"""
    known = {p.project_id for p in await gateway.load_projects()}
    unknown = [pid for pid in body.project_ids if pid not in known]
    if unknown:
        raise BoardValidationError(f"Unknown projects: {', '.join(unknown)}", field="project_ids")

    results = await asyncio.gather(
        *(
            gateway.update_project_order(project_id, float(index))
            for index, project_id in enumerate(body.project_ids)
        ),
        return_exceptions=True,
    )
    for result in results:
        if isinstance(result, BaseException):
            log.warning("project_reorder_failed", error=str(result))
            raise result
    return ProjectListResponse(projects=await gateway.load_projects())


@router.patch("/api/projects/{project_id}", response_model=Project)
async def update_project(
    project_id: str,
    fields: dict[str, Any] = Body(...),
    gateway=Depends(get_gateway),
):
    await gateway.update_project(project_id, fields)
    return next(p for p in await gateway.load_projects() if p.project_id == project_id)


@router.delete("/api/projects/{project_id}", status_code=204)
async def delete_project(project_id: str, gateway=Depends(get_gateway)):
    await gateway.delete_project(project_id)
    log.info("project_deleted", project_id=project_id)

"""DocumentGateway -- 文档库风格的内存实现

每个集合是 doc_id -> JSON 文档 的映射；读写都做深拷贝，
调用方拿到的实体与存储互不影响。
已删除/已完成集合的记录沿用来源任务的 ID（set 语义）。
"""

import asyncio
import copy
from typing import Any

import structlog
from ulid import ULID

from ..exceptions import EntityNotFoundError
from ..models import (
    EDITABLE_COLUMN_FIELDS,
    EDITABLE_PROJECT_FIELDS,
    EDITABLE_TASK_FIELDS,
    BoardColumn,
    NewColumn,
    NewProject,
    NewTask,
    PomodoroSession,
    PomodoroStatus,
    Project,
    SessionType,
    Task,
    TaskStatus,
)
from ..timeutil import now_ms
from .payload import (
    apply_pomodoro_session,
    check_payload,
    merge_model,
    to_completed_record,
    to_deleted_record,
    to_restored_task,
)

log = structlog.get_logger()

TASKS_COLLECTION = "tasks"
COMPLETED_COLLECTION = "completed_tasks"
DELETED_COLLECTION = "deleted_tasks"
PROJECTS_COLLECTION = "projects"
COLUMNS_COLLECTION = "columns"


class DocumentGateway:
    """PersistenceGateway 的文档库风格实现（进程内存）"""

    def __init__(self, latency_s: float = 0.0) -> None:
        """
        Args:
            latency_s: 每次调用前的模拟延迟（秒），0 时仍让出一次事件循环
        """
        self._latency_s = latency_s
        self._collections: dict[str, dict[str, dict[str, Any]]] = {
            TASKS_COLLECTION: {},
            COMPLETED_COLLECTION: {},
            DELETED_COLLECTION: {},
            PROJECTS_COLLECTION: {},
            COLUMNS_COLLECTION: {},
        }

    # ---- 文档操作 ----

    async def _io(self) -> None:
        await asyncio.sleep(self._latency_s)

    def _get(self, collection: str, doc_id: str) -> dict[str, Any]:
        doc = self._collections[collection].get(doc_id)
        if doc is None:
            raise EntityNotFoundError(collection, doc_id)
        return copy.deepcopy(doc)

    def _set(self, collection: str, doc_id: str, doc: dict[str, Any]) -> None:
        self._collections[collection][doc_id] = copy.deepcopy(doc)

    def _remove(self, collection: str, doc_id: str) -> None:
        if self._collections[collection].pop(doc_id, None) is None:
            raise EntityNotFoundError(collection, doc_id)

    def _all(self, collection: str) -> list[dict[str, Any]]:
        return [copy.deepcopy(doc) for doc in self._collections[collection].values()]

    def _set_task(self, collection: str, task: Task) -> None:
        self._set(collection, task.task_id, task.model_dump(mode="json"))

    def _get_task(self, collection: str, task_id: str) -> Task:
        return Task.model_validate(self._get(collection, task_id))

    # ---- 加载 ----

    async def load_tasks(self) -> list[Task]:
        await self._io()
        tasks = [Task.model_validate(doc) for doc in self._all(TASKS_COLLECTION)]
        return sorted(tasks, key=lambda t: t.created_at, reverse=True)

    async def load_projects(self) -> list[Project]:
        await self._io()
        projects = [Project.model_validate(doc) for doc in self._all(PROJECTS_COLLECTION)]
        return sorted(projects, key=lambda p: (p.order is None, p.order or 0))

    async def load_columns(self) -> list[BoardColumn]:
        await self._io()
        columns = [BoardColumn.model_validate(doc) for doc in self._all(COLUMNS_COLLECTION)]
        return sorted(columns, key=lambda c: (c.order, c.created_at))

    async def load_completed_tasks(self) -> list[Task]:
        await self._io()
        tasks = [Task.model_validate(doc) for doc in self._all(COMPLETED_COLLECTION)]
        return sorted(tasks, key=lambda t: t.completed_at or 0, reverse=True)

    async def load_deleted_tasks(self) -> list[Task]:
        await self._io()
        tasks = [Task.model_validate(doc) for doc in self._all(DELETED_COLLECTION)]
        return sorted(tasks, key=lambda t: t.deleted_at or 0, reverse=True)

    # ---- 任务 ----

    async def create_task(self, task: NewTask) -> str:
        await self._io()
        task_id = str(ULID())
        created = Task(task_id=task_id, created_at=now_ms(), **task.model_dump())
        self._set_task(TASKS_COLLECTION, created)
        return task_id

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        await self._io()
        check_payload(fields, EDITABLE_TASK_FIELDS)
        task = self._get_task(TASKS_COLLECTION, task_id)
        self._set_task(TASKS_COLLECTION, merge_model(task, fields))

    async def delete_task(self, task_id: str) -> None:
        await self._io()
        self._remove(TASKS_COLLECTION, task_id)

    # ---- 已删除集合 ----

    async def move_task_to_deleted(self, task_id: str, task: Task) -> None:
        await self._io()
        # 先确认来源存在，再复制后移除
        self._get(TASKS_COLLECTION, task_id)
        self._set_task(DELETED_COLLECTION, to_deleted_record(task, now_ms()))
        self._remove(TASKS_COLLECTION, task_id)

    async def restore_deleted_task(self, deleted_id: str) -> str:
        await self._io()
        record = self._get_task(DELETED_COLLECTION, deleted_id)
        restored = to_restored_task(record, str(ULID()), now_ms())
        self._set_task(TASKS_COLLECTION, restored)
        self._remove(DELETED_COLLECTION, deleted_id)
        log.info(
            "deleted_task_restored",
            deleted_id=deleted_id,
            new_task_id=restored.task_id,
        )
        return restored.task_id

    async def permanently_delete_task(self, deleted_id: str) -> None:
        await self._io()
        self._remove(DELETED_COLLECTION, deleted_id)

    # ---- 已完成集合 ----

    async def copy_task_to_completed(self, task_id: str, task: Task) -> None:
        await self._io()
        self._set_task(COMPLETED_COLLECTION, to_completed_record(task, now_ms()))

    async def restore_completed_task(self, completed_id: str) -> str:
        await self._io()
        record = self._get_task(COMPLETED_COLLECTION, completed_id)
        restored = to_restored_task(
            record, str(ULID()), now_ms(), status=TaskStatus.TODO.value
        )
        self._set_task(TASKS_COLLECTION, restored)
        self._remove(COMPLETED_COLLECTION, completed_id)
        log.info(
            "completed_task_restored",
            completed_id=completed_id,
            new_task_id=restored.task_id,
        )
        return restored.task_id

    async def permanently_delete_completed_task(self, completed_id: str) -> None:
        await self._io()
        self._remove(COMPLETED_COLLECTION, completed_id)

    # ---- 项目 ----

    async def create_project(self, project: NewProject) -> str:
        await self._io()
        project_id = str(ULID())
        created = Project(project_id=project_id, **project.model_dump())
        self._set(PROJECTS_COLLECTION, project_id, created.model_dump(mode="json"))
        return project_id

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> None:
        await self._io()
        check_payload(fields, EDITABLE_PROJECT_FIELDS)
        project = Project.model_validate(self._get(PROJECTS_COLLECTION, project_id))
        updated = merge_model(project, fields)
        self._set(PROJECTS_COLLECTION, project_id, updated.model_dump(mode="json"))

    async def delete_project(self, project_id: str) -> None:
        await self._io()
        self._remove(PROJECTS_COLLECTION, project_id)

    async def update_project_order(self, project_id: str, order: float) -> None:
        await self.update_project(project_id, {"order": order})

    # ---- 看板列 ----

    async def create_column(self, column: NewColumn) -> str:
        await self._io()
        column_id = str(ULID())
        created = BoardColumn(column_id=column_id, created_at=now_ms(), **column.model_dump())
        self._set(COLUMNS_COLLECTION, column_id, created.model_dump(mode="json"))
        return column_id

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> None:
        await self._io()
        check_payload(fields, EDITABLE_COLUMN_FIELDS)
        column = BoardColumn.model_validate(self._get(COLUMNS_COLLECTION, column_id))
        updated = merge_model(column, fields)
        self._set(COLUMNS_COLLECTION, column_id, updated.model_dump(mode="json"))

    async def delete_column(self, column_id: str) -> None:
        await self._io()
        self._remove(COLUMNS_COLLECTION, column_id)

    # ---- 番茄钟 ----

    async def update_task_pomodoro(self, task_id: str, session: PomodoroSession) -> None:
        await self._io()
        task = self._get_task(TASKS_COLLECTION, task_id)
        self._set_task(TASKS_COLLECTION, apply_pomodoro_session(task, session))

    async def update_task_pomodoro_state(
        self,
        task_id: str,
        status: PomodoroStatus,
        current_time: int,
        phase: SessionType = SessionType.WORK,
    ) -> None:
        await self.update_task(
            task_id,
            {
                "pomodoro_status": status,
                "current_pomodoro_time": current_time,
                "pomodoro_phase": phase,
            },
        )

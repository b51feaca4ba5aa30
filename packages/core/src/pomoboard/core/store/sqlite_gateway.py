"""SqliteGateway -- PersistenceGateway 的 SQLite 实现

每次网关调用是一个独立事务：成功即提交，失败回滚并包装为 GatewayError。
部分更新先读出整行、合并字段、重新校验，再整行写回。
"""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite
import structlog
from ulid import ULID

from ..exceptions import EntityNotFoundError, GatewayError
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
from .sqlite_init import COMPLETED_TABLE, DELETED_TABLE, TASKS_TABLE

log = structlog.get_logger()

# 任务表列顺序，与 sqlite_init 中的 DDL 对齐
_TASK_FIELDS: tuple[str, ...] = (
    "task_id",
    "created_at",
    "title",
    "description",
    "status",
    "priority",
    "assignee",
    "creator",
    "project_id",
    "type",
    "tracking_preset",
    "start_date",
    "due_date",
    "images",
    "completed_at",
    "deleted_at",
    "original_id",
    "comments",
    "pomodoro_sessions",
    "total_pomodoros",
    "current_pomodoro_time",
    "pomodoro_status",
    "pomodoro_phase",
)
_JSON_FIELDS = frozenset({"images", "comments", "pomodoro_sessions"})


class SqliteGateway:
    """PersistenceGateway 的 SQLite 实现"""

    def __init__(self, conn: aiosqlite.Connection) -> None:
        self._conn = conn
        # 单连接上的事务互不交错
        self._lock = asyncio.Lock()

    @asynccontextmanager
    async def _transaction(self, operation: str) -> AsyncIterator[None]:
        """单次网关调用的事务边界"""
        async with self._lock:
            try:
                yield
                await self._conn.commit()
            except GatewayError:
                await self._conn.rollback()
                raise
            except aiosqlite.Error as e:
                await self._conn.rollback()
                log.error("sqlite_gateway_failed", operation=operation, error=str(e))
                raise GatewayError(str(e), operation=operation) from e

    # ---- 行转换 ----

    @staticmethod
    def _task_to_params(task: Task) -> tuple[Any, ...]:
        data = task.model_dump(mode="json")
        return tuple(
            json.dumps(data[name]) if name in _JSON_FIELDS else data[name]
            for name in _TASK_FIELDS
        )

    @staticmethod
    def _row_to_task(row: aiosqlite.Row) -> Task:
        """将数据库行转换为 Task 模型"""
        data = {name: row[name] for name in _TASK_FIELDS}
        for name in _JSON_FIELDS:
            data[name] = json.loads(data[name])
        return Task.model_validate(data)

    @staticmethod
    def _row_to_project(row: aiosqlite.Row) -> Project:
        return Project(
            project_id=row["project_id"],
            name=row["name"],
            color=row["color"],
            order=row["sort_order"],
        )

    @staticmethod
    def _row_to_column(row: aiosqlite.Row) -> BoardColumn:
        return BoardColumn(
            column_id=row["column_id"],
            name=row["name"],
            color=row["color"],
            icon=row["icon"],
            order=row["sort_order"],
            is_default=bool(row["is_default"]),
            status=row["status"],
            created_at=row["created_at"],
        )

    # ---- 任务表通用操作 ----

    async def _put_task(self, table: str, task: Task) -> None:
        columns = ", ".join(_TASK_FIELDS)
        placeholders = ", ".join("?" for _ in _TASK_FIELDS)
        await self._conn.execute(
            f"INSERT OR REPLACE INTO {table} ({columns}) VALUES ({placeholders})",
            self._task_to_params(task),
        )

    async def _get_task(self, table: str, task_id: str) -> Task:
        cursor = await self._conn.execute(
            f"SELECT * FROM {table} WHERE task_id = ?",
            (task_id,),
        )
        row = await cursor.fetchone()
        if row is None:
            raise EntityNotFoundError(table, task_id)
        return self._row_to_task(row)

    async def _delete_row(self, table: str, key: str, entity_id: str) -> None:
        cursor = await self._conn.execute(
            f"DELETE FROM {table} WHERE {key} = ?",
            (entity_id,),
        )
        if cursor.rowcount == 0:
            raise EntityNotFoundError(table, entity_id)

    async def _list_tasks(self, table: str, order_by: str) -> list[Task]:
        cursor = await self._conn.execute(f"SELECT * FROM {table} ORDER BY {order_by}")
        rows = await cursor.fetchall()
        return [self._row_to_task(row) for row in rows]

    # ---- 加载 ----

    async def load_tasks(self) -> list[Task]:
        async with self._transaction("load_tasks"):
            return await self._list_tasks(TASKS_TABLE, "created_at DESC")

    async def load_projects(self) -> list[Project]:
        async with self._transaction("load_projects"):
            cursor = await self._conn.execute(
                "SELECT * FROM projects ORDER BY sort_order IS NULL, sort_order"
            )
            rows = await cursor.fetchall()
            return [self._row_to_project(row) for row in rows]

    async def load_columns(self) -> list[BoardColumn]:
        async with self._transaction("load_columns"):
            cursor = await self._conn.execute(
                "SELECT * FROM columns ORDER BY sort_order, created_at"
            )
            rows = await cursor.fetchall()
            return [self._row_to_column(row) for row in rows]

    async def load_completed_tasks(self) -> list[Task]:
        async with self._transaction("load_completed_tasks"):
            return await self._list_tasks(COMPLETED_TABLE, "completed_at DESC")

    async def load_deleted_tasks(self) -> list[Task]:
        async with self._transaction("load_deleted_tasks"):
            return await self._list_tasks(DELETED_TABLE, "deleted_at DESC")

    # ---- 任务 ----

    async def create_task(self, task: NewTask) -> str:
        task_id = str(ULID())
        async with self._transaction("create_task"):
            await self._put_task(
                TASKS_TABLE,
                Task(task_id=task_id, created_at=now_ms(), **task.model_dump()),
            )
        return task_id

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        check_payload(fields, EDITABLE_TASK_FIELDS)
        async with self._transaction("update_task"):
            task = await self._get_task(TASKS_TABLE, task_id)
            await self._put_task(TASKS_TABLE, merge_model(task, fields))

    async def delete_task(self, task_id: str) -> None:
        async with self._transaction("delete_task"):
            await self._delete_row(TASKS_TABLE, "task_id", task_id)

    # ---- 已删除集合 ----

    async def move_task_to_deleted(self, task_id: str, task: Task) -> None:
        async with self._transaction("move_task_to_deleted"):
            await self._put_task(DELETED_TABLE, to_deleted_record(task, now_ms()))
            await self._delete_row(TASKS_TABLE, "task_id", task_id)

    async def restore_deleted_task(self, deleted_id: str) -> str:
        async with self._transaction("restore_deleted_task"):
            record = await self._get_task(DELETED_TABLE, deleted_id)
            restored = to_restored_task(record, str(ULID()), now_ms())
            await self._put_task(TASKS_TABLE, restored)
            await self._delete_row(DELETED_TABLE, "task_id", deleted_id)
        log.info(
            "deleted_task_restored",
            deleted_id=deleted_id,
            new_task_id=restored.task_id,
        )
        return restored.task_id

    async def permanently_delete_task(self, deleted_id: str) -> None:
        async with self._transaction("permanently_delete_task"):
            await self._delete_row(DELETED_TABLE, "task_id", deleted_id)

    # ---- 已完成集合 ----

    async def copy_task_to_completed(self, task_id: str, task: Task) -> None:
        async with self._transaction("copy_task_to_completed"):
            await self._put_task(COMPLETED_TABLE, to_completed_record(task, now_ms()))

    async def restore_completed_task(self, completed_id: str) -> str:
        async with self._transaction("restore_completed_task"):
            record = await self._get_task(COMPLETED_TABLE, completed_id)
            restored = to_restored_task(
                record, str(ULID()), now_ms(), status=TaskStatus.TODO.value
            )
            await self._put_task(TASKS_TABLE, restored)
            await self._delete_row(COMPLETED_TABLE, "task_id", completed_id)
        log.info(
            "completed_task_restored",
            completed_id=completed_id,
            new_task_id=restored.task_id,
        )
        return restored.task_id

    async def permanently_delete_completed_task(self, completed_id: str) -> None:
        async with self._transaction("permanently_delete_completed_task"):
            await self._delete_row(COMPLETED_TABLE, "task_id", completed_id)

    # ---- 项目 ----

    async def _put_project(self, project: Project) -> None:
        await self._conn.execute(
            """
            INSERT OR REPLACE INTO projects (project_id, name, color, sort_order)
            VALUES (?, ?, ?, ?)
            """,
            (project.project_id, project.name, project.color, project.order),
        )

    async def create_project(self, project: NewProject) -> str:
        project_id = str(ULID())
        async with self._transaction("create_project"):
            await self._put_project(Project(project_id=project_id, **project.model_dump()))
        return project_id

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> None:
        check_payload(fields, EDITABLE_PROJECT_FIELDS)
        async with self._transaction("update_project"):
            cursor = await self._conn.execute(
                "SELECT * FROM projects WHERE project_id = ?",
                (project_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                raise EntityNotFoundError("projects", project_id)
            await self._put_project(merge_model(self._row_to_project(row), fields))

    async def delete_project(self, project_id: str) -> None:
        async with self._transaction("delete_project"):
            await self._delete_row("projects", "project_id", project_id)

    async def update_project_order(self, project_id: str, order: float) -> None:
        await self.update_project(project_id, {"order": order})

    # ---- 看板列 ----

    async def _put_column(self, column: BoardColumn) -> None:
        await self._conn.execute(
            """
            INSERT OR REPLACE INTO columns (column_id, name, color, icon, sort_order,
                                            is_default, status, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
            """,
            (
                column.column_id,
                column.name,
                column.color,
                column.icon,
                column.order,
                int(column.is_default),
                column.status,
                column.created_at,
            ),
        )

    async def create_column(self, column: NewColumn) -> str:
        column_id = str(ULID())
        async with self._transaction("create_column"):
            await self._put_column(
                BoardColumn(column_id=column_id, created_at=now_ms(), **column.model_dump())
            )
        return column_id

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> None:
        check_payload(fields, EDITABLE_COLUMN_FIELDS)
        async with self._transaction("update_column"):
            cursor = await self._conn.execute(
                "SELECT * FROM columns WHERE column_id = ?",
                (column_id,),
            )
            row = await cursor.fetchone()
            if row is None:
                raise EntityNotFoundError("columns", column_id)
            await self._put_column(merge_model(self._row_to_column(row), fields))

    async def delete_column(self, column_id: str) -> None:
        async with self._transaction("delete_column"):
            await self._delete_row("columns", "column_id", column_id)

    # ---- 番茄钟 ----

    async def update_task_pomodoro(self, task_id: str, session: PomodoroSession) -> None:
        async with self._transaction("update_task_pomodoro"):
            task = await self._get_task(TASKS_TABLE, task_id)
            await self._put_task(TASKS_TABLE, apply_pomodoro_session(task, session))

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

"""BoardState -- 协调器持有的本地状态

五个集合（活跃任务、项目、看板列、已完成集合、已删除集合）、
筛选条件与当前唯一的用户可见错误信息。
"""

from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

from pomoboard.core.models import DEFAULT_STATUSES, BoardColumn, Project, Task

from .filters import BoardFilters


class Collection(StrEnum):
    """可快照的集合名（与 BoardState 字段同名）"""

    TASKS = "tasks"
    PROJECTS = "projects"
    COLUMNS = "columns"
    COMPLETED = "completed_tasks"
    DELETED = "deleted_tasks"


Snapshot = dict[Collection, list[Any]]


class BoardState(BaseModel):
    """看板本地状态"""

    tasks: list[Task] = Field(default_factory=list, description="活跃任务（最新在前）")
    projects: list[Project] = Field(default_factory=list)
    columns: list[BoardColumn] = Field(default_factory=list)
    completed_tasks: list[Task] = Field(default_factory=list, description="已完成集合")
    deleted_tasks: list[Task] = Field(default_factory=list, description="已删除集合")
    filters: BoardFilters = Field(default_factory=BoardFilters)
    error: str | None = Field(default=None, description="唯一的用户可见错误，最新的覆盖旧的")

    # ---- 快照 ----

    def snapshot(self, collections: list[Collection]) -> Snapshot:
        """深拷贝指定集合"""
        return {
            name: [item.model_copy(deep=True) for item in getattr(self, name)]
            for name in collections
        }

    def restore(self, snapshot: Snapshot) -> None:
        """整体恢复快照中的集合"""
        for name, items in snapshot.items():
            setattr(self, name, items)

    # ---- 查找 ----

    def find_task(self, task_id: str) -> Task | None:
        return next((t for t in self.tasks if t.task_id == task_id), None)

    def find_project(self, project_id: str) -> Project | None:
        return next((p for p in self.projects if p.project_id == project_id), None)

    def find_column(self, column_id: str) -> BoardColumn | None:
        return next((c for c in self.columns if c.column_id == column_id), None)

    def column_statuses(self) -> list[str]:
        """当前有效的状态标识；尚未加载看板列时使用默认三列"""
        return [c.status for c in self.columns] or list(DEFAULT_STATUSES)

    # ---- 替换 ----

    def replace_task(self, task: Task) -> None:
        self.tasks = [task if t.task_id == task.task_id else t for t in self.tasks]

    def rename_task(self, old_id: str, new_id: str) -> None:
        """占位 ID -> 持久层 ID"""
        self.tasks = [
            t.model_copy(update={"task_id": new_id}) if t.task_id == old_id else t
            for t in self.tasks
        ]

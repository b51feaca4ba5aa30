"""Persistence Gateway 接口定义

核心层只依赖此接口：对任务、项目、看板列的增删改查，
以及已删除/已完成集合的移动、复制、恢复。
使用 Python Protocol 实现结构化子类型（duck typing）。

每次调用彼此独立，不提供跨实体事务保证。
值为 None 的字段会被拒绝（InvalidPayloadError），调用方需先 strip_undefined。
"""

from typing import Any, Protocol

from ..models import (
    BoardColumn,
    NewColumn,
    NewProject,
    NewTask,
    PomodoroSession,
    PomodoroStatus,
    Project,
    SessionType,
    Task,
)


class PersistenceGateway(Protocol):
    """持久层网关接口"""

    # 加载
    async def load_tasks(self) -> list[Task]:
        """加载活跃任务，按 created_at 倒序"""
        ...

    async def load_projects(self) -> list[Project]:
        """加载项目，按 order 排序"""
        ...

    async def load_columns(self) -> list[BoardColumn]:
        """加载看板列，按 order 排序"""
        ...

    async def load_completed_tasks(self) -> list[Task]:
        """加载已完成集合，按 completed_at 倒序"""
        ...

    async def load_deleted_tasks(self) -> list[Task]:
        """加载已删除集合，按 deleted_at 倒序"""
        ...

    # 任务
    async def create_task(self, task: NewTask) -> str:
        """创建任务，返回持久层分配的 ID"""
        ...

    async def update_task(self, task_id: str, fields: dict[str, Any]) -> None:
        """部分更新任务"""
        ...

    async def delete_task(self, task_id: str) -> None:
        """硬删除（区别于移动到已删除集合）"""
        ...

    # 已删除集合
    async def move_task_to_deleted(self, task_id: str, task: Task) -> None:
        """复制到已删除集合（带 deleted_at / original_id）后从活跃集合移除"""
        ...

    async def restore_deleted_task(self, deleted_id: str) -> str:
        """从已删除集合恢复为新任务，返回新 ID"""
        ...

    async def permanently_delete_task(self, deleted_id: str) -> None:
        """从已删除集合永久删除"""
        ...

    # 已完成集合
    async def copy_task_to_completed(self, task_id: str, task: Task) -> None:
        """复制到已完成集合（不移除活跃任务）"""
        ...

    async def restore_completed_task(self, completed_id: str) -> str:
        """从已完成集合恢复为新任务，返回新 ID"""
        ...

    async def permanently_delete_completed_task(self, completed_id: str) -> None:
        """从已完成集合永久删除"""
        ...

    # 项目
    async def create_project(self, project: NewProject) -> str:
        ...

    async def update_project(self, project_id: str, fields: dict[str, Any]) -> None:
        ...

    async def delete_project(self, project_id: str) -> None:
        """只删除项目本身，不级联删除任务"""
        ...

    async def update_project_order(self, project_id: str, order: float) -> None:
        ...

    # 看板列
    async def create_column(self, column: NewColumn) -> str:
        ...

    async def update_column(self, column_id: str, fields: dict[str, Any]) -> None:
        ...

    async def delete_column(self, column_id: str) -> None:
        ...

    # 番茄钟
    async def update_task_pomodoro(self, task_id: str, session: PomodoroSession) -> None:
        """追加会话、递增计数、清空进行中字段"""
        ...

    async def update_task_pomodoro_state(
        self,
        task_id: str,
        status: PomodoroStatus,
        current_time: int,
        phase: SessionType = SessionType.WORK,
    ) -> None:
        """保存计时器快照（状态 + 已计时毫秒数 + 阶段）"""
        ...

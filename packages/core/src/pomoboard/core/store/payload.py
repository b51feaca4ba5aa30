"""持久层载荷处理 -- 两种后端共用

- strip_undefined: 提交前剔除未定义（None）字段
- check_payload: 后端拒绝 None 值与未知字段
- merge_*: 部分字段合并后整体重新校验
- 已删除/已完成集合记录与恢复任务的构造
"""

from typing import Any

from pydantic import BaseModel, ValidationError

from ..exceptions import InvalidPayloadError
from ..models import PomodoroSession, PomodoroStatus, SessionType, Task, TaskStatus


def strip_undefined(fields: dict[str, Any]) -> dict[str, Any]:
    """剔除值为 None 的字段（持久层拒绝未定义值）"""
    return {key: value for key, value in fields.items() if value is not None}


def check_payload(fields: dict[str, Any], allowed: frozenset[str] | set[str]) -> None:
    """校验部分更新载荷

    Raises:
        InvalidPayloadError: 包含 None 值或不允许修改的字段
    """
    invalid = [
        key for key, value in fields.items() if value is None or key not in allowed
    ]
    if invalid:
        raise InvalidPayloadError(invalid)


def merge_model(model: BaseModel, fields: dict[str, Any]) -> Any:
    """合并部分字段后整体重新校验，返回新实例"""
    data = model.model_dump()
    data.update(fields)
    try:
        return type(model).model_validate(data)
    except ValidationError as e:
        raise InvalidPayloadError(
            [str(err["loc"][0]) for err in e.errors() if err["loc"]]
        ) from e


def to_deleted_record(task: Task, deleted_at: int) -> Task:
    """活跃任务 -> 已删除集合记录（ID 沿用来源任务）"""
    return task.model_copy(
        update={"deleted_at": deleted_at, "original_id": task.task_id}
    )


def to_completed_record(task: Task, completed_at: int) -> Task:
    """活跃任务 -> 已完成集合记录（ID 沿用来源任务，同一任务只保留一条）"""
    return task.model_copy(
        update={
            "status": TaskStatus.DONE.value,
            "completed_at": completed_at,
            "original_id": task.task_id,
        }
    )


def to_restored_task(
    record: Task,
    new_id: str,
    created_at: int,
    status: str | None = None,
) -> Task:
    """历史集合记录 -> 全新活跃任务

    新 ID、created_at 重置，deleted_at / completed_at / original_id 清空；
    评论与会话历史随任务保留。
    """
    return record.model_copy(
        update={
            "task_id": new_id,
            "created_at": created_at,
            "status": status or record.status,
            "deleted_at": None,
            "completed_at": None,
            "original_id": None,
        }
    )


def apply_pomodoro_session(task: Task, session: PomodoroSession) -> Task:
    """追加会话、递增计数（仅工作会话）、清空进行中字段"""
    increment = 1 if session.type == SessionType.WORK else 0
    return task.model_copy(
        update={
            "pomodoro_sessions": [*task.pomodoro_sessions, session],
            "total_pomodoros": task.total_pomodoros + increment,
            "current_pomodoro_time": None,
            "pomodoro_status": PomodoroStatus.IDLE,
            "pomodoro_phase": SessionType.WORK,
        }
    )

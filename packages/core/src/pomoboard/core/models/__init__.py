"""PomoBoard Core Domain Models -- 公共类型导出

所有公共模型类型从此入口导入。
"""

from .board import (
    DEFAULT_COLUMNS,
    DEFAULT_PROJECTS,
    EDITABLE_COLUMN_FIELDS,
    EDITABLE_PROJECT_FIELDS,
    BoardColumn,
    NewColumn,
    NewProject,
    Project,
)
from .enums import (
    DEFAULT_STATUSES,
    TRACKING_PRESET_MINUTES,
    DateBucket,
    PomodoroStatus,
    Priority,
    SessionType,
    TaskStatus,
    TaskType,
    TrackingPreset,
    is_done,
    preset_duration_ms,
)
from .task import EDITABLE_TASK_FIELDS, NewTask, PomodoroSession, Task, TaskComment
from .team import TEAM_MEMBERS, TeamMember

__all__ = [
    # 枚举
    "TaskStatus",
    "Priority",
    "PomodoroStatus",
    "SessionType",
    "TaskType",
    "TrackingPreset",
    "DateBucket",
    "DEFAULT_STATUSES",
    "TRACKING_PRESET_MINUTES",
    "is_done",
    "preset_duration_ms",
    # Task
    "Task",
    "NewTask",
    "TaskComment",
    "PomodoroSession",
    "EDITABLE_TASK_FIELDS",
    # Project / Column
    "Project",
    "NewProject",
    "BoardColumn",
    "NewColumn",
    "DEFAULT_COLUMNS",
    "DEFAULT_PROJECTS",
    "EDITABLE_PROJECT_FIELDS",
    "EDITABLE_COLUMN_FIELDS",
    # Team
    "TeamMember",
    "TEAM_MEMBERS",
]

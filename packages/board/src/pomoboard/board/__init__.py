"""PomoBoard Board -- 看板状态引擎

乐观更新协调器、番茄钟引擎与计时运行时、筛选派生管线、图片子系统。
"""

from .config import PomodoroConfig, load_pomodoro_config
from .coordinator import BoardCoordinator
from .filters import (
    BoardCounts,
    BoardFilters,
    FilterResult,
    apply_filters,
    derive_counts,
    group_by_column,
    is_due_soon,
    is_overdue,
    select_assignee,
    task_counts_by_project,
)
from .images import (
    BlobImageUploader,
    EmbeddedImageEncoder,
    ImageStrategy,
    ImageUpload,
    ImageValidation,
    validate_image,
)
from .messages import available_locales, message_for
from .pomodoro import TickResult, TimerState
from .state import BoardState, Collection
from .timer import CompletionNotifier, LogNotifier, PomodoroTimer, TimerEvent, TimerRegistry

__all__ = [
    # 协调器
    "BoardCoordinator",
    "BoardState",
    "Collection",
    # 番茄钟
    "PomodoroConfig",
    "load_pomodoro_config",
    "TimerState",
    "TickResult",
    "PomodoroTimer",
    "TimerRegistry",
    "TimerEvent",
    "CompletionNotifier",
    "LogNotifier",
    # 筛选
    "BoardFilters",
    "BoardCounts",
    "FilterResult",
    "apply_filters",
    "derive_counts",
    "group_by_column",
    "is_due_soon",
    "is_overdue",
    "select_assignee",
    "task_counts_by_project",
    # 图片
    "ImageUpload",
    "ImageValidation",
    "ImageStrategy",
    "EmbeddedImageEncoder",
    "BlobImageUploader",
    "validate_image",
    # 信息
    "message_for",
    "available_locales",
]

"""枚举定义

包含默认列状态标识、优先级、番茄钟状态、会话类型、任务类型标签、
计时预设与日期筛选桶。

任务的 status 字段是开放字符串（与看板列的 status 标识匹配），
TaskStatus 只列出三个默认列的标识。
"""

from enum import StrEnum


class TaskStatus(StrEnum):
    """默认列的状态标识"""

    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    DONE = "DONE"


DEFAULT_STATUSES: list[str] = [
    TaskStatus.TODO.value,
    TaskStatus.IN_PROGRESS.value,
    TaskStatus.DONE.value,
]


def is_done(status: str) -> bool:
    """判断状态标识是否为“已完成”等价状态"""
    return status == TaskStatus.DONE


class Priority(StrEnum):
    """任务优先级"""

    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class PomodoroStatus(StrEnum):
    """番茄钟状态"""

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    BREAK = "break"


class SessionType(StrEnum):
    """番茄钟会话类型"""

    WORK = "work"
    BREAK = "break"


class TaskType(StrEnum):
    """任务类型标签"""

    STRATEGY = "Estrategia"
    ADS = "Publicidad / Ads"
    ORGANIC_CONTENT = "Contenido Orgánico"
    DESIGN = "Diseño"
    VIDEO = "Video / Multimedia"
    COPYWRITING = "Copywriting"
    QUALITY_REVIEW = "Revisión / Control de Calidad"
    CLIENT_MEETINGS = "Cliente / Reuniones"


class TrackingPreset(StrEnum):
    """计时预设"""

    POMODORO_25 = "POMODORO_25"
    DEEP_50 = "DEEP_50"
    STRATEGIC_90 = "STRATEGIC_90"
    SHORT_BREAK = "SHORT_BREAK"
    LONG_BREAK = "LONG_BREAK"


# 预设 -> 分钟数
TRACKING_PRESET_MINUTES: dict[TrackingPreset, int] = {
    TrackingPreset.POMODORO_25: 25,
    TrackingPreset.DEEP_50: 50,
    TrackingPreset.STRATEGIC_90: 90,
    TrackingPreset.SHORT_BREAK: 5,
    TrackingPreset.LONG_BREAK: 15,
}


def preset_duration_ms(preset: TrackingPreset | str | None) -> int | None:
    """预设对应的工作时长（毫秒），无预设返回 None"""
    if preset is None:
        return None
    return TRACKING_PRESET_MINUTES[TrackingPreset(preset)] * 60 * 1000


class DateBucket(StrEnum):
    """截止日期筛选桶"""

    ALL = "all"
    OVERDUE = "overdue"
    TODAY = "today"
    WEEK = "week"
    MONTH = "month"

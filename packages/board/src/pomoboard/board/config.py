"""PomodoroConfig -- 番茄钟配置加载

从环境变量加载配置；非法值记录警告并回退到默认值，不阻塞启动。
"""

import os

import structlog
from pydantic import BaseModel, Field

log = structlog.get_logger()


class PomodoroConfig(BaseModel):
    """番茄钟配置 -- 从环境变量加载

    环境变量:
        POMOBOARD_WORK_MINUTES: 工作时长（分钟，默认 25）
        POMOBOARD_SHORT_BREAK_MINUTES: 短休息（分钟，默认 5）
        POMOBOARD_LONG_BREAK_MINUTES: 长休息（分钟，默认 15）
        POMOBOARD_LONG_BREAK_INTERVAL: 每几个工作会话后长休息（默认 4）
        POMOBOARD_AUTO_START_BREAK: 工作会话结束后自动进入休息（默认 false）
        POMOBOARD_SOUND_ENABLED: 完成提示音（默认 true）
        POMOBOARD_SYNC_INTERVAL_S: 运行中快照持久化间隔（秒，默认 10）
    """

    work_duration_ms: int = Field(default=25 * 60 * 1000, ge=1, description="工作时长（毫秒）")
    short_break_ms: int = Field(default=5 * 60 * 1000, ge=1, description="短休息时长（毫秒）")
    long_break_ms: int = Field(default=15 * 60 * 1000, ge=1, description="长休息时长（毫秒）")
    long_break_interval: int = Field(default=4, ge=1, description="长休息间隔（工作会话数）")
    auto_start_break: bool = Field(default=False, description="完成后自动开始休息")
    sound_enabled: bool = Field(default=True, description="完成提示音")
    tick_interval_s: float = Field(default=1.0, gt=0, description="tick 间隔（秒）")
    sync_interval_s: int = Field(default=10, ge=1, description="运行中每隔多少个 tick 持久化一次")

    def break_duration_ms(self, total_pomodoros: int) -> int:
        """第 total_pomodoros 个工作会话结束后的休息时长"""
        if total_pomodoros > 0 and total_pomodoros % self.long_break_interval == 0:
            return self.long_break_ms
        return self.short_break_ms


_MINUTE_VARS: dict[str, tuple[str, int]] = {
    "POMOBOARD_WORK_MINUTES": ("work_duration_ms", 25),
    "POMOBOARD_SHORT_BREAK_MINUTES": ("short_break_ms", 5),
    "POMOBOARD_LONG_BREAK_MINUTES": ("long_break_ms", 15),
}

_TRUTHY = {"1", "true", "yes", "on"}
_FALSY = {"0", "false", "no", "off"}


def _parse_bool(env_var: str, val: str, fallback: bool) -> bool:
    lowered = val.strip().lower()
    if lowered in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    log.warning("invalid_pomodoro_config", env_var=env_var, value=val, fallback=fallback)
    return fallback


def _parse_positive_int(env_var: str, val: str, fallback: int) -> int | None:
    try:
        parsed = int(val)
    except ValueError:
        parsed = 0
    if parsed < 1:
        log.warning("invalid_pomodoro_config", env_var=env_var, value=val, fallback=fallback)
        # 使用默认值，不阻塞启动
        return None
    return parsed


def load_pomodoro_config() -> PomodoroConfig:
    """从环境变量加载番茄钟配置

    Returns:
        PomodoroConfig 实例
    """
    kwargs: dict = {}

    for env_var, (field, default_minutes) in _MINUTE_VARS.items():
        if val := os.environ.get(env_var):
            minutes = _parse_positive_int(env_var, val, default_minutes)
            if minutes is not None:
                kwargs[field] = minutes * 60 * 1000

    if val := os.environ.get("POMOBOARD_LONG_BREAK_INTERVAL"):
        interval = _parse_positive_int("POMOBOARD_LONG_BREAK_INTERVAL", val, 4)
        if interval is not None:
            kwargs["long_break_interval"] = interval

    if val := os.environ.get("POMOBOARD_SYNC_INTERVAL_S"):
        sync_interval = _parse_positive_int("POMOBOARD_SYNC_INTERVAL_S", val, 10)
        if sync_interval is not None:
            kwargs["sync_interval_s"] = sync_interval

    if val := os.environ.get("POMOBOARD_AUTO_START_BREAK"):
        kwargs["auto_start_break"] = _parse_bool("POMOBOARD_AUTO_START_BREAK", val, False)

    if val := os.environ.get("POMOBOARD_SOUND_ENABLED"):
        kwargs["sound_enabled"] = _parse_bool("POMOBOARD_SOUND_ENABLED", val, True)

    return PomodoroConfig(**kwargs)

"""Pomodoro Engine -- 纯函数状态机

计时约定为正计时（count-up）：elapsed_ms 从 0 增长到 duration_ms，
remaining_ms = duration_ms - elapsed_ms。任务上持久化的
current_pomodoro_time 即 elapsed_ms；“重置为配置时长”即 elapsed_ms 归零。

状态：
  idle    -- 未开始（工作阶段，elapsed=0）
  running -- 工作阶段计时中
  paused  -- 暂停（phase 记录暂停前所在阶段）
  break   -- 休息阶段计时中

所有函数不修改入参，返回新的 TimerState；不依赖真实时钟。
"""

from pydantic import BaseModel, ConfigDict, Field
from ulid import ULID

from pomoboard.core.models import PomodoroSession, PomodoroStatus, SessionType
from pomoboard.core.timeutil import iso_date

from .config import PomodoroConfig

TICKING_STATUSES = frozenset({PomodoroStatus.RUNNING, PomodoroStatus.BREAK})


class TimerState(BaseModel):
    """单个任务计时器的状态快照"""

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(description="关联的 Task ID")
    status: PomodoroStatus = Field(default=PomodoroStatus.IDLE)
    phase: SessionType = Field(default=SessionType.WORK, description="当前阶段")
    elapsed_ms: int = Field(default=0, ge=0, description="当前阶段已计时毫秒数")
    duration_ms: int = Field(gt=0, description="当前阶段时长")
    work_duration_ms: int = Field(gt=0, description="工作阶段时长（可由任务预设覆盖）")
    completed_work_sessions: int = Field(default=0, ge=0, description="已完成工作会话数")

    @property
    def remaining_ms(self) -> int:
        return self.duration_ms - self.elapsed_ms

    @property
    def is_ticking(self) -> bool:
        return self.status in TICKING_STATUSES


class TickResult(BaseModel):
    """advance 的结果：新状态 + 自然完成时合成的会话"""

    model_config = ConfigDict(frozen=True)

    state: TimerState
    session: PomodoroSession | None = None


def initial_state(
    task_id: str,
    config: PomodoroConfig,
    status: PomodoroStatus = PomodoroStatus.IDLE,
    elapsed_ms: int = 0,
    work_duration_ms: int | None = None,
    completed_work_sessions: int = 0,
    phase: SessionType = SessionType.WORK,
) -> TimerState:
    """构造初始状态（重新挂载时用持久化的状态与已计时时间还原）

    Args:
        task_id: 任务 ID
        config: 番茄钟配置
        status: 持久化的 pomodoro_status
        elapsed_ms: 持久化的 current_pomodoro_time
        work_duration_ms: 工作时长，None 时使用配置值
        completed_work_sessions: 任务已完成的工作会话数（决定长/短休息）
        phase: 持久化的 pomodoro_phase（暂停中的休息据此还原为休息阶段）
    """
    work_ms = work_duration_ms or config.work_duration_ms
    paused_break = status == PomodoroStatus.PAUSED and phase == SessionType.BREAK
    if status == PomodoroStatus.BREAK or paused_break:
        phase = SessionType.BREAK
        duration = config.break_duration_ms(completed_work_sessions)
    else:
        phase = SessionType.WORK
        duration = work_ms
    elapsed = max(0, min(elapsed_ms, duration))
    if status == PomodoroStatus.IDLE:
        elapsed = 0
    return TimerState(
        task_id=task_id,
        status=status,
        phase=phase,
        elapsed_ms=elapsed,
        duration_ms=duration,
        work_duration_ms=work_ms,
        completed_work_sessions=completed_work_sessions,
    )


def start(state: TimerState) -> TimerState:
    """idle / paused -> running（休息阶段 -> break）；计时中时不变"""
    if state.is_ticking:
        return state
    status = PomodoroStatus.BREAK if state.phase == SessionType.BREAK else PomodoroStatus.RUNNING
    return state.model_copy(update={"status": status})


def pause(state: TimerState) -> TimerState:
    """running / break -> paused，elapsed 保持当前读数"""
    if not state.is_ticking:
        return state
    return state.model_copy(update={"status": PomodoroStatus.PAUSED})


def reset(state: TimerState) -> TimerState:
    """任意状态 -> idle，回到工作阶段，elapsed 归零，不产生会话"""
    return state.model_copy(
        update={
            "status": PomodoroStatus.IDLE,
            "phase": SessionType.WORK,
            "elapsed_ms": 0,
            "duration_ms": state.work_duration_ms,
        }
    )


def _make_session(state: TimerState, now_ms: int) -> PomodoroSession:
    return PomodoroSession(
        session_id=str(ULID()),
        task_id=state.task_id,
        start_time=now_ms - state.duration_ms,
        end_time=now_ms,
        duration=state.duration_ms,
        completed=True,
        type=state.phase,
        date=iso_date(now_ms),
    )


def advance(
    state: TimerState,
    delta_ms: int,
    now_ms: int,
    config: PomodoroConfig,
) -> TickResult:
    """推进计时

    非计时状态下不变。到达时长边界即自然完成：
    - 工作阶段完成：合成 work 会话；auto_start_break 时进入 break，否则回到 idle
    - 休息阶段完成：合成 break 会话，回到 idle

    Args:
        state: 当前状态
        delta_ms: 经过的毫秒数
        now_ms: 当前时间（epoch 毫秒），用于会话时间戳
        config: 番茄钟配置

    Returns:
        TickResult
    """
    if not state.is_ticking or delta_ms <= 0:
        return TickResult(state=state)

    elapsed = state.elapsed_ms + delta_ms
    if elapsed < state.duration_ms:
        return TickResult(state=state.model_copy(update={"elapsed_ms": elapsed}))

    session = _make_session(state, now_ms)

    if state.phase == SessionType.WORK:
        completed = state.completed_work_sessions + 1
        if config.auto_start_break:
            next_state = state.model_copy(
                update={
                    "status": PomodoroStatus.BREAK,
                    "phase": SessionType.BREAK,
                    "elapsed_ms": 0,
                    "duration_ms": config.break_duration_ms(completed),
                    "completed_work_sessions": completed,
                }
            )
        else:
            next_state = reset(state).model_copy(
                update={"completed_work_sessions": completed}
            )
    else:
        next_state = reset(state)

    return TickResult(state=next_state, session=session)

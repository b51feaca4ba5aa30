"""Pomodoro 计时运行时

- PomodoroTimer: 单个任务的计时器，每个实例最多一个 tick 协程
- TimerRegistry: task_id -> PomodoroTimer 的显式映射，负责重新挂载还原与节流持久化
- CompletionNotifier: 完成时的提示音/桌面通知副作用（默认实现只记录日志）

tick 逻辑全部委托给 pomodoro 模块中的纯函数；sleep 与 clock 可注入，
测试时无需真实计时器。
"""

import asyncio
from collections.abc import Awaitable, Callable
from enum import StrEnum
from typing import Protocol

import structlog

from pomoboard.core.models import (
    PomodoroSession,
    PomodoroStatus,
    SessionType,
    Task,
    preset_duration_ms,
)
from pomoboard.core.timeutil import now_ms

from . import pomodoro
from .config import PomodoroConfig
from .pomodoro import TimerState

log = structlog.get_logger()


class TimerEvent(StrEnum):
    """计时器通知原因"""

    TICK = "tick"
    START = "start"
    PAUSE = "pause"
    RESET = "reset"
    COMPLETE = "complete"
    TEARDOWN = "teardown"


UpdateCallback = Callable[[str, TimerState, TimerEvent], Awaitable[None]]
CompleteCallback = Callable[[str, PomodoroSession], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


class CompletionNotifier(Protocol):
    """会话完成副作用接口"""

    async def notify(self, task_id: str, session: PomodoroSession) -> None:
        ...


class LogNotifier:
    """默认通知实现 -- 记录日志代替声音与桌面通知"""

    def __init__(self, sound_enabled: bool = True) -> None:
        self._sound_enabled = sound_enabled

    async def notify(self, task_id: str, session: PomodoroSession) -> None:
        log.info(
            "pomodoro_completed",
            task_id=task_id,
            session_type=session.type,
            duration_ms=session.duration,
            sound=self._sound_enabled,
        )


class PomodoroTimer:
    """单个任务的计时器

    start 会替换任何存活的 tick 协程；pause / reset / 自然完成 / close 都会取消它。
    每次 tick 与每次显式状态变化都通过 on_update 通知所有者。
    """

    def __init__(
        self,
        state: TimerState,
        config: PomodoroConfig,
        on_update: UpdateCallback | None = None,
        on_complete: CompleteCallback | None = None,
        notifier: CompletionNotifier | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        self._state = state
        self._config = config
        self._on_update = on_update
        self._on_complete = on_complete
        self._notifier = notifier or LogNotifier(config.sound_enabled)
        self._sleep = sleep
        self._clock = clock
        self._tick_task: asyncio.Task | None = None

    @property
    def state(self) -> TimerState:
        return self._state

    @property
    def task_id(self) -> str:
        return self._state.task_id

    @property
    def is_ticking(self) -> bool:
        """是否有存活的 tick 协程"""
        return self._tick_task is not None and not self._tick_task.done()

    # ---- 显式操作 ----

    async def start(self) -> None:
        """开始 / 继续计时"""
        self._state = pomodoro.start(self._state)
        await self._cancel_tick()
        self._spawn_tick()
        await self._emit(TimerEvent.START)

    async def resume(self) -> None:
        """按当前状态恢复 tick（重新挂载时使用，不发出通知）"""
        if self._state.is_ticking and not self.is_ticking:
            self._spawn_tick()

    async def pause(self) -> None:
        await self._cancel_tick()
        self._state = pomodoro.pause(self._state)
        await self._emit(TimerEvent.PAUSE)

    async def reset(self) -> None:
        await self._cancel_tick()
        self._state = pomodoro.reset(self._state)
        await self._emit(TimerEvent.RESET)

    async def toggle(self) -> None:
        """计时中则暂停，否则开始"""
        if self._state.is_ticking:
            await self.pause()
        else:
            await self.start()

    async def close(self) -> None:
        """取消 tick，计时器不再产生任何通知"""
        await self._cancel_tick()

    async def join(self) -> None:
        """等待当前 tick 协程结束（自然完成或被取消）"""
        task = self._tick_task
        if task is not None and task is not asyncio.current_task():
            await asyncio.gather(task, return_exceptions=True)

    # ---- tick ----

    def _spawn_tick(self) -> None:
        self._tick_task = asyncio.create_task(
            self._run(),
            name=f"pomodoro-tick-{self.task_id}",
        )

    async def _cancel_tick(self) -> None:
        task, self._tick_task = self._tick_task, None
        if task is None or task.done() or task is asyncio.current_task():
            # 在 tick 协程内部调用时只解除引用，循环会在下一轮退出
            return
        task.cancel()
        await asyncio.gather(task, return_exceptions=True)

    async def _run(self) -> None:
        interval_s = self._config.tick_interval_s
        delta_ms = int(interval_s * 1000)
        me = asyncio.current_task()

        while self._tick_task is me and self._state.is_ticking:
            await self._sleep(interval_s)
            if self._tick_task is not me:
                break

            result = pomodoro.advance(self._state, delta_ms, self._clock(), self._config)
            self._state = result.state

            if result.session is None:
                await self._emit(TimerEvent.TICK)
                continue

            await self._complete(result.session)

        if self._tick_task is me:
            self._tick_task = None

    async def _complete(self, session: PomodoroSession) -> None:
        try:
            await self._notifier.notify(self.task_id, session)
        except Exception as e:
            log.warning("pomodoro_notify_failed", task_id=self.task_id, error=str(e))
        if self._on_complete is not None:
            await self._on_complete(self.task_id, session)
        await self._emit(TimerEvent.COMPLETE)

    async def _emit(self, event: TimerEvent) -> None:
        if self._on_update is None:
            return
        try:
            await self._on_update(self.task_id, self._state, event)
        except Exception as e:
            log.warning(
                "pomodoro_update_callback_failed",
                task_id=self.task_id,
                timer_event=event,
                error=str(e),
            )


SyncCallback = Callable[[str, PomodoroStatus, int, SessionType], Awaitable[None]]


class TimerRegistry:
    """task_id -> PomodoroTimer 映射

    运行中每 sync_interval_s 个 tick 持久化一次快照；
    start / pause / reset / 完成后进入休息 / 卸载时总是持久化。
    """

    def __init__(
        self,
        config: PomodoroConfig,
        on_sync: SyncCallback,
        on_complete: CompleteCallback,
        notifier: CompletionNotifier | None = None,
        sleep: SleepFn = asyncio.sleep,
        clock: Callable[[], int] = now_ms,
    ) -> None:
        """
        Args:
            config: 番茄钟配置
            on_sync: 快照持久化回调 (task_id, status, elapsed_ms, phase)
            on_complete: 会话完成回调 (task_id, session)
            notifier: 完成副作用，None 时使用 LogNotifier
            sleep: 可注入的 sleep（测试用）
            clock: 可注入的时钟，返回 epoch 毫秒
        """
        self._config = config
        self._on_sync = on_sync
        self._on_complete = on_complete
        self._notifier = notifier
        self._sleep = sleep
        self._clock = clock
        self._timers: dict[str, PomodoroTimer] = {}
        self._tick_counts: dict[str, int] = {}

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._timers

    def __len__(self) -> int:
        return len(self._timers)

    def get(self, task_id: str) -> PomodoroTimer | None:
        return self._timers.get(task_id)

    def task_ids(self) -> list[str]:
        return list(self._timers)

    async def attach(self, task: Task) -> PomodoroTimer:
        """挂载任务计时器（已挂载则直接返回）

        用任务持久化的 pomodoro_status / current_pomodoro_time 还原；
        快照为计时中时从持久化的已计时时间继续 tick，不做墙钟补偿。
        """
        existing = self._timers.get(task.task_id)
        if existing is not None:
            return existing

        state = pomodoro.initial_state(
            task.task_id,
            self._config,
            status=task.pomodoro_status,
            elapsed_ms=task.current_pomodoro_time or 0,
            work_duration_ms=preset_duration_ms(task.tracking_preset),
            completed_work_sessions=task.total_pomodoros,
            phase=task.pomodoro_phase,
        )
        timer = PomodoroTimer(
            state,
            self._config,
            on_update=self._handle_update,
            on_complete=self._on_complete,
            notifier=self._notifier,
            sleep=self._sleep,
            clock=self._clock,
        )
        self._timers[task.task_id] = timer
        self._tick_counts[task.task_id] = 0
        await timer.resume()
        log.debug("pomodoro_timer_attached", task_id=task.task_id, status=state.status)
        return timer

    async def teardown(self, task_id: str, persist: bool = True) -> None:
        """卸载计时器并取消 tick

        Args:
            task_id: 任务 ID
            persist: 是否持久化最后一次快照（任务已删除时为 False）
        """
        timer = self._timers.pop(task_id, None)
        self._tick_counts.pop(task_id, None)
        if timer is None:
            return
        await timer.close()
        if persist:
            await self._sync(task_id, timer.state)
        log.debug("pomodoro_timer_torn_down", task_id=task_id, persisted=persist)

    async def close_all(self) -> None:
        for task_id in list(self._timers):
            await self.teardown(task_id)

    async def _handle_update(self, task_id: str, state: TimerState, event: TimerEvent) -> None:
        if event == TimerEvent.TICK:
            count = self._tick_counts.get(task_id, 0) + 1
            self._tick_counts[task_id] = count
            if count % self._config.sync_interval_s != 0:
                return
        elif event == TimerEvent.COMPLETE and not state.is_ticking:
            # 会话持久化已清空进行中字段
            return
        await self._sync(task_id, state)

    async def _sync(self, task_id: str, state: TimerState) -> None:
        await self._on_sync(task_id, state.status, state.elapsed_ms, state.phase)

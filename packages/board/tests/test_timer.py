"""PomodoroTimer / TimerRegistry 测试 -- 注入 sleep 与 clock，不依赖真实计时"""

import asyncio
from unittest.mock import AsyncMock

from pomoboard.board import (
    BoardCoordinator,
    PomodoroConfig,
    PomodoroTimer,
    TimerEvent,
    TimerRegistry,
)
from pomoboard.board import pomodoro
from pomoboard.core.exceptions import GatewayError
from pomoboard.core.models import PomodoroStatus, SessionType, Task


def _tick_tasks() -> list[asyncio.Task]:
    return [
        t for t in asyncio.all_tasks()
        if t.get_name().startswith("pomodoro-tick") and not t.done()
    ]


def _task(**kwargs) -> Task:
    return Task(
        task_id="t1",
        created_at=1,
        title="Editar video",
        assignee="Jose",
        creator="Dairo",
        project_id="p1",
        **kwargs,
    )


class _Recorder:
    """记录 on_update / on_complete 回调"""

    def __init__(self) -> None:
        self.events: list[tuple[TimerEvent, PomodoroStatus, int]] = []
        self.sessions = []

    async def on_update(self, task_id, state, event) -> None:
        self.events.append((event, state.status, state.elapsed_ms))

    async def on_complete(self, task_id, session) -> None:
        self.sessions.append(session)


def _timer(config, ticker, recorder, notifier=None) -> PomodoroTimer:
    return PomodoroTimer(
        pomodoro.initial_state("t1", config),
        config,
        on_update=recorder.on_update,
        on_complete=recorder.on_complete,
        notifier=notifier,
        sleep=ticker.sleep,
        clock=ticker.clock,
    )


class TestPomodoroTimer:
    """单个计时器"""

    async def test_two_ticks_complete_once(self, pomodoro_config, ticker):
        recorder = _Recorder()
        notifier = AsyncMock()
        timer = _timer(pomodoro_config, ticker, recorder, notifier)

        await timer.start()
        await ticker.tick(2)
        await timer.join()

        (session,) = recorder.sessions
        assert session.completed is True
        assert session.type == SessionType.WORK
        assert timer.state.status == PomodoroStatus.IDLE
        assert timer.state.remaining_ms == pomodoro_config.work_duration_ms
        assert not timer.is_ticking
        notifier.notify.assert_awaited_once()
        assert [e for e, _, _ in recorder.events] == [
            TimerEvent.START,
            TimerEvent.TICK,
            TimerEvent.COMPLETE,
        ]

    async def test_restart_replaces_tick(self, pomodoro_config, ticker):
        timer = _timer(pomodoro_config, ticker, _Recorder())
        await timer.start()
        await timer.start()
        await ticker.settle()

        assert len(_tick_tasks()) == 1
        await timer.close()

    async def test_pause_cancels_tick(self, pomodoro_config, ticker):
        recorder = _Recorder()
        timer = _timer(pomodoro_config, ticker, recorder)
        await timer.start()
        await ticker.tick()
        await timer.pause()

        assert not timer.is_ticking
        assert timer.state.status == PomodoroStatus.PAUSED
        await ticker.tick(3)
        assert timer.state.elapsed_ms == 1000
        assert recorder.sessions == []

    async def test_toggle(self, pomodoro_config, ticker):
        timer = _timer(pomodoro_config, ticker, _Recorder())
        await timer.toggle()
        assert timer.state.status == PomodoroStatus.RUNNING
        await timer.toggle()
        assert timer.state.status == PomodoroStatus.PAUSED

    async def test_reset(self, pomodoro_config, ticker):
        recorder = _Recorder()
        timer = _timer(pomodoro_config, ticker, recorder)
        await timer.start()
        await ticker.tick()
        await timer.reset()

        assert timer.state.status == PomodoroStatus.IDLE
        assert timer.state.elapsed_ms == 0
        assert not timer.is_ticking
        assert recorder.sessions == []

    async def test_close_leaves_no_dangling_tick(self, pomodoro_config, ticker):
        recorder = _Recorder()
        timer = _timer(pomodoro_config, ticker, recorder)
        await timer.start()
        await timer.close()
        emitted = len(recorder.events)

        await ticker.tick(3)
        assert _tick_tasks() == []
        assert len(recorder.events) == emitted

    async def test_notifier_failure_does_not_block_completion(self, pomodoro_config, ticker):
        recorder = _Recorder()
        notifier = AsyncMock()
        notifier.notify.side_effect = RuntimeError("sin audio")
        timer = _timer(pomodoro_config, ticker, recorder, notifier)

        await timer.start()
        await ticker.tick(2)
        await timer.join()
        assert len(recorder.sessions) == 1


class TestTimerRegistry:
    """task_id -> 计时器映射与节流持久化"""

    def _registry(self, config, ticker, on_sync=None, on_complete=None) -> TimerRegistry:
        return TimerRegistry(
            config,
            on_sync=on_sync or AsyncMock(),
            on_complete=on_complete or AsyncMock(),
            sleep=ticker.sleep,
            clock=ticker.clock,
        )

    async def test_attach_resumes_running_snapshot(self, pomodoro_config, ticker):
        registry = self._registry(pomodoro_config, ticker)
        timer = await registry.attach(
            _task(pomodoro_status=PomodoroStatus.RUNNING, current_pomodoro_time=1000)
        )

        assert "t1" in registry
        assert timer.is_ticking
        assert timer.state.elapsed_ms == 1000
        assert await registry.attach(_task()) is timer
        await registry.close_all()

    async def test_attach_uses_tracking_preset(self, pomodoro_config, ticker):
        registry = self._registry(pomodoro_config, ticker)
        timer = await registry.attach(_task(tracking_preset="DEEP_50"))
        assert timer.state.duration_ms == 50 * 60 * 1000

    async def test_sync_is_throttled(self, ticker):
        config = PomodoroConfig(work_duration_ms=60_000, sync_interval_s=3)
        on_sync = AsyncMock()
        registry = self._registry(config, ticker, on_sync=on_sync)
        timer = await registry.attach(_task())

        await timer.start()
        on_sync.assert_awaited_once_with("t1", PomodoroStatus.RUNNING, 0, SessionType.WORK)

        await ticker.tick(5)
        assert on_sync.await_count == 2
        on_sync.assert_awaited_with("t1", PomodoroStatus.RUNNING, 3000, SessionType.WORK)

        await timer.pause()
        on_sync.assert_awaited_with("t1", PomodoroStatus.PAUSED, 5000, SessionType.WORK)

    async def test_teardown(self, pomodoro_config, ticker):
        on_sync = AsyncMock()
        registry = self._registry(pomodoro_config, ticker, on_sync=on_sync)
        timer = await registry.attach(_task())
        await timer.start()
        on_sync.reset_mock()

        await registry.teardown("t1")
        assert "t1" not in registry
        assert not timer.is_ticking
        on_sync.assert_awaited_once_with("t1", PomodoroStatus.RUNNING, 0, SessionType.WORK)

    async def test_teardown_without_persist(self, pomodoro_config, ticker):
        on_sync = AsyncMock()
        registry = self._registry(pomodoro_config, ticker, on_sync=on_sync)
        await registry.attach(_task())

        await registry.teardown("t1", persist=False)
        on_sync.assert_not_awaited()
        assert len(registry) == 0

    async def test_completion_skips_idle_sync(self, pomodoro_config, ticker):
        on_sync = AsyncMock()
        on_complete = AsyncMock()
        registry = self._registry(pomodoro_config, ticker, on_sync, on_complete)
        timer = await registry.attach(_task())
        await timer.start()

        await ticker.tick(2)
        await timer.join()

        on_complete.assert_awaited_once()
        # 只有 START 一次快照，完成后的空闲快照由会话持久化负责
        on_sync.assert_awaited_once()


class TestCoordinatorTimer:
    """协调器与计时器联动"""

    async def test_completion_persists_session(self, board, gateway, ticker):
        task_id = board.state.tasks[0].task_id
        timer = await board.timer(task_id)
        await timer.start()
        await ticker.tick(2)
        await timer.join()

        task = board.state.find_task(task_id)
        assert len(task.pomodoro_sessions) == 1
        assert task.total_pomodoros == 1
        assert task.pomodoro_status == PomodoroStatus.IDLE
        assert task.current_pomodoro_time is None
        stored = next(t for t in await gateway.load_tasks() if t.task_id == task_id)
        assert stored.pomodoro_sessions == task.pomodoro_sessions

    async def test_snapshot_sync_failure_is_degraded(self, board, gateway, monkeypatch):
        monkeypatch.setattr(
            gateway,
            "update_task_pomodoro_state",
            AsyncMock(side_effect=GatewayError("offline")),
        )
        task_id = board.state.tasks[0].task_id
        timer = await board.timer(task_id)
        await timer.start()

        assert board.state.error is None
        assert timer.is_ticking
        assert board.state.find_task(task_id).pomodoro_status == PomodoroStatus.RUNNING

    async def test_reload_rehydrates_running_timer(self, board, gateway, ticker):
        task_id = board.state.tasks[0].task_id
        timer = await board.timer(task_id)
        await timer.start()
        await ticker.tick()
        await timer.pause()
        await board.close()

        await board.load()
        restored = board.timers.get(task_id)
        assert restored is not None
        assert restored.state.status == PomodoroStatus.PAUSED
        assert restored.state.elapsed_ms == 1000

    async def test_paused_break_survives_reload(self, gateway, project_id, make_task, ticker):
        config = PomodoroConfig(
            work_duration_ms=2000,
            short_break_ms=5000,
            long_break_ms=9000,
            auto_start_break=True,
            sync_interval_s=10,
        )

        def coordinator() -> BoardCoordinator:
            return BoardCoordinator(
                gateway,
                pomodoro_config=config,
                locale="es",
                sleep=ticker.sleep,
                clock=ticker.clock,
            )

        board = coordinator()
        await board.load()
        task_id = await board.create_task(make_task(project_id, "Editar podcast"))
        timer = await board.timer(task_id)
        await timer.start()
        await ticker.tick(3)
        assert timer.state.phase == SessionType.BREAK
        await timer.pause()
        await board.close()

        stored = next(t for t in await gateway.load_tasks() if t.task_id == task_id)
        assert stored.pomodoro_status == PomodoroStatus.PAUSED
        assert stored.pomodoro_phase == SessionType.BREAK
        assert stored.current_pomodoro_time == 1000
        assert stored.total_pomodoros == 1

        reloaded = coordinator()
        await reloaded.load()
        restored = reloaded.timers.get(task_id)
        assert restored.state.phase == SessionType.BREAK
        assert restored.state.duration_ms == 5000
        assert restored.state.elapsed_ms == 1000

        await restored.start()
        await ticker.tick(4)
        await restored.join()

        task = reloaded.state.find_task(task_id)
        assert [s.type for s in task.pomodoro_sessions] == [SessionType.WORK, SessionType.BREAK]
        assert task.total_pomodoros == 1
        assert task.pomodoro_status == PomodoroStatus.IDLE
        await reloaded.close()

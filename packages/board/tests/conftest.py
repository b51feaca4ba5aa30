"""packages/board 测试配置 -- 看板协调器 fixture

- ManualTicker: 可注入的 sleep/clock，由测试逐个释放 tick
- fail: 把网关方法替换为会失败的 AsyncMock
"""

import asyncio
from collections.abc import AsyncGenerator
from typing import Any
from unittest.mock import AsyncMock

import pytest
import pytest_asyncio
from pomoboard.board import BoardCoordinator, PomodoroConfig
from pomoboard.core.exceptions import GatewayError
from pomoboard.core.models import NewTask
from pomoboard.core.store import DocumentGateway, seed_defaults

START_MS = 1_715_774_400_000  # 2024-05-15 12:00 UTC


class ManualTicker:
    """sleep 阻塞到测试调用 tick()；clock 随 sleep 推进"""

    def __init__(self, start_ms: int = START_MS) -> None:
        self.now = start_ms
        self._queue: asyncio.Queue[None] = asyncio.Queue()

    async def sleep(self, seconds: float) -> None:
        await self._queue.get()
        self.now += int(seconds * 1000)

    def clock(self) -> int:
        return self.now

    async def tick(self, count: int = 1) -> None:
        for _ in range(count):
            self._queue.put_nowait(None)
            await self.settle()

    async def settle(self, rounds: int = 50) -> None:
        """让出事件循环若干轮，使后台 tick 协程跑完当前一步"""
        for _ in range(rounds):
            await asyncio.sleep(0)


def _make_task(project_id: str, title: str = "Tarea", **kwargs: Any) -> NewTask:
    kwargs.setdefault("assignee", "Stiven")
    kwargs.setdefault("creator", "Dairo")
    return NewTask(title=title, project_id=project_id, **kwargs)


@pytest.fixture
def make_task():
    """NewTask 工厂（默认负责人 Stiven、创建人 Dairo）"""
    return _make_task


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def pomodoro_config() -> PomodoroConfig:
    """2 秒工作时长，便于用两个 tick 完成一个会话"""
    return PomodoroConfig(
        work_duration_ms=2000,
        short_break_ms=1000,
        long_break_ms=3000,
        sync_interval_s=10,
    )


@pytest_asyncio.fixture
async def gateway() -> DocumentGateway:
    """已写入默认列与项目的文档库网关"""
    gw = DocumentGateway()
    await seed_defaults(gw)
    return gw


@pytest_asyncio.fixture
async def project_id(gateway: DocumentGateway) -> str:
    projects = await gateway.load_projects()
    return projects[0].project_id


@pytest_asyncio.fixture
async def board(
    gateway: DocumentGateway,
    project_id: str,
    ticker: ManualTicker,
    pomodoro_config: PomodoroConfig,
) -> AsyncGenerator[BoardCoordinator, None]:
    """已加载两条任务的协调器"""
    await gateway.create_task(_make_task(project_id, "Campaña de anuncios"))
    await gateway.create_task(_make_task(project_id, "Diseñar landing", assignee="Mariana"))

    coordinator = BoardCoordinator(
        gateway,
        pomodoro_config=pomodoro_config,
        locale="es",
        sleep=ticker.sleep,
        clock=ticker.clock,
    )
    assert await coordinator.load()
    yield coordinator
    await coordinator.close()


@pytest.fixture
def fail(monkeypatch):
    """把网关方法替换为失败的 AsyncMock

    only 非空时只对第一个参数在 only 中的调用失败，其余调用透传。
    """

    def _fail(gateway: Any, method: str, only: set[str] | None = None) -> AsyncMock:
        original = getattr(gateway, method)

        async def side_effect(*args: Any, **kwargs: Any) -> Any:
            if only is None or (args and args[0] in only):
                raise GatewayError("simulated failure", operation=method)
            return await original(*args, **kwargs)

        mock = AsyncMock(side_effect=side_effect)
        monkeypatch.setattr(gateway, method, mock)
        return mock

    return _fail


@pytest.fixture
def spy(monkeypatch):
    """包装网关方法以记录调用，行为不变"""

    def _spy(gateway: Any, method: str) -> AsyncMock:
        mock = AsyncMock(wraps=getattr(gateway, method))
        monkeypatch.setattr(gateway, method, mock)
        return mock

    return _spy

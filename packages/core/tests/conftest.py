"""packages/core 测试配置 -- 核心层 fixture"""

from collections.abc import AsyncGenerator
from pathlib import Path

import aiosqlite
import pytest
import pytest_asyncio
from pomoboard.core.models import NewTask, Task
from pomoboard.core.store import DocumentGateway, SqliteGateway
from pomoboard.core.store.sqlite_init import init_db


@pytest_asyncio.fixture
async def core_db_path(tmp_path: Path) -> Path:
    """核心层临时数据库路径"""
    return tmp_path / "core_test.db"


@pytest_asyncio.fixture
async def core_db(core_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """核心层已初始化数据库连接"""
    conn = await aiosqlite.connect(str(core_db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture(params=["document", "sqlite"])
async def any_gateway(request, core_db):
    """两种后端各跑一遍"""
    if request.param == "document":
        return DocumentGateway()
    return SqliteGateway(core_db)


@pytest.fixture
def new_task() -> NewTask:
    """最小可用的新建任务载荷"""
    return NewTask(
        title="Diseñar landing",
        assignee="Mariana",
        creator="Dairo",
        project_id="proj-1",
    )


@pytest.fixture
def sample_task() -> Task:
    """已持久化的任务实体"""
    return Task(
        task_id="01JTASK0000000000000000001",
        created_at=1_700_000_000_000,
        title="Campaña de anuncios",
        assignee="Stiven",
        creator="Dairo",
        project_id="proj-1",
    )

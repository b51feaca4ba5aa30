"""集成测试共享 fixture -- SQLite 网关 + 看板协调器"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from pomoboard.board import BoardCoordinator
from pomoboard.core.store import SqliteGateway, create_sqlite_gateway, seed_defaults


@pytest_asyncio.fixture
async def sqlite_gateway(tmp_db_path: Path) -> AsyncGenerator[SqliteGateway, None]:
    """已写入默认列与项目的 SQLite 网关"""
    gateway, conn = await create_sqlite_gateway(str(tmp_db_path))
    await seed_defaults(gateway)
    yield gateway
    await conn.close()


@pytest_asyncio.fixture
async def sqlite_board(sqlite_gateway: SqliteGateway) -> AsyncGenerator[BoardCoordinator, None]:
    """基于 SQLite 网关的协调器"""
    board = BoardCoordinator(sqlite_gateway, locale="es")
    assert await board.load()
    yield board
    await board.close()

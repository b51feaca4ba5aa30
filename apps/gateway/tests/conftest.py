"""apps/gateway 测试配置 -- httpx AsyncClient + 临时 SQLite 网关"""

from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from pomoboard.core.store import create_sqlite_gateway, seed_defaults


@pytest_asyncio.fixture
async def app(tmp_path: Path, monkeypatch):
    """创建测试用 FastAPI app（绕过 lifespan，手动初始化网关）"""
    db_path = tmp_path / "sqlite" / "test.db"
    monkeypatch.setenv("POMOBOARD_DB_PATH", str(db_path))
    monkeypatch.setenv("POMOBOARD_IMAGES_DIR", str(tmp_path / "images"))

    from pomoboard.gateway.main import create_app

    application = create_app()
    gateway, conn = await create_sqlite_gateway(str(db_path))
    await seed_defaults(gateway)
    application.state.gateway = gateway
    application.state.db_conn = conn

    yield application

    await conn.close()


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def project_id(client: AsyncClient) -> str:
    resp = await client.get("/api/projects")
    return resp.json()["projects"][0]["project_id"]


@pytest_asyncio.fixture
async def task_id(client: AsyncClient, project_id: str) -> str:
    resp = await client.post(
        "/api/tasks",
        json={
            "title": "Publicar reel",
            "assignee": "Mariana",
            "creator": "Dairo",
            "project_id": project_id,
        },
    )
    assert resp.status_code == 201
    return resp.json()["task_id"]

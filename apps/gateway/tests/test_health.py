"""健康检查与生命周期测试

测试内容：
1. GET /health 返回 200 + ok
2. GET /ready 正常时返回 200 + checks 结构
3. GET /ready SQLite 不可用时返回 503
4. lifespan 打开数据库并写入默认数据，关闭时释放连接
"""

from pathlib import Path

from httpx import AsyncClient
from pomoboard.gateway.main import create_app, lifespan


class TestHealthCheck:
    async def test_health_returns_200(self, client: AsyncClient):
        resp = await client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"

    async def test_ready_returns_200(self, client: AsyncClient):
        resp = await client.get("/ready")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ready"
        assert data["checks"]["sqlite"] == "ok"
        assert data["checks"]["images_dir"] == "ok"
        assert isinstance(data["checks"]["disk_space_mb"], int)

    async def test_ready_sqlite_failure(self, app, client: AsyncClient):
        await app.state.db_conn.close()
        resp = await client.get("/ready")
        assert resp.status_code == 503
        data = resp.json()
        assert data["status"] == "not_ready"
        assert data["checks"]["sqlite"].startswith("error")


class TestLifespan:
    async def test_lifespan_seeds_and_closes(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("POMOBOARD_DB_PATH", str(tmp_path / "life" / "board.db"))
        app = create_app()

        async with lifespan(app):
            columns = await app.state.gateway.load_columns()
            projects = await app.state.gateway.load_projects()
            assert [c.status for c in columns] == ["TODO", "IN_PROGRESS", "DONE"]
            assert len(projects) == 3

        assert (tmp_path / "life" / "board.db").exists()

    async def test_restart_does_not_reseed(self, tmp_path: Path, monkeypatch):
        monkeypatch.setenv("POMOBOARD_DB_PATH", str(tmp_path / "board.db"))
        app = create_app()
        async with lifespan(app):
            pass
        async with lifespan(app):
            assert len(await app.state.gateway.load_columns()) == 3

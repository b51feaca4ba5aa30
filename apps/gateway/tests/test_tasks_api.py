"""任务 REST API 测试

测试内容：
1. 创建、列表、部分更新
2. 项目/状态引用校验与 None 字段拒绝 -> 422
3. 软删除移动与恢复
4. 完成复制与重复完成 409
5. 番茄钟会话与快照
6. 404 错误信封
7. 请求 ID 沿用与日志级别回退
"""

from httpx import AsyncClient


class TestTaskCrud:
    async def test_create_and_list(self, client: AsyncClient, task_id: str):
        resp = await client.get("/api/tasks")
        assert resp.status_code == 200
        tasks = resp.json()["tasks"]
        assert [t["task_id"] for t in tasks] == [task_id]
        assert tasks[0]["status"] == "TODO"
        assert tasks[0]["priority"] == "MEDIUM"

    async def test_create_requires_project(self, client: AsyncClient):
        resp = await client.post(
            "/api/tasks",
            json={"title": "Sin proyecto", "assignee": "Jose", "creator": "Dairo"},
        )
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INVALID_PAYLOAD"

    async def test_create_rejects_unknown_status(self, client: AsyncClient, project_id: str):
        resp = await client.post(
            "/api/tasks",
            json={
                "title": "Estado raro",
                "assignee": "Jose",
                "creator": "Dairo",
                "project_id": project_id,
                "status": "ARCHIVED",
            },
        )
        assert resp.status_code == 422

    async def test_patch(self, client: AsyncClient, task_id: str):
        resp = await client.patch(
            f"/api/tasks/{task_id}",
            json={"status": "IN_PROGRESS", "priority": "HIGH"},
        )
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "IN_PROGRESS"
        assert data["priority"] == "HIGH"

    async def test_patch_rejects_none(self, client: AsyncClient, task_id: str):
        resp = await client.patch(f"/api/tasks/{task_id}", json={"due_date": None})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "INVALID_PAYLOAD"

    async def test_patch_unknown_task(self, client: AsyncClient):
        resp = await client.patch("/api/tasks/01JNOTEXIST000000000000000", json={"title": "x"})
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "TASK_NOT_FOUND"


class TestHoldingSets:
    async def test_soft_delete_and_restore(self, client: AsyncClient, task_id: str):
        resp = await client.delete(f"/api/tasks/{task_id}")
        assert resp.status_code == 204
        assert (await client.get("/api/tasks")).json()["tasks"] == []

        deleted = (await client.get("/api/tasks/deleted")).json()["tasks"]
        assert len(deleted) == 1
        assert deleted[0]["original_id"] == task_id
        assert deleted[0]["deleted_at"] is not None

        resp = await client.post(f"/api/tasks/deleted/{deleted[0]['task_id']}/restore")
        assert resp.status_code == 200
        new_id = resp.json()["task_id"]
        assert new_id != deleted[0]["task_id"]
        assert (await client.get("/api/tasks/deleted")).json()["tasks"] == []

    async def test_permanent_delete(self, client: AsyncClient, task_id: str):
        await client.delete(f"/api/tasks/{task_id}")
        resp = await client.delete(f"/api/tasks/deleted/{task_id}")
        assert resp.status_code == 204
        resp = await client.delete(f"/api/tasks/deleted/{task_id}")
        assert resp.status_code == 404
        assert resp.json()["error"]["code"] == "DELETED_TASK_NOT_FOUND"

    async def test_complete_is_copy(self, client: AsyncClient, task_id: str):
        resp = await client.post(f"/api/tasks/{task_id}/complete")
        assert resp.status_code == 200
        assert resp.json() == {"task_id": task_id, "status": "DONE", "completed_copy": True}

        active = (await client.get("/api/tasks")).json()["tasks"]
        assert active[0]["status"] == "DONE"
        completed = (await client.get("/api/tasks/completed")).json()["tasks"]
        assert [t["original_id"] for t in completed] == [task_id]

        resp = await client.post(f"/api/tasks/{task_id}/complete")
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "TASK_ALREADY_DONE"

    async def test_restore_completed(self, client: AsyncClient, task_id: str):
        await client.post(f"/api/tasks/{task_id}/complete")
        resp = await client.post(f"/api/tasks/completed/{task_id}/restore")
        new_id = resp.json()["task_id"]

        tasks = {t["task_id"]: t for t in (await client.get("/api/tasks")).json()["tasks"]}
        assert tasks[new_id]["status"] == "TODO"
        assert (await client.get("/api/tasks/completed")).json()["tasks"] == []


class TestPomodoro:
    async def test_record_session(self, client: AsyncClient, task_id: str):
        await client.put(
            f"/api/tasks/{task_id}/pomodoro/state",
            json={"status": "running", "current_time": 60000},
        )
        resp = await client.post(
            f"/api/tasks/{task_id}/pomodoro/sessions",
            json={
                "session_id": "s-1",
                "task_id": task_id,
                "start_time": 1_715_772_900_000,
                "end_time": 1_715_774_400_000,
                "duration": 1_500_000,
                "type": "work",
                "date": "2024-05-15",
            },
        )
        assert resp.status_code == 200
        task = resp.json()
        assert task["total_pomodoros"] == 1
        assert len(task["pomodoro_sessions"]) == 1
        assert task["pomodoro_status"] == "idle"
        assert task["current_pomodoro_time"] is None

    async def test_sync_state(self, client: AsyncClient, task_id: str):
        resp = await client.put(
            f"/api/tasks/{task_id}/pomodoro/state",
            json={"status": "paused", "current_time": 42000},
        )
        assert resp.status_code == 204
        (task,) = (await client.get("/api/tasks")).json()["tasks"]
        assert task["pomodoro_status"] == "paused"
        assert task["current_pomodoro_time"] == 42000

    async def test_session_task_mismatch(self, client: AsyncClient, task_id: str):
        resp = await client.post(
            f"/api/tasks/{task_id}/pomodoro/sessions",
            json={
                "session_id": "s-1",
                "task_id": "otra",
                "start_time": 0,
                "end_time": 1,
                "duration": 1,
                "date": "2024-05-15",
            },
        )
        assert resp.status_code == 422


class TestObservability:
    async def test_request_id_header(self, client: AsyncClient):
        resp = await client.get("/health")
        assert len(resp.headers["X-Request-ID"]) == 26

    async def test_client_request_id_reused(self, client: AsyncClient):
        resp = await client.get("/health", headers={"X-Request-ID": "board-op-42"})
        assert resp.headers["X-Request-ID"] == "board-op-42"

    def test_oversized_request_id_replaced(self):
        from pomoboard.gateway.middleware.logging_mw import resolve_request_id

        assert len(resolve_request_id("x" * 65)) == 26
        assert len(resolve_request_id(None)) == 26
        assert resolve_request_id("x" * 64) == "x" * 64

    def test_unknown_log_level_falls_back(self):
        import logging

        from pomoboard.gateway.middleware.logging_config import _resolve_level

        assert _resolve_level("debug") == logging.DEBUG
        assert _resolve_level("loud") == logging.INFO

    def test_extract_task_id(self):
        from pomoboard.gateway.middleware.trace_mw import extract_task_id

        assert extract_task_id("/api/tasks/01JABC/complete") == "01JABC"
        assert extract_task_id("/api/tasks/deleted/01JABC/restore") == "01JABC"
        assert extract_task_id("/api/tasks/deleted") is None
        assert extract_task_id("/api/projects/p1") is None

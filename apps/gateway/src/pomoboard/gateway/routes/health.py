"""健康检查路由

GET /health: Liveness 检查，永远返回 200。
GET /ready: Readiness 检查，包含 SQLite 连通性、图片目录、磁盘空间。
"""

import shutil

import structlog
from fastapi import APIRouter, Request
from pomoboard.core.config import get_images_dir
from starlette.responses import JSONResponse

log = structlog.get_logger()

router = APIRouter()


@router.get("/health")
async def health():
    """Liveness 检查 -- 永远返回 200"""
    return {"status": "ok"}


@router.get("/ready")
async def ready(request: Request):
    """Readiness 检查 -- 验证核心依赖可用性

    检查项：
    1. sqlite: 数据库连通性
    2. images_dir: 图片目录可访问性（不存在时视为可创建）
    3. disk_space_mb: 磁盘剩余空间
    """
    checks = {}
    all_ok = True

    try:
        cursor = await request.app.state.db_conn.execute("SELECT 1")
        await cursor.fetchone()
        checks["sqlite"] = "ok"
    except Exception as e:
        log.warning("ready_check_failed", check="sqlite", error=str(e))
        checks["sqlite"] = f"error: {str(e)}"
        all_ok = False

    images_dir = get_images_dir()
    if images_dir.exists() and not images_dir.is_dir():
        checks["images_dir"] = "error: not a directory"
        all_ok = False
    else:
        checks["images_dir"] = "ok"

    try:
        disk_usage = shutil.disk_usage("/")
        checks["disk_space_mb"] = disk_usage.free // (1024 * 1024)
    except OSError:
        checks["disk_space_mb"] = 0
        all_ok = False

    return JSONResponse(
        status_code=200 if all_ok else 503,
        content={
            "status": "ready" if all_ok else "not_ready",
            "checks": checks,
        },
    )

"""FastAPI 应用主文件

app 创建 + lifespan 管理：SQLite 网关初始化/关闭 + 默认数据写入 + 路由注册。
"""

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import structlog
from fastapi import FastAPI
from pomoboard.core.config import get_db_path
from pomoboard.core.store import create_sqlite_gateway, seed_defaults

from .errors import register_error_handlers
from .middleware.logging_config import setup_logging
from .middleware.logging_mw import LoggingMiddleware
from .middleware.trace_mw import TraceMiddleware
from .routes import columns, health, projects, tasks

log = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期管理：启动时打开数据库并写入默认列/项目，关闭时清理连接"""
    db_path = get_db_path()
    gateway, conn = await create_sqlite_gateway(db_path)
    app.state.gateway = gateway
    app.state.db_conn = conn

    created_columns, created_projects = await seed_defaults(gateway)
    log.info(
        "gateway_started",
        db_path=db_path,
        seeded_columns=created_columns,
        seeded_projects=created_projects,
    )

    yield

    if getattr(app.state, "db_conn", None) is not None:
        await app.state.db_conn.close()


def create_app() -> FastAPI:
    """创建 FastAPI 应用实例"""
    app = FastAPI(
        title="PomoBoard Gateway",
        version="0.1.0",
        description="PomoBoard 看板持久层 REST API",
        lifespan=lifespan,
    )

    # 注册中间件（顺序：先 Trace 后 Logging）
    app.add_middleware(TraceMiddleware)
    app.add_middleware(LoggingMiddleware)

    setup_logging()
    register_error_handlers(app)

    app.include_router(tasks.router, tags=["tasks"])
    app.include_router(projects.router, tags=["projects"])
    app.include_router(columns.router, tags=["columns"])
    app.include_router(health.router, tags=["health"])

    return app


# 默认 app 实例（uvicorn 入口）
app = create_app()

"""TraceMiddleware -- 任务级追踪

为 /api/tasks/{task_id}/... 请求绑定 trace_id，贯穿该任务的网关日志。
已删除/已完成集合的子路由同样适用（/api/tasks/deleted/{id}）。
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# 集合名，不是任务 ID
_HOLDING_SEGMENTS = {"deleted", "completed"}


def extract_task_id(path: str) -> str | None:
    """从路径中提取任务 ID；不是任务路由时返回 None"""
    parts = [p for p in path.split("/") if p]
    if len(parts) < 3 or parts[:2] != ["api", "tasks"]:
        return None
    candidate = parts[2]
    if candidate in _HOLDING_SEGMENTS:
        return parts[3] if len(parts) > 3 else None
    return candidate


class TraceMiddleware(BaseHTTPMiddleware):
    """为任务操作绑定 trace_id"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        task_id = extract_task_id(request.url.path)
        if task_id:
            structlog.contextvars.bind_contextvars(trace_id=f"trace-{task_id}")

        return await call_next(request)

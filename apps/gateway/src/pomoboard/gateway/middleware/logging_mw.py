"""LoggingMiddleware -- 请求级日志

沿用客户端传入的 X-Request-ID（看板客户端据此关联一次乐观更新与其持久化请求），
否则生成 ULID；绑定到 structlog contextvars，并在响应头回传。
"""

import time

import structlog
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from ulid import ULID

REQUEST_ID_HEADER = "X-Request-ID"

# 超过该长度的客户端请求 ID 视为无效
_MAX_REQUEST_ID_LENGTH = 64


def resolve_request_id(raw: str | None) -> str:
    """客户端请求 ID 合法时沿用，否则生成新的 ULID"""
    if raw and len(raw) <= _MAX_REQUEST_ID_LENGTH and raw.isprintable():
        return raw
    return str(ULID())


class LoggingMiddleware(BaseHTTPMiddleware):
    """记录请求开始、结束（含耗时）与未处理异常"""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        request_id = resolve_request_id(request.headers.get(REQUEST_ID_HEADER))

        structlog.contextvars.clear_contextvars()
        structlog.contextvars.bind_contextvars(
            request_id=request_id,
            method=request.method,
            path=request.url.path,
        )
        log = structlog.get_logger()
        started = time.perf_counter()

        try:
            response = await call_next(request)
        except Exception as e:
            await log.aerror(
                "request_failed",
                error_type=type(e).__name__,
                duration_ms=round((time.perf_counter() - started) * 1000, 2),
            )
            raise

        await log.ainfo(
            "request_completed",
            status_code=response.status_code,
            duration_ms=round((time.perf_counter() - started) * 1000, 2),
        )
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

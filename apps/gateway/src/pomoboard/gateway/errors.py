"""统一错误响应 -- {"error": {"code", "message"}}

- EntityNotFoundError -> 404 <ENTITY>_NOT_FOUND
- InvalidPayloadError / BoardValidationError -> 422 INVALID_PAYLOAD
- GatewayError（其余） -> 500 GATEWAY_ERROR
"""

import structlog
from fastapi import FastAPI, Request
from pomoboard.core.exceptions import (
    BoardValidationError,
    EntityNotFoundError,
    GatewayError,
    InvalidPayloadError,
)
from starlette.responses import JSONResponse

log = structlog.get_logger()

_NOT_FOUND_CODES: dict[str, str] = {
    "tasks": "TASK_NOT_FOUND",
    "deleted_tasks": "DELETED_TASK_NOT_FOUND",
    "completed_tasks": "COMPLETED_TASK_NOT_FOUND",
    "projects": "PROJECT_NOT_FOUND",
    "columns": "COLUMN_NOT_FOUND",
}


def error_response(status_code: int, code: str, message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"error": {"code": code, "message": message}},
    )


async def _not_found(request: Request, exc: EntityNotFoundError) -> JSONResponse:
    code = _NOT_FOUND_CODES.get(exc.collection, "NOT_FOUND")
    return error_response(404, code, str(exc))


async def _invalid_payload(request: Request, exc: InvalidPayloadError) -> JSONResponse:
    return error_response(422, "INVALID_PAYLOAD", str(exc))


async def _validation(request: Request, exc: BoardValidationError) -> JSONResponse:
    return error_response(422, "INVALID_PAYLOAD", str(exc))


async def _gateway_error(request: Request, exc: GatewayError) -> JSONResponse:
    log.error("gateway_request_failed", operation=exc.operation, error=str(exc))
    return error_response(500, "GATEWAY_ERROR", str(exc))


def register_error_handlers(app: FastAPI) -> None:
    """注册异常处理器（子类优先匹配）"""
    app.add_exception_handler(EntityNotFoundError, _not_found)
    app.add_exception_handler(InvalidPayloadError, _invalid_payload)
    app.add_exception_handler(BoardValidationError, _validation)
    app.add_exception_handler(GatewayError, _gateway_error)

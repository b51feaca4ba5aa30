"""structlog 配置模块

POMOBOARD_LOG_FORMAT: dev（默认，控制台可读输出）| json（每行一条 JSON）
POMOBOARD_LOG_LEVEL:  标准 logging 级别名，非法值回退为 INFO
"""

import logging
import os

import structlog

# 逐条 SQL 的调试输出对看板请求没有意义
_QUIET_LOGGERS = ("aiosqlite", "PIL")


def _resolve_level(raw: str) -> int:
    level = logging.getLevelName(raw.strip().upper())
    return level if isinstance(level, int) else logging.INFO


def setup_logging() -> None:
    """初始化 structlog 与标准库 logging

    structlog 事件与第三方库（uvicorn、aiosqlite）的标准库日志
    经由同一个 ProcessorFormatter 渲染，输出格式一致。
    """
    json_output = os.environ.get("POMOBOARD_LOG_FORMAT", "dev").lower() == "json"
    raw_level = os.environ.get("POMOBOARD_LOG_LEVEL", "INFO")
    level = _resolve_level(raw_level)

    shared_processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    renderer: structlog.types.Processor = (
        structlog.processors.JSONRenderer(ensure_ascii=False)
        if json_output
        else structlog.dev.ConsoleRenderer()
    )

    structlog.configure(
        processors=[*shared_processors, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler()
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=renderer,
            foreign_pre_chain=shared_processors,
        )
    )
    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.addHandler(handler)
    root_logger.setLevel(level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    if level == logging.INFO and raw_level.strip().upper() != "INFO":
        structlog.get_logger().warning("log_level_invalid", value=raw_level, fallback="INFO")

"""依赖注入模块 -- 通过 FastAPI Depends 注入持久层网关

网关实例通过 app.state 管理，在 lifespan 中初始化/清理。
"""

from fastapi import Request
from pomoboard.core.store import SqliteGateway


def get_gateway(request: Request) -> SqliteGateway:
    """从 app.state 获取 SqliteGateway 实例"""
    return request.app.state.gateway

"""PomoBoard Core Store -- 持久层网关实现

提供两种后端（文档库风格的内存实现、SQLite 关系型实现），
以及创建 SQLite 网关与写入默认数据的工厂函数。
"""

from pathlib import Path

import aiosqlite
import structlog

from ..models import DEFAULT_COLUMNS, DEFAULT_PROJECTS
from .document_gateway import DocumentGateway
from .payload import check_payload, strip_undefined
from .protocols import PersistenceGateway
from .sqlite_gateway import SqliteGateway
from .sqlite_init import init_db

log = structlog.get_logger()


async def create_sqlite_gateway(db_path: str) -> tuple[SqliteGateway, aiosqlite.Connection]:
    """创建 SQLite 网关

    Args:
        db_path: SQLite 数据库文件路径

    Returns:
        (SqliteGateway 实例, 数据库连接) -- 连接由调用方负责关闭
    """
    # 确保数据库目录存在
    db_dir = Path(db_path).parent
    db_dir.mkdir(parents=True, exist_ok=True)

    conn = await aiosqlite.connect(db_path)
    conn.row_factory = aiosqlite.Row
    await init_db(conn)

    return SqliteGateway(conn), conn


async def seed_defaults(gateway: PersistenceGateway) -> tuple[int, int]:
    """为空库写入默认看板列与项目

    已存在的集合不做任何修改。

    Returns:
        (新建列数, 新建项目数)
    """
    created_columns = 0
    created_projects = 0

    if not await gateway.load_columns():
        for column in DEFAULT_COLUMNS:
            await gateway.create_column(column)
            created_columns += 1

    if not await gateway.load_projects():
        for project in DEFAULT_PROJECTS:
            await gateway.create_project(project)
            created_projects += 1

    if created_columns or created_projects:
        log.info(
            "defaults_seeded",
            columns=created_columns,
            projects=created_projects,
        )
    return created_columns, created_projects


__all__ = [
    "PersistenceGateway",
    "DocumentGateway",
    "SqliteGateway",
    "create_sqlite_gateway",
    "seed_defaults",
    "init_db",
    "strip_undefined",
    "check_payload",
]
